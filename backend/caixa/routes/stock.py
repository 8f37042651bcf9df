# Overview: Flask API routes for stock movements and manual adjustments.

from flask import Blueprint, request, jsonify, current_app

from ..services import stock_service
from ..services.stock_service import StockError, ProductNotFoundError
from ..validation import ValidationError, validate_movement_payload, validate_adjust_payload


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.post("/movements")
def add_movement_route():
    try:
        data = validate_movement_payload(request.get_json(silent=True))
        movement = stock_service.add_movement(**data)
        return jsonify({"movement": movement.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductNotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except StockError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.post("/adjust")
def adjust_stock_route():
    try:
        data = validate_adjust_payload(request.get_json(silent=True))
        movement = stock_service.adjust_stock(
            data["product_id"],
            data["new_quantity"],
            notes=data["notes"],
            user_id=data["user_id"],
        )
        return jsonify({"movement": movement.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductNotFoundError as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/movements")
def list_movements_route():
    product_id = request.args.get("product_id", type=int)
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", 100, type=int)

    result = stock_service.list_movements(product_id=product_id, page=page, limit=limit)
    return jsonify({
        "movements": [m.to_dict() for m in result["items"]],
        "pagination": result["pagination"],
    }), 200


@stock_bp.get("/<int:product_id>")
def current_stock_route(product_id: int):
    try:
        qty = stock_service.get_current_stock(product_id)
    except ProductNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"product_id": product_id, "stock_quantity": qty}), 200
