# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/caixa/routes/sales.py
"""Sales API routes"""

from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import IntegrityError

from ..services import sales_service
from ..services.held_sale_service import current_store
from ..services.sales_service import SaleNotFoundError
from ..time_utils import parse_iso_date, parse_iso_datetime, parse_iso_end
from ..validation import ValidationError, validate_sale_payload


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("/")
def create_sale_route():
    """
    Commit a cart as a completed sale.

    Returns the sale header plus one stock outcome per line, so the caller can
    flag lines that did not touch inventory.
    """
    try:
        data = validate_sale_payload(request.get_json(silent=True))
        result = sales_service.create_sale(**data)
        return jsonify(result.to_dict()), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except IntegrityError:
        return jsonify({"error": "Invoice number already exists"}), 409
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/")
def list_sales_route():
    status = request.args.get("status")
    page = request.args.get("page", 1, type=int)
    limit = request.args.get("limit", 20, type=int)

    try:
        start = parse_iso_datetime(request.args.get("start_date"))
        end = parse_iso_end(request.args.get("end_date"))
    except ValueError:
        return jsonify({"error": "Invalid start_date or end_date"}), 400

    result = sales_service.list_sales(status=status, start=start, end=end, page=page, limit=limit)
    return jsonify({
        "sales": [sale.to_dict() for sale in result["items"]],
        "pagination": result["pagination"],
    }), 200


@sales_bp.get("/daily-summary")
def daily_summary_route():
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "Invalid date"}), 400

    return jsonify({"summary": sales_service.get_daily_summary(day)}), 200


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404

    items = sales_service.get_sale_items(sale_id)

    return jsonify({
        "sale": sale.to_dict(),
        "items": [item.to_dict() for item in items]
    }), 200


@sales_bp.post("/<int:sale_id>/cancel")
def cancel_sale_route(sale_id: int):
    """
    Cancel a sale. Inventory is not restored.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        sale = sales_service.cancel_sale(sale_id, data.get("reason"))
        return jsonify({"sale": sale.to_dict()}), 200

    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>/receipt")
def receipt_route(sale_id: int):
    try:
        return jsonify({"html": sales_service.render_receipt(sale_id)}), 200
    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404


@sales_bp.post("/hold")
def hold_sale_route():
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"error": "JSON body required"}), 400

    hold_id = sales_service.hold_sale(data, current_store())
    return jsonify({"hold_id": hold_id}), 201


@sales_bp.get("/hold/<hold_id>")
def retrieve_hold_route(hold_id: str):
    held = sales_service.retrieve_held_sale(hold_id, current_store())
    return jsonify({"held_sale": held}), 200
