import pytest

from caixa.models import Product, StockMovement
from caixa.services import stock_service
from caixa.services.stock_service import ProductNotFoundError, StockError, compute_new_quantity


@pytest.mark.parametrize(
    "movement_type, expected",
    [
        ("in", 15),
        ("return", 15),
        ("out", 5),
        ("damage", 5),
        ("transfer", 5),
        ("adjustment", 5),
    ],
)
def test_compute_new_quantity(movement_type, expected):
    assert compute_new_quantity(movement_type, 10, 5) == expected


def test_compute_new_quantity_rejects_unknown_type():
    with pytest.raises(StockError):
        compute_new_quantity("teleport", 10, 5)


def test_inbound_movement_increases_level(db_session, product):
    movement = stock_service.add_movement(
        product_id=product.id,
        movement_type="in",
        quantity=7,
        reference_type="purchase",
        reference_id=12,
        cost_price_cents=2800,
        notes="Supplier delivery",
    )

    assert movement.id is not None
    assert (movement.previous_quantity, movement.new_quantity) == (10, 17)
    assert movement.quantity == 7
    assert movement.reference_type == "purchase"
    assert stock_service.get_current_stock(product.id) == 17


def test_damage_movement_decreases_level(db_session, product):
    movement = stock_service.add_movement(product_id=product.id, movement_type="damage", quantity=3)
    assert (movement.previous_quantity, movement.new_quantity) == (10, 7)
    assert stock_service.get_current_stock(product.id) == 7


def test_adjustment_sets_level_and_stores_delta(db_session, product):
    movement = stock_service.adjust_stock(product.id, 4)

    assert movement.type == "adjustment"
    assert movement.previous_quantity == 10
    assert movement.new_quantity == 4
    assert movement.quantity == -6
    assert movement.notes == "Manual adjustment from 10 to 4"
    assert stock_service.get_current_stock(product.id) == 4


def test_adjustment_keeps_given_notes(db_session, product):
    movement = stock_service.adjust_stock(product.id, 12, notes="Shelf recount", user_id=3)
    assert movement.notes == "Shelf recount"
    assert movement.user_id == 3
    assert movement.quantity == 2


def test_invalid_movement_type_writes_nothing(db_session, product):
    with pytest.raises(StockError):
        stock_service.add_movement(product_id=product.id, movement_type="teleport", quantity=1)
    assert db_session.query(StockMovement).count() == 0


def test_movement_for_missing_product(db_session):
    with pytest.raises(ProductNotFoundError):
        stock_service.add_movement(product_id=424242, movement_type="in", quantity=1)
    with pytest.raises(ProductNotFoundError):
        stock_service.adjust_stock(424242, 1)
    with pytest.raises(ProductNotFoundError):
        stock_service.get_current_stock(424242)


def test_every_movement_chains_from_the_previous_level(db_session, product):
    stock_service.add_movement(product_id=product.id, movement_type="in", quantity=5)
    stock_service.add_movement(product_id=product.id, movement_type="out", quantity=8)
    stock_service.adjust_stock(product.id, 20)

    movements = db_session.query(StockMovement).order_by(StockMovement.id).all()
    levels = [(m.previous_quantity, m.new_quantity) for m in movements]
    assert levels == [(10, 15), (15, 7), (7, 20)]

    db_session.expire_all()
    assert db_session.get(Product, product.id).stock_quantity == movements[-1].new_quantity


def test_list_movements_newest_first_and_filtered(db_session, products):
    first, second, _ = products
    stock_service.add_movement(product_id=first.id, movement_type="in", quantity=1)
    stock_service.add_movement(product_id=second.id, movement_type="in", quantity=2)
    stock_service.add_movement(product_id=first.id, movement_type="out", quantity=1)

    everything = stock_service.list_movements()
    assert everything["pagination"]["total"] == 3
    assert everything["pagination"]["limit"] == 100

    only_first = stock_service.list_movements(product_id=first.id)
    rows = only_first["items"]
    assert [m.type for m in rows] == ["out", "in"]
    assert all(m.product_id == first.id for m in rows)


def test_list_sale_movements(db_session, product):
    from caixa.services.sales_service import create_sale

    sale = create_sale(
        items=[{"product_id": product.id, "quantity": 1, "unit_price_cents": 5000}],
        payment_method="card",
    ).sale
    stock_service.add_movement(product_id=product.id, movement_type="in", quantity=3)

    movements = stock_service.list_sale_movements(sale.id)
    assert len(movements) == 1
    assert movements[0].reference_id == sale.id
