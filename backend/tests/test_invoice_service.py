"""
Invoice number generation tests.

The randomness source is injected so collisions can be forced.
"""

import re
from datetime import date

from caixa.services import invoice_service
from caixa.services.invoice_service import format_invoice_number, generate_invoice_number
from caixa.services.sales_service import create_sale


DAY = date(2026, 10, 17)
INVOICE_RE = re.compile(r"^INV-\d{8}-\d{4}$")


def _sale_with_invoice(number):
    return create_sale(
        items=[{"quantity": 1, "unit_price_cents": 100}],
        payment_method="card",
        invoice_number=number,
    ).sale


def test_format_is_zero_padded():
    assert format_invoice_number(DAY, 7) == "INV-20261017-0007"
    assert format_invoice_number(DAY, 9999) == "INV-20261017-9999"


def test_generated_number_matches_format(db_session):
    number = generate_invoice_number()
    assert INVOICE_RE.match(number)


def test_collision_draws_a_new_suffix(db_session):
    _sale_with_invoice("INV-20261017-0001")

    suffixes = iter([1, 2])
    number = generate_invoice_number(today=DAY, rand_suffix=lambda: next(suffixes))

    assert number == "INV-20261017-0002"


def test_exhausted_attempts_return_last_candidate(db_session):
    _sale_with_invoice("INV-20261017-0001")

    calls = []

    def always_one():
        calls.append(1)
        return 1

    number = generate_invoice_number(today=DAY, rand_suffix=always_one, max_attempts=3)

    assert number == "INV-20261017-0001"
    assert len(calls) == 3


def test_max_attempts_defaults_to_config(app, db_session, monkeypatch):
    _sale_with_invoice("INV-20261017-0005")
    monkeypatch.setitem(app.config, "INVOICE_MAX_ATTEMPTS", 2)

    calls = []

    def always_five():
        calls.append(1)
        return 5

    generate_invoice_number(today=DAY, rand_suffix=always_five)
    assert len(calls) == 2


def test_sale_commit_uses_injected_suffix(db_session):
    result = create_sale(
        items=[{"quantity": 1, "unit_price_cents": 100}],
        payment_method="card",
        rand_suffix=lambda: 42,
    )
    assert result.sale.invoice_number.endswith("-0042")


def test_thousand_sales_same_day_get_distinct_numbers(db_session, monkeypatch):
    # Real randomness; ~50 birthday collisions expected over 1000 draws from 10000
    draws = []
    real_suffix = invoice_service.random_suffix

    def counting_suffix():
        draws.append(1)
        return real_suffix()

    monkeypatch.setattr(invoice_service, "random_suffix", counting_suffix)

    numbers = [
        create_sale(items=[{"quantity": 1, "unit_price_cents": 100}], payment_method="cash").sale.invoice_number
        for _ in range(1000)
    ]
    assert len(set(numbers)) == 1000
    assert all(INVOICE_RE.match(n) for n in numbers)
    assert len({n[4:12] for n in numbers}) <= 2
    assert len(draws) >= 1000
