import unittest
from decimal import Decimal
from types import SimpleNamespace

from caixa.services.pricing import (
    UNKNOWN_PRODUCT_NAME,
    aggregate_totals,
    apply_rate_bps,
    percent_of,
    price_line,
    round_half_up,
)


def _product(**kw):
    values = {"name": "Widget", "barcode": "123", "cost_price_cents": 3000}
    values.update(kw)
    return SimpleNamespace(**values)


class RoundingTests(unittest.TestCase):
    def test_half_up_rounds_ties_away_from_zero(self):
        self.assertEqual(round_half_up(Decimal("2.5")), 3)
        self.assertEqual(round_half_up(Decimal("3.5")), 4)
        self.assertEqual(round_half_up(Decimal("2.49")), 2)

    def test_percent_of(self):
        self.assertEqual(percent_of(10000, 10), 1000)
        self.assertEqual(percent_of(999, 12.5), 125)  # 124.875
        self.assertEqual(percent_of(0, 50), 0)
        self.assertEqual(percent_of(1000, 0), 0)

    def test_apply_rate_bps(self):
        self.assertEqual(apply_rate_bps(10000, 1700), 1700)
        self.assertEqual(apply_rate_bps(15, 1700), 3)  # 2.55
        self.assertEqual(apply_rate_bps(1000, 0), 0)


class PriceLineTests(unittest.TestCase):
    def test_basic_line_uses_default_tax_rate(self):
        line = price_line(
            {"product_id": 1, "quantity": 2, "unit_price_cents": 5000},
            _product(),
            default_tax_rate_bps=1700,
        )
        self.assertEqual(line.subtotal_cents, 10000)
        self.assertEqual(line.discount_cents, 0)
        self.assertEqual(line.tax_rate_bps, 1700)
        self.assertEqual(line.tax_cents, 1700)
        self.assertEqual(line.total_cents, 11700)
        self.assertEqual(line.product_name, "Widget")
        self.assertEqual(line.barcode, "123")
        self.assertEqual(line.cost_price_cents, 3000)
        self.assertTrue(line.product_found)

    def test_explicit_discount_cents_wins_over_percent(self):
        line = price_line(
            {"quantity": 1, "unit_price_cents": 10000, "discount_cents": 500, "discount_percent": 50, "tax_rate_bps": 0},
            None,
            default_tax_rate_bps=1700,
        )
        self.assertEqual(line.discount_cents, 500)
        self.assertEqual(line.total_cents, 9500)

    def test_percent_discount_applies_before_tax(self):
        line = price_line(
            {"quantity": 4, "unit_price_cents": 2500, "discount_percent": 10},
            None,
            default_tax_rate_bps=1700,
        )
        self.assertEqual(line.subtotal_cents, 10000)
        self.assertEqual(line.discount_cents, 1000)
        self.assertEqual(line.tax_cents, 1530)
        self.assertEqual(line.total_cents, 10530)
        self.assertEqual(line.net_cents, 9000)

    def test_explicit_zero_tax_rate_is_respected(self):
        line = price_line({"quantity": 1, "unit_price_cents": 100, "tax_rate_bps": 0}, None, default_tax_rate_bps=1700)
        self.assertEqual(line.tax_cents, 0)
        self.assertEqual(line.tax_rate_bps, 0)

    def test_missing_product_is_unknown(self):
        line = price_line({"product_id": 99, "quantity": 1, "unit_price_cents": 100}, None, default_tax_rate_bps=0)
        self.assertEqual(line.product_name, UNKNOWN_PRODUCT_NAME)
        self.assertIsNone(line.barcode)
        self.assertIsNone(line.cost_price_cents)
        self.assertFalse(line.product_found)
        self.assertEqual(line.product_id, 99)


class AggregateTotalsTests(unittest.TestCase):
    def _lines(self):
        return [
            price_line({"quantity": 2, "unit_price_cents": 5000}, None, default_tax_rate_bps=1700),
            price_line({"quantity": 1, "unit_price_cents": 1000, "discount_percent": 10}, None, default_tax_rate_bps=1700),
        ]

    def test_totals_identity_holds(self):
        lines = self._lines()
        totals = aggregate_totals(lines, payment_method="card", discount_cents=250)

        self.assertEqual(totals.subtotal_cents, 10000 + 900)
        self.assertEqual(totals.tax_cents, 1700 + 153)
        self.assertEqual(totals.discount_cents, 250)
        self.assertEqual(totals.total_cents, totals.subtotal_cents - totals.discount_cents + totals.tax_cents)
        self.assertEqual(totals.total_cents, sum(l.total_cents for l in lines) - 250)

    def test_cash_change(self):
        lines = [price_line({"quantity": 2, "unit_price_cents": 5000}, None, default_tax_rate_bps=1700)]
        totals = aggregate_totals(lines, payment_method="cash", cash_received_cents=15000)
        self.assertEqual(totals.total_cents, 11700)
        self.assertEqual(totals.cash_received_cents, 15000)
        self.assertEqual(totals.change_given_cents, 3300)

    def test_cash_underpayment_gives_zero_change(self):
        lines = [price_line({"quantity": 1, "unit_price_cents": 5000}, None, default_tax_rate_bps=0)]
        totals = aggregate_totals(lines, payment_method="cash", cash_received_cents=1000)
        self.assertEqual(totals.cash_received_cents, 1000)
        self.assertEqual(totals.change_given_cents, 0)

    def test_cash_fields_absent_for_non_cash_or_no_tender(self):
        lines = [price_line({"quantity": 1, "unit_price_cents": 5000}, None, default_tax_rate_bps=0)]

        card = aggregate_totals(lines, payment_method="card", cash_received_cents=9000)
        self.assertIsNone(card.cash_received_cents)
        self.assertIsNone(card.change_given_cents)

        no_tender = aggregate_totals(lines, payment_method="cash")
        self.assertIsNone(no_tender.cash_received_cents)
        self.assertIsNone(no_tender.change_given_cents)

    def test_empty_cart_totals_are_zero(self):
        totals = aggregate_totals([], payment_method="mpesa")
        self.assertEqual(totals.subtotal_cents, 0)
        self.assertEqual(totals.total_cents, 0)


if __name__ == "__main__":
    unittest.main()
