# tests/test_formatters.py
"""
Tests for the JSON response shapes.
"""
from datetime import date
from decimal import Decimal

from gymdash.formatters import (
    format_breakdown_row,
    format_client,
    format_income_summary,
    format_late_fee,
    format_price_entry,
)
from gymdash.logic_models import BreakdownRow, ClientPriceEntry, ClientPricing, IncomeSummary, LateFee

from conftest import MONDAY, make_client


class TestMoney:

    def test_half_cents_round_up(self):
        fee = LateFee(id=1, client_id=1, trainer_id=1, date=MONDAY, amount=Decimal("0.125"))
        assert format_late_fee(fee)["amount"] == 0.13

    def test_commission_half_cent_rounds_up(self):
        # 150 × 0.4615 = 69.225
        row = BreakdownRow(id="session-1", date=MONDAY, client_name="Bea", type="session",
                           amount=Decimal("150") * Decimal("0.4615"))
        assert format_breakdown_row(row)["amount"] == 69.23

    def test_summary_totals(self):
        summary = IncomeSummary(
            total_classes=3,
            rate=Decimal("0.46"),
            class_income=Decimal("10.005"),
            bonus_income=Decimal("0"),
            late_fee_income=Decimal("2.345"),
            final_weekly_income=Decimal("12.35"),
        )
        body = format_income_summary(summary)
        assert (body["classIncome"], body["lateFeeIncome"]) == (10.01, 2.35)
        assert body["rate"] == 0.46


class TestClients:

    def test_client_without_own_prices(self):
        body = format_client(make_client(1, "Bea", archived_at=date(2025, 1, 6)))
        assert body["pricing"] is None
        assert body["archivedAt"] == "2025-01-06"
        assert body["mode"] == "1v1"

    def test_price_entry(self):
        entry = ClientPriceEntry(
            id=3, client_id=1, effective_date=MONDAY, reason="raise",
            pricing=ClientPricing(Decimal("120"), Decimal("110"), Decimal("100"), Decimal("20")),
        )
        assert format_price_entry(entry) == {
            "id": 3,
            "clientId": 1,
            "effectiveDate": "2025-01-06",
            "price1_12": 120.0,
            "price13_20": 110.0,
            "price21Plus": 100.0,
            "modePremium": 20.0,
            "reason": "raise",
        }
