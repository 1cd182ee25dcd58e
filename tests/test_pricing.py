# tests/test_pricing.py
"""
Tests for price-per-class lookups and the reloadable PricingTable.
"""
from dataclasses import replace
from decimal import Decimal

import pytest

from gymdash.logic_models import ClientPricing
from gymdash.pricing import (
    PricingConfigError,
    PricingTable,
    default_pricing_rows,
    get_client_price_per_class,
    get_price_per_class,
    price_for_tier,
)

from conftest import make_client


class TestTierPrices:

    @pytest.mark.parametrize("tier, n, mode, expected", [
        (1, 10, "1v1", "150"),
        (1, 15, "1v1", "140"),
        (1, 25, "1v1", "130"),
        (1, 12, "1v1", "150"),
        (1, 13, "1v1", "140"),
        (1, 20, "1v1", "140"),
        (1, 21, "1v1", "130"),
        (1, 10, "1v2", "170"),
        (1, 10, "2v2", "150"),
        (2, 15, "1v1", "155"),
        (3, 25, "1v2", "180"),
    ])
    def test_price_by_tier_bracket_and_mode(self, tier, n, mode, expected):
        assert get_price_per_class(tier, n, mode) == Decimal(expected)

    def test_mode_defaults_to_1v1(self):
        assert price_for_tier(2, 1) == Decimal("165")

    def test_counts_below_first_bracket_use_smallest_pack(self):
        assert get_price_per_class(1, 0) == Decimal("150")


class TestClientOverrides:

    def test_client_prices_beat_trainer_tier(self):
        client = make_client(1, pricing=ClientPricing(
            price_1_12=Decimal("100"), price_13_20=Decimal("90"),
            price_21_plus=Decimal("80"), mode_premium=Decimal("15"),
        ))
        assert get_client_price_per_class(client, 5, "1v1", trainer_tier=3) == Decimal("100")
        assert get_client_price_per_class(client, 13, "1v1", trainer_tier=3) == Decimal("90")
        assert get_client_price_per_class(client, 30, "1v2", trainer_tier=3) == Decimal("95")

    def test_client_without_overrides_uses_tier(self):
        assert get_client_price_per_class(make_client(1), 15, "1v1", trainer_tier=2) == Decimal("155")

    def test_unknown_client_uses_tier(self):
        assert get_client_price_per_class(None, 1, None, trainer_tier=1) == Decimal("150")


class TestPricingTable:

    def test_missing_bracket_is_rejected(self):
        rows = [r for r in default_pricing_rows() if not (r.tier == 2 and r.sessions_min == 13)]
        with pytest.raises(PricingConfigError):
            PricingTable(rows)

    def test_reload_swaps_prices(self):
        table = PricingTable()
        cheaper = [replace(r, price=r.price - 10) for r in default_pricing_rows()]

        assert table.reload(lambda: cheaper) is True
        assert table.price_for_tier(1, 5) == Decimal("140")
        assert get_price_per_class(1, 5, table=table) == Decimal("140")

    def test_failed_reload_keeps_last_known_prices(self):
        table = PricingTable()
        broken = default_pricing_rows()[:2]

        assert table.reload(lambda: broken) is False
        assert table.price_for_tier(1, 5) == Decimal("150")

    def test_loader_exception_keeps_last_known_prices(self):
        table = PricingTable()

        def boom():
            raise RuntimeError("store down")

        assert table.reload(boom) is False
        assert table.price_for_tier(3, 25) == Decimal("160")

    def test_background_reload(self):
        table = PricingTable()
        dearer = [replace(r, price=r.price + 5) for r in default_pricing_rows()]

        worker = table.reload_in_background(lambda: dearer)
        worker.join(timeout=5)

        assert table.price_for_tier(1, 5) == Decimal("155")

    def test_rows_are_ordered_by_tier(self):
        assert [r.tier for r in PricingTable().rows()] == [1, 1, 1, 2, 2, 2, 3, 3, 3]
