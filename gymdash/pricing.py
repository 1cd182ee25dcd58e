"""
pricing.py
───────────────────────────────────────────────
Price-per-class lookups.

Two sources, checked in this order:
 • the client's own locked-in prices (price_1_12 / price_13_20 /
   price_21_plus + mode premium), when the client carries them
 • the global tier table (trainer tier × volume bracket), held by a
   PricingTable that can be reloaded from the store at any time

Brackets are selected by the number of sessions purchased in the
package, never by a client's lifetime count.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .logic_models import Client, ClientPriceEntry, ClientPricing, PricingRow
from .settings import DEFAULT_MODE, DEFAULT_PRICING, MODE_1V2_PREMIUM, TRAINER_TIERS, VOLUME_BRACKETS

log = logging.getLogger(__name__)

PricingLoader = Callable[[], Iterable[PricingRow]]


class PricingConfigError(Exception):
    """Raised when a pricing snapshot is missing a bracket for some tier."""


def default_pricing_rows() -> List[PricingRow]:
    return [
        PricingRow(tier=t, sessions_min=lo, sessions_max=hi, price=price, mode_1v2_premium=MODE_1V2_PREMIUM)
        for t, lo, hi, price in DEFAULT_PRICING
    ]


def _build_snapshot(rows: Iterable[PricingRow]) -> Dict[int, Tuple[PricingRow, ...]]:
    by_tier: Dict[int, List[PricingRow]] = {}
    for row in rows:
        by_tier.setdefault(int(row.tier), []).append(row)

    snapshot: Dict[int, Tuple[PricingRow, ...]] = {}
    for tier in TRAINER_TIERS:
        tier_rows = sorted(by_tier.get(tier, []), key=lambda r: r.sessions_min)
        bounds = {(r.sessions_min, r.sessions_max) for r in tier_rows}
        missing = [b for b in VOLUME_BRACKETS if b not in bounds]
        if missing:
            raise PricingConfigError(f"Tier {tier} is missing price brackets: {missing}")
        snapshot[tier] = tuple(tier_rows)
    return snapshot


def validate_pricing_rows(rows: Iterable[PricingRow]) -> None:
    """Raise PricingConfigError unless every tier carries every volume bracket."""
    _build_snapshot(rows)


def _row_for(rows: Tuple[PricingRow, ...], sessions_purchased: int) -> PricingRow:
    for row in rows:
        if sessions_purchased >= row.sessions_min and (
            row.sessions_max is None or sessions_purchased <= row.sessions_max
        ):
            return row
    # Below the first bracket (0 or negative counts) price as the smallest pack
    return rows[0]


class PricingTable:
    """
    Injectable tier price table.

    The current snapshot is an immutable mapping replaced in a single
    assignment, so readers never wait on a reload and never see a
    half-built table.
    """

    def __init__(self, rows: Optional[Iterable[PricingRow]] = None):
        self._snapshot = _build_snapshot(rows if rows is not None else default_pricing_rows())
        self._reload_lock = threading.Lock()

    def price_for_tier(self, tier: int, sessions_purchased: int, mode: Optional[str] = None) -> Decimal:
        row = _row_for(self._snapshot[int(tier)], sessions_purchased)
        price = Decimal(row.price)
        if (mode or DEFAULT_MODE) == "1v2":
            price += Decimal(row.mode_1v2_premium)
        return price

    def rows(self) -> List[PricingRow]:
        return [row for tier in sorted(self._snapshot) for row in self._snapshot[tier]]

    def reload(self, loader: PricingLoader) -> bool:
        """
        Rebuild the snapshot from `loader()` and swap it in.
        On failure the last-known snapshot stays in service.
        """
        with self._reload_lock:
            try:
                snapshot = _build_snapshot(list(loader()))
            except Exception:
                log.exception("[pricing] reload failed, keeping last-known prices")
                return False
            self._snapshot = snapshot
        log.info(f"[pricing] reloaded {sum(len(r) for r in snapshot.values())} rows")
        return True

    def reload_in_background(self, loader: PricingLoader) -> threading.Thread:
        worker = threading.Thread(target=self.reload, args=(loader,), name="pricing-reload", daemon=True)
        worker.start()
        return worker


# Seeded defaults only. Services always hand in the app's reloadable table;
# this one backs pure calls made without a store, such as unit tests.
_DEFAULT_TABLE = PricingTable()


def get_price_per_class(tier: int, sessions_purchased: int, mode: Optional[str] = None,
                        table: Optional[PricingTable] = None) -> Decimal:
    """Tier-table price; `2v2` prices as `1v1`, `1v2` adds the premium."""
    return (table or _DEFAULT_TABLE).price_for_tier(tier, sessions_purchased, mode)


price_for_tier = get_price_per_class


def client_bracket_price(pricing: ClientPricing, sessions_purchased: int, mode: Optional[str] = None) -> Decimal:
    if sessions_purchased <= 12:
        price = pricing.price_1_12
    elif sessions_purchased <= 20:
        price = pricing.price_13_20
    else:
        price = pricing.price_21_plus
    if (mode or DEFAULT_MODE) == "1v2":
        price += pricing.mode_premium
    return Decimal(price)


def client_pricing_on(client: Optional[Client], on_date: Optional[date],
                      history: Sequence[ClientPriceEntry] = ()) -> Optional[ClientPricing]:
    """
    The client's prices as they stood on `on_date`: the latest history entry
    effective on or before that day. Dates before the first entry, and
    clients without history, fall back to the prices stored on the client.
    """
    if client is None:
        return None
    if on_date is None or not history:
        return client.pricing
    applicable = [
        e for e in history
        if e.client_id == client.id and e.effective_date <= on_date
    ]
    if not applicable:
        return client.pricing
    return max(applicable, key=lambda e: (e.effective_date, e.id or 0)).pricing


def get_client_price_per_class(client: Optional[Client], sessions_purchased: int, mode: Optional[str] = None,
                               trainer_tier: int = 1, table: Optional[PricingTable] = None,
                               on_date: Optional[date] = None,
                               history: Sequence[ClientPriceEntry] = ()) -> Decimal:
    """
    The client's own prices win outright; trainer tier is only consulted
    for clients without overrides.
    """
    pricing = client_pricing_on(client, on_date, history)
    if pricing is not None:
        return client_bracket_price(pricing, sessions_purchased, mode)
    return get_price_per_class(trainer_tier, sessions_purchased, mode, table)
