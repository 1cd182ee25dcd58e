"""
weekly.py
───────────────────────────────────────────────
Weekly breakdown rows and income summary for one trainer.

Income for a week:
    final = Σ(price_i × rate_i) over sessions   (class income)
          + Σ sales_bonus over packages sold     (bonus income)
          + Σ late fee amounts                   (late-fee income)

rate_i is the week's commission rate, plus the personal-client bonus for
sessions a personal client takes with their primary trainer.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from .config import PERSONAL_CLIENT_BONUS
from .income_rates import rate_for_class_count
from .logic_models import (
    BreakdownRow,
    Client,
    ClientPriceEntry,
    IncomeRate,
    IncomeSummary,
    LateFee,
    Package,
    Session,
)
from .pricing import PricingTable, get_client_price_per_class
from .settings import DEFAULT_MODE

UNKNOWN_CLIENT = "Unknown client"


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────
def client_visibility(clients: Sequence[Client], week_start: Optional[date]) -> Callable[[int], bool]:
    """
    Clients archived on or before the week start drop out of that week.
    Unknown client ids stay visible so their rows still show up.
    """
    hidden = {
        c.id for c in clients
        if week_start is not None and c.archived_at is not None and c.archived_at <= week_start
    }
    return lambda client_id: client_id not in hidden


def session_price(
    session: Session,
    client: Optional[Client],
    packages_by_id: Dict[int, Package],
    trainer_tier: int,
    pricing: Optional[PricingTable] = None,
    history: Sequence[ClientPriceEntry] = (),
) -> Decimal:
    """
    A session bound to a package it does not predate is priced at that
    package's bracket. Anything else (no package, a deleted package, or a
    session logged before the package started) is a one-class drop-in.
    Client prices are the ones in force on the session date.
    """
    client_mode = client.mode if client else None
    pkg = packages_by_id.get(session.package_id) if session.package_id is not None else None

    if pkg is not None and session.date >= pkg.start_date:
        mode = session.mode or pkg.mode or client_mode or DEFAULT_MODE
        return get_client_price_per_class(client, pkg.sessions_purchased, mode, trainer_tier, pricing,
                                          on_date=session.date, history=history)

    mode = session.mode or client_mode or DEFAULT_MODE
    return get_client_price_per_class(client, 1, mode, trainer_tier, pricing,
                                      on_date=session.date, history=history)


def session_rate(session: Session, client: Optional[Client], base_rate: Decimal) -> Decimal:
    if client is not None and client.is_personal_client and session.trainer_id == client.trainer_id:
        return base_rate + PERSONAL_CLIENT_BONUS
    return base_rate


def package_sale_value(
    pkg: Package,
    client: Optional[Client],
    trainer_tier: int,
    pricing: Optional[PricingTable] = None,
    history: Sequence[ClientPriceEntry] = (),
) -> Decimal:
    mode = pkg.mode or (client.mode if client else None) or DEFAULT_MODE
    per_class = get_client_price_per_class(client, pkg.sessions_purchased, mode, trainer_tier, pricing,
                                           on_date=pkg.start_date, history=history)
    return per_class * pkg.sessions_purchased


class _WeekInputs:
    """Visible subset of one week's rows plus the lookups both outputs share."""

    def __init__(self, clients, packages, weekly_sessions, weekly_packages, weekly_late_fees,
                 trainer_id, income_rates, week_start, price_history=None):
        visible = client_visibility(clients, week_start)
        self.clients_by_id = {c.id: c for c in clients}
        self.packages_by_id = {p.id: p for p in packages}
        self.sessions = [s for s in weekly_sessions if visible(s.client_id)]
        self.packages = [p for p in weekly_packages if visible(p.client_id) and p.trainer_id == trainer_id]
        self.late_fees = [f for f in weekly_late_fees if visible(f.client_id)]
        self.rate = rate_for_class_count(income_rates, len(self.sessions))
        self.price_history = list(price_history or ())

    def client(self, client_id: int) -> Optional[Client]:
        return self.clients_by_id.get(client_id)

    def name(self, client_id: int) -> str:
        client = self.client(client_id)
        return client.name if client else UNKNOWN_CLIENT

    def session_income(self, s: Session, trainer_tier: int, pricing: Optional[PricingTable]) -> Decimal:
        client = self.client(s.client_id)
        price = session_price(s, client, self.packages_by_id, trainer_tier, pricing, self.price_history)
        return price * session_rate(s, client, self.rate)


# ──────────────────────────────────────────────
# Breakdown rows
# ──────────────────────────────────────────────
def compute_breakdown_rows(
    clients: Sequence[Client],
    packages: Sequence[Package],
    weekly_sessions: Sequence[Session],
    weekly_packages: Sequence[Package],
    weekly_late_fees: Sequence[LateFee],
    trainer_id: int,
    trainer_tier: int,
    income_rates: Optional[Sequence[IncomeRate]],
    pricing: Optional[PricingTable] = None,
    week_start: Optional[date] = None,
    price_history: Optional[Sequence[ClientPriceEntry]] = None,
) -> List[BreakdownRow]:
    """One row per package sale, sales bonus, session and late fee, by (date, client name)."""
    week = _WeekInputs(clients, packages, weekly_sessions, weekly_packages, weekly_late_fees,
                       trainer_id, income_rates, week_start, price_history)
    rows: List[BreakdownRow] = []

    for p in week.packages:
        client = week.client(p.client_id)
        rows.append(BreakdownRow(
            id=f"package-{p.id}",
            date=p.start_date,
            client_name=week.name(p.client_id),
            type="package",
            amount=package_sale_value(p, client, trainer_tier, pricing, week.price_history),
        ))

    for p in week.packages:
        if (p.sales_bonus or 0) > 0:
            rows.append(BreakdownRow(
                id=f"package-{p.id}-bonus",
                date=p.start_date,
                client_name=week.name(p.client_id),
                type="bonus",
                amount=Decimal(p.sales_bonus),
            ))

    for s in week.sessions:
        rows.append(BreakdownRow(
            id=f"session-{s.id}",
            date=s.date,
            client_name=week.name(s.client_id),
            type="session",
            amount=week.session_income(s, trainer_tier, pricing),
        ))

    for f in week.late_fees:
        rows.append(BreakdownRow(
            id=f"lateFee-{f.id}",
            date=f.date,
            client_name=week.name(f.client_id),
            type="lateFee",
            amount=Decimal(f.amount),
        ))

    rows.sort(key=lambda r: (r.date, r.client_name))
    return rows


# ──────────────────────────────────────────────
# Income summary
# ──────────────────────────────────────────────
def compute_income_summary(
    clients: Sequence[Client],
    packages: Sequence[Package],
    weekly_sessions: Sequence[Session],
    weekly_packages: Sequence[Package],
    weekly_late_fees: Sequence[LateFee],
    trainer_id: int,
    trainer_tier: int,
    income_rates: Optional[Sequence[IncomeRate]],
    pricing: Optional[PricingTable] = None,
    week_start: Optional[date] = None,
    price_history: Optional[Sequence[ClientPriceEntry]] = None,
) -> IncomeSummary:
    week = _WeekInputs(clients, packages, weekly_sessions, weekly_packages, weekly_late_fees,
                       trainer_id, income_rates, week_start, price_history)

    class_income = sum((week.session_income(s, trainer_tier, pricing) for s in week.sessions), Decimal("0"))
    bonus_income = sum((Decimal(p.sales_bonus or 0) for p in week.packages), Decimal("0"))
    late_fee_income = sum((Decimal(f.amount) for f in week.late_fees), Decimal("0"))

    return IncomeSummary(
        total_classes=len(week.sessions),
        rate=week.rate,
        class_income=class_income,
        bonus_income=bonus_income,
        late_fee_income=late_fee_income,
        final_weekly_income=class_income + bonus_income + late_fee_income,
    )
