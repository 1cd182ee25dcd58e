# gymdash/dashboard.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from . import crud
from .client_rows import compute_client_rows
from .income_rates import active_tier_for, rates_effective_for_week
from .logic_models import BreakdownRow, ClientRow, IncomeRate, IncomeSummary, WeekSnapshot
from .pricing import PricingTable
from .weekly import compute_breakdown_rows, compute_income_summary

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrainerWeek:
    snapshot: WeekSnapshot
    income_rates: List[IncomeRate]
    active_tier: Optional[IncomeRate]
    breakdown: List[BreakdownRow]
    summary: IncomeSummary
    client_rows: List[ClientRow]


def compute_trainer_week(snapshot: WeekSnapshot, pricing: PricingTable) -> TrainerWeek:
    """Derive every dashboard figure for one week from a store snapshot."""
    rates = rates_effective_for_week(snapshot.income_rates, snapshot.week_start)
    args = (
        snapshot.clients,
        snapshot.packages,
        snapshot.weekly_sessions,
        snapshot.weekly_packages,
        snapshot.weekly_late_fees,
        snapshot.trainer.id,
        snapshot.trainer.tier,
        rates,
    )
    kwargs = dict(pricing=pricing, week_start=snapshot.week_start, price_history=snapshot.price_history)
    summary = compute_income_summary(*args, **kwargs)
    if not rates:
        log.warning(f"[dashboard] trainer={snapshot.trainer.id} has no income rates; rate is 0")

    return TrainerWeek(
        snapshot=snapshot,
        income_rates=rates,
        active_tier=active_tier_for(rates, summary.total_classes),
        breakdown=compute_breakdown_rows(*args, **kwargs),
        summary=summary,
        client_rows=compute_client_rows(
            snapshot.clients, snapshot.packages, snapshot.sessions, snapshot.weekly_sessions, snapshot.week_start
        ),
    )


def build_trainer_week(trainer_id: int, on_date: date, pricing: PricingTable) -> Optional[TrainerWeek]:
    snapshot = crud.load_trainer_week(trainer_id, on_date)
    if snapshot is None:
        return None
    return compute_trainer_week(snapshot, pricing)
