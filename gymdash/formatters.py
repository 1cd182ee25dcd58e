# formatters.py
# Keeps data retrieval (crud.py) separate from what the API sends back.

"""
Response Formatter
------------------
Takes domain records and computed results and converts them into
JSON-ready dicts (camelCase keys, ISO dates, money as numbers).
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from .dashboard import TrainerWeek
from .income_rates import format_income_rates
from .logic_models import (
    BreakdownRow,
    Client,
    ClientPriceEntry,
    ClientPricing,
    ClientRow,
    IncomeRate,
    IncomeSummary,
    LateFee,
    Package,
    PricingRow,
    RebalancePlan,
    Session,
    Trainer,
)


CENT = Decimal("0.01")


def _money(v: Optional[Decimal]) -> Optional[float]:
    return None if v is None else float(Decimal(v).quantize(CENT, rounding=ROUND_HALF_UP))


def _rate(v: Decimal) -> float:
    return float(v)


# 🟢 Records

def format_trainer(t: Trainer) -> Dict:
    return {"id": t.id, "name": t.name, "tier": t.tier, "email": t.email,
            "isActive": t.is_active, "location": t.location}


def format_client_pricing(p: Optional[ClientPricing]) -> Optional[Dict]:
    if p is None:
        return None
    return {
        "price1_12": _money(p.price_1_12),
        "price13_20": _money(p.price_13_20),
        "price21Plus": _money(p.price_21_plus),
        "modePremium": _money(p.mode_premium),
    }


def format_client(c: Client) -> Dict:
    return {
        "id": c.id,
        "name": c.name,
        "trainerId": c.trainer_id,
        "secondaryTrainerId": c.secondary_trainer_id,
        "mode": c.mode or "1v1",
        "pricing": format_client_pricing(c.pricing),
        "isActive": c.is_active,
        "isPersonalClient": c.is_personal_client,
        "location": c.location,
        "archivedAt": c.archived_at.isoformat() if c.archived_at else None,
    }


def format_price_entry(e: ClientPriceEntry) -> Dict:
    return {
        "id": e.id,
        "clientId": e.client_id,
        "effectiveDate": e.effective_date.isoformat(),
        **format_client_pricing(e.pricing),
        "reason": e.reason,
    }


def format_package(p: Package) -> Dict:
    return {
        "id": p.id,
        "clientId": p.client_id,
        "trainerId": p.trainer_id,
        "sessionsPurchased": p.sessions_purchased,
        "startDate": p.start_date.isoformat(),
        "salesBonus": _money(p.sales_bonus),
        "mode": p.mode or "1v1",
        "location": p.location,
    }


def format_session(s: Session) -> Dict:
    return {
        "id": s.id,
        "date": s.date.isoformat(),
        "trainerId": s.trainer_id,
        "clientId": s.client_id,
        "packageId": s.package_id,
        "mode": s.mode,
    }


def format_late_fee(f: LateFee) -> Dict:
    return {"id": f.id, "clientId": f.client_id, "trainerId": f.trainer_id,
            "date": f.date.isoformat(), "amount": _money(f.amount)}


def format_income_rate(r: IncomeRate) -> Dict:
    return {
        "id": r.id,
        "minClasses": r.min_classes,
        "maxClasses": r.max_classes,
        "rate": _rate(r.rate),
        "effectiveWeek": r.effective_week.isoformat() if r.effective_week else None,
    }


def format_pricing_row(r: PricingRow) -> Dict:
    return {"tier": r.tier, "sessions_min": r.sessions_min, "sessions_max": r.sessions_max,
            "price": _money(r.price), "mode_1v2_premium": _money(r.mode_1v2_premium)}


def format_rebalance(plan: RebalancePlan) -> Dict:
    return {"deletedPackageId": plan.deleted_package_id,
            "movedTo": plan.target_package_id,
            "sessionIds": list(plan.session_ids)}


# 🔵 Weekly results

def format_breakdown_row(r: BreakdownRow) -> Dict:
    return {"id": r.id, "date": r.date.isoformat(), "clientName": r.client_name,
            "type": r.type, "amount": _money(r.amount)}


def format_income_summary(summary: IncomeSummary) -> Dict:
    return {
        "totalClassesThisWeek": summary.total_classes,
        "rate": _rate(summary.rate),
        "classIncome": _money(summary.class_income),
        "bonusIncome": _money(summary.bonus_income),
        "lateFeeIncome": _money(summary.late_fee_income),
        "finalWeeklyIncome": _money(summary.final_weekly_income),
    }


def format_client_row(r: ClientRow) -> Dict:
    return {
        "clientId": r.client_id,
        "clientName": r.client_name,
        "packageDisplay": r.package_display,
        "usedDisplay": r.used_display,
        "remainingDisplay": r.remaining_display,
        "weekCount": r.week_count,
        "totalRemaining": r.total_remaining,
    }


def format_trainer_week(week: TrainerWeek) -> Dict:
    snap = week.snapshot
    return {
        "trainer": format_trainer(snap.trainer),
        "weekStart": snap.week_start.isoformat(),
        "weekEnd": snap.week_end.isoformat(),
        "incomeRates": [format_income_rate(r) for r in week.income_rates],
        "incomeRatesLabel": format_income_rates(week.income_rates),
        "activeTier": format_income_rate(week.active_tier) if week.active_tier else None,
        "breakdown": [format_breakdown_row(r) for r in week.breakdown],
        "summary": format_income_summary(week.summary),
        "clientRows": [format_client_row(r) for r in week.client_rows],
    }
