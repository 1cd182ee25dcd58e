"""
income_rates.py
───────────────────────────────────────────────
Commission-rate tiers: classes taught in a week → share of the class price.

Tiers are validated when a trainer's table is saved, not on every read.
Reads are total: an empty table yields a zero rate instead of raising.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from .logic_models import IncomeRate
from .settings import INITIAL_INCOME_RATES


def initial_income_rates() -> List[IncomeRate]:
    return [IncomeRate(**tier) for tier in INITIAL_INCOME_RATES]


def _sorted(rates: Iterable[IncomeRate]) -> List[IncomeRate]:
    return sorted(rates, key=lambda r: r.min_classes)


def _matches(tier: IncomeRate, class_count: int) -> bool:
    return class_count >= tier.min_classes and (
        tier.max_classes is None or class_count <= tier.max_classes
    )


def active_tier_for(rates: Optional[Sequence[IncomeRate]], class_count: int) -> Optional[IncomeRate]:
    """
    The tier that applies to `class_count`. When nothing matches (0 classes
    against a table starting at 1) the first tier is returned.
    """
    if not rates:
        return None
    ordered = _sorted(rates)
    for tier in ordered:
        if _matches(tier, class_count):
            return tier
    return ordered[0]


def rate_for_class_count(rates: Optional[Sequence[IncomeRate]], class_count: int) -> Decimal:
    tier = active_tier_for(rates, class_count)
    if tier is None:
        return Decimal("0")
    return Decimal(tier.rate)


def validate_income_rates(rates: Optional[Sequence[IncomeRate]]) -> Optional[str]:
    """Return a description of the first coverage problem, or None if valid."""
    if not rates:
        return "Please configure at least one pay rate tier"

    priced = [r for r in rates if r.rate is not None and Decimal(r.rate) > 0]
    if not priced:
        return "Please configure at least one pay rate tier with a rate"

    ordered = _sorted(priced)
    if ordered[0].min_classes != 1:
        return "First tier must start at 1 class"

    for i, (current, nxt) in enumerate(zip(ordered, ordered[1:]), start=1):
        if current.max_classes is None:
            return "Only the last tier can have unlimited classes"
        if nxt.min_classes != current.max_classes + 1:
            return (
                f"Gap in coverage: rate {i} ends at {current.max_classes} "
                f"but rate {i + 1} starts at {nxt.min_classes}"
            )

    if ordered[-1].max_classes is not None:
        return "Last tier must have unlimited classes (leave max empty)"
    return None


def format_income_rates(rates: Optional[Sequence[IncomeRate]]) -> str:
    """e.g. '1-12: 46% | 13+: 51%'"""
    if not rates:
        return "No rates configured"
    parts = []
    for tier in rates:
        span = f"{tier.min_classes}+" if tier.max_classes is None else f"{tier.min_classes}-{tier.max_classes}"
        pct = (Decimal(tier.rate) * 100).quantize(Decimal("1"))
        parts.append(f"{span}: {pct}%")
    return " | ".join(parts)


def rates_effective_for_week(rates: Optional[Sequence[IncomeRate]], week_start: date) -> List[IncomeRate]:
    """
    Tiers of exactly one version: the newest whose effective week is not
    after `week_start`.

    Unversioned tiers count as the oldest version, so they only apply until
    the first dated version takes effect. A week older than every version
    uses the oldest one available.
    """
    if not rates:
        return []
    unversioned = [r for r in rates if r.effective_week is None]
    versions = sorted({r.effective_week for r in rates if r.effective_week is not None})

    eligible = [v for v in versions if v <= week_start]
    if eligible:
        chosen = eligible[-1]
    elif unversioned:
        return _sorted(unversioned)
    else:
        chosen = versions[0]
    return _sorted(r for r in rates if r.effective_week == chosen)
