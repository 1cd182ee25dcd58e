"""
packages.py
───────────────────────────────────────────────
Which package pays for a session.

 • pick_package_for_session → oldest eligible package with room (FIFO)
 • allocate_sessions        → same, for a batch logged in one request
 • plan_rebalance           → where a deleted package's sessions go
 • sales_bonus_for          → one-off bonus credited on purchase

Everything here is pure: callers persist the decisions.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from .logic_models import Package, RebalancePlan, Session
from .settings import SALES_BONUS_BRACKETS

log = logging.getLogger(__name__)


def _package_order(pkg: Package):
    return (pkg.start_date, pkg.id)


def sessions_used(package_id: int, sessions: Iterable[Session]) -> int:
    return sum(1 for s in sessions if s.package_id == package_id)


def pick_package_for_session(
    client_id: int,
    trainer_id: int,
    on_date: date,
    packages: Sequence[Package],
    sessions: Sequence[Session],
) -> Optional[Package]:
    """
    Oldest package of this client+trainer that had started by `on_date`
    and still has capacity. A package starting on `on_date` is eligible.
    Returns None when every candidate is full.
    """
    candidates = sorted(
        (
            p for p in packages
            if p.client_id == client_id
            and p.trainer_id == trainer_id
            and p.start_date <= on_date
        ),
        key=_package_order,
    )
    for pkg in candidates:
        if sessions_used(pkg.id, sessions) < pkg.sessions_purchased:
            return pkg
    return None


def allocate_sessions(
    requests: Iterable[Tuple[int, int, date]],
    packages: Sequence[Package],
    sessions: Sequence[Session],
) -> List[Session]:
    """
    Allocate a batch of (client_id, trainer_id, date) requests.

    Each allocated session is folded into the view seen by the next
    request, so a batch can never spend the same slot twice. Returns
    unsaved Session records (id None); package_id None marks a drop-in.
    """
    view: List[Session] = list(sessions)
    out: List[Session] = []
    for client_id, trainer_id, on_date in requests:
        pkg = pick_package_for_session(client_id, trainer_id, on_date, packages, view)
        new = Session(
            id=None,
            date=on_date,
            trainer_id=trainer_id,
            client_id=client_id,
            package_id=pkg.id if pkg else None,
        )
        if pkg is None:
            log.info(f"[packages] no capacity for client={client_id} trainer={trainer_id} on {on_date} → drop-in")
        view.append(new)
        out.append(new)
    return out


def plan_rebalance(
    package: Package,
    packages: Sequence[Package],
    sessions: Sequence[Session],
) -> RebalancePlan:
    """
    Sessions bound to `package` move to the newest other package of the
    same client+trainer, whatever its remaining capacity; with no such
    package they become drop-ins.
    """
    siblings = sorted(
        (
            p for p in packages
            if p.id != package.id
            and p.client_id == package.client_id
            and p.trainer_id == package.trainer_id
        ),
        key=_package_order,
    )
    target = siblings[-1].id if siblings else None
    orphaned = [s.id for s in sessions if s.package_id == package.id and s.id is not None]
    return RebalancePlan(deleted_package_id=package.id, target_package_id=target, session_ids=orphaned)


def sales_bonus_for(price_per_class: Decimal, sessions_purchased: int) -> Decimal:
    """3% of package value for 13–20 sessions, 5% for 21+, otherwise nothing."""
    for min_sessions, share in SALES_BONUS_BRACKETS:
        if sessions_purchased >= min_sessions:
            return Decimal(price_per_class) * sessions_purchased * share
    return Decimal("0")
