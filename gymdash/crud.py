# crud.py
"""
CRUD Module
-----------
Storage collaborator for the dashboard. Every read returns immutable
records built by mappers.py; every write runs inside one get_session()
transaction, so a failure part-way leaves the store untouched.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, func, or_, select, update

from . import models
from .config import DEFAULT_LATE_FEE
from .db import get_session
from .income_rates import initial_income_rates, validate_income_rates
from .logic_models import (
    Client,
    ClientPriceEntry,
    ClientPricing,
    IncomeRate,
    LateFee,
    Package,
    PricingRow,
    RebalancePlan,
    Session,
    Trainer,
    WeekSnapshot,
)
from .mappers import (
    client_from_row,
    income_rate_from_row,
    late_fee_from_row,
    package_from_row,
    price_entry_from_row,
    pricing_row_from_row,
    session_from_row,
    trainer_from_row,
)
from .packages import allocate_sessions, plan_rebalance, sales_bonus_for
from .pricing import PricingTable, default_pricing_rows, get_client_price_per_class, validate_pricing_rows
from .settings import DEFAULT_LOCATION, DEFAULT_MODE, MODE_1V2_PREMIUM, TRAINER_TIERS, TRAINING_MODES
from .week import today, week_range, week_start

log = logging.getLogger(__name__)

LOCATIONS = ("west", "east")


class NotFound(LookupError):
    """A referenced trainer/client/package does not exist."""


class Rejected(ValueError):
    """A write that breaks a business rule; nothing was stored."""


def _rows(s, stmt):
    return s.execute(stmt).mappings().all()


def _first(s, stmt):
    return s.execute(stmt).mappings().first()


# 🟢 Pricing

def _seed_pricing(s) -> None:
    for row in default_pricing_rows():
        s.add(models.Pricing(
            tier=row.tier,
            sessions_min=row.sessions_min,
            sessions_max=row.sessions_max,
            price=row.price,
            mode_1v2_premium=row.mode_1v2_premium,
        ))
    log.info("[pricing] seeded default tier prices")


def _pricing_stmt():
    return select(models.Pricing.__table__).order_by(models.Pricing.tier, models.Pricing.sessions_min)


def load_pricing_rows() -> List[PricingRow]:
    """Global pricing rows, seeding the defaults into an empty table first."""
    with get_session() as s:
        rows = _rows(s, _pricing_stmt())
        if not rows:
            _seed_pricing(s)
            return default_pricing_rows()
        return [pricing_row_from_row(r) for r in rows]


def update_pricing(rows: Iterable[PricingRow]) -> List[PricingRow]:
    """
    Upsert rows keyed by (tier, sessions_min). The resulting table must
    still carry every volume bracket for every tier, otherwise the whole
    update is rolled back and PricingConfigError propagates.
    """
    with get_session() as s:
        if not s.execute(select(func.count()).select_from(models.Pricing)).scalar():
            _seed_pricing(s)
        for row in rows:
            existing = s.execute(
                select(models.Pricing).where(
                    models.Pricing.tier == row.tier,
                    models.Pricing.sessions_min == row.sessions_min,
                )
            ).scalar_one_or_none()
            if existing is None:
                existing = models.Pricing(tier=row.tier, sessions_min=row.sessions_min)
                s.add(existing)
            existing.sessions_max = row.sessions_max
            existing.price = row.price
            existing.mode_1v2_premium = row.mode_1v2_premium
        s.flush()
        validate_pricing_rows(pricing_row_from_row(r) for r in _rows(s, _pricing_stmt()))
    return load_pricing_rows()


# 🔵 Trainers

def get_trainer(trainer_id: int) -> Optional[Trainer]:
    with get_session() as s:
        row = _first(s, select(models.Trainer.__table__).where(models.Trainer.id == trainer_id))
        return trainer_from_row(row) if row else None


def list_trainers(active_only: bool = False) -> List[Trainer]:
    stmt = select(models.Trainer.__table__).order_by(models.Trainer.id)
    if active_only:
        stmt = stmt.where(models.Trainer.is_active.is_(True))
    with get_session() as s:
        return [trainer_from_row(r) for r in _rows(s, stmt)]


def create_trainer(name: str, tier: int, email: str, location: Optional[str] = None,
                   income_rates: Optional[Sequence[IncomeRate]] = None) -> Tuple[Trainer, List[IncomeRate]]:
    """
    Add a trainer together with their first income tiers. Without tiers
    the trainer starts on the initial flat rate. Emails are unique,
    compared case-insensitively.
    """
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or tier not in TRAINER_TIERS:
        raise Rejected(f"name and tier ({'|'.join(str(t) for t in TRAINER_TIERS)}) required")
    if not email:
        raise Rejected("email is required")
    rates = list(income_rates) if income_rates else initial_income_rates()
    problem = validate_income_rates(rates)
    if problem:
        raise Rejected(problem)

    T = models.Trainer
    with get_session() as s:
        if _first(s, select(T.__table__.c.id).where(func.lower(T.email) == email)):
            raise Rejected("A trainer with this email already exists")
        row = T(name=name, tier=tier, email=email, is_active=True,
                location=location if location in LOCATIONS else DEFAULT_LOCATION)
        s.add(row)
        s.flush()
        for r in rates:
            s.add(models.IncomeRate(trainer_id=row.id, min_classes=r.min_classes,
                                    max_classes=r.max_classes, rate=r.rate))
        s.flush()
        trainer = Trainer(id=row.id, name=name, tier=tier, email=email, is_active=True, location=row.location)
        saved = [income_rate_from_row(r) for r in _rows(
            s,
            select(models.IncomeRate.__table__)
            .where(models.IncomeRate.trainer_id == row.id)
            .order_by(models.IncomeRate.min_classes),
        )]

    log.info(f"[trainers] created {trainer.id} ({name}, tier {tier}) with {len(saved)} income tiers")
    return trainer, saved


def set_trainer_active(trainer_id: int, is_active: bool) -> Trainer:
    with get_session() as s:
        row = s.get(models.Trainer, trainer_id)
        if row is None:
            raise NotFound(f"Trainer not found for id={trainer_id}")
        row.is_active = is_active
        s.flush()
        trainer = trainer_from_row(_first(s, select(models.Trainer.__table__).where(models.Trainer.id == trainer_id)))
    log.info(f"[trainers] {trainer_id} {'unarchived' if is_active else 'archived'}")
    return trainer


def get_income_rates(trainer_id: int) -> List[IncomeRate]:
    with get_session() as s:
        rows = _rows(
            s,
            select(models.IncomeRate.__table__)
            .where(models.IncomeRate.trainer_id == trainer_id)
            .order_by(models.IncomeRate.effective_week, models.IncomeRate.min_classes),
        )
        return [income_rate_from_row(r) for r in rows]


def save_income_rates(trainer_id: int, rates: Sequence[IncomeRate],
                      effective_week: Optional[date] = None) -> Optional[str]:
    """
    Validate and store a trainer's tiers, replacing any version with the
    same effective week. Returns the validation problem instead of saving
    when the tiers do not cover 1..∞.
    """
    problem = validate_income_rates(rates)
    if problem:
        log.info(f"[income-rates] trainer={trainer_id} rejected: {problem}")
        return problem
    if effective_week is not None:
        effective_week = week_start(effective_week)

    with get_session() as s:
        if s.get(models.Trainer, trainer_id) is None:
            raise NotFound(f"Trainer not found for id={trainer_id}")
        s.execute(
            delete(models.IncomeRate).where(
                models.IncomeRate.trainer_id == trainer_id,
                models.IncomeRate.effective_week.is_(None) if effective_week is None
                else models.IncomeRate.effective_week == effective_week,
            )
        )
        for tier in rates:
            s.add(models.IncomeRate(
                trainer_id=trainer_id,
                min_classes=tier.min_classes,
                max_classes=tier.max_classes,
                rate=tier.rate,
                effective_week=effective_week,
            ))
    log.info(f"[income-rates] trainer={trainer_id} saved {len(rates)} tiers (week={effective_week})")
    return None


# 🟤 Clients

def _client(s, client_id: int) -> Client:
    row = _first(s, select(models.Client.__table__).where(models.Client.id == client_id))
    if row is None:
        raise NotFound(f"Client not found for id={client_id}")
    return client_from_row(row)


def _require_trainers(s, *trainer_ids: Optional[int]) -> None:
    for trainer_id in trainer_ids:
        if trainer_id is not None and s.get(models.Trainer, trainer_id) is None:
            raise NotFound(f"Trainer not found for id={trainer_id}")


def _training_mode(mode: Optional[str]) -> str:
    return mode if mode in TRAINING_MODES else DEFAULT_MODE


def get_client(client_id: int) -> Optional[Client]:
    with get_session() as s:
        row = _first(s, select(models.Client.__table__).where(models.Client.id == client_id))
        return client_from_row(row) if row else None


def list_clients(trainer_id: Optional[int] = None, active_only: bool = False) -> List[Client]:
    """All clients by name; with `trainer_id`, those it trains as primary or secondary."""
    C = models.Client
    stmt = select(C.__table__).order_by(C.name, C.id)
    if trainer_id is not None:
        stmt = stmt.where(or_(C.trainer_id == trainer_id, C.secondary_trainer_id == trainer_id))
    if active_only:
        stmt = stmt.where(C.is_active.is_(True))
    with get_session() as s:
        return [client_from_row(r) for r in _rows(s, stmt)]


def create_client(name: str, trainer_id: int, secondary_trainer_id: Optional[int] = None,
                  mode: Optional[str] = None, pricing: Optional[ClientPricing] = None,
                  is_personal_client: bool = False, location: Optional[str] = None) -> Client:
    name = (name or "").strip()
    if not name:
        raise Rejected("Client name is required")

    with get_session() as s:
        _require_trainers(s, trainer_id, secondary_trainer_id)
        row = models.Client(
            name=name,
            trainer_id=trainer_id,
            secondary_trainer_id=secondary_trainer_id,
            mode=_training_mode(mode),
            is_active=True,
            is_personal_client=is_personal_client,
            location=location if location in LOCATIONS else DEFAULT_LOCATION,
        )
        if pricing is not None:
            row.price_1_12 = pricing.price_1_12
            row.price_13_20 = pricing.price_13_20
            row.price_21_plus = pricing.price_21_plus
            row.mode_premium = pricing.mode_premium
        s.add(row)
        s.flush()
        client = _client(s, row.id)

    log.info(f"[clients] created {client.id} ({name}) for trainer={trainer_id}")
    return client


def update_client(client_id: int, name: str, mode: Optional[str] = None,
                  trainer_id: Optional[int] = None, secondary_trainer_id: Optional[int] = None) -> Client:
    """
    Rename a client and, when given, set their training mode. Passing `trainer_id`
    transfers the client and replaces the secondary trainer too (None
    clears it); without it both assignments stay as they are.
    """
    name = (name or "").strip()
    if not name:
        raise Rejected("Client name is required")

    with get_session() as s:
        row = s.get(models.Client, client_id)
        if row is None:
            raise NotFound(f"Client not found for id={client_id}")
        row.name = name
        if mode is not None:
            row.mode = _training_mode(mode)
        if trainer_id is not None:
            _require_trainers(s, trainer_id, secondary_trainer_id)
            row.trainer_id = trainer_id
            row.secondary_trainer_id = secondary_trainer_id
        s.flush()
        client = _client(s, client_id)

    log.info(f"[clients] updated {client_id} trainer={client.trainer_id} secondary={client.secondary_trainer_id}")
    return client


def set_client_active(client_id: int, is_active: bool, effective_week: Optional[date] = None) -> Client:
    """
    Archive or restore a client. An archived client drops out of every
    week starting on or after `effective_week` (a Monday, this week when
    omitted); restoring clears the archive date.
    """
    archived_at = None
    if not is_active:
        archived_at = effective_week or week_start(today())
        if archived_at.weekday() != 0:
            raise Rejected("Effective week must be a Monday")

    with get_session() as s:
        row = s.get(models.Client, client_id)
        if row is None:
            raise NotFound(f"Client not found for id={client_id}")
        row.is_active = is_active
        row.archived_at = archived_at
        s.flush()
        client = _client(s, client_id)

    log.info(f"[clients] {client_id} {'unarchived' if is_active else f'archived from {archived_at}'}")
    return client


# ⚪ Client price history

def _history_stmt(client_ids: Sequence[int]):
    H = models.ClientPriceHistory
    return (
        select(H.__table__)
        .where(H.client_id.in_(client_ids))
        .order_by(H.client_id, H.effective_date, H.id)
    )


def get_client_price_history(client_id: int) -> List[ClientPriceEntry]:
    """A client's dated price changes, newest first."""
    with get_session() as s:
        _client(s, client_id)
        entries = [price_entry_from_row(r) for r in _rows(s, _history_stmt([client_id]))]
    return list(reversed(entries))


def add_client_price(client_id: int, effective_date: date, pricing: ClientPricing,
                     reason: Optional[str] = None) -> ClientPriceEntry:
    """
    Record new prices for a client from `effective_date` on. Sessions and
    packages dated earlier keep the prices in force at their own date; the
    client's stored prices stay the baseline for dates before any entry.
    """
    with get_session() as s:
        _client(s, client_id)
        row = models.ClientPriceHistory(
            client_id=client_id,
            effective_date=effective_date,
            price_1_12=pricing.price_1_12,
            price_13_20=pricing.price_13_20,
            price_21_plus=pricing.price_21_plus,
            mode_premium=MODE_1V2_PREMIUM if pricing.mode_premium is None else pricing.mode_premium,
            reason=reason or None,
        )
        s.add(row)
        s.flush()
        entry = ClientPriceEntry(
            id=row.id,
            client_id=client_id,
            effective_date=effective_date,
            pricing=ClientPricing(
                price_1_12=Decimal(row.price_1_12),
                price_13_20=Decimal(row.price_13_20),
                price_21_plus=Decimal(row.price_21_plus),
                mode_premium=Decimal(row.mode_premium),
            ),
            reason=row.reason,
        )

    log.info(f"[clients] {client_id} new prices from {effective_date} ({reason or 'no reason'})")
    return entry


# 🟣 Week snapshot

def load_trainer_week(trainer_id: int, on_date: date) -> Optional[WeekSnapshot]:
    """One consistent read of everything a trainer's week view needs."""
    start, end = week_range(on_date)
    with get_session() as s:
        trainer_row = _first(s, select(models.Trainer.__table__).where(models.Trainer.id == trainer_id))
        if trainer_row is None:
            return None

        C, P, S, F, R = models.Client, models.Package, models.Session, models.LateFee, models.IncomeRate
        clients = [client_from_row(r) for r in _rows(
            s,
            select(C.__table__)
            .where(or_(C.trainer_id == trainer_id, C.secondary_trainer_id == trainer_id))
            .order_by(C.name),
        )]
        client_ids = [c.id for c in clients]

        packages = [package_from_row(r) for r in _rows(
            s, select(P.__table__).where(P.client_id.in_(client_ids)).order_by(P.start_date, P.id)
        )] if client_ids else []
        sessions = [session_from_row(r) for r in _rows(
            s, select(S.__table__).where(S.client_id.in_(client_ids)).order_by(S.date, S.id)
        )] if client_ids else []

        weekly_sessions = [session_from_row(r) for r in _rows(
            s,
            select(S.__table__)
            .where(S.trainer_id == trainer_id, S.date.between(start, end))
            .order_by(S.date, S.id),
        )]
        weekly_packages = [package_from_row(r) for r in _rows(
            s,
            select(P.__table__)
            .where(P.trainer_id == trainer_id, P.start_date.between(start, end))
            .order_by(P.start_date, P.id),
        )]
        weekly_late_fees = [late_fee_from_row(r) for r in _rows(
            s,
            select(F.__table__)
            .where(F.trainer_id == trainer_id, F.date.between(start, end))
            .order_by(F.date, F.id),
        )]
        income_rates = [income_rate_from_row(r) for r in _rows(
            s, select(R.__table__).where(R.trainer_id == trainer_id).order_by(R.effective_week, R.min_classes)
        )]
        price_history = [price_entry_from_row(r) for r in _rows(s, _history_stmt(client_ids))] if client_ids else []

    return WeekSnapshot(
        trainer=trainer_from_row(trainer_row),
        clients=clients,
        packages=packages,
        sessions=sessions,
        weekly_sessions=weekly_sessions,
        weekly_packages=weekly_packages,
        weekly_late_fees=weekly_late_fees,
        income_rates=income_rates,
        week_start=start,
        week_end=end,
        price_history=price_history,
    )


# 🟠 Sessions

def add_sessions(on_date: date, trainer_id: int, client_ids: Sequence[int]) -> List[Session]:
    """
    Log one class per client on `on_date`. Each session is bound to the
    oldest package with room; clients without one get a drop-in.
    """
    with get_session() as s:
        if s.get(models.Trainer, trainer_id) is None:
            raise NotFound(f"Trainer not found for id={trainer_id}")
        client_rows = _rows(s, select(models.Client.__table__).where(models.Client.id.in_(client_ids)))
        clients = {r["id"]: client_from_row(r) for r in client_rows}
        missing = [cid for cid in client_ids if cid not in clients]
        if missing:
            raise NotFound(f"Clients not found: {missing}")

        P, S = models.Package, models.Session
        packages = [package_from_row(r) for r in _rows(
            s, select(P.__table__).where(P.trainer_id == trainer_id, P.client_id.in_(client_ids))
        )]
        package_ids = [p.id for p in packages]
        bound = [session_from_row(r) for r in _rows(
            s, select(S.__table__).where(S.package_id.in_(package_ids))
        )] if package_ids else []

        planned = allocate_sessions(
            [(cid, trainer_id, on_date) for cid in client_ids],
            packages,
            bound,
        )

        created: List[Session] = []
        for plan in planned:
            row = models.Session(
                date=plan.date,
                trainer_id=plan.trainer_id,
                client_id=plan.client_id,
                package_id=plan.package_id,
                mode=clients[plan.client_id].mode,
            )
            s.add(row)
            s.flush()
            created.append(Session(
                id=row.id,
                date=row.date,
                trainer_id=row.trainer_id,
                client_id=row.client_id,
                package_id=row.package_id,
                mode=row.mode,
            ))

    log.info(f"[sessions] trainer={trainer_id} logged {len(created)} sessions on {on_date}")
    return created


def delete_session(session_id: int) -> bool:
    with get_session() as s:
        result = s.execute(delete(models.Session).where(models.Session.id == session_id))
        return result.rowcount > 0


# 🟡 Packages

def add_package(client_id: int, trainer_id: int, sessions_purchased: int, start_date: date,
                pricing: PricingTable) -> Package:
    """
    Record a purchase; the package inherits the client's mode and location.
    The sales bonus uses the client's prices in force on `start_date`, or
    the trainer's tier price from `pricing` for clients without their own.
    """
    with get_session() as s:
        trainer_row = _first(s, select(models.Trainer.__table__).where(models.Trainer.id == trainer_id))
        client_row = _first(s, select(models.Client.__table__).where(models.Client.id == client_id))
        if trainer_row is None:
            raise NotFound(f"Trainer not found for id={trainer_id}")
        if client_row is None:
            raise NotFound(f"Client not found for id={client_id}")

        trainer = trainer_from_row(trainer_row)
        client = client_from_row(client_row)
        mode = client.mode or DEFAULT_MODE
        history = [price_entry_from_row(r) for r in _rows(s, _history_stmt([client_id]))]
        per_class = get_client_price_per_class(client, sessions_purchased, mode, trainer.tier, pricing,
                                               on_date=start_date, history=history)
        bonus = sales_bonus_for(per_class, sessions_purchased)

        row = models.Package(
            client_id=client_id,
            trainer_id=trainer_id,
            sessions_purchased=sessions_purchased,
            start_date=start_date,
            sales_bonus=bonus,
            mode=mode,
            location=client.location or DEFAULT_LOCATION,
        )
        s.add(row)
        s.flush()
        pkg = Package(
            id=row.id,
            client_id=client_id,
            trainer_id=trainer_id,
            sessions_purchased=sessions_purchased,
            start_date=start_date,
            sales_bonus=bonus,
            mode=mode,
            location=row.location,
        )

    log.info(f"[packages] client={client_id} trainer={trainer_id} bought {sessions_purchased} (bonus={bonus})")
    return pkg


def _delete_package_row(s, package_id: int) -> None:
    s.execute(delete(models.Package).where(models.Package.id == package_id))


def delete_package(package_id: int) -> Optional[RebalancePlan]:
    """
    Move the package's sessions to the newest sibling package (or make them
    drop-ins) and delete it, all in one transaction. None if not found.
    """
    P, S = models.Package, models.Session
    with get_session() as s:
        row = _first(s, select(P.__table__).where(P.id == package_id))
        if row is None:
            return None
        pkg = package_from_row(row)

        siblings = [package_from_row(r) for r in _rows(
            s, select(P.__table__).where(and_(P.client_id == pkg.client_id, P.trainer_id == pkg.trainer_id))
        )]
        bound = [session_from_row(r) for r in _rows(s, select(S.__table__).where(S.package_id == package_id))]

        plan = plan_rebalance(pkg, siblings, bound)
        if plan.session_ids:
            s.execute(
                update(S)
                .where(S.id.in_(plan.session_ids))
                .values(package_id=plan.target_package_id)
            )
        _delete_package_row(s, package_id)

    log.info(
        f"[packages] deleted {package_id}; moved {len(plan.session_ids)} sessions "
        f"→ {plan.target_package_id if plan.target_package_id is not None else 'drop-in'}"
    )
    return plan


# 🔴 Late fees

def add_late_fee(client_id: int, trainer_id: int, on_date: date, amount: Optional[Decimal] = None) -> LateFee:
    with get_session() as s:
        if s.get(models.Client, client_id) is None:
            raise NotFound(f"Client not found for id={client_id}")
        row = models.LateFee(
            client_id=client_id,
            trainer_id=trainer_id,
            date=on_date,
            amount=DEFAULT_LATE_FEE if amount is None else amount,
        )
        s.add(row)
        s.flush()
        return LateFee(id=row.id, client_id=client_id, trainer_id=trainer_id, date=on_date,
                       amount=Decimal(row.amount))


def delete_late_fee(late_fee_id: int) -> bool:
    with get_session() as s:
        result = s.execute(delete(models.LateFee).where(models.LateFee.id == late_fee_id))
        return result.rowcount > 0
