from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Literal

TrainingMode = Literal["1v1", "1v2", "2v2"]
TrainerTier = Literal[1, 2, 3]
RowType = Literal["package", "bonus", "session", "lateFee"]


@dataclass(frozen=True)
class Trainer:
    id: int
    name: str
    tier: TrainerTier = 1
    email: Optional[str] = None
    is_active: bool = True
    location: Optional[str] = None


@dataclass(frozen=True)
class ClientPricing:
    """A client's locked-in prices; takes precedence over the tier table."""
    price_1_12: Decimal
    price_13_20: Decimal
    price_21_plus: Decimal
    mode_premium: Decimal


@dataclass(frozen=True)
class ClientPriceEntry:
    """One dated change of a client's locked-in prices."""
    client_id: int
    effective_date: date
    pricing: ClientPricing
    id: Optional[int] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class Client:
    id: int
    name: str
    trainer_id: int
    secondary_trainer_id: Optional[int] = None
    mode: TrainingMode = "1v1"
    pricing: Optional[ClientPricing] = None
    is_active: bool = True
    is_personal_client: bool = False
    location: Optional[str] = None
    created_at: Optional[date] = None
    archived_at: Optional[date] = None


@dataclass(frozen=True)
class Package:
    id: int
    client_id: int
    trainer_id: int
    sessions_purchased: int
    start_date: date
    sales_bonus: Optional[Decimal] = None
    mode: Optional[TrainingMode] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class Session:
    id: Optional[int]
    date: date
    trainer_id: int
    client_id: int
    package_id: Optional[int] = None
    mode: Optional[TrainingMode] = None
    location_override: Optional[str] = None


@dataclass(frozen=True)
class LateFee:
    id: int
    client_id: int
    trainer_id: int
    date: date
    amount: Decimal


@dataclass(frozen=True)
class IncomeRate:
    min_classes: int
    max_classes: Optional[int]
    rate: Decimal
    id: Optional[int] = None
    trainer_id: Optional[int] = None
    effective_week: Optional[date] = None


@dataclass(frozen=True)
class PricingRow:
    tier: int
    sessions_min: int
    sessions_max: Optional[int]
    price: Decimal
    mode_1v2_premium: Decimal = Decimal("20")


# --- Weekly results ---

@dataclass(frozen=True)
class BreakdownRow:
    id: str
    date: date
    client_name: str
    type: RowType
    amount: Decimal


@dataclass(frozen=True)
class IncomeSummary:
    total_classes: int
    rate: Decimal
    class_income: Decimal
    bonus_income: Decimal
    late_fee_income: Decimal
    final_weekly_income: Decimal


@dataclass(frozen=True)
class ClientRow:
    client_id: int
    client_name: str
    package_display: str
    used_display: str
    remaining_display: str
    week_count: int
    total_remaining: int


@dataclass(frozen=True)
class RebalancePlan:
    deleted_package_id: int
    target_package_id: Optional[int]
    session_ids: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class WeekSnapshot:
    """Everything one trainer-week view needs, as fetched from the store."""
    trainer: Trainer
    clients: List[Client]
    packages: List[Package]
    sessions: List[Session]
    weekly_sessions: List[Session]
    weekly_packages: List[Package]
    weekly_late_fees: List[LateFee]
    income_rates: List[IncomeRate]
    week_start: date
    week_end: date
    price_history: List[ClientPriceEntry] = field(default_factory=list)
