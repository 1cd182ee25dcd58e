from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base


class Trainer(Base):
    __tablename__ = "trainers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    tier = Column(Integer, nullable=False, default=1)  # 1 | 2 | 3
    email = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    location = Column(String, nullable=True)

    clients = relationship("Client", back_populates="trainer", foreign_keys="Client.trainer_id")
    income_rates = relationship("IncomeRate", back_populates="trainer", cascade="all, delete-orphan")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=False, index=True)
    secondary_trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=True)
    mode = Column(String, nullable=False, default="1v1")  # 1v1 | 1v2 | 2v2

    # Locked-in prices; all four set or all four null
    price_1_12 = Column(Numeric(10, 2), nullable=True)
    price_13_20 = Column(Numeric(10, 2), nullable=True)
    price_21_plus = Column(Numeric(10, 2), nullable=True)
    mode_premium = Column(Numeric(10, 2), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_personal_client = Column(Boolean, nullable=False, default=False)
    location = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    archived_at = Column(Date, nullable=True)

    trainer = relationship("Trainer", back_populates="clients", foreign_keys=[trainer_id])
    packages = relationship("Package", back_populates="client")
    price_history = relationship("ClientPriceHistory", back_populates="client", cascade="all, delete-orphan")


class ClientPriceHistory(Base):
    __tablename__ = "client_price_history"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    effective_date = Column(Date, nullable=False)
    price_1_12 = Column(Numeric(10, 2), nullable=False)
    price_13_20 = Column(Numeric(10, 2), nullable=False)
    price_21_plus = Column(Numeric(10, 2), nullable=False)
    mode_premium = Column(Numeric(10, 2), nullable=False, default=20)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("Client", back_populates="price_history")


class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=False, index=True)
    sessions_purchased = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    sales_bonus = Column(Numeric(10, 2), nullable=True)
    mode = Column(String, nullable=True)
    location = Column(String, nullable=True)

    client = relationship("Client", back_populates="packages")


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    package_id = Column(Integer, ForeignKey("packages.id"), nullable=True)  # null = drop-in
    mode = Column(String, nullable=True)
    location_override = Column(String, nullable=True)


class LateFee(Base):
    __tablename__ = "late_fees"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)


class IncomeRate(Base):
    __tablename__ = "income_rates"

    id = Column(Integer, primary_key=True, index=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), nullable=False, index=True)
    min_classes = Column(Integer, nullable=False)
    max_classes = Column(Integer, nullable=True)  # null = unbounded
    rate = Column(Numeric(6, 4), nullable=False)
    effective_week = Column(Date, nullable=True)  # Monday the tiers apply from

    trainer = relationship("Trainer", back_populates="income_rates")


class Pricing(Base):
    __tablename__ = "pricing"
    __table_args__ = (UniqueConstraint("tier", "sessions_min"),)

    id = Column(Integer, primary_key=True, index=True)
    tier = Column(Integer, nullable=False)
    sessions_min = Column(Integer, nullable=False)
    sessions_max = Column(Integer, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    mode_1v2_premium = Column(Numeric(10, 2), nullable=False, default=20)
