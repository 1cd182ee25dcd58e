# tests/conftest.py
"""
Pytest configuration and shared fixtures.

Run:
    pytest tests -v
"""
from datetime import date
from decimal import Decimal

import pytest

from gymdash import create_app
from gymdash import models
from gymdash.db import get_session
from gymdash.logic_models import Client, IncomeRate, LateFee, Package, Session

# =============================================================================
# CONSTANTS
# =============================================================================

MONDAY = date(2025, 1, 6)
TRAINER_ID = 1
OTHER_TRAINER_ID = 2


# =============================================================================
# RECORD FACTORIES
# =============================================================================

def make_client(id, name=None, trainer_id=TRAINER_ID, **kw) -> Client:
    return Client(id=id, name=name or f"Client {id}", trainer_id=trainer_id, **kw)


def make_package(id, client_id, sessions_purchased, start_date, trainer_id=TRAINER_ID, **kw) -> Package:
    return Package(id=id, client_id=client_id, trainer_id=trainer_id,
                   sessions_purchased=sessions_purchased, start_date=start_date, **kw)


def make_session(id, client_id, on_date, package_id=None, trainer_id=TRAINER_ID, **kw) -> Session:
    return Session(id=id, date=on_date, trainer_id=trainer_id, client_id=client_id,
                   package_id=package_id, **kw)


def make_late_fee(id, client_id, on_date, amount="45", trainer_id=TRAINER_ID) -> LateFee:
    return LateFee(id=id, client_id=client_id, trainer_id=trainer_id, date=on_date, amount=Decimal(amount))


def tiers(*spec) -> list:
    """tiers((1, 12, "0.46"), (13, None, "0.51"))"""
    return [IncomeRate(min_classes=lo, max_classes=hi, rate=Decimal(rate)) for lo, hi, rate in spec]


# =============================================================================
# APP / DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def app(tmp_path):
    """Fresh app on a file-backed SQLite database per test."""
    app = create_app(f"sqlite:///{tmp_path}/test.db", background_reload=False)
    app.config["TESTING"] = True
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed(app):
    """
    Insert ORM rows and return their ids, e.g.
        ids = seed(models.Trainer(name="Ana"))
    """
    def _seed(*rows):
        with get_session() as s:
            s.add_all(rows)
            s.flush()
            ids = [r.id for r in rows]
        return ids[0] if len(ids) == 1 else ids
    return _seed


@pytest.fixture
def trainer_with_client(seed):
    """Trainer (tier 1) with one 1v1 client and a 46% / 51% income table."""
    trainer_id = seed(models.Trainer(name="Ana", tier=1))
    client_id = seed(models.Client(name="Bea", trainer_id=trainer_id, mode="1v1"))
    seed(
        models.IncomeRate(trainer_id=trainer_id, min_classes=1, max_classes=12, rate=Decimal("0.46")),
        models.IncomeRate(trainer_id=trainer_id, min_classes=13, max_classes=None, rate=Decimal("0.51")),
    )
    return trainer_id, client_id
