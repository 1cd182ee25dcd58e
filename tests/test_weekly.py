# tests/test_weekly.py
"""
Tests for the weekly breakdown rows and income summary.

    final = Σ(price × rate) + Σ sales_bonus + Σ late fees
"""
from datetime import date, timedelta
from decimal import Decimal

from gymdash.logic_models import ClientPriceEntry, ClientPricing
from gymdash.weekly import (
    UNKNOWN_CLIENT,
    compute_breakdown_rows,
    compute_income_summary,
    session_price,
)

from conftest import (
    MONDAY,
    OTHER_TRAINER_ID,
    TRAINER_ID,
    make_client,
    make_late_fee,
    make_package,
    make_session,
    tiers,
)

RATES = tiers((1, 12, "0.46"), (13, None, "0.51"))
TUESDAY = MONDAY + timedelta(days=1)
WEDNESDAY = MONDAY + timedelta(days=2)


def _week(clients, packages, sessions, weekly_packages=(), late_fees=(), trainer_id=TRAINER_ID,
          rates=RATES, week_start=MONDAY, price_history=None):
    args = (clients, packages, sessions, list(weekly_packages), list(late_fees), trainer_id, 1, rates)
    kwargs = dict(week_start=week_start, price_history=price_history)
    return (
        compute_breakdown_rows(*args, **kwargs),
        compute_income_summary(*args, **kwargs),
    )


class TestTypicalWeek:
    """Alice on a package, Bob dropping in and late, Carl buying 15."""

    def setup_method(self):
        self.clients = [make_client(1, "Alice"), make_client(2, "Bob"), make_client(3, "Carl")]
        alice_pkg = make_package(10, 1, 10, date(2025, 1, 1))
        carl_pkg = make_package(11, 3, 15, TUESDAY, sales_bonus=Decimal("63"))
        self.packages = [alice_pkg, carl_pkg]
        self.sessions = [
            make_session(1, 1, MONDAY, package_id=10),
            make_session(2, 2, MONDAY),
            make_session(3, 1, WEDNESDAY, package_id=10),
        ]
        self.rows, self.summary = _week(
            self.clients, self.packages, self.sessions,
            weekly_packages=[carl_pkg],
            late_fees=[make_late_fee(5, 2, TUESDAY)],
        )

    def test_summary(self):
        s = self.summary
        assert s.total_classes == 3
        assert s.rate == Decimal("0.46")
        assert s.class_income == Decimal("207")
        assert s.bonus_income == Decimal("63")
        assert s.late_fee_income == Decimal("45")
        assert s.final_weekly_income == Decimal("315")

    def test_rows_sorted_by_date_then_client(self):
        assert [r.id for r in self.rows] == [
            "session-1",
            "session-2",
            "lateFee-5",
            "package-11",
            "package-11-bonus",
            "session-3",
        ]

    def test_row_amounts(self):
        by_id = {r.id: r for r in self.rows}
        assert by_id["package-11"].amount == Decimal("2100")
        assert by_id["package-11"].type == "package"
        assert by_id["package-11-bonus"].amount == Decimal("63")
        assert by_id["session-2"].amount == Decimal("69")
        assert by_id["lateFee-5"].client_name == "Bob"

    def test_session_rows_add_up_to_class_income(self):
        total = sum(r.amount for r in self.rows if r.type == "session")
        assert total == self.summary.class_income


class TestRate:

    def test_thirteen_classes_move_everyone_to_next_tier(self):
        clients = [make_client(1, "Alice")]
        sessions = [make_session(i, 1, MONDAY) for i in range(13)]
        _, summary = _week(clients, [], sessions)
        assert summary.rate == Decimal("0.51")
        assert summary.class_income == Decimal("150") * Decimal("0.51") * 13

    def test_no_rates_means_zero_class_income(self):
        _, summary = _week([make_client(1)], [], [make_session(1, 1, MONDAY)], rates=[])
        assert summary.rate == Decimal("0")
        assert summary.class_income == Decimal("0")


class TestPersonalClientBonus:

    def _client(self):
        return make_client(1, "Alice", trainer_id=TRAINER_ID, secondary_trainer_id=OTHER_TRAINER_ID,
                           is_personal_client=True)

    def test_primary_trainer_gets_bonus(self):
        _, summary = _week([self._client()], [], [make_session(1, 1, MONDAY)])
        assert summary.class_income == Decimal("150") * Decimal("0.56")

    def test_secondary_trainer_gets_base_rate(self):
        session = make_session(1, 1, MONDAY, trainer_id=OTHER_TRAINER_ID)
        _, summary = _week([self._client()], [], [session], trainer_id=OTHER_TRAINER_ID)
        assert summary.class_income == Decimal("150") * Decimal("0.46")


class TestSessionPricing:

    def test_bound_session_uses_package_bracket(self):
        pkg = make_package(10, 1, 25, date(2025, 1, 1))
        price = session_price(make_session(1, 1, MONDAY, package_id=10), make_client(1), {10: pkg}, 1)
        assert price == Decimal("130")

    def test_dangling_package_prices_as_drop_in(self):
        price = session_price(make_session(1, 1, MONDAY, package_id=99), make_client(1), {}, 1)
        assert price == Decimal("150")

    def test_session_before_package_start_is_drop_in(self):
        pkg = make_package(10, 1, 25, MONDAY + timedelta(days=4))
        price = session_price(make_session(1, 1, MONDAY, package_id=10), make_client(1), {10: pkg}, 1)
        assert price == Decimal("150")

    def test_1v2_client_pays_premium(self):
        client = make_client(1, mode="1v2")
        pkg = make_package(10, 1, 10, date(2025, 1, 1))
        price = session_price(make_session(1, 1, MONDAY, package_id=10), client, {10: pkg}, 1)
        assert price == Decimal("170")

    def test_session_mode_overrides_package_mode(self):
        pkg = make_package(10, 1, 10, date(2025, 1, 1), mode="1v2")
        session = make_session(1, 1, MONDAY, package_id=10, mode="1v1")
        assert session_price(session, make_client(1), {10: pkg}, 1) == Decimal("150")


class TestVisibility:

    def test_unknown_client_is_still_counted(self):
        rows, summary = _week([], [], [make_session(1, 99, MONDAY)])
        assert rows[0].client_name == UNKNOWN_CLIENT
        assert summary.total_classes == 1
        assert rows[0].amount == summary.class_income

    def test_client_archived_at_week_start_is_hidden(self):
        clients = [make_client(1, "Gone", archived_at=MONDAY)]
        rows, summary = _week(clients, [], [make_session(1, 1, TUESDAY)],
                              late_fees=[make_late_fee(2, 1, TUESDAY)])
        assert rows == []
        assert summary.final_weekly_income == Decimal("0")

    def test_client_archived_mid_week_is_shown(self):
        clients = [make_client(1, "Leaving", archived_at=WEDNESDAY)]
        _, summary = _week(clients, [], [make_session(1, 1, TUESDAY)])
        assert summary.total_classes == 1

    def test_other_trainers_package_sale_is_ignored(self):
        theirs = make_package(11, 1, 15, TUESDAY, trainer_id=OTHER_TRAINER_ID, sales_bonus=Decimal("63"))
        rows, summary = _week([make_client(1)], [theirs], [], weekly_packages=[theirs])
        assert rows == []
        assert summary.bonus_income == Decimal("0")

    def test_zero_bonus_has_no_bonus_row(self):
        pkg = make_package(11, 1, 5, TUESDAY, sales_bonus=Decimal("0"))
        rows, _ = _week([make_client(1)], [pkg], [], weekly_packages=[pkg])
        assert [r.type for r in rows] == ["package"]


class TestPriceHistory:
    """Own prices 120/110/100 until Wednesday, 200/190/180 from then on."""

    OLD = ClientPricing(Decimal("120"), Decimal("110"), Decimal("100"), Decimal("20"))
    NEW = ClientPricing(Decimal("200"), Decimal("190"), Decimal("180"), Decimal("20"))

    def setup_method(self):
        self.client = make_client(1, "Vip", pricing=self.OLD)
        self.history = [ClientPriceEntry(client_id=1, effective_date=WEDNESDAY, pricing=self.NEW, id=1)]

    def test_sessions_priced_on_their_own_date(self):
        sessions = [make_session(1, 1, TUESDAY), make_session(2, 1, WEDNESDAY)]
        rows, _ = _week([self.client], [], sessions, rates=tiers((1, None, "1")),
                        price_history=self.history)
        assert [r.amount for r in rows] == [Decimal("120"), Decimal("200")]

    def test_package_sale_priced_on_start_date(self):
        before = make_package(10, 1, 21, TUESDAY)
        after = make_package(11, 1, 21, WEDNESDAY)
        rows, _ = _week([self.client], [before, after], [], weekly_packages=[before, after],
                        price_history=self.history)
        assert [r.amount for r in rows] == [Decimal("2100"), Decimal("3780")]

    def test_other_clients_history_is_ignored(self):
        other = [ClientPriceEntry(client_id=2, effective_date=MONDAY, pricing=self.NEW, id=2)]
        price = session_price(make_session(1, 1, TUESDAY), self.client, {}, 1, history=other)
        assert price == Decimal("120")

    def test_history_without_own_prices_replaces_tier_table(self):
        price = session_price(make_session(1, 1, WEDNESDAY), make_client(1), {}, 1, history=self.history)
        assert price == Decimal("200")
