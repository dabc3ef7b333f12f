"""Integration tests for the confidence service against a real database"""

import pytest
from datetime import timedelta
from decimal import Decimal
from budget_confidence.domain.exceptions import PersistenceError, PlannedExpenseNotFoundError, TransientDataError
from budget_confidence.domain.models import ConfidenceInput, ConfidenceLevel
from budget_confidence.infrastructure.database import models as orm


@pytest.fixture
def funded_user(factory):
    """One active wallet with 5000 and a 10000 monthly salary"""
    factory.user("user_1")
    wallet = factory.wallet(balance="5000")
    factory.income(amount="10000", frequency="MONTHLY")
    return wallet


def test_current_balance_sums_active_wallets(service, factory):
    factory.user()
    factory.wallet(balance="100.50")
    factory.wallet(balance="200.25")
    factory.wallet(balance="9999", is_active=False)
    factory.wallet(user_id="someone_else", balance="5000")

    assert service.current_balance("user_1") == Decimal("300.75")


def test_current_balance_single_wallet(service, factory):
    factory.user()
    wallet = factory.wallet(balance="750")
    inactive = factory.wallet(balance="300", is_active=False)

    assert service.current_balance("user_1", wallet.id) == Decimal("750")
    assert service.current_balance("user_1", inactive.id) == Decimal("0")
    assert service.current_balance("user_1", "missing") == Decimal("0")


def test_project_expenses_uses_trailing_90_days(service, factory, now):
    factory.user()
    wallet = factory.wallet()
    factory.transaction(wallet.id, amount="4500", days_ago=10)
    factory.transaction(wallet.id, amount="4500", days_ago=89)
    factory.transaction(wallet.id, amount="50000", days_ago=91)  # Outside lookback
    factory.transaction(wallet.id, amount="7000", type="INCOME", days_ago=5)

    assert service.project_expenses("user_1", now, now + timedelta(days=30)) == Decimal("3000")


def test_project_expenses_wallet_scoped(service, factory, now):
    factory.user()
    main = factory.wallet()
    other = factory.wallet()
    factory.transaction(main.id, amount="900")
    factory.transaction(other.id, amount="8100")

    assert service.project_expenses("user_1", now, now + timedelta(days=10), main.id) == Decimal("100")
    assert service.project_expenses("user_1", now, now + timedelta(days=10)) == Decimal("1000")


def test_project_expenses_without_history_is_zero(service, factory, now):
    factory.user()
    assert service.project_expenses("user_1", now, now + timedelta(days=365)) == Decimal("0")


def test_sum_competing_claims(service, factory, now):
    factory.user()
    evaluated = factory.planned_expense(amount="1000", due_in_days=30)
    factory.planned_expense(amount="200", due_in_days=10)
    factory.planned_expense(amount="300", due_in_days=30, status="SAVED")
    factory.planned_expense(amount="400", due_in_days=31)
    factory.planned_expense(amount="800", due_in_days=5, status="COMPLETED")

    total = service.sum_competing_claims("user_1", evaluated.id, now + timedelta(days=30))
    assert total == Decimal("500")


def test_score_confidence_end_to_end_without_history(service, funded_user, factory, now):
    expense = factory.planned_expense(amount="12000", due_in_days=30)

    result = service.score_confidence(
        ConfidenceInput(
            user_id="user_1",
            planned_expense_id=expense.id,
            target_amount=Decimal("12000"),
            target_date=now + timedelta(days=30),
        )
    )

    assert result.current_balance == Decimal("5000")
    assert result.total_projected_income == Decimal("10000")
    assert result.projected_balance == Decimal("15000")
    assert result.can_afford is True
    assert result.score == 90
    assert result.confidence_level == ConfidenceLevel.HIGH


def test_score_confidence_with_history(service, funded_user, factory, now):
    factory.transaction(funded_user.id, amount="90")

    result = service.score_confidence(
        ConfidenceInput(user_id="user_1", target_amount=Decimal("12000"), target_date=now + timedelta(days=30))
    )

    assert result.score == 100
    assert result.risk_factors == []


def test_score_confidence_does_not_write(service, funded_user, factory, db, now):
    expense = factory.planned_expense(amount="12000", due_in_days=30)

    service.score_confidence(
        ConfidenceInput(
            user_id="user_1",
            planned_expense_id=expense.id,
            target_amount=Decimal("12000"),
            target_date=now + timedelta(days=30),
        )
    )

    db.expire_all()
    row = db.get(orm.PlannedExpense, expense.id)
    assert row.confidence_level is None
    assert row.last_confidence_update is None


def test_score_confidence_falls_back_when_reads_fail(service, funded_user, monkeypatch, now):
    def broken(*args, **kwargs):
        raise TransientDataError("connection reset")

    monkeypatch.setattr(service.wallets, "list_active_wallets", broken)
    monkeypatch.setattr(service.income_sources, "list_active", broken)

    result = service.score_confidence(
        ConfidenceInput(user_id="user_1", target_amount=Decimal("100"), target_date=now + timedelta(days=30))
    )

    assert result.current_balance == Decimal("0")
    assert result.total_projected_income == Decimal("0")
    assert result.can_afford is False
    assert result.confidence_level == ConfidenceLevel.LOW


def test_update_one_persists_level_and_timestamp(service, funded_user, factory, db, now):
    expense = factory.planned_expense(amount="20000", due_in_days=30)

    result = service.update_one(expense.id)

    assert result.score == 50
    assert result.confidence_level == ConfidenceLevel.LOW
    db.expire_all()
    row = db.get(orm.PlannedExpense, expense.id)
    assert row.confidence_level == "LOW"
    assert row.last_confidence_update == now


def test_update_one_uses_expense_wallet(service, factory):
    factory.user()
    factory.wallet(balance="50000")
    poor = factory.wallet(balance="10")
    factory.transaction(poor.id, amount="9")
    expense = factory.planned_expense(amount="1000", due_in_days=30, wallet_id=poor.id)

    result = service.update_one(expense.id)

    assert result.current_balance == Decimal("10")
    assert result.can_afford is False


def test_update_one_not_found(service, db):
    with pytest.raises(PlannedExpenseNotFoundError):
        service.update_one("does-not-exist")


def test_update_one_is_idempotent(service, funded_user, factory):
    expense = factory.planned_expense(amount="12000", due_in_days=30)

    first = service.update_one(expense.id)
    second = service.update_one(expense.id)

    assert first.confidence_level == second.confidence_level
    assert first.projected_balance == second.projected_balance


def test_update_one_persistence_failure_propagates(service, funded_user, factory, monkeypatch):
    expense = factory.planned_expense(amount="12000", due_in_days=30)

    def fail(*args, **kwargs):
        raise PersistenceError("disk full")

    monkeypatch.setattr(service.planned_expenses, "update_confidence", fail)

    with pytest.raises(PersistenceError):
        service.update_one(expense.id)


def test_update_all_for_user_only_eligible(service, funded_user, factory, db):
    planned = factory.planned_expense(amount="1000", due_in_days=10)
    saved = factory.planned_expense(amount="2000", due_in_days=20, status="SAVED")
    completed = factory.planned_expense(amount="3000", due_in_days=30, status="COMPLETED")

    results = service.update_all_for_user("user_1")

    assert {r.planned_expense_id for r in results} == {planned.id, saved.id}
    db.expire_all()
    assert db.get(orm.PlannedExpense, completed.id).confidence_level is None


def test_update_all_for_user_skips_failed_expenses(service, funded_user, factory, monkeypatch):
    expenses = [factory.planned_expense(amount="100", due_in_days=d) for d in (10, 20, 30)]
    original = service.update_one

    def flaky(planned_expense_id):
        if planned_expense_id == expenses[1].id:
            raise RuntimeError("boom")
        return original(planned_expense_id)

    monkeypatch.setattr(service, "update_one", flaky)

    results = service.update_all_for_user("user_1")

    assert [r.planned_expense_id for r in results] == [expenses[0].id, expenses[2].id]


def test_update_all_for_user_wallet_lookup_failure_is_soft(service, factory, monkeypatch):
    factory.user()
    wallet = factory.wallet(balance="1000")
    factory.planned_expense(amount="100", due_in_days=10)
    second = factory.planned_expense(amount="100", due_in_days=20, wallet_id=wallet.id)
    factory.planned_expense(amount="100", due_in_days=30)

    def broken(*args, **kwargs):
        raise TransientDataError("wallet lookup failed")

    monkeypatch.setattr(service.wallets, "get_active_wallet", broken)

    results = service.update_all_for_user("user_1")

    # Missing wallet counts as a zero balance instead of failing the expense
    assert len(results) == 3
    second_result = next(r for r in results if r.planned_expense_id == second.id)
    assert second_result.current_balance == Decimal("0")


def test_update_all_for_user_persistence_failure_is_omitted(service, funded_user, factory, monkeypatch):
    ok = factory.planned_expense(amount="100", due_in_days=10)
    bad = factory.planned_expense(amount="100", due_in_days=20)
    original = service.planned_expenses.update_confidence

    def fail_for_bad(planned_expense_id, *args, **kwargs):
        if planned_expense_id == bad.id:
            raise PersistenceError("write conflict")
        return original(planned_expense_id, *args, **kwargs)

    monkeypatch.setattr(service.planned_expenses, "update_confidence", fail_for_bad)

    results = service.update_all_for_user("user_1")

    assert [r.planned_expense_id for r in results] == [ok.id]


def test_update_all_for_user_with_no_expenses(service, factory):
    factory.user()
    assert service.update_all_for_user("user_1") == []


def test_update_all_users_summary(service, factory):
    factory.user("user_1")
    factory.user("user_2")
    factory.user("user_3")
    factory.wallet(user_id="user_1", balance="1000")
    factory.planned_expense(user_id="user_1", amount="100")
    factory.planned_expense(user_id="user_1", amount="200", due_in_days=60)
    factory.planned_expense(user_id="user_2", amount="100", status="SAVED")
    factory.planned_expense(user_id="user_3", amount="100", status="COMPLETED")

    summary = service.update_all_users()

    assert summary["total_users"] == 2
    assert summary["success_count"] == 2
    assert summary["error_count"] == 0
    assert summary["updated_expenses"] == 3
    assert [r["user_id"] for r in summary["results"]] == ["user_1", "user_2"]
