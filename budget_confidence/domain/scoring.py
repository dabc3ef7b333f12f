"""Affordability confidence scoring - core business logic for planned expenses"""

from datetime import datetime
from decimal import Decimal
from typing import List, Tuple

from budget_confidence.domain.models import (
    ConfidenceInput,
    ConfidenceLevel,
    ConfidenceResult,
    FinancialSnapshot,
    IncomeFrequency,
)
from budget_confidence.domain.projections import project_expenses, project_total_income
from budget_confidence.utils.currency import format_currency
from budget_confidence.utils.date_utils import days_between

MAX_SCORE = 100

SHORTFALL_PENALTY = 40
TIGHT_CUSHION_PENALTY = 20
LONG_HORIZON_PENALTY = 15
COMPETING_EXPENSES_PENALTY = 10
IRREGULAR_INCOME_PENALTY = 15
THIN_HISTORY_PENALTY = 10

MIN_CUSHION_RATIO = Decimal("0.10")
LONG_HORIZON_DAYS = 90
MAX_COMPETING_EXPENSES = 5

HIGH_THRESHOLD = 80
MEDIUM_THRESHOLD = 60


def calculate_confidence_score(
    target_amount: Decimal,
    projected_balance: Decimal,
    days_until_target: int,
    competing_count: int,
    has_irregular_income: bool,
    has_expense_history: bool,
    currency_symbol: str = "₱",
) -> Tuple[int, List[str]]:
    """
    Start at 100 and apply stackable deductions, collecting a risk factor for each.

    Deductions:
    - 40: projected balance below target (shortfall)
    - 20: affordable but cushion below 10% of target (only checked when affordable)
    - 15: target more than 90 days away
    - 10: more than 5 competing planned expenses
    - 15: any irregular income source
    - 10: no expense transactions in the trailing 90 days

    The score is not clamped at zero.
    """
    score = MAX_SCORE
    risk_factors: List[str] = []

    can_afford = projected_balance >= target_amount
    if not can_afford:
        shortfall = target_amount - projected_balance
        risk_factors.append(f"Projected shortfall of {format_currency(shortfall, currency_symbol)}")
        score -= SHORTFALL_PENALTY
    elif target_amount > 0:
        cushion = (projected_balance - target_amount) / target_amount
        if cushion < MIN_CUSHION_RATIO:
            risk_factors.append("Very tight budget with minimal cushion")
            score -= TIGHT_CUSHION_PENALTY

    if days_until_target > LONG_HORIZON_DAYS:
        risk_factors.append("Long time horizon increases uncertainty")
        score -= LONG_HORIZON_PENALTY

    if competing_count > MAX_COMPETING_EXPENSES:
        risk_factors.append("Many competing planned expenses")
        score -= COMPETING_EXPENSES_PENALTY

    if has_irregular_income:
        risk_factors.append("Irregular income makes predictions less reliable")
        score -= IRREGULAR_INCOME_PENALTY

    if not has_expense_history:
        risk_factors.append("Limited transaction history for accurate prediction")
        score -= THIN_HISTORY_PENALTY

    return score, risk_factors


def determine_confidence_level(score: int) -> ConfidenceLevel:
    """
    Map score to a confidence tier (lower bound of each band inclusive).

    - 80+:   HIGH
    - 60-79: MEDIUM
    - <60:   LOW
    """
    if score >= HIGH_THRESHOLD:
        return ConfidenceLevel.HIGH
    elif score >= MEDIUM_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    else:
        return ConfidenceLevel.LOW


def calculate_confidence(
    confidence_input: ConfidenceInput,
    snapshot: FinancialSnapshot,
    now: datetime,
    currency_symbol: str = "₱",
) -> ConfidenceResult:
    """
    Main entry point: project the balance at the target date and score it.

    The snapshot must already be scoped to the user (and wallet, if any):
    active income sources, EXPENSE transactions from the trailing 90 days,
    and the competing planned expenses.
    """
    target_date = confidence_input.target_date
    days_until_target = days_between(now, target_date)

    total_income = project_total_income(snapshot.income_sources, now, target_date)
    extrapolated_spend = project_expenses(snapshot.expense_history, now, target_date)
    competing_claims = sum((e.amount for e in snapshot.competing_expenses), Decimal("0"))

    projected_balance = snapshot.current_balance + total_income - extrapolated_spend - competing_claims
    can_afford = projected_balance >= confidence_input.target_amount

    has_irregular_income = any(
        source.frequency == IncomeFrequency.IRREGULAR for source in snapshot.income_sources
    )

    score, risk_factors = calculate_confidence_score(
        target_amount=confidence_input.target_amount,
        projected_balance=projected_balance,
        days_until_target=days_until_target,
        competing_count=len(snapshot.competing_expenses),
        has_irregular_income=has_irregular_income,
        has_expense_history=bool(snapshot.expense_history),
        currency_symbol=currency_symbol,
    )

    return ConfidenceResult(
        confidence_level=determine_confidence_level(score),
        score=score,
        current_balance=snapshot.current_balance,
        projected_balance=projected_balance,
        total_projected_income=total_income,
        projected_expenses=extrapolated_spend + competing_claims,
        competing_claims=competing_claims,
        risk_factors=risk_factors,
        can_afford=can_afford,
        days_until_target=days_until_target,
        planned_expense_id=confidence_input.planned_expense_id,
    )
