"""Income and expense projections over a future window"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from budget_confidence.domain.models import (
    ELIGIBLE_STATUSES,
    IncomeFrequency,
    IncomeSource,
    PlannedExpense,
    Transaction,
    TransactionType,
)
from budget_confidence.utils.date_utils import days_between

# Trailing window used to estimate the ongoing spend rate
HISTORY_LOOKBACK_DAYS = 90

PERIOD_DAYS: Dict[str, int] = {
    IncomeFrequency.WEEKLY.value: 7,
    IncomeFrequency.BIWEEKLY.value: 14,
    IncomeFrequency.MONTHLY.value: 30,
    IncomeFrequency.BIMONTHLY.value: 60,
    IncomeFrequency.QUARTERLY.value: 90,
    IncomeFrequency.ANNUALLY.value: 365,
}

IRREGULAR_PERIOD_DAYS = 60
IRREGULAR_DAMPENING = Decimal("0.5")


def projection_days(window_start: datetime, window_end: datetime) -> int:
    """Whole days in the window; a window that ends before it starts has none"""
    return max(days_between(window_start, window_end), 0)


def project_income(source: IncomeSource, window_start: datetime, window_end: datetime) -> Decimal:
    """
    Estimate income accrued from a source over a window.

    Only whole completed periods count, so a partial trailing period adds
    nothing. Irregular income is assumed to land every 60 days at half
    strength. Unknown frequencies contribute zero.
    """
    days = projection_days(window_start, window_end)
    frequency = getattr(source.frequency, "value", source.frequency)

    if frequency == IncomeFrequency.IRREGULAR.value:
        return source.amount * (days // IRREGULAR_PERIOD_DAYS) * IRREGULAR_DAMPENING

    period = PERIOD_DAYS.get(frequency)
    if period is None:
        return Decimal("0")

    return source.amount * (days // period)


def project_total_income(
    sources: Iterable[IncomeSource], window_start: datetime, window_end: datetime
) -> Decimal:
    return sum(
        (project_income(source, window_start, window_end) for source in sources),
        Decimal("0"),
    )


def project_expenses(
    historical_expenses: List[Transaction], window_start: datetime, window_end: datetime
) -> Decimal:
    """
    Extrapolate the trailing daily spend rate over a window.

    No history means no evidence of spending, so the projection is zero.
    Daily average = total / 90; multiplied out before dividing to stay exact.
    """
    expenses = [t for t in historical_expenses if t.type == TransactionType.EXPENSE]
    if not expenses:
        return Decimal("0")

    total = sum((t.amount for t in expenses), Decimal("0"))
    days = projection_days(window_start, window_end)
    return total * days / HISTORY_LOOKBACK_DAYS


def select_competing_expenses(
    planned_expenses: Iterable[PlannedExpense],
    excluding_expense_id: Optional[str],
    target_date: datetime,
    wallet_id: Optional[str] = None,
) -> List[PlannedExpense]:
    """
    Planned expenses with first claim on the same funds.

    Eligible (PLANNED/SAVED), not the evaluated expense itself, due on or
    before the target date, and in the same wallet when one is given.
    """
    return [
        expense
        for expense in planned_expenses
        if expense.status in ELIGIBLE_STATUSES
        and expense.id != excluding_expense_id
        and expense.target_date <= target_date
        and (wallet_id is None or expense.wallet_id == wallet_id)
    ]


def sum_competing_claims(
    planned_expenses: Iterable[PlannedExpense],
    excluding_expense_id: Optional[str],
    target_date: datetime,
    wallet_id: Optional[str] = None,
) -> Decimal:
    competing = select_competing_expenses(planned_expenses, excluding_expense_id, target_date, wallet_id)
    return sum((expense.amount for expense in competing), Decimal("0"))
