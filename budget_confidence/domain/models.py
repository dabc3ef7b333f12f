"""Domain models - pure Python dataclasses representing budgeting entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class IncomeFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"
    BIMONTHLY = "BIMONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"
    IRREGULAR = "IRREGULAR"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class PlannedExpenseStatus(str, Enum):
    PLANNED = "PLANNED"
    SAVED = "SAVED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ConfidenceLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# Statuses still competing for future funds
ELIGIBLE_STATUSES = (PlannedExpenseStatus.PLANNED, PlannedExpenseStatus.SAVED)


@dataclass
class Wallet:
    """Account holding a balance"""

    id: str
    user_id: str
    balance: Decimal
    is_active: bool = True
    name: str = ""


@dataclass
class IncomeSource:
    """Recurring income stream"""

    id: str
    user_id: str
    amount: Decimal
    frequency: str  # IncomeFrequency value; unknown values project to zero
    wallet_id: Optional[str] = None
    is_active: bool = True
    name: str = ""


@dataclass
class Transaction:
    """Recorded movement of money"""

    id: str
    user_id: str
    wallet_id: str
    amount: Decimal  # Always a positive magnitude
    type: TransactionType
    date: datetime


@dataclass
class PlannedExpense:
    """Expense the user intends to make in the future"""

    id: str
    user_id: str
    amount: Decimal
    target_date: datetime
    status: str  # PlannedExpenseStatus value
    wallet_id: Optional[str] = None
    title: str = ""
    confidence_level: Optional[ConfidenceLevel] = None
    last_confidence_update: Optional[datetime] = None


@dataclass
class ConfidenceInput:
    """What to evaluate: an amount due on a date, optionally from one wallet"""

    user_id: str
    target_amount: Decimal
    target_date: datetime
    planned_expense_id: Optional[str] = None  # None for hypothetical previews
    wallet_id: Optional[str] = None


@dataclass
class FinancialSnapshot:
    """Already-loaded inputs the scorer works from"""

    current_balance: Decimal
    income_sources: List[IncomeSource] = field(default_factory=list)
    expense_history: List[Transaction] = field(default_factory=list)
    competing_expenses: List[PlannedExpense] = field(default_factory=list)


@dataclass
class ConfidenceResult:
    """Output of an affordability confidence evaluation"""

    confidence_level: ConfidenceLevel
    score: int
    current_balance: Decimal
    projected_balance: Decimal
    total_projected_income: Decimal
    projected_expenses: Decimal  # Extrapolated spend plus competing claims
    competing_claims: Decimal
    risk_factors: List[str]
    can_afford: bool
    days_until_target: int
    planned_expense_id: Optional[str] = None
