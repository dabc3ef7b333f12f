"""Data access layer for budgeting entities"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from budget_confidence.infrastructure.database import models as orm
from budget_confidence.domain import models as domain
from budget_confidence.domain.exceptions import PersistenceError, TransientDataError

ELIGIBLE_STATUS_VALUES = [status.value for status in domain.ELIGIBLE_STATUSES]


def _to_planned_expense(row: orm.PlannedExpense) -> domain.PlannedExpense:
    return domain.PlannedExpense(
        id=row.id,
        user_id=row.user_id,
        amount=Decimal(row.amount),
        target_date=row.target_date,
        status=row.status,
        wallet_id=row.wallet_id,
        title=row.title,
        confidence_level=domain.ConfidenceLevel(row.confidence_level) if row.confidence_level else None,
        last_confidence_update=row.last_confidence_update,
    )


class WalletRepository:
    """Repository for wallets"""

    def __init__(self, db: Session):
        self.db = db

    def get_active_wallet(self, user_id: str, wallet_id: str) -> Optional[domain.Wallet]:
        """Fetch one active wallet owned by the user"""
        try:
            row = (
                self.db.query(orm.Wallet)
                .filter(orm.Wallet.id == wallet_id, orm.Wallet.user_id == user_id, orm.Wallet.is_active.is_(True))
                .first()
            )
        except SQLAlchemyError as e:
            raise TransientDataError(f"Failed to load wallet {wallet_id}: {e}") from e

        if row is None:
            return None
        return domain.Wallet(id=row.id, user_id=row.user_id, balance=Decimal(row.balance), name=row.name)

    def list_active_wallets(self, user_id: str) -> List[domain.Wallet]:
        try:
            rows = (
                self.db.query(orm.Wallet)
                .filter(orm.Wallet.user_id == user_id, orm.Wallet.is_active.is_(True))
                .all()
            )
        except SQLAlchemyError as e:
            raise TransientDataError(f"Failed to load wallets for user {user_id}: {e}") from e

        return [
            domain.Wallet(id=row.id, user_id=row.user_id, balance=Decimal(row.balance), name=row.name)
            for row in rows
        ]


class IncomeSourceRepository:
    """Repository for income sources"""

    def __init__(self, db: Session):
        self.db = db

    def list_active(self, user_id: str, wallet_id: Optional[str] = None) -> List[domain.IncomeSource]:
        """Active income sources, optionally limited to one wallet"""
        try:
            query = self.db.query(orm.IncomeSource).filter(
                orm.IncomeSource.user_id == user_id,
                orm.IncomeSource.is_active.is_(True),
            )
            if wallet_id:
                query = query.filter(orm.IncomeSource.wallet_id == wallet_id)
            rows = query.all()
        except SQLAlchemyError as e:
            raise TransientDataError(f"Failed to load income sources for user {user_id}: {e}") from e

        return [
            domain.IncomeSource(
                id=row.id,
                user_id=row.user_id,
                amount=Decimal(row.amount),
                frequency=row.frequency,
                wallet_id=row.wallet_id,
                name=row.name,
            )
            for row in rows
        ]


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def list_expenses_since(
        self,
        user_id: str,
        since: datetime,
        wallet_id: Optional[str] = None,
    ) -> List[domain.Transaction]:
        """EXPENSE transactions dated on or after `since`"""
        try:
            query = self.db.query(orm.Transaction).filter(
                orm.Transaction.user_id == user_id,
                orm.Transaction.type == domain.TransactionType.EXPENSE.value,
                orm.Transaction.date >= since,
            )
            if wallet_id:
                query = query.filter(orm.Transaction.wallet_id == wallet_id)
            rows = query.all()
        except SQLAlchemyError as e:
            raise TransientDataError(f"Failed to load transactions for user {user_id}: {e}") from e

        return [
            domain.Transaction(
                id=row.id,
                user_id=row.user_id,
                wallet_id=row.wallet_id,
                amount=Decimal(row.amount),
                type=domain.TransactionType(row.type),
                date=row.date,
            )
            for row in rows
        ]


class PlannedExpenseRepository:
    """Repository for planned expenses and their confidence tier"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, planned_expense_id: str) -> Optional[domain.PlannedExpense]:
        row = self.db.query(orm.PlannedExpense).filter(orm.PlannedExpense.id == planned_expense_id).first()
        return _to_planned_expense(row) if row else None

    def list_eligible(self, user_id: str) -> List[domain.PlannedExpense]:
        """PLANNED/SAVED expenses for a user, soonest first"""
        rows = (
            self.db.query(orm.PlannedExpense)
            .filter(
                orm.PlannedExpense.user_id == user_id,
                orm.PlannedExpense.status.in_(ELIGIBLE_STATUS_VALUES),
            )
            .order_by(orm.PlannedExpense.target_date.asc())
            .all()
        )
        return [_to_planned_expense(row) for row in rows]

    def list_competing(
        self,
        user_id: str,
        excluding_id: Optional[str],
        due_on_or_before: datetime,
        wallet_id: Optional[str] = None,
    ) -> List[domain.PlannedExpense]:
        """Eligible expenses other than `excluding_id` due on or before the given date"""
        try:
            query = self.db.query(orm.PlannedExpense).filter(
                orm.PlannedExpense.user_id == user_id,
                orm.PlannedExpense.status.in_(ELIGIBLE_STATUS_VALUES),
                orm.PlannedExpense.target_date <= due_on_or_before,
            )
            if excluding_id:
                query = query.filter(orm.PlannedExpense.id != excluding_id)
            if wallet_id:
                query = query.filter(orm.PlannedExpense.wallet_id == wallet_id)
            rows = query.all()
        except SQLAlchemyError as e:
            raise TransientDataError(f"Failed to load planned expenses for user {user_id}: {e}") from e

        return [_to_planned_expense(row) for row in rows]

    def list_user_ids_with_eligible(self) -> List[str]:
        """Users that still have PLANNED/SAVED expenses"""
        rows = (
            self.db.query(orm.PlannedExpense.user_id)
            .filter(orm.PlannedExpense.status.in_(ELIGIBLE_STATUS_VALUES))
            .distinct()
            .order_by(orm.PlannedExpense.user_id)
            .all()
        )
        return [row[0] for row in rows]

    def update_confidence(
        self,
        planned_expense_id: str,
        confidence_level: domain.ConfidenceLevel,
        updated_at: datetime,
    ) -> None:
        """Write the tier and timestamp; last write wins"""
        try:
            updated = (
                self.db.query(orm.PlannedExpense)
                .filter(orm.PlannedExpense.id == planned_expense_id)
                .update(
                    {
                        orm.PlannedExpense.confidence_level: confidence_level.value,
                        orm.PlannedExpense.last_confidence_update: updated_at,
                    },
                    synchronize_session=False,
                )
            )
            self.db.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to persist confidence for {planned_expense_id}: {e}") from e

        if updated == 0:
            raise PersistenceError(f"Planned expense {planned_expense_id} disappeared before update")
