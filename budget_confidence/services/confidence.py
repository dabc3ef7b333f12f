"""Affordability confidence service - loads user data, scores, and persists tiers"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_confidence.config import settings
from budget_confidence.domain.exceptions import (
    DomainException,
    PersistenceError,
    PlannedExpenseNotFoundError,
    TransientDataError,
)
from budget_confidence.domain.models import (
    ConfidenceInput,
    ConfidenceResult,
    FinancialSnapshot,
    IncomeSource,
    PlannedExpense,
    Transaction,
)
from budget_confidence.domain.projections import (
    HISTORY_LOOKBACK_DAYS,
    project_expenses,
    sum_competing_claims,
)
from budget_confidence.domain.scoring import calculate_confidence
from budget_confidence.infrastructure.database.repositories import (
    IncomeSourceRepository,
    PlannedExpenseRepository,
    TransactionRepository,
    WalletRepository,
)
from budget_confidence.infrastructure.observability.logging import log_confidence_update
from budget_confidence.infrastructure.observability.metrics import (
    batch_duration_histogram,
    confidence_update_failure_counter,
    data_fallback_counter,
    record_confidence_update,
)
from budget_confidence.utils.date_utils import Clock, lookback_start, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfidenceService:
    """
    Affordability confidence for a user's planned expenses.

    Scoring only reads; `update_one` and the batch methods are the only
    writers of a planned expense's confidence level.
    """

    def __init__(self, db: Session, clock: Clock = utcnow, currency_symbol: Optional[str] = None):
        self.db = db
        self.clock = clock
        self.currency_symbol = currency_symbol or settings.currency_symbol
        self.wallets = WalletRepository(db)
        self.income_sources = IncomeSourceRepository(db)
        self.transactions = TransactionRepository(db)
        self.planned_expenses = PlannedExpenseRepository(db)

    def _load_or_default(self, collection: str, loader: Callable[[], T], default: T) -> T:
        """Run a read; on failure log it and continue with `default`"""
        try:
            return loader()
        except TransientDataError as e:
            self.db.rollback()
            data_fallback_counter.labels(collection=collection).inc()
            logger.warning(f"Using empty {collection} after read failure: {e}", extra={"collection": collection})
            return default

    def current_balance(self, user_id: str, wallet_id: Optional[str] = None) -> Decimal:
        """Balance of one wallet (zero if missing or inactive), or of all active wallets"""
        if wallet_id:
            wallet = self._load_or_default(
                "wallets", lambda: self.wallets.get_active_wallet(user_id, wallet_id), None
            )
            return wallet.balance if wallet else Decimal("0")

        wallets = self._load_or_default("wallets", lambda: self.wallets.list_active_wallets(user_id), [])
        return sum((wallet.balance for wallet in wallets), Decimal("0"))

    def _income_sources(self, user_id: str, wallet_id: Optional[str]) -> List[IncomeSource]:
        return self._load_or_default(
            "income_sources", lambda: self.income_sources.list_active(user_id, wallet_id), []
        )

    def _expense_history(self, user_id: str, now: datetime, wallet_id: Optional[str]) -> List[Transaction]:
        since = lookback_start(now, HISTORY_LOOKBACK_DAYS)
        return self._load_or_default(
            "transactions", lambda: self.transactions.list_expenses_since(user_id, since, wallet_id), []
        )

    def _competing_expenses(
        self,
        user_id: str,
        excluding_expense_id: Optional[str],
        target_date: datetime,
        wallet_id: Optional[str],
    ) -> List[PlannedExpense]:
        return self._load_or_default(
            "planned_expenses",
            lambda: self.planned_expenses.list_competing(user_id, excluding_expense_id, target_date, wallet_id),
            [],
        )

    def project_expenses(
        self,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        wallet_id: Optional[str] = None,
    ) -> Decimal:
        """Trailing 90-day spend rate extrapolated over the window"""
        history = self._expense_history(user_id, self.clock(), wallet_id)
        return project_expenses(history, window_start, window_end)

    def sum_competing_claims(
        self,
        user_id: str,
        excluding_expense_id: Optional[str],
        target_date: datetime,
        wallet_id: Optional[str] = None,
    ) -> Decimal:
        """Total of other eligible planned expenses due on or before target_date"""
        competing = self._competing_expenses(user_id, excluding_expense_id, target_date, wallet_id)
        return sum_competing_claims(competing, excluding_expense_id, target_date, wallet_id)

    def score_confidence(self, confidence_input: ConfidenceInput, now: Optional[datetime] = None) -> ConfidenceResult:
        """Project the balance at the target date and score it. Never writes."""
        now = now or self.clock()
        user_id = confidence_input.user_id
        wallet_id = confidence_input.wallet_id

        snapshot = FinancialSnapshot(
            current_balance=self.current_balance(user_id, wallet_id),
            income_sources=self._income_sources(user_id, wallet_id),
            expense_history=self._expense_history(user_id, now, wallet_id),
            competing_expenses=self._competing_expenses(
                user_id, confidence_input.planned_expense_id, confidence_input.target_date, wallet_id
            ),
        )

        return calculate_confidence(confidence_input, snapshot, now, self.currency_symbol)

    def update_one(self, planned_expense_id: str) -> ConfidenceResult:
        """
        Recompute and persist the confidence level of one planned expense.

        Raises:
            PlannedExpenseNotFoundError: No planned expense with that id
            PersistenceError: The tier could not be written back
        """
        start_time = time.time()
        expense = self.planned_expenses.get_by_id(planned_expense_id)
        if expense is None:
            confidence_update_failure_counter.labels(stage="not_found").inc()
            raise PlannedExpenseNotFoundError(planned_expense_id)

        now = self.clock()
        result = self.score_confidence(
            ConfidenceInput(
                user_id=expense.user_id,
                planned_expense_id=expense.id,
                target_amount=expense.amount,
                target_date=expense.target_date,
                wallet_id=expense.wallet_id,
            ),
            now=now,
        )

        try:
            self.planned_expenses.update_confidence(expense.id, result.confidence_level, now)
            self.db.commit()
        except PersistenceError:
            self.db.rollback()
            confidence_update_failure_counter.labels(stage="persistence").inc()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            confidence_update_failure_counter.labels(stage="persistence").inc()
            raise PersistenceError(f"Failed to commit confidence for {expense.id}: {e}") from e

        record_confidence_update(result.confidence_level.value)
        log_confidence_update(
            planned_expense_id=expense.id,
            user_id=expense.user_id,
            confidence_level=result.confidence_level.value,
            score=result.score,
            can_afford=result.can_afford,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return result

    def update_all_for_user(self, user_id: str) -> List[ConfidenceResult]:
        """
        Recompute every PLANNED/SAVED expense of a user.

        Per-expense failures are logged and skipped; only successful results
        are returned.
        """
        with batch_duration_histogram.time():
            try:
                expenses = self.planned_expenses.list_eligible(user_id)
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to list planned expenses for user {user_id}: {e}", extra={"user_id": user_id})
                return []

            results: List[ConfidenceResult] = []
            for expense in expenses:
                try:
                    results.append(self.update_one(expense.id))
                except Exception as e:
                    if not isinstance(e, DomainException):
                        self.db.rollback()
                        confidence_update_failure_counter.labels(stage="unexpected").inc()
                    logger.error(
                        f"Failed to update confidence for expense {expense.id}: {e}",
                        extra={"user_id": user_id, "planned_expense_id": expense.id},
                    )

        logger.info(
            f"Updated confidence levels for {len(results)} of {len(expenses)} planned expenses",
            extra={"user_id": user_id, "updated_count": len(results)},
        )
        return results

    def update_all_users(self) -> Dict[str, Any]:
        """
        Daily sweep over every user that still has PLANNED/SAVED expenses.

        Returns a summary; a failing user is counted and reported, never fatal.
        """
        started_at = self.clock()
        logger.info("Starting confidence level sweep")

        summary: Dict[str, Any] = {
            "total_users": 0,
            "success_count": 0,
            "error_count": 0,
            "updated_expenses": 0,
            "timestamp": started_at.isoformat(),
            "results": [],
        }

        user_ids = self.planned_expenses.list_user_ids_with_eligible()
        summary["total_users"] = len(user_ids)

        for user_id in user_ids:
            try:
                results = self.update_all_for_user(user_id)
                summary["success_count"] += 1
                summary["updated_expenses"] += len(results)
                summary["results"].append(
                    {"user_id": user_id, "updated_expenses": len(results), "status": "success"}
                )
            except Exception as e:
                self.db.rollback()
                summary["error_count"] += 1
                summary["results"].append({"user_id": user_id, "status": "error", "error": str(e)})
                logger.error(f"Failed to update confidence levels for user {user_id}: {e}", extra={"user_id": user_id})

        logger.info(
            f"Confidence level sweep completed: {summary['success_count']} users, "
            f"{summary['updated_expenses']} expenses, {summary['error_count']} errors"
        )
        return summary
