"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from budget_confidence.domain.models import ConfidenceLevel, ConfidenceResult
from budget_confidence.utils.date_utils import to_naive_utc


class ConfidencePreviewRequest(BaseModel):
    """Request body for POST /v1/confidence/preview"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    target_amount: Decimal = Field(..., ge=0, description="Amount the user intends to spend")
    target_date: datetime = Field(..., description="When the expense is due")
    wallet_id: Optional[str] = Field(None, description="Evaluate against one wallet only")
    planned_expense_id: Optional[str] = Field(None, description="Existing expense to leave out of competing claims")

    @field_validator("target_date")
    @classmethod
    def normalize_target_date(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class ConfidenceResponse(BaseModel):
    """Affordability confidence for one (possibly hypothetical) expense"""

    planned_expense_id: Optional[str] = None
    confidence_level: ConfidenceLevel
    score: int
    current_balance: Decimal
    projected_balance: Decimal
    total_projected_income: Decimal
    projected_expenses: Decimal
    competing_claims: Decimal
    risk_factors: List[str]
    can_afford: bool
    days_until_target: int

    @classmethod
    def from_result(cls, result: ConfidenceResult) -> "ConfidenceResponse":
        return cls(
            planned_expense_id=result.planned_expense_id,
            confidence_level=result.confidence_level,
            score=result.score,
            current_balance=result.current_balance,
            projected_balance=result.projected_balance,
            total_projected_income=result.total_projected_income,
            projected_expenses=result.projected_expenses,
            competing_claims=result.competing_claims,
            risk_factors=list(result.risk_factors),
            can_afford=result.can_afford,
            days_until_target=result.days_until_target,
        )


class BatchConfidenceResponse(BaseModel):
    """Response for POST /v1/users/{user_id}/confidence"""

    user_id: str
    message: str
    updated_count: int
    results: List[ConfidenceResponse]


class QueueResponse(BaseModel):
    """Response for POST /v1/users/{user_id}/confidence/queue"""

    user_id: str
    status: str = "queued"
    pending_users: int


class SweepUserResult(BaseModel):
    """Outcome of the daily sweep for one user"""

    user_id: str
    status: str
    updated_expenses: Optional[int] = None
    error: Optional[str] = None


class SweepResponse(BaseModel):
    """Response for the confidence cron endpoint"""

    message: str
    total_users: int
    success_count: int
    error_count: int
    updated_expenses: int
    timestamp: str
    results: List[SweepUserResult]
