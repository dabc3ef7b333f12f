"""Confidence endpoints - recompute, queue and preview planned expense affordability"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status

from budget_confidence.api.v1.schemas import (
    BatchConfidenceResponse,
    ConfidencePreviewRequest,
    ConfidenceResponse,
    QueueResponse,
)
from budget_confidence.api.dependencies import get_confidence_service, get_request_id, get_update_queue
from budget_confidence.domain.exceptions import PersistenceError, PlannedExpenseNotFoundError
from budget_confidence.domain.models import ConfidenceInput
from budget_confidence.services.confidence import ConfidenceService
from budget_confidence.services.update_queue import ConfidenceUpdateQueue

router = APIRouter()


@router.post("/planned-expenses/{planned_expense_id}/confidence", response_model=ConfidenceResponse)
def update_planned_expense_confidence(
    planned_expense_id: str,
    request: Request,
    service: ConfidenceService = Depends(get_confidence_service),
):
    """
    Recompute and persist the confidence level of one planned expense.

    Returns:
        Full projection behind the new tier
    """
    request_id = get_request_id(request)

    try:
        result = service.update_one(planned_expense_id)
    except PlannedExpenseNotFoundError as e:
        logging.warning(f"Planned expense not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail="Planned expense not found")
    except PersistenceError as e:
        logging.error(f"Persistence error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to save confidence level")

    return ConfidenceResponse.from_result(result)


@router.post("/users/{user_id}/confidence", response_model=BatchConfidenceResponse)
def update_user_confidence(
    user_id: str,
    service: ConfidenceService = Depends(get_confidence_service),
):
    """Recompute every PLANNED/SAVED expense of a user; failed expenses are left out"""
    results = service.update_all_for_user(user_id)

    return BatchConfidenceResponse(
        user_id=user_id,
        message=f"Updated confidence levels for {len(results)} planned expenses",
        updated_count=len(results),
        results=[ConfidenceResponse.from_result(r) for r in results],
    )


@router.post(
    "/users/{user_id}/confidence/queue",
    response_model=QueueResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def queue_user_confidence(
    user_id: str,
    queue: ConfidenceUpdateQueue = Depends(get_update_queue),
):
    """Schedule a debounced recompute, e.g. after the user's transactions changed"""
    queue.enqueue(user_id)
    return QueueResponse(user_id=user_id, pending_users=len(queue.pending))


@router.post("/confidence/preview", response_model=ConfidenceResponse)
def preview_confidence(
    request_body: ConfidencePreviewRequest,
    service: ConfidenceService = Depends(get_confidence_service),
):
    """Score a hypothetical expense without saving anything"""
    result = service.score_confidence(
        ConfidenceInput(
            user_id=request_body.user_id,
            planned_expense_id=request_body.planned_expense_id,
            target_amount=request_body.target_amount,
            target_date=request_body.target_date,
            wallet_id=request_body.wallet_id,
        )
    )
    return ConfidenceResponse.from_result(result)
