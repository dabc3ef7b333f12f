"""GET|POST /v1/cron/update-confidence - daily recompute for every user with open plans"""

import hmac
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException

from budget_confidence.api.v1.schemas import SweepResponse
from budget_confidence.api.dependencies import get_confidence_service
from budget_confidence.config import settings
from budget_confidence.services.confidence import ConfidenceService

router = APIRouter()


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>`; an unset secret rejects every call"""
    expected = f"Bearer {settings.cron_secret}"
    if not settings.cron_secret or not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.api_route(
    "/cron/update-confidence",
    methods=["GET", "POST"],
    response_model=SweepResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def run_confidence_sweep(service: ConfidenceService = Depends(get_confidence_service)):
    """
    Recompute confidence levels for all users with PLANNED/SAVED expenses.

    Meant to be called once a day by a scheduler so tiers track changing
    balances even when the user does nothing.
    """
    try:
        summary = service.update_all_users()
    except Exception as e:
        logging.error(f"Confidence sweep failed: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return SweepResponse(message="Confidence level update completed", **summary)
