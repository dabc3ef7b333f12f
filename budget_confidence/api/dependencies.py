"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from budget_confidence.infrastructure.database.session import get_db
from budget_confidence.services.confidence import ConfidenceService
from budget_confidence.services.update_queue import ConfidenceUpdateQueue
from budget_confidence.utils.date_utils import Clock, utcnow


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    """Reference clock for projections (overridden in tests)"""
    return utcnow


def get_confidence_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> ConfidenceService:
    """Provide confidence service bound to the request's session"""
    return ConfidenceService(db, clock=clock)


def get_update_queue(request: Request) -> ConfidenceUpdateQueue:
    """Provide the application's update queue"""
    return request.app.state.update_queue
