"""Debounced background recompute of confidence levels after data changes"""

import asyncio
import logging
from typing import Callable, List, Optional, Set
from sqlalchemy.orm import Session

from budget_confidence.config import settings
from budget_confidence.domain.models import ConfidenceResult
from budget_confidence.infrastructure.observability.metrics import queued_users_counter
from budget_confidence.services.confidence import ConfidenceService
from budget_confidence.utils.date_utils import Clock, utcnow

logger = logging.getLogger(__name__)


class ConfidenceUpdateQueue:
    """
    Coalesces recompute requests per user and runs them after a quiet period.

    Owned by the application (one per app instance) and handed to endpoints
    through dependency injection. Queueing only changes when a user's
    expenses are recomputed, never the computed result.

    Retry/timing strategy:
    - First request wakes the worker, which waits `debounce_seconds` so a
      burst of writes collapses into one recompute per user
    - Users queued while a batch is running are picked up after
      `requeue_delay_seconds`
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        debounce_seconds: Optional[float] = None,
        requeue_delay_seconds: Optional[float] = None,
        clock: Clock = utcnow,
    ):
        self.session_factory = session_factory
        self.debounce_seconds = (
            settings.confidence_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        self.requeue_delay_seconds = (
            settings.confidence_requeue_delay_seconds if requeue_delay_seconds is None else requeue_delay_seconds
        )
        self.clock = clock
        self._pending: Set[str] = set()
        self._wakeup = asyncio.Event()
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> Set[str]:
        return set(self._pending)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        """True while a flush is recomputing users"""
        return self._lock.locked()

    def enqueue(self, user_id: str) -> None:
        """Queue a user for a debounced recompute of all their planned expenses"""
        self._pending.add(user_id)
        queued_users_counter.inc()
        self._wakeup.set()

    async def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self, drain: bool = True) -> None:
        """Cancel the worker; with `drain`, process whatever is still queued"""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if drain:
            await self.flush()

    async def flush(self) -> int:
        """Recompute every queued user now. Returns the number of users processed."""
        async with self._lock:
            user_ids = sorted(self._pending)
            self._pending.clear()
            if not user_ids:
                return 0

            logger.info(f"Processing confidence level updates for {len(user_ids)} users")
            for user_id in user_ids:
                try:
                    results = await asyncio.to_thread(self._update_user, user_id)
                    logger.info(
                        f"Updated confidence levels for user {user_id}",
                        extra={"user_id": user_id, "updated_count": len(results)},
                    )
                except Exception as e:
                    logger.error(f"Failed to update confidence levels for user {user_id}: {e}", extra={"user_id": user_id})

            return len(user_ids)

    def _update_user(self, user_id: str) -> List[ConfidenceResult]:
        db = self.session_factory()
        try:
            return ConfidenceService(db, clock=self.clock).update_all_for_user(user_id)
        finally:
            db.close()

    async def _run(self) -> None:
        delay = self.debounce_seconds
        while True:
            await self._wakeup.wait()
            await asyncio.sleep(delay)
            self._wakeup.clear()
            await self.flush()

            # Anything queued during the flush already re-set the event
            delay = self.requeue_delay_seconds if self._wakeup.is_set() else self.debounce_seconds
