from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from core.config_loader import settings
from core.exceptions import ValidationError
from job.models import Job

from .compatibility import skill_match
from .slot_search import Candidate, SlotSearchEngine, SlotSearchResult
from .store import SchedulingStore

logger = logging.getLogger(__name__)


@dataclass
class RescheduleSlot:
    worker_id: int
    worker_name: str
    start: datetime
    end: datetime
    score: float
    utilization: float
    is_suggested: bool
    requires_worker_change: bool


@dataclass
class RescheduleOptions:
    job_id: int
    current_worker_id: Optional[int]
    current_scheduled_at: datetime
    searched_days: int
    generated_at: datetime
    window_start: datetime
    window_end: datetime
    slots: list[RescheduleSlot] = field(default_factory=list)
    nearest_available_slot: Optional[RescheduleSlot] = None
    no_availability_reason: Optional[str] = None
    truncated: bool = False
    availability_unknown: bool = False

    @property
    def summary(self) -> dict:
        return {
            "total_suggestions": len(self.slots),
            "suggested_count": sum(1 for s in self.slots if s.is_suggested),
            "has_nearest_slot": self.nearest_available_slot is not None,
        }


class RescheduleOptionGenerator:
    """Picks the candidate workers for a job and runs the slot search for them.

    Stateless; it never writes. Committing one of the options is the job of
    ``job.service.reschedule_job`` or ``swap.service.execute_swap``.
    """

    def __init__(self, store: SchedulingStore, engine: Optional[SlotSearchEngine] = None):
        self.store = store
        self.engine = engine or SlotSearchEngine(store)

    def candidate_worker_ids(self, job: Job, include_other_workers: bool) -> list[int]:
        if not include_other_workers:
            if job.worker_id is None:
                raise ValidationError("job has no assigned worker; include other workers to search")
            return [job.worker_id]

        ids = [job.worker_id] if job.worker_id is not None else []
        required = job.required_skills or ()
        for w in self.store.active_workers(job.business_id):
            if w.id == job.worker_id:
                continue
            # any overlap with the required skills is enough to be offered
            if not required or skill_match(required, w.skills or ()) > 0:
                ids.append(w.id)
        return ids

    def generate(
        self,
        job_id: int,
        preferred: Optional[datetime] = None,
        search_days: Optional[int] = None,
        include_other_workers: bool = False,
        now: Optional[datetime] = None,
        business_id: Optional[int] = None,
    ) -> RescheduleOptions:
        job = self.store.job(job_id, business_id)
        worker_ids = self.candidate_worker_ids(job, include_other_workers)
        result = self.engine.search(
            job,
            preferred=preferred,
            search_days=search_days,
            candidate_worker_ids=worker_ids,
            now=now,
        )
        options = self._annotate(
            job,
            result,
            searched_days=settings.SEARCH_DEFAULT_DAYS if search_days is None else search_days,
            generated_at=now or datetime.now(timezone.utc),
        )
        logger.info(
            "reschedule options job=%s candidates=%s slots=%s reason=%s",
            job.id, len(worker_ids), len(options.slots), options.no_availability_reason,
        )
        return options

    @staticmethod
    def _annotate(
        job: Job, result: SlotSearchResult, *, searched_days: int, generated_at: datetime
    ) -> RescheduleOptions:
        def slot(c: Candidate) -> RescheduleSlot:
            return RescheduleSlot(
                worker_id=c.worker_id,
                worker_name=c.worker_name,
                start=c.start,
                end=c.end,
                score=c.score,
                utilization=c.utilization,
                is_suggested=c.is_suggested,
                requires_worker_change=c.worker_id != job.worker_id,
            )

        nearest = result.nearest_available_slot
        return RescheduleOptions(
            job_id=job.id,
            current_worker_id=job.worker_id,
            current_scheduled_at=job.scheduled_at,
            searched_days=searched_days,
            generated_at=generated_at,
            window_start=result.window_start,
            window_end=result.window_end,
            slots=[slot(c) for c in result.slots],
            nearest_available_slot=slot(nearest) if nearest else None,
            no_availability_reason=result.no_availability_reason,
            truncated=result.truncated,
            availability_unknown=result.availability_unknown,
        )
