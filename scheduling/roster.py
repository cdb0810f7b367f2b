"""Business-wide views over the engine: every active worker checked against one
interval, and the first free slot of each worker for a job."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.exceptions import UpstreamReadError
from job.models import Job

from .resolver import evaluate, unknown_verdict, validate_interval
from .slot_search import Candidate, SlotSearchEngine
from .store import SchedulingStore, business_tz
from .utilization import efficiency_rating, week_bounds

logger = logging.getLogger(__name__)


@dataclass
class WorkerAvailability:
    worker_id: int
    worker_name: str
    available: bool
    reason: str
    determinate: bool
    conflicting_jobs: int
    utilization: float
    efficiency_rating: str


@dataclass
class NextAvailable:
    worker_id: int
    worker_name: str
    slot: Optional[Candidate] = None
    no_availability_reason: Optional[str] = None
    availability_unknown: bool = False


class WorkerRoster:
    def __init__(self, store: SchedulingStore, engine: Optional[SlotSearchEngine] = None):
        self.store = store
        self.engine = engine or SlotSearchEngine(store)

    def check_all(
        self,
        business_id: int,
        start: datetime,
        end: datetime,
        exclude_job_id: Optional[int] = None,
    ) -> list[WorkerAvailability]:
        """Every active worker against [start, end), free ones first, then by load."""
        start, end = validate_interval(start, end)
        workers = self.store.active_workers(business_id)
        if not workers:
            return []
        tz = business_tz(self.store.business(business_id))

        calendars, failure = {}, None
        try:
            calendars = self.store.load_calendars(workers, tz, start, end)
        except UpstreamReadError as exc:
            logger.warning("availability of business %s workers unknown: %s", business_id, exc.detail)
            failure = exc.detail

        # load is measured over the local week the interval starts in
        week_start, week_end = week_bounds(start, tz)
        out = []
        for w in workers:
            if failure is None:
                verdict = evaluate(calendars[w.id], start, end, exclude_job_id)
            else:
                verdict = unknown_verdict(failure)
            percent = self.engine.estimator.estimate(w.id, week_start, week_end)
            out.append(WorkerAvailability(
                worker_id=w.id,
                worker_name=w.name,
                available=verdict.available,
                reason=verdict.reason,
                determinate=verdict.determinate,
                conflicting_jobs=len(verdict.conflicts),
                utilization=percent,
                efficiency_rating=efficiency_rating(percent),
            ))
        out.sort(key=lambda a: (not a.available, a.utilization, a.worker_id))
        return out

    def next_available(
        self,
        job: Job,
        after: Optional[datetime] = None,
        search_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[NextAvailable]:
        """First feasible slot of each active worker for ``job``, soonest first.

        Workers with nothing in the window are listed last with the reason.
        """
        out = []
        for w in self.store.active_workers(job.business_id):
            result = self.engine.search(
                job,
                preferred=after,
                search_days=search_days,
                candidate_worker_ids=[w.id],
                now=now,
                rank=False,
            )
            out.append(NextAvailable(
                worker_id=w.id,
                worker_name=w.name,
                slot=result.nearest_available_slot,
                no_availability_reason=result.no_availability_reason,
                availability_unknown=result.availability_unknown,
            ))
        never = datetime.max.replace(tzinfo=timezone.utc)
        out.sort(key=lambda n: (n.slot.start if n.slot else never, n.worker_id))
        return out
