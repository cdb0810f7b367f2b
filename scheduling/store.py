"""Read-only access to the scheduling data the engine consumes.

Every read is wrapped so a database failure surfaces as ``UpstreamReadError``
and the engine can answer "unknown" instead of "no".
"""
from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime, tzinfo
from typing import Iterable, Optional
import pytz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, UpstreamReadError, ValidationError
from availability import service as availability_service
from business.models import Business
from business import service as business_service
from job.models import Job
from job import service as job_service
from worker.models import Worker, WorkerStatus
from worker import service as worker_service

from .intervals import as_utc
from .worker_calendar import Booking, ExceptionOverride, WorkerCalendar

logger = logging.getLogger(__name__)


def business_tz(business: Business) -> tzinfo:
    try:
        return pytz.timezone(business.timezone or "UTC")
    except pytz.UnknownTimeZoneError:
        raise ValidationError(f"unknown business timezone: {business.timezone}")


class SchedulingStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _reading(self, what: str):
        try:
            yield
        except SQLAlchemyError as exc:
            logger.warning("read failed (%s): %s", what, exc)
            raise UpstreamReadError(f"could not read {what}") from exc

    # ---------- single records ----------

    def job(self, job_id: int, business_id: Optional[int] = None) -> Job:
        with self._reading("job"):
            job = job_service.get_job(self.db, job_id)
        if not job or (business_id is not None and job.business_id != business_id):
            raise NotFoundError("job not found")
        return job

    def worker(self, worker_id: int, business_id: Optional[int] = None) -> Worker:
        with self._reading("worker"):
            worker = worker_service.get_worker(self.db, worker_id)
        if not worker or (business_id is not None and worker.business_id != business_id):
            raise NotFoundError("worker not found")
        return worker

    def business(self, business_id: int) -> Business:
        with self._reading("business"):
            business = business_service.get_business(self.db, business_id)
        if not business:
            raise NotFoundError("business not found")
        return business

    # ---------- collections ----------

    def workers(self, business_id: int, worker_ids: Iterable[int]) -> list[Worker]:
        """The requested workers of a business, in id order; unknown ids are an error."""
        wanted = set(worker_ids)
        if not wanted:
            return []
        with self._reading("workers"):
            rows = worker_service.get_workers(self.db, business_id=business_id, worker_ids=wanted)
        missing = wanted - {w.id for w in rows}
        if missing:
            raise NotFoundError(f"worker not found: {', '.join(str(i) for i in sorted(missing))}")
        return rows

    def active_workers(self, business_id: int) -> list[Worker]:
        with self._reading("workers"):
            return worker_service.get_workers(self.db, business_id=business_id, status=WorkerStatus.active)

    def booked_minutes(
        self,
        worker_id: int,
        start: datetime,
        end: datetime,
        exclude_job_id: Optional[int] = None,
    ) -> int:
        with self._reading("jobs"):
            jobs = job_service.get_booked_jobs(
                self.db, worker_id=worker_id, start=start, end=end, exclude_job_id=exclude_job_id
            )
        return sum(j.duration_minutes or 0 for j in jobs)

    # ---------- calendar snapshots ----------

    def load_calendars(
        self,
        workers: list[Worker],
        tz: tzinfo,
        start: datetime,
        end: datetime,
    ) -> dict[int, WorkerCalendar]:
        """Weekly slots, exceptions and blocking jobs for ``workers`` over [start, end).

        All three reads finish before any calendar is handed out.
        """
        if not workers:
            return {}
        ids = [w.id for w in workers]
        first_day = as_utc(start).astimezone(tz).date()
        last_day = as_utc(end).astimezone(tz).date()

        with self._reading("weekly availability"):
            slots = availability_service.get_weekly_slots(self.db, worker_ids=ids)
        with self._reading("availability exceptions"):
            exceptions = availability_service.get_exceptions(
                self.db, worker_ids=ids, date_from=first_day, date_to=last_day
            )
        with self._reading("jobs"):
            jobs = job_service.get_blocking_jobs(self.db, worker_ids=ids, start=start, end=end)

        calendars = {
            w.id: WorkerCalendar(
                worker_id=w.id,
                name=w.name,
                is_active=w.status == WorkerStatus.active,
                tz=tz,
                skills=frozenset(w.skills or ()),
            )
            for w in workers
        }

        weekly: dict[int, dict[int, list]] = {i: {} for i in ids}
        for s in slots:
            weekly[s.worker_id].setdefault(s.day_of_week, []).append((s.start_time, s.end_time))
        for worker_id, by_day in weekly.items():
            calendars[worker_id].weekly = {d: tuple(v) for d, v in by_day.items()}

        for e in exceptions:
            calendars[e.worker_id].exceptions[e.date] = ExceptionOverride(
                is_available=e.is_available,
                start_time=e.start_time,
                end_time=e.end_time,
                reason=e.reason,
            )

        for j in jobs:
            calendars[j.worker_id].bookings.append(Booking(j.id, j.title, as_utc(j.scheduled_at), j.ends_at))
        return calendars

    def load_calendar(self, worker_id: int, start: datetime, end: datetime) -> WorkerCalendar:
        worker = self.worker(worker_id)
        tz = business_tz(self.business(worker.business_id))
        return self.load_calendars([worker], tz, start, end)[worker_id]
