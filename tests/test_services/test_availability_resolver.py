import unittest
from datetime import datetime, date, time, timedelta, timezone
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.exceptions import NotFoundError, ValidationError
import models_bootstrap  # noqa: F401

from business.models import Business
from worker.models import Worker, WorkerStatus
from availability.models import WeeklyAvailabilitySlot, AvailabilityException
from job.models import Job, JobStatus

from scheduling.resolver import AvailabilityResolver, REASON_AVAILABLE, REASON_INACTIVE, REASON_OUTSIDE_HOURS
from scheduling.store import SchedulingStore

# 2030-01-07 is a Monday
MON = date(2030, 1, 7)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


class AvailabilityResolverTests(unittest.TestCase):
    def setUp(self):
        # fresh in-memory DB for each test
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        self.business = Business(name="Acme Plumbing", timezone="UTC")
        self.db.add(self.business)
        self.db.flush()

        self.worker = Worker(business_id=self.business.id, name="Ana", skills=["plumbing"])
        self.db.add(self.worker)
        self.db.flush()

        # Mon 08:00-17:00
        self.db.add(WeeklyAvailabilitySlot(
            worker_id=self.worker.id, day_of_week=1, start_time=time(8, 0), end_time=time(17, 0)
        ))
        self.db.commit()

        self.resolver = AvailabilityResolver(SchedulingStore(self.db))

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _job(self, start: datetime, minutes: int = 60, status=JobStatus.scheduled, title="Job", worker=None):
        job = Job(
            business_id=self.business.id,
            worker_id=(worker or self.worker).id,
            title=title,
            scheduled_at=start,
            duration_minutes=minutes,
            status=status,
        )
        self.db.add(job)
        self.db.commit()
        return job

    # ---------- weekly pattern ----------

    def test_interval_inside_weekly_slot_is_available(self):
        verdict = self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10))
        self.assertTrue(verdict.available)
        self.assertEqual(verdict.reason, REASON_AVAILABLE)
        self.assertEqual(verdict.conflicts, [])

    def test_interval_on_day_without_slots_is_outside_hours(self):
        tue = MON + timedelta(days=1)
        verdict = self.resolver.resolve(self.worker.id, at(tue, 9), at(tue, 10))
        self.assertFalse(verdict.available)
        self.assertEqual(verdict.reason, REASON_OUTSIDE_HOURS)

    def test_weekday_zero_is_sunday(self):
        self.db.add(WeeklyAvailabilitySlot(
            worker_id=self.worker.id, day_of_week=0, start_time=time(10, 0), end_time=time(14, 0)
        ))
        self.db.commit()
        sun = MON - timedelta(days=1)
        sat = MON + timedelta(days=5)

        self.assertTrue(self.resolver.resolve(self.worker.id, at(sun, 11), at(sun, 12)).available)
        self.assertFalse(self.resolver.resolve(self.worker.id, at(sat, 11), at(sat, 12)).available)
        # the Monday row (day 1) still only opens Monday
        self.assertFalse(self.resolver.resolve(self.worker.id, at(sun, 9), at(sun, 10)).available)

    def test_interval_running_past_slot_end_is_not_available(self):
        verdict = self.resolver.resolve(self.worker.id, at(MON, 16, 30), at(MON, 17, 30))
        self.assertFalse(verdict.available)

    def test_interval_spanning_gap_between_slots_is_not_available(self):
        # split shift 09:00-12:00 and 13:00-17:00 on Tuesday
        self.db.add_all([
            WeeklyAvailabilitySlot(worker_id=self.worker.id, day_of_week=2, start_time=time(9, 0), end_time=time(12, 0)),
            WeeklyAvailabilitySlot(worker_id=self.worker.id, day_of_week=2, start_time=time(13, 0), end_time=time(17, 0)),
        ])
        self.db.commit()
        tue = MON + timedelta(days=1)

        verdict = self.resolver.resolve(self.worker.id, at(tue, 11, 30), at(tue, 13, 30))
        self.assertFalse(verdict.available)
        self.assertEqual(verdict.reason, REASON_OUTSIDE_HOURS)

        # each half on its own is fine
        self.assertTrue(self.resolver.resolve(self.worker.id, at(tue, 10), at(tue, 12)).available)
        self.assertTrue(self.resolver.resolve(self.worker.id, at(tue, 13), at(tue, 15)).available)

    # ---------- exceptions ----------

    def test_unavailable_exception_overrides_weekly_slot(self):
        self.db.add(AvailabilityException(worker_id=self.worker.id, date=MON, is_available=False, reason="Sick"))
        self.db.commit()

        verdict = self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10))
        self.assertFalse(verdict.available)
        self.assertEqual(verdict.reason, REASON_OUTSIDE_HOURS)

    def test_available_exception_hours_replace_weekly_slot(self):
        self.db.add(AvailabilityException(
            worker_id=self.worker.id, date=MON, is_available=True,
            start_time=time(12, 0), end_time=time(14, 0),
        ))
        self.db.commit()

        self.assertFalse(self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10)).available)
        self.assertTrue(self.resolver.resolve(self.worker.id, at(MON, 12), at(MON, 13)).available)

    def test_all_day_exception_opens_a_day_without_slots(self):
        sun = MON - timedelta(days=1)
        self.db.add(AvailabilityException(worker_id=self.worker.id, date=sun, is_available=True))
        self.db.commit()

        self.assertTrue(self.resolver.resolve(self.worker.id, at(sun, 3), at(sun, 5)).available)

    def test_exception_on_other_date_does_not_apply(self):
        self.db.add(AvailabilityException(
            worker_id=self.worker.id, date=MON + timedelta(days=7), is_available=False
        ))
        self.db.commit()

        self.assertTrue(self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10)).available)

    # ---------- bookings ----------

    def test_overlapping_job_is_a_conflict_and_touching_job_is_not(self):
        job = self._job(at(MON, 10), 60, title="Boiler repair")

        busy = self.resolver.resolve(self.worker.id, at(MON, 10, 30), at(MON, 11, 30))
        self.assertFalse(busy.available)
        self.assertEqual([c.id for c in busy.conflicts], [job.id])
        self.assertEqual(busy.conflicts[0].title, "Boiler repair")
        self.assertTrue(busy.reason.startswith("Conflicts: "))
        self.assertIn("Boiler repair", busy.reason)

        free = self.resolver.resolve(self.worker.id, at(MON, 11), at(MON, 12))
        self.assertTrue(free.available)

    def test_cancelled_and_completed_jobs_do_not_block(self):
        self._job(at(MON, 9), 60, status=JobStatus.cancelled)
        self._job(at(MON, 9), 60, status=JobStatus.completed)

        self.assertTrue(self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10)).available)

    def test_in_progress_and_rescheduled_jobs_block(self):
        self._job(at(MON, 9), 60, status=JobStatus.in_progress)
        self._job(at(MON, 11), 60, status=JobStatus.rescheduled)

        self.assertFalse(self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10)).available)
        self.assertFalse(self.resolver.resolve(self.worker.id, at(MON, 11), at(MON, 12)).available)

    def test_excluded_job_does_not_conflict_with_itself(self):
        job = self._job(at(MON, 10), 60)

        verdict = self.resolver.resolve(self.worker.id, at(MON, 10, 30), at(MON, 11, 30), exclude_job_id=job.id)
        self.assertTrue(verdict.available)

    def test_job_started_before_the_interval_still_conflicts(self):
        # 06:00 + 3h runs into 08:00-09:00
        self._job(at(MON, 6), 180)

        verdict = self.resolver.resolve(self.worker.id, at(MON, 8), at(MON, 9))
        self.assertFalse(verdict.available)
        self.assertEqual(len(verdict.conflicts), 1)

    def test_other_workers_jobs_do_not_conflict(self):
        other = Worker(business_id=self.business.id, name="Ben")
        self.db.add(other)
        self.db.commit()
        self._job(at(MON, 9), 60, worker=other)

        self.assertTrue(self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10)).available)

    # ---------- worker / input ----------

    def test_inactive_worker_is_never_available(self):
        self.worker.status = WorkerStatus.inactive
        self.db.commit()

        verdict = self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10))
        self.assertFalse(verdict.available)
        self.assertEqual(verdict.reason, REASON_INACTIVE)

    def test_end_not_after_start_raises(self):
        with self.assertRaises(ValidationError):
            self.resolver.resolve(self.worker.id, at(MON, 10), at(MON, 10))
        with self.assertRaises(ValidationError):
            self.resolver.resolve(self.worker.id, at(MON, 10), at(MON, 9))

    def test_unknown_worker_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.resolver.resolve(9999, at(MON, 9), at(MON, 10))

    def test_resolve_is_idempotent(self):
        self._job(at(MON, 10), 60)
        first = self.resolver.resolve(self.worker.id, at(MON, 9, 30), at(MON, 10, 30))
        second = self.resolver.resolve(self.worker.id, at(MON, 9, 30), at(MON, 10, 30))
        self.assertEqual(first, second)

    def test_business_timezone_decides_local_day_and_hours(self):
        self.business.timezone = "America/New_York"
        self.db.commit()

        # 08:00 EST is 13:00 UTC in January
        self.assertTrue(self.resolver.resolve(self.worker.id, at(MON, 13), at(MON, 14)).available)
        self.assertFalse(self.resolver.resolve(self.worker.id, at(MON, 12), at(MON, 13)).available)

    def test_naive_instants_are_read_as_utc(self):
        verdict = self.resolver.resolve(self.worker.id, datetime(2030, 1, 7, 9), datetime(2030, 1, 7, 10))
        self.assertTrue(verdict.available)

    # ---------- read failures ----------

    def test_read_failure_gives_indeterminate_verdict(self):
        boom = OperationalError("SELECT jobs", {}, Exception("database is locked"))
        with patch("scheduling.store.job_service.get_blocking_jobs", side_effect=boom):
            verdict = self.resolver.resolve(self.worker.id, at(MON, 9), at(MON, 10))

        self.assertFalse(verdict.available)
        self.assertFalse(verdict.determinate)
        self.assertTrue(verdict.reason.startswith("Availability could not be determined"))


if __name__ == "__main__":
    unittest.main()
