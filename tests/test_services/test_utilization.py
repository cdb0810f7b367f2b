import unittest
from datetime import datetime, date, timedelta, timezone
from unittest.mock import patch
import pytz

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.exceptions import ValidationError
import models_bootstrap  # noqa: F401

from business.models import Business
from worker.models import Worker
from job.models import Job, JobStatus

from scheduling.store import SchedulingStore
from scheduling.utilization import UtilizationEstimator, efficiency_rating, utilization_percent, week_bounds

MON = date(2030, 1, 7)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


class UtilizationHelperTests(unittest.TestCase):
    def test_efficiency_bands(self):
        self.assertEqual(efficiency_rating(0), "optimal")
        self.assertEqual(efficiency_rating(60), "optimal")
        self.assertEqual(efficiency_rating(60.1), "good")
        self.assertEqual(efficiency_rating(80), "good")
        self.assertEqual(efficiency_rating(95), "busy")
        self.assertEqual(efficiency_rating(95.1), "overloaded")

    def test_week_bounds_start_on_local_sunday(self):
        wed = at(MON + timedelta(days=2), 15)
        start, end = week_bounds(wed, pytz.utc)
        self.assertEqual(start, at(MON - timedelta(days=1), 0))
        self.assertEqual(end, at(MON + timedelta(days=6), 0))

    def test_sunday_opens_a_new_week(self):
        sun = at(MON + timedelta(days=6), 9)
        start, _ = week_bounds(sun, pytz.utc)
        self.assertEqual(start, at(MON + timedelta(days=6), 0))

    def test_week_bounds_follow_business_timezone(self):
        # Sunday 02:00 UTC is still Saturday evening in New York
        sun = MON - timedelta(days=1)
        start, end = week_bounds(at(sun, 2), pytz.timezone("America/New_York"))
        self.assertEqual(start, datetime(2029, 12, 30, 5, 0, tzinfo=timezone.utc))
        self.assertEqual(end - start, timedelta(days=7))

    def test_percent_scales_capacity_to_window(self):
        week = (at(MON, 0), at(MON + timedelta(days=7), 0))
        self.assertEqual(utilization_percent(20 * 60, *week, 40), 50.0)
        self.assertEqual(utilization_percent(60 * 60, *week, 40), 100.0)

        one_day = (at(MON, 0), at(MON + timedelta(days=1), 0))
        self.assertEqual(utilization_percent(2 * 60, *one_day, 40), 35.0)


class UtilizationEstimatorTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        self.business = Business(name="Acme Plumbing", timezone="UTC")
        self.db.add(self.business)
        self.db.flush()
        self.worker = Worker(business_id=self.business.id, name="Ana")
        self.db.add(self.worker)
        self.db.commit()

        self.estimator = UtilizationEstimator(SchedulingStore(self.db))
        self.week = (at(MON, 0), at(MON + timedelta(days=7), 0))

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _job(self, start, minutes, status=JobStatus.scheduled):
        job = Job(
            business_id=self.business.id, worker_id=self.worker.id, title="Job",
            scheduled_at=start, duration_minutes=minutes, status=status,
        )
        self.db.add(job)
        self.db.commit()
        return job

    def test_no_jobs_is_zero(self):
        self.assertEqual(self.estimator.estimate(self.worker.id, *self.week), 0.0)

    def test_booked_minutes_against_forty_hour_week(self):
        self._job(at(MON, 8), 600)
        self._job(at(MON + timedelta(days=1), 8), 600)
        self.assertEqual(self.estimator.estimate(self.worker.id, *self.week), 50.0)

    def test_cancelled_jobs_do_not_count_but_completed_do(self):
        self._job(at(MON, 8), 600, status=JobStatus.cancelled)
        self._job(at(MON + timedelta(days=1), 8), 240, status=JobStatus.completed)
        self.assertEqual(self.estimator.estimate(self.worker.id, *self.week), 10.0)

    def test_jobs_outside_window_do_not_count(self):
        self._job(at(MON, 0) - timedelta(hours=2), 600)
        self._job(at(MON + timedelta(days=7), 0), 600)
        self.assertEqual(self.estimator.estimate(self.worker.id, *self.week), 0.0)

    def test_excluded_job_does_not_count(self):
        job = self._job(at(MON, 8), 600)
        self.assertEqual(self.estimator.estimate(self.worker.id, *self.week, exclude_job_id=job.id), 0.0)

    def test_overbooking_is_clamped(self):
        for d in range(5):
            self._job(at(MON + timedelta(days=d), 6), 720)
        self.assertEqual(self.estimator.estimate(self.worker.id, *self.week), 100.0)

    def test_invalid_window_raises(self):
        with self.assertRaises(ValidationError):
            self.estimator.estimate(self.worker.id, self.week[1], self.week[0])

    def test_read_failure_returns_neutral_fallback(self):
        self._job(at(MON, 8), 600)
        boom = OperationalError("SELECT jobs", {}, Exception("connection reset"))
        with patch("scheduling.store.job_service.get_booked_jobs", side_effect=boom):
            self.assertEqual(self.estimator.estimate(self.worker.id, *self.week), 50.0)


if __name__ == "__main__":
    unittest.main()
