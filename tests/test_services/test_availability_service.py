import unittest
from datetime import date, time

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.exceptions import NotFoundError
import models_bootstrap  # noqa: F401

from business.models import Business
from worker.models import Worker
from availability.schema import (
    WeeklyAvailabilityUpsertPayload,
    AvailabilityExceptionCreate,
)
from availability import service


class AvailabilityServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        self.business = Business(name="Acme Plumbing")
        self.other_business = Business(name="Other Co")
        self.db.add_all([self.business, self.other_business])
        self.db.flush()

        self.worker = Worker(business_id=self.business.id, name="Ana")
        self.db.add(self.worker)
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _slots(self, *items):
        return WeeklyAvailabilityUpsertPayload(slots=[
            {"day_of_week": d, "start_time": s, "end_time": e} for d, s, e in items
        ])

    # ---------- weekly slots ----------

    def test_replace_weekly_slots_keeps_split_shifts(self):
        rows = service.replace_weekly_slots(
            self.db, business_id=self.business.id, worker_id=self.worker.id,
            payload=self._slots((1, time(9), time(12)), (1, time(13), time(17)), (2, time(8), time(16))),
        )
        self.assertEqual(len(rows), 3)
        monday = service.get_weekly_slots(self.db, worker_ids=[self.worker.id], day_of_week=1)
        self.assertEqual([(s.start_time, s.end_time) for s in monday], [(time(9), time(12)), (time(13), time(17))])

    def test_replace_weekly_slots_replaces_all(self):
        service.replace_weekly_slots(
            self.db, business_id=self.business.id, worker_id=self.worker.id,
            payload=self._slots((0, time(9), time(12))),
        )
        service.replace_weekly_slots(
            self.db, business_id=self.business.id, worker_id=self.worker.id,
            payload=self._slots((4, time(10), time(14))),
        )
        rows = service.get_weekly_slots(self.db, worker_ids=[self.worker.id])
        self.assertEqual([(r.day_of_week, r.start_time) for r in rows], [(4, time(10))])

    def test_duplicate_weekly_slot_raises_integrity_error(self):
        with self.assertRaises(IntegrityError):
            service.replace_weekly_slots(
                self.db, business_id=self.business.id, worker_id=self.worker.id,
                payload=self._slots((0, time(9), time(12)), (0, time(9), time(12))),
            )

    def test_worker_of_other_business_is_not_found(self):
        with self.assertRaises(NotFoundError):
            service.replace_weekly_slots(
                self.db, business_id=self.other_business.id, worker_id=self.worker.id,
                payload=self._slots((0, time(9), time(12))),
            )

    # ---------- exceptions ----------

    def _exception(self, day, **kw):
        dto = AvailabilityExceptionCreate(
            business_id=self.business.id, worker_id=self.worker.id, date=day, **kw
        )
        return service.create_exception(self.db, dto)

    def test_create_and_filter_exceptions(self):
        self._exception(date(2030, 1, 7), is_available=False, reason="Dentist")
        self._exception(date(2030, 1, 9), is_available=True, start_time=time(12), end_time=time(14))
        self._exception(date(2030, 2, 1))

        rows = service.get_exceptions(
            self.db, worker_ids=[self.worker.id], date_from=date(2030, 1, 1), date_to=date(2030, 1, 31)
        )
        self.assertEqual([r.date for r in rows], [date(2030, 1, 7), date(2030, 1, 9)])
        self.assertEqual(rows[0].reason, "Dentist")
        self.assertTrue(rows[1].is_available)

    def test_second_exception_on_same_date_is_rejected(self):
        self._exception(date(2030, 1, 7))
        with self.assertRaises(IntegrityError):
            self._exception(date(2030, 1, 7), is_available=True)

    def test_delete_exception_is_scoped_to_business(self):
        row = self._exception(date(2030, 1, 7))

        self.assertFalse(service.delete_exception(
            self.db, row.id, worker_id=self.worker.id, business_id=self.other_business.id
        ))
        self.assertTrue(service.delete_exception(
            self.db, row.id, worker_id=self.worker.id, business_id=self.business.id
        ))
        self.assertEqual(service.get_exceptions(self.db, worker_ids=[self.worker.id]), [])

    def test_exception_hours_must_be_paired(self):
        with self.assertRaises(ValueError):
            AvailabilityExceptionCreate(
                business_id=self.business.id, worker_id=self.worker.id,
                date=date(2030, 1, 7), is_available=True, start_time=time(9),
            )

    def test_exception_hours_only_when_available(self):
        with self.assertRaises(ValueError):
            AvailabilityExceptionCreate(
                business_id=self.business.id, worker_id=self.worker.id,
                date=date(2030, 1, 7), is_available=False, start_time=time(9), end_time=time(12),
            )


if __name__ == "__main__":
    unittest.main()
