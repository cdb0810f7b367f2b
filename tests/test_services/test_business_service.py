import unittest
from datetime import time

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.exceptions import NotFoundError, ValidationError
import models_bootstrap  # noqa: F401

from business.models import Business
from business.schema import BusinessHoursUpdate
from business import service


class BusinessServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        self.business = Business(name="Acme Plumbing")
        self.db.add(self.business)
        self.db.commit()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_defaults(self):
        b = service.get_business_or_404(self.db, self.business.id)
        self.assertEqual(b.timezone, "UTC")
        self.assertEqual(b.working_days, [1, 2, 3, 4, 5])
        self.assertEqual((b.start_time, b.end_time), (time(8), time(18)))
        self.assertEqual(b.minimum_notice_hours, 24)
        self.assertEqual(b.max_advance_booking_days, 90)

    def test_unknown_business(self):
        self.assertIsNone(service.get_business(self.db, 9999))
        with self.assertRaises(NotFoundError):
            service.get_business_or_404(self.db, 9999)

    def test_update_hours_is_partial(self):
        patch = BusinessHoursUpdate(
            timezone="Europe/Oslo", working_days=[5, 0, 0, 2], break_start=time(12), break_end=time(12, 30)
        )
        b = service.update_business_hours(self.db, self.business.id, patch)
        self.assertEqual(b.timezone, "Europe/Oslo")
        self.assertEqual(b.working_days, [0, 2, 5])
        self.assertEqual(b.break_start, time(12))
        self.assertEqual(b.start_time, time(8))

    def test_update_rejects_inverted_hours_on_merged_row(self):
        with self.assertRaises(ValidationError):
            service.update_business_hours(self.db, self.business.id, BusinessHoursUpdate(end_time=time(7)))
        self.db.expire_all()
        self.assertEqual(service.get_business(self.db, self.business.id).end_time, time(18))

    def test_schema_rejects_unknown_timezone(self):
        with self.assertRaises(ValueError):
            BusinessHoursUpdate(timezone="Mars/Olympus")

    def test_schema_accepts_day_names(self):
        patch = BusinessHoursUpdate(working_days=["Monday", "friday", 0])
        self.assertEqual(patch.working_days, [0, 1, 5])

    def test_schema_rejects_unknown_day_name(self):
        with self.assertRaises(ValueError):
            BusinessHoursUpdate(working_days=["funday"])

    def test_schema_rejects_out_of_range_weekday(self):
        with self.assertRaises(ValueError):
            BusinessHoursUpdate(working_days=[0, 7])


if __name__ == "__main__":
    unittest.main()
