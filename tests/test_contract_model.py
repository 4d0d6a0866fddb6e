from __future__ import annotations

import datetime as dt
import unittest
from zoneinfo import ZoneInfo

from slotgrid.geometry import density_from_cfg, density_profile, window_from_cfg
from slotgrid.model import (
    Appointment,
    DensityProfile,
    GridWindow,
    Instant,
    InvalidGridWindow,
    InvalidInterval,
    ScheduleSegment,
    TimeInterval,
)

BASE = 1704067200000  # 2024-01-01T00:00:00Z
H = 60 * 60000


class TestModelContract(unittest.TestCase):
    def test_instant_identity_is_the_epoch(self) -> None:
        a = Instant(BASE, "UTC")
        b = Instant(BASE, "Europe/Oslo")
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertLess(a, Instant(BASE + 1))
        self.assertEqual(Instant.from_iso("2024-01-01T01:00:00+01:00"), a)
        self.assertEqual(a.plus_minutes(90).ms, BASE + 90 * 60000)
        self.assertEqual(b.isoformat(), "2024-01-01T01:00+01:00")

    def test_from_datetime_keeps_a_resolvable_zone(self) -> None:
        fixed = Instant.from_datetime(dt.datetime(2024, 1, 1, 9, tzinfo=dt.timezone(dt.timedelta(hours=2))))
        self.assertEqual(fixed.tz, "+02:00")
        self.assertEqual(fixed.ms, BASE + 7 * H)
        self.assertEqual(fixed.isoformat(), "2024-01-01T09:00+02:00")

        west = Instant.from_datetime(dt.datetime(2024, 1, 1, 9, 30, tzinfo=dt.timezone(-dt.timedelta(hours=5, minutes=30))))
        self.assertEqual(west.tz, "-05:30")
        self.assertEqual(west.isoformat(), "2024-01-01T09:30-05:30")

        self.assertEqual(Instant.from_datetime(dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)).tz, "UTC")

        oslo = Instant.from_datetime(dt.datetime(2024, 1, 1, 1, tzinfo=ZoneInfo("Europe/Oslo")))
        self.assertEqual(oslo.tz, "Europe/Oslo")
        self.assertEqual(oslo.ms, BASE)

    def test_instant_ordering_rejects_other_types(self) -> None:
        a = Instant(BASE)
        for other in (5, "2024-01-01", None):
            with self.subTest(other=other):
                with self.assertRaises(TypeError):
                    a < other
                with self.assertRaises(TypeError):
                    a >= other
                self.assertNotEqual(a, other)

    def test_interval_requires_start_before_end(self) -> None:
        with self.assertRaises(InvalidInterval):
            TimeInterval.from_ms(BASE, BASE)
        with self.assertRaises(InvalidInterval):
            TimeInterval.from_ms(BASE + H, BASE)
        # Still a ValueError for callers that only know the builtin.
        with self.assertRaises(ValueError):
            TimeInterval.from_ms(BASE + 1, BASE)

        iv = TimeInterval.from_ms(BASE, BASE + 45 * 60000)
        self.assertEqual(iv.duration_min, 45.0)

    def test_grid_window_validation(self) -> None:
        w = GridWindow(8, 20, 30)
        self.assertEqual(w.slots_per_hour, 2)
        self.assertEqual(w.total_slots, 24)
        self.assertEqual(GridWindow(0, 24, 15).total_slots, 96)

        for args in ((20, 8, 30), (8, 8, 30), (8, 25, 30), (-1, 8, 30), (8, 20, 7), (8, 20, 0), (8, 20, 90)):
            with self.subTest(args=args):
                with self.assertRaises(InvalidGridWindow):
                    GridWindow(*args)

    def test_density_profile_validation(self) -> None:
        with self.assertRaises(ValueError):
            DensityProfile(slot_height=0)
        with self.assertRaises(ValueError):
            DensityProfile(slot_height=40, min_card_height=-1)

    def test_segment_kind_is_closed_set(self) -> None:
        iv = TimeInterval.from_ms(BASE, BASE + H)
        ScheduleSegment("r1", iv, "time_block")
        with self.assertRaises(ValueError):
            ScheduleSegment("r1", iv, "lunch")

    def test_appointment_status_and_problem_flags(self) -> None:
        iv = TimeInterval.from_ms(BASE, BASE + H)
        a = Appointment("a1", "r1", iv, status="no-show", problems=["unpaid", "new_customer"])
        self.assertIsInstance(a.problems, frozenset)
        self.assertEqual(a.problems, frozenset({"unpaid", "new_customer"}))
        self.assertEqual(a.start.ms, BASE)
        self.assertEqual(a.end.ms, BASE + H)

        with self.assertRaises(ValueError):
            Appointment("a2", "r1", iv, status="maybe")
        with self.assertRaises(ValueError):
            Appointment("a3", "r1", iv, problems=frozenset({"vip"}))

    def test_cfg_helpers(self) -> None:
        self.assertEqual(window_from_cfg({}), GridWindow(8, 20, 30))
        self.assertEqual(window_from_cfg({"start_hour": 7, "end_hour": 22, "slot_minutes": 15}), GridWindow(7, 22, 15))
        self.assertEqual(density_from_cfg({}), DensityProfile(48, 40))
        self.assertEqual(density_from_cfg({"density": "mobile"}), DensityProfile(40, 20))
        self.assertEqual(density_from_cfg({"slot_height": 60, "min_card_height": 30}), DensityProfile(60, 30))
        self.assertEqual(density_profile("Compact"), DensityProfile(32, 28))
        with self.assertRaises(ValueError):
            density_profile("huge")


if __name__ == "__main__":
    unittest.main(verbosity=2)
