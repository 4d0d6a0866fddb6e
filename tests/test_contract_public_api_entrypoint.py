from __future__ import annotations

import datetime as dt
import unittest


class TestPublicApiEntrypointContract(unittest.TestCase):
    def test_import_and_run_a_day(self) -> None:
        import slotgrid
        from slotgrid import GridWindow, Instant, agenda, build_day_layout, density_profile, load_schedule

        sched = load_schedule(
            {
                "appointments": [
                    {"id": "a", "resource_id": "r1", "start_time": "2024-01-01T09:15:00Z", "end_time": "2024-01-01T10:00:00Z"},
                    {"id": "b", "resource_id": "r1", "start_time": "2024-01-01T13:00:00Z", "end_time": "2024-01-01T14:00:00Z", "status": "pending"},
                ]
            }
        )
        layout = build_day_layout(
            sched.appointments, sched.segments, dt.date(2024, 1, 1), GridWindow(8, 20), "UTC", density_profile("mobile")
        )
        self.assertEqual(layout.resources[0].bookings[0].rect.top, 100.0)

        res = agenda(sched.appointments, Instant.from_iso("2024-01-01T12:00:00Z"))
        self.assertEqual(res["next"].id, "b")
        self.assertEqual(res["countdown"], "in 1 h")
        self.assertEqual([a.id for a in res["buckets"]["needs_action"]], ["b"])
        self.assertEqual(res["counts"]["history"], 1)
        self.assertEqual(res["warnings"], [])

        self.assertTrue(hasattr(slotgrid, "__version__"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
