from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]

SCHEDULE = {
    "appointments": [
        {"id": "done", "resource_id": "r1", "start_time": "2024-01-03T08:00:00Z", "end_time": "2024-01-03T09:00:00Z", "status": "completed"},
        {"id": "soon", "resource_id": "r1", "start_time": "2024-01-03T12:45:00Z", "end_time": "2024-01-03T13:30:00Z"},
        {"id": "unsure", "resource_id": "r2", "start_time": "2024-01-04T10:00:00Z", "end_time": "2024-01-04T11:00:00Z", "status": "pending"},
        {"id": "off", "resource_id": "r2", "start_time": "2024-01-03T15:00:00Z", "end_time": "2024-01-03T16:00:00Z", "status": "canceled"},
    ]
}


class TestAgendaToolContract(unittest.TestCase):
    def _run(self, args: list) -> subprocess.CompletedProcess:
        env = os.environ.copy()
        env["PYTHONPATH"] = str(REPO_ROOT)
        env.pop("SLOTGRID_TZ", None)
        cmd = [sys.executable, "-m", "slotgrid.tools.agenda", *args]
        return subprocess.run(cmd, cwd=str(REPO_ROOT), env=env, capture_output=True, text=True)

    def test_buckets_next_and_countdown(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            in_json = Path(td) / "schedule.json"
            in_json.write_text(json.dumps(SCHEDULE), encoding="utf-8")

            p = self._run(["--in", str(in_json), "--now", "2024-01-03T12:00:00Z"])
            self.assertEqual(p.returncode, 0, p.stderr)
            out = json.loads(p.stdout)

            self.assertEqual(out["next"]["id"], "soon")
            self.assertEqual(out["countdown"], "in 45 min")
            self.assertEqual(out["buckets"]["today"], ["done", "soon", "off"])
            self.assertEqual(out["buckets"]["tomorrow"], ["unsure"])
            self.assertEqual(out["buckets"]["needs_action"], ["unsure"])
            self.assertEqual(out["buckets"]["history"], ["off", "done"])
            self.assertEqual(out["counts"]["cancelled"], 1)

            p = self._run(["--in", str(in_json), "--now", "2024-01-03T12:00:00Z", "--locale", "nb", "--counts-only"])
            self.assertEqual(p.returncode, 0, p.stderr)
            out = json.loads(p.stdout)
            self.assertNotIn("buckets", out)
            self.assertEqual(out["countdown"], "om 45 min")

    def test_bad_input_exits_2(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            in_json = Path(td) / "schedule.json"
            in_json.write_text(json.dumps(SCHEDULE), encoding="utf-8")
            for args in (
                ["--in", str(in_json), "--now", "noon"],
                ["--in", str(in_json), "--now", "2024-01-03T12:00:00Z", "--tz", "Nowhere/Zone"],
                ["--in", str(Path(td) / "missing.json"), "--now", "2024-01-03T12:00:00Z"],
            ):
                with self.subTest(args=args[2:]):
                    p = self._run(args)
                    self.assertEqual(p.returncode, 2)
                    self.assertIn("[slotgrid-agenda] ERROR:", p.stderr)


if __name__ == "__main__":
    unittest.main(verbosity=2)
