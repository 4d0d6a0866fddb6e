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
        {"id": "a", "employee_id": "anna", "start_time": "2024-01-01T09:15:00Z", "end_time": "2024-01-01T10:00:00Z"},
        {"id": "b", "employee_id": "anna", "start_time": "2024-01-01T08:00:00Z", "end_time": "2024-01-01T08:05:00Z"},
    ],
    "segments": [
        {"employee_id": "anna", "segment_type": "working", "start_time": "2024-01-01T09:00:00Z", "end_time": "2024-01-01T17:00:00Z"},
        {"employee_id": "anna", "segment_type": "break", "start_time": "2024-01-01T12:00:00Z", "end_time": "2024-01-01T12:30:00Z"},
    ],
}


def _env() -> dict:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(REPO_ROOT)
    for k in ("SLOTGRID_TZ", "SLOTGRID_HOURS", "SLOTGRID_SLOT_MIN", "SLOTGRID_DENSITY", "SLOTGRID_OBS_LOG"):
        env.pop(k, None)
    return env


class TestDayLayoutToolContract(unittest.TestCase):
    def _run(self, args: list, env: dict = None) -> subprocess.CompletedProcess:
        cmd = [sys.executable, "-m", "slotgrid.tools.day_layout", *args]
        return subprocess.run(cmd, cwd=str(REPO_ROOT), env=env or _env(), capture_output=True, text=True)

    def test_day_layout_json(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            in_json = td / "schedule.json"
            in_json.write_text(json.dumps(SCHEDULE), encoding="utf-8")

            p = self._run(
                [
                    "--in",
                    str(in_json),
                    "--date",
                    "2024-01-01",
                    "--tz",
                    "UTC",
                    "--hours",
                    "08-20",
                    "--density",
                    "mobile",
                    "--now",
                    "2024-01-01T10:15:00Z",
                ]
            )
            self.assertEqual(p.returncode, 0, p.stderr)

            out = json.loads(p.stdout)
            self.assertEqual(out["date"], "2024-01-01")
            self.assertEqual(out["window"]["total_slots"], 24)
            self.assertEqual(out["now_line"], {"top": 180.0, "height": 0.0})

            anna = out["resources"][0]
            self.assertEqual(anna["resource_id"], "anna")
            self.assertEqual(anna["background"]["8"], "break")
            rects = {b["id"]: b["rect"] for b in anna["bookings"]}
            self.assertEqual(rects["a"], {"top": 100.0, "height": 60.0})
            self.assertEqual(rects["b"], {"top": 0.0, "height": 20.0})

    def test_out_file_and_env_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            in_json = td / "schedule.json"
            out_json = td / "nested" / "layout.json"
            in_json.write_text(json.dumps(SCHEDULE), encoding="utf-8")

            env = _env()
            env["SLOTGRID_TZ"] = "Europe/Oslo"
            env["SLOTGRID_HOURS"] = "09-18"
            env["SLOTGRID_SLOT_MIN"] = "15"
            p = self._run(["--in", str(in_json), "--date", "2024-01-01", "--out", str(out_json)], env)
            self.assertEqual(p.returncode, 0, p.stderr)
            self.assertEqual(p.stdout.strip(), "")

            out = json.loads(out_json.read_text(encoding="utf-8"))
            self.assertEqual(out["tz"], "Europe/Oslo")
            self.assertEqual(out["window"]["total_slots"], 36)
            self.assertEqual(out["time_slots"][1], "09:15")

    def test_bad_input_exits_2(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            in_json = td / "schedule.json"
            in_json.write_text(json.dumps(SCHEDULE), encoding="utf-8")
            broken = td / "broken.json"
            broken.write_text(json.dumps({"appointments": [{"id": "x"}]}), encoding="utf-8")

            cases = [
                ["--in", str(in_json), "--date", "2024-01-01", "--tz", "Mars/Base"],
                ["--in", str(in_json), "--date", "01/01/2024"],
                ["--in", str(in_json), "--date", "2024-01-01", "--hours", "20-08"],
                ["--in", str(in_json), "--date", "2024-01-01", "--slot", "7"],
                ["--in", str(in_json), "--date", "2024-01-01", "--density", "huge"],
                ["--in", str(td / "missing.json"), "--date", "2024-01-01"],
                ["--in", str(broken), "--date", "2024-01-01"],
            ]
            for args in cases:
                with self.subTest(args=args[2:]):
                    p = self._run(args)
                    self.assertEqual(p.returncode, 2)
                    self.assertIn("[slotgrid-day-layout] ERROR:", p.stderr)


if __name__ == "__main__":
    unittest.main(verbosity=2)
