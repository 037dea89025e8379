from __future__ import annotations

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]


def _run_cli(*args: str) -> subprocess.CompletedProcess[str]:
    env = dict(os.environ)
    existing_pp = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = (
        f"{_REPO_ROOT}{os.pathsep}{existing_pp}" if existing_pp else str(_REPO_ROOT)
    )
    env["PYTHONIOENCODING"] = "utf-8"

    return subprocess.run(
        [sys.executable, "-m", "datview", *args],
        cwd=_REPO_ROOT,
        env=env,
        capture_output=True,
        text=True,
        encoding="utf-8",
    )


class TestCLISmoke(unittest.TestCase):
    def test_threads_offline(self) -> None:
        proc = _run_cli("threads", "--offline")
        self.assertEqual(proc.returncode, 0, msg=proc.stderr)

        threads = json.loads(proc.stdout)
        self.assertEqual(threads[0]["id"], "1700000000")
        self.assertEqual(threads[0]["title"], "Offline & test thread")
        self.assertIn("threads_fetch_completed", proc.stderr)

    def test_thread_offline_with_log_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            log_path = Path(td) / "run.log"
            proc = _run_cli("thread", "1700000000", "--offline", "--log", str(log_path))
            self.assertEqual(proc.returncode, 0, msg=proc.stderr)

            records = json.loads(proc.stdout)
            self.assertEqual([r["id_occurrence_count"] for r in records], [1, 1, 2])

            events = [
                json.loads(ln)["event"]
                for ln in log_path.read_text(encoding="utf-8").splitlines()
                if ln.strip()
            ]
            self.assertIn("command_started", events)
            self.assertIn("dat_line_skipped", events)

    def test_short_thread_id_exits_with_fetch_error(self) -> None:
        proc = _run_cli("thread", "123", "--offline")
        self.assertEqual(proc.returncode, 3)
        self.assertIn("too short", proc.stderr)

    def test_missing_config_exits_with_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            proc = _run_cli("threads", "--offline", "--config", str(Path(td) / "nope.yaml"))
        self.assertEqual(proc.returncode, 2)
        self.assertIn("Config file not found", proc.stderr)

    def test_parse_local_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            dat = Path(td) / "1234.dat"
            dat.write_text(
                "A<><>2024/01/01 ID:x<>one\nA<><>2024/01/01 ID:x<>two\n",
                encoding="utf-8",
            )
            proc = _run_cli("parse", str(dat))

        self.assertEqual(proc.returncode, 0, msg=proc.stderr)
        records = json.loads(proc.stdout)
        self.assertEqual([r["id_total_count"] for r in records], [2, 2])


if __name__ == "__main__":
    unittest.main()
