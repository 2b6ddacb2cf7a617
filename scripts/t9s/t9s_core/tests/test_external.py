from __future__ import annotations

import subprocess
import unittest
from pathlib import Path
from unittest import mock
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from t9s_core.external import run_fzf  # noqa: E402


def _completed(stdout: str, returncode: int = 0) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(["fzf"], returncode, stdout=stdout)


class FzfTests(unittest.TestCase):
    def test_label_whitespace_is_kept(self):
        with mock.patch("t9s_core.external.subprocess.run", return_value=_completed("cfg  Padded name \n")):
            self.assertEqual(run_fzf(["cfg  Padded name "]), "cfg  Padded name ")

    def test_cancel_returns_empty(self):
        with mock.patch("t9s_core.external.subprocess.run", return_value=_completed("", returncode=130)):
            self.assertEqual(run_fzf(["a"]), "")

    def test_missing_fzf_returns_empty(self):
        with mock.patch("t9s_core.external.subprocess.run", side_effect=FileNotFoundError):
            with self.assertLogs("t9s_core.external", level="WARNING"):
                self.assertEqual(run_fzf(["a"]), "")


if __name__ == "__main__":
    unittest.main()
