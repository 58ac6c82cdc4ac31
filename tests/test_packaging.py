"""Sanity checks on the project metadata in pyproject.toml."""

from __future__ import annotations

import re
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


class TestProjectMetadata(unittest.TestCase):

    def setUp(self) -> None:
        self.text = (ROOT / "pyproject.toml").read_text(encoding="utf-8")

    def test_readme_points_at_a_real_project_file(self) -> None:
        match = re.search(r'^readme\s*=\s*"([^"]+)"', self.text, re.MULTILINE)
        if match is None:
            return
        readme = match.group(1)
        self.assertTrue((ROOT / readme).is_file(), readme)
        self.assertTrue(readme.upper().startswith("README"), readme)

    def test_runtime_dependencies_declared(self) -> None:
        for name in ("numpy", "soundfile", "librosa", "loguru", "pydantic",
                     "pydantic-settings", "Pillow", "sounddevice"):
            self.assertIn(f'"{name}', self.text)


if __name__ == "__main__":
    unittest.main()
