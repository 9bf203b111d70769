"""Package metadata tests."""
import re
from pathlib import Path

import trainspotter


def test_version_matches_pyproject():
    pyproject = (Path(__file__).resolve().parents[1] / "pyproject.toml").read_text()
    declared = re.search(r'^version\s*=\s*"([^"]+)"', pyproject, re.MULTILINE).group(1)
    assert trainspotter.__version__ == declared
