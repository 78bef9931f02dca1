"""
Brief: Global pytest configuration and shared commit fixtures.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure 'src' is on sys.path so 'gitcl' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from gitcl.commits import build_commit  # noqa: E402
from gitcl.config.logging_config import BracketLevelFormatter  # noqa: E402


@pytest.fixture
def make_commit():
    """
    Brief: Factory building CommitRecord values from message text.

    Inputs:
      - None

    Outputs:
      - Callable(sha, *lines, day=1) -> CommitRecord, where the first line is
        the summary and the remaining lines form the body.
    """
    base = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def _make(sha, *lines, day=1):
        summary = lines[0] if lines else "commit " + sha
        body = "\n".join(lines[1:])
        return build_commit(sha, base + timedelta(days=day - 1), summary, body)

    return _make


@pytest.fixture(autouse=True)
def reset_root_logging():
    """
    Brief: Drop handlers installed by init_logging() and restore the root level.

    Inputs:
      - None

    Outputs:
      - None
    """
    root = logging.getLogger()
    level = root.level
    yield
    for h in list(root.handlers):
        if isinstance(h.formatter, BracketLevelFormatter):
            root.removeHandler(h)
            h.close()
    root.setLevel(level)
