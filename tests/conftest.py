"""
Test configuration - ensures repo root is in sys.path + shared fixtures.

This allows tests to import the top-level timeline package and the fakes
in tests/fixtures without installing the project.
"""

import sys
from datetime import date
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import timeline.*, tests.fixtures.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures import DAY, at, make_item  # noqa: E402


@pytest.fixture
def day() -> date:
    return DAY


@pytest.fixture
def dt():
    """Build a timestamp on the fixed test day: dt(9, 30) -> 09:30."""
    return at


@pytest.fixture
def item():
    """Item factory: item(1, (9, 0), (10, 0), title="A")."""
    return make_item
