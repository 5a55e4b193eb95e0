import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bitset import Bitset  # noqa: E402


@pytest.fixture()
def empty80():
    """An all-zero bitset of 80 bytes (640 bits)."""
    return Bitset(80)


@pytest.fixture()
def full80():
    """An all-set bitset of 80 bytes (640 bits)."""
    bs = Bitset(80)
    bs.set_all()
    return bs


@pytest.fixture()
def snapshot():
    """
    Fixture that returns a helper capturing a bitset's raw bytes, for
    asserting that failed calls leave the buffer untouched.
    """
    def _take(bs):
        return bs.get_bytes()

    return _take
