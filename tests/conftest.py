"""
Pytest configuration and shared fixtures for the script runner tests.
"""
from pathlib import Path
import sys

import pytest

# Ensure the project root is on the Python path for all tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ducky.backends import RecordingBackend  # noqa: E402


class FakeTime:
    """Sleep/clock pair that advances virtual time instead of blocking."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def clock(self):
        return self.now

    def slept_ms(self):
        return [round(s * 1000) for s in self.sleeps]


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def backend():
    return RecordingBackend()
