"""
Test configuration and fixtures
"""
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from accounts import User
from fraud_score_service import TransactionLedger
from reference_data import build_reference_data


class FixedRandomSource:
    """
    Deterministic random source.

    `floats` are returned by random() in order. `picks` are indexes used by
    choice(); when they run out, choice() returns the first item.
    """

    def __init__(self, floats=(), picks=()):
        self.floats = list(floats)
        self.picks = list(picks)
        self.random_calls = 0
        self.choice_calls = 0

    def random(self):
        self.random_calls += 1
        return self.floats.pop(0) if self.floats else 0.99

    def choice(self, items):
        self.choice_calls += 1
        index = self.picks.pop(0) if self.picks else 0
        return items[index]


JITTER_OFF = 0.99
JITTER_ON = 0.01


class FakeClock:
    def __init__(self, start=datetime(2024, 3, 15, 12, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def refs():
    return build_reference_data()


@pytest.fixture
def jitter_off():
    return FixedRandomSource(floats=[JITTER_OFF] * 50)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user():
    return User(
        name='Alex Johnson',
        account_number='**** **** **** 1234',
        balance=10000.00,
        email='alex.j@example.com',
    )


@pytest.fixture
def ledger(user, refs, jitter_off, clock):
    return TransactionLedger(user, refs, rng=jitter_off, clock=clock)
