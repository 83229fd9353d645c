# tests/conftest.py
from itertools import count

import pytest

from billing.emulator import StoreEmulator
from billing.engine import CorrelationEngine
from tests.support import FakeStore


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def engine(store):
    ids = count(1)
    return CorrelationEngine(store, id_factory=lambda: f"id-{next(ids)}")


@pytest.fixture
def emulated():
    """Emulated store in manual mode; callbacks run on emulator.run_pending()."""
    emulator = StoreEmulator(latency=None)
    engine = CorrelationEngine(emulator)
    emulator.attach(engine)
    return emulator, engine
