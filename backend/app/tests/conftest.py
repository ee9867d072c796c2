import pytest

from app.tests.fakes import FakeCounterStore


@pytest.fixture
def counter_store() -> FakeCounterStore:
    return FakeCounterStore()
