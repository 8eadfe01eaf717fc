from __future__ import annotations

import pytest

from fuel_companion.services.ledger import LedgerStore
from fuel_companion.services.storage import InMemoryKeyValueStore


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def ledger(memory_store: InMemoryKeyValueStore) -> LedgerStore:
    return LedgerStore(memory_store)
