from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest
from django.db import DatabaseError

from fuel_companion.exceptions import PersistenceError
from fuel_companion.models import StoredValue
from fuel_companion.services.ledger import LedgerStore
from fuel_companion.services.storage import DatabaseKeyValueStore


@pytest.mark.django_db(transaction=True)
async def test_database_store_reads_back_latest_value() -> None:
    store = DatabaseKeyValueStore()

    assert await store.get("recent_vehicles") is None

    await store.set("recent_vehicles", "[]")
    await store.set("recent_vehicles", '[{"id": "car-1"}]')

    assert await store.get("recent_vehicles") == '[{"id": "car-1"}]'
    assert await StoredValue.objects.acount() == 1


@pytest.mark.django_db(transaction=True)
async def test_ledger_round_trips_through_database() -> None:
    ledger = LedgerStore(DatabaseKeyValueStore())
    added = await ledger.add(
        station="BP Camden Road",
        fuel_type="Diesel",
        price_per_unit=1.549,
        total_cost=61.96,
        timestamp=datetime(2024, 5, 4, 16, 30, tzinfo=UTC),
    )

    reloaded = LedgerStore(DatabaseKeyValueStore())

    assert await reloaded.load() == [added]


async def test_database_write_errors_become_persistence_errors(mocker) -> None:
    mocker.patch.object(
        StoredValue.objects,
        "aupdate_or_create",
        mocker.AsyncMock(side_effect=DatabaseError("database is locked")),
    )

    with pytest.raises(PersistenceError):
        await DatabaseKeyValueStore().set("fuel_receipts", "[]")


async def test_failed_ledger_write_is_logged_once(mocker, caplog) -> None:
    mocker.patch.object(
        StoredValue.objects,
        "aupdate_or_create",
        mocker.AsyncMock(side_effect=DatabaseError("database is locked")),
    )
    ledger = LedgerStore(DatabaseKeyValueStore())

    with caplog.at_level(logging.ERROR, logger="fuel_companion"):
        with pytest.raises(PersistenceError):
            await ledger.add(
                station="BP Camden Road",
                fuel_type="Diesel",
                price_per_unit=1.549,
                total_cost=61.96,
                timestamp=datetime(2024, 5, 4, 16, 30, tzinfo=UTC),
            )

    errors = [record for record in caplog.records if record.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert errors[0].name == "fuel_companion.services.ledger"
    assert len(ledger.records) == 1
