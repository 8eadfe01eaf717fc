from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from django.conf import settings
from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from fuel_companion.exceptions import (
    DeserializationError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from fuel_companion.schemas import ExpenseInput, ExpenseRecordSchema
from fuel_companion.services.analytics import calendar_year_month
from fuel_companion.services.storage import KeyValueStore
from fuel_companion.services.types import ExpenseFuelType, ExpenseRecord

logger = logging.getLogger(__name__)

LedgerListener = Callable[[list[ExpenseRecord]], None]

_record_list_adapter = TypeAdapter(list[ExpenseRecordSchema])


def encode_records(records: list[ExpenseRecord]) -> str:
    try:
        payload = _record_list_adapter.dump_json(
            [ExpenseRecordSchema.from_record(record) for record in records], by_alias=True
        )
    except (PydanticSerializationError, ValidationError) as exc:
        raise PersistenceError("Could not serialize expense records") from exc
    return payload.decode()


def decode_records(raw: str) -> list[ExpenseRecord]:
    try:
        entries = _record_list_adapter.validate_json(raw)
    except ValidationError as exc:
        raise DeserializationError("Stored expense records are unreadable") from exc
    return [entry.to_record() for entry in entries]


class LedgerStore:
    """Ordered expense records (newest insert first) persisted as one collection.

    Every mutation rewrites the whole collection under ``key``. Mutations are
    serialized with a lock, so writes reach the store in the order issued. When
    a write fails the in-memory state keeps the change and ``flush`` can retry.
    """

    def __init__(self, store: KeyValueStore, *, key: str | None = None) -> None:
        self.store = store
        self.key = key or settings.EXPENSE_LEDGER_STORAGE_KEY
        self._records: list[ExpenseRecord] = []
        self._listeners: list[LedgerListener] = []
        self._lock = asyncio.Lock()
        self._last_id = 0

    @property
    def records(self) -> list[ExpenseRecord]:
        return list(self._records)

    def get(self, record_id: int) -> ExpenseRecord:
        return self._records[self._index_of(record_id)]

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def load(self) -> list[ExpenseRecord]:
        async with self._lock:
            raw = await self.store.get(self.key)
            records: list[ExpenseRecord] = []
            if raw:
                try:
                    records = decode_records(raw)
                except DeserializationError:
                    logger.warning(
                        "Starting with an empty ledger; %s is unreadable", self.key, exc_info=True
                    )

            self._records = records
            self._last_id = max((record.record_id for record in records), default=0)
            logger.info("Loaded %s expense records", len(records))
            self._notify()
            return self.records

    async def add(
        self,
        station: str,
        fuel_type: ExpenseFuelType,
        price_per_unit: float,
        total_cost: float,
        timestamp: datetime,
        record_id: int | None = None,
    ) -> ExpenseRecord:
        fields = _validate_fields(
            {
                "station": station,
                "fuel_type": fuel_type,
                "price_per_unit": price_per_unit,
                "total_cost": total_cost,
                "timestamp": timestamp,
            }
        )
        async with self._lock:
            if record_id is None:
                record_id = self._next_id()
            elif any(record.record_id == record_id for record in self._records):
                raise InvalidInputError(f"Expense record {record_id} already exists")
            self._last_id = max(self._last_id, record_id)

            record = _build_record(record_id, fields)
            self._records.insert(0, record)
            logger.debug("Added expense record %s", record_id)
            await self._commit()
            return record

    async def update(self, record_id: int, **changes: Any) -> ExpenseRecord:
        async with self._lock:
            index = self._index_of(record_id)
            current = self._records[index]
            merged = {
                "station": current.station,
                "fuel_type": current.fuel_type,
                "price_per_unit": current.price_per_unit,
                "total_cost": current.total_cost,
                "timestamp": current.timestamp,
                **changes,
            }
            record = _build_record(record_id, _validate_fields(merged))
            self._records[index] = record
            logger.debug("Updated expense record %s", record_id)
            await self._commit()
            return record

    async def remove(self, predicate: Callable[[ExpenseRecord], bool]) -> int:
        async with self._lock:
            kept = [record for record in self._records if not predicate(record)]
            removed = len(self._records) - len(kept)
            self._records = kept
            logger.debug("Removed %s expense records", removed)
            await self._commit()
            return removed

    async def remove_month(
        self, year: int, month: int, fuel_type: ExpenseFuelType | None = None
    ) -> int:
        if not 1 <= month <= 12:
            raise InvalidInputError(f"Month must be between 1 and 12, got {month}")

        def matches(record: ExpenseRecord) -> bool:
            if fuel_type is not None and record.fuel_type != fuel_type:
                return False
            return calendar_year_month(record.timestamp) == (year, month)

        return await self.remove(matches)

    async def remove_by_id(self, record_id: int) -> ExpenseRecord:
        async with self._lock:
            record = self._records.pop(self._index_of(record_id))
            logger.debug("Removed expense record %s", record_id)
            await self._commit()
            return record

    async def flush(self) -> None:
        async with self._lock:
            await self.store.set(self.key, encode_records(self._records))

    def _index_of(self, record_id: int) -> int:
        for index, record in enumerate(self._records):
            if record.record_id == record_id:
                return index
        raise NotFoundError(f"No expense record with id {record_id}")

    def _next_id(self) -> int:
        return max(time.time_ns() // 1_000_000, self._last_id + 1)

    async def _commit(self) -> None:
        try:
            await self.store.set(self.key, encode_records(self._records))
        except PersistenceError:
            logger.error("Expense ledger changed in memory but was not persisted", exc_info=True)
            raise
        finally:
            self._notify()

    def _notify(self) -> None:
        snapshot = self.records
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Expense ledger listener %r failed", listener)


def _validate_fields(fields: dict[str, Any]) -> ExpenseInput:
    try:
        return ExpenseInput.model_validate(fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidInputError(f"Invalid expense record: {problems}") from exc


def _build_record(record_id: int, fields: ExpenseInput) -> ExpenseRecord:
    return ExpenseRecord(
        record_id=record_id,
        station=fields.station,
        fuel_type=fields.fuel_type,
        price_per_unit=fields.price_per_unit,
        total_cost=fields.total_cost,
        quantity=round(fields.total_cost / fields.price_per_unit, 2),
        timestamp=fields.timestamp,
    )

