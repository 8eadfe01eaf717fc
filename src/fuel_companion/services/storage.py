from __future__ import annotations

from typing import Protocol

from django.db import DatabaseError

from fuel_companion.exceptions import PersistenceError
from fuel_companion.models import StoredValue


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class DatabaseKeyValueStore:
    """Key-value persistence backed by the ``StoredValue`` table."""

    async def get(self, key: str) -> str | None:
        try:
            entry = await StoredValue.objects.filter(key=key).afirst()
        except DatabaseError as exc:
            raise PersistenceError(f"Could not read stored value {key!r}") from exc
        return None if entry is None else entry.value

    async def set(self, key: str, value: str) -> None:
        try:
            await StoredValue.objects.aupdate_or_create(key=key, defaults={"value": value})
        except DatabaseError as exc:
            raise PersistenceError(f"Could not write stored value {key!r}") from exc


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value
