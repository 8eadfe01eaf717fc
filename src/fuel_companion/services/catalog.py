from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from django.conf import settings
from pydantic import ValidationError

from fuel_companion.exceptions import CatalogError
from fuel_companion.schemas import StationCatalogEntry, VehicleEntry, normalize_station_name
from fuel_companion.services.types import StationRecord, Vehicle

logger = logging.getLogger(__name__)


def load_station_catalog(path: Path | str | None = None) -> list[StationRecord]:
    catalog_path = Path(path or settings.STATION_CATALOG_PATH)
    stations: list[StationRecord] = []
    for index, row in enumerate(_read_json_list(catalog_path)):
        try:
            stations.append(StationCatalogEntry.model_validate(row).to_record())
        except ValidationError as exc:
            logger.warning(
                "Skipping station entry %s in %s: %s", index, catalog_path, exc.error_count()
            )

    logger.info("Loaded %s stations from %s", len(stations), catalog_path)
    return stations


def load_vehicle_catalog(path: Path | str | None = None) -> list[Vehicle]:
    catalog_path = Path(path or settings.VEHICLE_CATALOG_PATH)
    vehicles: list[Vehicle] = []
    for index, row in enumerate(_read_json_list(catalog_path)):
        try:
            entry = VehicleEntry.model_validate(row)
        except ValidationError as exc:
            logger.warning(
                "Skipping vehicle entry %s in %s: %s", index, catalog_path, exc.error_count()
            )
            continue
        vehicles.append(entry.to_vehicle(default_id=f"car-{index}"))

    logger.info("Loaded %s vehicles from %s", len(vehicles), catalog_path)
    return vehicles


@lru_cache(maxsize=1)
def default_station_catalog() -> tuple[StationRecord, ...]:
    return tuple(load_station_catalog())


@lru_cache(maxsize=1)
def default_vehicle_catalog() -> tuple[Vehicle, ...]:
    return tuple(load_vehicle_catalog())


def search_vehicles(catalog: list[Vehicle] | tuple[Vehicle, ...], query: str) -> list[Vehicle]:
    needle = query.strip().lower()
    return [vehicle for vehicle in catalog if needle in vehicle.display_name.lower()]


def find_vehicle(
    catalog: list[Vehicle] | tuple[Vehicle, ...], vehicle_id: str
) -> Vehicle | None:
    return next((vehicle for vehicle in catalog if vehicle.vehicle_id == vehicle_id), None)


def station_name_suggestions(
    catalog: list[StationRecord] | tuple[StationRecord, ...], text: str
) -> list[str]:
    needle = text.lower()
    names = (normalize_station_name(station.name) for station in catalog)
    return [name for name in names if needle in name.lower()]


def _read_json_list(path: Path) -> list[Any]:
    if not path.exists():
        raise CatalogError(f"Catalog file does not exist: {path}")

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog file is not valid JSON: {path}") from exc

    if not isinstance(payload, list):
        raise CatalogError(f"Catalog file must contain a JSON list: {path}")
    return payload
