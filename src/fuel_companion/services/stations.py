from __future__ import annotations

import math
import re

from django.conf import settings

from fuel_companion.exceptions import InvalidInputError
from fuel_companion.services.catalog import default_station_catalog
from fuel_companion.services.geo import distance_miles
from fuel_companion.services.types import (
    Coordinate,
    ElectricStation,
    FuelPreference,
    RankedStation,
    SortKey,
    StationCategory,
    StationRecord,
)

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


def filter_stations(
    catalog: list[StationRecord] | tuple[StationRecord, ...],
    category: StationCategory,
    query: str = "",
) -> list[StationRecord]:
    if category not in ("Fuel", "Electric"):
        raise InvalidInputError(f"Unknown station category: {category!r}")

    needle = query.lower()
    return [
        station
        for station in catalog
        if station.category == category
        and (
            needle in station.name.lower()
            or (station.address is not None and needle in station.address.lower())
        )
    ]


def rank_stations(
    stations: list[StationRecord],
    position: Coordinate,
    sort_key: SortKey = "distance",
    fuel_preference: FuelPreference = "Petrol",
) -> list[StationRecord]:
    if sort_key == "distance":
        return sorted(stations, key=lambda station: distance_miles(position, station.coordinate))
    if sort_key == "price":
        if fuel_preference not in ("Petrol", "Diesel") and any(
            station.category == "Fuel" for station in stations
        ):
            raise InvalidInputError(f"Unknown fuel preference: {fuel_preference!r}")
        return sorted(stations, key=lambda station: station_price(station, fuel_preference))
    raise InvalidInputError(f"Unknown sort key: {sort_key!r}")


def station_price(station: StationRecord, fuel_preference: FuelPreference = "Petrol") -> float:
    """Return the comparable unit price of a station, or +inf when it has none."""
    if isinstance(station, ElectricStation):
        return parse_cost_per_kwh(station.cost_per_kwh)

    price = station.petrol_price if fuel_preference == "Petrol" else station.diesel_price
    return math.inf if price is None else price


def parse_cost_per_kwh(value: str | float | None) -> float:
    # Catalog values look like "£0.45", "0.45/kWh" or a bare number; zero counts as unpriced.
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.replace(settings.CURRENCY_SIGN, ""))
        if match is None:
            return math.inf
        number = float(match.group(1))
    else:
        return math.inf

    if not math.isfinite(number) or number == 0:
        return math.inf
    return number


def resolve_position(
    position: Coordinate | None, fallback: Coordinate | None = None
) -> Coordinate:
    if position is not None:
        return position
    if fallback is not None:
        return fallback
    raise InvalidInputError("A position is required to rank stations")


def configured_fallback_position() -> Coordinate | None:
    if settings.FALLBACK_LATITUDE is None or settings.FALLBACK_LONGITUDE is None:
        return None
    try:
        return Coordinate(
            latitude=float(settings.FALLBACK_LATITUDE),
            longitude=float(settings.FALLBACK_LONGITUDE),
        )
    except ValueError as exc:
        raise InvalidInputError("Configured fallback position is not numeric") from exc


class StationFinder:
    def __init__(
        self, catalog: list[StationRecord] | tuple[StationRecord, ...] | None = None
    ) -> None:
        self.catalog = tuple(catalog) if catalog is not None else default_station_catalog()

    def search(
        self,
        position: Coordinate | None,
        category: StationCategory,
        query: str = "",
        sort_key: SortKey = "distance",
        fuel_preference: FuelPreference = "Petrol",
        fallback: Coordinate | None = None,
    ) -> list[RankedStation]:
        if position is None and fallback is None:
            fallback = configured_fallback_position()
        origin = resolve_position(position, fallback)
        candidates = filter_stations(self.catalog, category, query)
        ranked = rank_stations(candidates, origin, sort_key, fuel_preference)
        return [
            RankedStation(
                station=station,
                distance_miles=round(distance_miles(origin, station.coordinate), 2),
            )
            for station in ranked
        ]
