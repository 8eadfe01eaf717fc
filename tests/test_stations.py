from __future__ import annotations

import math

import pytest

from fuel_companion.exceptions import InvalidInputError
from fuel_companion.services.geo import distance_miles
from fuel_companion.services.stations import (
    StationFinder,
    filter_stations,
    parse_cost_per_kwh,
    rank_stations,
    resolve_position,
)
from fuel_companion.services.types import Coordinate, ElectricStation, FuelStation

ORIGIN = Coordinate(latitude=51.5, longitude=-0.12)


def _fuel(
    station_id: str,
    latitude: float,
    petrol: float | None = 1.45,
    diesel: float | None = 1.55,
    name: str | None = None,
    address: str | None = "1 High Street",
) -> FuelStation:
    return FuelStation(
        station_id=station_id,
        name=name or f"Station {station_id}",
        address=address,
        coordinate=Coordinate(latitude=latitude, longitude=-0.12),
        petrol_price=petrol,
        diesel_price=diesel,
    )


def _charger(
    station_id: str, latitude: float, cost: str | float | None, name: str | None = None
) -> ElectricStation:
    return ElectricStation(
        station_id=station_id,
        name=name or f"Charger {station_id}",
        address=None,
        coordinate=Coordinate(latitude=latitude, longitude=-0.12),
        plug_types=frozenset({"CCS"}),
        max_charge_speed_kw=50.0,
        cost_per_kwh=cost,
    )


def test_filter_keeps_requested_category_in_catalog_order() -> None:
    catalog = [_fuel("1", 51.6), _charger("2", 51.7, "£0.50"), _fuel("3", 51.55)]

    assert [s.station_id for s in filter_stations(catalog, "Fuel")] == ["1", "3"]
    assert [s.station_id for s in filter_stations(catalog, "Electric")] == ["2"]


def test_filter_matches_name_or_address_case_insensitively() -> None:
    catalog = [
        _fuel("1", 51.6, name="Shell Camden"),
        _fuel("2", 51.6, name="BP", address="12 camden road"),
        _fuel("3", 51.6, name="Esso", address=None),
    ]

    assert [s.station_id for s in filter_stations(catalog, "Fuel", "CAMDEN")] == ["1", "2"]
    assert len(filter_stations(catalog, "Fuel", "")) == 3


def test_filter_rejects_unknown_category() -> None:
    with pytest.raises(InvalidInputError):
        filter_stations([], "Hydrogen")  # type: ignore[arg-type]


def test_rank_by_distance_is_non_decreasing_and_stable() -> None:
    stations = [
        _fuel("far", 51.9),
        _fuel("tie-a", 51.6),
        _fuel("near", 51.51),
        _fuel("tie-b", 51.6),
    ]

    ranked = rank_stations(stations, ORIGIN, "distance")

    assert [s.station_id for s in ranked] == ["near", "tie-a", "tie-b", "far"]
    distances = [distance_miles(ORIGIN, s.coordinate) for s in ranked]
    assert all(a <= b for a, b in zip(distances, distances[1:]))


def test_rank_fuel_by_price_uses_preference_and_puts_missing_last() -> None:
    stations = [
        _fuel("a", 51.6, petrol=1.50, diesel=None),
        _fuel("b", 51.6, petrol=None, diesel=1.40),
        _fuel("c", 51.6, petrol=1.42, diesel=1.60),
    ]

    by_petrol = rank_stations(stations, ORIGIN, "price", "Petrol")
    by_diesel = rank_stations(stations, ORIGIN, "price", "Diesel")

    assert [s.station_id for s in by_petrol] == ["c", "a", "b"]
    assert [s.station_id for s in by_diesel] == ["b", "c", "a"]


def test_rank_chargers_by_parsed_cost() -> None:
    stations = [
        _charger("unpriced", 51.6, "Members only"),
        _charger("string", 51.6, "£0.69"),
        _charger("number", 51.6, 0.56),
        _charger("missing", 51.6, None),
        _charger("suffix", 51.6, "0.45/kWh"),
    ]

    ranked = rank_stations(stations, ORIGIN, "price")

    assert [s.station_id for s in ranked] == [
        "suffix",
        "number",
        "string",
        "unpriced",
        "missing",
    ]


def test_parse_cost_per_kwh_treats_zero_and_garbage_as_unpriced() -> None:
    assert parse_cost_per_kwh("£0.79") == pytest.approx(0.79)
    assert parse_cost_per_kwh(" 0.35 ") == pytest.approx(0.35)
    assert parse_cost_per_kwh("£0.00") == math.inf
    assert parse_cost_per_kwh("free") == math.inf
    assert parse_cost_per_kwh(None) == math.inf


def test_rank_rejects_unknown_sort_key() -> None:
    with pytest.raises(InvalidInputError):
        rank_stations([], ORIGIN, "rating")  # type: ignore[arg-type]


def test_resolve_position_prefers_position_then_fallback() -> None:
    fallback = Coordinate(latitude=52.0, longitude=0.0)

    assert resolve_position(ORIGIN, fallback) == ORIGIN
    assert resolve_position(None, fallback) == fallback
    with pytest.raises(InvalidInputError):
        resolve_position(None)


def test_finder_filters_ranks_and_rounds_distance() -> None:
    finder = StationFinder(
        [
            _fuel("1", 51.7, name="Shell North"),
            _charger("2", 51.5, "£0.50"),
            _fuel("3", 51.52, name="Shell South"),
            _fuel("4", 51.51, name="BP"),
        ]
    )

    results = finder.search(ORIGIN, "Fuel", "shell")

    assert [result.station.station_id for result in results] == ["3", "1"]
    assert results[0].distance_miles == round(
        distance_miles(ORIGIN, results[0].station.coordinate), 2
    )


def test_finder_uses_configured_fallback_position(settings) -> None:
    settings.FALLBACK_LATITUDE = "51.5"
    settings.FALLBACK_LONGITUDE = "-0.12"
    finder = StationFinder([_fuel("1", 51.6), _fuel("2", 51.5)])

    results = finder.search(None, "Fuel")

    assert [result.station.station_id for result in results] == ["2", "1"]
    assert results[0].distance_miles == 0.0


def test_finder_without_any_position_raises(settings) -> None:
    settings.FALLBACK_LATITUDE = None
    settings.FALLBACK_LONGITUDE = None

    with pytest.raises(InvalidInputError):
        StationFinder([_fuel("1", 51.6)]).search(None, "Fuel")


def test_finder_defaults_to_bundled_catalog() -> None:
    results = StationFinder().search(ORIGIN, "Electric", sort_key="price")

    assert results
    assert all(result.station.category == "Electric" for result in results)
    prices = [parse_cost_per_kwh(result.station.cost_per_kwh) for result in results]
    assert prices == sorted(prices)


def test_finder_ignores_bad_fallback_when_position_is_given(settings) -> None:
    settings.FALLBACK_LATITUDE = "north"
    settings.FALLBACK_LONGITUDE = "-0.12"
    finder = StationFinder([_fuel("1", 51.6), _fuel("2", 51.5)])

    results = finder.search(ORIGIN, "Fuel")

    assert [result.station.station_id for result in results] == ["2", "1"]
    with pytest.raises(InvalidInputError):
        finder.search(None, "Fuel")


def test_fuel_preference_only_applies_to_fuel_stations() -> None:
    chargers = [_charger("dear", 51.6, "£0.79"), _charger("cheap", 51.6, "£0.45")]

    ranked = rank_stations(chargers, ORIGIN, "price", "Hydrogen")  # type: ignore[arg-type]

    assert [s.station_id for s in ranked] == ["cheap", "dear"]
    with pytest.raises(InvalidInputError):
        rank_stations([_fuel("1", 51.6)], ORIGIN, "price", "Hydrogen")  # type: ignore[arg-type]
