from __future__ import annotations

import logging
import math

from django.conf import settings
from pydantic import TypeAdapter, ValidationError

from fuel_companion.exceptions import InvalidInputError, PersistenceError
from fuel_companion.schemas import VehicleEntry
from fuel_companion.services.storage import KeyValueStore
from fuel_companion.services.types import DrivingProfile, JourneyEstimate, Vehicle

logger = logging.getLogger(__name__)

UK_GALLON_LITRES = 4.54609
DRIVING_PROFILE_FACTORS: dict[str, float] = {
    "Urban": 0.85,
    "Mixed": 1.0,
    "Motorway": 1.15,
}

_vehicle_list_adapter = TypeAdapter(list[VehicleEntry])


def parse_amount(value: float | int | str | None, field: str) -> float:
    """Parse a user supplied positive amount such as ``40``, ``"1.50"`` or ``"£1.50"``."""
    if value is None or isinstance(value, bool):
        raise InvalidInputError(f"{field} is required")

    if isinstance(value, str):
        cleaned = value.replace(settings.CURRENCY_SIGN, "").strip()
        if not cleaned:
            raise InvalidInputError(f"{field} is required")
        try:
            amount = float(cleaned)
        except (ValueError, OverflowError) as exc:
            raise InvalidInputError(f"{field} must be a number") from exc
    else:
        try:
            amount = float(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidInputError(f"{field} must be a number") from exc

    if not math.isfinite(amount) or amount <= 0:
        raise InvalidInputError(f"{field} must be a positive number")
    return amount


def suggested_unit_price(fuel_type: str) -> float | None:
    return settings.SUGGESTED_UNIT_PRICES.get(fuel_type)


def estimate_journey(
    vehicle: Vehicle | None,
    distance_miles: float | int | str,
    driving_profile: DrivingProfile,
    unit_price: float | int | str,
) -> JourneyEstimate:
    if vehicle is None:
        raise InvalidInputError("A vehicle must be selected")
    if driving_profile not in DRIVING_PROFILE_FACTORS:
        raise InvalidInputError(f"Unknown driving profile: {driving_profile!r}")

    distance = parse_amount(distance_miles, "Distance")
    price = parse_amount(unit_price, "Unit price")

    if vehicle.is_electric:
        if not vehicle.miles_per_kwh:
            raise InvalidInputError(f"{vehicle.display_name} has no miles per kWh rating")
        quantity_used = distance / vehicle.miles_per_kwh
    else:
        if not vehicle.mpg:
            raise InvalidInputError(f"{vehicle.display_name} has no mpg rating")
        adjusted_mpg = vehicle.mpg * DRIVING_PROFILE_FACTORS[driving_profile]
        quantity_used = (distance / adjusted_mpg) * UK_GALLON_LITRES

    total_cost = quantity_used * price
    logger.debug(
        "Estimated %.2f miles in %s (%s): %.4f units, cost %.4f",
        distance,
        vehicle.display_name,
        driving_profile,
        quantity_used,
        total_cost,
    )
    return JourneyEstimate(
        vehicle=vehicle,
        distance_miles=distance,
        driving_profile=driving_profile,
        unit_price=price,
        quantity_used=round(quantity_used, 2),
        total_cost=round(total_cost, 2),
    )


def format_breakdown(estimate: JourneyEstimate, currency_sign: str | None = None) -> str:
    sign = currency_sign if currency_sign is not None else settings.CURRENCY_SIGN
    vehicle = estimate.vehicle
    used_label = "Energy Used" if vehicle.is_electric else "Fuel Used"
    lines = [
        f"Vehicle: {vehicle.display_name} ({vehicle.fuel_type})",
        f"Distance: {estimate.distance_miles:.2f} miles",
        f"Driving Type: {estimate.driving_profile}",
        f"{used_label}: {estimate.quantity_used:.2f} {estimate.unit}",
        f"Cost per unit: {sign}{estimate.unit_price:.2f}",
        f"Total Cost: {sign}{estimate.total_cost:.2f}",
    ]
    return "\n".join(lines)


class RecentVehicles:
    """Most-recently-used vehicles, newest first, deduplicated by id."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        key: str | None = None,
        limit: int | None = None,
    ) -> None:
        self.store = store
        self.key = key or settings.RECENT_VEHICLES_STORAGE_KEY
        self.limit = limit or settings.RECENT_VEHICLES_LIMIT
        self._items: list[Vehicle] = []

    @property
    def items(self) -> list[Vehicle]:
        return list(self._items)

    async def load(self) -> list[Vehicle]:
        raw = await self.store.get(self.key)
        if not raw:
            self._items = []
            return self.items

        try:
            entries = _vehicle_list_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable recent vehicles under %s", self.key)
            self._items = []
            return self.items

        vehicles = [
            entry.to_vehicle(default_id=f"recent-{index}") for index, entry in enumerate(entries)
        ]
        self._items = _dedupe(vehicles)[: self.limit]
        return self.items

    async def remember(self, vehicle: Vehicle) -> list[Vehicle]:
        self._items = _dedupe([vehicle, *self._items])[: self.limit]
        payload = _vehicle_list_adapter.dump_json(
            [VehicleEntry.from_vehicle(item) for item in self._items], by_alias=True
        )
        try:
            await self.store.set(self.key, payload.decode())
        except PersistenceError:
            logger.error("Recent vehicles changed in memory but were not persisted", exc_info=True)
            raise
        return self.items


def _dedupe(vehicles: list[Vehicle]) -> list[Vehicle]:
    seen: set[str] = set()
    unique: list[Vehicle] = []
    for vehicle in vehicles:
        if vehicle.vehicle_id in seen:
            continue
        seen.add(vehicle.vehicle_id)
        unique.append(vehicle)
    return unique


class JourneyCostService:
    def __init__(self, recent_vehicles: RecentVehicles) -> None:
        self.recent_vehicles = recent_vehicles

    async def estimate(
        self,
        vehicle: Vehicle | None,
        distance_miles: float | int | str,
        driving_profile: DrivingProfile,
        unit_price: float | int | str,
    ) -> JourneyEstimate:
        estimate = estimate_journey(vehicle, distance_miles, driving_profile, unit_price)
        await self.recent_vehicles.remember(estimate.vehicle)
        return estimate
