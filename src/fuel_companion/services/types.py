from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

StationCategory = Literal["Fuel", "Electric"]
SortKey = Literal["distance", "price"]
FuelPreference = Literal["Petrol", "Diesel"]
VehicleFuelType = Literal["Petrol", "Diesel", "Electric"]
DrivingProfile = Literal["Urban", "Mixed", "Motorway"]
ExpenseFuelType = Literal["Petrol", "Diesel", "EV"]
FuelFilter = Literal["All", "Petrol", "Diesel", "EV"]


@dataclass(slots=True, frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(slots=True, frozen=True)
class FuelStation:
    station_id: str
    name: str
    address: str | None
    coordinate: Coordinate
    petrol_price: float | None
    diesel_price: float | None
    category: Literal["Fuel"] = "Fuel"


@dataclass(slots=True, frozen=True)
class ElectricStation:
    station_id: str
    name: str
    address: str | None
    coordinate: Coordinate
    plug_types: frozenset[str]
    max_charge_speed_kw: float | None
    cost_per_kwh: str | float | None
    category: Literal["Electric"] = "Electric"


StationRecord = FuelStation | ElectricStation


@dataclass(slots=True, frozen=True)
class RankedStation:
    station: StationRecord
    distance_miles: float


@dataclass(slots=True, frozen=True)
class Vehicle:
    vehicle_id: str
    make: str
    model: str
    year: int
    fuel_type: VehicleFuelType
    mpg: float | None = None
    miles_per_kwh: float | None = None

    @property
    def display_name(self) -> str:
        return f"{self.make} {self.model}"

    @property
    def is_electric(self) -> bool:
        return self.fuel_type == "Electric"


@dataclass(slots=True, frozen=True)
class JourneyEstimate:
    vehicle: Vehicle
    distance_miles: float
    driving_profile: DrivingProfile
    unit_price: float
    quantity_used: float
    total_cost: float

    @property
    def unit(self) -> str:
        return "kWh" if self.vehicle.is_electric else "litres"


@dataclass(slots=True, frozen=True)
class ExpenseRecord:
    record_id: int
    station: str
    fuel_type: ExpenseFuelType
    price_per_unit: float
    total_cost: float
    quantity: float
    timestamp: datetime


@dataclass(slots=True, frozen=True)
class MonthlyAggregate:
    year: int
    month: int
    fuel_filter: FuelFilter
    total_cost: float
    records: list[ExpenseRecord] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class AnnualSummary:
    year: int
    fuel_filter: FuelFilter
    total_spent: float
    avg_per_active_month: float
    active_months: int
    breakdown_by_fuel_type: dict[str, float] = field(default_factory=dict)
