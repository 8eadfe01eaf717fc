from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fuel_companion.services.types import (
    Coordinate,
    ElectricStation,
    ExpenseRecord,
    FuelStation,
    StationRecord,
    Vehicle,
)

TYPOGRAPHIC_APOSTROPHES = str.maketrans({"‘": "'", "’": "'"})


def normalize_station_name(value: str) -> str:
    return value.translate(TYPOGRAPHIC_APOSTROPHES).strip()


class StationCatalogEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | int
    name: str = Field(min_length=1)
    address: str | None = None
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    petrol_price: float | None = Field(default=None, ge=0.0)
    diesel_price: float | None = Field(default=None, ge=0.0)
    plug_types: list[str] | None = None
    max_charge_speed_kw: float | None = Field(default=None, ge=0.0)
    cost_per_kwh: str | float | None = Field(default=None, alias="cost_per_kWh")

    @model_validator(mode="before")
    @classmethod
    def _flatten_coordinates(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        nested = data.get("coordinates")
        if isinstance(nested, dict) and (
            data.get("latitude") is None or data.get("longitude") is None
        ):
            return {
                **data,
                "latitude": nested.get("latitude"),
                "longitude": nested.get("longitude"),
            }
        return data

    def to_record(self) -> StationRecord:
        coordinate = Coordinate(latitude=self.latitude, longitude=self.longitude)
        if self.plug_types is not None:
            return ElectricStation(
                station_id=str(self.id),
                name=self.name,
                address=self.address,
                coordinate=coordinate,
                plug_types=frozenset(self.plug_types),
                max_charge_speed_kw=self.max_charge_speed_kw,
                cost_per_kwh=self.cost_per_kwh,
            )
        return FuelStation(
            station_id=str(self.id),
            name=self.name,
            address=self.address,
            coordinate=coordinate,
            petrol_price=self.petrol_price,
            diesel_price=self.diesel_price,
        )


class VehicleEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str | int | None = None
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2100)
    fuel_type: Literal["Petrol", "Diesel", "Electric"] = Field(alias="fuelType")
    mpg: float | None = Field(default=None, gt=0.0)
    miles_per_kwh: float | None = Field(default=None, gt=0.0, alias="milesPerKWh")

    @model_validator(mode="after")
    def _check_economy(self) -> VehicleEntry:
        if self.fuel_type == "Electric" and self.miles_per_kwh is None:
            raise ValueError("Electric vehicles require milesPerKWh")
        if self.fuel_type != "Electric" and self.mpg is None:
            raise ValueError("Combustion vehicles require mpg")
        return self

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle) -> VehicleEntry:
        return cls(
            id=vehicle.vehicle_id,
            make=vehicle.make,
            model=vehicle.model,
            year=vehicle.year,
            fuel_type=vehicle.fuel_type,
            mpg=vehicle.mpg,
            miles_per_kwh=vehicle.miles_per_kwh,
        )

    def to_vehicle(self, default_id: str) -> Vehicle:
        return Vehicle(
            vehicle_id=str(self.id) if self.id is not None else default_id,
            make=self.make,
            model=self.model,
            year=self.year,
            fuel_type=self.fuel_type,
            mpg=self.mpg,
            miles_per_kwh=self.miles_per_kwh,
        )


class ExpenseInput(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    station: str
    fuel_type: Literal["Petrol", "Diesel", "EV"]
    price_per_unit: float = Field(gt=0.0)
    total_cost: float = Field(gt=0.0)
    timestamp: datetime

    @field_validator("station")
    @classmethod
    def _clean_station(cls, value: str) -> str:
        cleaned = normalize_station_name(value)
        if not cleaned:
            raise ValueError("Station must not be empty")
        return cleaned


class ExpenseRecordSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    station: str
    fuel_type: Literal["Petrol", "Diesel", "EV"] = Field(alias="fuelType")
    price_per_unit: float = Field(alias="pricePerUnit")
    total_cost: float = Field(alias="totalCost")
    quantity: float = Field(alias="litres")
    timestamp: datetime = Field(alias="date")

    @classmethod
    def from_record(cls, record: ExpenseRecord) -> ExpenseRecordSchema:
        return cls(
            id=record.record_id,
            station=record.station,
            fuel_type=record.fuel_type,
            price_per_unit=record.price_per_unit,
            total_cost=record.total_cost,
            quantity=record.quantity,
            timestamp=record.timestamp,
        )

    def to_record(self) -> ExpenseRecord:
        return ExpenseRecord(
            record_id=self.id,
            station=self.station,
            fuel_type=self.fuel_type,
            price_per_unit=self.price_per_unit,
            total_cost=self.total_cost,
            quantity=self.quantity,
            timestamp=self.timestamp,
        )
