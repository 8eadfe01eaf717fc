from __future__ import annotations

from datetime import datetime

import polars as pl
from django.utils import timezone

from fuel_companion.exceptions import InvalidInputError
from fuel_companion.services.types import (
    AnnualSummary,
    ExpenseRecord,
    FuelFilter,
    MonthlyAggregate,
)

FUEL_FILTERS = ("All", "Petrol", "Diesel", "EV")
EXPENSE_FUEL_TYPES = ("Petrol", "Diesel", "EV")

_FRAME_SCHEMA = {
    "position": pl.Int64,
    "year": pl.Int64,
    "month": pl.Int64,
    "fuel_type": pl.Utf8,
    "total_cost": pl.Float64,
}


def calendar_year_month(timestamp: datetime) -> tuple[int, int]:
    if timezone.is_aware(timestamp):
        timestamp = timezone.localtime(timestamp)
    return timestamp.year, timestamp.month


def monthly_totals(
    records: list[ExpenseRecord], year: int, fuel_filter: FuelFilter = "All"
) -> list[float]:
    """Total spend per calendar month of ``year``; index 0 is January."""
    frame = _year_frame(records, year, fuel_filter)
    sums = frame.group_by("month").agg(pl.col("total_cost").sum())
    by_month = dict(zip(sums["month"].to_list(), sums["total_cost"].to_list()))
    return [float(by_month.get(month, 0.0)) for month in range(1, 13)]


def monthly_aggregate(
    records: list[ExpenseRecord], year: int, month: int, fuel_filter: FuelFilter = "All"
) -> MonthlyAggregate:
    if not 1 <= month <= 12:
        raise InvalidInputError(f"Month must be between 1 and 12, got {month}")

    frame = _year_frame(records, year, fuel_filter).filter(pl.col("month") == month)
    matching = [records[position] for position in frame["position"].to_list()]
    return MonthlyAggregate(
        year=year,
        month=month,
        fuel_filter=fuel_filter,
        total_cost=float(frame["total_cost"].sum()),
        records=matching,
    )


def annual_summary(
    records: list[ExpenseRecord], year: int, fuel_filter: FuelFilter = "All"
) -> AnnualSummary:
    frame = _year_frame(records, year, fuel_filter)
    total_spent = float(frame["total_cost"].sum())
    active_months = frame["month"].n_unique()

    sums = frame.group_by("fuel_type").agg(pl.col("total_cost").sum())
    by_fuel = dict(zip(sums["fuel_type"].to_list(), sums["total_cost"].to_list()))
    breakdown = {
        fuel_type: float(by_fuel[fuel_type])
        for fuel_type in EXPENSE_FUEL_TYPES
        if by_fuel.get(fuel_type)
    }

    return AnnualSummary(
        year=year,
        fuel_filter=fuel_filter,
        total_spent=total_spent,
        avg_per_active_month=total_spent / active_months if active_months else 0.0,
        active_months=active_months,
        breakdown_by_fuel_type=breakdown,
    )


def available_years(records: list[ExpenseRecord]) -> list[int]:
    return sorted({calendar_year_month(record.timestamp)[0] for record in records})


def _year_frame(records: list[ExpenseRecord], year: int, fuel_filter: FuelFilter) -> pl.DataFrame:
    if fuel_filter not in FUEL_FILTERS:
        raise InvalidInputError(f"Unknown fuel filter: {fuel_filter!r}")

    rows = []
    for position, record in enumerate(records):
        record_year, record_month = calendar_year_month(record.timestamp)
        rows.append(
            {
                "position": position,
                "year": record_year,
                "month": record_month,
                "fuel_type": record.fuel_type,
                "total_cost": record.total_cost,
            }
        )

    frame = pl.DataFrame(rows, schema=_FRAME_SCHEMA).filter(pl.col("year") == year)
    if fuel_filter != "All":
        frame = frame.filter(pl.col("fuel_type") == fuel_filter)
    return frame
