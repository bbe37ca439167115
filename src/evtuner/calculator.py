"""Derived ride and charging metrics.

Every function here is pure and never raises for out-of-domain numbers:
negative or >100 % inputs pass through unchanged, divisions by a
non-positive distance or consumption return ``0``.  Non-finite inputs are
not sanitised.

Units: energy in Wh, distance in km, consumption in Wh/km, price per kWh.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

from evtuner._constants import DEFAULT_EXCELLENT_THRESHOLD, DEFAULT_WARNING_THRESHOLD
from evtuner._normalize import float_or
from evtuner.models.results import RideSummary


class ConsumptionTier(StrEnum):
    """Qualitative efficiency bucket for a Wh/km value."""

    EXCELLENT = "excellent"
    NORMAL = "normal"
    WARNING = "warning"


def consumed_energy(soc_percent: float, total_energy: float) -> float:
    """Energy (Wh) represented by *soc_percent* of a *total_energy* pack."""
    return (soc_percent / 100) * total_energy


def energy_consumption(consumed: float, distance: float) -> float:
    """Average consumption in Wh/km, ``0`` when *distance* is not positive."""
    if distance <= 0:
        return 0
    return consumed / distance


def estimate_range(total_energy: float, consumption: float) -> float:
    """Theoretical full-pack range in km, ``0`` when *consumption* is not positive."""
    if consumption <= 0:
        return 0
    return total_energy / consumption


def consumption_tier(
    consumption: float,
    excellent_threshold: float = DEFAULT_EXCELLENT_THRESHOLD,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> ConsumptionTier:
    """Classify *consumption*.

    Values exactly at either threshold are ``normal``.
    """
    if consumption < excellent_threshold:
        return ConsumptionTier.EXCELLENT
    if consumption <= warning_threshold:
        return ConsumptionTier.NORMAL
    return ConsumptionTier.WARNING


def electricity_cost(consumed: float, price: float) -> float:
    """Cost of *consumed* Wh at *price* per kWh."""
    return (consumed / 1000) * price


def round_half_away(value: float, digits: int = 0) -> float:
    """Round *value* to *digits* decimals, halves away from zero.

    The value is scaled by ``10**digits`` before rounding, so the result
    matches what a ``round(value * 10**n) / 10**n`` calculation produces in
    the exported data.  NaN and infinities are returned unchanged.
    """
    factor = 10**digits
    scaled = value * factor
    if not math.isfinite(scaled):
        return value
    rounded = math.floor(abs(scaled) + 0.5)
    return math.copysign(rounded, scaled) / factor


# ------------------------------------------------------------------
# Dates
# ------------------------------------------------------------------


def parse_date(value: datetime | str | int | float) -> datetime:
    """Convert *value* into a local-time :class:`datetime`.

    Accepts datetimes (naive ones are taken as local time), ISO-8601
    strings including a trailing ``Z``, and epoch timestamps in
    milliseconds.  Numbers (and digit strings) are always milliseconds,
    whatever their magnitude.

    Raises :class:`ValueError` when *value* cannot be interpreted.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ValueError(f"invalid timestamp: {value!r}")
        return datetime.fromtimestamp(value / 1000)
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_date(int(text))
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"unsupported date value: {value!r}")

    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone().replace(tzinfo=None)


def format_date_time_long(date: datetime | str | int | float) -> str:
    """Format as ``YYYY-MM-DD HH:mm`` in local time."""
    d = parse_date(date)
    return f"{d.year}-{d.month:02d}-{d.day:02d} {d.hour:02d}:{d.minute:02d}"


def format_date_short(date: datetime | str | int | float) -> str:
    """Format as ``M月D日`` without zero padding."""
    d = parse_date(date)
    return f"{d.month}月{d.day}日"


# ------------------------------------------------------------------
# Records
# ------------------------------------------------------------------


def _as_dict(record: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    to_document = getattr(record, "to_document", None)
    if callable(to_document):
        return dict(to_document())
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json", by_alias=True)
    return dict(record)


def enrich_record(
    record: BaseModel | Mapping[str, Any],
    total_energy: float,
    price: float = 0,
) -> dict[str, Any]:
    """Return a camelCase copy of a ride with its derived metrics.

    Adds ``consumedEnergy`` and ``energyConsumption`` (1 decimal),
    ``range`` (integer km) and ``electricityCost`` (2 decimals).
    """
    data = _as_dict(record)
    consumed = consumed_energy(float_or(data.get("socConsumed"), 0.0), total_energy)
    consumption = energy_consumption(consumed, float_or(data.get("distance"), 0.0))
    range_km = estimate_range(total_energy, consumption)
    cost = electricity_cost(consumed, price)

    data["consumedEnergy"] = round_half_away(consumed, 1)
    data["energyConsumption"] = round_half_away(consumption, 1)
    range_rounded = round_half_away(range_km)
    data["range"] = int(range_rounded) if math.isfinite(range_rounded) else range_rounded
    data["electricityCost"] = round_half_away(cost, 2)
    return data


def enrich_charge_record(
    record: BaseModel | Mapping[str, Any],
    total_energy: float,
    price: float = 0,
) -> dict[str, Any]:
    """Return a camelCase copy of a charging session with its derived metrics.

    A positive per-session ``price`` takes precedence over *price*.
    ``chargeEfficiency`` is the pack energy divided by the metered energy,
    ``0`` when no meter reading was entered.
    """
    data = _as_dict(record)
    soc_charged = float_or(data.get("socAfter"), 0.0) - float_or(data.get("socBefore"), 0.0)
    charged = consumed_energy(soc_charged, total_energy)
    meter = float_or(data.get("meterEnergy"), 0.0)
    session_price = float_or(data.get("price"), 0.0)
    effective_price = session_price if session_price > 0 else price
    # Billing follows the meter when there is one.
    cost = electricity_cost(meter if meter > 0 else charged, effective_price)
    efficiency = charged / meter if meter > 0 else 0

    data["socCharged"] = round_half_away(soc_charged, 1)
    data["chargedEnergy"] = round_half_away(charged, 1)
    data["chargeCost"] = round_half_away(cost, 2)
    data["chargeEfficiency"] = round_half_away(efficiency, 3)
    return data


def summarize_rides(
    records: Iterable[BaseModel | Mapping[str, Any]],
    total_energy: float,
    price: float = 0,
) -> RideSummary:
    """Aggregate rides into totals and a distance-weighted average."""
    count = 0
    total_distance = 0.0
    total_consumed = 0.0
    for record in records:
        data = _as_dict(record)
        count += 1
        total_distance += float_or(data.get("distance"), 0.0)
        total_consumed += consumed_energy(float_or(data.get("socConsumed"), 0.0), total_energy)

    average = energy_consumption(total_consumed, total_distance)
    return RideSummary(
        ride_count=count,
        total_distance=round_half_away(total_distance, 1),
        total_consumed_energy=round_half_away(total_consumed, 1),
        average_consumption=round_half_away(average, 1),
        average_range=round_half_away(estimate_range(total_energy, average)),
        total_cost=round_half_away(electricity_cost(total_consumed, price), 2),
    )
