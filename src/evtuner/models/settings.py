"""Settings and last-input models."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationInfo, field_validator

from evtuner._constants import (
    DEFAULT_BUSBAR_CURRENT,
    DEFAULT_CAPACITY,
    DEFAULT_ELECTRICITY_PRICE,
    DEFAULT_EXCELLENT_THRESHOLD,
    DEFAULT_PHASE_CURRENT,
    DEFAULT_VOLTAGE,
    DEFAULT_WARNING_THRESHOLD,
)
from evtuner.models._base import EvTunerBaseModel

_TRUE_STRINGS = frozenset({"1", "true", "yes", "y", "on"})


class Settings(EvTunerBaseModel):
    """Process-wide user settings.

    ``voltage`` and ``capacity`` together define the pack energy used by
    every derived metric.  ``excellent_threshold`` is expected to be lower
    than ``warning_threshold``; this is assumed, not enforced.
    """

    voltage: float = DEFAULT_VOLTAGE
    """Nominal pack voltage (V)."""
    capacity: float = DEFAULT_CAPACITY
    """Pack capacity (Ah)."""
    excellent_threshold: float = DEFAULT_EXCELLENT_THRESHOLD
    """Consumption below this (Wh/km) is rated excellent."""
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
    """Consumption above this (Wh/km) is rated warning."""
    custom_tags: list[str] = Field(default_factory=list)
    """User-added tags, in insertion order."""
    dark_mode: bool = False
    """Display preference, stored for the presentation layer."""
    electricity_price: float = DEFAULT_ELECTRICITY_PRICE
    """Electricity price per kWh."""

    @property
    def total_energy(self) -> float:
        """Total pack energy in Wh."""
        return self.voltage * self.capacity

    @field_validator(
        "voltage",
        "capacity",
        "excellent_threshold",
        "warning_threshold",
        "electricity_price",
        mode="before",
    )
    @classmethod
    def _coerce_floats(cls, value: Any, info: ValidationInfo) -> float:
        return cls._float_field(value, info)

    @field_validator("custom_tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        if not isinstance(value, (list, tuple)):
            return []
        return [str(tag) for tag in value if tag is not None]

    @field_validator("dark_mode", mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return False


class LastInput(EvTunerBaseModel):
    """Current readings of the most recent ride, used to pre-fill the next entry."""

    busbar_current: float = DEFAULT_BUSBAR_CURRENT
    phase_current: float = DEFAULT_PHASE_CURRENT

    @field_validator("busbar_current", "phase_current", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any, info: ValidationInfo) -> float:
        return cls._float_field(value, info)
