"""Ride, charge-session and template models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import ValidationInfo, field_validator

from evtuner.models._base import EvTunerBaseModel


class RideRecord(EvTunerBaseModel):
    """One completed ride as entered by the user.

    Derived metrics (consumed energy, consumption, range, cost) are not
    stored; see :func:`evtuner.calculator.enrich_record`.
    """

    _OMIT_WHEN_NONE: ClassVar[frozenset[str]] = frozenset({"tag", "notes", "timestamp"})

    id: str = ""
    """Timestamp-derived identifier, assigned by the store."""
    soc_consumed: float = 0.0
    """Battery consumed during the ride (percent)."""
    distance: float = 0.0
    """Distance travelled (km)."""
    busbar_current: float = 0.0
    """Busbar current reading (A)."""
    phase_current: float = 0.0
    """Phase current reading (A)."""
    tag: str | None = None
    notes: str | None = None
    timestamp: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return cls._id_field(value)

    @field_validator("soc_consumed", "distance", "busbar_current", "phase_current", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any, info: ValidationInfo) -> float:
        return cls._float_field(value, info)

    @field_validator("tag", "notes", "timestamp", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return None if value is None else str(value)


class ChargeRecord(EvTunerBaseModel):
    """One charging session.

    ``meter_energy`` is the energy measured at the wall (Wh) and ``price``
    overrides the settings price for this session; both are ``0`` when
    unknown.
    """

    _OMIT_WHEN_NONE: ClassVar[frozenset[str]] = frozenset({"location", "notes", "timestamp"})

    id: str = ""
    soc_before: float = 0.0
    """State of charge when plugged in (percent)."""
    soc_after: float = 0.0
    """State of charge when unplugged (percent)."""
    meter_energy: float = 0.0
    price: float = 0.0
    location: str | None = None
    notes: str | None = None
    timestamp: str | None = None

    @property
    def soc_charged(self) -> float:
        return self.soc_after - self.soc_before

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return cls._id_field(value)

    @field_validator("soc_before", "soc_after", "meter_energy", "price", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any, info: ValidationInfo) -> float:
        return cls._float_field(value, info)

    @field_validator("location", "notes", "timestamp", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return None if value is None else str(value)


class Template(EvTunerBaseModel):
    """A named preset of entry-form defaults.

    Everything besides ``id`` and ``name`` is user-defined and kept verbatim.
    """

    _OMIT_WHEN_NONE: ClassVar[frozenset[str]] = frozenset({"name"})

    id: str = ""
    name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return cls._id_field(value)
