"""Result and transfer models returned by the store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BackupReminder(BaseModel):
    """Backup-reminder decision returned after a ride is added."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    should_remind: bool
    new_records_count: int
    """Rides added since the last acknowledged backup."""
    total_records: int


class RideSummary(BaseModel):
    """Aggregate statistics over a set of rides."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    ride_count: int = 0
    total_distance: float = 0.0
    """Sum of ride distances (km)."""
    total_consumed_energy: float = 0.0
    """Sum of consumed energy (Wh)."""
    average_consumption: float = 0.0
    """Distance-weighted consumption (Wh/km)."""
    average_range: float = 0.0
    """Full-pack range at the average consumption (km)."""
    total_cost: float = 0.0


class ExportSnapshot(BaseModel):
    """Shape of an export document as accepted by ``import_snapshot``.

    Both blocks are optional and independent.  Their contents are only
    checked for being a JSON object / array of objects here; field-level
    coercion happens when the store builds its models.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True, alias_generator=to_camel)

    settings: dict[str, Any] | None = None
    records: list[dict[str, Any]] | None = None
    export_time: Any = None
