"""evtuner - ride and charging log with energy-consumption analytics for e-bikes and scooters."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("evtuner")
except PackageNotFoundError:
    __version__ = "0+local"
from evtuner.calculator import (
    ConsumptionTier,
    consumed_energy,
    consumption_tier,
    electricity_cost,
    energy_consumption,
    enrich_charge_record,
    enrich_record,
    estimate_range,
    format_date_short,
    format_date_time_long,
    summarize_rides,
)
from evtuner.config import EvTunerConfig
from evtuner.exceptions import (
    EvTunerConfigError,
    EvTunerDataError,
    EvTunerError,
    EvTunerStorageError,
)
from evtuner.models import (
    BackupReminder,
    ChargeRecord,
    LastInput,
    RideRecord,
    RideSummary,
    Settings,
    Template,
)
from evtuner.storage import FileStorage, KeyValueStorage, MemoryStorage
from evtuner.store import RideStore

__all__ = [
    "__version__",
    "BackupReminder",
    "ChargeRecord",
    "ConsumptionTier",
    "EvTunerConfig",
    "EvTunerConfigError",
    "EvTunerDataError",
    "EvTunerError",
    "EvTunerStorageError",
    "FileStorage",
    "KeyValueStorage",
    "LastInput",
    "MemoryStorage",
    "RideRecord",
    "RideStore",
    "RideSummary",
    "Settings",
    "Template",
    "consumed_energy",
    "consumption_tier",
    "electricity_cost",
    "energy_consumption",
    "enrich_charge_record",
    "enrich_record",
    "estimate_range",
    "format_date_short",
    "format_date_time_long",
    "summarize_rides",
]
