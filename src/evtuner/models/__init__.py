"""Data models for persisted evtuner documents."""

from evtuner.models._base import EvTunerBaseModel
from evtuner.models.records import ChargeRecord, RideRecord, Template
from evtuner.models.results import BackupReminder, ExportSnapshot, RideSummary
from evtuner.models.settings import LastInput, Settings

__all__ = [
    "BackupReminder",
    "ChargeRecord",
    "EvTunerBaseModel",
    "ExportSnapshot",
    "LastInput",
    "RideRecord",
    "RideSummary",
    "Settings",
    "Template",
]
