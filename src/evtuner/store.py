"""Persistent ride/charge store.

:class:`RideStore` holds the settings, ride records, charge records,
templates, last-input cache and backup counter in memory and mirrors each
of them to its own key in a :class:`~evtuner.storage.KeyValueStorage`.
Every mutation rewrites the whole owning document synchronously; there is
no cross-key transaction.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from evtuner import calculator
from evtuner._constants import (
    CHARGE_RECORDS_KEY,
    DEFAULT_TAGS,
    LAST_BACKUP_COUNT_KEY,
    LAST_INPUT_KEY,
    RECORDS_KEY,
    SETTINGS_KEY,
    TEMPLATES_KEY,
)
from evtuner._normalize import safe_int
from evtuner.config import EvTunerConfig
from evtuner.exceptions import EvTunerDataError
from evtuner.models import (
    BackupReminder,
    ChargeRecord,
    EvTunerBaseModel,
    ExportSnapshot,
    LastInput,
    RideRecord,
    RideSummary,
    Settings,
    Template,
)
from evtuner.storage import FileStorage, KeyValueStorage

_logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=EvTunerBaseModel)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _coerce(model_cls: type[TModel], value: TModel | Mapping[str, Any]) -> TModel:
    if isinstance(value, model_cls):
        return value
    return model_cls.model_validate(dict(value))


def _dumps(document: Any) -> str:
    return json.dumps(document, ensure_ascii=False, separators=(",", ":"))


class RideStore:
    """In-memory state for one rider, persisted key by key.

    Usage::

        store = RideStore(FileStorage("~/.evtuner"))
        store.load()
        reminder = store.add_record({"socConsumed": 12, "distance": 8.5})

    The store is a plain object: construct one per process (or per test)
    and pass it to whatever needs it.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        config: EvTunerConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._config = config or EvTunerConfig()
        self._clock = clock
        self._settings = Settings()
        self._records: list[RideRecord] = []
        self._charge_records: list[ChargeRecord] = []
        self._last_input = LastInput()
        self._templates: list[Template] = []
        self._last_backup_count = 0

    @classmethod
    def from_config(
        cls,
        config: EvTunerConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> RideStore:
        """Build a store backed by a :class:`FileStorage` in ``config.data_dir``."""
        config = config or EvTunerConfig.from_env()
        return cls(FileStorage(config.data_dir), config, clock=clock)

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> EvTunerConfig:
        return self._config

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def records(self) -> list[RideRecord]:
        """Ride records, newest first."""
        return list(self._records)

    @property
    def charge_records(self) -> list[ChargeRecord]:
        """Charge records, newest first."""
        return list(self._charge_records)

    @property
    def last_input(self) -> LastInput:
        return self._last_input

    @property
    def templates(self) -> list[Template]:
        return list(self._templates)

    @property
    def last_backup_count(self) -> int:
        return self._last_backup_count

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def total_energy(self) -> float:
        """Pack energy in Wh (voltage × capacity)."""
        return self._settings.total_energy

    @property
    def default_tags(self) -> list[str]:
        return list(DEFAULT_TAGS)

    @property
    def all_tags(self) -> list[str]:
        """Default tags in fixed order followed by custom tags in insertion order."""
        return list(dict.fromkeys([*DEFAULT_TAGS, *self._settings.custom_tags]))

    @property
    def pending_backup_count(self) -> int:
        """Rides added since the last acknowledged backup."""
        return len(self._records) - self._last_backup_count

    def enriched_records(self) -> list[dict[str, Any]]:
        """Ride documents with derived metrics at the current settings."""
        price = self._settings.electricity_price
        return [calculator.enrich_record(record, self.total_energy, price) for record in self._records]

    def enriched_charge_records(self) -> list[dict[str, Any]]:
        price = self._settings.electricity_price
        return [calculator.enrich_charge_record(record, self.total_energy, price) for record in self._charge_records]

    def consumption_tier_for(self, consumption: float) -> calculator.ConsumptionTier:
        """Tier of *consumption* using the thresholds from settings."""
        return calculator.consumption_tier(
            consumption,
            self._settings.excellent_threshold,
            self._settings.warning_threshold,
        )

    def ride_summary(self) -> RideSummary:
        return calculator.summarize_rides(self._records, self.total_energy, self._settings.electricity_price)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _key(self, name: str) -> str:
        return self._config.storage_key(name)

    def _read(self, name: str) -> Any:
        """Return the parsed document stored under *name*, or ``None`` when absent."""
        key = self._key(name)
        text = self._storage.get(key)
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise EvTunerDataError(f"stored document {key!r} is not valid JSON: {exc}", key=key) from exc
        except RecursionError as exc:
            raise EvTunerDataError(f"stored document {key!r} is nested too deeply", key=key) from exc

    def _write(self, name: str, document: Any) -> None:
        key = self._key(name)
        self._storage.set(key, _dumps(document))
        _logger.debug("Persisted %s", key)

    def _load_collection(self, name: str, document: Any, model_cls: type[TModel]) -> list[TModel] | None:
        if not isinstance(document, list):
            _logger.warning("Ignoring %s: expected a JSON array, got %s", self._key(name), type(document).__name__)
            return None
        items: list[TModel] = []
        for index, entry in enumerate(document):
            if not isinstance(entry, dict):
                _logger.warning("Skipping %s[%d]: expected a JSON object", self._key(name), index)
                continue
            items.append(model_cls.model_validate(entry))
        return items

    def load(self) -> None:
        """Read every collection from storage.

        Settings and last input are merged over their defaults; records,
        charge records and templates replace the in-memory lists.  On first
        run the backup counter is seeded with the current ride count and
        persisted straight away.

        Raises
        ------
        EvTunerDataError
            If a stored document is not valid JSON.
        """
        settings = self._read(SETTINGS_KEY)
        if settings is not None:
            if isinstance(settings, dict):
                merged = {**self._settings.to_document(), **Settings.normalize_keys(settings)}
                self._settings = Settings.model_validate(merged)
            else:
                _logger.warning("Ignoring %s: expected a JSON object", self._key(SETTINGS_KEY))

        records = self._read(RECORDS_KEY)
        if records is not None:
            loaded_records = self._load_collection(RECORDS_KEY, records, RideRecord)
            if loaded_records is not None:
                self._records = loaded_records

        charge_records = self._read(CHARGE_RECORDS_KEY)
        if charge_records is not None:
            loaded_charges = self._load_collection(CHARGE_RECORDS_KEY, charge_records, ChargeRecord)
            if loaded_charges is not None:
                self._charge_records = loaded_charges

        last_input = self._read(LAST_INPUT_KEY)
        if last_input is not None:
            if isinstance(last_input, dict):
                merged = {**self._last_input.to_document(), **LastInput.normalize_keys(last_input)}
                self._last_input = LastInput.model_validate(merged)
            else:
                _logger.warning("Ignoring %s: expected a JSON object", self._key(LAST_INPUT_KEY))

        templates = self._read(TEMPLATES_KEY)
        if templates is not None:
            loaded_templates = self._load_collection(TEMPLATES_KEY, templates, Template)
            if loaded_templates is not None:
                self._templates = loaded_templates

        backup_count = self._read(LAST_BACKUP_COUNT_KEY)
        parsed_count = safe_int(backup_count)
        if backup_count is not None and parsed_count is None:
            _logger.warning("Ignoring %s: expected an integer", self._key(LAST_BACKUP_COUNT_KEY))
        if parsed_count is None:
            self._last_backup_count = len(self._records)
            self._write(LAST_BACKUP_COUNT_KEY, self._last_backup_count)
        else:
            self._last_backup_count = parsed_count

        _logger.debug(
            "Loaded %d rides, %d charges, %d templates (backup baseline %d)",
            len(self._records),
            len(self._charge_records),
            len(self._templates),
            self._last_backup_count,
        )

    def save_settings(self) -> None:
        self._write(SETTINGS_KEY, self._settings.to_document())

    def save_records(self) -> None:
        self._write(RECORDS_KEY, [record.to_document() for record in self._records])

    def save_charge_records(self) -> None:
        self._write(CHARGE_RECORDS_KEY, [record.to_document() for record in self._charge_records])

    def save_last_input(self) -> None:
        self._write(LAST_INPUT_KEY, self._last_input.to_document())

    def save_templates(self) -> None:
        self._write(TEMPLATES_KEY, [template.to_document() for template in self._templates])

    def _next_id(self, existing: Sequence[EvTunerBaseModel]) -> str:
        """Epoch milliseconds as a string, bumped past ids already in *existing*."""
        taken = {getattr(item, "id", "") for item in existing}
        candidate = int(self._clock().timestamp() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    # ------------------------------------------------------------------
    # Ride records
    # ------------------------------------------------------------------

    def add_record(self, record: RideRecord | Mapping[str, Any]) -> BackupReminder:
        """Insert a ride at the front of the collection.

        Also remembers its current readings as the last input and returns
        the backup-reminder decision for the new total.
        """
        ride = _coerce(RideRecord, record)
        ride = ride.model_copy(update={"id": self._next_id(self._records)})
        self._records.insert(0, ride)
        self.save_records()
        _logger.debug("Added ride id=%s", ride.id)

        self._last_input = self._last_input.model_copy(
            update={"busbar_current": ride.busbar_current, "phase_current": ride.phase_current}
        )
        self.save_last_input()

        return self.check_backup_reminder()

    def update_record(self, record_id: str, record: RideRecord | Mapping[str, Any]) -> None:
        """Replace the ride *record_id* in place; unknown ids are ignored."""
        for index, existing in enumerate(self._records):
            if existing.id == record_id:
                self._records[index] = _coerce(RideRecord, record).model_copy(update={"id": record_id})
                self.save_records()
                _logger.debug("Updated ride id=%s", record_id)
                return

    def delete_record(self, record_id: str) -> None:
        """Remove the ride *record_id*; unknown ids leave storage untouched."""
        remaining = [record for record in self._records if record.id != record_id]
        if len(remaining) == len(self._records):
            return
        self._records = remaining
        self.save_records()

    def clear_records(self) -> None:
        """Drop every ride.  Settings, templates and last input are kept."""
        self._records = []
        self.save_records()

    def get_record(self, record_id: str) -> RideRecord | None:
        return next((record for record in self._records if record.id == record_id), None)

    # ------------------------------------------------------------------
    # Backup reminder
    # ------------------------------------------------------------------

    def check_backup_reminder(self) -> BackupReminder:
        """Compare the ride count with the last backup baseline.  No side effects."""
        total = len(self._records)
        diff = total - self._last_backup_count
        return BackupReminder(
            should_remind=diff >= self._config.backup_reminder_threshold,
            new_records_count=diff,
            total_records=total,
        )

    def reset_backup_counter(self) -> None:
        """Acknowledge a completed backup."""
        self._last_backup_count = len(self._records)
        self._write(LAST_BACKUP_COUNT_KEY, self._last_backup_count)

    # ------------------------------------------------------------------
    # Charge records
    # ------------------------------------------------------------------

    def add_charge_record(self, record: ChargeRecord | Mapping[str, Any]) -> ChargeRecord:
        charge = _coerce(ChargeRecord, record)
        charge = charge.model_copy(update={"id": self._next_id(self._charge_records)})
        self._charge_records.insert(0, charge)
        self.save_charge_records()
        _logger.debug("Added charge id=%s", charge.id)
        return charge

    def update_charge_record(self, record_id: str, record: ChargeRecord | Mapping[str, Any]) -> None:
        for index, existing in enumerate(self._charge_records):
            if existing.id == record_id:
                self._charge_records[index] = _coerce(ChargeRecord, record).model_copy(update={"id": record_id})
                self.save_charge_records()
                return

    def delete_charge_record(self, record_id: str) -> None:
        remaining = [record for record in self._charge_records if record.id != record_id]
        if len(remaining) == len(self._charge_records):
            return
        self._charge_records = remaining
        self.save_charge_records()

    def clear_charge_records(self) -> None:
        self._charge_records = []
        self.save_charge_records()

    # ------------------------------------------------------------------
    # Settings and tags
    # ------------------------------------------------------------------

    def update_settings(self, partial: Mapping[str, Any]) -> Settings:
        """Shallow-merge *partial* into the settings and persist.

        Keys may be camelCase or snake_case.  A ``customTags`` entry replaces
        the whole tag list.
        """
        merged = {**self._settings.to_document(), **Settings.normalize_keys(dict(partial))}
        self._settings = Settings.model_validate(merged)
        self.save_settings()
        return self._settings

    def add_custom_tag(self, tag: str) -> bool:
        """Append *tag* unless it is a default tag or already present.

        Returns ``True`` when the tag was added.
        """
        if tag in self._settings.custom_tags or tag in DEFAULT_TAGS:
            return False
        self._settings = self._settings.model_copy(update={"custom_tags": [*self._settings.custom_tags, tag]})
        self.save_settings()
        return True

    def remove_custom_tag(self, tag: str) -> None:
        tags = [existing for existing in self._settings.custom_tags if existing != tag]
        self._settings = self._settings.model_copy(update={"custom_tags": tags})
        self.save_settings()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def save_template(self, template: Template | Mapping[str, Any]) -> Template:
        """Append a template with a fresh id and return it."""
        saved = _coerce(Template, template).model_copy(update={"id": self._next_id(self._templates)})
        self._templates.append(saved)
        self.save_templates()
        return saved

    def delete_template(self, template_id: str) -> None:
        remaining = [template for template in self._templates if template.id != template_id]
        if len(remaining) == len(self._templates):
            return
        self._templates = remaining
        self.save_templates()

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def _export_time(self) -> str:
        now = self._clock().astimezone(UTC)
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def export_snapshot(self) -> dict[str, Any]:
        """Return the backup document ``{settings, records, exportTime}``."""
        return {
            "settings": self._settings.to_document(),
            "records": [record.to_document() for record in self._records],
            "exportTime": self._export_time(),
        }

    def export_json(self) -> str:
        """The backup document as pretty-printed JSON text."""
        return json.dumps(self.export_snapshot(), ensure_ascii=False, indent=2)

    def import_snapshot(self, text: str | bytes) -> bool:
        """Restore settings and/or rides from an exported document.

        Settings are merged over the current ones; rides replace the whole
        collection.  Both blocks are validated before either is applied, so
        on failure nothing changes and ``False`` is returned.
        """
        try:
            snapshot = ExportSnapshot.model_validate(json.loads(text))
            settings: Settings | None = None
            if snapshot.settings is not None:
                merged = {**self._settings.to_document(), **Settings.normalize_keys(snapshot.settings)}
                settings = Settings.model_validate(merged)
            records: list[RideRecord] | None = None
            if snapshot.records is not None:
                records = [RideRecord.model_validate(entry) for entry in snapshot.records]
        except (TypeError, ValueError, RecursionError) as exc:
            _logger.warning("Rejected import: %s", exc)
            return False

        if settings is not None:
            self._settings = settings
            self.save_settings()
        if records is not None:
            self._records = records
            self.save_records()
        _logger.debug(
            "Imported snapshot (settings=%s, rides=%s)",
            settings is not None,
            len(records) if records is not None else "unchanged",
        )
        return True
