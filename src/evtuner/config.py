"""Library configuration for evtuner."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from evtuner._constants import BACKUP_REMINDER_THRESHOLD, DEFAULT_KEY_PREFIX
from evtuner.exceptions import EvTunerConfigError


@dataclasses.dataclass(frozen=True)
class EvTunerConfig:
    """Store configuration.

    Parameters
    ----------
    data_dir : str
        Directory used by :class:`~evtuner.storage.FileStorage` when the
        store is built with :meth:`RideStore.from_config`.
    key_prefix : str
        Prefix prepended to every persisted key.  The default matches the
        keys of the original web application.
    backup_reminder_threshold : int
        Number of rides added since the last backup after which
        ``add_record`` asks for a backup.
    """

    data_dir: str = "~/.evtuner"
    key_prefix: str = DEFAULT_KEY_PREFIX
    backup_reminder_threshold: int = BACKUP_REMINDER_THRESHOLD

    def __post_init__(self) -> None:
        if self.backup_reminder_threshold < 1:
            raise EvTunerConfigError(
                f"backup_reminder_threshold must be positive, got {self.backup_reminder_threshold}"
            )

    def storage_key(self, name: str) -> str:
        """Return the full storage key for a collection *name*."""
        return f"{self.key_prefix}{name}"

    @classmethod
    def from_env(cls, **overrides: Any) -> EvTunerConfig:
        """Create configuration from environment variables.

        Reads ``EVTUNER_DATA_DIR``, ``EVTUNER_KEY_PREFIX`` and
        ``EVTUNER_BACKUP_REMINDER_THRESHOLD``.  Explicit keyword arguments
        override environment values.

        Raises
        ------
        EvTunerConfigError
            If the threshold variable is not an integer.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "EVTUNER_DATA_DIR": "data_dir",
            "EVTUNER_KEY_PREFIX": "key_prefix",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        threshold_env = env.get("EVTUNER_BACKUP_REMINDER_THRESHOLD")
        if threshold_env is not None and "backup_reminder_threshold" not in overrides:
            try:
                config_kwargs["backup_reminder_threshold"] = int(threshold_env)
            except ValueError as exc:
                raise EvTunerConfigError(
                    f"EVTUNER_BACKUP_REMINDER_THRESHOLD must be an integer, got {threshold_env!r}"
                ) from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
