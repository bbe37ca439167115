"""Custom exception hierarchy for evtuner."""

from __future__ import annotations


class EvTunerError(Exception):
    """Base exception for all evtuner errors."""


class EvTunerConfigError(EvTunerError):
    """Invalid or missing configuration."""


class EvTunerDataError(EvTunerError):
    """A persisted document could not be parsed.

    Raised by :meth:`evtuner.store.RideStore.load` when the storage medium
    returns text that is not valid JSON.  The store does not try to recover;
    the caller decides whether to reset the key or abort.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class EvTunerStorageError(EvTunerError):
    """The storage medium failed to read or write a key."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
