"""Base model for persisted evtuner documents.

Every stored document model inherits from :class:`EvTunerBaseModel` which
provides:

* ``alias_generator=to_camel`` so the camelCase keys written by the
  original application map automatically to snake_case fields.
* ``extra="allow"`` so keys this version does not know about survive a
  load/save or import/export cycle unchanged.
* A ``raw`` dict that captures the document the model was built from.
* :meth:`EvTunerBaseModel.to_document` which renders the model back into
  the persisted camelCase shape, reusing ``raw`` for every field whose
  value has not changed.  Historical documents (integer numbers, key
  order, ``null`` values, unparseable strings) are therefore written back
  exactly as they were read.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, model_validator
from pydantic.alias_generators import to_camel

from evtuner._normalize import float_or, safe_str


class EvTunerBaseModel(BaseModel):
    """Base for stored documents (settings, records, templates)."""

    _OMIT_WHEN_NONE: ClassVar[frozenset[str]] = frozenset()
    """Optional fields left out of :meth:`to_document` while unset."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)
    """Document the model was validated from."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        stashed = dict(values)
        stashed["raw"] = copy.deepcopy(values)
        return stashed

    @classmethod
    def _float_field(cls, value: Any, info: ValidationInfo) -> float:
        """Lenient float coercion falling back to the field default."""
        default = cls.model_fields[info.field_name].default  # type: ignore[index]
        return float_or(value, default)

    @classmethod
    def _id_field(cls, value: Any) -> str:
        # Older exports may carry numeric ids.
        return safe_str(value) or ""

    @classmethod
    def _alias(cls, name: str) -> str:
        field = cls.model_fields.get(name)
        if field is None:
            return name
        return field.alias or to_camel(name)

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready camelCase dict for persistence/export."""
        fields = type(self).model_fields
        dumped = self.model_dump(mode="json", by_alias=True)

        document = {self._alias(key): copy.deepcopy(value) for key, value in self.raw.items()}
        baseline = type(self).model_validate(self.raw) if self.raw else None

        for name in fields:
            if name == "raw":
                continue
            if baseline is not None and getattr(baseline, name) == getattr(self, name):
                # Unchanged since validation: the raw value (or its absence) stands.
                continue
            alias = self._alias(name)
            value = dumped.get(alias)
            if value is None and name in self._OMIT_WHEN_NONE and alias not in document:
                continue
            document[alias] = value
        return document

    @classmethod
    def normalize_keys(cls, partial: dict[str, Any]) -> dict[str, Any]:
        """Map snake_case field names in *partial* to their camelCase aliases.

        Unknown keys are kept as-is.
        """
        return {cls._alias(key): value for key, value in partial.items()}
