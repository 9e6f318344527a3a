"""Base model for ridenav entities.

Every entity that crosses the backend boundary inherits from
:class:`RideNavBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase payload keys map
  automatically to snake_case fields, and ``model_dump(by_alias=True)``
  produces the camelCase wire shape.
* A ``model_validator(mode="before")`` that drops placeholder values
  (``None``, ``""``, NaN) so the field default is used instead of a
  half-parsed value leaking inward.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Placeholder strings a loosely typed backend uses for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null", "undefined"})


class RideNavBaseModel(BaseModel):
    """Immutable base for parsed entities."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _drop_placeholders(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return RideNavBaseModel._clean_dict(values)

    def to_payload(self) -> dict[str, Any]:
        """camelCase JSON-compatible dict for the wire."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
