# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 Forecast Engine Contributors
from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound="SchemaModel")


# Wire names that keep their acronyms upper-case.
_CAMEL_OVERRIDES = {
    "log_lr": "logLR",
    "log_lr_hint": "logLRHint",
    "mean_llr": "meanLLR",
    "delta_pp": "deltaPP",
}


def to_camel(name: str) -> str:
    if name in _CAMEL_OVERRIDES:
        return _CAMEL_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class SchemaModel(BaseModel):
    """
    Canonical base for schema models (Pydantic v2).

    - Ignores extra fields for backward compatibility.
    - Accepts both snake_case and camelCase keys on input.
    - `to_dict()` emits camelCase keys and drops unset optionals,
      matching the client payload.
    """

    model_config = {
        "extra": "ignore",
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls: type[T], data: dict[str, Any]) -> T:
        if not isinstance(data, dict):
            raise TypeError(f"Schema input must be a dict, got: {type(data)!r}")
        return cls.model_validate(data)
