# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 WebRAG Contributors
from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound="SchemaModel")


class SchemaModel(BaseModel):
    """
    Canonical base for pipeline value objects (Pydantic v2).

    - Frozen: each stage hands its output to the next by value.
    - Ignores extra fields so provider payloads can be validated directly.
    - Provides `to_dict()` / `from_dict()` for consistent serialization.
    """

    model_config = {"extra": "ignore", "frozen": True}

    def to_dict(self) -> dict[str, Any]:
        return dump_schema(self)

    @classmethod
    def from_dict(cls: type[T], data: dict[str, Any]) -> T:
        return load_schema(cls, data)


def dump_schema(model: Any) -> dict[str, Any]:
    """Dump a schema model to a JSON-safe dict (`model_dump(mode="json")`)."""
    if isinstance(model, BaseModel):
        return model.model_dump(mode="json", exclude_none=True)
    raise TypeError(f"Unsupported schema type for dump: {type(model)!r}")


def load_schema(model_cls: type[T], data: dict[str, Any]) -> T:
    if not isinstance(data, dict):
        raise TypeError(f"Schema input must be a dict, got: {type(data)!r}")
    return model_cls.model_validate(data)
