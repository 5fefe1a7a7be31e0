"""Metadata about the source of an object: a component or package.

This is used to help split up containers into distinct layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

_U32_MAX = 0xFFFFFFFF
_STRING_FIELDS = ("identifier", "name", "srcid")
_INT_FIELDS = ("change_time_offset", "change_frequency")


@dataclass(eq=False)
class ObjectSourceMeta:
    """Metadata about a component or package.

    Equality and hashing consider only ``identifier``.
    """

    identifier: str
    name: str
    srcid: str
    change_time_offset: int
    change_frequency: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectSourceMeta):
            return NotImplemented
        return self.identifier == other.identifier

    def __hash__(self) -> int:
        return hash(self.identifier)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain mapping."""
        return {
            "identifier": self.identifier,
            "name": self.name,
            "srcid": self.srcid,
            "change_time_offset": self.change_time_offset,
            "change_frequency": self.change_frequency,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectSourceMeta:
        """Deserialize from a mapping, validating field types."""
        values: dict[str, Any] = {}
        for key in _STRING_FIELDS:
            if key not in data:
                raise ValueError(f"missing field `{key}`")
            if not isinstance(data[key], str):
                raise ValueError(f"invalid type for `{key}`: expected a string")
            values[key] = data[key]
        for key in _INT_FIELDS:
            if key not in data:
                raise ValueError(f"missing field `{key}`")
            v = data[key]
            if isinstance(v, bool) or not isinstance(v, int):
                raise ValueError(f"invalid type for `{key}`: expected u32")
            if not 0 <= v <= _U32_MAX:
                raise ValueError(f"invalid value for `{key}`: {v}")
            values[key] = v
        return cls(**values)


@dataclass
class ObjectMeta:
    """Object sources keyed by identifier, and content checksums mapped to them."""

    sources: dict[str, ObjectSourceMeta] = field(default_factory=dict)
    objects: dict[str, str] = field(default_factory=dict)

    def add_source(self, meta: ObjectSourceMeta) -> bool:
        """Add ``meta`` unless its identifier is already known; return whether added."""
        if meta.identifier in self.sources:
            return False
        self.sources[meta.identifier] = meta
        return True

    def source(self, identifier: str) -> ObjectSourceMeta | None:
        """Look up a source by identifier."""
        return self.sources.get(identifier)