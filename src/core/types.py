"""Shared typed models.

This module defines immutable data models returned by the row store
so interfaces stay explicit and stable for callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

ColumnValue = str | frozenset[str]


@dataclass(frozen=True)
class Row:
    """Fully materialized row read from or written to the table.

    Attributes:
        row_type: Namespace grouping rows; hash part of the primary key.
        row_id: Generated identifier; range part of the primary key.
        label: Human-facing name, unique within its scope.
        parent_id: Parent row id, empty for root rows.
        columns: Free-form payload of string and string-set values,
            held as a read-only view and left out of the hash.
    """

    row_type: str
    row_id: str
    label: str
    parent_id: str = ""
    columns: Mapping[str, ColumnValue] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))

    @property
    def is_root(self) -> bool:
        """Whether the row has no parent."""
        return not self.parent_id


@dataclass(frozen=True)
class LabelCollision:
    """Group of rows sharing one label inside one uniqueness scope.

    Attributes:
        scope: Either ``"type"`` (all rows of a type) or ``"parent"`` (children).
        scope_key: Row type or parent id the scope is keyed by.
        label: Shared label value.
        row_ids: Ids of the colliding rows, sorted.
    """

    scope: str
    scope_key: str
    label: str
    row_ids: tuple[str, ...]
