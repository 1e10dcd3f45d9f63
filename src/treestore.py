"""Public SDK surface for the tree store.

This module provides a stable import path for store users.
It re-exports the store handle, config, row model, and errors.
"""

from __future__ import annotations

from core.config import TreeConfig
from core.errors import (
    CannotDeleteRowError,
    ColumnValueError,
    LabelCollisionError,
    MalformedResponseError,
    ParentLabelCollisionError,
    RowIdCollisionError,
    RowNotFoundError,
    TooManyRowsError,
    TreeConfigError,
    TreeError,
    TreeStoreError,
    TypeLabelCollisionError,
)
from core.row_ids import generate_row_id
from core.types import LabelCollision, Row
from store.row_model import ColumnKind
from store.row_store import TreeStore
from store.table_lifecycle import ensure_table_exists

__all__ = [
    "CannotDeleteRowError",
    "ColumnKind",
    "ColumnValueError",
    "LabelCollision",
    "LabelCollisionError",
    "MalformedResponseError",
    "ParentLabelCollisionError",
    "Row",
    "RowIdCollisionError",
    "RowNotFoundError",
    "TooManyRowsError",
    "TreeConfig",
    "TreeConfigError",
    "TreeError",
    "TreeStore",
    "TreeStoreError",
    "TypeLabelCollisionError",
    "ensure_table_exists",
    "generate_row_id",
]
