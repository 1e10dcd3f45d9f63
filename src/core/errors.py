"""Tree store exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Datastore client errors are not wrapped and reach callers unmodified.
"""

from __future__ import annotations


class TreeError(Exception):
    """Base exception for all tree store failures."""


class TreeConfigError(TreeError):
    """Raised for invalid runtime configuration."""


class TreeStoreError(TreeError):
    """Raised for row store failures."""


class RowNotFoundError(TreeStoreError):
    """Raised when a requested row or child does not exist."""


class TooManyRowsError(TreeStoreError):
    """Raised when more rows match than the data model permits."""


class LabelCollisionError(TreeStoreError):
    """Raised when a label is already taken within its scope."""


class TypeLabelCollisionError(LabelCollisionError):
    """Raised when a row of the same type already has the label."""


class ParentLabelCollisionError(LabelCollisionError):
    """Raised when a child of the same parent already has the label."""


class RowIdCollisionError(TreeStoreError):
    """Raised when a generated primary key already exists."""


class CannotDeleteRowError(TreeStoreError):
    """Raised when a row still has children of the checked type."""


class MalformedResponseError(TreeStoreError):
    """Raised when the datastore returns a structurally wrong response."""


class ColumnValueError(TreeStoreError):
    """Raised for column values outside the supported kinds."""
