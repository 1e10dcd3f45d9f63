"""Row projection to and from DynamoDB attribute values.

Column values form a closed union of kinds; anything outside it
fails loudly instead of being stored as an empty value.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from core.constants import ATTR_COLUMNS, ATTR_ID, ATTR_LABEL, ATTR_PARENT_ID, ATTR_TYPE
from core.errors import ColumnValueError, MalformedResponseError
from core.types import ColumnValue, Row

AttributeValue = dict[str, Any]
Item = dict[str, AttributeValue]


class ColumnKind(str, Enum):
    """Supported column value kinds keyed by DynamoDB type descriptor."""

    STRING = "S"
    STRING_SET = "SS"


def normalize_column_value(value: object) -> ColumnValue:
    """Validate a caller value and coerce it to its canonical kind.

    Lists and tuples are stored as string sets, so their order is not
    kept and duplicate members are dropped.

    Args:
        value: String, or set/frozenset/list/tuple of strings.

    Returns:
        The string itself or a frozenset of strings.

    Raises:
        ColumnValueError: If the value is not one of the supported kinds.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (set, frozenset, list, tuple)):
        members = frozenset(value)
        if not members:
            raise ColumnValueError(
                "Unsupported column value: empty string sets cannot be stored. "
                "Remove the column or store at least one member."
            )
        if not all(isinstance(member, str) for member in members):
            raise ColumnValueError(
                f"Unsupported column value {value!r}: set members must be strings."
            )
        return members
    raise ColumnValueError(
        f"Unsupported column value of type {type(value).__name__}: "
        "expected a string or a set of strings."
    )


def normalize_columns(columns: Mapping[str, object] | None) -> dict[str, ColumnValue]:
    """Validate every value of a columns mapping.

    Args:
        columns: Caller-supplied columns, or None for no columns.

    Returns:
        New mapping with canonical values.

    Raises:
        ColumnValueError: If a name is not a string or a value is unsupported.
    """
    normalized: dict[str, ColumnValue] = {}
    for name, value in (columns or {}).items():
        if not isinstance(name, str):
            raise ColumnValueError(f"Unsupported column name {name!r}: expected a string.")
        normalized[name] = normalize_column_value(value)
    return normalized


def encode_column_value(value: object) -> AttributeValue:
    """Encode one column value as a DynamoDB attribute value."""
    normalized = normalize_column_value(value)
    if isinstance(normalized, str):
        return {ColumnKind.STRING.value: normalized}
    return {ColumnKind.STRING_SET.value: sorted(normalized)}


def decode_column_value(attribute: Mapping[str, Any]) -> ColumnValue:
    """Decode one stored attribute value into a column value.

    Args:
        attribute: DynamoDB attribute value with one type descriptor.

    Returns:
        Decoded string or frozenset of strings.

    Raises:
        ColumnValueError: If the stored kind is not supported.
    """
    if ColumnKind.STRING.value in attribute:
        return str(attribute[ColumnKind.STRING.value])
    if ColumnKind.STRING_SET.value in attribute:
        return frozenset(str(member) for member in attribute[ColumnKind.STRING_SET.value])
    raise ColumnValueError(
        f"Unsupported stored column kind {sorted(attribute)}: "
        "only S and SS attribute values can be read as columns."
    )


def encode_columns(columns: Mapping[str, object] | None) -> AttributeValue:
    """Encode a columns mapping as a DynamoDB map attribute."""
    return {
        "M": {name: encode_column_value(value) for name, value in normalize_columns(columns).items()}
    }


def primary_key(row_type: str, row_id: str) -> Item:
    """Build the primary key for a row."""
    return {ATTR_TYPE: {"S": row_type}, ATTR_ID: {"S": row_id}}


def row_to_item(row: Row) -> Item:
    """Project a row onto a DynamoDB item.

    Root rows carry no ``parent_id`` attribute since index key
    attributes may not hold empty strings.

    Args:
        row: Row to project.

    Returns:
        Item ready for ``PutItem``.
    """
    item = primary_key(row.row_type, row.row_id)
    item[ATTR_LABEL] = {"S": row.label}
    item[ATTR_COLUMNS] = encode_columns(row.columns)
    if row.parent_id:
        item[ATTR_PARENT_ID] = {"S": row.parent_id}
    return item


def item_to_row(item: Mapping[str, Any] | None) -> Row:
    """Materialize a row from a DynamoDB item.

    Args:
        item: Item as returned by GetItem, Query, or UpdateItem.

    Returns:
        Parsed row.

    Raises:
        MalformedResponseError: If key attributes are missing.
        ColumnValueError: If a stored column has an unsupported kind.
    """
    if item is None:
        raise MalformedResponseError(
            "Something went wrong: the datastore returned no item to decode."
        )
    row_type = _read_string(item, ATTR_TYPE)
    row_id = _read_string(item, ATTR_ID)
    columns_attribute = item.get(ATTR_COLUMNS, {}).get("M", {})
    return Row(
        row_type=row_type,
        row_id=row_id,
        label=_read_string(item, ATTR_LABEL),
        parent_id=item.get(ATTR_PARENT_ID, {}).get("S", ""),
        columns={
            name: decode_column_value(attribute)
            for name, attribute in columns_attribute.items()
        },
    )


def _read_string(item: Mapping[str, Any], name: str) -> str:
    attribute = item.get(name)
    if not isinstance(attribute, Mapping) or "S" not in attribute:
        raise MalformedResponseError(
            f"Something went wrong: stored item is missing string attribute '{name}'. "
            "Inspect the table for items written outside the row store."
        )
    return str(attribute["S"])
