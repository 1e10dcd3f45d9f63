"""Fixed key and index layout of the row table.

Every row store query is written against this layout. Changing it
requires migrating existing data into a new table.
"""

from __future__ import annotations

from typing import Any

from core.constants import (
    ATTR_ID,
    ATTR_LABEL,
    ATTR_PARENT_ID,
    ATTR_TYPE,
    BILLING_MODE,
    INDEX_BY_PARENT_AND_LABEL,
    INDEX_BY_TYPE,
    INDEX_BY_TYPE_AND_LABEL,
    INDEX_BY_TYPE_AND_PARENT,
    SSE_TYPE,
)

_FULL_PROJECTION = {"ProjectionType": "ALL"}


def key_schema(hash_key: str, range_key: str | None = None) -> list[dict[str, str]]:
    """Build a key schema from a hash key and optional range key."""
    schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    if range_key is not None:
        schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
    return schema


def attribute_definitions() -> list[dict[str, str]]:
    """Return string definitions for every key attribute of the layout."""
    return [
        {"AttributeName": name, "AttributeType": "S"}
        for name in (ATTR_TYPE, ATTR_ID, ATTR_PARENT_ID, ATTR_LABEL)
    ]


def global_secondary_indexes() -> list[dict[str, Any]]:
    """Return the parent/label and type-only global indexes."""
    return [
        {
            "IndexName": INDEX_BY_PARENT_AND_LABEL,
            "KeySchema": key_schema(ATTR_PARENT_ID, ATTR_LABEL),
            "Projection": dict(_FULL_PROJECTION),
        },
        {
            "IndexName": INDEX_BY_TYPE,
            "KeySchema": key_schema(ATTR_TYPE),
            "Projection": dict(_FULL_PROJECTION),
        },
    ]


def local_secondary_indexes() -> list[dict[str, Any]]:
    """Return the type/label and type/parent local indexes."""
    return [
        {
            "IndexName": INDEX_BY_TYPE_AND_LABEL,
            "KeySchema": key_schema(ATTR_TYPE, ATTR_LABEL),
            "Projection": dict(_FULL_PROJECTION),
        },
        {
            "IndexName": INDEX_BY_TYPE_AND_PARENT,
            "KeySchema": key_schema(ATTR_TYPE, ATTR_PARENT_ID),
            "Projection": dict(_FULL_PROJECTION),
        },
    ]


def build_create_table_request(table_name: str, kms_key_arn: str) -> dict[str, Any]:
    """Build the ``CreateTable`` request for the row table.

    Args:
        table_name: Table to create.
        kms_key_arn: KMS key used for server-side encryption.

    Returns:
        Keyword arguments for ``client.create_table``.
    """
    return {
        "TableName": table_name,
        "AttributeDefinitions": attribute_definitions(),
        "KeySchema": key_schema(ATTR_TYPE, ATTR_ID),
        "GlobalSecondaryIndexes": global_secondary_indexes(),
        "LocalSecondaryIndexes": local_secondary_indexes(),
        "BillingMode": BILLING_MODE,
        "SSESpecification": {
            "Enabled": True,
            "SSEType": SSE_TYPE,
            "KMSMasterKeyId": kms_key_arn,
        },
    }
