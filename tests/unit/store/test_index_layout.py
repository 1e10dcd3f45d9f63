"""Unit tests for the fixed table layout."""

from __future__ import annotations

from core.constants import (
    INDEX_BY_PARENT_AND_LABEL,
    INDEX_BY_TYPE,
    INDEX_BY_TYPE_AND_LABEL,
    INDEX_BY_TYPE_AND_PARENT,
)
from store.index_layout import build_create_table_request


def _keys(index: dict) -> list[tuple[str, str]]:
    return [(element["AttributeName"], element["KeyType"]) for element in index["KeySchema"]]


def test_create_table_request_uses_type_and_id_primary_key() -> None:
    """Primary key should hash on type and range on id."""
    request = build_create_table_request("rows", "arn:key")

    assert _keys(request) == [("type", "HASH"), ("id", "RANGE")]


def test_create_table_request_defines_all_secondary_indexes() -> None:
    """Every secondary index should carry its key schema and full projection."""
    request = build_create_table_request("rows", "arn:key")
    indexes = request["GlobalSecondaryIndexes"] + request["LocalSecondaryIndexes"]

    layout = {index["IndexName"]: (_keys(index), index["Projection"]["ProjectionType"]) for index in indexes}

    assert layout == {
        INDEX_BY_PARENT_AND_LABEL: ([("parent_id", "HASH"), ("label", "RANGE")], "ALL"),
        INDEX_BY_TYPE: ([("type", "HASH")], "ALL"),
        INDEX_BY_TYPE_AND_LABEL: ([("type", "HASH"), ("label", "RANGE")], "ALL"),
        INDEX_BY_TYPE_AND_PARENT: ([("type", "HASH"), ("parent_id", "RANGE")], "ALL"),
    }


def test_create_table_request_enables_kms_and_on_demand_billing() -> None:
    """Table should bill per request and encrypt with the given key."""
    request = build_create_table_request("rows", "arn:key")

    assert request["BillingMode"] == "PAY_PER_REQUEST" and request["SSESpecification"] == {
        "Enabled": True,
        "SSEType": "KMS",
        "KMSMasterKeyId": "arn:key",
    }
