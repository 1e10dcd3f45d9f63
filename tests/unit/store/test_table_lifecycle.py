"""Unit tests for the table create-if-missing bootstrap."""

from __future__ import annotations

import pytest
from botocore.exceptions import ClientError

from core.config import TreeConfig
from store.dynamodb_client import create_dynamodb_client
from store.table_lifecycle import ensure_table_exists

_CONFIG = TreeConfig(table_name="rows", kms_key_arn="arn:aws:kms:us-east-1:1:key/abc")


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class _FakeWaiter:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def wait(self, **kwargs: object) -> None:
        self.calls.append(kwargs)


class _FakeDynamoDBClient:
    def __init__(
        self,
        describe_error: ClientError | None = None,
        create_error: ClientError | None = None,
        table_status: str = "ACTIVE",
    ) -> None:
        self.describe_error = describe_error
        self.create_error = create_error
        self.table_status = table_status
        self.create_requests: list[dict[str, object]] = []
        self.waiter = _FakeWaiter()

    def describe_table(self, TableName: str) -> dict[str, object]:
        if self.describe_error is not None:
            raise self.describe_error
        return {"Table": {"TableName": TableName, "TableId": "table-id", "TableStatus": self.table_status}}

    def create_table(self, **request: object) -> dict[str, object]:
        self.create_requests.append(request)
        if self.create_error is not None:
            raise self.create_error
        return {}

    def get_waiter(self, name: str) -> _FakeWaiter:
        assert name == "table_exists"
        return self.waiter


def test_ensure_table_exists_is_noop_for_existing_table() -> None:
    """An existing table should not be recreated."""
    client = _FakeDynamoDBClient()

    created = ensure_table_exists(client, _CONFIG)

    assert created is False and client.create_requests == [] and client.waiter.calls == []


def test_ensure_table_exists_creates_and_waits_for_missing_table() -> None:
    """A missing table should be created and awaited."""
    client = _FakeDynamoDBClient(_client_error("ResourceNotFoundException", "DescribeTable"))

    created = ensure_table_exists(client, _CONFIG)

    assert created is True
    assert client.create_requests[0]["TableName"] == "rows"
    assert client.waiter.calls[0]["TableName"] == "rows"


def test_ensure_table_exists_raises_for_other_describe_failures() -> None:
    """Describe failures other than not-found abort construction."""
    client = _FakeDynamoDBClient(_client_error("AccessDeniedException", "DescribeTable"))

    with pytest.raises(ClientError):
        ensure_table_exists(client, _CONFIG)

    assert client.create_requests == []


def test_ensure_table_exists_is_idempotent_against_dynamodb(store_factory, tree_config) -> None:
    """A second bootstrap against a real layout should be a no-op."""
    store_factory()

    created = ensure_table_exists(create_dynamodb_client(tree_config), tree_config)

    assert created is False


def test_ensure_table_exists_waits_for_table_still_creating() -> None:
    """A table another process is still creating should be awaited."""
    client = _FakeDynamoDBClient(table_status="CREATING")

    created = ensure_table_exists(client, _CONFIG)

    assert created is False and client.create_requests == [] and len(client.waiter.calls) == 1


def test_ensure_table_exists_tolerates_concurrent_create() -> None:
    """Losing the create race should wait for the winner's table."""
    client = _FakeDynamoDBClient(
        describe_error=_client_error("ResourceNotFoundException", "DescribeTable"),
        create_error=_client_error("ResourceInUseException", "CreateTable"),
    )

    created = ensure_table_exists(client, _CONFIG)

    assert created is False and client.waiter.calls[0]["TableName"] == "rows"


def test_ensure_table_exists_raises_for_other_create_failures() -> None:
    """Create failures other than a concurrent create abort construction."""
    client = _FakeDynamoDBClient(
        describe_error=_client_error("ResourceNotFoundException", "DescribeTable"),
        create_error=_client_error("LimitExceededException", "CreateTable"),
    )

    with pytest.raises(ClientError):
        ensure_table_exists(client, _CONFIG)

    assert client.waiter.calls == []
