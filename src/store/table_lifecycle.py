"""Create-if-missing bootstrap for the row table.

Runs once per store handle, before any row operation is accepted.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import ClientError

from core.config import TreeConfig
from core.constants import (
    RESOURCE_IN_USE,
    RESOURCE_NOT_FOUND,
    TABLE_STATUS_ACTIVE,
    TABLE_WAIT_DELAY_SECONDS,
    TABLE_WAIT_MAX_ATTEMPTS,
)
from core.logging_config import get_logger
from store.dynamodb_client import client_error_code
from store.index_layout import build_create_table_request

_LOGGER = get_logger(__name__)


def ensure_table_exists(client: Any, config: TreeConfig) -> bool:
    """Ensure the row table and its indexes exist and are active.

    An existing active table is left untouched. A missing table is
    created with the fixed index layout, pay-per-request billing, and
    KMS encryption. Tables still being created, by this process or a
    concurrent one, are awaited until active.

    Args:
        client: Boto3 DynamoDB client.
        config: Store identity.

    Returns:
        True when this call created the table, False otherwise.

    Raises:
        ClientError: If describing fails for any reason other than a
            missing table, or if creation fails for any reason other
            than the table already existing.
    """
    try:
        response = client.describe_table(TableName=config.table_name)
    except ClientError as error:
        if client_error_code(error) != RESOURCE_NOT_FOUND:
            _LOGGER.warning(
                "table_describe_failed",
                table_name=config.table_name,
                error=str(error),
            )
            raise
    else:
        table = (response or {}).get("Table", {})
        _LOGGER.debug(
            "table_exists",
            table_name=config.table_name,
            table_id=table.get("TableId"),
            table_status=table.get("TableStatus"),
        )
        if table.get("TableStatus", TABLE_STATUS_ACTIVE) != TABLE_STATUS_ACTIVE:
            _wait_until_active(client, config)
        return False

    try:
        client.create_table(**build_create_table_request(config.table_name, config.kms_key_arn))
    except ClientError as error:
        if client_error_code(error) != RESOURCE_IN_USE:
            raise
        # Another process won the create race.
        _LOGGER.info("table_create_raced", table_name=config.table_name)
        _wait_until_active(client, config)
        return False
    _wait_until_active(client, config)
    _LOGGER.info("table_created", table_name=config.table_name)
    return True


def _wait_until_active(client: Any, config: TreeConfig) -> None:
    waiter = client.get_waiter("table_exists")
    waiter.wait(
        TableName=config.table_name,
        WaiterConfig={"Delay": TABLE_WAIT_DELAY_SECONDS, "MaxAttempts": TABLE_WAIT_MAX_ATTEMPTS},
    )
