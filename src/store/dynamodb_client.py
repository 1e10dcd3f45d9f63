"""DynamoDB client helpers.

This module encapsulates boto3 client creation and error inspection.
It is shared by the table lifecycle manager and the row store.
"""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import ClientError

from core.config import TreeConfig


def create_dynamodb_client(config: TreeConfig) -> Any:
    """Create a low-level boto3 DynamoDB client.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 DynamoDB client.
    """
    session_kwargs: dict[str, str] = {}
    if config.aws_profile:
        session_kwargs["profile_name"] = config.aws_profile
    if config.aws_region:
        session_kwargs["region_name"] = config.aws_region
    session = boto3.session.Session(**session_kwargs)
    client_kwargs: dict[str, str] = {}
    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url
    return session.client("dynamodb", **client_kwargs)


def client_error_code(error: ClientError) -> str:
    """Return the service error code carried by a client error."""
    return str(error.response.get("Error", {}).get("Code", ""))
