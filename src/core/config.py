"""Runtime configuration model for the tree store.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import DEFAULT_TABLE_NAME
from core.errors import TreeConfigError


@dataclass(frozen=True)
class TreeConfig:
    """Validated store identity, fixed for the lifetime of a handle.

    Attributes:
        table_name: DynamoDB table backing the row tree.
        kms_key_arn: KMS key reference used for encryption at rest.
        aws_region: Optional AWS region for the boto3 session.
        aws_profile: Optional AWS profile for the boto3 session.
        endpoint_url: Optional DynamoDB endpoint override (local testing).
    """

    table_name: str
    kms_key_arn: str
    aws_region: str | None = None
    aws_profile: str | None = None
    endpoint_url: str | None = None

    def __post_init__(self) -> None:
        if not self.table_name.strip():
            raise TreeConfigError(
                "Invalid table name: expected a non-empty string. "
                "Set TREE_TABLE_NAME or pass table_name explicitly."
            )

    @classmethod
    def from_env(cls) -> "TreeConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TreeConfigError: If environment values are missing or invalid.
        """
        return cls(
            table_name=os.getenv("TREE_TABLE_NAME", DEFAULT_TABLE_NAME),
            kms_key_arn=_require_env("TREE_KMS_KEY_ARN"),
            aws_region=_optional_env("TREE_AWS_REGION"),
            aws_profile=_optional_env("TREE_AWS_PROFILE"),
            endpoint_url=_optional_env("TREE_DYNAMODB_ENDPOINT_URL"),
        )


def _require_env(name: str) -> str:
    """Read a mandatory environment value.

    Args:
        name: Environment variable name.

    Returns:
        Stripped non-empty value.

    Raises:
        TreeConfigError: If the variable is unset or blank.
    """
    value = _optional_env(name)
    if value is None:
        raise TreeConfigError(
            f"Missing {name}: expected a non-empty value. "
            f"Export {name} before constructing the store."
        )
    return value


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None
