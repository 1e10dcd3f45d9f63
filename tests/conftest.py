"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

TEST_TABLE_NAME = "tree-rows-test"
TEST_KMS_KEY_ARN = "arn:aws:kms:us-east-1:123456789012:key/00000000-test"
TEST_REGION = "us-east-1"


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Point boto3 at fake credentials so nothing reaches real AWS."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def tree_config() -> Any:
    from core.config import TreeConfig

    return TreeConfig(
        table_name=TEST_TABLE_NAME,
        kms_key_arn=TEST_KMS_KEY_ARN,
        aws_region=TEST_REGION,
    )


@pytest.fixture
def store_factory(aws_credentials: None, tree_config: Any) -> Iterator[Callable[..., Any]]:
    """Yield a builder for stores backed by an in-process DynamoDB mock."""
    from moto import mock_aws

    from store.row_store import TreeStore

    with mock_aws():
        yield lambda **kwargs: TreeStore(tree_config, **kwargs)


@pytest.fixture
def tree_store(store_factory: Callable[..., Any]) -> Any:
    return store_factory()
