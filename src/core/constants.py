"""Core constants used across tree store modules.

This module centralizes attribute names, index names, and defaults.
Keeping values here avoids magic literals in store logic.
"""

from __future__ import annotations

DEFAULT_TABLE_NAME = "tree-rows"

ATTR_TYPE = "type"
ATTR_ID = "id"
ATTR_LABEL = "label"
ATTR_PARENT_ID = "parent_id"
ATTR_COLUMNS = "columns"

INDEX_BY_PARENT_AND_LABEL = "ByParentAndLabel"
INDEX_BY_TYPE = "ByType"
INDEX_BY_TYPE_AND_LABEL = "ByTypeAndLabel"
INDEX_BY_TYPE_AND_PARENT = "ByTypeAndParent"

BILLING_MODE = "PAY_PER_REQUEST"
SSE_TYPE = "KMS"

ROW_ID_SEPARATOR = "_"
ROW_ID_SUFFIX_LENGTH = 10
ROW_ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz"

TABLE_WAIT_DELAY_SECONDS = 2
TABLE_WAIT_MAX_ATTEMPTS = 60

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
RESOURCE_NOT_FOUND = "ResourceNotFoundException"
RESOURCE_IN_USE = "ResourceInUseException"
TABLE_STATUS_ACTIVE = "ACTIVE"
