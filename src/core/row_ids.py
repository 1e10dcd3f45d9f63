"""Row identifier generation.

Identifiers are ``<prefix>_<suffix>`` with a fixed-length random suffix.
They are probably unique but not cryptographically secure.
"""

from __future__ import annotations

import random
from typing import Callable

from core.constants import ROW_ID_ALPHABET, ROW_ID_SEPARATOR, ROW_ID_SUFFIX_LENGTH

RowIdGenerator = Callable[[str], str]


def generate_row_id(prefix: str) -> str:
    """Generate a new row id scoped by a type prefix.

    Args:
        prefix: Row type used as id prefix.

    Returns:
        Identifier string.
    """
    suffix = "".join(random.choices(ROW_ID_ALPHABET, k=ROW_ID_SUFFIX_LENGTH))
    return f"{prefix}{ROW_ID_SEPARATOR}{suffix}"
