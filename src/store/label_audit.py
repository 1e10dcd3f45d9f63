"""Label uniqueness reconciliation helpers.

Uniqueness is checked before each write but not atomically with it,
so concurrent writers can leave duplicates behind. This module finds
them after the fact.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from core.types import LabelCollision, Row

SCOPE_TYPE = "type"
SCOPE_PARENT = "parent"


def find_label_collisions(rows: Iterable[Row]) -> list[LabelCollision]:
    """Group rows sharing a label within one uniqueness scope.

    Every row is grouped by type, matching the type/label index used
    by get_row and create_row. Child rows are also grouped by parent id.

    Args:
        rows: Rows to inspect.

    Returns:
        Collisions sorted by scope, scope key, and label.
    """
    groups: dict[tuple[str, str, str], list[str]] = defaultdict(list)
    for row in rows:
        groups[(SCOPE_TYPE, row.row_type, row.label)].append(row.row_id)
        if not row.is_root:
            groups[(SCOPE_PARENT, row.parent_id, row.label)].append(row.row_id)
    collisions = [
        LabelCollision(scope=scope, scope_key=scope_key, label=label, row_ids=tuple(sorted(ids)))
        for (scope, scope_key, label), ids in groups.items()
        if len(ids) > 1
    ]
    return sorted(collisions, key=lambda item: (item.scope, item.scope_key, item.label))
