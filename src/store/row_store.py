"""Row store over a single DynamoDB table.

This module implements the row tree operations on top of the fixed
index layout. Each operation runs one or more index queries followed
by at most one conditional single-item write. Label uniqueness checks
are not atomic with the write that follows them; concurrent writers
targeting the same scope can both succeed (see find_label_collisions).
"""

from __future__ import annotations

from typing import Any, Mapping

from botocore.exceptions import ClientError

from core.config import TreeConfig
from core.constants import (
    ATTR_COLUMNS,
    ATTR_ID,
    ATTR_LABEL,
    ATTR_PARENT_ID,
    ATTR_TYPE,
    CONDITIONAL_CHECK_FAILED,
    INDEX_BY_PARENT_AND_LABEL,
    INDEX_BY_TYPE,
    INDEX_BY_TYPE_AND_LABEL,
    INDEX_BY_TYPE_AND_PARENT,
)
from core.errors import (
    CannotDeleteRowError,
    MalformedResponseError,
    ParentLabelCollisionError,
    RowIdCollisionError,
    RowNotFoundError,
    TooManyRowsError,
    TypeLabelCollisionError,
)
from core.logging_config import get_logger
from core.row_ids import RowIdGenerator, generate_row_id
from core.types import LabelCollision, Row
from store import label_audit
from store.dynamodb_client import client_error_code, create_dynamodb_client
from store.row_model import (
    Item,
    encode_column_value,
    encode_columns,
    item_to_row,
    normalize_columns,
    primary_key,
    row_to_item,
)
from store.table_lifecycle import ensure_table_exists

_KEY_ABSENT = "attribute_not_exists(#type) AND attribute_not_exists(#id)"
_KEY_EXISTS = "attribute_exists(#type) AND attribute_exists(#id)"
_KEY_NAMES = {"#type": ATTR_TYPE, "#id": ATTR_ID}


class TreeStore:
    """Hierarchical row store backed by DynamoDB.

    Constructing a store ensures the backing table exists. The handle
    holds no row state between calls; every read goes to the table.
    """

    def __init__(
        self,
        config: TreeConfig,
        client: Any | None = None,
        id_generator: RowIdGenerator | None = None,
    ) -> None:
        """Initialize the store and bootstrap its table.

        Args:
            config: Store identity (table, region, key reference).
            client: Optional boto3 DynamoDB client; built from config when omitted.
            id_generator: Optional row id generator; random suffixes when omitted.

        Raises:
            ClientError: If the table cannot be described or created.
        """
        self._config = config
        self._client = client if client is not None else create_dynamodb_client(config)
        self._generate_id = id_generator or generate_row_id
        self._log = get_logger(
            __name__,
            table_name=config.table_name,
            aws_region=config.aws_region,
        )
        ensure_table_exists(self._client, config)

    @property
    def config(self) -> TreeConfig:
        return self._config

    def get_row_by_id(self, row_type: str, row_id: str) -> Row:
        """Read a row by primary key with strong consistency.

        Raises:
            RowNotFoundError: If no row has that key.
        """
        self._log.debug("row_get_by_id_requested", row_type=row_type, row_id=row_id)
        response = self._client.get_item(
            TableName=self._config.table_name,
            Key=primary_key(row_type, row_id),
            ConsistentRead=True,
        )
        if response is None:
            raise MalformedResponseError(
                "Something went wrong: GetItem returned no response. Retry the read."
            )
        item = response.get("Item")
        if item is None:
            raise RowNotFoundError(
                f"Row not found: type '{row_type}' and id '{row_id}'. "
                "Check the id or create the row first."
            )
        return item_to_row(item)

    def get_row(self, row_type: str, label: str) -> Row:
        """Look up the single row of a type carrying a label.

        Raises:
            RowNotFoundError: If no row matches.
            TooManyRowsError: If several rows match.
        """
        self._log.debug("row_get_requested", row_type=row_type, label=label)
        rows = self._rows_by_type_and_label(row_type, label)
        return _exactly_one(rows, f"type '{row_type}' and label '{label}'")

    def get_child(self, label: str, parent_id: str) -> Row:
        """Look up the single child of a parent carrying a label.

        Raises:
            RowNotFoundError: If no child matches.
            TooManyRowsError: If several children match.
        """
        self._log.debug("child_get_requested", label=label, parent_id=parent_id)
        rows = self._rows_by_parent_and_label(parent_id, label)
        return _exactly_one(rows, f"parent id '{parent_id}' and label '{label}'")

    def list_children(self, parent_id: str) -> list[Row]:
        """List every child of a parent regardless of child type."""
        self._log.debug("children_list_requested", parent_id=parent_id)
        if not parent_id:
            return []
        items = self._query(
            INDEX_BY_PARENT_AND_LABEL,
            "#parent_id = :parent_id",
            {"#parent_id": ATTR_PARENT_ID},
            {":parent_id": {"S": parent_id}},
        )
        return [item_to_row(item) for item in items]

    def create_row(self, row_type: str, label: str) -> Row:
        """Create a root row.

        Args:
            row_type: Type of the new row.
            label: Label, unique among rows of the type.

        Returns:
            The created row.

        Raises:
            TypeLabelCollisionError: If the label is taken within the type.
            RowIdCollisionError: If the generated id already exists.
        """
        self._log.debug("row_create_requested", row_type=row_type, label=label)
        if self._rows_by_type_and_label(row_type, label):
            raise TypeLabelCollisionError(
                f"A row with type '{row_type}' and label '{label}' already exists. "
                "Choose another label or import the existing row."
            )
        row = Row(row_type=row_type, row_id=self._generate_id(row_type), label=label)
        self._put_new_row(row)
        self._log.info("row_created", row_type=row_type, row_id=row.row_id, label=label)
        return row

    def create_child(
        self,
        row_type: str,
        label: str,
        parent_type: str,
        parent_id: str,
        columns: Mapping[str, object] | None = None,
    ) -> Row:
        """Create a child row under an existing parent.

        Args:
            row_type: Type of the new child.
            label: Label, unique among children of the parent.
            parent_type: Type of the parent row.
            parent_id: Id of the parent row.
            columns: Optional payload of string and string-set values.

        Returns:
            The created child row.

        Raises:
            ColumnValueError: If a column value is unsupported.
            RowNotFoundError: If the parent does not exist.
            ParentLabelCollisionError: If the label is taken under the parent.
            RowIdCollisionError: If the generated id already exists.
        """
        self._log.debug(
            "child_create_requested",
            row_type=row_type,
            label=label,
            parent_type=parent_type,
            parent_id=parent_id,
        )
        normalized_columns = normalize_columns(columns)
        parent = self.get_row_by_id(parent_type, parent_id)
        row_id = self._generate_id(row_type)
        if self._rows_by_parent_and_label(parent.row_id, label):
            raise ParentLabelCollisionError(
                f"A row with parent id '{parent.row_id}' and label '{label}' already exists. "
                "Choose another label or import the existing child."
            )
        row = Row(
            row_type=row_type,
            row_id=row_id,
            label=label,
            parent_id=parent.row_id,
            columns=normalized_columns,
        )
        self._put_new_row(row)
        self._log.info(
            "child_created",
            row_type=row_type,
            row_id=row_id,
            label=label,
            parent_id=parent.row_id,
        )
        return row

    def list_rows(self, row_type: str, label_filter: str = "", parent_id_filter: str = "") -> list[Row]:
        """List rows of a type with optional filters.

        Args:
            row_type: Type to list.
            label_filter: Substring the label must contain; empty for no constraint.
            parent_id_filter: Exact parent id; empty for no constraint.

        Returns:
            Matching rows.
        """
        self._log.debug(
            "rows_list_requested",
            row_type=row_type,
            label_filter=label_filter,
            parent_id_filter=parent_id_filter,
        )
        names = {"#type": ATTR_TYPE}
        values: Item = {":type": {"S": row_type}}
        filters: list[str] = []
        if label_filter:
            filters.append("contains(#label, :label)")
            names["#label"] = ATTR_LABEL
            values[":label"] = {"S": label_filter}
        if parent_id_filter:
            filters.append("#parent_id = :parent_id")
            names["#parent_id"] = ATTR_PARENT_ID
            values[":parent_id"] = {"S": parent_id_filter}
        items = self._query(
            INDEX_BY_TYPE,
            "#type = :type",
            names,
            values,
            filter_expression=" AND ".join(filters) or None,
        )
        return [item_to_row(item) for item in items]

    def update_row(self, row_type: str, row_id: str, new_label: str) -> Row:
        """Relabel a row within its current scope.

        Root rows are checked against other rows of their type, rows
        with a parent against their siblings. Keeping the current label
        is not a collision.

        Returns:
            The updated row.

        Raises:
            RowNotFoundError: If the row does not exist.
            TypeLabelCollisionError: If a root label is taken within the type.
            ParentLabelCollisionError: If a child label is taken under the parent.
        """
        self._log.debug("row_update_requested", row_type=row_type, row_id=row_id, new_label=new_label)
        current = self.get_row_by_id(row_type, row_id)
        if current.is_root:
            clashes = _others(self._rows_by_type_and_label(row_type, new_label), current)
            if clashes:
                raise TypeLabelCollisionError(
                    f"A row with type '{row_type}' and label '{new_label}' already exists "
                    f"(id '{clashes[0].row_id}'). Choose another label."
                )
        else:
            clashes = _others(self._rows_by_parent_and_label(current.parent_id, new_label), current)
            if clashes:
                raise ParentLabelCollisionError(
                    f"A row with parent id '{current.parent_id}' and label '{new_label}' "
                    f"already exists (id '{clashes[0].row_id}'). Choose another label."
                )
        response = self._update_existing(
            row_type,
            row_id,
            "SET #label = :label",
            {"#label": ATTR_LABEL},
            {":label": {"S": new_label}},
            return_values="ALL_NEW",
        )
        row = _updated_row(response, row_type, row_id)
        self._log.info("row_updated", row_type=row_type, row_id=row_id, label=new_label)
        return row

    def update_child(
        self,
        child_type: str,
        child_id: str,
        new_label: str,
        parent_type: str,
        new_parent_id: str,
    ) -> Row:
        """Relabel and/or re-parent a child row in one conditional write.

        The old parent is not re-checked.

        Returns:
            The updated child row.

        Raises:
            RowNotFoundError: If the new parent or the child does not exist.
            ParentLabelCollisionError: If the label is taken under the new parent.
        """
        self._log.debug(
            "child_update_requested",
            child_type=child_type,
            child_id=child_id,
            new_label=new_label,
            parent_type=parent_type,
            new_parent_id=new_parent_id,
        )
        self.get_row_by_id(parent_type, new_parent_id)
        clashes = [
            row
            for row in self._rows_by_parent_and_label(new_parent_id, new_label)
            if (row.row_type, row.row_id) != (child_type, child_id)
        ]
        if clashes:
            raise ParentLabelCollisionError(
                f"A row with parent id '{new_parent_id}' and label '{new_label}' already "
                f"exists (id '{clashes[0].row_id}'). Choose another label or parent."
            )
        response = self._update_existing(
            child_type,
            child_id,
            "SET #label = :label, #parent_id = :parent_id",
            {"#label": ATTR_LABEL, "#parent_id": ATTR_PARENT_ID},
            {":label": {"S": new_label}, ":parent_id": {"S": new_parent_id}},
            return_values="ALL_NEW",
        )
        row = _updated_row(response, child_type, child_id)
        self._log.info(
            "child_updated",
            child_type=child_type,
            child_id=child_id,
            label=new_label,
            parent_id=new_parent_id,
        )
        return row

    def update_column(self, row_type: str, row_id: str, column_name: str, value: object) -> None:
        """Set one column value on an existing row.

        Raises:
            ColumnValueError: If the value is unsupported.
            RowNotFoundError: If the row does not exist.
        """
        self._log.debug("column_update_requested", row_type=row_type, row_id=row_id, column=column_name)
        encoded = encode_column_value(value)
        self._update_existing(
            row_type,
            row_id,
            "SET #columns.#column = :value",
            {"#columns": ATTR_COLUMNS, "#column": column_name},
            {":value": encoded},
        )
        self._log.info("column_updated", row_type=row_type, row_id=row_id, column=column_name)

    def update_columns(self, row_type: str, row_id: str, columns: Mapping[str, object] | None) -> None:
        """Replace the whole columns payload of an existing row.

        None clears the payload to an empty map.

        Raises:
            ColumnValueError: If a value is unsupported.
            RowNotFoundError: If the row does not exist.
        """
        self._log.debug("columns_update_requested", row_type=row_type, row_id=row_id)
        encoded = encode_columns(columns)
        self._update_existing(
            row_type,
            row_id,
            "SET #columns = :columns",
            {"#columns": ATTR_COLUMNS},
            {":columns": encoded},
        )
        self._log.info("columns_updated", row_type=row_type, row_id=row_id, column_count=len(encoded["M"]))

    def delete_row(self, row_type: str, child_type: str, row_id: str) -> None:
        """Delete a row unless it has children of the given type.

        Only children of ``child_type`` are checked; children of other
        types are orphaned. Use list_children to inspect every child
        first. An empty ``child_type`` skips the check.

        Raises:
            CannotDeleteRowError: If a child of ``child_type`` exists.
            RowNotFoundError: If the row does not exist.
        """
        self._log.debug("row_delete_requested", row_type=row_type, child_type=child_type, row_id=row_id)
        if child_type and self._has_child_of_type(child_type, row_id):
            raise CannotDeleteRowError(
                f"Cannot delete {row_type} '{row_id}': it has children of type "
                f"'{child_type}'. Delete or move the children first."
            )
        try:
            self._client.delete_item(
                TableName=self._config.table_name,
                Key=primary_key(row_type, row_id),
                ConditionExpression=_KEY_EXISTS,
                ExpressionAttributeNames=dict(_KEY_NAMES),
            )
        except ClientError as error:
            if client_error_code(error) == CONDITIONAL_CHECK_FAILED:
                raise RowNotFoundError(
                    f"Cannot delete {row_type} '{row_id}': row not found."
                ) from error
            raise
        self._log.info("row_deleted", row_type=row_type, row_id=row_id)

    def find_label_collisions(self, row_type: str) -> list[LabelCollision]:
        """Report rows of a type that share a label within one scope.

        Child scopes only cover children of ``row_type``; run once per
        child type to audit a whole parent.
        """
        collisions = label_audit.find_label_collisions(self.list_rows(row_type))
        if collisions:
            self._log.warning(
                "label_collisions_found",
                row_type=row_type,
                collision_count=len(collisions),
            )
        return collisions

    def _rows_by_type_and_label(self, row_type: str, label: str) -> list[Row]:
        items = self._query(
            INDEX_BY_TYPE_AND_LABEL,
            "#type = :type AND #label = :label",
            {"#type": ATTR_TYPE, "#label": ATTR_LABEL},
            {":type": {"S": row_type}, ":label": {"S": label}},
        )
        return [item_to_row(item) for item in items]

    def _rows_by_parent_and_label(self, parent_id: str, label: str) -> list[Row]:
        # Index key values may not be empty, and no child has an empty parent.
        if not parent_id:
            return []
        items = self._query(
            INDEX_BY_PARENT_AND_LABEL,
            "#parent_id = :parent_id AND #label = :label",
            {"#parent_id": ATTR_PARENT_ID, "#label": ATTR_LABEL},
            {":parent_id": {"S": parent_id}, ":label": {"S": label}},
        )
        return [item_to_row(item) for item in items]

    def _has_child_of_type(self, child_type: str, parent_id: str) -> bool:
        response = self._client.query(
            TableName=self._config.table_name,
            IndexName=INDEX_BY_TYPE_AND_PARENT,
            KeyConditionExpression="#type = :type AND #parent_id = :parent_id",
            ExpressionAttributeNames={"#type": ATTR_TYPE, "#parent_id": ATTR_PARENT_ID},
            ExpressionAttributeValues={
                ":type": {"S": child_type},
                ":parent_id": {"S": parent_id},
            },
            Limit=1,
        )
        if response is None or response.get("Items") is None:
            raise MalformedResponseError(
                f"Something went wrong: the query output for children of '{parent_id}' was nil."
            )
        return bool(response["Items"])

    def _query(
        self,
        index_name: str,
        key_condition: str,
        names: dict[str, str],
        values: Item,
        filter_expression: str | None = None,
    ) -> list[Item]:
        """Run a paginated index query and collect every item.

        Raises:
            MalformedResponseError: If a page carries no item list.
        """
        request: dict[str, Any] = {
            "TableName": self._config.table_name,
            "IndexName": index_name,
            "KeyConditionExpression": key_condition,
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
        }
        if filter_expression:
            request["FilterExpression"] = filter_expression
        items: list[Item] = []
        for page in self._client.get_paginator("query").paginate(**request):
            page_items = page.get("Items") if page else None
            if page_items is None:
                raise MalformedResponseError(
                    f"Something went wrong: the query output on index '{index_name}' was nil."
                )
            items.extend(page_items)
        return items

    def _put_new_row(self, row: Row) -> None:
        try:
            self._client.put_item(
                TableName=self._config.table_name,
                Item=row_to_item(row),
                ConditionExpression=_KEY_ABSENT,
                ExpressionAttributeNames=dict(_KEY_NAMES),
            )
        except ClientError as error:
            if client_error_code(error) == CONDITIONAL_CHECK_FAILED:
                raise RowIdCollisionError(
                    f"A row with type '{row.row_type}' and id '{row.row_id}' already exists. "
                    "Retry the create to draw a new id."
                ) from error
            raise

    def _update_existing(
        self,
        row_type: str,
        row_id: str,
        update_expression: str,
        names: dict[str, str],
        values: Item,
        return_values: str = "NONE",
    ) -> dict[str, Any] | None:
        """Apply an update guarded by primary-key existence.

        Returns:
            Raw UpdateItem response.

        Raises:
            RowNotFoundError: If the row does not exist.
        """
        try:
            return self._client.update_item(
                TableName=self._config.table_name,
                Key=primary_key(row_type, row_id),
                UpdateExpression=update_expression,
                ConditionExpression=_KEY_EXISTS,
                ExpressionAttributeNames={**_KEY_NAMES, **names},
                ExpressionAttributeValues=values,
                ReturnValues=return_values,
            )
        except ClientError as error:
            if client_error_code(error) == CONDITIONAL_CHECK_FAILED:
                raise RowNotFoundError(
                    f"Cannot update {row_type} '{row_id}': row not found. "
                    "Create the row before updating it."
                ) from error
            raise


def _updated_row(response: dict[str, Any] | None, row_type: str, row_id: str) -> Row:
    """Decode the ALL_NEW attributes of an UpdateItem response.

    Raises:
        MalformedResponseError: If updated attributes are missing.
    """
    attributes = (response or {}).get("Attributes")
    if attributes is None:
        raise MalformedResponseError(
            f"Something went wrong: UpdateItem on {row_type} '{row_id}' returned no attributes."
        )
    return item_to_row(attributes)


def _exactly_one(rows: list[Row], description: str) -> Row:
    """Return the only row or raise the matching lookup error.

    Raises:
        RowNotFoundError: If no row matched.
        TooManyRowsError: If more than one row matched.
    """
    if not rows:
        raise RowNotFoundError(f"Row not found with {description}.")
    if len(rows) > 1:
        raise TooManyRowsError(
            f"Multiple rows exist with {description} where there must only be one "
            f"(ids {sorted(row.row_id for row in rows)}). Run find_label_collisions to reconcile."
        )
    return rows[0]


def _others(rows: list[Row], current: Row) -> list[Row]:
    return [row for row in rows if (row.row_type, row.row_id) != (current.row_type, current.row_id)]
