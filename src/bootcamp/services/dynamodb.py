"""Thin DynamoDB layer shared by the registration, event and log stores.

Table names are ``<table_prefix>-<table>``, e.g. ``bootcamp-dev-registrations``.
Conditional writes report a failed condition as a falsy return value; every
other ClientError propagates to the caller.
"""

from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from bootcamp.config import Settings, get_settings
from bootcamp.utils.logging import get_logger

logger = get_logger(__name__)

_serializer = TypeSerializer()

_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service() -> "DynamoDBService":
    """Return the process-wide DynamoDBService, creating it on first use."""
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService()
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Drop the shared instance so tests can rebuild it inside mock_aws."""
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def serialize_item(item: dict[str, Any]) -> dict[str, Any]:
    """Convert a resource-style item to ``{"S": ...}`` attribute values.

    Needed for TransactWriteItems, which is only available on the client.
    """
    return {key: _serializer.serialize(value) for key, value in item.items()}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class DynamoDBService:
    """Prefix-aware access to the bootcamp tables."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        resource: Any | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize DynamoDB service.

        Args:
            settings: Settings providing the table prefix. Defaults to the
                process-wide settings.
            resource: Optional boto3 DynamoDB resource
            client: Optional boto3 DynamoDB client, used for transactions
        """
        self.name_prefix = (settings or get_settings()).table_prefix
        self._dynamodb = resource or boto3.resource("dynamodb")
        self._client = client or boto3.client("dynamodb")
        self._tables: dict[str, Any] = {}

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        if table not in self._tables:
            self._tables[table] = self._dynamodb.Table(self.table_name(table))
        return self._tables[table]

    def get_item(
        self, table: str, key: dict[str, Any], consistent_read: bool = False
    ) -> dict[str, Any] | None:
        response = self._table(table).get_item(Key=key, ConsistentRead=consistent_read)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> bool:
        """Write an item, optionally guarded by a condition.

        Returns:
            False if the condition failed, True otherwise
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        if expression_attribute_values:
            kwargs["ExpressionAttributeValues"] = expression_attribute_values

        try:
            self._table(table).put_item(**kwargs)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression and return the item as written.

        Returns:
            All attributes after the update, or None if the condition failed
        """
        kwargs: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if expression_attribute_names:
            kwargs["ExpressionAttributeNames"] = expression_attribute_names
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression

        try:
            response = self._table(table).update_item(**kwargs)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return None
            raise
        attrs: dict[str, Any] | None = response.get("Attributes")
        return attrs

    def delete_item(
        self,
        table: str,
        key: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> bool:
        """Delete an item, optionally guarded by a condition.

        Returns:
            False if the condition failed, True otherwise
        """
        kwargs: dict[str, Any] = {"Key": key}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        if expression_attribute_values:
            kwargs["ExpressionAttributeValues"] = expression_attribute_values

        try:
            self._table(table).delete_item(**kwargs)
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise
        return True

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
    ) -> list[dict[str, Any]]:
        """Return every item under one partition key of a GSI.

        Follows ``LastEvaluatedKey`` so large partitions (all registrations
        of one event) are returned whole.
        """
        kwargs: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(partition_key_name).eq(partition_key_value),
        }
        items: list[dict[str, Any]] = []
        while True:
            response = self._table(table).query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def transact_write(self, items: list[dict[str, Any]]) -> bool:
        """Run a TransactWriteItems call.

        Args:
            items: Low-level TransactItems entries (see ``serialize_item``)

        Returns:
            False if the transaction was cancelled, e.g. by a failed condition
        """
        try:
            self._client.transact_write_items(TransactItems=items)
        except ClientError as e:
            if _error_code(e) != "TransactionCanceledException":
                raise
            reasons = [r.get("Code") for r in e.response.get("CancellationReasons", [])]
            logger.info("Transaction cancelled: %s", reasons)
            return False
        return True

    def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        """Look up an account in the users table by (lower-case) email."""
        users = self.query_by_gsi("users", "email-index", "email", email)
        return users[0] if users else None
