"""DynamoDB utilities and helper functions."""

import os
import boto3
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from botocore.exceptions import ClientError
import logging

from .exceptions import ConflictError, StorageError

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = 'ConditionalCheckFailedException'


class DynamoDBClient:
    """DynamoDB client wrapper with common operations."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name

        # Support for LocalStack
        endpoint_url = os.environ.get('LOCALSTACK_ENDPOINT')
        if endpoint_url and os.environ.get('USE_LOCALSTACK', 'false').lower() == 'true':
            self.dynamodb = boto3.resource('dynamodb', endpoint_url=endpoint_url)
        else:
            self.dynamodb = boto3.resource('dynamodb')

        self.table = self.dynamodb.Table(table_name)

    def put_item(
        self,
        item: Dict[str, Any],
        condition_expression: Optional[Any] = None
    ) -> Dict[str, Any]:
        """
        Put an item in the table.

        Args:
            item: Item to put
            condition_expression: Optional condition the write must satisfy

        Returns:
            The item that was put

        Raises:
            ConflictError: If the condition expression is not met
            StorageError: If the operation fails
        """
        try:
            item = self._python_to_dynamodb(item)
            kwargs = {'Item': item}
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression
            self.table.put_item(**kwargs)
            return item
        except ClientError as e:
            self._raise_for(e, "put item")

    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Get an item from the table.

        Args:
            key: Primary key of the item

        Returns:
            The item if found, None otherwise

        Raises:
            StorageError: If the operation fails
        """
        try:
            response = self.table.get_item(Key=key)
            return response.get('Item')
        except ClientError as e:
            self._raise_for(e, "get item")

    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_values: Dict[str, Any],
        expression_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Update an item in the table.

        Args:
            key: Primary key of the item
            update_expression: Update expression
            expression_values: Expression attribute values
            expression_names: Optional expression attribute names
            condition_expression: Optional condition the update must satisfy

        Returns:
            Updated item

        Raises:
            ConflictError: If the condition expression is not met
            StorageError: If the operation fails
        """
        try:
            expression_values = self._python_to_dynamodb(expression_values)

            kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ExpressionAttributeValues': expression_values,
                'ReturnValues': 'ALL_NEW'
            }

            if expression_names:
                kwargs['ExpressionAttributeNames'] = expression_names
            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression

            response = self.table.update_item(**kwargs)
            return response['Attributes']
        except ClientError as e:
            self._raise_for(e, "update item")

    def delete_item(
        self,
        key: Dict[str, Any],
        condition_expression: Optional[Any] = None
    ) -> None:
        """
        Delete an item from the table.

        Args:
            key: Primary key of the item
            condition_expression: Optional condition the delete must satisfy

        Raises:
            ConflictError: If the condition expression is not met
            StorageError: If the operation fails
        """
        try:
            kwargs = {'Key': key}
            if condition_expression is not None:
                kwargs['ConditionExpression'] = condition_expression
            self.table.delete_item(**kwargs)
        except ClientError as e:
            self._raise_for(e, "delete item")

    def query(
        self,
        key_condition_expression: Any,
        filter_expression: Optional[Any] = None,
        index_name: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
        exclusive_start_key: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Query items from the table.

        Args:
            key_condition_expression: Key condition expression
            filter_expression: Optional filter expression
            index_name: Optional index name
            limit: Optional limit
            scan_forward: Sort order (default: True for ascending)
            exclusive_start_key: Optional pagination key

        Returns:
            Dictionary with items and optional LastEvaluatedKey

        Raises:
            StorageError: If the operation fails
        """
        try:
            kwargs = {
                'KeyConditionExpression': key_condition_expression,
                'ScanIndexForward': scan_forward
            }

            if filter_expression is not None:
                kwargs['FilterExpression'] = filter_expression
            if index_name:
                kwargs['IndexName'] = index_name
            if limit:
                kwargs['Limit'] = limit
            if exclusive_start_key:
                kwargs['ExclusiveStartKey'] = exclusive_start_key

            response = self.table.query(**kwargs)

            return {
                'items': response.get('Items', []),
                'last_evaluated_key': response.get('LastEvaluatedKey')
            }
        except ClientError as e:
            self._raise_for(e, "query items")

    def query_all(
        self,
        key_condition_expression: Any,
        filter_expression: Optional[Any] = None,
        index_name: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Query items, following pagination until the result set is exhausted.

        Raises:
            StorageError: If any page fails
        """
        items = []
        last_key = None

        while True:
            result = self.query(
                key_condition_expression=key_condition_expression,
                filter_expression=filter_expression,
                index_name=index_name,
                exclusive_start_key=last_key
            )

            items.extend(result['items'])
            last_key = result.get('last_evaluated_key')

            if not last_key:
                break

        return items

    def _raise_for(self, error: ClientError, operation: str) -> None:
        code = error.response.get('Error', {}).get('Code')
        if code == CONDITIONAL_CHECK_FAILED:
            raise ConflictError(f"Conditional check failed on {self.table_name}")

        logger.error(f"Error during {operation} on {self.table_name}: {error}")
        raise StorageError(f"Failed to {operation}: {str(error)}")

    @staticmethod
    def _python_to_dynamodb(obj: Any) -> Any:
        """Convert Python objects to DynamoDB compatible format."""
        if isinstance(obj, dict):
            return {k: DynamoDBClient._python_to_dynamodb(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [DynamoDBClient._python_to_dynamodb(item) for item in obj]
        elif isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, bool):
            return obj
        elif isinstance(obj, float):
            return Decimal(str(obj))
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return obj
