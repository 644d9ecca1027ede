"""
DynamoDB implementation of the record store.

Each logical table maps to one DynamoDB table with a string ``id`` hash key.
Numbers are stored as ``Decimal`` and handed back as ``int`` or ``float`` so
callers never see DynamoDB types.
"""

import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from crud_service.dal.record_store import KEY_FIELD, BaseRecordStore, describe_condition
from crud_service.handlers.utils.errors import ConditionFailedError, NotFoundError, UpstreamError
from crud_service.handlers.utils.observability import count, duration, logger, tracer

T = TypeVar('T')


def to_dynamodb(value: Any) -> Any:
    """Convert floats (recursively) to Decimal for boto3."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamodb(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamodb(v) for v in value]
    return value


def from_dynamodb(value: Any) -> Any:
    """Convert Decimals (recursively) back to int or float."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamodb(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamodb(v) for v in value]
    return value


class DynamoDBRecordStore(BaseRecordStore):
    """Record store backed by DynamoDB tables."""

    def __init__(
        self,
        table_names: Mapping[str, str],
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        """
        Initialize the DynamoDB record store.

        Args:
            table_names: Logical table name (``users``, ``products``, ``orders``)
                to physical DynamoDB table name
            region_name: AWS region name
            endpoint_url: DynamoDB endpoint URL (for DynamoDB Local)
        """
        self.table_names = dict(table_names)

        resource_kwargs: Dict[str, Any] = {}
        if region_name:
            resource_kwargs['region_name'] = region_name
        if endpoint_url:
            resource_kwargs['endpoint_url'] = endpoint_url
        self.dynamodb = boto3.resource('dynamodb', **resource_kwargs)

        logger.info("DynamoDB record store initialized", extra={
            "tables": self.table_names,
            "region_name": region_name,
            "endpoint_url": endpoint_url,
        })

    def _table(self, table: str):
        return self.dynamodb.Table(self.table_names.get(table, table))

    def _call(self, operation: str, table: str, func: Callable[[], T], key: Optional[str] = None,
              condition: str = '') -> T:
        """Run a DynamoDB call, translating botocore failures into service errors."""
        started = time.time()
        try:
            result = func()
        except ClientError as e:
            error_code = e.response['Error']['Code']
            count(f"DynamoDB{operation}Error")
            if error_code == 'ConditionalCheckFailedException':
                raise ConditionFailedError(table_name=table, condition=condition or 'condition check failed') from e
            logger.error(f"DynamoDB {operation} error", extra={
                "error_code": error_code,
                "error_message": e.response['Error'].get('Message'),
                "table_name": table,
                "item_id": key,
            })
            raise UpstreamError(
                message=f"DynamoDB {operation} failed: {error_code}",
                service_name="DynamoDB",
            ) from e
        except BotoCoreError as e:
            count(f"DynamoDB{operation}Error")
            logger.error(f"DynamoDB connection error during {operation}", extra={
                "error": str(e),
                "table_name": table,
            })
            raise UpstreamError(message=f"Database connection error: {e}", service_name="DynamoDB") from e

        count(f"DynamoDB{operation}Count")
        duration(f"DynamoDB{operation}Duration", (time.time() - started) * 1000)
        tracer.put_annotation("table_name", table)
        return result

    @tracer.capture_method
    def get(self, table: str, key: str) -> Optional[Dict[str, Any]]:
        response = self._call('GetItem', table, lambda: self._table(table).get_item(Key={KEY_FIELD: key}), key)
        item = response.get('Item')
        return from_dynamodb(item) if item is not None else None

    @tracer.capture_method
    def put(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._call('PutItem', table, lambda: self._table(table).put_item(Item=to_dynamodb(record)), record[KEY_FIELD])
        logger.info("Item stored", extra={"table_name": table, "item_id": record[KEY_FIELD]})
        return record

    @tracer.capture_method
    def update(
        self,
        table: str,
        key: str,
        patch: Dict[str, Any],
        condition: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        fields = {name: value for name, value in patch.items() if name != KEY_FIELD}
        if not fields:
            # nothing to write, so the record only has to exist and satisfy the condition
            existing = self.get(table, key)
            if existing is None:
                raise NotFoundError(message='Item not found', resource_type=table, resource_id=key)
            if condition and any(existing.get(name) != value for name, value in condition.items()):
                raise ConditionFailedError(table_name=table, condition=describe_condition(condition))
            return existing

        # Attr() conditions claim the #n{i} and :v{i} placeholders
        names = {f"#p{i}": name for i, name in enumerate(fields)}
        values = {f":p{i}": to_dynamodb(value) for i, value in enumerate(fields.values())}

        condition_expression = Attr(KEY_FIELD).exists()
        for name, value in (condition or {}).items():
            condition_expression = condition_expression & Attr(name).eq(to_dynamodb(value))

        update_kwargs: Dict[str, Any] = {
            'Key': {KEY_FIELD: key},
            'UpdateExpression': 'SET ' + ', '.join(f"#p{i} = :p{i}" for i in range(len(fields))),
            'ConditionExpression': condition_expression,
            'ExpressionAttributeNames': names,
            'ExpressionAttributeValues': values,
            'ReturnValues': 'ALL_NEW',
        }

        try:
            response = self._call(
                'UpdateItem', table, lambda: self._table(table).update_item(**update_kwargs), key,
                condition=describe_condition(condition or {}),
            )
        except ConditionFailedError:
            # absent key and ownership mismatch fail the same expression
            if self.get(table, key) is None:
                raise NotFoundError(message='Item not found', resource_type=table, resource_id=key)
            raise
        return from_dynamodb(response['Attributes'])

    @tracer.capture_method
    def delete(self, table: str, key: str, condition: Optional[Mapping[str, Any]] = None) -> None:
        delete_kwargs: Dict[str, Any] = {'Key': {KEY_FIELD: key}}
        if condition:
            condition_expression = Attr(KEY_FIELD).exists()
            for name, value in condition.items():
                condition_expression = condition_expression & Attr(name).eq(to_dynamodb(value))
            delete_kwargs['ConditionExpression'] = condition_expression

        try:
            self._call(
                'DeleteItem', table, lambda: self._table(table).delete_item(**delete_kwargs), key,
                condition=describe_condition(condition or {}),
            )
        except ConditionFailedError:
            if self.get(table, key) is None:
                raise NotFoundError(message='Item not found', resource_type=table, resource_id=key)
            raise

    @tracer.capture_method
    def scan(self, table: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        scan_kwargs: Dict[str, Any] = {}
        while True:
            response = self._call('Scan', table, lambda: self._table(table).scan(**scan_kwargs))
            items.extend(from_dynamodb(item) for item in response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                break
            scan_kwargs['ExclusiveStartKey'] = last_key

        logger.debug("Scanned table", extra={"table_name": table, "item_count": len(items)})
        return items

    @tracer.capture_method
    def conditional_decrement(self, table: str, key: str, field: str, amount: int) -> Dict[str, Any]:
        try:
            response = self._call(
                'UpdateItem', table,
                lambda: self._table(table).update_item(
                    Key={KEY_FIELD: key},
                    UpdateExpression='SET #f = #f - :amount',
                    ConditionExpression=Attr(KEY_FIELD).exists() & Attr(field).gte(amount),
                    ExpressionAttributeNames={'#f': field},
                    ExpressionAttributeValues={':amount': amount},
                    ReturnValues='ALL_NEW',
                ),
                key,
                condition=f"{field} >= {amount}",
            )
        except ConditionFailedError:
            if self.get(table, key) is None:
                raise NotFoundError(message='Item not found', resource_type=table, resource_id=key)
            raise
        return from_dynamodb(response['Attributes'])

    @tracer.capture_method
    def increment(self, table: str, key: str, field: str, amount: int) -> Dict[str, Any]:
        try:
            response = self._call(
                'UpdateItem', table,
                lambda: self._table(table).update_item(
                    Key={KEY_FIELD: key},
                    UpdateExpression='ADD #f :amount',
                    ConditionExpression=Attr(KEY_FIELD).exists(),
                    ExpressionAttributeNames={'#f': field},
                    ExpressionAttributeValues={':amount': amount},
                    ReturnValues='ALL_NEW',
                ),
                key,
            )
        except ConditionFailedError:
            raise NotFoundError(message='Item not found', resource_type=table, resource_id=key)
        return from_dynamodb(response['Attributes'])

    def health_check(self) -> Dict[str, str]:
        """Describe the users table as a reachability probe."""
        table = next(iter(self.table_names.values()))
        try:
            self.dynamodb.meta.client.describe_table(TableName=table)
        except (ClientError, BotoCoreError) as e:
            logger.warning("DynamoDB health check failed", extra={"table_name": table, "error": str(e)})
            return {"status": "unhealthy", "backend": "dynamodb", "error": str(e)}
        return {"status": "healthy", "backend": "dynamodb"}
