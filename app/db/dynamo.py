from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from app.core.config import settings

logger = logging.getLogger(__name__)

USER_INDEX = "user_id-index"
EMAIL_INDEX = "email-index"

_dynamodb = None


def get_dynamodb():
    """Return the shared DynamoDB resource, creating it on first use."""
    global _dynamodb
    if _dynamodb is None:
        _dynamodb = boto3.resource(
            "dynamodb",
            region_name=settings.DYNAMO_REGION,
            endpoint_url=settings.DYNAMO_ENDPOINT_URL,
        )
    return _dynamodb


def reset_connection():
    """Drop the cached resource so the next call picks up fresh credentials/endpoints."""
    global _dynamodb
    _dynamodb = None


def users_table():
    return get_dynamodb().Table(settings.DYNAMO_USERS_TABLE)


def transactions_table():
    return get_dynamodb().Table(settings.DYNAMO_TRANSACTIONS_TABLE)


def budgets_table():
    return get_dynamodb().Table(settings.DYNAMO_BUDGETS_TABLE)


def savings_goals_table():
    return get_dynamodb().Table(settings.DYNAMO_SAVINGS_GOALS_TABLE)


def counters_table():
    return get_dynamodb().Table(settings.DYNAMO_COUNTERS_TABLE)


def create_tables():
    """
    Create every table (and its GSIs) that does not exist yet.
    Used for local development and by the test suite.
    """
    client = get_dynamodb().meta.client
    existing = set(client.list_tables().get("TableNames", []))

    def _user_index(index_name, key_name, key_type):
        return {
            "IndexName": index_name,
            "KeySchema": [{"AttributeName": key_name, "KeyType": "HASH"}],
            "Projection": {"ProjectionType": "ALL"},
        }, {"AttributeName": key_name, "AttributeType": key_type}

    definitions = {
        settings.DYNAMO_USERS_TABLE: _user_index(EMAIL_INDEX, "email", "S"),
        settings.DYNAMO_TRANSACTIONS_TABLE: _user_index(USER_INDEX, "user_id", "N"),
        settings.DYNAMO_BUDGETS_TABLE: _user_index(USER_INDEX, "user_id", "N"),
        settings.DYNAMO_SAVINGS_GOALS_TABLE: _user_index(USER_INDEX, "user_id", "N"),
    }

    for table_name, (index, attribute) in definitions.items():
        if table_name in existing:
            continue
        client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "N"}, attribute],
            GlobalSecondaryIndexes=[index],
            BillingMode="PAY_PER_REQUEST",
        )
        logger.info(f"Created table {table_name}")

    if settings.DYNAMO_COUNTERS_TABLE not in existing:
        client.create_table(
            TableName=settings.DYNAMO_COUNTERS_TABLE,
            KeySchema=[{"AttributeName": "counter_name", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "counter_name", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        logger.info(f"Created table {settings.DYNAMO_COUNTERS_TABLE}")


def next_id(counter_name: str) -> int:
    """Atomically allocate the next integer id for a table."""
    response = counters_table().update_item(
        Key={"counter_name": counter_name},
        UpdateExpression="ADD current_value :one",
        ExpressionAttributeValues={":one": 1},
        ReturnValues="UPDATED_NEW",
    )
    return int(response["Attributes"]["current_value"])


# Users

def get_user_by_id(user_id: int):
    return _get_item(users_table(), user_id)


def get_user_by_email(email: str):
    """Query the Users table by email through the email GSI."""
    try:
        response = users_table().query(
            IndexName=EMAIL_INDEX,
            KeyConditionExpression=Key("email").eq(email),
        )
        return _from_dynamo(response["Items"][0]) if response["Items"] else None
    except ClientError as e:
        logger.error(f"get_user_by_email failed: {e.response['Error']['Message']}")
        return None


def list_users() -> List[Dict[str, Any]]:
    items = []
    try:
        kwargs = {}
        while True:
            response = users_table().scan(**kwargs)
            items.extend(response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                break
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
    except ClientError as e:
        logger.error(f"list_users failed: {e.response['Error']['Message']}")
        return []
    return sorted((_from_dynamo(item) for item in items), key=lambda u: u["id"])


def put_user(user_item: dict) -> bool:
    return _put_item(users_table(), user_item)


def update_user(user_id: int, updates: dict):
    return _update_item(users_table(), user_id, updates)


def delete_user(user_id: int):
    return _delete_item(users_table(), user_id)


# Transactions

def get_transaction(transaction_id: int):
    return _get_item(transactions_table(), transaction_id)


def get_transactions_for_user(user_id: int) -> List[Dict[str, Any]]:
    return _query_by_user(transactions_table(), user_id)


def put_transaction(transaction_item: dict) -> bool:
    return _put_item(transactions_table(), transaction_item)


def put_transactions(transaction_items: List[dict]) -> bool:
    """Write a batch of transactions in one batch_writer session."""
    try:
        with transactions_table().batch_writer() as batch:
            for item in transaction_items:
                batch.put_item(Item=_convert_for_dynamo(item))
        return True
    except ClientError as e:
        logger.error(f"put_transactions failed: {e.response['Error']['Message']}")
        return False


def update_transaction(transaction_id: int, updates: dict):
    return _update_item(transactions_table(), transaction_id, updates)


def delete_transaction(transaction_id: int):
    return _delete_item(transactions_table(), transaction_id)


# Budgets

def get_budget(budget_id: int):
    return _get_item(budgets_table(), budget_id)


def get_budgets_for_user(user_id: int) -> List[Dict[str, Any]]:
    return _query_by_user(budgets_table(), user_id)


def put_budget(budget_item: dict) -> bool:
    return _put_item(budgets_table(), budget_item)


def update_budget(budget_id: int, updates: dict):
    return _update_item(budgets_table(), budget_id, updates)


def delete_budget(budget_id: int):
    return _delete_item(budgets_table(), budget_id)


# Savings goals

def get_savings_goal(goal_id: int):
    return _get_item(savings_goals_table(), goal_id)


def get_savings_goals_for_user(user_id: int) -> List[Dict[str, Any]]:
    return _query_by_user(savings_goals_table(), user_id)


def put_savings_goal(goal_item: dict) -> bool:
    return _put_item(savings_goals_table(), goal_item)


def update_savings_goal(goal_id: int, updates: dict):
    return _update_item(savings_goals_table(), goal_id, updates)


def delete_savings_goal(goal_id: int):
    return _delete_item(savings_goals_table(), goal_id)


def _get_item(table, item_id: int):
    try:
        response = table.get_item(Key={"id": item_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_item on {table.name} failed: {e.response['Error']['Message']}")
        return None


def _query_by_user(table, user_id: int) -> List[Dict[str, Any]]:
    items = []
    try:
        kwargs = {
            "IndexName": USER_INDEX,
            "KeyConditionExpression": Key("user_id").eq(user_id),
        }
        while True:
            response = table.query(**kwargs)
            items.extend(response.get("Items", []))
            if "LastEvaluatedKey" not in response:
                break
            kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
    except ClientError as e:
        logger.error(f"query on {table.name} failed: {e.response['Error']['Message']}")
        return []
    return sorted((_from_dynamo(item) for item in items), key=lambda i: i["id"])


def _put_item(table, item: dict) -> bool:
    try:
        table.put_item(Item=_convert_for_dynamo(item))
        return True
    except ClientError as e:
        logger.error(f"put_item on {table.name} failed: {e.response['Error']['Message']}")
        return False


def _update_item(table, item_id: int, updates: dict):
    """
    Apply partial updates to an existing item. Returns the updated item, or None
    when the item does not exist or the write fails.
    """
    if not updates:
        return _get_item(table, item_id)

    set_parts = []
    remove_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {"#pk": "id"}

    for idx, (key, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        expression_attribute_names[placeholder] = key
        if value is None:
            remove_parts.append(placeholder)
            continue
        value_placeholder = f":v{idx}"
        set_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_values[value_placeholder] = value

    update_expression = ""
    if set_parts:
        update_expression += "SET " + ", ".join(set_parts)
    if remove_parts:
        update_expression += " REMOVE " + ", ".join(remove_parts)

    kwargs = {
        "Key": {"id": item_id},
        "UpdateExpression": update_expression.strip(),
        "ConditionExpression": "attribute_exists(#pk)",
        "ExpressionAttributeNames": expression_attribute_names,
        "ReturnValues": "ALL_NEW",
    }
    if expression_attribute_values:
        kwargs["ExpressionAttributeValues"] = _convert_for_dynamo(expression_attribute_values)

    try:
        response = table.update_item(**kwargs)
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None
    except ClientError as e:
        if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
            return None
        logger.error(f"update_item on {table.name} failed: {e.response['Error']['Message']}")
        return None


def _delete_item(table, item_id: int):
    """Delete an item and return the deleted row, or None if nothing was deleted."""
    try:
        response = table.delete_item(Key={"id": item_id}, ReturnValues="ALL_OLD")
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None
    except ClientError as e:
        logger.error(f"delete_item on {table.name} failed: {e.response['Error']['Message']}")
        return None


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
