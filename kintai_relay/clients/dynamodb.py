"""
DynamoDB-backed credential store used when running on AWS.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from kintai_relay.clients.errors import CredentialStoreError
from kintai_relay.core.config import AWSSettings


class DynamoDBCredentialStore:
    """Keep each credential key as one item under a shared partition key."""

    def __init__(self, settings: AWSSettings) -> None:
        if not settings.dynamodb_table_name:
            raise ValueError("DYNAMODB_TABLE_NAME is required for the DynamoDB store.")
        self._settings = settings
        self._partition_key = settings.credential_partition_key
        self._resource = boto3.resource("dynamodb", region_name=settings.region_name)
        self._table = self._resource.Table(settings.dynamodb_table_name)

    def get(self, key: str) -> Optional[str]:
        try:
            response = self._table.get_item(
                Key={"pk": self._partition_key, "sk": key},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as exc:
            raise CredentialStoreError(f"Failed to read {key}: {exc}") from exc
        item = response.get("Item")
        if not item:
            return None
        return item.get("value")

    def put(self, key: str, value: str) -> None:
        try:
            self._table.put_item(Item={"pk": self._partition_key, "sk": key, "value": value})
        except (BotoCoreError, ClientError) as exc:
            raise CredentialStoreError(f"Failed to write {key}: {exc}") from exc

    def put_many(self, items: Mapping[str, str]) -> None:
        """Write every item atomically through ``TransactWriteItems``."""
        transact_items: list[Dict[str, Any]] = [
            {
                "Put": {
                    "TableName": self._settings.dynamodb_table_name,
                    "Item": {
                        "pk": {"S": self._partition_key},
                        "sk": {"S": key},
                        "value": {"S": value},
                    },
                }
            }
            for key, value in items.items()
        ]
        try:
            self._resource.meta.client.transact_write_items(TransactItems=transact_items)
        except (BotoCoreError, ClientError) as exc:
            raise CredentialStoreError(f"Failed to write credentials: {exc}") from exc


__all__ = ["DynamoDBCredentialStore"]
