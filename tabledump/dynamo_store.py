# dynamo_store.py
from __future__ import annotations
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from boto3.dynamodb.types import TypeSerializer

from tabledump.dump_errors import StoreConnectionError, UnsupportedTypeError, WriteBatchError
from tabledump.row_codec import format_time
from tabledump.store_config import StoreConfig

logger = logging.getLogger(__name__)

SCAN_PAGE_SIZE = 1000
# ExecuteTransaction hard limit
MAX_TRANSACTION_STATEMENTS = 100


class DynamoStore:
    """
    Connection handle for one run: the row source for export and the batch sink
    for import.

    - iter_rows() pages through a consistent (by default) Scan.
    - execute_batch() writes PartiQL statements with ExecuteTransaction, so a
      batch lands all-or-nothing.

    Retries and timeouts are set once on the botocore client from StoreConfig.
    """

    def __init__(self, config: Optional[StoreConfig] = None, session: Optional[boto3.Session] = None):
        self.config = config or StoreConfig()
        client_config = Config(
            connect_timeout=self.config.timeout,
            read_timeout=self.config.timeout,
            retries={"max_attempts": self.config.max_attempts, "mode": "standard"},
        )
        client_kwargs = {"region_name": self.config.region, "config": client_config}
        if self.config.endpoint_url:
            client_kwargs["endpoint_url"] = self.config.endpoint_url
        try:
            if session is None:
                session_kwargs = {}
                if self.config.profile:
                    session_kwargs["profile_name"] = self.config.profile
                session = boto3.Session(**session_kwargs)
            self._dynamodb = session.resource("dynamodb", **client_kwargs)
            self._client = session.client("dynamodb", **client_kwargs)
        except BotoCoreError as e:
            raise StoreConnectionError(f"cannot open AWS session: {e}") from e
        self._serializer = TypeSerializer()

    # -------------------------
    # Helpers
    # -------------------------
    @staticmethod
    def _normalize_value(value: Any) -> Any:
        """
        boto3 hands every number back as Decimal. Integral ones become int, the
        rest float; a fraction a float cannot hold exactly (DynamoDB keeps up to
        38 digits) is refused rather than silently rounded.
        """
        if isinstance(value, Decimal):
            if value == value.to_integral_value():
                return int(value)
            as_float = float(value)
            if Decimal(repr(as_float)) != value:
                raise UnsupportedTypeError(f"number {value} has more digits than a float holds")
            return as_float
        return value

    def _normalize_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        normalized = {}
        for k, v in item.items():
            try:
                normalized[k] = self._normalize_value(v)
            except UnsupportedTypeError as e:
                e.column = k
                raise
        return normalized

    def _to_parameter(self, value: Any) -> Dict[str, Any]:
        if isinstance(value, float):
            value = Decimal(repr(value))
        elif isinstance(value, datetime):
            value = format_time(value)
        elif isinstance(value, uuid.UUID):
            value = str(value)
        return self._serializer.serialize(value)

    @staticmethod
    def _error_code(e: ClientError) -> str:
        return e.response.get("Error", {}).get("Code", "Unknown")

    # -------------------------
    # Connection
    # -------------------------
    def check_table(self, table_name: str) -> Dict[str, Any]:
        """
        Describe the table, turning every failure into StoreConnectionError so a
        bad endpoint, missing credentials or a missing table stop the run early.
        """
        try:
            return self._client.describe_table(TableName=table_name)["Table"]
        except ClientError as e:
            raise StoreConnectionError(
                f"cannot access table '{table_name}': {self._error_code(e)}: {e}"
            ) from e
        except BotoCoreError as e:
            raise StoreConnectionError(f"cannot reach DynamoDB: {e}") from e

    # -------------------------
    # Public: Source
    # -------------------------
    def iter_rows(self, table_name: str, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        if limit is not None and limit <= 0:
            return
        table = self._dynamodb.Table(table_name)
        last_evaluated_key = None
        seen = 0
        while True:
            kwargs = {"Limit": SCAN_PAGE_SIZE, "ConsistentRead": self.config.consistent_read}
            if last_evaluated_key:
                kwargs["ExclusiveStartKey"] = last_evaluated_key

            try:
                resp = table.scan(**kwargs)
            except ClientError as e:
                raise StoreConnectionError(
                    f"scan of '{table_name}' failed: {self._error_code(e)}: {e}"
                ) from e
            except BotoCoreError as e:
                raise StoreConnectionError(f"scan of '{table_name}' failed: {e}") from e

            for it in resp.get("Items", []):
                yield self._normalize_item(it)
                seen += 1
                if limit is not None and seen >= limit:
                    return

            last_evaluated_key = resp.get("LastEvaluatedKey")
            if not last_evaluated_key:
                return

    # -------------------------
    # Public: Sink
    # -------------------------
    def execute_batch(self, statements: List[Tuple[str, List[Any]]]) -> None:
        """
        Run all statements in one transaction. Any rejection fails the whole
        batch with WriteBatchError; nothing is retried here beyond the client's
        own retry policy.
        """
        if not statements:
            return
        if len(statements) > MAX_TRANSACTION_STATEMENTS:
            raise WriteBatchError(
                f"batch of {len(statements)} statements exceeds the transaction limit of {MAX_TRANSACTION_STATEMENTS}",
                batch_size=len(statements),
            )
        try:
            transact = [
                {"Statement": query, "Parameters": [self._to_parameter(v) for v in values]}
                for query, values in statements
            ]
        except (TypeError, ArithmeticError) as e:
            raise WriteBatchError(f"value cannot be stored in DynamoDB: {e}", batch_size=len(statements)) from e
        try:
            # Same token on every client retry keeps the transaction idempotent
            self._client.execute_transaction(
                TransactStatements=transact,
                ClientRequestToken=str(uuid.uuid4()),
            )
        except ClientError as e:
            code = self._error_code(e)
            reasons = [
                r.get("Code") for r in e.response.get("CancellationReasons", []) if r.get("Code") not in (None, "None")
            ]
            detail = f" ({', '.join(reasons)})" if reasons else ""
            raise WriteBatchError(
                f"batch of {len(statements)} rejected: {code}{detail}",
                code=code,
                batch_size=len(statements),
            ) from e
        except BotoCoreError as e:
            raise WriteBatchError(f"batch of {len(statements)} failed: {e}", batch_size=len(statements)) from e
        logger.debug(f"[import] Committed {len(statements)} statements")
