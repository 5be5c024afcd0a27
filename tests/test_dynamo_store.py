from __future__ import annotations

import uuid
from datetime import datetime

import boto3
from botocore.stub import ANY, Stubber
import pytest

from tabledump.dump_errors import StoreConnectionError, UnsupportedTypeError, WriteBatchError
from tabledump.dynamo_store import DynamoStore
from tabledump.store_config import StoreConfig

pytestmark = pytest.mark.unit


@pytest.fixture
def store() -> DynamoStore:
    session = boto3.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
    )
    return DynamoStore(StoreConfig(max_attempts=1), session=session)


def test_iter_rows_follows_pages_and_normalizes_numbers(store) -> None:
    with Stubber(store._dynamodb.meta.client) as stub:
        stub.add_response(
            "scan",
            {
                "Items": [{"id": {"S": "a"}, "n": {"N": "3"}, "f": {"N": "1.5"}, "ok": {"BOOL": True}}],
                "LastEvaluatedKey": {"id": {"S": "a"}},
            },
        )
        stub.add_response("scan", {"Items": [{"id": {"S": "b"}, "n": {"N": "4"}}]})

        rows = list(store.iter_rows("users"))

        stub.assert_no_pending_responses()

    assert rows == [{"id": "a", "n": 3, "f": 1.5, "ok": True}, {"id": "b", "n": 4}]
    assert type(rows[0]["n"]) is int
    assert type(rows[0]["f"]) is float


def test_iter_rows_limit(store) -> None:
    with Stubber(store._dynamodb.meta.client) as stub:
        stub.add_response(
            "scan",
            {"Items": [{"id": {"S": "a"}}, {"id": {"S": "b"}}], "LastEvaluatedKey": {"id": {"S": "b"}}},
        )

        rows = list(store.iter_rows("users", limit=1))

    assert rows == [{"id": "a"}]


def test_iter_rows_access_denied(store) -> None:
    with Stubber(store._dynamodb.meta.client) as stub:
        stub.add_client_error("scan", service_error_code="AccessDeniedException", service_message="nope")

        with pytest.raises(StoreConnectionError) as exc:
            list(store.iter_rows("users"))

    assert "AccessDeniedException" in str(exc.value)


def test_check_table_missing(store) -> None:
    with Stubber(store._client) as stub:
        stub.add_client_error(
            "describe_table",
            service_error_code="ResourceNotFoundException",
            expected_params={"TableName": "ghost"},
        )

        with pytest.raises(StoreConnectionError):
            store.check_table("ghost")


def test_execute_batch_sends_one_transaction(store) -> None:
    uid = uuid.UUID("12345678-1234-5678-1234-567812345678")
    query = "INSERT INTO \"users\" VALUE {'at': ?, 'id': ?, 'n': ?, 'ok': ?, 'score': ?, 'tag': ?}"
    with Stubber(store._client) as stub:
        stub.add_response(
            "execute_transaction",
            {},
            {
                "TransactStatements": [
                    {
                        "Statement": query,
                        "Parameters": [
                            {"S": "2024-03-01T12:00:00.000000Z"},
                            {"S": "12345678-1234-5678-1234-567812345678"},
                            {"N": "3"},
                            {"BOOL": True},
                            {"N": "0.1"},
                            {"NULL": True},
                        ],
                    }
                ],
                "ClientRequestToken": ANY,
            },
        )

        store.execute_batch([(query, [datetime(2024, 3, 1, 12, 0), uid, 3, True, 0.1, None])])

        stub.assert_no_pending_responses()


def test_execute_batch_cancelled(store) -> None:
    with Stubber(store._client) as stub:
        stub.add_client_error(
            "execute_transaction",
            service_error_code="TransactionCanceledException",
            service_message="Transaction cancelled",
            modeled_fields={"CancellationReasons": [{"Code": "None"}, {"Code": "DuplicateItem"}]},
        )

        with pytest.raises(WriteBatchError) as exc:
            store.execute_batch([("INSERT INTO \"t\" VALUE {'id': ?}", [1]), ("INSERT INTO \"t\" VALUE {'id': ?}", [2])])

    assert exc.value.code == "TransactionCanceledException"
    assert exc.value.batch_size == 2
    assert "DuplicateItem" in str(exc.value)


def test_execute_batch_over_transaction_limit(store) -> None:
    statements = [("INSERT INTO \"t\" VALUE {'id': ?}", [i]) for i in range(101)]

    with pytest.raises(WriteBatchError):
        store.execute_batch(statements)


def test_execute_batch_empty_is_noop(store) -> None:
    with Stubber(store._client) as stub:
        store.execute_batch([])

        stub.assert_no_pending_responses()


def test_iter_rows_limit_zero_reads_nothing(store) -> None:
    with Stubber(store._dynamodb.meta.client) as stub:
        rows = list(store.iter_rows("users", limit=0))

        stub.assert_no_pending_responses()

    assert rows == []


def test_iter_rows_refuses_numbers_a_float_would_round(store) -> None:
    with Stubber(store._dynamodb.meta.client) as stub:
        stub.add_response(
            "scan",
            {"Items": [{"id": {"S": "a"}, "amount": {"N": "0.12345678901234567890123"}}]},
        )

        with pytest.raises(UnsupportedTypeError) as exc:
            list(store.iter_rows("users"))

    assert exc.value.column == "amount"


def test_iter_rows_keeps_long_integers_exact(store) -> None:
    with Stubber(store._dynamodb.meta.client) as stub:
        stub.add_response("scan", {"Items": [{"id": {"N": "12345678901234567890123"}}]})

        rows = list(store.iter_rows("users"))

    assert rows == [{"id": 12345678901234567890123}]
