try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from kintai_relay.clients import dynamodb as dynamodb_module
from kintai_relay.clients.dynamodb import DynamoDBCredentialStore
from kintai_relay.clients.errors import CredentialStoreError
from kintai_relay.clients.sqlite_store import SQLiteCredentialStore
from kintai_relay.core.config import AWSSettings


def test_sqlite_store_round_trips_and_overwrites(tmp_path: Path) -> None:
    store = SQLiteCredentialStore(str(tmp_path / "nested" / "creds.db"))

    assert store.get("freee_access_token") is None

    store.put_many({"freee_access_token": "A1", "freee_refresh_token": "R1"})
    store.put("freee_access_token", "A2")

    assert store.get("freee_access_token") == "A2"
    assert store.get("freee_refresh_token") == "R1"


def test_sqlite_store_survives_reopen(tmp_path: Path) -> None:
    db_path = str(tmp_path / "creds.db")
    SQLiteCredentialStore(db_path).put("freee_token_expires_at", "1753833600000")

    assert SQLiteCredentialStore(db_path).get("freee_token_expires_at") == "1753833600000"


def test_sqlite_store_wraps_database_errors(tmp_path: Path) -> None:
    db_path = tmp_path / "creds.db"
    store = SQLiteCredentialStore(str(db_path))
    db_path.unlink()
    db_path.mkdir()

    with pytest.raises(CredentialStoreError):
        store.get("freee_access_token")


class FakeLowLevelClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.transactions: list = []
        self.error = error

    def transact_write_items(self, TransactItems):  # noqa: N803 - boto3 keyword
        if self.error is not None:
            raise self.error
        self.transactions.append(TransactItems)


class FakeTable:
    def __init__(self) -> None:
        self.items: dict = {}
        self.get_calls: list = []

    def get_item(self, Key, ConsistentRead=False):  # noqa: N803 - boto3 keyword
        self.get_calls.append((Key, ConsistentRead))
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": item} if item else {}

    def put_item(self, Item):  # noqa: N803 - boto3 keyword
        self.items[(Item["pk"], Item["sk"])] = Item


class FakeResource:
    def __init__(self, table: FakeTable, client: FakeLowLevelClient) -> None:
        self._table = table
        self.meta = type("Meta", (), {"client": client})()
        self.table_names: list = []

    def Table(self, name):  # noqa: N802 - boto3 API
        self.table_names.append(name)
        return self._table


def _dynamo_store(monkeypatch, client=None):
    table = FakeTable()
    resource = FakeResource(table, client or FakeLowLevelClient())
    monkeypatch.setattr(dynamodb_module.boto3, "resource", lambda *args, **kwargs: resource)
    settings = AWSSettings(
        region_name="ap-northeast-1",
        dynamodb_table_name="kintai-credentials",
        credential_partition_key="integration#freee",
    )
    return DynamoDBCredentialStore(settings), table, resource


def test_dynamodb_store_requires_table_name() -> None:
    with pytest.raises(ValueError):
        DynamoDBCredentialStore(AWSSettings(dynamodb_table_name=None))


def test_dynamodb_store_reads_consistently(monkeypatch) -> None:
    store, table, resource = _dynamo_store(monkeypatch)
    store.put("freee_access_token", "A1")

    assert store.get("freee_access_token") == "A1"
    assert store.get("freee_refresh_token") is None
    assert resource.table_names == ["kintai-credentials"]
    assert table.get_calls[0] == ({"pk": "integration#freee", "sk": "freee_access_token"}, True)


def test_dynamodb_store_writes_record_in_one_transaction(monkeypatch) -> None:
    client = FakeLowLevelClient()
    store, _, _ = _dynamo_store(monkeypatch, client)

    store.put_many({"freee_access_token": "A2", "freee_refresh_token": "R2"})

    assert len(client.transactions) == 1
    puts = [entry["Put"] for entry in client.transactions[0]]
    assert {put["Item"]["sk"]["S"] for put in puts} == {
        "freee_access_token",
        "freee_refresh_token",
    }
    assert all(put["TableName"] == "kintai-credentials" for put in puts)


def test_dynamodb_store_wraps_client_errors(monkeypatch) -> None:
    error = ClientError(
        {"Error": {"Code": "TransactionCanceledException", "Message": "conflict"}},
        "TransactWriteItems",
    )
    store, _, _ = _dynamo_store(monkeypatch, FakeLowLevelClient(error))

    with pytest.raises(CredentialStoreError):
        store.put_many({"freee_access_token": "A2"})
