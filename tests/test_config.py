try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest
from pydantic import ValidationError

from kintai_relay.core.config import AppSettings


def test_user_mapping_is_parsed_from_json(monkeypatch) -> None:
    monkeypatch.setenv("USER_MAPPING", '{"U1": 100, "U2": "200"}')

    settings = AppSettings()

    assert settings.user_mapping == {"U1": 100, "U2": 200}


def test_invalid_user_mapping_fails_loudly(monkeypatch) -> None:
    monkeypatch.setenv("USER_MAPPING", "U1=100")

    with pytest.raises(ValueError):
        AppSettings()


def test_nested_groups_read_their_own_variables(monkeypatch) -> None:
    monkeypatch.setenv("FREEE_COMPANY_ID", "12345")
    monkeypatch.setenv("CREDENTIAL_STORE_BACKEND", "dynamodb")
    monkeypatch.setenv("DYNAMODB_TABLE_NAME", "kintai")
    monkeypatch.delenv("FREEE_HTTP_TIMEOUT", raising=False)

    settings = AppSettings()

    assert settings.freee.company_id == 12345
    assert settings.freee.http_timeout_seconds is None
    assert settings.storage.backend == "dynamodb"
    assert settings.aws.dynamodb_table_name == "kintai"
    assert settings.scheduler.token_refresh_interval_minutes == 30


def test_missing_client_credentials_fail(monkeypatch) -> None:
    monkeypatch.delenv("FREEE_CLIENT_ID", raising=False)

    with pytest.raises(ValidationError):
        AppSettings()
