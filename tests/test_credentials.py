"""Tests for credential resolution."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import SplitResult

import pytest

from hgconnect.config import ConnectionProfileConfig
from hgconnect.credentials import (
    CredentialsService,
    LocalCredentialsService,
    PasswordCredentials,
    resolve_credentials,
)
from hgconnect.errors import CredentialResolutionError
from hgconnect.models import ResolvedCredentials


class _RecordingService:
    def __init__(self, result: object = None, error: Exception | None = None) -> None:
        self.result = result if result is not None else PasswordCredentials(username="vault-user", password="p1")
        self.error = error
        self.calls: list[SplitResult] = []

    def get_credentials(self, uri: SplitResult) -> PasswordCredentials:
        self.calls.append(uri)
        if self.error is not None:
            raise self.error
        return self.result  # type: ignore[return-value]


def _profile(**overrides: object) -> ConnectionProfileConfig:
    data: dict[str, object] = {
        "hostname": "db.example.com",
        "database_name": "prod",
        "username": "app",
        "password": "inline",
    }
    data.update(overrides)
    return ConnectionProfileConfig.model_validate(data)


def test_inline_credentials_when_no_secret_url() -> None:
    service = _RecordingService()

    creds = resolve_credentials(_profile(), service)

    assert creds == ResolvedCredentials(username="app", password="inline")
    assert service.calls == []


def test_inline_credentials_may_be_empty() -> None:
    creds = resolve_credentials(_profile(username=None, password=None), None)

    assert creds == ResolvedCredentials(username=None, password=None)


def test_secret_password_replaces_inline_password() -> None:
    service = _RecordingService()

    creds = resolve_credentials(_profile(secret_resource_url="vault://secrets/db/prod"), service)

    assert creds.password == "p1"
    assert creds.username == "app"
    assert service.calls[0].scheme == "vault"
    assert service.calls[0].path == "/db/prod"


def test_secret_is_fetched_on_every_call() -> None:
    service = _RecordingService()
    profile = _profile(secret_resource_url="vault://secrets/db/prod")

    resolve_credentials(profile, service)
    service.result = PasswordCredentials(username=None, password="rotated")
    creds = resolve_credentials(profile, service)

    assert creds.password == "rotated"
    assert len(service.calls) == 2


@pytest.mark.parametrize("error", [OSError("vault unreachable"), KeyError("db/prod")])
def test_lookup_failure_is_wrapped_without_fallback(error: Exception) -> None:
    service = _RecordingService(error=error)

    with pytest.raises(CredentialResolutionError) as excinfo:
        resolve_credentials(_profile(secret_resource_url="vault://secrets/db/prod"), service)

    assert excinfo.value.__cause__ is error
    assert str(error) in str(excinfo.value)


def test_unexpected_service_error_is_wrapped() -> None:
    error = RuntimeError("vault: permission denied")
    service = _RecordingService(error=error)

    with pytest.raises(CredentialResolutionError, match="permission denied") as excinfo:
        resolve_credentials(_profile(secret_resource_url="vault://secrets/db/prod"), service)

    assert excinfo.value.__cause__ is error
    assert len(service.calls) == 1


def test_malformed_secret_url_is_wrapped() -> None:
    service = _RecordingService()

    with pytest.raises(CredentialResolutionError):
        resolve_credentials(_profile(secret_resource_url="vault://[broken"), service)
    assert service.calls == []


def test_missing_service_fails() -> None:
    with pytest.raises(CredentialResolutionError):
        resolve_credentials(_profile(secret_resource_url="env:DB_PASSWORD"), None)


def test_non_password_secret_fails() -> None:
    service = _RecordingService(result=object())

    with pytest.raises(CredentialResolutionError, match="not a password credential"):
        resolve_credentials(_profile(secret_resource_url="vault://secrets/db"), service)


def test_local_service_reads_environment() -> None:
    service = LocalCredentialsService({"DB_PASSWORD": "from-env"})

    assert isinstance(service, CredentialsService)
    creds = resolve_credentials(_profile(secret_resource_url="env:DB_PASSWORD"), service)
    assert creds.password == "from-env"


def test_local_service_missing_variable_is_wrapped() -> None:
    service = LocalCredentialsService({})

    with pytest.raises(CredentialResolutionError, match="DB_PASSWORD"):
        resolve_credentials(_profile(secret_resource_url="env:DB_PASSWORD"), service)


def test_local_service_reads_file(tmp_path: Path) -> None:
    secret = tmp_path / "db.password"
    secret.write_text("from-file\n")
    service = LocalCredentialsService({})

    creds = resolve_credentials(_profile(secret_resource_url=secret.as_uri()), service)

    assert creds.password == "from-file"


def test_local_service_missing_file_is_wrapped(tmp_path: Path) -> None:
    service = LocalCredentialsService({})
    url = (tmp_path / "absent").as_uri()

    with pytest.raises(CredentialResolutionError) as excinfo:
        resolve_credentials(_profile(secret_resource_url=url), service)

    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_local_service_rejects_unknown_scheme() -> None:
    with pytest.raises(CredentialResolutionError, match="unsupported secret scheme"):
        resolve_credentials(_profile(secret_resource_url="vault://x"), LocalCredentialsService({}))
