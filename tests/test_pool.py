"""Tests for the asyncpg-backed pooling service."""

from __future__ import annotations

from typing import Any

import pytest

from hgconnect.errors import DataSourceCreationError
from hgconnect.models import CommitMode, PooledConnectionRequest
from hgconnect.pool import AsyncpgPoolingService, PooledDataSource, pool_kwargs


def _request(**overrides: Any) -> PooledConnectionRequest:
    data: dict[str, Any] = {
        "driver_id": "asyncpg",
        "uri": "postgresql://db.example.com:5866/prod",
        "username": "app",
        "password": "secret",
        "properties": {"OpenSourceSubProtocolOverride": "true"},
        "commit_mode": CommitMode.FORCE_MANUAL_COMMIT_MODE,
        "max_idle": 8,
        "idle_timeout_sec": 60,
    }
    data.update(overrides)
    return PooledConnectionRequest(**data)


class _FakeTransaction:
    def __init__(self, log: list[str]) -> None:
        self._log = log

    async def start(self) -> None:
        self._log.append("begin")

    async def commit(self) -> None:
        self._log.append("commit")

    async def rollback(self) -> None:
        self._log.append("rollback")


class _FakeConnection:
    def __init__(self) -> None:
        self.log: list[str] = []

    def transaction(self) -> _FakeTransaction:
        return _FakeTransaction(self.log)

    async def execute(self, sql: str, *args: object) -> str:
        self.log.append(sql)
        return "INSERT 0 1"

    async def fetch(self, sql: str, *args: object) -> list[dict[str, int]]:
        self.log.append(sql)
        return [{"value": 1}]

    async def fetchval(self, sql: str, *args: object) -> int:
        self.log.append(sql)
        return 1


class _FakePool:
    def __init__(self) -> None:
        self.conn = _FakeConnection()
        self.released: list[_FakeConnection] = []
        self.closed = False

    async def acquire(self) -> _FakeConnection:
        return self.conn

    async def release(self, conn: _FakeConnection) -> None:
        self.released.append(conn)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch):
    created: list[dict[str, Any]] = []
    pools: list[_FakePool] = []

    async def _fake_create_pool(**kwargs: Any) -> _FakePool:
        created.append(kwargs)
        pool = _FakePool()
        pools.append(pool)
        return pool

    monkeypatch.setattr("hgconnect.pool.asyncpg.create_pool", _fake_create_pool)
    svc = AsyncpgPoolingService(command_timeout=30)
    svc.created = created  # type: ignore[attr-defined]
    svc.pools = pools  # type: ignore[attr-defined]
    try:
        yield svc
    finally:
        svc.shutdown()


def test_pool_kwargs_map_request_fields() -> None:
    kwargs = pool_kwargs(_request(max_idle=4, idle_timeout_sec=30), connect_timeout=5.0, command_timeout=12.0)

    assert kwargs["dsn"] == "postgresql://db.example.com:5866/prod"
    assert kwargs["user"] == "app"
    assert kwargs["password"] == "secret"
    assert kwargs["min_size"] == 0
    assert kwargs["max_size"] == 4
    assert kwargs["max_inactive_connection_lifetime"] == 30.0
    assert kwargs["timeout"] == 5.0
    assert kwargs["command_timeout"] == 12.0
    assert "ssl" not in kwargs
    assert "server_settings" not in kwargs


def test_pool_kwargs_keep_at_least_one_connection() -> None:
    assert pool_kwargs(_request(max_idle=0), connect_timeout=1.0)["max_size"] == 1


def test_pool_kwargs_translate_ssl_properties() -> None:
    kwargs = pool_kwargs(
        _request(properties={"ssl": "true", "sslmode": "verify-ca", "application_name": "reports"}),
        connect_timeout=1.0,
    )

    assert kwargs["ssl"] == "verify-ca"
    assert kwargs["server_settings"] == {"application_name": "reports"}


@pytest.mark.parametrize(("flag", "expected"), [("true", "require"), ("false", "disable")])
def test_pool_kwargs_ssl_flag_without_mode(flag: str, expected: str) -> None:
    assert pool_kwargs(_request(properties={"ssl": flag}), connect_timeout=1.0)["ssl"] == expected


def test_pool_kwargs_keep_driver_options_off_the_server() -> None:
    kwargs = pool_kwargs(
        _request(properties={"tcpKeepAlive": "true", "socketTimeout": "30", "application_name": "reports"}),
        connect_timeout=1.0,
    )

    assert kwargs["server_settings"] == {"application_name": "reports"}


def test_pool_kwargs_connect_timeout_property_overrides_default() -> None:
    kwargs = pool_kwargs(_request(properties={"connectTimeout": "3"}), connect_timeout=10.0)

    assert kwargs["timeout"] == 3.0
    assert "server_settings" not in kwargs


def test_pool_kwargs_skip_empty_credentials() -> None:
    kwargs = pool_kwargs(_request(username=None, password=None), connect_timeout=1.0)

    assert "user" not in kwargs
    assert "password" not in kwargs


def test_open_pooled_creates_pool(service: AsyncpgPoolingService) -> None:
    source = service.open_pooled(_request())

    assert isinstance(source, PooledDataSource)
    assert service.created[0]["command_timeout"] == 30  # type: ignore[attr-defined]
    assert source.commit_mode is CommitMode.FORCE_MANUAL_COMMIT_MODE


def test_manual_commit_wraps_checkout_in_transaction(service: AsyncpgPoolingService) -> None:
    source = service.open_pooled(_request())
    pool = service.pools[0]  # type: ignore[attr-defined]

    with source.connection() as conn:
        assert conn.execute("INSERT INTO t VALUES (1)") == "INSERT 0 1"
        conn.commit()
        assert conn.fetchval("SELECT 1") == 1

    assert pool.conn.log == ["begin", "INSERT INTO t VALUES (1)", "commit", "begin", "SELECT 1", "rollback"]
    assert pool.released == [pool.conn]


def test_auto_commit_skips_transactions(service: AsyncpgPoolingService) -> None:
    source = service.open_pooled(_request(commit_mode=CommitMode.FORCE_AUTO_COMMIT_MODE))
    pool = service.pools[0]  # type: ignore[attr-defined]

    with source.connection() as conn:
        conn.fetch("SELECT 1")
        conn.commit()

    assert pool.conn.log == ["SELECT 1"]


def test_connection_released_when_body_raises(service: AsyncpgPoolingService) -> None:
    source = service.open_pooled(_request())
    pool = service.pools[0]  # type: ignore[attr-defined]

    with pytest.raises(RuntimeError):
        with source.connection():
            raise RuntimeError("boom")

    assert pool.conn.log == ["begin", "rollback"]
    assert pool.released == [pool.conn]


def test_close_is_idempotent_and_context_managed(service: AsyncpgPoolingService) -> None:
    with service.open_pooled(_request()) as source:
        pass
    source.close()

    assert source.closed
    assert service.pools[0].closed  # type: ignore[attr-defined]


def test_create_pool_errors_propagate(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _broken_create_pool(**kwargs: Any) -> None:
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr("hgconnect.pool.asyncpg.create_pool", _broken_create_pool)
    svc = AsyncpgPoolingService()
    try:
        with pytest.raises(ConnectionRefusedError):
            svc.open_pooled(_request())
    finally:
        svc.shutdown()


def test_shutdown_closes_open_pools(monkeypatch: pytest.MonkeyPatch) -> None:
    pool = _FakePool()

    async def _fake_create_pool(**kwargs: Any) -> _FakePool:
        return pool

    monkeypatch.setattr("hgconnect.pool.asyncpg.create_pool", _fake_create_pool)
    svc = AsyncpgPoolingService()
    source = svc.open_pooled(_request())

    svc.shutdown()

    assert source.closed
    assert pool.closed
    source.close()
    svc.shutdown()


def test_source_fails_fast_after_shutdown(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _fake_create_pool(**kwargs: Any) -> _FakePool:
        return _FakePool()

    monkeypatch.setattr("hgconnect.pool.asyncpg.create_pool", _fake_create_pool)
    svc = AsyncpgPoolingService()
    source = svc.open_pooled(_request())
    svc.shutdown()

    with pytest.raises(DataSourceCreationError, match="shut down"):
        with source.connection():
            pass
    with pytest.raises(DataSourceCreationError, match="shut down"):
        svc.open_pooled(_request())
