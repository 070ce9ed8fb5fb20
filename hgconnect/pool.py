"""Pooled data sources backed by asyncpg."""

from __future__ import annotations

import asyncio
import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterator, Mapping, Protocol, TypeVar, runtime_checkable

import asyncpg

from .errors import DataSourceCreationError
from .models import CommitMode, PooledConnectionRequest

LOG = logging.getLogger(__name__)

T = TypeVar("T")

Runner = Callable[[Awaitable[Any]], Any]

# Properties interpreted on the client; never forwarded as server settings.
CLIENT_PROPERTIES = frozenset({"ssl", "sslmode", "OpenSourceSubProtocolOverride"})

# Driver-side connection options; PostgreSQL rejects them as run-time parameters.
DRIVER_PROPERTIES = frozenset(
    {
        "connectTimeout",
        "loginTimeout",
        "socketTimeout",
        "tcpKeepAlive",
        "sslcert",
        "sslkey",
        "sslrootcert",
        "sslpassword",
        "sslfactory",
        "prepareThreshold",
        "loggerLevel",
    }
)
# Driver options honoured as the pool's connect timeout, in seconds.
TIMEOUT_PROPERTIES = ("connectTimeout", "loginTimeout")


@runtime_checkable
class PooledDataSource(Protocol):
    """Caller-owned pooled connection handle."""

    def connection(self) -> Any:
        """Context manager yielding a pooled connection."""

    def close(self) -> None:
        """Release every pooled connection."""


@runtime_checkable
class PoolingService(Protocol):
    """Opens pooled data sources from assembled requests."""

    def open_pooled(self, request: PooledConnectionRequest) -> PooledDataSource:
        """Open a pool for ``request``; may block on network I/O."""


class PooledConnection:
    """Synchronous view of a checked-out asyncpg connection."""

    def __init__(self, conn: Any, run: Runner, *, manual_commit: bool) -> None:
        self._conn = conn
        self._run = run
        self._manual_commit = manual_commit
        self._transaction: Any | None = None

    @property
    def raw(self) -> Any:
        return self._conn

    def execute(self, sql: str, *args: object) -> str:
        return self._run(self._conn.execute(sql, *args))

    def fetch(self, sql: str, *args: object) -> list[Any]:
        return list(self._run(self._conn.fetch(sql, *args)))

    def fetchval(self, sql: str, *args: object) -> Any:
        return self._run(self._conn.fetchval(sql, *args))

    def commit(self) -> None:
        """Commit pending work; a new transaction starts under manual commit."""

        if self._transaction is None:
            return
        self._run(self._transaction.commit())
        self._transaction = None
        self._begin()

    def rollback(self) -> None:
        if self._transaction is None:
            return
        self._run(self._transaction.rollback())
        self._transaction = None
        self._begin()

    def _begin(self) -> None:
        if not self._manual_commit:
            return
        transaction = self._conn.transaction()
        self._run(transaction.start())
        self._transaction = transaction

    def _finish(self) -> None:
        if self._transaction is None:
            return
        transaction, self._transaction = self._transaction, None
        self._run(transaction.rollback())


class AsyncpgDataSource:
    """Pooled data source returned to the engine; the caller must close it."""

    def __init__(self, pool: Any, run: Runner, *, commit_mode: CommitMode) -> None:
        self._pool = pool
        self._run = run
        self._commit_mode = commit_mode
        self._closed = False

    @property
    def commit_mode(self) -> CommitMode:
        return self._commit_mode

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def connection(self) -> Iterator[PooledConnection]:
        """Check out a connection; uncommitted manual-mode work is rolled back on release."""

        conn = self._run(self._pool.acquire())
        pooled = PooledConnection(
            conn,
            self._run,
            manual_commit=self._commit_mode is CommitMode.FORCE_MANUAL_COMMIT_MODE,
        )
        try:
            pooled._begin()
            yield pooled
        finally:
            try:
                pooled._finish()
            finally:
                self._run(self._pool.release(conn))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._run(self._pool.close())

    def __enter__(self) -> AsyncpgDataSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class AsyncpgPoolingService:
    """Opens asyncpg pools from a private event loop thread."""

    def __init__(self, *, connect_timeout: float = 10.0, command_timeout: float | None = None) -> None:
        self._connect_timeout = connect_timeout
        self._command_timeout = command_timeout or None
        self._sources: weakref.WeakSet[AsyncpgDataSource] = weakref.WeakSet()
        self._shut_down = False
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="hgconnect-asyncpg-pool",
            daemon=True,
        )
        self._loop_thread.start()

    def open_pooled(self, request: PooledConnectionRequest) -> AsyncpgDataSource:
        kwargs = pool_kwargs(request, connect_timeout=self._connect_timeout, command_timeout=self._command_timeout)
        LOG.debug(
            "Opening asyncpg pool",
            extra={"uri": request.uri, "max_size": kwargs["max_size"], "commit_mode": request.commit_mode.value},
        )
        pool = self._run(_create_pool(kwargs))
        source = AsyncpgDataSource(pool, self._run, commit_mode=request.commit_mode)
        self._sources.add(source)
        return source

    def shutdown(self) -> None:
        """Close every pool this service opened, then stop the background event loop."""

        if self._shut_down:
            return
        for source in list(self._sources):
            try:
                source.close()
            except Exception:
                LOG.exception("Failed to close asyncpg pool during shutdown")
        self._shut_down = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=1)

    def _run(self, awaitable: Awaitable[T]) -> T:
        if self._shut_down:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise DataSourceCreationError("asyncpg pooling service is shut down")
        future = asyncio.run_coroutine_threadsafe(_wait(awaitable), self._loop)
        return future.result()


async def _create_pool(kwargs: dict[str, Any]) -> Any:
    # Built on the loop thread so the pool binds to the background loop.
    return await asyncpg.create_pool(**kwargs)


async def _wait(awaitable: Awaitable[T]) -> T:
    # asyncpg pools and acquire contexts are awaitables, not coroutines.
    return await awaitable


def pool_kwargs(
    request: PooledConnectionRequest,
    *,
    connect_timeout: float,
    command_timeout: float | None = None,
) -> dict[str, Any]:
    """Translate a pooled connection request into ``asyncpg.create_pool`` arguments."""

    kwargs: dict[str, Any] = {
        "dsn": request.uri,
        "min_size": 0,
        "max_size": max(request.max_idle, 1),
        "max_inactive_connection_lifetime": float(request.idle_timeout_sec),
        "timeout": connect_timeout,
        "command_timeout": command_timeout,
    }
    if request.username:
        kwargs["user"] = request.username
    if request.password is not None:
        kwargs["password"] = request.password
    ssl = _ssl_argument(request.properties)
    if ssl is not None:
        kwargs["ssl"] = ssl
    for name in TIMEOUT_PROPERTIES:
        if name in request.properties:
            kwargs["timeout"] = float(request.properties[name])
            break
    ignored = sorted(
        name for name in request.properties if name in DRIVER_PROPERTIES and name not in TIMEOUT_PROPERTIES
    )
    if ignored:
        LOG.warning("Ignoring driver properties asyncpg does not support", extra={"properties": ignored})
    server_settings = {
        name: value
        for name, value in request.properties.items()
        if name not in CLIENT_PROPERTIES and name not in DRIVER_PROPERTIES
    }
    if server_settings:
        kwargs["server_settings"] = server_settings
    return kwargs


def _ssl_argument(properties: Mapping[str, str]) -> str | None:
    sslmode = properties.get("sslmode")
    if sslmode:
        return sslmode
    ssl = properties.get("ssl")
    if ssl is None:
        return None
    return "require" if ssl.lower() == "true" else "disable"


__all__ = [
    "AsyncpgDataSource",
    "AsyncpgPoolingService",
    "CLIENT_PROPERTIES",
    "DRIVER_PROPERTIES",
    "PooledConnection",
    "PooledDataSource",
    "PoolingService",
    "pool_kwargs",
]
