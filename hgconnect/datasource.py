"""Turns a profile into a pooled data source."""

from __future__ import annotations

import logging

from .config import ConnectionProfileConfig
from .credentials import CredentialsService, resolve_credentials
from .errors import ConnectorError, DataSourceCreationError
from .models import CommitMode, PooledConnectionRequest
from .pool import PooledDataSource, PoolingService
from .tls import ssl_mode_for
from .uri import build_connection_uri

LOG = logging.getLogger(__name__)

DRIVER = "asyncpg"

SUBPROTOCOL_OVERRIDE_PROPERTY = "OpenSourceSubProtocolOverride"


def build_connection_properties(profile: ConnectionProfileConfig) -> dict[str, str]:
    """Derive driver properties, then apply the user's list in order.

    User entries win on key collisions, including over ``ssl``/``sslmode``.
    """

    properties: dict[str, str] = {}
    if profile.use_ssl:
        properties["ssl"] = "true"
        properties["sslmode"] = ssl_mode_for(profile.encryption_validation_mode)
    properties[SUBPROTOCOL_OVERRIDE_PROPERTY] = "true"
    for prop in profile.property_list:
        properties[prop.name] = prop.value
    return properties


def build_pooled_request(
    profile: ConnectionProfileConfig,
    credentials_service: CredentialsService | None,
) -> PooledConnectionRequest:
    credentials = resolve_credentials(profile, credentials_service)
    properties = build_connection_properties(profile)
    uri = build_connection_uri(profile.hostname, profile.port, profile.database_name)
    return PooledConnectionRequest(
        driver_id=DRIVER,
        uri=uri,
        username=credentials.username,
        password=credentials.password,
        properties=properties,
        commit_mode=CommitMode.FORCE_MANUAL_COMMIT_MODE,
        max_idle=profile.max_idle_conns,
        idle_timeout_sec=profile.idle_time_sec,
    )


def construct(
    profile: ConnectionProfileConfig,
    credentials_service: CredentialsService | None,
    pooling: PoolingService,
) -> PooledDataSource:
    """Open a pooled data source for ``profile``.

    Credentials are resolved on every call. Nothing is retried; the returned
    handle belongs to the caller, who must close it.
    """

    request = build_pooled_request(profile, credentials_service)
    LOG.info(
        "Opening pooled data source",
        extra={"profile": profile.name, "uri": request.uri, "max_idle": request.max_idle},
    )
    try:
        return pooling.open_pooled(request)
    except ConnectorError:
        raise
    except Exception as exc:
        raise DataSourceCreationError(f"Failed to open data source for '{profile.name}': {exc}") from exc


class DataSourceFactory:
    """Binds a profile to its collaborators; each call opens a new data source."""

    def __init__(
        self,
        profile: ConnectionProfileConfig,
        credentials_service: CredentialsService | None,
        pooling: PoolingService,
    ) -> None:
        self._profile = profile
        self._credentials_service = credentials_service
        self._pooling = pooling

    def __call__(self) -> PooledDataSource:
        return construct(self._profile, self._credentials_service, self._pooling)


__all__ = [
    "DRIVER",
    "DataSourceFactory",
    "SUBPROTOCOL_OVERRIDE_PROPERTY",
    "build_connection_properties",
    "build_pooled_request",
    "construct",
]
