"""Engine-facing connector configuration for HighGo sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .config import ConnectionProfileConfig
from .credentials import CredentialsService
from .datasource import DataSourceFactory
from .dialects import SqlDialect, get_dialect
from .pool import PooledDataSource, PoolingService


@dataclass(frozen=True, slots=True)
class SourceType:
    """Registration metadata for the source type."""

    value: str
    label: str
    ui_config: str
    external_query_supported: bool = False


SOURCE_TYPE = SourceType(
    value="HIGHGO",
    label="highgo",
    ui_config="highgo-layout.json",
    external_query_supported=True,
)


@dataclass(frozen=True, slots=True)
class ConnectorConfig:
    """What the query engine needs to plan and run queries against a source."""

    dialect: SqlDialect
    datasource_factory: Callable[[], PooledDataSource]
    show_only_conn_database: bool
    fetch_size: int
    query_timeout_sec: int
    enable_external_query: bool


def build_connector_config(
    profile: ConnectionProfileConfig,
    credentials_service: CredentialsService | None,
    pooling: PoolingService,
) -> ConnectorConfig:
    return ConnectorConfig(
        dialect=get_dialect(profile),
        datasource_factory=DataSourceFactory(profile, credentials_service, pooling),
        show_only_conn_database=False,
        fetch_size=profile.fetch_size,
        query_timeout_sec=profile.query_timeout_sec,
        enable_external_query=profile.enable_external_query,
    )


__all__ = ["ConnectorConfig", "SOURCE_TYPE", "SourceType", "build_connector_config"]
