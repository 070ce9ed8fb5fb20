"""Resolve HighGo connection profiles into pooled data sources and dialects."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import (
    AuthenticationType,
    ConnectionProfile,
    ConnectionProfileConfig,
    ConnectorSettings,
    EncryptionValidationMode,
    Property,
    load_config,
)
from .connector import SOURCE_TYPE, ConnectorConfig, build_connector_config
from .credentials import CredentialsService, LocalCredentialsService, PasswordCredentials, resolve_credentials
from .datasource import DataSourceFactory, build_connection_properties, construct
from .dialects import DialectSelector, get_dialect, legacy_dialect
from .errors import (
    ConfigurationError,
    ConnectorError,
    CredentialResolutionError,
    DataSourceCreationError,
    FatalInitializationError,
    MissingFieldError,
)
from .models import CommitMode, PooledConnectionRequest, ResolvedCredentials
from .pool import AsyncpgPoolingService, PoolingService
from .tls import ssl_mode_for
from .uri import build_connection_uri

__all__ = [
    "AsyncpgPoolingService",
    "AuthenticationType",
    "CommitMode",
    "ConfigurationError",
    "ConnectionProfile",
    "ConnectionProfileConfig",
    "ConnectorConfig",
    "ConnectorError",
    "ConnectorSettings",
    "CredentialResolutionError",
    "CredentialsService",
    "DataSourceCreationError",
    "DataSourceFactory",
    "DialectSelector",
    "EncryptionValidationMode",
    "FatalInitializationError",
    "LocalCredentialsService",
    "MissingFieldError",
    "PasswordCredentials",
    "PooledConnectionRequest",
    "PoolingService",
    "Property",
    "ResolvedCredentials",
    "SOURCE_TYPE",
    "build_connection_properties",
    "build_connection_uri",
    "build_connector_config",
    "construct",
    "get_dialect",
    "legacy_dialect",
    "load_config",
    "resolve_credentials",
    "ssl_mode_for",
]
