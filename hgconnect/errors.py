"""Error types raised while resolving a profile into a data source."""

from __future__ import annotations


class ConnectorError(RuntimeError):
    """Base error for connector resolution failures."""


class ConfigurationError(ConnectorError, ValueError):
    """Raised when a profile field is missing or invalid."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"invalid {field}")


class MissingFieldError(ConfigurationError):
    """Raised when a required profile field is absent or blank."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(field, message or f"missing {field}")


class CredentialResolutionError(ConnectorError):
    """Raised when the external secret lookup fails."""


class DataSourceCreationError(ConnectorError):
    """Raised when the pooling layer cannot open a data source."""


class FatalInitializationError(ConnectorError):
    """Raised when a packaged dialect descriptor cannot be loaded."""


__all__ = [
    "ConfigurationError",
    "ConnectorError",
    "CredentialResolutionError",
    "DataSourceCreationError",
    "FatalInitializationError",
    "MissingFieldError",
]
