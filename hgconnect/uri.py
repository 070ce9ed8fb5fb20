"""Driver connection string assembly."""

from __future__ import annotations

from urllib.parse import quote

from .errors import ConfigurationError, MissingFieldError

DEFAULT_SCHEME = "postgresql"

MIN_PORT = 1
MAX_PORT = 65535


def parse_port(value: str | None) -> int:
    """Parse the text-typed port and check its range."""

    if value is None or not str(value).strip():
        raise MissingFieldError("port", "missing port")
    text = str(value).strip()
    try:
        port = int(text)
    except ValueError as exc:
        raise ConfigurationError("port", f"port must be an integer, got {text!r}") from exc
    if not MIN_PORT <= port <= MAX_PORT:
        raise ConfigurationError("port", f"port must be between {MIN_PORT} and {MAX_PORT}, got {port}")
    return port


def build_connection_uri(
    hostname: str | None,
    port: str | None,
    database_name: str | None,
    *,
    scheme: str = DEFAULT_SCHEME,
) -> str:
    """Return ``<scheme>://<host>:<port>/<database>`` for the driver."""

    if hostname is None or not hostname.strip():
        raise MissingFieldError("hostname", "missing hostname")
    port_number = parse_port(port)
    if database_name is None or not database_name.strip():
        raise MissingFieldError("database_name", "missing database name")

    host = hostname.strip()
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    database = quote(database_name.strip(), safe="")
    return f"{scheme}://{host}:{port_number}/{database}"


__all__ = ["DEFAULT_SCHEME", "build_connection_uri", "parse_port"]
