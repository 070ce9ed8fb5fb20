"""Connection profile models and config file helpers."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import tomllib
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from .errors import ConfigurationError
from .uri import parse_port

LOG = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".config" / "hgconnect" / "config.toml"

DEFAULT_PORT = "5866"


class EncryptionValidationMode(str, Enum):
    """How strictly the server certificate is checked on TLS connections."""

    NO_VALIDATION = "NO_VALIDATION"
    CERTIFICATE_ONLY_VALIDATION = "CERTIFICATE_ONLY_VALIDATION"
    CERTIFICATE_AND_HOSTNAME_VALIDATION = "CERTIFICATE_AND_HOSTNAME_VALIDATION"


class AuthenticationType(str, Enum):
    """Authentication style selected in the source form (informational)."""

    ANONYMOUS = "ANONYMOUS"
    MASTER = "MASTER"


class Property(BaseModel):
    """Extra driver property supplied by the user.

    ``ssl`` and ``sslmode`` pick the TLS mode, and ``connectTimeout`` or
    ``loginTimeout`` (seconds) set the connect timeout. JDBC-style driver
    options the asyncpg pool has no use for, such as ``tcpKeepAlive`` or
    ``socketTimeout``, are dropped with a warning. Any other name is sent
    to the server as a run-time parameter, e.g. ``application_name``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value


class ConnectionProfileConfig(BaseModel):
    """Validated connection profile; immutable once built."""

    model_config = ConfigDict(frozen=True)

    name: str = "default"
    hostname: str
    port: str = DEFAULT_PORT
    database_name: str
    username: str | None = None
    password: SecretStr | None = None
    authentication_type: AuthenticationType = AuthenticationType.MASTER
    fetch_size: int = Field(default=200, gt=0)
    use_legacy_dialect: bool = False
    use_ssl: bool = False
    encryption_validation_mode: EncryptionValidationMode = (
        EncryptionValidationMode.CERTIFICATE_AND_HOSTNAME_VALIDATION
    )
    secret_resource_url: str | None = None
    enable_external_query: bool = False
    property_list: tuple[Property, ...] = ()
    max_idle_conns: int = Field(default=8, ge=0)
    idle_time_sec: int = Field(default=60, ge=0)
    query_timeout_sec: int = Field(default=0, ge=0)

    @field_validator("hostname", "database_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("port", mode="before")
    @classmethod
    def _check_port(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            parse_port(value)
        return value

    @classmethod
    def from_settings(cls, data: Mapping[str, Any]) -> ConnectionProfileConfig:
        """Build a profile from stored settings, naming the first bad field."""

        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = first.get("loc") or ("profile",)
            field = str(loc[0])
            raise ConfigurationError(field, f"invalid {field}: {first.get('msg')}") from exc

    def password_value(self) -> str | None:
        """Return the inline password in clear text, if any."""

        if self.password is None:
            return None
        return self.password.get_secret_value()


ConnectionProfile = ConnectionProfileConfig


class ConnectorSettings(BaseModel):
    """Shape of the connector configuration file."""

    log_level: str = "WARNING"
    profiles: list[ConnectionProfileConfig] = Field(default_factory=lambda: list(_default_profiles()))
    active_profile: str | None = None

    def profile(self, name: str | None = None) -> ConnectionProfileConfig:
        """Return the named profile, else the active one, else the first."""

        wanted = name or self.active_profile
        if wanted is None:
            if self.profiles:
                return self.profiles[0]
            raise ConfigurationError("profile", "no connection profiles configured")
        for profile in self.profiles:
            if profile.name == wanted:
                return profile
        raise ConfigurationError("profile", f"unknown profile '{wanted}'")

    def with_active_profile(self, name: str) -> ConnectorSettings:
        """Return a copy with the active profile updated."""

        return self.model_copy(update={"active_profile": name})

    def with_profile(self, profile: ConnectionProfileConfig) -> ConnectorSettings:
        """Return a copy with ``profile`` added or replacing one of the same name."""

        profiles = [entry for entry in self.profiles if entry.name != profile.name]
        profiles.append(profile)
        return self.model_copy(update={"profiles": profiles})


def load_config(path: Path | None = None) -> ConnectorSettings:
    """Load settings from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file(path or CONFIG_FILE)
    except FileNotFoundError:
        return ConnectorSettings()
    except (tomllib.TOMLDecodeError, OSError):
        LOG.warning("Unreadable config file, using defaults", extra={"path": str(path or CONFIG_FILE)})
        return ConnectorSettings()

    profiles: list[ConnectionProfileConfig] = []
    for entry in data.get("profiles", []):
        try:
            profiles.append(ConnectionProfileConfig.from_settings(entry))
        except ConfigurationError as exc:
            LOG.warning(
                "Skipping invalid profile",
                extra={"profile": entry.get("name"), "field": exc.field},
            )

    return ConnectorSettings(
        log_level=data.get("log_level", ConnectorSettings.model_fields["log_level"].default),
        profiles=profiles if "profiles" in data else list(_default_profiles()),
        active_profile=data.get("active_profile"),
    )


def save_config(settings: ConnectorSettings, path: Path | None = None) -> None:
    """Persist settings to disk."""

    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [f"log_level = {_quote(settings.log_level)}"]
    if settings.active_profile:
        lines.append(f"active_profile = {_quote(settings.active_profile)}")
    for profile in settings.profiles:
        lines.append("")
        lines.append("[[profiles]]")
        lines.append(f"name = {_quote(profile.name)}")
        lines.append(f"hostname = {_quote(profile.hostname)}")
        lines.append(f"port = {_quote(profile.port)}")
        lines.append(f"database_name = {_quote(profile.database_name)}")
        if profile.username is not None:
            lines.append(f"username = {_quote(profile.username)}")
        password = profile.password_value()
        if password is not None:
            lines.append(f"password = {_quote(password)}")
        lines.append(f"authentication_type = {_quote(profile.authentication_type.value)}")
        lines.append(f"fetch_size = {profile.fetch_size}")
        lines.append(f"use_legacy_dialect = {_bool(profile.use_legacy_dialect)}")
        lines.append(f"use_ssl = {_bool(profile.use_ssl)}")
        lines.append(
            f"encryption_validation_mode = {_quote(profile.encryption_validation_mode.value)}"
        )
        if profile.secret_resource_url:
            lines.append(f"secret_resource_url = {_quote(profile.secret_resource_url)}")
        lines.append(f"enable_external_query = {_bool(profile.enable_external_query)}")
        lines.append(f"max_idle_conns = {profile.max_idle_conns}")
        lines.append(f"idle_time_sec = {profile.idle_time_sec}")
        lines.append(f"query_timeout_sec = {profile.query_timeout_sec}")
        for prop in profile.property_list:
            lines.append("")
            lines.append("[[profiles.property_list]]")
            lines.append(f"name = {_quote(prop.name)}")
            lines.append(f"value = {_quote(prop.value)}")
    target.write_text("\n".join(lines) + "\n")


def _read_config_file(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, Any] = {}
    log_level = raw.get("log_level")
    if isinstance(log_level, str):
        data["log_level"] = log_level.upper()
    active_profile = raw.get("active_profile")
    if isinstance(active_profile, str):
        data["active_profile"] = active_profile
    profiles = raw.get("profiles")
    if isinstance(profiles, list):
        data["profiles"] = [profile for profile in profiles if isinstance(profile, dict)]
    return data


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _default_profiles() -> tuple[ConnectionProfileConfig, ...]:
    """Profile offered before the config file is customized."""

    return (
        ConnectionProfileConfig(
            name="local",
            hostname="localhost",
            database_name="highgo",
            username="highgo",
        ),
    )


__all__ = [
    "AuthenticationType",
    "CONFIG_FILE",
    "ConnectionProfile",
    "ConnectionProfileConfig",
    "ConnectorSettings",
    "EncryptionValidationMode",
    "Property",
    "load_config",
    "save_config",
]
