"""Effective credential resolution, inline or from an external secret store."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable
from urllib.parse import SplitResult, unquote, urlsplit

from .config import ConnectionProfileConfig
from .errors import CredentialResolutionError
from .models import ResolvedCredentials

LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PasswordCredentials:
    """Secret returned by a credentials service."""

    username: str | None
    password: str = field(repr=False)


@runtime_checkable
class CredentialsService(Protocol):
    """Looks up secrets addressed by a resource URI."""

    def get_credentials(self, uri: SplitResult) -> PasswordCredentials:
        """Return the secret stored at ``uri``; raise OSError/LookupError on failure."""


class LocalCredentialsService:
    """Resolves ``env:NAME`` and ``file:///path`` secret URLs."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def get_credentials(self, uri: SplitResult) -> PasswordCredentials:
        if uri.scheme == "env":
            name = uri.netloc or uri.path
            if not name:
                raise LookupError("env secret URL does not name a variable")
            return PasswordCredentials(username=None, password=self._environ[name])
        if uri.scheme == "file":
            path = Path(unquote(uri.path))
            return PasswordCredentials(username=None, password=path.read_text().rstrip("\r\n"))
        raise LookupError(f"unsupported secret scheme '{uri.scheme}'")


def resolve_credentials(
    profile: ConnectionProfileConfig,
    service: CredentialsService | None,
) -> ResolvedCredentials:
    """Return the username/password to connect with.

    When ``secret_resource_url`` is set the password comes from ``service`` and
    the inline password is ignored; the username is always the profile's.
    Nothing is cached since secrets may rotate between calls.
    """

    if not profile.secret_resource_url:
        return ResolvedCredentials(username=profile.username, password=profile.password_value())

    url = profile.secret_resource_url
    if service is None:
        raise CredentialResolutionError("secret_resource_url is set but no credentials service is available")
    try:
        uri = urlsplit(url)
        LOG.debug("Fetching password from secret store", extra={"profile": profile.name, "scheme": uri.scheme})
        creds = service.get_credentials(uri)
    except Exception as exc:
        raise CredentialResolutionError(f"Failed to resolve secret for '{profile.name}': {exc}") from exc
    if not isinstance(creds, PasswordCredentials):
        raise CredentialResolutionError(
            f"Secret for '{profile.name}' is not a password credential: {type(creds).__name__}"
        )
    return ResolvedCredentials(username=profile.username, password=creds.password)


__all__ = [
    "CredentialsService",
    "LocalCredentialsService",
    "PasswordCredentials",
    "resolve_credentials",
]
