"""Shared dataclasses passed between the resolver stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class CommitMode(str, Enum):
    """Commit behaviour applied to pooled connections."""

    FORCE_AUTO_COMMIT_MODE = "force_auto_commit"
    FORCE_MANUAL_COMMIT_MODE = "force_manual_commit"
    DRIVER_SPECIFIED_COMMIT_MODE = "driver_specified"


@dataclass(frozen=True, slots=True)
class ResolvedCredentials:
    """Effective username/password pair for one data source construction."""

    username: str | None
    password: str | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class PooledConnectionRequest:
    """Everything the pooling layer needs to open a data source."""

    driver_id: str
    uri: str
    username: str | None
    password: str | None = field(repr=False)
    properties: Mapping[str, str]
    commit_mode: CommitMode
    max_idle: int
    idle_timeout_sec: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))


__all__ = ["CommitMode", "PooledConnectionRequest", "ResolvedCredentials"]
