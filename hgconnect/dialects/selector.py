"""Chooses between the legacy and ARP dialects for a profile."""

from __future__ import annotations

from enum import Enum

from ..config import ConnectionProfileConfig
from .arp import get_arp_dialect
from .base import SqlDialect
from .legacy import LEGACY_DIALECT


class DialectVariant(str, Enum):
    LEGACY = "legacy"
    ARP = "arp"


class DialectSelector:
    """Fixes the dialect variant when built; it never changes afterwards."""

    def __init__(self, profile: ConnectionProfileConfig) -> None:
        self._variant = DialectVariant.LEGACY if profile.use_legacy_dialect else DialectVariant.ARP

    @property
    def variant(self) -> DialectVariant:
        return self._variant

    def get_dialect(self) -> SqlDialect:
        """Return the dialect active for this profile."""

        if self._variant is DialectVariant.LEGACY:
            return LEGACY_DIALECT
        return get_arp_dialect()

    @staticmethod
    def legacy_dialect() -> SqlDialect:
        """Return the legacy dialect regardless of the profile flag."""

        return LEGACY_DIALECT


def get_dialect(profile: ConnectionProfileConfig) -> SqlDialect:
    return DialectSelector(profile).get_dialect()


def legacy_dialect() -> SqlDialect:
    return LEGACY_DIALECT


__all__ = ["DialectSelector", "DialectVariant", "get_dialect", "legacy_dialect"]
