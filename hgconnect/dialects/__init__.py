"""SQL dialects used by the query engine."""

from __future__ import annotations

from .arp import (
    ARP_FILENAME,
    ArpDescriptor,
    ArpDialect,
    clear_dialect_cache,
    get_arp_dialect,
    load_arp_dialect,
    load_descriptor,
)
from .base import SqlDialect
from .legacy import LEGACY_DIALECT, PostgreSQLLegacyDialect
from .selector import DialectSelector, DialectVariant, get_dialect, legacy_dialect

__all__ = [
    "ARP_FILENAME",
    "ArpDescriptor",
    "ArpDialect",
    "DialectSelector",
    "DialectVariant",
    "LEGACY_DIALECT",
    "PostgreSQLLegacyDialect",
    "SqlDialect",
    "clear_dialect_cache",
    "get_arp_dialect",
    "get_dialect",
    "legacy_dialect",
    "load_arp_dialect",
    "load_descriptor",
]
