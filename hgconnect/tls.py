"""Mapping from encryption validation mode to the driver ``sslmode`` token."""

from __future__ import annotations

from typing import Never, NoReturn

from .config import EncryptionValidationMode
from .errors import ConfigurationError


def ssl_mode_for(mode: EncryptionValidationMode | None) -> str:
    """Return the ``sslmode`` value understood by the driver."""

    if mode is None:
        raise ConfigurationError("encryption_validation_mode", "missing validation mode")

    match mode:
        case EncryptionValidationMode.CERTIFICATE_AND_HOSTNAME_VALIDATION:
            return "verify-full"
        case EncryptionValidationMode.CERTIFICATE_ONLY_VALIDATION:
            return "verify-ca"
        case EncryptionValidationMode.NO_VALIDATION:
            return "require"
        case _:
            _unmapped(mode)


def _unmapped(mode: Never) -> NoReturn:
    # Type checkers reject this call once a new enum member is left unhandled.
    raise ConfigurationError("encryption_validation_mode", f"{mode!r} is unknown")


__all__ = ["ssl_mode_for"]
