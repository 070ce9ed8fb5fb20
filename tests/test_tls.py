"""Tests for the validation mode to sslmode mapping."""

from __future__ import annotations

import pytest

from hgconnect.config import EncryptionValidationMode
from hgconnect.errors import ConfigurationError
from hgconnect.tls import ssl_mode_for


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (EncryptionValidationMode.CERTIFICATE_AND_HOSTNAME_VALIDATION, "verify-full"),
        (EncryptionValidationMode.CERTIFICATE_ONLY_VALIDATION, "verify-ca"),
        (EncryptionValidationMode.NO_VALIDATION, "require"),
    ],
)
def test_maps_each_mode(mode: EncryptionValidationMode, expected: str) -> None:
    assert ssl_mode_for(mode) == expected


def test_missing_mode_fails() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        ssl_mode_for(None)

    assert excinfo.value.field == "encryption_validation_mode"


def test_unknown_mode_fails_instead_of_defaulting() -> None:
    with pytest.raises(ConfigurationError, match="is unknown"):
        ssl_mode_for("PINNED_CERTIFICATE")  # type: ignore[arg-type]
