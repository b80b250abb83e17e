from __future__ import annotations

import pytest

from chocogui.domain.errors import (
    ConfigCoreError,
    EngineUnavailableError,
    SecretDecryptionError,
    StoreUnavailableError,
    UnknownFeatureError,
)
from chocogui.domain.ports import UseCaseError
from chocogui.usecases.error_mapping import map_config_error


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (UnknownFeatureError("X"), "UNKNOWN_FEATURE"),
        (EngineUnavailableError("timeout"), "ENGINE_UNAVAILABLE"),
        (SecretDecryptionError("bad token"), "SECRET_DECRYPTION_FAILED"),
        (StoreUnavailableError("disk full"), "STORE_UNAVAILABLE"),
        (ConfigCoreError("other"), "DEFAULT"),
        (RuntimeError("boom"), "DEFAULT"),
    ],
)
def test_map_config_error_codes(exc: Exception, code: str) -> None:
    assert map_config_error(exc, default_code="DEFAULT").code == code


def test_use_case_error_passes_through() -> None:
    original = UseCaseError("INVALID_ARGUMENTS", "Missing key")

    assert map_config_error(original, default_code="DEFAULT") is original


def test_messages_include_hint() -> None:
    mapped = map_config_error(EngineUnavailableError("config file locked"), default_code="DEFAULT")

    assert mapped.message == "Package engine call failed: config file locked"
    assert map_config_error(UnknownFeatureError("X"), default_code="D").message == "Unknown feature 'X'."


def test_default_message_used_for_empty_errors() -> None:
    mapped = map_config_error(RuntimeError(), default_code="DEFAULT", default_message="Failed.")

    assert mapped.message == "Failed."
