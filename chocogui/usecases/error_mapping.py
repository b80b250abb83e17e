"""Translate configuration core errors into user-facing UseCaseError instances."""

from __future__ import annotations

from typing import Optional

from chocogui.domain.errors import (
    ConfigCoreError,
    EngineUnavailableError,
    SecretDecryptionError,
    StoreUnavailableError,
    UnknownFeatureError,
)
from chocogui.domain.ports import UseCaseError


def map_config_error(
    exc: Exception,
    *,
    default_code: str,
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map core exceptions to stable UseCaseError codes.

    ``UseCaseError`` instances pass through untouched so use cases can raise
    their own codes (for example ``INVALID_ARGUMENTS``).
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, UnknownFeatureError):
        return UseCaseError("UNKNOWN_FEATURE", exc.message)
    if isinstance(exc, EngineUnavailableError):
        return UseCaseError(
            "ENGINE_UNAVAILABLE",
            _compose_error_message("Package engine call failed", exc.message),
        )
    if isinstance(exc, SecretDecryptionError):
        return UseCaseError("SECRET_DECRYPTION_FAILED", exc.message)
    if isinstance(exc, StoreUnavailableError):
        return UseCaseError(
            "STORE_UNAVAILABLE",
            _compose_error_message("Local data store unavailable", exc.message),
        )
    if isinstance(exc, ConfigCoreError):
        return UseCaseError(default_code, exc.message)

    message = default_message or str(exc) or "Unexpected error."
    return UseCaseError(default_code, message)


def _compose_error_message(base: str, hint: Optional[str]) -> str:
    hint_text = (hint or "").strip()
    if hint_text:
        return f"{base}: {hint_text}"
    if base.endswith("."):
        return base
    return f"{base}."


__all__ = ["map_config_error"]
