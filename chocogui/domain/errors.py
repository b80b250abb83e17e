"""Domain-level error types for use-case and adapter mapping.

This module is the shared home for errors that must cross layer boundaries
without leaking transport or storage specific exception details. Adapters
raise these; ``usecases.error_mapping`` turns them into user-facing codes.
"""

from __future__ import annotations

from typing import Optional


class ConfigCoreError(RuntimeError):
    """Base class for configuration core failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SecretDecryptionError(ConfigCoreError):
    """Cipher text could not be decrypted (corrupt value or key mismatch)."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class StoreUnavailableError(ConfigCoreError):
    """Local store I/O failed; the store instance is unusable afterwards."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class UnknownFeatureError(ConfigCoreError):
    """A mutation targeted a feature the engine never reported."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown feature '{name}'.")
        self.name = name


class EngineUnavailableError(ConfigCoreError):
    """External engine call failed or timed out. Local state is untouched."""

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.key = key


__all__ = [
    "ConfigCoreError",
    "EngineUnavailableError",
    "SecretDecryptionError",
    "StoreUnavailableError",
    "UnknownFeatureError",
]
