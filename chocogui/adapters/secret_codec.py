"""Codecs for credential fields.

``DpapiSecretCodec`` reads and writes the format the package engine keeps in
``chocolatey.config``: base64 of a Windows DPAPI blob protected with the NuGet
entropy in machine scope. ``FernetSecretCodec`` is used with in-memory or
offline engines that never share their secrets with the real engine.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional, Tuple, Type, Union

from cryptography.fernet import Fernet, InvalidToken

from chocogui.domain.errors import SecretDecryptionError
from chocogui.domain.ports import SecretCodecPort

logger = logging.getLogger(__name__)

KeyMaterial = Union[str, bytes]


def derive_key(raw: KeyMaterial) -> bytes:
    """Turn arbitrary key material into a urlsafe base64 Fernet key."""
    data = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)
    digest = hashlib.sha256(data).digest()
    return base64.urlsafe_b64encode(digest)


def load_or_create_key(path: Path) -> bytes:
    """Read the key file at ``path`` or generate one with owner-only access."""
    if path.exists():
        key = path.read_bytes().strip()
        if key:
            return key
    path.parent.mkdir(parents=True, exist_ok=True)
    key = Fernet.generate_key()
    path.write_bytes(key)
    try:
        os.chmod(path, 0o600)
    except OSError:
        logger.debug("Could not restrict permissions on %s", path)
    logger.info("Generated new secret key at %s", path)
    return key


class FernetSecretCodec(SecretCodecPort):
    """Encrypt/decrypt credential fields. Empty input maps to empty output."""

    def __init__(self, key: KeyMaterial) -> None:
        self._fernet = Fernet(derive_key(key))

    def decrypt(self, cipher_text: Optional[str]) -> str:
        if not cipher_text:
            return ""
        try:
            return self._fernet.decrypt(cipher_text.encode("ascii")).decode("utf-8")
        except (InvalidToken, ValueError) as exc:
            raise SecretDecryptionError("Unable to decrypt secret") from exc

    def encrypt(self, plain_text: Optional[str]) -> str:
        if not plain_text:
            return ""
        return self._fernet.encrypt(plain_text.encode("utf-8")).decode("ascii")


NUGET_ENTROPY = b"NuGet"
CRYPTPROTECT_UI_FORBIDDEN = 0x1
CRYPTPROTECT_LOCAL_MACHINE = 0x4
DPAPI_FLAGS = CRYPTPROTECT_UI_FORBIDDEN | CRYPTPROTECT_LOCAL_MACHINE

# (data, entropy, flags) -> bytes
DpapiFunction = Callable[[bytes, bytes, int], bytes]


def _load_win32crypt() -> Tuple[DpapiFunction, DpapiFunction, Tuple[Type[BaseException], ...]]:
    try:
        import pywintypes
        import win32crypt
    except ImportError as exc:
        raise SecretDecryptionError("Engine secrets need DPAPI, which requires pywin32 on Windows") from exc

    def protect(data: bytes, entropy: bytes, flags: int) -> bytes:
        return win32crypt.CryptProtectData(data, None, entropy, None, None, flags)

    def unprotect(data: bytes, entropy: bytes, flags: int) -> bytes:
        _description, plain = win32crypt.CryptUnprotectData(data, entropy, None, None, flags)
        return plain

    return protect, unprotect, (pywintypes.error,)


class DpapiSecretCodec(SecretCodecPort):
    """Engine-compatible codec backed by Windows DPAPI.

    ``protect``/``unprotect`` default to ``win32crypt`` and are resolved on
    first use, so the codec can be wired on any platform. Errors raised by
    the primitives are reported as ``SecretDecryptionError``.
    """

    def __init__(
        self,
        *,
        protect: Optional[DpapiFunction] = None,
        unprotect: Optional[DpapiFunction] = None,
        errors: Tuple[Type[BaseException], ...] = (OSError,),
        entropy: bytes = NUGET_ENTROPY,
        flags: int = DPAPI_FLAGS,
    ) -> None:
        self._protect = protect
        self._unprotect = unprotect
        self._errors = errors
        self.entropy = entropy
        self.flags = flags

    def _primitives(self) -> Tuple[DpapiFunction, DpapiFunction]:
        if self._protect is None or self._unprotect is None:
            protect, unprotect, errors = _load_win32crypt()
            self._protect = self._protect or protect
            self._unprotect = self._unprotect or unprotect
            self._errors = tuple({*self._errors, *errors})
        return self._protect, self._unprotect

    def decrypt(self, cipher_text: Optional[str]) -> str:
        if not cipher_text:
            return ""
        _protect, unprotect = self._primitives()
        try:
            blob = base64.b64decode(cipher_text.encode("ascii"), validate=True)
            return unprotect(blob, self.entropy, self.flags).decode("utf-8")
        except (binascii.Error, ValueError) as exc:
            raise SecretDecryptionError("Secret is not a valid engine cipher text") from exc
        except self._errors as exc:
            raise SecretDecryptionError(f"Unable to decrypt secret ({exc})") from exc

    def encrypt(self, plain_text: Optional[str]) -> str:
        if not plain_text:
            return ""
        protect, _unprotect = self._primitives()
        try:
            blob: Any = protect(plain_text.encode("utf-8"), self.entropy, self.flags)
        except self._errors as exc:
            raise SecretDecryptionError(f"Unable to encrypt secret ({exc})") from exc
        return base64.b64encode(bytes(blob)).decode("ascii")


__all__ = [
    "DPAPI_FLAGS",
    "DpapiSecretCodec",
    "FernetSecretCodec",
    "NUGET_ENTROPY",
    "derive_key",
    "load_or_create_key",
]
