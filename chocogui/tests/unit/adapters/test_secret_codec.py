from __future__ import annotations

import base64
import sys

import pytest
from cryptography.fernet import Fernet

from chocogui.adapters.secret_codec import (
    DPAPI_FLAGS,
    NUGET_ENTROPY,
    DpapiSecretCodec,
    FernetSecretCodec,
    load_or_create_key,
)
from chocogui.domain.errors import SecretDecryptionError


def test_decrypt_empty_is_empty() -> None:
    codec = FernetSecretCodec("key")

    assert codec.decrypt("") == ""
    assert codec.decrypt(None) == ""
    assert codec.encrypt("") == ""


def test_encrypt_decrypt() -> None:
    codec = FernetSecretCodec("key")
    token = codec.encrypt("p@ssw0rd")

    assert token != "p@ssw0rd"
    assert codec.decrypt(token) == "p@ssw0rd"


@pytest.mark.parametrize("cipher", ["garbage", "gAAAAABinvalid", "ünïcode"])
def test_decrypt_corrupt_cipher_raises(cipher: str) -> None:
    with pytest.raises(SecretDecryptionError):
        FernetSecretCodec("key").decrypt(cipher)


def test_decrypt_with_wrong_key_raises() -> None:
    token = FernetSecretCodec("first").encrypt("value")

    with pytest.raises(SecretDecryptionError):
        FernetSecretCodec("second").decrypt(token)


def test_load_or_create_key_persists_key(tmp_path) -> None:
    path = tmp_path / "nested" / "secret.key"

    first = load_or_create_key(path)
    second = load_or_create_key(path)

    assert path.exists()
    assert first == second
    Fernet(first)


class FakeDpapi:
    """Reversible stand-in for CryptProtectData/CryptUnprotectData."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, bytes, int]] = []

    def _header(self, entropy: bytes) -> bytes:
        return b"DPAPI:" + entropy + b":"

    def protect(self, data: bytes, entropy: bytes, flags: int) -> bytes:
        self.calls.append(("protect", entropy, flags))
        return self._header(entropy) + data[::-1]

    def unprotect(self, data: bytes, entropy: bytes, flags: int) -> bytes:
        self.calls.append(("unprotect", entropy, flags))
        header = self._header(entropy)
        if not data.startswith(header):
            raise OSError("The data is invalid.")
        return data[len(header):][::-1]


def _dpapi_codec(fake: FakeDpapi) -> DpapiSecretCodec:
    return DpapiSecretCodec(protect=fake.protect, unprotect=fake.unprotect)


def test_dpapi_decrypts_engine_blob_with_nuget_entropy() -> None:
    fake = FakeDpapi()
    # base64 blob as the engine writes it into chocolatey.config
    blob = base64.b64encode(b"DPAPI:NuGet:" + "pässword".encode("utf-8")[::-1]).decode("ascii")

    assert _dpapi_codec(fake).decrypt(blob) == "pässword"
    assert fake.calls == [("unprotect", NUGET_ENTROPY, DPAPI_FLAGS)]


def test_dpapi_encrypt_writes_base64_engine_format() -> None:
    fake = FakeDpapi()
    codec = _dpapi_codec(fake)

    cipher = codec.encrypt("pw")

    assert base64.b64decode(cipher) == b"DPAPI:NuGet:wp"
    assert codec.decrypt(cipher) == "pw"
    assert fake.calls[0] == ("protect", NUGET_ENTROPY, DPAPI_FLAGS)


def test_dpapi_empty_is_empty_without_touching_primitives() -> None:
    fake = FakeDpapi()
    codec = _dpapi_codec(fake)

    assert codec.decrypt("") == ""
    assert codec.decrypt(None) == ""
    assert codec.encrypt("") == ""
    assert fake.calls == []


@pytest.mark.parametrize(
    "cipher",
    [
        "not base64!",
        FernetSecretCodec("key").encrypt("pw"),
        base64.b64encode(b"DPAPI:Other:wp").decode("ascii"),
    ],
)
def test_dpapi_foreign_cipher_raises(cipher: str) -> None:
    with pytest.raises(SecretDecryptionError):
        _dpapi_codec(FakeDpapi()).decrypt(cipher)


def test_dpapi_without_pywin32_reports_decryption_error(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "win32crypt", None)
    monkeypatch.setitem(sys.modules, "pywintypes", None)
    codec = DpapiSecretCodec()

    assert codec.decrypt("") == ""
    with pytest.raises(SecretDecryptionError):
        codec.decrypt(base64.b64encode(b"blob").decode("ascii"))


def test_dpapi_round_trip_on_windows() -> None:
    pytest.importorskip("win32crypt")
    codec = DpapiSecretCodec()

    assert codec.decrypt(codec.encrypt("s3cret")) == "s3cret"
