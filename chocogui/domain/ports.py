from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .engine_records import EngineFeature, EngineSetting, EngineSource

CollectionName = str
RecordKey = str
Document = Dict[str, Any]

SOURCES: CollectionName = "sources"
SETTINGS: CollectionName = "settings"
FEATURES: CollectionName = "features"
COLLECTIONS = (SOURCES, SETTINGS, FEATURES)


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ---- Ports (Hexagonal boundaries) ----
class SecretCodecPort(Protocol):
    """Decrypts (and re-encrypts) secrets in the engine's configuration format."""

    def decrypt(self, cipher_text: Optional[str]) -> str: ...
    def encrypt(self, plain_text: Optional[str]) -> str: ...


class EnginePort(Protocol):
    """Read/write access to the external engine's persisted configuration.

    Implementations raise ``EngineUnavailableError`` for every failure.
    """

    def list_sources(self) -> List[EngineSource]: ...
    def list_settings(self) -> List[EngineSetting]: ...
    def list_features(self) -> List[EngineFeature]: ...
    def set_feature(self, name: str, enabled: bool) -> None: ...
    def set_setting(self, key: str, value: str) -> None: ...
    def set_source(self, source: EngineSource) -> None: ...
    def remove_source(self, source_id: str) -> None: ...


class DocumentStorePort(Protocol):
    """Schema-less document persistence, one document per (collection, key)."""

    def upsert(self, collection: CollectionName, key: RecordKey, document: Mapping[str, Any]) -> None: ...
    def get_all(self, collection: CollectionName) -> List[Document]: ...
    def get(self, collection: CollectionName, key: RecordKey) -> Optional[Document]: ...
    def keys(self, collection: CollectionName) -> List[RecordKey]: ...
    def delete(self, collection: CollectionName, key: RecordKey) -> None: ...
    def close(self) -> None: ...
