"""Mapping helpers between engine records and the local configuration model.

Every function here is pure: same input, same output, no clocks or counters.
The config service calls the ``map_*s`` batch helpers during refresh so one
broken record is reported instead of aborting the whole load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from .engine_records import EngineFeature, EnginePackage, EngineSetting, EngineSource
from .entities import FeatureFlag, Package, Setting, SourceConfig
from .errors import SecretDecryptionError
from .ports import FEATURES, SETTINGS, SOURCES, SecretCodecPort

logger = logging.getLogger(__name__)

RawT = TypeVar("RawT")
MappedT = TypeVar("MappedT")


@dataclass(frozen=True)
class SkippedRecord:
    """One engine record that could not be mapped."""

    collection: str
    key: str
    reason: str


@dataclass
class MappingBatch:
    """Mapped records plus the ones skipped because mapping failed."""

    records: List = field(default_factory=list)
    skipped: List[SkippedRecord] = field(default_factory=list)


def _decrypt_field(codec: SecretCodecPort, source_id: str, field_name: str, cipher: Optional[str]) -> str:
    try:
        return codec.decrypt(cipher)
    except SecretDecryptionError as exc:
        raise SecretDecryptionError(
            f"Source '{source_id}': cannot decrypt {field_name} ({exc.message})",
            field=field_name,
        ) from exc


def map_source(external: EngineSource, codec: SecretCodecPort) -> SourceConfig:
    """Map an engine source, decrypting both password fields.

    ``visible_to_admin_only`` becomes ``visible_to_admins_only``; the rename
    carries no behavioral difference.
    """
    return SourceConfig(
        id=external.id,
        value=external.value,
        disabled=bool(external.disabled),
        priority=int(external.priority or 0),
        user_name=external.user or None,
        password=_decrypt_field(codec, external.id, "password", external.password),
        certificate=external.certificate or None,
        certificate_password=_decrypt_field(
            codec, external.id, "certificate_password", external.certificate_password
        ),
        bypass_proxy=bool(external.bypass_proxy),
        allow_self_service=bool(external.allow_self_service),
        visible_to_admins_only=bool(external.visible_to_admin_only),
    )


def unmap_source(source: SourceConfig, codec: SecretCodecPort) -> EngineSource:
    """Inverse of ``map_source`` for write-back; secrets are re-encrypted."""
    return EngineSource(
        id=source.id,
        value=source.value,
        disabled=source.disabled,
        priority=source.priority,
        user=source.user_name or None,
        password=codec.encrypt(source.password) or None,
        certificate=source.certificate or None,
        certificate_password=codec.encrypt(source.certificate_password) or None,
        bypass_proxy=source.bypass_proxy,
        allow_self_service=source.allow_self_service,
        visible_to_admin_only=source.visible_to_admins_only,
    )


def map_setting(external: EngineSetting) -> Setting:
    return Setting(key=external.key, value=external.value, description=external.description)


def map_feature(external: EngineFeature) -> FeatureFlag:
    return FeatureFlag(
        name=external.name,
        enabled=external.enabled,
        set_explicitly=external.set_explicitly,
        description=external.description,
    )


def split_delimited(text: Optional[str], delimiter: str = ",") -> Tuple[str, ...]:
    """Split a delimited string into trimmed, non-empty parts in order."""
    if not text:
        return ()
    if delimiter.strip():
        parts = text.split(delimiter)
    else:
        parts = text.split()
    return tuple(part.strip() for part in parts if part.strip())


def map_package(external: EnginePackage) -> Package:
    """Map feed package metadata; author/owner strings become sequences."""
    return Package(
        id=external.id,
        version=external.version,
        title=external.title,
        authors=split_delimited(external.authors),
        owners=split_delimited(external.owners),
        summary=external.summary,
        description=external.description,
        tags=split_delimited(external.tags, " "),
        project_url=external.project_url,
        download_count=int(external.download_count or 0),
        is_prerelease=bool(external.is_prerelease),
    )


def _map_batch(
    collection: str,
    items: Iterable[RawT],
    key_of: Callable[[RawT], str],
    mapper: Callable[[RawT], MappedT],
) -> MappingBatch:
    batch = MappingBatch()
    for item in items:
        try:
            batch.records.append(mapper(item))
        except (SecretDecryptionError, ValueError, TypeError) as exc:
            key = str(key_of(item) or "")
            reason = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            logger.warning("Skipping %s record '%s': %s", collection, key, reason)
            batch.skipped.append(SkippedRecord(collection=collection, key=key, reason=reason))
    return batch


def map_sources(items: Iterable[EngineSource], codec: SecretCodecPort) -> MappingBatch:
    return _map_batch(SOURCES, items, lambda item: item.id, lambda item: map_source(item, codec))


def map_settings(items: Iterable[EngineSetting]) -> MappingBatch:
    return _map_batch(SETTINGS, items, lambda item: item.key, map_setting)


def map_features(items: Iterable[EngineFeature]) -> MappingBatch:
    return _map_batch(FEATURES, items, lambda item: item.name, map_feature)


__all__ = [
    "MappingBatch",
    "SkippedRecord",
    "map_feature",
    "map_features",
    "map_package",
    "map_setting",
    "map_settings",
    "map_source",
    "map_sources",
    "split_delimited",
    "unmap_source",
]
