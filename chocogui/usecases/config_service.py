"""Use case service that mirrors and edits the engine configuration.

The service is the only writer of the local store. Mutations follow
write-through-then-mirror: the engine is written first and the local copy is
updated only after the engine call returned. Reads are served from the local
store; call ``refresh`` to pull the engine state first.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from chocogui.domain.entities import FeatureFlag, ScalarValue, Setting, SourceConfig
from chocogui.domain.errors import ConfigCoreError, EngineUnavailableError, UnknownFeatureError
from chocogui.domain.mapping import (
    SkippedRecord,
    map_features,
    map_settings,
    map_sources,
    unmap_source,
)
from chocogui.domain.ports import (
    FEATURES,
    SETTINGS,
    SOURCES,
    DocumentStorePort,
    EnginePort,
    SecretCodecPort,
    UseCaseError,
)

T = TypeVar("T")


@dataclass
class RefreshResult:
    """Mapped records now mirrored locally, plus skipped and removed keys."""

    sources: List[SourceConfig] = field(default_factory=list)
    settings: List[Setting] = field(default_factory=list)
    features: List[FeatureFlag] = field(default_factory=list)
    skipped: List[SkippedRecord] = field(default_factory=list)
    removed: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.skipped


@dataclass(frozen=True)
class ChangeResult:
    """Outcome of a confirmed mutation. ``changed`` is False for re-applies."""

    changed: bool
    record: Any = None


_SCALAR_TYPES = (str, int, float, bool)


def setting_text(value: ScalarValue) -> str:
    """Render a scalar the way the engine stores it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigService:
    """Refresh, list and mutate sources, settings and features."""

    def __init__(
        self,
        engine: EnginePort,
        store: DocumentStorePort,
        codec: SecretCodecPort,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.engine = engine
        self.store = store
        self.codec = codec
        # one coarse lock around "engine call + local mirror update"
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    def refresh(self) -> RefreshResult:
        """Pull the engine configuration and mirror it into the local store.

        Records that fail to map are skipped and reported; their previous
        local copy is left in place because the engine still lists them.
        Records absent upstream are deleted locally.

        Raises:
            EngineUnavailableError: If the engine cannot be read. The local
                store is not touched in that case.
        """
        with self._lock:
            raw_sources = self._call_engine("list_sources", None, self.engine.list_sources)
            raw_settings = self._call_engine("list_settings", None, self.engine.list_settings)
            raw_features = self._call_engine("list_features", None, self.engine.list_features)

            sources = map_sources(raw_sources, self.codec)
            settings = map_settings(raw_settings)
            features = map_features(raw_features)

            result = RefreshResult(
                sources=list(sources.records),
                settings=list(settings.records),
                features=list(features.records),
                skipped=[*sources.skipped, *settings.skipped, *features.skipped],
            )
            for collection, batch in ((SOURCES, sources), (SETTINGS, settings), (FEATURES, features)):
                keep = {item.key for item in batch.skipped}
                result.removed[collection] = self._mirror(collection, batch.records, keep)

        self._log.info(
            "Refreshed configuration: %d sources, %d settings, %d features, %d skipped",
            len(result.sources),
            len(result.settings),
            len(result.features),
            len(result.skipped),
        )
        return result

    def _mirror(self, collection: str, records: Sequence[Any], keep: set) -> List[str]:
        upstream = set(keep)
        for record in records:
            self.store.upsert(collection, record.key, record.to_document())
            upstream.add(record.key)
        removed = [key for key in self.store.keys(collection) if key not in upstream]
        for key in removed:
            self.store.delete(collection, key)
        if removed:
            self._log.debug("Removed %s no longer reported upstream: %s", collection, removed)
        return removed

    # ------------------------------------------------------------------
    # Reads (local store only)
    # ------------------------------------------------------------------
    def list_sources(self) -> List[SourceConfig]:
        return [SourceConfig.from_document(doc) for doc in self.store.get_all(SOURCES)]

    def list_settings(self) -> List[Setting]:
        return [Setting.from_document(doc) for doc in self.store.get_all(SETTINGS)]

    def list_features(self) -> List[FeatureFlag]:
        return [FeatureFlag.from_document(doc) for doc in self.store.get_all(FEATURES)]

    def get_source(self, source_id: str) -> Optional[SourceConfig]:
        doc = self.store.get(SOURCES, source_id)
        return SourceConfig.from_document(doc) if doc is not None else None

    def get_setting(self, key: str) -> Optional[Setting]:
        doc = self.store.get(SETTINGS, key)
        return Setting.from_document(doc) if doc is not None else None

    def get_feature(self, name: str) -> Optional[FeatureFlag]:
        doc = self.store.get(FEATURES, name)
        return FeatureFlag.from_document(doc) if doc is not None else None

    # ------------------------------------------------------------------
    # Mutations (write-through, then mirror)
    # ------------------------------------------------------------------
    def set_feature(self, name: str, enabled: bool) -> ChangeResult:
        """Enable or disable a feature known from the last refresh.

        Raises:
            UseCaseError: ``enabled`` is not a bool.
            UnknownFeatureError: ``name`` is not in the mirrored feature set.
            EngineUnavailableError: Engine write failed; mirror unchanged.
        """
        if not isinstance(enabled, bool):
            raise UseCaseError("INVALID_ARGUMENTS", f"Feature state must be a boolean, got {type(enabled).__name__}.")
        with self._lock:
            current = self.get_feature(name)
            if current is None:
                raise UnknownFeatureError(name)
            self._call_engine("set_feature", name, self.engine.set_feature, name, enabled)
            updated = replace(current, enabled=enabled, set_explicitly=True)
            self.store.upsert(FEATURES, name, updated.to_document())
        self._log.info("Feature %s set to %s", name, "enabled" if enabled else "disabled")
        return ChangeResult(changed=current.enabled != enabled, record=updated)

    def set_setting(self, key: str, value: ScalarValue) -> ChangeResult:
        """Set an engine setting. Keys are open-ended and not validated.

        ``value`` must be a JSON scalar; anything else is rejected before the
        engine is called.
        """
        key = (key or "").strip()
        if not key:
            raise UseCaseError("INVALID_ARGUMENTS", "Setting key must not be empty.")
        if value is not None and not isinstance(value, _SCALAR_TYPES):
            raise UseCaseError(
                "INVALID_ARGUMENTS",
                f"Setting value must be text, a number, a boolean or empty, got {type(value).__name__}.",
            )
        with self._lock:
            current = self.get_setting(key)
            self._call_engine("set_setting", key, self.engine.set_setting, key, setting_text(value))
            if current is None:
                updated = Setting(key=key, value=value)
            else:
                updated = replace(current, value=value)
            self.store.upsert(SETTINGS, key, updated.to_document())
        self._log.info("Setting %s updated", key)
        changed = current is None or setting_text(current.value) != setting_text(value)
        return ChangeResult(changed=changed, record=updated)

    def set_source(self, source: SourceConfig) -> ChangeResult:
        """Add or replace a source; credentials are encrypted for the engine."""
        with self._lock:
            current = self.get_source(source.id)
            engine_record = unmap_source(source, self.codec)
            self._call_engine("set_source", source.id, self.engine.set_source, engine_record)
            self.store.upsert(SOURCES, source.id, source.to_document())
        self._log.info("Source %s saved", source.id)
        return ChangeResult(changed=current != source, record=source)

    def remove_source(self, source_id: str) -> ChangeResult:
        """Remove a source upstream and from the mirror. Absent ids are a no-op success."""
        with self._lock:
            current = self.get_source(source_id)
            self._call_engine("remove_source", source_id, self.engine.remove_source, source_id)
            self.store.delete(SOURCES, source_id)
        self._log.info("Source %s removed", source_id)
        return ChangeResult(changed=current is not None, record=current)

    # ------------------------------------------------------------------
    def _call_engine(self, operation: str, key: Optional[str], fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except ConfigCoreError:
            self._log.warning("Engine %s(%s) failed", operation, key or "")
            raise
        except Exception as exc:
            self._log.warning("Engine %s(%s) failed: %s", operation, key or "", exc)
            raise EngineUnavailableError(str(exc) or type(exc).__name__, operation=operation, key=key) from exc


__all__ = ["ChangeResult", "ConfigService", "RefreshResult", "setting_text"]
