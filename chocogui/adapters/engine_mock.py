from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Set

from chocogui.domain.engine_records import EngineFeature, EngineSetting, EngineSource
from chocogui.domain.errors import EngineUnavailableError
from chocogui.domain.ports import EnginePort


@dataclass
class EngineMock(EnginePort):
    """In-memory engine stub used for tests and offline development.

    ``failing`` holds operation names (``"set_feature"``, ``"list_sources"``,
    ...) that raise ``EngineUnavailableError`` until removed again.
    """

    sources: Dict[str, EngineSource] = field(default_factory=dict)
    settings: Dict[str, EngineSetting] = field(default_factory=dict)
    features: Dict[str, EngineFeature] = field(default_factory=dict)
    failing: Set[str] = field(default_factory=set)
    calls: List[str] = field(default_factory=list)

    @classmethod
    def with_records(
        cls,
        *,
        sources: Iterable[EngineSource] = (),
        settings: Iterable[EngineSetting] = (),
        features: Iterable[EngineFeature] = (),
    ) -> "EngineMock":
        return cls(
            sources={item.id: item for item in sources},
            settings={item.key: item for item in settings},
            features={item.name: item for item in features},
        )

    def _enter(self, operation: str, key: Optional[str] = None) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise EngineUnavailableError(f"engine rejected {operation}", operation=operation, key=key)

    # ---------- EnginePort ----------
    def list_sources(self) -> List[EngineSource]:
        self._enter("list_sources")
        return list(self.sources.values())

    def list_settings(self) -> List[EngineSetting]:
        self._enter("list_settings")
        return list(self.settings.values())

    def list_features(self) -> List[EngineFeature]:
        self._enter("list_features")
        return list(self.features.values())

    def set_feature(self, name: str, enabled: bool) -> None:
        self._enter("set_feature", name)
        current = self.features.get(name)
        if current is None:
            raise EngineUnavailableError(f"Feature '{name}' not found", operation="set_feature", key=name)
        self.features[name] = replace(current, enabled=enabled, set_explicitly=True)

    def set_setting(self, key: str, value: str) -> None:
        self._enter("set_setting", key)
        current = self.settings.get(key) or EngineSetting(key=key)
        self.settings[key] = replace(current, value=value)

    def set_source(self, source: EngineSource) -> None:
        self._enter("set_source", source.id)
        self.sources[source.id] = source

    def remove_source(self, source_id: str) -> None:
        self._enter("remove_source", source_id)
        self.sources.pop(source_id, None)


__all__ = ["EngineMock"]
