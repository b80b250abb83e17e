from __future__ import annotations

"""Domain value objects for the local configuration mirror.

Instances are immutable. Callers receive copies from the config service and
never mutate them; a change is expressed by building a new record (usually
via ``dataclasses.replace``) and handing it back to the service.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

ScalarValue = Any


def _known_fields(cls: type, document: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the subset of ``document`` that ``cls`` declares as fields."""
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in document.items() if key in names}


@dataclass(frozen=True)
class SourceConfig:
    """Package source with secrets already decrypted."""

    id: str
    """Source name, unique within the engine configuration."""

    value: str
    """Feed URL or local path."""

    disabled: bool = False
    priority: int = 0
    user_name: Optional[str] = None
    password: str = ""
    """Plain text password. Never the engine's encrypted form."""

    certificate: Optional[str] = None
    certificate_password: str = ""
    bypass_proxy: bool = False
    allow_self_service: bool = False
    visible_to_admins_only: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("SourceConfig.id must be a non-empty string.")

    @property
    def key(self) -> str:
        return self.id

    @property
    def enabled(self) -> bool:
        return not self.disabled

    @property
    def has_credentials(self) -> bool:
        return bool(self.user_name) or bool(self.password)

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "SourceConfig":
        return cls(**_known_fields(cls, document))


@dataclass(frozen=True)
class Setting:
    """Global engine setting. A missing key means "engine default"."""

    key: str
    value: ScalarValue = ""
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise ValueError("Setting.key must be a non-empty string.")

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Setting":
        return cls(**_known_fields(cls, document))


@dataclass(frozen=True)
class FeatureFlag:
    """Named engine toggle. Only ``enabled`` is ever changed locally."""

    name: str
    enabled: bool = False
    set_explicitly: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("FeatureFlag.name must be a non-empty string.")

    @property
    def key(self) -> str:
        return self.name

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "FeatureFlag":
        return cls(**_known_fields(cls, document))


@dataclass(frozen=True)
class Package:
    """Package metadata with author and owner lists already split."""

    id: str
    version: str
    title: Optional[str] = None
    authors: Tuple[str, ...] = field(default_factory=tuple)
    owners: Tuple[str, ...] = field(default_factory=tuple)
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    project_url: Optional[str] = None
    download_count: int = 0
    is_prerelease: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise ValueError("Package.id must be a non-empty string.")

    @property
    def display_title(self) -> str:
        return self.title or self.id


__all__ = ["FeatureFlag", "Package", "ScalarValue", "Setting", "SourceConfig"]
