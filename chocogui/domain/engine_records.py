"""Raw records as persisted by the external package-management engine.

Field names follow the engine's own vocabulary (``visible_to_admin_only``,
encrypted ``password`` values). Nothing in here is decrypted or normalized;
``domain.mapping`` owns that translation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EngineSource:
    """One ``<source>`` entry, secrets still encrypted."""

    id: str
    value: str
    disabled: bool = False
    priority: int = 0
    user: Optional[str] = None
    password: Optional[str] = None
    certificate: Optional[str] = None
    certificate_password: Optional[str] = None
    bypass_proxy: bool = False
    allow_self_service: bool = False
    visible_to_admin_only: bool = False


@dataclass(frozen=True)
class EngineSetting:
    """One ``<add key=... value=...>`` global configuration entry."""

    key: str
    value: str = ""
    description: str = ""


@dataclass(frozen=True)
class EngineFeature:
    """One ``<feature>`` toggle as reported by the engine."""

    name: str
    enabled: bool = False
    set_explicitly: bool = False
    description: str = ""


@dataclass(frozen=True)
class EnginePackage:
    """Package metadata as served by a feed (delimited author/owner strings)."""

    id: str
    version: str
    title: Optional[str] = None
    authors: Optional[str] = None
    owners: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[str] = None
    project_url: Optional[str] = None
    download_count: int = 0
    is_prerelease: bool = False


__all__ = ["EngineFeature", "EnginePackage", "EngineSetting", "EngineSource"]
