"""Engine adapter backed by the engine's ``chocolatey.config`` XML file.

Every read parses the file again so the engine stays the authority; every
write is a read-modify-write replaced atomically on disk.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, List, Optional, Union

from chocogui.domain.engine_records import EngineFeature, EngineSetting, EngineSource
from chocogui.domain.errors import EngineUnavailableError
from chocogui.domain.ports import EnginePort

CONFIG_FILENAME = "chocolatey.config"

_TRUE_TOKENS = {"true", "1", "yes"}


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_TOKENS


def _as_int(value: Optional[str]) -> int:
    try:
        return int((value or "0").strip())
    except ValueError:
        return 0


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _optional_attr(element: ET.Element, name: str) -> Optional[str]:
    value = element.get(name)
    return value if value else None


class ChocolateyConfigFile(EnginePort):
    """Read/write sources, settings and features in ``chocolatey.config``."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._log = logging.getLogger(__name__)
        self.path = Path(path)
        self._lock = threading.Lock()

    # ---------- reads ----------
    def list_sources(self) -> List[EngineSource]:
        root = self._load("list_sources")
        return [
            EngineSource(
                id=element.get("id", ""),
                value=element.get("value", ""),
                disabled=_as_bool(element.get("disabled")),
                priority=_as_int(element.get("priority")),
                user=_optional_attr(element, "user"),
                password=_optional_attr(element, "password"),
                certificate=_optional_attr(element, "certificate"),
                certificate_password=_optional_attr(element, "certificatePassword"),
                bypass_proxy=_as_bool(element.get("bypassProxy")),
                allow_self_service=_as_bool(element.get("selfService")),
                visible_to_admin_only=_as_bool(element.get("adminOnly")),
            )
            for element in root.iterfind("sources/source")
        ]

    def list_settings(self) -> List[EngineSetting]:
        root = self._load("list_settings")
        return [
            EngineSetting(
                key=element.get("key", ""),
                value=element.get("value", ""),
                description=element.get("description", ""),
            )
            for element in root.iterfind("config/add")
        ]

    def list_features(self) -> List[EngineFeature]:
        root = self._load("list_features")
        return [
            EngineFeature(
                name=element.get("name", ""),
                enabled=_as_bool(element.get("enabled")),
                set_explicitly=_as_bool(element.get("setExplicitly")),
                description=element.get("description", ""),
            )
            for element in root.iterfind("features/feature")
        ]

    # ---------- writes ----------
    def set_feature(self, name: str, enabled: bool) -> None:
        def apply(root: ET.Element) -> None:
            element = self._find(root, "features/feature", "name", name)
            if element is None:
                raise EngineUnavailableError(
                    f"Feature '{name}' not found in {self.path}", operation="set_feature", key=name
                )
            element.set("enabled", _bool_text(enabled))
            element.set("setExplicitly", "true")

        self._modify("set_feature", name, apply)

    def set_setting(self, key: str, value: str) -> None:
        def apply(root: ET.Element) -> None:
            element = self._find(root, "config/add", "key", key)
            if element is None:
                element = ET.SubElement(self._section(root, "config"), "add", {"key": key})
            element.set("value", "" if value is None else str(value))

        self._modify("set_setting", key, apply)

    def set_source(self, source: EngineSource) -> None:
        def apply(root: ET.Element) -> None:
            element = self._find(root, "sources/source", "id", source.id)
            if element is None:
                element = ET.SubElement(self._section(root, "sources"), "source", {"id": source.id})
            element.set("value", source.value)
            element.set("disabled", _bool_text(source.disabled))
            element.set("bypassProxy", _bool_text(source.bypass_proxy))
            element.set("selfService", _bool_text(source.allow_self_service))
            element.set("adminOnly", _bool_text(source.visible_to_admin_only))
            element.set("priority", str(int(source.priority)))
            for attr, value in (
                ("user", source.user),
                ("password", source.password),
                ("certificate", source.certificate),
                ("certificatePassword", source.certificate_password),
            ):
                if value:
                    element.set(attr, value)
                elif attr in element.attrib:
                    del element.attrib[attr]

        self._modify("set_source", source.id, apply)

    def remove_source(self, source_id: str) -> None:
        def apply(root: ET.Element) -> None:
            section = root.find("sources")
            if section is None:
                return
            for element in list(section.iterfind("source")):
                if element.get("id") == source_id:
                    section.remove(element)

        self._modify("remove_source", source_id, apply)

    # ---------- internals ----------
    @staticmethod
    def _find(root: ET.Element, path: str, attr: str, value: str) -> Optional[ET.Element]:
        for element in root.iterfind(path):
            if element.get(attr) == value:
                return element
        return None

    @staticmethod
    def _section(root: ET.Element, tag: str) -> ET.Element:
        section = root.find(tag)
        if section is None:
            section = ET.SubElement(root, tag)
        return section

    def _load(self, operation: str) -> ET.Element:
        try:
            return ET.parse(self.path).getroot()
        except (OSError, ET.ParseError) as exc:
            raise EngineUnavailableError(
                f"Cannot read engine configuration {self.path}: {exc}", operation=operation
            ) from exc

    def _modify(self, operation: str, key: str, apply: Callable[[ET.Element], None]) -> None:
        with self._lock:
            tree_root = self._load(operation)
            apply(tree_root)
            tree = ET.ElementTree(tree_root)
            ET.indent(tree, space="  ")
            tmp_name: Optional[str] = None
            try:
                fd, tmp_name = tempfile.mkstemp(prefix=".chocolatey.", suffix=".tmp", dir=str(self.path.parent))
                with os.fdopen(fd, "wb") as fh:
                    tree.write(fh, encoding="utf-8", xml_declaration=True)
                os.replace(tmp_name, self.path)
                tmp_name = None
            except OSError as exc:
                raise EngineUnavailableError(
                    f"Cannot write engine configuration {self.path}: {exc}", operation=operation, key=key
                ) from exc
            finally:
                if tmp_name is not None and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
        self._log.debug("Engine %s(%s) written to %s", operation, key, self.path)


__all__ = ["CONFIG_FILENAME", "ChocolateyConfigFile"]
