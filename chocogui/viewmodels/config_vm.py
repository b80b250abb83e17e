from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from ..domain.entities import FeatureFlag, Setting, SourceConfig
from ..domain.errors import EngineUnavailableError
from ..usecases.commands import CommandRegistry, CommandResult
from ..usecases.config_service import RefreshResult


@dataclass(frozen=True)
class FeatureRow:
    name: str
    enabled: bool
    description: str


@dataclass(frozen=True)
class SettingRow:
    key: str
    value: str
    description: str


@dataclass(frozen=True)
class SourceRow:
    """Display row for a source; secrets are reduced to a flag."""

    id: str
    value: str
    enabled: bool
    priority: int
    has_credentials: bool
    visible_to_admins_only: bool


class ConfigVM:
    """Keeps feature/setting/source rows and command intents, no I/O here.

    Loaders and the refresh callable are injected by the composition root;
    mutations go through the command registry only.
    """

    def __init__(
        self,
        *,
        commands: CommandRegistry,
        load_features: Callable[[], Sequence[FeatureFlag]],
        load_settings: Callable[[], Sequence[Setting]],
        load_sources: Callable[[], Sequence[SourceConfig]],
        on_refresh: Optional[Callable[[], RefreshResult]] = None,
    ) -> None:
        self.commands = commands
        self._load_features = load_features
        self._load_settings = load_settings
        self._load_sources = load_sources
        self.on_refresh = on_refresh

        self.features: List[FeatureRow] = []
        self.settings: List[SettingRow] = []
        self.sources: List[SourceRow] = []
        self.status_message: str = ""
        self.last_error_code: Optional[str] = None

    @property
    def command_names(self) -> List[str]:
        return self.commands.names()

    def reload(self) -> None:
        """Rebuild display rows from the local mirror."""
        self.features = [
            FeatureRow(name=item.name, enabled=item.enabled, description=item.description)
            for item in self._load_features()
        ]
        self.settings = [
            SettingRow(key=item.key, value=self._display_value(item.value), description=item.description)
            for item in self._load_settings()
        ]
        self.sources = [
            SourceRow(
                id=item.id,
                value=item.value,
                enabled=item.enabled,
                priority=item.priority,
                has_credentials=item.has_credentials,
                visible_to_admins_only=item.visible_to_admins_only,
            )
            for item in self._load_sources()
        ]

    def cmd_refresh(self) -> bool:
        if self.on_refresh is None:
            self.reload()
            return True
        try:
            result = self.on_refresh()
        except EngineUnavailableError as exc:
            self.last_error_code = "ENGINE_UNAVAILABLE"
            self.status_message = f"Refresh failed: {exc.message}"
            return False
        self.reload()
        self.last_error_code = None
        if result.skipped:
            skipped = ", ".join(f"{item.collection}/{item.key}" for item in result.skipped)
            self.status_message = f"Refreshed with {len(result.skipped)} skipped: {skipped}"
        else:
            self.status_message = "Configuration refreshed."
        return True

    def cmd_toggle_feature(self, name: str, enabled: bool) -> CommandResult:
        return self._run("feature", {"name": name, "enabled": enabled})

    def cmd_edit_setting(self, key: str, value: Any) -> CommandResult:
        return self._run("config", {"key": key, "value": value})

    def feature(self, name: str) -> Optional[FeatureRow]:
        for row in self.features:
            if row.name == name:
                return row
        return None

    # ------------------------------------------------------------------
    def _run(self, command: str, args: dict) -> CommandResult:
        result = self.commands.execute(command, args)
        self.status_message = result.message
        self.last_error_code = None if result.ok else result.code
        if result.ok:
            self.reload()
        return result

    @staticmethod
    def _display_value(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


__all__ = ["ConfigVM", "FeatureRow", "SettingRow", "SourceRow"]
