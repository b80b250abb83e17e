"""User-invokable configuration commands and their fixed registry.

Commands hold a reference to one ``ConfigService`` and no state of their own.
The registry is an explicit, tagged list of constructors built once at
startup; the presentation layer only enumerates and executes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
)

from chocogui.domain.errors import ConfigCoreError, StoreUnavailableError
from chocogui.domain.ports import UseCaseError
from chocogui.usecases.config_service import ConfigService
from chocogui.usecases.error_mapping import map_config_error

logger = logging.getLogger(__name__)

_TRUE_TOKENS = {"1", "true", "yes", "on"}
_FALSE_TOKENS = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class CommandResult:
    """Success/failure plus a message suitable for a status bar or toast."""

    ok: bool
    message: str = ""
    code: Optional[str] = None
    changed: bool = False


class Command(Protocol):
    name: str
    description: str

    def execute(self, args: Mapping[str, Any]) -> CommandResult: ...


def _require_text(args: Mapping[str, Any], key: str) -> str:
    value = args.get(key) if isinstance(args, Mapping) else None
    text = str(value).strip() if value is not None else ""
    if not text:
        raise UseCaseError("INVALID_ARGUMENTS", f"Missing required argument '{key}'.")
    return text


def _require_bool(args: Mapping[str, Any], key: str) -> bool:
    value = args.get(key) if isinstance(args, Mapping) else None
    if isinstance(value, bool):
        return value
    token = str(value).strip().lower() if value is not None else ""
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise UseCaseError("INVALID_ARGUMENTS", f"Argument '{key}' must be a boolean.")


def _failure(exc: Exception, *, default_code: str, default_message: str) -> CommandResult:
    mapped = map_config_error(exc, default_code=default_code, default_message=default_message)
    logger.info("Command failed [%s]: %s", mapped.code, mapped.message)
    return CommandResult(ok=False, message=mapped.message, code=mapped.code)


@dataclass(frozen=True)
class FeatureCommand:
    """Toggle an engine feature. Args: ``name`` and ``enabled``."""

    config_service: ConfigService
    name: str = "feature"
    description: str = "Enable or disable a package engine feature."

    def execute(self, args: Mapping[str, Any]) -> CommandResult:
        try:
            feature = _require_text(args, "name")
            enabled = _require_bool(args, "enabled")
            result = self.config_service.set_feature(feature, enabled)
        except StoreUnavailableError:
            raise
        except (UseCaseError, ConfigCoreError) as exc:
            return _failure(exc, default_code="FEATURE_UPDATE_FAILED", default_message="Failed to update feature.")
        state = "enabled" if enabled else "disabled"
        if result.changed:
            return CommandResult(ok=True, message=f"Feature '{feature}' {state}.", changed=True)
        return CommandResult(ok=True, message=f"Feature '{feature}' already {state}.")


@dataclass(frozen=True)
class ConfigCommand:
    """Set an engine configuration value. Args: ``key`` and ``value``."""

    config_service: ConfigService
    name: str = "config"
    description: str = "Change a package engine configuration setting."

    def execute(self, args: Mapping[str, Any]) -> CommandResult:
        try:
            key = _require_text(args, "key")
            if "value" not in args:
                raise UseCaseError("INVALID_ARGUMENTS", "Missing required argument 'value'.")
            value = args["value"]
            result = self.config_service.set_setting(key, value)
        except StoreUnavailableError:
            raise
        except (UseCaseError, ConfigCoreError) as exc:
            return _failure(exc, default_code="SETTING_UPDATE_FAILED", default_message="Failed to update setting.")
        if result.changed:
            return CommandResult(ok=True, message=f"Setting '{key}' updated.", changed=True)
        return CommandResult(ok=True, message=f"Setting '{key}' unchanged.")


CommandFactory = Callable[[ConfigService], Command]

# tag -> constructor; the tag must match the constructed command's name
COMMAND_FACTORIES: Tuple[Tuple[str, CommandFactory], ...] = (
    ("feature", FeatureCommand),
    ("config", ConfigCommand),
)


class CommandRegistry:
    """Immutable, shareable sequence of commands."""

    __slots__ = ("_commands",)

    def __init__(self, commands: Iterable[Command]) -> None:
        items = tuple(commands)
        names = [command.name for command in items]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate command names: {', '.join(duplicates)}")
        self._commands: Tuple[Command, ...] = items

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __getitem__(self, index: int) -> Command:
        return self._commands[index]

    def names(self) -> List[str]:
        return [command.name for command in self._commands]

    def get(self, name: str) -> Optional[Command]:
        for command in self._commands:
            if command.name == name:
                return command
        return None

    def execute(self, name: str, args: Mapping[str, Any]) -> CommandResult:
        command = self.get(name)
        if command is None:
            return CommandResult(ok=False, message=f"Unknown command '{name}'.", code="UNKNOWN_COMMAND")
        return command.execute(args)


def build_command_registry(
    config_service: ConfigService,
    factories: Iterable[Tuple[str, CommandFactory]] = COMMAND_FACTORIES,
) -> CommandRegistry:
    commands = []
    for tag, factory in factories:
        command = factory(config_service)
        if command.name != tag:
            raise ValueError(f"Command factory '{tag}' built a command named '{command.name}'.")
        commands.append(command)
    return CommandRegistry(commands)


__all__ = [
    "COMMAND_FACTORIES",
    "Command",
    "CommandRegistry",
    "CommandResult",
    "ConfigCommand",
    "FeatureCommand",
    "build_command_registry",
]
