from __future__ import annotations

from decimal import Decimal

import pytest

from chocogui.adapters.engine_mock import EngineMock
from chocogui.adapters.secret_codec import FernetSecretCodec
from chocogui.adapters.store_sqlite import SqliteDocumentStore
from chocogui.domain.engine_records import EngineFeature, EngineSetting
from chocogui.domain.errors import StoreUnavailableError
from chocogui.usecases.commands import (
    COMMAND_FACTORIES,
    CommandRegistry,
    CommandResult,
    ConfigCommand,
    FeatureCommand,
    build_command_registry,
)
from chocogui.usecases.config_service import ConfigService


@pytest.fixture
def engine() -> EngineMock:
    return EngineMock.with_records(
        settings=[EngineSetting(key="cacheLocation", value="C:/cache")],
        features=[EngineFeature(name="autoUninstaller", enabled=False)],
    )


@pytest.fixture
def service(tmp_path, engine):
    with SqliteDocumentStore(tmp_path / "data.db") as store:
        service = ConfigService(engine, store, FernetSecretCodec("commands"))
        service.refresh()
        yield service


def test_registry_is_fixed_and_ordered(service) -> None:
    registry = build_command_registry(service)

    assert registry.names() == ["feature", "config"]
    assert len(registry) == 2
    assert isinstance(registry[0], FeatureCommand)
    assert isinstance(registry.get("config"), ConfigCommand)
    assert registry.get("missing") is None
    assert all(command.config_service is service for command in registry)
    assert [tag for tag, _ in COMMAND_FACTORIES] == registry.names()


def test_registry_rejects_duplicates_and_mismatched_tags(service) -> None:
    with pytest.raises(ValueError):
        CommandRegistry([FeatureCommand(service), FeatureCommand(service)])
    with pytest.raises(ValueError):
        build_command_registry(service, [("toggle", FeatureCommand)])


def test_feature_command_success_and_idempotent_reapply(service, engine) -> None:
    registry = build_command_registry(service)

    first = registry.execute("feature", {"name": "autoUninstaller", "enabled": "true"})
    second = registry.execute("feature", {"name": "autoUninstaller", "enabled": True})

    assert first == CommandResult(ok=True, message="Feature 'autoUninstaller' enabled.", changed=True)
    assert second.ok is True
    assert second.changed is False
    assert "already enabled" in second.message
    assert engine.features["autoUninstaller"].enabled is True


def test_feature_command_unknown_feature_reports_failure(service) -> None:
    result = FeatureCommand(service).execute({"name": "X", "enabled": True})

    assert result.ok is False
    assert result.code == "UNKNOWN_FEATURE"
    assert service.get_feature("X") is None


def test_feature_command_engine_failure_is_distinct_from_noop(service, engine) -> None:
    engine.failing.add("set_feature")

    result = FeatureCommand(service).execute({"name": "autoUninstaller", "enabled": False})

    assert result.ok is False
    assert result.code == "ENGINE_UNAVAILABLE"
    assert result.message.startswith("Package engine call failed")


@pytest.mark.parametrize(
    "args",
    [
        {},
        {"name": "autoUninstaller"},
        {"name": "autoUninstaller", "enabled": "maybe"},
        {"name": "", "enabled": True},
    ],
)
def test_feature_command_validates_arguments(service, args) -> None:
    result = FeatureCommand(service).execute(args)

    assert result.ok is False
    assert result.code == "INVALID_ARGUMENTS"


def test_config_command_sets_value(service, engine) -> None:
    result = ConfigCommand(service).execute({"key": "cacheLocation", "value": "D:/cache"})
    unchanged = ConfigCommand(service).execute({"key": "cacheLocation", "value": "D:/cache"})

    assert result.ok and result.changed
    assert unchanged.ok and not unchanged.changed
    assert engine.settings["cacheLocation"].value == "D:/cache"
    assert service.get_setting("cacheLocation").value == "D:/cache"


def test_config_command_requires_value(service) -> None:
    result = ConfigCommand(service).execute({"key": "cacheLocation"})

    assert result.ok is False
    assert result.code == "INVALID_ARGUMENTS"


def test_config_command_rejects_non_scalar_value_before_engine_call(service, engine) -> None:
    result = ConfigCommand(service).execute({"key": "cacheLocation", "value": Decimal("2.5")})

    assert result.ok is False
    assert result.code == "INVALID_ARGUMENTS"
    assert "set_setting" not in engine.calls
    assert engine.settings["cacheLocation"].value == "C:/cache"
    assert service.get_setting("cacheLocation").value == "C:/cache"


def test_config_command_engine_rejection(service, engine) -> None:
    engine.failing.add("set_setting")

    result = ConfigCommand(service).execute({"key": "cacheLocation", "value": "E:/"})

    assert result.ok is False
    assert result.code == "ENGINE_UNAVAILABLE"
    assert service.get_setting("cacheLocation").value == "C:/cache"


def test_unknown_command_name(service) -> None:
    result = build_command_registry(service).execute("install", {})

    assert result.ok is False
    assert result.code == "UNKNOWN_COMMAND"


def test_store_failure_propagates_through_commands(service) -> None:
    service.store.close()

    with pytest.raises(StoreUnavailableError):
        FeatureCommand(service).execute({"name": "autoUninstaller", "enabled": True})
