from __future__ import annotations

import pytest

from chocogui.adapters.engine_mock import EngineMock
from chocogui.adapters.secret_codec import FernetSecretCodec
from chocogui.adapters.store_sqlite import SqliteDocumentStore
from chocogui.domain.engine_records import EngineFeature, EngineSetting, EngineSource
from chocogui.usecases.commands import build_command_registry
from chocogui.usecases.config_service import ConfigService
from chocogui.viewmodels.config_vm import ConfigVM

CODEC = FernetSecretCodec("vm-tests")


@pytest.fixture
def engine() -> EngineMock:
    return EngineMock.with_records(
        sources=[
            EngineSource(id="community", value="https://community.example/api/v2/"),
            EngineSource(id="internal", value="https://nexus.example/", user="svc", password=CODEC.encrypt("pw")),
        ],
        settings=[EngineSetting(key="cacheLocation", value="C:/cache", description="Cache")],
        features=[EngineFeature(name="autoUninstaller", enabled=False, description="Uninstall")],
    )


@pytest.fixture
def vm(tmp_path, engine):
    with SqliteDocumentStore(tmp_path / "data.db") as store:
        service = ConfigService(engine, store, CODEC)
        yield ConfigVM(
            commands=build_command_registry(service),
            load_features=service.list_features,
            load_settings=service.list_settings,
            load_sources=service.list_sources,
            on_refresh=service.refresh,
        )


def test_refresh_populates_rows_without_secrets(vm) -> None:
    assert vm.cmd_refresh() is True

    assert vm.status_message == "Configuration refreshed."
    assert [row.name for row in vm.features] == ["autoUninstaller"]
    assert vm.settings[0].value == "C:/cache"
    internal = [row for row in vm.sources if row.id == "internal"][0]
    assert internal.has_credentials is True
    assert not hasattr(internal, "password")
    assert vm.command_names == ["feature", "config"]


def test_refresh_failure_sets_status(vm, engine) -> None:
    engine.failing.add("list_sources")

    assert vm.cmd_refresh() is False
    assert vm.last_error_code == "ENGINE_UNAVAILABLE"
    assert vm.status_message.startswith("Refresh failed")


def test_refresh_reports_skipped_records(vm, engine) -> None:
    engine.sources["broken"] = EngineSource(id="broken", value="https://b", password="garbage")

    vm.cmd_refresh()

    assert "1 skipped" in vm.status_message
    assert "sources/broken" in vm.status_message
    assert len(vm.sources) == 2


def test_toggle_feature_updates_rows(vm) -> None:
    vm.cmd_refresh()

    result = vm.cmd_toggle_feature("autoUninstaller", True)

    assert result.ok
    assert vm.feature("autoUninstaller").enabled is True
    assert vm.status_message == "Feature 'autoUninstaller' enabled."
    assert vm.last_error_code is None


def test_toggle_unknown_feature_keeps_rows(vm) -> None:
    vm.cmd_refresh()

    result = vm.cmd_toggle_feature("missing", True)

    assert not result.ok
    assert vm.last_error_code == "UNKNOWN_FEATURE"
    assert vm.feature("missing") is None


def test_edit_setting_displays_typed_value(vm) -> None:
    vm.cmd_refresh()

    vm.cmd_edit_setting("allowGlobalConfirmation", True)

    values = {row.key: row.value for row in vm.settings}
    assert values["allowGlobalConfirmation"] == "true"
