# chocogui/app/bootstrap.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .. import __version__
from ..adapters.engine_config_file import ChocolateyConfigFile
from ..adapters.secret_codec import DpapiSecretCodec, FernetSecretCodec, load_or_create_key
from ..adapters.store_sqlite import SqliteDocumentStore
from ..domain.ports import EnginePort, SecretCodecPort
from ..usecases.commands import CommandRegistry, build_command_registry
from ..usecases.config_service import ConfigService
from ..utils import logging as logging_utils
from ..viewmodels.config_vm import ConfigVM
from .config import AppConfig


def version_number() -> str:
    """Version string shown in the about box and logs."""
    return __version__


def _default_codec(config: AppConfig, engine: EnginePort) -> SecretCodecPort:
    # chocolatey.config holds DPAPI secrets; Fernet is for detached engines only
    if isinstance(engine, ChocolateyConfigFile):
        return DpapiSecretCodec()
    key = config.secret_key or load_or_create_key(config.secret_key_path)
    return FernetSecretCodec(key)


@dataclass
class AppContainer:
    """Object graph of the configuration core, built once per process."""

    config: AppConfig
    codec: SecretCodecPort
    engine: EnginePort
    store: SqliteDocumentStore
    config_service: ConfigService
    commands: CommandRegistry
    config_vm: ConfigVM

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "AppContainer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_app(
    config: Optional[AppConfig] = None,
    *,
    engine: Optional[EnginePort] = None,
    codec: Optional[SecretCodecPort] = None,
) -> AppContainer:
    """Wire engine -> codec -> store -> service -> commands -> view model.

    ``StoreUnavailableError`` from opening the store propagates: without a
    durable store the client does not start.
    """
    config = config or AppConfig.from_env()
    logging_utils.configure_root()
    logging_utils.apply_gui_preferences(config.debug_logging)
    log = logging.getLogger(__name__)
    log.info("chocogui %s starting (data dir %s)", version_number(), config.data_dir)

    if engine is None:
        engine = ChocolateyConfigFile(config.engine_config_path)
    if codec is None:
        codec = _default_codec(config, engine)

    store = SqliteDocumentStore(config.store_path)
    service = ConfigService(engine, store, codec)
    commands = build_command_registry(service)
    config_vm = ConfigVM(
        commands=commands,
        load_features=service.list_features,
        load_settings=service.list_settings,
        load_sources=service.list_sources,
        on_refresh=service.refresh,
    )
    return AppContainer(
        config=config,
        codec=codec,
        engine=engine,
        store=store,
        config_service=service,
        commands=commands,
        config_vm=config_vm,
    )


__all__ = ["AppContainer", "build_app", "version_number"]
