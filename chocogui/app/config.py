"""Runtime configuration for the composition root, resolved from the environment."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..adapters.engine_config_file import CONFIG_FILENAME
from ..adapters.store_sqlite import DEFAULT_FILENAME

DATA_DIR_ENV_VAR = "CHOCOGUI_DATA_DIR"
ENGINE_CONFIG_ENV_VAR = "CHOCOLATEY_CONFIG"
ENGINE_INSTALL_ENV_VAR = "ChocolateyInstall"
SECRET_KEY_ENV_VAR = "CHOCOGUI_SECRET_KEY"
DEBUG_ENV_VAR = "CHOCOGUI_DEBUG"

_APP_DIR_NAME = "Chocolatey GUI"
_DEFAULT_ENGINE_ROOT = Path("C:/ProgramData/chocolatey")


def default_data_dir(env: Mapping[str, str], platform: str = sys.platform) -> Path:
    """Per-user application-data directory for the local store."""
    if platform.startswith("win"):
        local = env.get("LOCALAPPDATA")
        if local:
            return Path(local) / _APP_DIR_NAME
        return Path.home() / "AppData" / "Local" / _APP_DIR_NAME
    xdg = env.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "chocogui"


def default_engine_config(env: Mapping[str, str]) -> Path:
    install = env.get(ENGINE_INSTALL_ENV_VAR)
    root = Path(install) if install else _DEFAULT_ENGINE_ROOT
    return root / "config" / CONFIG_FILENAME


@dataclass(frozen=True)
class AppConfig:
    """Paths and secrets needed to wire the configuration core."""

    data_dir: Path
    engine_config_path: Path
    secret_key: Optional[str] = None
    debug_logging: bool = False

    @property
    def store_path(self) -> Path:
        return self.data_dir / DEFAULT_FILENAME

    @property
    def secret_key_path(self) -> Path:
        return self.data_dir / "secret.key"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if env is None else env
        data_dir_raw = env.get(DATA_DIR_ENV_VAR)
        data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else default_data_dir(env)
        engine_raw = env.get(ENGINE_CONFIG_ENV_VAR)
        engine_path = Path(engine_raw).expanduser() if engine_raw else default_engine_config(env)
        debug = (env.get(DEBUG_ENV_VAR) or "").strip().lower() in {"1", "true", "yes", "on"}
        return cls(
            data_dir=data_dir,
            engine_config_path=engine_path,
            secret_key=env.get(SECRET_KEY_ENV_VAR) or None,
            debug_logging=debug,
        )


__all__ = ["AppConfig", "default_data_dir", "default_engine_config"]
