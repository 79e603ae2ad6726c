from .models import AppConfig, LockSettings, RedisConfig, LoggingConfig
from pathlib import Path
from typing import Optional, Union
import tomllib
from pydantic import ValidationError
from memlock.errors import ConfigError

def _deep_update(base: dict, updates: dict) -> dict:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _find_config(path: Optional[Union[str, Path]]) -> Optional[Path]:
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return path
    candidate = Path.cwd() / "memlock.toml"
    return candidate if candidate.exists() else None


def load_settings(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Build an AppConfig from environment defaults overlaid with an optional
    memlock.toml file.
    """
    config_path = _find_config(path)
    if not config_path:
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}", source=e) from e

    base = AppConfig().model_dump()
    merged = _deep_update(base, raw)
    try:
        return AppConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {config_path}", source=e) from e


__all__ = ["AppConfig", "LockSettings", "RedisConfig", "LoggingConfig", "load_settings"]
