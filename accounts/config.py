"""Configuration management for the accounts layer."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .errors import ConfigurationError
from .language import DEFAULT_LANGUAGE
from .passwords import DEFAULT_ALGO


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the account services."""

    database_path: Path
    language: str = DEFAULT_LANGUAGE
    language_file: Optional[Path] = None
    session_ttl_seconds: int = 8 * 60 * 60
    password_algo: str = DEFAULT_ALGO
    password_options: Dict[str, Any] = field(default_factory=dict)
    guest_group_id: Optional[int] = None

    @staticmethod
    def from_dict(data: Mapping[str, Any], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        env_db = os.getenv("ACCOUNTS_DB_PATH")
        configured_db = data.get("database_path")
        if env_db:
            database_path = resolve_database_path(env_db)
        elif configured_db and base_path is not None and not Path(str(configured_db)).expanduser().is_absolute():
            database_path = (base_path / Path(str(configured_db)).expanduser()).resolve(strict=False)
        else:
            database_path = resolve_database_path(str(configured_db) if configured_db else None)

        language_file = data.get("language_file")
        if language_file:
            raw_language_file = Path(str(language_file)).expanduser()
            if not raw_language_file.is_absolute() and base_path is not None:
                raw_language_file = base_path / raw_language_file
            language_path: Optional[Path] = raw_language_file.resolve(strict=False)
        else:
            language_path = None

        options = data.get("password_options") or {}
        if not isinstance(options, Mapping):
            raise ConfigurationError("password_options must be a mapping")

        guest_group = data.get("guest_group_id")
        try:
            ttl = int(data.get("session_ttl_seconds", 8 * 60 * 60))
            guest_group_id = int(guest_group) if guest_group is not None else None
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

        return Settings(
            database_path=database_path,
            language=os.getenv("ACCOUNTS_LANGUAGE") or str(data.get("language", DEFAULT_LANGUAGE)),
            language_file=language_path,
            session_ttl_seconds=ttl,
            password_algo=str(data.get("password_algo", DEFAULT_ALGO)),
            password_options=dict(options),
            guest_group_id=guest_group_id,
        )


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "accounts.yaml").resolve(strict=False)
    return candidate


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from a YAML file; a missing file yields the defaults."""

    path = config_path or resolve_config_path(os.getenv("ACCOUNTS_CONFIG"))
    if not path.exists():
        return Settings.from_dict({})

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read configuration file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration file must contain a mapping")
    return Settings.from_dict(raw, base_path=path.parent)


__all__ = ["Settings", "load_settings", "resolve_config_path"]
