from __future__ import annotations

from pathlib import Path

import pytest

from accounts.config import Settings, load_settings
from accounts.errors import ConfigurationError
from accounts.language import load_language


def test_messages_are_interpolated() -> None:
    localizer = load_language("en-GB")
    assert localizer.format_message("USER_ERROR_UNABLE_TO_LOAD_USER", 5) == "Unable to load user with ID: 5"


def test_french_catalogue() -> None:
    localizer = load_language("fr-FR")
    assert localizer.format_message("USER_ERROR_UNABLE_TO_LOAD_USER", 5).endswith(": 5")
    assert localizer.tag == "fr-FR"


def test_unknown_keys_are_returned_verbatim() -> None:
    assert load_language().format_message("SOME_UNKNOWN_KEY") == "SOME_UNKNOWN_KEY"


def test_unknown_language_falls_back_to_english() -> None:
    localizer = load_language("xx-XX")
    assert localizer.translate("USER_ERROR_UNABLE_TO_LOAD_USER").startswith("Unable")


def test_language_file_overrides_builtin_strings(tmp_path: Path) -> None:
    overrides = tmp_path / "en-GB.yaml"
    overrides.write_text("user_error_unable_to_load_user: 'No account #%s'\n", encoding="utf-8")

    localizer = load_language("en-GB", overrides)

    assert localizer.format_message("USER_ERROR_UNABLE_TO_LOAD_USER", 12) == "No account #12"


def test_invalid_language_file_raises(tmp_path: Path) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_language("en-GB", broken)


def test_missing_config_file_yields_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ACCOUNTS_DB_PATH", raising=False)
    monkeypatch.delenv("ACCOUNTS_LANGUAGE", raising=False)

    settings = load_settings(tmp_path / "absent.yaml")

    assert settings.language == "en-GB"
    assert settings.password_algo == "bcrypt"
    assert settings.database_path.name == "accounts.sqlite3"
    assert settings.guest_group_id is None


def test_settings_are_read_relative_to_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ACCOUNTS_DB_PATH", raising=False)
    monkeypatch.delenv("ACCOUNTS_LANGUAGE", raising=False)
    config = tmp_path / "accounts.yaml"
    config.write_text(
        "\n".join(
            [
                "database_path: data/users.sqlite3",
                "language: fr-FR",
                "language_file: lang/fr.yaml",
                "session_ttl_seconds: 600",
                "password_algo: pbkdf2_sha256",
                "password_options:",
                "  rounds: 1000",
                "guest_group_id: 1",
            ]
        ),
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.database_path == (tmp_path / "data" / "users.sqlite3").resolve()
    assert settings.language == "fr-FR"
    assert settings.language_file == (tmp_path / "lang" / "fr.yaml").resolve()
    assert settings.session_ttl_seconds == 600
    assert settings.password_options == {"rounds": 1000}
    assert settings.guest_group_id == 1


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCOUNTS_DB_PATH", str(tmp_path / "env.sqlite3"))
    monkeypatch.setenv("ACCOUNTS_LANGUAGE", "fr-FR")

    settings = Settings.from_dict({"database_path": "ignored.sqlite3", "language": "en-GB"})

    assert settings.database_path == (tmp_path / "env.sqlite3").resolve()
    assert settings.language == "fr-FR"


def test_invalid_numbers_raise_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ACCOUNTS_DB_PATH", raising=False)
    with pytest.raises(ConfigurationError):
        Settings.from_dict({"session_ttl_seconds": "soon"})
