"""Message catalogues and interpolation for user-facing text."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger("accounts.language")

DEFAULT_LANGUAGE = "en-GB"

BUILTIN_CATALOGUES: Dict[str, Dict[str, str]] = {
    "en-GB": {
        "USER_ERROR_UNABLE_TO_LOAD_USER": "Unable to load user with ID: %s",
        "USER_ERROR_NOT_AUTHORISED": "You are not authorised to access this resource.",
        "USER_ERROR_LOGIN_REQUIRED": "You must be logged in to access this resource.",
    },
    "fr-FR": {
        "USER_ERROR_UNABLE_TO_LOAD_USER": "Impossible de charger l'utilisateur ayant l'ID : %s",
        "USER_ERROR_NOT_AUTHORISED": "Vous n'êtes pas autorisé à accéder à cette ressource.",
        "USER_ERROR_LOGIN_REQUIRED": "Vous devez être connecté pour accéder à cette ressource.",
    },
}


class Localizer:
    """Look up translated strings and interpolate printf-style arguments."""

    def __init__(self, catalogue: Mapping[str, str], tag: str = DEFAULT_LANGUAGE) -> None:
        self._catalogue = dict(catalogue)
        self._tag = tag

    @property
    def tag(self) -> str:
        return self._tag

    def translate(self, key: str) -> str:
        """Return the string for ``key`` or the key itself when untranslated."""

        return self._catalogue.get(key.upper(), key)

    def format_message(self, key: str, *args: Any) -> str:
        template = self.translate(key)
        if not args:
            return template
        try:
            return template % args
        except (TypeError, ValueError):
            logger.warning("Message %s does not accept %d argument(s)", key, len(args))
            return template


def load_language(tag: Optional[str] = None, path: Optional[Path] = None) -> Localizer:
    """Build a :class:`Localizer` for ``tag``, merging overrides from ``path``.

    The override file is a flat YAML mapping of keys to strings.
    """

    resolved_tag = tag or DEFAULT_LANGUAGE
    if resolved_tag not in BUILTIN_CATALOGUES:
        logger.warning("Unknown language %s; falling back to %s", resolved_tag, DEFAULT_LANGUAGE)
    catalogue = dict(BUILTIN_CATALOGUES.get(resolved_tag, BUILTIN_CATALOGUES[DEFAULT_LANGUAGE]))

    if path is not None:
        try:
            with path.open("r", encoding="utf-8") as handle:
                raw = yaml.safe_load(handle) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Unable to read language file {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Language file {path} must contain a mapping")
        catalogue.update({str(key).upper(): str(value) for key, value in raw.items()})

    return Localizer(catalogue, resolved_tag)


__all__ = ["BUILTIN_CATALOGUES", "DEFAULT_LANGUAGE", "Localizer", "load_language"]
