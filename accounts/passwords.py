"""Random password generation and password hashing."""
from __future__ import annotations

import secrets
import string
from typing import Any, Callable, Iterable, Mapping, Optional

from passlib.context import CryptContext

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

DEFAULT_ALGO = "bcrypt"
SUPPORTED_SCHEMES = ("bcrypt", "pbkdf2_sha256", "sha512_crypt", "sha256_crypt")


def gen_random_password(
    length: int = 8,
    *,
    random_bytes: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """Return ``length`` characters drawn from :data:`ALPHABET`.

    The first random byte only seeds the running shift; every following byte
    is added to it before the modulo, so the start offset is unpredictable.
    The modulo itself is not debiased (256 is not a multiple of 62).
    """

    if length < 0:
        raise ValueError("Password length must not be negative")

    random = random_bytes(length + 1)
    base = len(ALPHABET)
    shift = random[0]
    chars = []
    for i in range(1, length + 1):
        chars.append(ALPHABET[(shift + random[i]) % base])
        shift += random[i]
    return "".join(chars)


class PasswordHasher:
    """Hash and verify passwords through a passlib :class:`CryptContext`."""

    def __init__(
        self,
        schemes: Iterable[str] = SUPPORTED_SCHEMES,
        *,
        default: str = DEFAULT_ALGO,
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._context = CryptContext(schemes=list(schemes), default=default, deprecated="auto")
        self._default_options = dict(options or {})

    @property
    def default_scheme(self) -> str:
        return self._context.default_scheme()

    def hash(
        self,
        password: str,
        algo: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        scheme = algo or self.default_scheme
        if options is None and scheme == self.default_scheme:
            options = self._default_options
        handler = self._context.handler(scheme)
        if options:
            handler = handler.using(**dict(options))
        return handler.hash(password)

    def verify(self, password: str, hashed: Optional[str]) -> bool:
        if not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except ValueError:
            # Unrecognised or malformed hash.
            return False


_default_hasher = PasswordHasher()


def crypt_password(
    password: str,
    algo: str = DEFAULT_ALGO,
    options: Optional[Mapping[str, Any]] = None,
) -> str:
    return _default_hasher.hash(password, algo, options)


def verify_password(password: str, hashed: str) -> bool:
    return _default_hasher.verify(password, hashed)


__all__ = [
    "ALPHABET",
    "DEFAULT_ALGO",
    "PasswordHasher",
    "SUPPORTED_SCHEMES",
    "crypt_password",
    "gen_random_password",
    "verify_password",
]
