"""
Password Hashing

Hashes with the strategy native to the current runtime and verifies with
whichever strategy the stored hash's prefix names:

    SERVER runtime: hashes with bcrypt, verifies bcrypt and pbkdf2
    EDGE runtime:   hashes with pbkdf2, verifies pbkdf2 only

Stored formats:
    bcrypt: "$2b$12$..." (library format, treated as opaque)
    pbkdf2: "pbkdf2:" + base64(salt[16] || PBKDF2-HMAC-SHA256(password, salt, 100000)[32])

The prefix is authoritative: there is never a fallback to another
algorithm when the prefix does not match.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import hmac
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

import bcrypt

from ..database.config import DatabaseConfig
from ..runtime import RuntimeEnvironment, get_runtime

logger = logging.getLogger(__name__)

PBKDF2_PREFIX = "pbkdf2:"
PBKDF2_SALT_BYTES = 16
PBKDF2_KEY_BYTES = 32
# Fixed: the stored format does not record an iteration count
PBKDF2_ITERATIONS = 100000

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


class PasswordResetRequired(Exception):
    """
    The stored hash cannot be checked here; the user must reset.

    Distinct from a wrong password, which is a plain False from verify().
    """


class HashFormatUnrecognizedError(PasswordResetRequired):
    """Stored hash has an unknown prefix or a corrupt body."""


class HashIncompatibleError(PasswordResetRequired):
    """Stored hash format is known but has no verifier in this runtime."""


class HashStrategy(ABC):
    """A single password-hashing algorithm with a self-describing format."""

    name: str = ""
    prefixes: Tuple[str, ...] = ()

    def matches(self, stored_hash: str) -> bool:
        return stored_hash.startswith(self.prefixes)

    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt."""
        ...

    @abstractmethod
    def verify(self, password: str, stored_hash: str) -> bool:
        """
        Check a password against a hash in this strategy's format.

        Raises:
            HashFormatUnrecognizedError: If the hash body is corrupt
        """
        ...


class Pbkdf2Strategy(HashStrategy):
    """Salted, iterated PBKDF2-HMAC-SHA256 (usable without native libraries)."""

    name = "pbkdf2"
    prefixes = (PBKDF2_PREFIX,)

    def _derive(self, password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            salt,
            PBKDF2_ITERATIONS,
            dklen=PBKDF2_KEY_BYTES,
        )

    def hash(self, password: str, salt: Optional[bytes] = None) -> str:
        """
        Hash a password.

        Args:
            password: Plain text password
            salt: Fixed salt (tests only; generated if not provided)

        Returns:
            "pbkdf2:<base64>" stored hash
        """
        if salt is None:
            salt = secrets.token_bytes(PBKDF2_SALT_BYTES)
        combined = salt + self._derive(password, salt)
        return PBKDF2_PREFIX + base64.b64encode(combined).decode("ascii")

    def verify(self, password: str, stored_hash: str) -> bool:
        body = stored_hash[len(PBKDF2_PREFIX):]
        try:
            combined = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HashFormatUnrecognizedError("Corrupt pbkdf2 hash") from e

        if len(combined) != PBKDF2_SALT_BYTES + PBKDF2_KEY_BYTES:
            raise HashFormatUnrecognizedError(
                f"Corrupt pbkdf2 hash: expected {PBKDF2_SALT_BYTES + PBKDF2_KEY_BYTES} bytes, got {len(combined)}"
            )

        salt = combined[:PBKDF2_SALT_BYTES]
        expected = combined[PBKDF2_SALT_BYTES:]
        return hmac.compare_digest(self._derive(password, salt), expected)


class BcryptStrategy(HashStrategy):
    """Adaptive bcrypt hash (needs the native bcrypt library)."""

    name = "bcrypt"
    prefixes = BCRYPT_PREFIXES

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    @staticmethod
    def _password_bytes(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._password_bytes(password), salt).decode("utf-8")

    def verify(self, password: str, stored_hash: str) -> bool:
        try:
            return bcrypt.checkpw(self._password_bytes(password), stored_hash.encode("utf-8"))
        except ValueError as e:
            raise HashFormatUnrecognizedError("Corrupt bcrypt hash") from e


class PasswordHasher:
    """
    Runtime-aware password hasher.

    Usage:
        hasher = PasswordHasher(RuntimeEnvironment.SERVER)
        stored = await hasher.hash("s3cret")
        ok = await hasher.verify("s3cret", stored)

        if hasher.needs_rehash(stored):
            stored = await hasher.hash("s3cret")
    """

    def __init__(
        self,
        runtime: RuntimeEnvironment,
        *,
        bcrypt_rounds: int = 12,
    ):
        self.runtime = runtime
        self._bcrypt = BcryptStrategy(rounds=bcrypt_rounds)
        self._pbkdf2 = Pbkdf2Strategy()

        # Every format we can recognise, regardless of runtime
        self._known: List[HashStrategy] = [self._pbkdf2, self._bcrypt]

        if runtime is RuntimeEnvironment.SERVER:
            self._native: HashStrategy = self._bcrypt
            self._available: Dict[str, HashStrategy] = {"bcrypt": self._bcrypt, "pbkdf2": self._pbkdf2}
        else:
            self._native = self._pbkdf2
            self._available = {"pbkdf2": self._pbkdf2}

    @property
    def native_format(self) -> str:
        return self._native.name

    def _strategy_for(self, stored_hash: str) -> Optional[HashStrategy]:
        for strategy in self._known:
            if strategy.matches(stored_hash):
                return strategy
        return None

    def hash_format(self, stored_hash: str) -> Optional[str]:
        """Name of the format a stored hash uses, or None if unknown."""
        strategy = self._strategy_for(stored_hash or "")
        return strategy.name if strategy else None

    async def hash(self, password: str) -> str:
        """Hash with the runtime-native strategy (fresh salt every call)."""
        return await asyncio.to_thread(self._native.hash, password)

    async def verify(self, password: str, stored_hash: str) -> bool:
        """
        Verify a password against a stored hash.

        Returns:
            True on match, False on mismatch

        Raises:
            HashFormatUnrecognizedError: Unknown prefix or corrupt hash
            HashIncompatibleError: Known format without a verifier here
        """
        strategy = self._strategy_for(stored_hash or "")
        if strategy is None:
            raise HashFormatUnrecognizedError("Unrecognized password hash format")

        if strategy.name not in self._available:
            raise HashIncompatibleError(
                f"{strategy.name} hashes are not supported in the {self.runtime.value} runtime. "
                "Please reset password."
            )

        return await asyncio.to_thread(strategy.verify, password, stored_hash)

    def is_hash_compatible(self, stored_hash: str) -> bool:
        """Whether this runtime can verify the stored hash's format."""
        format_name = self.hash_format(stored_hash)
        return format_name is not None and format_name in self._available

    def needs_rehash(self, stored_hash: str) -> bool:
        """Whether a (successfully verified) hash should be migrated to the native format."""
        return self.hash_format(stored_hash) != self._native.name


# Global instance management
_hasher: Optional[PasswordHasher] = None


def get_password_hasher(config: Optional[DatabaseConfig] = None) -> PasswordHasher:
    """Get the process-wide password hasher for the detected runtime."""
    global _hasher
    if _hasher is None:
        config = config or DatabaseConfig()
        _hasher = PasswordHasher(
            get_runtime(config),
            bcrypt_rounds=config.bcrypt_rounds,
        )
    return _hasher


def reset_password_hasher() -> None:
    """Reset the hasher singleton (tests only)."""
    global _hasher
    _hasher = None
