"""
Tests for runtime-aware password hashing.
"""

import base64

import bcrypt
import pytest

from quillpress.core.auth.hasher import (
    PBKDF2_PREFIX,
    HashFormatUnrecognizedError,
    HashIncompatibleError,
    PasswordHasher,
    PasswordResetRequired,
    Pbkdf2Strategy,
)
from quillpress.core.runtime import RuntimeEnvironment


@pytest.fixture(scope="module")
def bcrypt_hash():
    return bcrypt.hashpw(b"correct horse", bcrypt.gensalt(rounds=4)).decode()


@pytest.fixture(scope="module")
def pbkdf2_hash():
    return Pbkdf2Strategy().hash("correct horse")


class TestPbkdf2Format:
    """Test the pbkdf2 stored format."""

    def test_layout(self, pbkdf2_hash):
        """pbkdf2: + base64 of 16 salt bytes and 32 key bytes."""
        assert pbkdf2_hash.startswith(PBKDF2_PREFIX)
        raw = base64.b64decode(pbkdf2_hash[len(PBKDF2_PREFIX):])
        assert len(raw) == 48

    def test_fresh_salt_per_hash(self):
        strategy = Pbkdf2Strategy()
        assert strategy.hash("same password") != strategy.hash("same password")

    def test_fixed_salt_is_deterministic(self):
        strategy = Pbkdf2Strategy()
        salt = b"\x01" * 16
        assert strategy.hash("pw", salt=salt) == strategy.hash("pw", salt=salt)


class TestEdgeHasher:
    """The edge runtime hashes and verifies pbkdf2 only."""

    @pytest.fixture
    def hasher(self):
        return PasswordHasher(RuntimeEnvironment.EDGE)

    async def test_hash_is_pbkdf2(self, hasher):
        stored = await hasher.hash("s3cret-pass")
        assert stored.startswith(PBKDF2_PREFIX)
        assert hasher.native_format == "pbkdf2"
        assert await hasher.verify("s3cret-pass", stored) is True
        assert await hasher.verify("s3cret-pasS", stored) is False

    async def test_verify(self, hasher, pbkdf2_hash):
        assert await hasher.verify("correct horse", pbkdf2_hash) is True
        assert await hasher.verify("wrong horse", pbkdf2_hash) is False

    async def test_bcrypt_needs_reset(self, hasher, bcrypt_hash):
        """A bcrypt hash is never reported as a wrong password here."""
        with pytest.raises(HashIncompatibleError):
            await hasher.verify("correct horse", bcrypt_hash)

    def test_compatibility(self, hasher, bcrypt_hash, pbkdf2_hash):
        assert hasher.is_hash_compatible(pbkdf2_hash) is True
        assert hasher.is_hash_compatible(bcrypt_hash) is False
        assert hasher.is_hash_compatible("md5:abc") is False


class TestServerHasher:
    """The server runtime hashes bcrypt and verifies both formats."""

    @pytest.fixture
    def hasher(self):
        return PasswordHasher(RuntimeEnvironment.SERVER, bcrypt_rounds=4)

    async def test_hash_is_bcrypt(self, hasher):
        stored = await hasher.hash("s3cret-pass")
        assert stored.startswith("$2b$04$")
        assert await hasher.verify("s3cret-pass", stored) is True

    async def test_verifies_pbkdf2(self, hasher, pbkdf2_hash):
        assert await hasher.verify("correct horse", pbkdf2_hash) is True
        assert await hasher.verify("nope", pbkdf2_hash) is False

    def test_needs_rehash(self, hasher, bcrypt_hash, pbkdf2_hash):
        assert hasher.needs_rehash(pbkdf2_hash) is True
        assert hasher.needs_rehash(bcrypt_hash) is False

    def test_hash_format(self, hasher, bcrypt_hash, pbkdf2_hash):
        assert hasher.hash_format(bcrypt_hash) == "bcrypt"
        assert hasher.hash_format(pbkdf2_hash) == "pbkdf2"
        assert hasher.hash_format("plaintext") is None
        assert hasher.hash_format("") is None


class TestHashing:
    """Hashing the same password twice gives two hashes that both verify."""

    @pytest.mark.parametrize("runtime", list(RuntimeEnvironment))
    async def test_repeat_hashes_differ_and_verify(self, runtime):
        hasher = PasswordHasher(runtime, bcrypt_rounds=4)
        first = await hasher.hash("same password")
        second = await hasher.hash("same password")

        assert first != second
        assert await hasher.verify("same password", first) is True
        assert await hasher.verify("same password", second) is True


class TestUnrecognizedHashes:
    """Prefix dispatch never falls back to another algorithm."""

    @pytest.mark.parametrize("runtime", list(RuntimeEnvironment))
    @pytest.mark.parametrize("stored", [
        "",
        "plaintext-password",
        "sha256:deadbeef",
        PBKDF2_PREFIX + "not base64!!",
        PBKDF2_PREFIX + base64.b64encode(b"too short").decode(),
    ])
    async def test_raises_reset_required(self, runtime, stored):
        hasher = PasswordHasher(runtime, bcrypt_rounds=4)
        with pytest.raises(HashFormatUnrecognizedError):
            await hasher.verify("anything", stored)

    def test_reset_errors_share_a_base(self):
        assert issubclass(HashFormatUnrecognizedError, PasswordResetRequired)
        assert issubclass(HashIncompatibleError, PasswordResetRequired)
