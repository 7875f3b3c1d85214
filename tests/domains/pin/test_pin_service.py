"""Tests for transfer PIN hashing, verification and legacy hash upgrade."""

import hashlib
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.domains.pin.hashing import (
    LegacySha256PinHasher,
    Pbkdf2PinHasher,
    PinHashScheme,
    constant_time_equals,
)
from src.domains.pin.service import INCORRECT, INVALID_FORMAT, NOT_SET, PinService

USER = "880e8400-e29b-41d4-a716-446655440003"

# Low work factor keeps the tests fast; the format is unchanged
FAST_SCHEME = PinHashScheme(current=Pbkdf2PinHasher(iterations=1_000))


class FakeStore:
    """In-memory stand-in for the profile columns the PIN service touches."""

    def __init__(self, hashes: dict[str, str | None]):
        self.hashes = hashes
        self.writes: list[tuple[str, str]] = []

    async def customer_profile(self, user_id):
        if user_id not in self.hashes:
            return None
        return MagicMock(transfer_pin_hash=self.hashes[user_id])

    async def set_pin_hash(self, user_id, pin_hash):
        if user_id not in self.hashes:
            return False
        self.hashes[user_id] = pin_hash
        self.writes.append((user_id, pin_hash))
        return True


@pytest.fixture
def service():
    return PinService(FAST_SCHEME)


def _patched(store):
    return patch("src.domains.pin.service.RuleStore", return_value=store)


class TestHashers:
    def test_pbkdf2_matches_reference(self):
        expected = hashlib.pbkdf2_hmac("sha512", b"1234", USER.encode(), 100_000, dklen=64).hex()
        assert Pbkdf2PinHasher().hash("1234", USER) == expected
        assert len(expected) == 128

    def test_legacy_format(self):
        expected = hashlib.sha256(f"{USER}:1234".encode()).hexdigest()
        assert LegacySha256PinHasher().hash("1234", USER) == expected

    def test_salted_by_user(self):
        hasher = Pbkdf2PinHasher(iterations=1_000)
        assert hasher.hash("1234", "user-a") != hasher.hash("1234", "user-b")

    def test_constant_time_equals(self):
        assert constant_time_equals("ab01", "ab01")
        assert not constant_time_equals("ab01", "ab02")
        assert not constant_time_equals("ab01", "ab0102")
        assert not constant_time_equals("zz", "zz")


class TestSetPin:
    @pytest.mark.asyncio
    async def test_round_trip(self, service):
        store = FakeStore({USER: None})
        with _patched(store):
            assert (await service.set_pin(AsyncMock(), USER, "4821")).success
            result = await service.verify_pin(AsyncMock(), USER, "4821")
        assert result.verified is True
        assert len(store.hashes[USER]) == 128

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pin", ["", "123", "12345", "12a4", "１２３４", "1234\n"])
    async def test_invalid_format(self, service, pin):
        store = FakeStore({USER: None})
        with _patched(store):
            result = await service.set_pin(AsyncMock(), USER, pin)
        assert result.success is False
        assert result.error == INVALID_FORMAT
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_missing_profile(self, service):
        with _patched(FakeStore({})):
            result = await service.set_pin(AsyncMock(), USER, "4821")
        assert result.success is False

    @pytest.mark.asyncio
    async def test_has_pin(self, service):
        with _patched(FakeStore({USER: None, "other": "ab" * 64})):
            assert await service.has_pin(AsyncMock(), USER) is False
            assert await service.has_pin(AsyncMock(), "other") is True


class TestVerifyPin:
    @pytest.mark.asyncio
    async def test_wrong_pin_has_no_side_effects(self, service):
        stored = FAST_SCHEME.hash("4821", USER)
        store = FakeStore({USER: stored})
        with _patched(store):
            result = await service.verify_pin(AsyncMock(), USER, "0000")
        assert result.verified is False
        assert result.error == INCORRECT
        assert store.writes == []
        assert store.hashes[USER] == stored

    @pytest.mark.asyncio
    async def test_no_pin_set(self, service):
        with _patched(FakeStore({USER: None})):
            result = await service.verify_pin(AsyncMock(), USER, "4821")
        assert result.error == NOT_SET

    @pytest.mark.asyncio
    async def test_invalid_format_before_lookup(self, service):
        store = MagicMock()
        store.customer_profile = AsyncMock()
        with _patched(store):
            result = await service.verify_pin(AsyncMock(), USER, "12")
        assert result.error == INVALID_FORMAT
        store.customer_profile.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_legacy_hash_upgraded_once(self, service):
        legacy = hashlib.sha256(f"{USER}:4821".encode()).hexdigest()
        store = FakeStore({USER: legacy})

        with _patched(store):
            first = await service.verify_pin(AsyncMock(), USER, "4821")
            assert first.verified is True
            assert len(store.writes) == 1
            assert len(store.hashes[USER]) == 128

            second = await service.verify_pin(AsyncMock(), USER, "4821")
            assert second.verified is True
            assert len(store.writes) == 1

    @pytest.mark.asyncio
    async def test_legacy_hash_wrong_pin_not_upgraded(self, service):
        legacy = hashlib.sha256(f"{USER}:4821".encode()).hexdigest()
        store = FakeStore({USER: legacy})
        with _patched(store):
            result = await service.verify_pin(AsyncMock(), USER, "1111")
        assert result.verified is False
        assert store.hashes[USER] == legacy

    @pytest.mark.asyncio
    async def test_validate_pin_for_user(self, service):
        store = FakeStore({USER: FAST_SCHEME.hash("4821", USER)})
        with _patched(store):
            assert await service.validate_pin_for_user(AsyncMock(), USER, "4821") is True
            assert await service.validate_pin_for_user(AsyncMock(), USER, "4822") is False


class RecordingHasher(Pbkdf2PinHasher):
    """Fast PBKDF2 hasher that records the thread of every call."""

    def __init__(self):
        super().__init__(iterations=1_000)
        self.threads: list[int] = []

    def hash(self, pin, user_id):
        self.threads.append(threading.get_ident())
        return super().hash(pin, user_id)


class TestSchemeVerify:
    def test_current_hash_computed_for_legacy_stored_hash(self):
        hasher = RecordingHasher()
        scheme = PinHashScheme(current=hasher)
        legacy = hashlib.sha256(f"{USER}:4821".encode()).hexdigest()

        outcome = scheme.verify("4821", USER, legacy)

        assert outcome.matched is True
        assert len(hasher.threads) == 1
        assert outcome.upgraded_hash == Pbkdf2PinHasher(iterations=1_000).hash("4821", USER)

    def test_current_hash_computed_when_legacy_pin_wrong(self):
        hasher = RecordingHasher()
        scheme = PinHashScheme(current=hasher)
        legacy = hashlib.sha256(f"{USER}:4821".encode()).hexdigest()

        outcome = scheme.verify("1111", USER, legacy)

        assert outcome.matched is False
        assert outcome.upgraded_hash is None
        assert len(hasher.threads) == 1

    def test_current_hash_not_upgraded(self):
        scheme = PinHashScheme(current=RecordingHasher())
        outcome = scheme.verify("4821", USER, scheme.hash("4821", USER))
        assert outcome.matched is True
        assert outcome.upgraded_hash is None


class TestHashingOffLoop:
    @pytest.mark.asyncio
    async def test_verify_hashes_in_worker_thread(self):
        hasher = RecordingHasher()
        service = PinService(PinHashScheme(current=hasher))
        store = FakeStore({USER: Pbkdf2PinHasher(iterations=1_000).hash("4821", USER)})

        with _patched(store):
            result = await service.verify_pin(AsyncMock(), USER, "4821")

        assert result.verified is True
        assert hasher.threads
        assert threading.get_ident() not in hasher.threads

    @pytest.mark.asyncio
    async def test_set_pin_hashes_in_worker_thread(self):
        hasher = RecordingHasher()
        service = PinService(PinHashScheme(current=hasher))
        store = FakeStore({USER: None})

        with _patched(store):
            result = await service.set_pin(AsyncMock(), USER, "4821")

        assert result.success is True
        assert hasher.threads
        assert threading.get_ident() not in hasher.threads
