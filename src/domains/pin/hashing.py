"""Versioned PIN hashing.

A ``PinHashScheme`` has one current hasher and any number of legacy
hashers. Stored hashes carry no version tag; the version is recognised by
the hex length of the digest, which differs between every scheme in use.
New schemes are added by making the old current hasher a legacy one.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class PinHasher(ABC):
    name: str
    # Length of the hex digest; identifies which hasher produced a stored hash
    hex_length: int

    @abstractmethod
    def hash(self, pin: str, user_id: str) -> str:
        ...

    def matches(self, pin: str, user_id: str, stored_hash: str) -> bool:
        if len(stored_hash) != self.hex_length:
            return False
        return constant_time_equals(self.hash(pin, user_id), stored_hash)


class Pbkdf2PinHasher(PinHasher):
    """PBKDF2-HMAC with the user id as salt.

    100k iterations make brute-forcing all 10,000 four-digit PINs for one
    user expensive even with the database in hand.
    """

    name = "pbkdf2-sha512"

    def __init__(self, iterations: int = 100_000, key_length: int = 64, digest: str = "sha512"):
        self.iterations = iterations
        self.key_length = key_length
        self.digest = digest
        self.hex_length = key_length * 2

    def hash(self, pin: str, user_id: str) -> str:
        return hashlib.pbkdf2_hmac(
            self.digest,
            pin.encode("utf-8"),
            user_id.encode("utf-8"),
            self.iterations,
            dklen=self.key_length,
        ).hex()


class LegacySha256PinHasher(PinHasher):
    """Single-pass SHA-256 of ``user_id:pin``. Verification only."""

    name = "sha256-legacy"
    hex_length = 64

    def hash(self, pin: str, user_id: str) -> str:
        return hashlib.sha256(f"{user_id}:{pin}".encode()).hexdigest()


def constant_time_equals(a: str, b: str) -> bool:
    try:
        left, right = bytes.fromhex(a), bytes.fromhex(b)
    except ValueError:
        return False
    if len(left) != len(right):
        return False
    return hmac.compare_digest(left, right)


@dataclass
class PinVerification:
    matched: bool
    # Set when the stored hash should be replaced with the current scheme
    upgraded_hash: str | None = None


@dataclass
class PinHashScheme:
    current: PinHasher = field(default_factory=Pbkdf2PinHasher)
    legacy: list[PinHasher] = field(default_factory=lambda: [LegacySha256PinHasher()])

    def hash(self, pin: str, user_id: str) -> str:
        return self.current.hash(pin, user_id)

    def verify(self, pin: str, user_id: str, stored_hash: str) -> PinVerification:
        # Computed on every call; timing must not depend on the stored scheme
        current_hash = self.current.hash(pin, user_id)
        if len(stored_hash) == self.current.hex_length:
            return PinVerification(matched=constant_time_equals(current_hash, stored_hash))

        for hasher in self.legacy:
            if hasher.matches(pin, user_id, stored_hash):
                return PinVerification(matched=True, upgraded_hash=current_hash)

        return PinVerification(matched=False)
