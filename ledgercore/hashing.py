"""
LEDGERCORE Hashing
SHA-256 digests and the fixed-width Hash value shared by signing and Merkle code.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Iterable, Union

import config


# ============================================================================
# HASHING FUNCTIONS
# ============================================================================

def sha256(data: bytes) -> bytes:
    """Single SHA-256 hash."""
    return hashlib.sha256(data).digest()


def transaction_bytes(transaction: Any) -> bytes:
    """
    Get the canonical byte form of a transaction.

    Args:
        transaction: Raw bytes, or an object with a serialize() method

    Returns:
        Bytes to be hashed as a Merkle leaf

    Raises:
        TypeError: If the transaction has no canonical byte form
    """
    if isinstance(transaction, (bytes, bytearray, memoryview)):
        return bytes(transaction)

    serialize = getattr(transaction, 'serialize', None)
    if callable(serialize):
        data = serialize()
        if isinstance(data, (bytes, bytearray, memoryview)):
            return bytes(data)
        raise TypeError(
            f"{type(transaction).__name__}.serialize() returned "
            f"{type(data).__name__}, expected bytes"
        )

    raise TypeError(
        f"Cannot hash {type(transaction).__name__}: "
        "expected bytes or an object with serialize()"
    )


# ============================================================================
# HASH VALUE
# ============================================================================

@dataclass(frozen=True)
class Hash:
    """32-byte SHA-256 digest."""

    digest: bytes

    def __post_init__(self):
        if isinstance(self.digest, (bytearray, memoryview)):
            object.__setattr__(self, 'digest', bytes(self.digest))
        elif not isinstance(self.digest, bytes):
            raise TypeError(f"Hash digest must be bytes, got {type(self.digest).__name__}")
        if len(self.digest) != config.HASH_SIZE:
            raise ValueError(
                f"Hash must be {config.HASH_SIZE} bytes (got {len(self.digest)})"
            )

    @classmethod
    def hash(cls, data: Any) -> 'Hash':
        """Hash raw bytes or a transaction's canonical encoding."""
        return cls(sha256(transaction_bytes(data)))

    @classmethod
    def hash_many(cls, hashes: Iterable['Hash']) -> 'Hash':
        """Hash the concatenation of a sequence of hashes (internal nodes)."""
        hasher = hashlib.sha256()
        for h in hashes:
            hasher.update(h.digest)
        return cls(hasher.digest())

    @classmethod
    def combine(cls, left: 'Hash', right: 'Hash') -> 'Hash':
        """Hash of left || right."""
        return cls(sha256(left.digest + right.digest))

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Hash':
        return cls(data)

    @classmethod
    def from_hex(cls, value: str) -> 'Hash':
        """
        Parse a hex-encoded digest.

        Raises:
            ValueError: If the string is not 64 hex characters
        """
        return cls(bytes.fromhex(value))

    def as_bytes(self) -> bytes:
        return self.digest

    def hex(self) -> str:
        return self.digest.hex()

    def __bytes__(self) -> bytes:
        return self.digest

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Hash({self.hex()})"


DigestLike = Union[Hash, bytes]


def digest_bytes(digest: DigestLike) -> bytes:
    """
    Normalize a digest argument to its 32 raw bytes.

    Raises:
        TypeError: If digest is neither a Hash nor bytes
        ValueError: If raw bytes have the wrong width
    """
    if isinstance(digest, Hash):
        return digest.digest
    if isinstance(digest, (bytes, bytearray, memoryview)):
        data = bytes(digest)
        if len(data) != config.HASH_SIZE:
            raise ValueError(
                f"Digest must be {config.HASH_SIZE} bytes (got {len(data)})"
            )
        return data
    raise TypeError(f"Expected Hash or bytes digest, got {type(digest).__name__}")
