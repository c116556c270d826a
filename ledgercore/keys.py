"""
LEDGERCORE Identities
ECDSA secp256k1 keys and signatures over transaction digests.

Signing uses RFC 6979 deterministic nonces and always emits low-S
signatures; verification is a total boolean check.
"""

import logging
import secrets
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Dict

from ecdsa import SECP256k1, SigningKey, VerifyingKey, BadSignatureError, MalformedPointError
from ecdsa.der import UnexpectedDER
from ecdsa.util import (
    sigencode_string,
    sigencode_string_canonize,
    sigdecode_string,
    sigencode_der,
    sigdecode_der,
)

from .hashing import DigestLike, digest_bytes
import config

logger = logging.getLogger(__name__)

CURVE_ORDER = SECP256k1.order
HALF_ORDER = CURVE_ORDER // 2


class KeyDecodingError(ValueError):
    """Malformed private or public key encoding."""
    pass


# Name used by callers that treat this as an encoding failure
InvalidKeyEncoding = KeyDecodingError


class SignatureDecodingError(ValueError):
    """Malformed signature encoding."""
    pass


def _is_valid_scalar(value: int) -> bool:
    return 0 < value < CURVE_ORDER


# ============================================================================
# PUBLIC KEY
# ============================================================================

class PublicKey:
    """Curve point derived from a PrivateKey. Compared by value."""

    __slots__ = ('_verifying_key', '_encoded')

    def __init__(self, verifying_key: VerifyingKey):
        self._verifying_key = verifying_key
        self._encoded = verifying_key.to_string('compressed')

    @classmethod
    def from_bytes(cls, data: bytes) -> 'PublicKey':
        """
        Decode a SEC1 public key.

        Args:
            data: 33-byte compressed or 65-byte uncompressed point

        Returns:
            PublicKey

        Raises:
            KeyDecodingError: If the length is wrong or the point is not on the curve
        """
        data = bytes(data)
        if len(data) == config.PUBLIC_KEY_SIZE:
            if data[0] not in (0x02, 0x03):
                raise KeyDecodingError("Invalid compressed public key prefix")
        elif len(data) == config.UNCOMPRESSED_PUBLIC_KEY_SIZE:
            if data[0] != 0x04:
                raise KeyDecodingError("Invalid uncompressed public key prefix")
        else:
            raise KeyDecodingError(
                f"Public key must be {config.PUBLIC_KEY_SIZE} or "
                f"{config.UNCOMPRESSED_PUBLIC_KEY_SIZE} bytes (got {len(data)})"
            )

        try:
            vk = VerifyingKey.from_string(data, curve=SECP256k1, hashfunc=sha256)
        except MalformedPointError as e:
            raise KeyDecodingError(f"Invalid public key point: {e}")
        return cls(vk)

    @classmethod
    def from_hex(cls, value: str) -> 'PublicKey':
        try:
            data = bytes.fromhex(value)
        except (TypeError, ValueError):
            raise KeyDecodingError("Public key is not a hex string")
        return cls.from_bytes(data)

    def to_bytes(self) -> bytes:
        """Canonical 33-byte compressed encoding."""
        return self._encoded

    def to_uncompressed_bytes(self) -> bytes:
        """65-byte uncompressed encoding (04 prefix + x + y)."""
        return self._verifying_key.to_string('uncompressed')

    def to_hex(self) -> str:
        return self._encoded.hex()

    def to_dict(self) -> Dict[str, Any]:
        return {'public_key': self.to_hex()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PublicKey':
        return cls.from_hex(data['public_key'])

    def verify(self, signature: 'Signature', digest: DigestLike) -> bool:
        """Check a signature against this key. Never raises."""
        if not isinstance(signature, Signature):
            logger.debug(f"Rejecting non-signature {type(signature).__name__}")
            return False
        return signature.verify(digest, self)

    def __eq__(self, other):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self._encoded == other._encoded

    def __hash__(self):
        return hash(self._encoded)

    def __repr__(self):
        return f"PublicKey({self.to_hex()})"


# ============================================================================
# PRIVATE KEY
# ============================================================================

class PrivateKey:
    """
    Secret secp256k1 scalar.

    Never compared for equality and never printed; use to_bytes() for
    explicit export.
    """

    __slots__ = ('_signing_key',)

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key

    @classmethod
    def generate(cls) -> 'PrivateKey':
        """Generate a new key from the OS random source."""
        while True:
            candidate = secrets.token_bytes(config.PRIVATE_KEY_SIZE)
            if _is_valid_scalar(int.from_bytes(candidate, 'big')):
                return cls.from_bytes(candidate)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'PrivateKey':
        """
        Decode a raw 32-byte big-endian scalar.

        Raises:
            KeyDecodingError: If the length is wrong or the scalar is outside 1..n-1
        """
        data = bytes(data)
        if len(data) != config.PRIVATE_KEY_SIZE:
            raise KeyDecodingError(
                f"Private key must be {config.PRIVATE_KEY_SIZE} bytes (got {len(data)})"
            )
        if not _is_valid_scalar(int.from_bytes(data, 'big')):
            raise KeyDecodingError("Private key scalar out of range")

        try:
            sk = SigningKey.from_string(data, curve=SECP256k1, hashfunc=sha256)
        except MalformedPointError as e:
            raise KeyDecodingError(f"Invalid private key: {e}")
        return cls(sk)

    @classmethod
    def from_hex(cls, value: str) -> 'PrivateKey':
        try:
            data = bytes.fromhex(value)
        except (TypeError, ValueError):
            raise KeyDecodingError("Private key is not a hex string")
        return cls.from_bytes(data)

    def to_bytes(self) -> bytes:
        return self._signing_key.to_string()

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def to_dict_with_private(self) -> Dict[str, Any]:
        """Export key material (private key included)."""
        return {
            'private_key': self.to_hex(),
            'public_key': self.public_key().to_hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PrivateKey':
        """
        Load a key exported by to_dict_with_private().

        Raises:
            KeyDecodingError: If the private key is malformed or does not
                match the stored public key
        """
        if 'private_key' not in data:
            raise KeyDecodingError("Missing private_key")
        key = cls.from_hex(data['private_key'])
        stored = data.get('public_key')
        if stored is not None and PublicKey.from_hex(stored) != key.public_key():
            raise KeyDecodingError("Stored public key does not match private key")
        return key

    def public_key(self) -> PublicKey:
        return PublicKey(self._signing_key.get_verifying_key())

    def sign(self, digest: DigestLike) -> 'Signature':
        """
        Sign a 32-byte digest.

        The nonce is derived from (key, digest) per RFC 6979, so the same
        inputs always produce the same signature.

        Args:
            digest: Hash or 32 raw bytes

        Returns:
            Low-S Signature
        """
        message = digest_bytes(digest)
        raw = self._signing_key.sign_deterministic(
            message,
            hashfunc=sha256,
            sigencode=sigencode_string_canonize,
        )
        return Signature.from_bytes(raw)

    def __repr__(self):
        return "PrivateKey(<redacted>)"


# ============================================================================
# SIGNATURE
# ============================================================================

@dataclass(frozen=True)
class Signature:
    """ECDSA (r, s) pair."""

    r: int
    s: int

    def __post_init__(self):
        if not (_is_valid_scalar(self.r) and _is_valid_scalar(self.s)):
            raise SignatureDecodingError("Signature values out of range")

    @classmethod
    def sign_output(cls, output_hash: DigestLike, private_key: PrivateKey) -> 'Signature':
        """Sign a transaction output hash."""
        return private_key.sign(output_hash)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Signature':
        """
        Decode a fixed-width 64-byte r || s signature.

        Raises:
            SignatureDecodingError: If the length or values are invalid
        """
        data = bytes(data)
        if len(data) != config.SIGNATURE_SIZE:
            raise SignatureDecodingError(
                f"Signature must be {config.SIGNATURE_SIZE} bytes (got {len(data)})"
            )
        r, s = sigdecode_string(data, CURVE_ORDER)
        return cls(r, s)

    @classmethod
    def from_hex(cls, value: str) -> 'Signature':
        try:
            data = bytes.fromhex(value)
        except (TypeError, ValueError):
            raise SignatureDecodingError("Signature is not a hex string")
        return cls.from_bytes(data)

    @classmethod
    def from_der(cls, data: bytes) -> 'Signature':
        """
        Decode a DER-encoded signature.

        Raises:
            SignatureDecodingError: If the DER structure is malformed
        """
        try:
            r, s = sigdecode_der(bytes(data), CURVE_ORDER)
        except UnexpectedDER as e:
            raise SignatureDecodingError(f"Invalid DER signature: {e}")
        return cls(r, s)

    def to_bytes(self) -> bytes:
        return sigencode_string(self.r, self.s, CURVE_ORDER)

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def to_der(self) -> bytes:
        return sigencode_der(self.r, self.s, CURVE_ORDER)

    def to_dict(self) -> Dict[str, Any]:
        return {'signature': self.to_hex()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Signature':
        return cls.from_hex(data['signature'])

    @property
    def is_low_s(self) -> bool:
        return self.s <= HALF_ORDER

    def verify(self, output_hash: DigestLike, public_key: PublicKey) -> bool:
        """
        Verify this signature over a digest.

        Returns False for a wrong key, wrong digest, high-S or otherwise
        invalid signature. Never raises.
        """
        if not isinstance(public_key, PublicKey):
            logger.debug(f"Rejecting non-key {type(public_key).__name__}")
            return False

        try:
            message = digest_bytes(output_hash)
        except (TypeError, ValueError) as e:
            logger.debug(f"Rejecting malformed digest: {e}")
            return False

        if not self.is_low_s:
            logger.debug("Rejecting high-S signature")
            return False

        try:
            return public_key._verifying_key.verify(
                self.to_bytes(),
                message,
                hashfunc=sha256,
                sigdecode=sigdecode_string,
            )
        except BadSignatureError:
            logger.debug(f"Signature does not match key {public_key.to_hex()}")
            return False

    def __repr__(self):
        return f"Signature({self.to_hex()})"


# ============================================================================
# OPERATIONS
# ============================================================================

def generate_keypair() -> PrivateKey:
    """Generate a new private key (its public key is derived on demand)."""
    return PrivateKey.generate()


def derive_public_key(private_key: PrivateKey) -> PublicKey:
    return private_key.public_key()


def sign(private_key: PrivateKey, digest: DigestLike) -> Signature:
    """Deterministically sign a digest."""
    return private_key.sign(digest)


def verify(signature: Signature, digest: DigestLike, public_key: PublicKey) -> bool:
    """Verify a signature. Returns False instead of raising."""
    if not isinstance(signature, Signature):
        return False
    return signature.verify(digest, public_key)


def verify_signature(public_key: bytes, digest: DigestLike, signature: bytes) -> bool:
    """
    Verify an encoded signature against an encoded public key.

    Args:
        public_key: Public key (compressed or uncompressed)
        digest: Hash or 32 raw bytes
        signature: 64-byte r || s signature

    Returns:
        True if signature is valid
    """
    try:
        vk = PublicKey.from_bytes(public_key)
        sig = Signature.from_bytes(signature)
    except (KeyDecodingError, SignatureDecodingError, TypeError) as e:
        logger.debug(f"Rejecting undecodable input: {e}")
        return False
    return sig.verify(digest, vk)
