"""
LEDGERCORE Core Module
Transaction signing identities and Merkle commitments.
"""

from .hashing import Hash, sha256
from .keys import (
    PrivateKey,
    PublicKey,
    Signature,
    KeyDecodingError,
    InvalidKeyEncoding,
    SignatureDecodingError,
    generate_keypair,
    derive_public_key,
    sign,
    verify,
    verify_signature,
)
from .merkle import MerkleRoot, EmptyCommitmentError, compute_root

__all__ = [
    'Hash',
    'sha256',
    'PrivateKey',
    'PublicKey',
    'Signature',
    'KeyDecodingError',
    'InvalidKeyEncoding',
    'SignatureDecodingError',
    'generate_keypair',
    'derive_public_key',
    'sign',
    'verify',
    'verify_signature',
    'MerkleRoot',
    'EmptyCommitmentError',
    'compute_root',
]
