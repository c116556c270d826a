"""
LEDGERCORE Merkle Commitments
Deterministic Merkle root over an ordered batch of transactions.
"""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .hashing import Hash
import config

logger = logging.getLogger(__name__)


class EmptyCommitmentError(ValueError):
    """Merkle root requested for an empty transaction batch."""
    pass


def _pair_hash(pair: Sequence[Hash]) -> Hash:
    return Hash.combine(pair[0], pair[1])


def _map(executor: Optional[Executor], func: Callable, items: Iterable) -> List:
    # Executor.map keeps input order and returns only once every item is done
    if executor is None:
        return [func(item) for item in items]
    return list(executor.map(func, items))


def _next_layer(layer: List[Hash], executor: Optional[Executor]) -> List[Hash]:
    """Hash adjacent pairs; an odd last element is paired with itself."""
    pairs = []
    for i in range(0, len(layer), 2):
        left = layer[i]
        right = layer[i + 1] if i + 1 < len(layer) else left
        pairs.append((left, right))
    return _map(executor, _pair_hash, pairs)


def _reduce(leaves: List[Hash], executor: Optional[Executor]) -> Hash:
    layer = leaves
    while len(layer) > 1:
        layer = _next_layer(layer, executor)
    return layer[0]


def compute_root(transactions: Iterable[Any], max_workers: Optional[int] = None) -> 'MerkleRoot':
    """
    Calculate the Merkle root of an ordered transaction batch.

    Leaves are Hash(transaction) in input order. Each layer hashes adjacent
    pairs; an unpaired last node is hashed with itself. Batches of at least
    MERKLE_PARALLEL_THRESHOLD transactions are hashed on a thread pool, one
    layer at a time.

    Args:
        transactions: Non-empty sequence of bytes or objects with serialize()
        max_workers: Worker threads for large batches (default: config);
            1 forces sequential hashing

    Returns:
        MerkleRoot

    Raises:
        EmptyCommitmentError: If transactions is empty
        TypeError: If a transaction has no canonical byte form
    """
    batch = list(transactions)
    if not batch:
        raise EmptyCommitmentError("Cannot compute Merkle root of an empty transaction list")

    workers = config.MERKLE_MAX_WORKERS if max_workers is None else max_workers
    if workers < 1:
        raise ValueError(f"max_workers must be at least 1 (got {workers})")

    if workers > 1 and len(batch) >= config.MERKLE_PARALLEL_THRESHOLD:
        logger.debug(f"Hashing {len(batch)} transactions on {workers} threads")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            leaves = _map(executor, Hash.hash, batch)
            root = _reduce(leaves, executor)
    else:
        logger.debug(f"Hashing {len(batch)} transactions")
        root = _reduce(_map(None, Hash.hash, batch), None)

    return MerkleRoot(root)


@dataclass(frozen=True)
class MerkleRoot:
    """Merkle root commitment over a transaction batch."""

    root: Hash

    @classmethod
    def compute(cls, transactions: Iterable[Any], max_workers: Optional[int] = None) -> 'MerkleRoot':
        return compute_root(transactions, max_workers=max_workers)

    # Name used by block assembly code
    calculate = compute

    def validate(self, transactions: Iterable[Any]) -> bool:
        """Check that this root commits to exactly these transactions."""
        try:
            return compute_root(transactions) == self
        except EmptyCommitmentError:
            logger.debug("Empty transaction list cannot match a Merkle root")
            return False

    def as_bytes(self) -> bytes:
        return self.root.as_bytes()

    def hex(self) -> str:
        return self.root.hex()

    @classmethod
    def from_hex(cls, value: str) -> 'MerkleRoot':
        return cls(Hash.from_hex(value))

    def to_dict(self) -> Dict[str, Any]:
        return {'merkle_root': self.hex()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MerkleRoot':
        return cls.from_hex(data['merkle_root'])

    def __str__(self) -> str:
        return self.hex()
