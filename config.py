"""
LEDGERCORE Configuration
Signing identities and Merkle commitments for ledger transactions.
"""

from typing import Dict, Any
import os


def _env_int(name: str, default: int) -> int:
    """Read an integer override from the environment."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {value!r})")


# ============================================================================
# PROJECT
# ============================================================================

PROJECT_NAME = "LEDGERCORE"

# ============================================================================
# CURVE PARAMETERS
# ============================================================================

# All identities live on secp256k1 (same curve as Bitcoin)
CURVE_NAME = "secp256k1"

# ============================================================================
# ENCODING WIDTHS
# ============================================================================

# Raw big-endian private scalar
PRIVATE_KEY_SIZE = 32

# SEC1 compressed point: 02/03 prefix + x coordinate
PUBLIC_KEY_SIZE = 33

# SEC1 uncompressed point: 04 prefix + x + y (accepted on decode only)
UNCOMPRESSED_PUBLIC_KEY_SIZE = 65

# Fixed-width r || s
SIGNATURE_SIZE = 64

# SHA-256 digest
HASH_SIZE = 32

# ============================================================================
# MERKLE COMMITMENTS
# ============================================================================

# Batches at least this large hash their layers on a thread pool
MERKLE_PARALLEL_THRESHOLD = _env_int('LEDGERCORE_MERKLE_PARALLEL_THRESHOLD', 1024)

# Worker threads for parallel hashing
MERKLE_MAX_WORKERS = _env_int(
    'LEDGERCORE_MERKLE_MAX_WORKERS',
    min(32, (os.cpu_count() or 1) + 4),
)

# ============================================================================
# FILE PATHS
# ============================================================================

def get_data_dir() -> str:
    """Get default data directory."""
    override = os.environ.get('LEDGERCORE_DATA_DIR')
    if override:
        return override

    import platform

    if platform.system() == 'Windows':
        base = os.environ.get('APPDATA', os.path.expanduser('~'))
        dir_name = 'LEDGERCORE'
    elif platform.system() == 'Darwin':
        base = os.path.expanduser('~/Library/Application Support')
        dir_name = 'LEDGERCORE'
    else:
        base = os.path.expanduser('~')
        dir_name = '.ledgercore'

    return os.path.join(base, dir_name)


# Default sub-directory for stored keys
KEYS_DIRNAME = "keys"


def get_keys_dir() -> str:
    """Get directory holding named key files."""
    return os.path.join(get_data_dir(), KEYS_DIRNAME)


def get_key_path(name: str) -> str:
    """Get path of the key file for a named identity."""
    return os.path.join(get_keys_dir(), f'{name}.json')

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.environ.get('LEDGERCORE_LOG_LEVEL', 'WARNING').upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# ============================================================================
# VERSION INFO
# ============================================================================

VERSION = "1.0.0"
VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_PATCH = 0

CLIENT_NAME = f"{PROJECT_NAME} Tools"
CLIENT_VERSION = f"{VERSION_MAJOR}.{VERSION_MINOR}.{VERSION_PATCH}"


def get_encoding_widths() -> Dict[str, Any]:
    """Summarize wire widths of every encoded value."""
    return {
        'curve': CURVE_NAME,
        'private_key': PRIVATE_KEY_SIZE,
        'public_key': PUBLIC_KEY_SIZE,
        'signature': SIGNATURE_SIZE,
        'hash': HASH_SIZE,
    }
