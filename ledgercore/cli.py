"""
LEDGERCORE CLI
Manage signing identities and compute Merkle commitments.

Usage:
    ledgercore keygen [--name NAME | --out FILE]   Generate a new key
    ledgercore pubkey <key>                        Show public key of a stored key
    ledgercore sign <key> <digest>                 Sign a 32-byte hex digest
    ledgercore verify <pubkey> <digest> <sig>      Verify a signature
    ledgercore hash <data> [--hex]                 SHA-256 of data
    ledgercore merkle [tx ...] [--hex]             Merkle root (stdin if no tx given)
    ledgercore info                                Show curve and encoding widths
"""

import sys
import os
import json
import argparse
import logging

from .hashing import Hash
from .keys import PrivateKey, PublicKey, Signature, SignatureDecodingError
from .merkle import compute_root
import config

logger = logging.getLogger(__name__)


class CLIError(Exception):
    """User-facing command failure."""
    pass


def resolve_key_path(key: str) -> str:
    """A key argument is either a file path or a stored key name."""
    if os.path.exists(key):
        return key
    return config.get_key_path(key)


def save_key(path: str, private_key: PrivateKey, force: bool = False):
    """Write key material as JSON, readable by the owner only."""
    if os.path.exists(path) and not force:
        raise CLIError(f"Key file '{path}' already exists (use --force to overwrite)")

    os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'w') as f:
        json.dump(private_key.to_dict_with_private(), f, indent=2)
    logger.info(f"Saved key to {path}")


def load_key(key: str) -> PrivateKey:
    """Load a key by path or name."""
    path = resolve_key_path(key)
    if not os.path.exists(path):
        raise CLIError(f"Key '{key}' not found")

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CLIError(f"Cannot read key file '{path}': {e}")

    if not isinstance(data, dict):
        raise CLIError(f"Key file '{path}' is not a JSON object")
    return PrivateKey.from_dict(data)


def parse_digest(value: str) -> Hash:
    try:
        return Hash.from_hex(value)
    except ValueError:
        raise CLIError(f"Digest must be {config.HASH_SIZE * 2} hex characters")


def parse_data(value: str, is_hex: bool) -> bytes:
    if not is_hex:
        return value.encode('utf-8')
    try:
        return bytes.fromhex(value)
    except ValueError:
        raise CLIError(f"Not valid hex: {value!r}")


def cmd_keygen(args) -> int:
    """Generate a new key."""
    private_key = PrivateKey.generate()
    public_key = private_key.public_key()

    path = args.out or (config.get_key_path(args.name) if args.name else None)
    if path:
        save_key(path, private_key, force=args.force)
        print(f"✓ Key saved to {path}")
    else:
        print("⚠️  Private key (store it securely):")
        print(f"  {private_key.to_hex()}")

    print(f"Public Key: {public_key.to_hex()}")
    return 0


def cmd_pubkey(args) -> int:
    """Show the public key of a stored key."""
    print(load_key(args.key).public_key().to_hex())
    return 0


def cmd_sign(args) -> int:
    """Sign a digest."""
    private_key = load_key(args.key)
    signature = private_key.sign(parse_digest(args.digest))
    print(signature.to_der().hex() if args.der else signature.to_hex())
    return 0


def cmd_verify(args) -> int:
    """Verify a signature. Exit status 0 when valid."""
    public_key = PublicKey.from_hex(args.pubkey)
    if args.der:
        try:
            raw = bytes.fromhex(args.signature)
        except ValueError:
            raise SignatureDecodingError("Signature is not valid hex")
        signature = Signature.from_der(raw)
    else:
        signature = Signature.from_hex(args.signature)

    if signature.verify(parse_digest(args.digest), public_key):
        print("✓ Signature valid")
        return 0
    print("✗ Signature invalid")
    return 1


def cmd_hash(args) -> int:
    """Hash data."""
    print(Hash.hash(parse_data(args.data, args.hex)).hex())
    return 0


def cmd_merkle(args) -> int:
    """Compute a Merkle root."""
    items = args.transactions
    if not items:
        # one transaction per line, taken verbatim apart from the line ending
        items = [line.rstrip('\r\n') for line in sys.stdin]
        items = [item for item in items if item]

    transactions = [parse_data(item, args.hex) for item in items]
    root = compute_root(transactions, max_workers=args.workers)
    print(root.hex())
    return 0


def cmd_info(args) -> int:
    """Show curve and encoding widths."""
    print(f"\n{config.CLIENT_NAME} v{config.CLIENT_VERSION}")
    print("═" * 40)
    for name, value in config.get_encoding_widths().items():
        suffix = '' if isinstance(value, str) else ' bytes'
        print(f"  {name:<12} {value}{suffix}")
    print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ledgercore',
        description=f'{config.CLIENT_NAME}',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # keygen
    p_keygen = subparsers.add_parser('keygen', help='Generate a new key')
    target = p_keygen.add_mutually_exclusive_group()
    target.add_argument('--name', '-n', help='Store under this name in the data directory')
    target.add_argument('--out', '-o', help='Write key file to this path')
    p_keygen.add_argument('--force', action='store_true', help='Overwrite an existing key file')
    p_keygen.set_defaults(func=cmd_keygen)

    # pubkey
    p_pubkey = subparsers.add_parser('pubkey', help='Show public key of a stored key')
    p_pubkey.add_argument('key', help='Key file path or key name')
    p_pubkey.set_defaults(func=cmd_pubkey)

    # sign
    p_sign = subparsers.add_parser('sign', help='Sign a digest')
    p_sign.add_argument('key', help='Key file path or key name')
    p_sign.add_argument('digest', help='32-byte digest (hex)')
    p_sign.add_argument('--der', action='store_true', help='Output DER instead of r||s')
    p_sign.set_defaults(func=cmd_sign)

    # verify
    p_verify = subparsers.add_parser('verify', help='Verify a signature')
    p_verify.add_argument('pubkey', help='Public key (hex)')
    p_verify.add_argument('digest', help='32-byte digest (hex)')
    p_verify.add_argument('signature', help='Signature (hex)')
    p_verify.add_argument('--der', action='store_true', help='Signature is DER encoded')
    p_verify.set_defaults(func=cmd_verify)

    # hash
    p_hash = subparsers.add_parser('hash', help='SHA-256 of data')
    p_hash.add_argument('data', help='Data to hash')
    p_hash.add_argument('--hex', action='store_true', help='Data is hex encoded')
    p_hash.set_defaults(func=cmd_hash)

    # merkle
    p_merkle = subparsers.add_parser('merkle', help='Merkle root of transactions')
    p_merkle.add_argument('transactions', nargs='*', help='Transactions (stdin lines, kept verbatim, if omitted)')
    p_merkle.add_argument('--hex', action='store_true', help='Transactions are hex encoded')
    p_merkle.add_argument('--workers', '-w', type=int, help='Hashing threads for large batches')
    p_merkle.set_defaults(func=cmd_merkle)

    # info
    p_info = subparsers.add_parser('info', help='Show curve and encoding widths')
    p_info.set_defaults(func=cmd_info)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format=config.LOG_FORMAT,
    )

    if not getattr(args, 'func', None):
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except (CLIError, ValueError) as e:
        # decoding and empty-batch errors are ValueErrors
        print(f"❌ {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
