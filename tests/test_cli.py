"""
Tests for the LEDGERCORE command-line tool.
"""

import pytest
import sys
import os
import io
import json

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ledgercore.cli import main
from ledgercore.hashing import Hash
from ledgercore.keys import PrivateKey, PublicKey, Signature
from ledgercore.merkle import compute_root


def last_line(capsys) -> str:
    return capsys.readouterr().out.strip().splitlines()[-1]


class TestKeyCommands:
    """Test key generation and signing commands."""

    @pytest.fixture
    def data_dir(self, tmp_path, monkeypatch):
        monkeypatch.setenv('LEDGERCORE_DATA_DIR', str(tmp_path))
        return tmp_path

    @pytest.fixture
    def key_file(self, tmp_path):
        path = tmp_path / 'alice.json'
        key = PrivateKey.generate()
        path.write_text(json.dumps(key.to_dict_with_private()))
        return path, key

    def test_keygen_named(self, data_dir, capsys):
        """Test storing a generated key by name."""
        assert main(['keygen', '--name', 'alice']) == 0

        path = data_dir / 'keys' / 'alice.json'
        assert path.exists()
        data = json.loads(path.read_text())
        key = PrivateKey.from_dict(data)
        assert key.public_key().to_hex() in capsys.readouterr().out

    def test_keygen_refuses_overwrite(self, data_dir, capsys):
        """Test that an existing key is not overwritten."""
        assert main(['keygen', '--name', 'alice']) == 0
        assert main(['keygen', '--name', 'alice']) == 1
        assert 'already exists' in capsys.readouterr().out
        assert main(['keygen', '--name', 'alice', '--force']) == 0

    def test_keygen_unsaved(self, capsys):
        """Test keygen without a destination prints the key."""
        assert main(['keygen']) == 0
        assert 'Public Key:' in capsys.readouterr().out

    def test_pubkey(self, key_file, capsys):
        """Test showing a stored public key."""
        path, key = key_file

        assert main(['pubkey', str(path)]) == 0
        assert last_line(capsys) == key.public_key().to_hex()

    def test_pubkey_by_name(self, data_dir, capsys):
        """Test resolving a key name from the data directory."""
        main(['keygen', '--name', 'bob'])
        capsys.readouterr()

        assert main(['pubkey', 'bob']) == 0
        PublicKey.from_hex(last_line(capsys))

    def test_missing_key(self, data_dir, capsys):
        """Test that a missing key fails cleanly."""
        assert main(['pubkey', 'nobody']) == 1
        assert 'not found' in capsys.readouterr().out

    @pytest.mark.parametrize("contents", [
        {'private_key': 123},
        {'private_key': ['01']},
        {'private_key': '01' * 32, 'public_key': 42},
    ])
    def test_key_file_wrong_types(self, tmp_path, capsys, contents):
        """Test that a key file with non-string fields fails cleanly."""
        path = tmp_path / 'broken.json'
        path.write_text(json.dumps(contents))

        assert main(['pubkey', str(path)]) == 1
        assert capsys.readouterr().out.startswith('❌')

    def test_sign_and_verify(self, key_file, capsys):
        """Test signing then verifying from the command line."""
        path, key = key_file
        digest = Hash.hash(b"tx").hex()

        assert main(['sign', str(path), digest]) == 0
        signature = last_line(capsys)
        assert Signature.from_hex(signature) == key.sign(Hash.from_hex(digest))

        pubkey = key.public_key().to_hex()
        assert main(['verify', pubkey, digest, signature]) == 0
        assert 'valid' in capsys.readouterr().out

        other = Hash.hash(b"other").hex()
        assert main(['verify', pubkey, other, signature]) == 1
        assert 'invalid' in capsys.readouterr().out

    def test_sign_der(self, key_file, capsys):
        """Test DER output and input."""
        path, key = key_file
        digest = Hash.hash(b"tx").hex()

        assert main(['sign', str(path), digest, '--der']) == 0
        der = last_line(capsys)
        pubkey = key.public_key().to_hex()

        assert main(['verify', pubkey, digest, der, '--der']) == 0

    def test_bad_digest(self, key_file, capsys):
        """Test that a malformed digest is reported."""
        path, _ = key_file

        assert main(['sign', str(path), 'abcd']) == 1
        assert capsys.readouterr().out.startswith('❌')

    def test_bad_public_key(self, capsys):
        """Test that a malformed public key is reported."""
        digest = Hash.hash(b"tx").hex()

        assert main(['verify', '02ff', digest, '00' * 64]) == 1
        assert capsys.readouterr().out.startswith('❌')


class TestHashCommands:
    """Test hashing and Merkle commands."""

    def test_hash(self, capsys):
        """Test hashing a string."""
        assert main(['hash', 'abc']) == 0
        assert last_line(capsys) == Hash.hash(b'abc').hex()

    def test_hash_hex(self, capsys):
        """Test hashing hex-encoded data."""
        assert main(['hash', '616263', '--hex']) == 0
        assert last_line(capsys) == Hash.hash(b'abc').hex()

    def test_merkle_args(self, capsys):
        """Test Merkle root of argument transactions."""
        assert main(['merkle', 'a', 'b', 'c']) == 0
        assert last_line(capsys) == compute_root([b'a', b'b', b'c']).hex()

    def test_merkle_stdin(self, capsys, monkeypatch):
        """Test Merkle root of stdin lines."""
        monkeypatch.setattr(sys, 'stdin', io.StringIO('6161\n6262\n'))

        assert main(['merkle', '--hex']) == 0
        assert last_line(capsys) == compute_root([b'aa', b'bb']).hex()

    def test_merkle_stdin_verbatim(self, capsys, monkeypatch):
        """Test that stdin lines keep their surrounding spaces."""
        monkeypatch.setattr(sys, 'stdin', io.StringIO(' a\nb \n\n'))

        assert main(['merkle']) == 0
        assert last_line(capsys) == compute_root([b' a', b'b ']).hex()

    def test_merkle_empty(self, capsys, monkeypatch):
        """Test that an empty batch is reported, not crashed on."""
        monkeypatch.setattr(sys, 'stdin', io.StringIO(''))

        assert main(['merkle']) == 1
        assert 'empty' in capsys.readouterr().out

    def test_info(self, capsys):
        """Test the info command."""
        assert main(['info']) == 0
        assert 'secp256k1' in capsys.readouterr().out

    def test_no_command(self, capsys):
        """Test that no command prints help."""
        assert main([]) == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
