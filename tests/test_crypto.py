"""
tests/test_crypto.py

secp256k1 key manager and fail-closed recovery.

recover_signer() and verify_signature() must never raise: every malformed
input maps to None / False.
"""

import pytest
from eth_utils import keccak

from nftsettle.core.crypto import (
    SECP256K1_N,
    Secp256k1KeyManager,
    recover_signer,
    verify_signature,
)

DIGEST = keccak(text="settlement digest")


@pytest.fixture
def key():
    return Secp256k1KeyManager.from_private_bytes((1).to_bytes(32, "big"))


@pytest.fixture
def signature(key):
    return key.sign_hash(DIGEST)


class TestKeyManager:

    def test_known_address(self, key):
        assert key.address == "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"

    def test_from_hex_matches_from_bytes(self, key):
        assert Secp256k1KeyManager.from_hex("0x" + "00" * 31 + "01").address == key.address

    def test_private_bytes_roundtrip(self, key):
        assert Secp256k1KeyManager.from_private_bytes(key.private_bytes_raw()).address == key.address

    def test_generate_produces_distinct_keys(self):
        assert Secp256k1KeyManager.generate().address != Secp256k1KeyManager.generate().address

    @pytest.mark.parametrize("raw", [b"\x00" * 32, SECP256K1_N.to_bytes(32, "big"), b"\x01" * 31])
    def test_invalid_private_key_rejected(self, raw):
        with pytest.raises(ValueError):
            Secp256k1KeyManager.from_private_bytes(raw)

    def test_signature_layout(self, signature):
        assert len(signature) == 65
        assert signature[64] in (27, 28)

    def test_sign_requires_32_byte_digest(self, key):
        with pytest.raises(ValueError):
            key.sign_hash(b"short")


class TestRecovery:

    def test_recovers_signer(self, key, signature):
        assert recover_signer(DIGEST, signature) == key.address
        assert verify_signature(DIGEST, signature, key.address)

    def test_accepts_hex_signature(self, key, signature):
        assert recover_signer(DIGEST, "0x" + signature.hex()) == key.address

    def test_accepts_raw_recovery_id(self, key, signature):
        raw_v = signature[:64] + bytes([signature[64] - 27])
        assert recover_signer(DIGEST, raw_v) == key.address

    def test_expected_signer_case_insensitive(self, key, signature):
        assert verify_signature(DIGEST, signature, key.address.lower())

    def test_other_digest_does_not_verify(self, key, signature):
        assert not verify_signature(keccak(text="other"), signature, key.address)

    def test_other_signer_does_not_verify(self, signature):
        other = Secp256k1KeyManager.from_private_bytes((2).to_bytes(32, "big"))
        assert not verify_signature(DIGEST, signature, other.address)


class TestFailClosed:

    @pytest.mark.parametrize("bad", [
        b"",
        b"\x00" * 64,
        b"\x00" * 66,
        "0xzz",
        None,
        12345,
    ])
    def test_malformed_signature_returns_none(self, bad):
        assert recover_signer(DIGEST, bad) is None
        assert verify_signature(DIGEST, bad, "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf") is False

    def test_invalid_v_rejected(self, signature):
        assert recover_signer(DIGEST, signature[:64] + bytes([29])) is None

    def test_zero_r_rejected(self, signature):
        assert recover_signer(DIGEST, b"\x00" * 32 + signature[32:]) is None

    def test_high_s_rejected(self, signature):
        s = int.from_bytes(signature[32:64], "big")
        flipped_v = 27 + (1 - (signature[64] - 27))
        malleated = signature[:32] + (SECP256K1_N - s).to_bytes(32, "big") + bytes([flipped_v])
        assert recover_signer(DIGEST, malleated) is None

    def test_bad_digest_length(self, signature):
        assert recover_signer(b"\x00" * 31, signature) is None

    def test_malformed_expected_address(self, signature):
        assert verify_signature(DIGEST, signature, "not-an-address") is False
