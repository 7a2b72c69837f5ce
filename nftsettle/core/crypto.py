"""
nftsettle/core/crypto.py

secp256k1 Cryptographic Layer

Key contracts:
    address                 : @property → EIP-55 checksum address  (NO parentheses)
    sign_hash(digest)       : 32-byte digest → 65-byte signature r ‖ s ‖ v (v ∈ {27, 28})
    recover_signer(...)     : module function — recovers the signing address or None
    verify_signature(...)   : module function — True iff the digest recovers to the signer

Signatures are over EIP-712 digests computed by typed_data.py. The key
manager never hashes: callers pass the final 32-byte digest.

Fail-closed rule:
    recover_signer() and verify_signature() NEVER raise. Wrong length,
    invalid v, s in the upper half of the curve order, out-of-range r/s
    or any backend error all produce None / False.
"""

import secrets
from typing import Optional, Union

from eth_keys import keys
from eth_utils import to_checksum_address

# secp256k1 group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_HALF_N     = SECP256K1_N // 2

_SIGNATURE_LENGTH = 65
_DIGEST_LENGTH    = 32


class Secp256k1KeyManager:
    """
    secp256k1 key manager for makers, takers and brokers.

    Public surface:
        Secp256k1KeyManager.generate()                → new random key
        Secp256k1KeyManager.from_private_bytes(raw)   → load from raw 32-byte key
        Secp256k1KeyManager.from_hex(hex_str)         → load from 0x-hex private key

        key.address               (@property) → checksum address
        key.sign_hash(digest)                 → 65-byte signature
        key.private_bytes_raw()               → raw 32-byte key
    """

    def __init__(self, private_key: keys.PrivateKey) -> None:
        self._private_key: keys.PrivateKey = private_key
        # Cached at construction
        self._address: str = private_key.public_key.to_checksum_address()

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def generate(cls) -> "Secp256k1KeyManager":
        """Generate a new random key pair."""
        while True:
            raw = secrets.token_bytes(32)
            if 0 < int.from_bytes(raw, "big") < SECP256K1_N:
                return cls(keys.PrivateKey(raw))

    @classmethod
    def from_private_bytes(cls, raw: bytes) -> "Secp256k1KeyManager":
        """
        Load a key from a raw 32-byte private key.
        Raises ValueError if raw is not 32 bytes or outside the curve order.
        """
        if len(raw) != 32:
            raise ValueError(
                f"secp256k1 private key must be 32 bytes, got {len(raw)}"
            )
        if not 0 < int.from_bytes(raw, "big") < SECP256K1_N:
            raise ValueError("secp256k1 private key out of range")
        return cls(keys.PrivateKey(raw))

    @classmethod
    def from_hex(cls, hex_str: str) -> "Secp256k1KeyManager":
        """Load a key from a hex string, with or without 0x prefix."""
        if hex_str.startswith(("0x", "0X")):
            hex_str = hex_str[2:]
        return cls.from_private_bytes(bytes.fromhex(hex_str))

    # ── Identity ──────────────────────────────────────────────

    @property
    def address(self) -> str:
        """
        EIP-55 checksum address of this key.

        THIS IS A @property — access as key.address (NO parentheses).
        """
        return self._address

    # ── Signing ───────────────────────────────────────────────

    def sign_hash(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte digest. Returns r ‖ s ‖ v with v ∈ {27, 28}.

        The digest must already be the final EIP-712 digest; no prefix
        or extra hashing is applied here.
        """
        if len(digest) != _DIGEST_LENGTH:
            raise ValueError(
                f"digest must be {_DIGEST_LENGTH} bytes, got {len(digest)}"
            )
        sig = self._private_key.sign_msg_hash(digest)
        return (
            sig.r.to_bytes(32, "big")
            + sig.s.to_bytes(32, "big")
            + bytes([sig.v + 27])
        )

    def private_bytes_raw(self) -> bytes:
        """
        Return the raw 32-byte private key.
        Use only for secure backup — never log or transmit.
        """
        return self._private_key.to_bytes()

    def __repr__(self) -> str:
        return f"Secp256k1KeyManager(address={self._address})"


# ── Recovery ──────────────────────────────────────────────────

def _coerce_signature(signature: Union[bytes, str, None]) -> Optional[bytes]:
    if isinstance(signature, str):
        text = signature[2:] if signature.startswith(("0x", "0X")) else signature
        try:
            return bytes.fromhex(text)
        except ValueError:
            return None
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    return None


def recover_signer(digest: bytes, signature: Union[bytes, str]) -> Optional[str]:
    """
    Recover the checksum address that produced ``signature`` over ``digest``.

    Returns None for ANY failure. Never raises.
    """
    try:
        if not isinstance(digest, (bytes, bytearray)) or len(digest) != _DIGEST_LENGTH:
            return None
        raw = _coerce_signature(signature)
        if raw is None or len(raw) != _SIGNATURE_LENGTH:
            return None

        r = int.from_bytes(raw[0:32], "big")
        s = int.from_bytes(raw[32:64], "big")
        v = raw[64]
        if v >= 27:
            v -= 27
        if v not in (0, 1):
            return None
        if not (0 < r < SECP256K1_N) or not (0 < s <= _HALF_N):
            return None

        sig = keys.Signature(vrs=(v, r, s))
        public_key = sig.recover_public_key_from_msg_hash(bytes(digest))
        return public_key.to_checksum_address()

    except Exception:
        return None


def verify_signature(
    digest:          bytes,
    signature:       Union[bytes, str],
    expected_signer: str,
) -> bool:
    """
    True iff ``signature`` over ``digest`` recovers to ``expected_signer``.

    False for ANY failure — malformed signature, malformed expected address,
    signature over a different digest. Never raises.
    """
    recovered = recover_signer(digest, signature)
    if recovered is None:
        return False
    try:
        return recovered == to_checksum_address(expected_signer)
    except Exception:
        return False
