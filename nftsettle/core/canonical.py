"""
nftsettle: Canonical JSON Encoding — RFC 8785 (JCS)

Used for event identity and machine-readable CLI output.
Order hashing does NOT go through here; orders are hashed as EIP-712
typed data (see typed_data.py).

RFC 8785: https://www.rfc-editor.org/rfc/rfc8785
"""

import hashlib

import jcs as _jcs


def canonicalize(obj: dict) -> bytes:
    """
    Encode a dict to RFC 8785 canonical JSON bytes.

    All values must be JSON-primitive (str, int, bool, None, list, dict).
    Integers above 2**53 lose precision under JCS, so callers pass large
    on-chain quantities as decimal strings.
    """
    return _jcs.canonicalize(obj)


def canonical_hash(obj: dict) -> str:
    """Lowercase hex SHA-256 of the RFC 8785 canonical form."""
    return hashlib.sha256(canonicalize(obj)).hexdigest()
