"""
nftsettle/core/typed_data.py

EIP-712 Typed Structured Data Hashing

THIS FILE DEFINES THE WIRE FORMAT.
Changing a struct's field list, order or types changes every digest and
invalidates every signature issued against it.

Struct types are declared here as ordered field lists. The encoding itself
is eth-account's ``encode_typed_data`` (the same encoder wallets use for
``eth_signTypedData_v4``) and eth-abi's packed encoder.

CONTRACT 1 — Domain
    domainSeparator = hashStruct(EIP712Domain{name, version, chainId,
                                              verifyingContract})
    Two deployments (different chain or different verifying contract)
    never share a separator, so their digests are never interchangeable.

CONTRACT 2 — Struct
    hashStruct(s) = keccak256(typeHash(S) ‖ enc(field_1) ‖ … ‖ enc(field_n))
    typeHash(S)   = keccak256("S(type_1 name_1,…,type_n name_n)")

CONTRACT 3 — Digest
    digest = keccak256(0x19 ‖ 0x01 ‖ domainSeparator ‖ hashStruct(s))

CONTRACT 4 — Packed commitment
    solidity_keccak(types, values) = keccak256(abi.encodePacked(values...))
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from eth_abi.packed import encode_packed
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak, to_checksum_address


# ─────────────────────────────────────────────────────────────
# Struct Types
# ─────────────────────────────────────────────────────────────

class StructType:
    """
    An EIP-712 struct type: a name plus an ordered list of (name, type).

    Only atomic fields and dynamic bytes/string are used by the order
    types; nested structs and arrays are never declared.
    """

    def __init__(self, name: str, fields: Sequence[Tuple[str, str]]) -> None:
        if not fields:
            raise ValueError(f"struct {name} must declare at least one field")
        names = [f for f, _ in fields]
        if len(set(names)) != len(names):
            raise ValueError(f"struct {name} declares duplicate field names")
        self.name   = name
        self.fields = tuple(fields)
        self._type_hash = keccak(text=self.encode_type())

    def encode_type(self) -> str:
        inner = ",".join(f"{type_} {name}" for name, type_ in self.fields)
        return f"{self.name}({inner})"

    @property
    def type_hash(self) -> bytes:
        return self._type_hash

    @property
    def types(self) -> Dict[str, List[Dict[str, str]]]:
        """The ``types`` mapping eth-account expects for this struct."""
        return {self.name: [{"name": name, "type": type_} for name, type_ in self.fields]}

    def check_values(self, values: Mapping[str, Any]) -> None:
        # eth-account encodes a missing bytes/string member as empty
        missing = [name for name, _ in self.fields if name not in values]
        if missing:
            raise KeyError(f"{self.name} missing fields: {missing}")

    def hash_struct(self, values: Mapping[str, Any]) -> bytes:
        self.check_values(values)
        # The body of the signable envelope is hashStruct; the domain is unused
        return bytes(
            encode_typed_data(domain_data={}, message_types=self.types, message_data=dict(values)).body
        )

    def __repr__(self) -> str:
        return f"StructType({self.encode_type()})"


# ─────────────────────────────────────────────────────────────
# Domain
# ─────────────────────────────────────────────────────────────

EIP712_DOMAIN = StructType(
    "EIP712Domain",
    [
        ("name",              "string"),
        ("version",           "string"),
        ("chainId",           "uint256"),
        ("verifyingContract", "address"),
    ],
)


@dataclass(frozen=True)
class TypedDataDomain:
    """Namespace every digest is bound to."""

    name:               str
    version:            str
    chain_id:           int
    verifying_contract: str

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "verifying_contract", to_checksum_address(self.verifying_contract)
        )

    def domain_data(self) -> Dict[str, Any]:
        return {
            "name":              self.name,
            "version":           self.version,
            "chainId":           self.chain_id,
            "verifyingContract": self.verifying_contract,
        }

    def separator(self) -> bytes:
        return EIP712_DOMAIN.hash_struct(self.domain_data())

    def signable(self, struct: StructType, values: Mapping[str, Any]) -> SignableMessage:
        """EIP-191 version 0x01 envelope, signable with eth-account."""
        struct.check_values(values)
        return encode_typed_data(
            domain_data=   self.domain_data(),
            message_types= struct.types,
            message_data=  dict(values),
        )

    def digest(self, struct: StructType, values: Mapping[str, Any]) -> bytes:
        message = self.signable(struct, values)
        return keccak(b"\x19" + message.version + message.header + message.body)


# ─────────────────────────────────────────────────────────────
# Packed Encoding
# ─────────────────────────────────────────────────────────────

def solidity_keccak(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """keccak256(abi.encodePacked(values...))"""
    return keccak(encode_packed(list(types), list(values)))
