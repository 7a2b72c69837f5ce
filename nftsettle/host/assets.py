"""
Asset contracts: the two supported token kinds.

    UniqueAssetContract   ERC-721-like, one owner per id
    MultiAssetContract    ERC-1155-like, per-(owner, id) balances

Both expose the same surface to the settlement engine:

    balance_of(owner, token_id)                         → int
    transfer(caller, from_, to, token_id, quantity)
    mint(caller, to, token_id, quantity)                minters only
    set_approval_for_all(caller, operator, approved)

Transfer failures are distinguishable: an unapproved operator raises
AssetApprovalError before any balance is looked at; a shortfall raises
AssetBalanceError.
"""

from typing import Dict, Iterable, Optional, Set, Tuple

from eth_utils import to_checksum_address

from nftsettle.core.exceptions import (
    AssetApprovalError,
    AssetBalanceError,
    AssetExistsError,
    MinterRoleError,
)
from nftsettle.core.models import ZERO_ADDRESS, TokenType


class _AssetContract:
    token_type = TokenType.BASE

    def __init__(self, address: str, name: str = "", minters: Iterable[str] = ()) -> None:
        self.address = to_checksum_address(address)
        self.name = name
        self._minters: Set[str] = {to_checksum_address(m) for m in minters}
        self._operators: Dict[Tuple[str, str], bool] = {}

    # ── Roles ─────────────────────────────────────────────────

    def grant_minter(self, account: str) -> None:
        self._minters.add(to_checksum_address(account))

    def revoke_minter(self, account: str) -> None:
        self._minters.discard(to_checksum_address(account))

    def is_minter(self, account: str) -> bool:
        return to_checksum_address(account) in self._minters

    def _require_minter(self, caller: str) -> None:
        if not self.is_minter(caller):
            raise MinterRoleError(details={"caller": caller})

    # ── Approvals ─────────────────────────────────────────────

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        key = (to_checksum_address(caller), to_checksum_address(operator))
        self._operators[key] = approved

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        key = (to_checksum_address(owner), to_checksum_address(operator))
        return self._operators.get(key, False)


class MultiAssetContract(_AssetContract):
    token_type = TokenType.MULTI

    def __init__(self, address: str, name: str = "", minters: Iterable[str] = ()) -> None:
        super().__init__(address, name, minters)
        self._balances: Dict[Tuple[str, int], int] = {}

    def balance_of(self, owner: str, token_id: int) -> int:
        return self._balances.get((to_checksum_address(owner), token_id), 0)

    def transfer(self, caller: str, from_: str, to: str, token_id: int, quantity: int) -> None:
        caller, from_, to = (to_checksum_address(a) for a in (caller, from_, to))
        if caller != from_ and not self.is_approved_for_all(from_, caller):
            raise AssetApprovalError(
                details={"operator": caller, "owner": from_, "token_id": token_id}
            )
        balance = self._balances.get((from_, token_id), 0)
        if balance < quantity:
            raise AssetBalanceError(
                details={"owner": from_, "token_id": token_id,
                         "balance": balance, "quantity": quantity}
            )
        self._balances[(from_, token_id)] = balance - quantity
        self._balances[(to, token_id)] = self._balances.get((to, token_id), 0) + quantity

    def mint(self, caller: str, to: str, token_id: int, quantity: int) -> None:
        self._require_minter(caller)
        to = to_checksum_address(to)
        self._balances[(to, token_id)] = self._balances.get((to, token_id), 0) + quantity

    def snapshot(self):
        return dict(self._balances), dict(self._operators), set(self._minters)

    def restore(self, snap) -> None:
        self._balances = dict(snap[0])
        self._operators = dict(snap[1])
        self._minters = set(snap[2])

    def __repr__(self) -> str:
        return f"MultiAssetContract(address={self.address})"


class UniqueAssetContract(_AssetContract):
    token_type = TokenType.UNIQUE

    def __init__(self, address: str, name: str = "", minters: Iterable[str] = ()) -> None:
        super().__init__(address, name, minters)
        self._owners: Dict[int, str] = {}
        self._token_approvals: Dict[int, str] = {}

    def owner_of(self, token_id: int) -> Optional[str]:
        return self._owners.get(token_id)

    def balance_of(self, owner: str, token_id: int) -> int:
        return 1 if self._owners.get(token_id) == to_checksum_address(owner) else 0

    def approve(self, caller: str, spender: str, token_id: int) -> None:
        caller = to_checksum_address(caller)
        owner = self._owners.get(token_id)
        if owner is None or (caller != owner and not self.is_approved_for_all(owner, caller)):
            raise AssetApprovalError(details={"caller": caller, "token_id": token_id})
        self._token_approvals[token_id] = to_checksum_address(spender)

    def get_approved(self, token_id: int) -> str:
        return self._token_approvals.get(token_id, ZERO_ADDRESS)

    def transfer(self, caller: str, from_: str, to: str, token_id: int, quantity: int = 1) -> None:
        caller, from_, to = (to_checksum_address(a) for a in (caller, from_, to))
        if (
            caller != from_
            and not self.is_approved_for_all(from_, caller)
            and self._token_approvals.get(token_id) != caller
        ):
            raise AssetApprovalError(
                details={"operator": caller, "owner": from_, "token_id": token_id}
            )
        if quantity != 1 or self._owners.get(token_id) != from_:
            raise AssetBalanceError(
                details={"owner": from_, "token_id": token_id, "quantity": quantity}
            )
        self._owners[token_id] = to
        self._token_approvals.pop(token_id, None)

    def mint(self, caller: str, to: str, token_id: int, quantity: int = 1) -> None:
        self._require_minter(caller)
        if quantity != 1:
            raise AssetBalanceError(
                "unique token mint quantity must be one",
                details={"token_id": token_id, "quantity": quantity},
            )
        if token_id in self._owners:
            raise AssetExistsError(details={"token_id": token_id})
        self._owners[token_id] = to_checksum_address(to)

    def snapshot(self):
        return (
            dict(self._owners),
            dict(self._token_approvals),
            dict(self._operators),
            set(self._minters),
        )

    def restore(self, snap) -> None:
        self._owners = dict(snap[0])
        self._token_approvals = dict(snap[1])
        self._operators = dict(snap[2])
        self._minters = set(snap[3])

    def __repr__(self) -> str:
        return f"UniqueAssetContract(address={self.address})"
