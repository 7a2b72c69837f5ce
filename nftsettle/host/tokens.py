"""
ERC-20-like payment token.

Every mutating call takes the calling address explicitly as ``caller``;
there is no ambient msg.sender.

``on_transfer`` is an optional hook invoked after each successful
transfer / transfer_from with (token, from, to, amount). It stands in for
arbitrary external token code and is how re-entrant behaviour is exercised.
"""

from typing import Callable, Dict, Optional, Tuple

from eth_utils import to_checksum_address

from nftsettle.core.exceptions import TokenTransferError

TransferHook = Callable[["PaymentToken", str, str, int], None]


class PaymentToken:

    def __init__(self, address: str, symbol: str = "TOKEN", decimals: int = 18) -> None:
        self.address  = to_checksum_address(address)
        self.symbol   = symbol
        self.decimals = decimals
        self.on_transfer: Optional[TransferHook] = None
        self._balances:   Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    # ── Views ─────────────────────────────────────────────────

    def balance_of(self, owner: str) -> int:
        return self._balances.get(to_checksum_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        return self._allowances.get(key, 0)

    def total_supply(self) -> int:
        return sum(self._balances.values())

    # ── Mutations ─────────────────────────────────────────────

    def mint(self, to: str, amount: int) -> None:
        to = to_checksum_address(to)
        self._balances[to] = self._balances.get(to, 0) + amount

    def approve(self, caller: str, spender: str, amount: int) -> None:
        key = (to_checksum_address(caller), to_checksum_address(spender))
        self._allowances[key] = amount

    def transfer(self, caller: str, to: str, amount: int) -> None:
        self._move(to_checksum_address(caller), to_checksum_address(to), amount)
        self._notify(caller, to, amount)

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> None:
        owner = to_checksum_address(owner)
        key = (owner, to_checksum_address(caller))
        allowed = self._allowances.get(key, 0)
        if allowed < amount:
            raise TokenTransferError(
                "insufficient allowance",
                details={"owner": owner, "allowance": allowed, "amount": amount},
            )
        self._move(owner, to_checksum_address(to), amount)
        self._allowances[key] = allowed - amount
        self._notify(owner, to, amount)

    def _move(self, sender: str, to: str, amount: int) -> None:
        balance = self._balances.get(sender, 0)
        if amount < 0 or balance < amount:
            raise TokenTransferError(
                "transfer amount exceeds balance",
                details={"from": sender, "balance": balance, "amount": amount},
            )
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount

    def _notify(self, sender: str, to: str, amount: int) -> None:
        if self.on_transfer is not None:
            self.on_transfer(self, sender, to, amount)

    # ── Snapshot ──────────────────────────────────────────────

    def snapshot(self):
        return dict(self._balances), dict(self._allowances)

    def restore(self, snap) -> None:
        self._balances, self._allowances = dict(snap[0]), dict(snap[1])

    def __repr__(self) -> str:
        return f"PaymentToken({self.symbol}, address={self.address})"
