"""
Host environment for settlement.

Plays the part of the chain the settlement engine runs on:

    clock        block timestamp (now / set_time / advance)
    native coin  per-address balances of the chain's native currency
    registry     address → collaborator contract
    events       the EventLog every operation emits into
    atomic()     all-or-nothing execution: snapshots every tracked
                 component and restores them when an exception escapes

Everything is single-threaded. Operations are serialized by the caller.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from eth_utils import keccak, to_checksum_address

from nftsettle.core.events import EventLog
from nftsettle.core.exceptions import NativeTransferError, UnknownContractError

logger = logging.getLogger(__name__)


def derive_address(label: str) -> str:
    """Deterministic checksum address for a label (keccak256(label)[12:])."""
    return to_checksum_address(keccak(text=label)[12:])


class HostEnvironment:

    def __init__(self, chain_id: int = 1, timestamp: Optional[int] = None) -> None:
        self.chain_id = chain_id
        self._now: int = int(time.time()) if timestamp is None else timestamp
        self._native: Dict[str, int] = {}
        self._contracts: Dict[str, Any] = {}
        self._tracked: List[Any] = []
        self.events = EventLog()
        self.track(self.events)

    # ── Clock ─────────────────────────────────────────────────

    def now(self) -> int:
        return self._now

    def set_time(self, timestamp: int) -> None:
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        self._now += seconds
        return self._now

    # ── Registry ──────────────────────────────────────────────

    def register(self, contract: Any) -> Any:
        """Register a collaborator under its ``address`` and track its state."""
        address = to_checksum_address(contract.address)
        self._contracts[address] = contract
        if hasattr(contract, "snapshot") and contract not in self._tracked:
            self.track(contract)
        return contract

    def track(self, component: Any) -> None:
        """Include ``component`` in atomic() snapshots."""
        self._tracked.append(component)

    def contract_at(self, address: str) -> Any:
        try:
            return self._contracts[to_checksum_address(address)]
        except KeyError:
            raise UnknownContractError(details={"address": address})

    # ── Native coin ───────────────────────────────────────────

    def native_balance(self, address: str) -> int:
        return self._native.get(to_checksum_address(address), 0)

    def mint_native(self, address: str, amount: int) -> None:
        address = to_checksum_address(address)
        self._native[address] = self._native.get(address, 0) + amount

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        balance = self._native.get(sender, 0)
        if amount < 0 or balance < amount:
            raise NativeTransferError(
                details={"from": sender, "balance": balance, "amount": amount}
            )
        self._native[sender] = balance - amount
        self._native[to] = self._native.get(to, 0) + amount

    # ── Atomicity ─────────────────────────────────────────────

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block all-or-nothing.

        Nested blocks snapshot independently, so a failing inner call
        that the outer call catches is rolled back on its own.
        """
        snaps = [(component, component.snapshot()) for component in self._tracked]
        native = dict(self._native)
        try:
            yield
        except BaseException:
            for component, snap in reversed(snaps):
                component.restore(snap)
            self._native = native
            logger.debug("atomic block rolled back (%d components)", len(snaps))
            raise

    def __repr__(self) -> str:
        return (
            f"HostEnvironment(chain_id={self.chain_id}, now={self._now}, "
            f"contracts={len(self._contracts)})"
        )
