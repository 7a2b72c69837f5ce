"""
Reward ledger — pull-based buyer rebates.

Balances accrue on every settlement (including inert auction
settlements) and are paid out only when the buyer calls claim().

claim() order is fixed:
    1. balance > 0                          NoRewardError
    2. reward holdings of payer >= balance  RewardUnderfundedError
    3. zero the balance
    4. transfer the reward token
A re-entrant claim during step 4 sees a zero balance.
"""

import logging
from typing import Dict

from eth_utils import to_checksum_address

from nftsettle.core.events import RewardClaimed
from nftsettle.core.exceptions import NoRewardError, RewardUnderfundedError
from nftsettle.host.environment import HostEnvironment

logger = logging.getLogger(__name__)


class RewardLedger:
    """
    Per-buyer accrued reward balances, paid in ``reward_token`` from the
    holdings of ``payer`` (the settlement engine's address).
    """

    def __init__(self, host: HostEnvironment, reward_token: str, payer: str) -> None:
        self.host = host
        self.reward_token = to_checksum_address(reward_token)
        self.payer = to_checksum_address(payer)
        self._balances: Dict[str, int] = {}
        host.track(self)

    # ── Views ─────────────────────────────────────────────────

    def balance_of(self, account: str) -> int:
        return self._balances.get(to_checksum_address(account), 0)

    def total_outstanding(self) -> int:
        return sum(self._balances.values())

    # ── Mutations ─────────────────────────────────────────────

    def accrue(self, account: str, amount: int) -> None:
        """Credit ``amount`` to ``account``. Called by the settlement engine."""
        if amount < 0:
            raise ValueError(f"reward amount must be non-negative, got {amount}")
        if amount == 0:
            return
        account = to_checksum_address(account)
        self._balances[account] = self._balances.get(account, 0) + amount

    def claim(self, *, sender: str) -> int:
        """Pay out the caller's full balance. Returns the amount paid."""
        with self.host.atomic():
            sender = to_checksum_address(sender)
            owed = self._balances.get(sender, 0)
            if owed <= 0:
                raise NoRewardError(details={"account": sender})

            token = self.host.contract_at(self.reward_token)
            held = token.balance_of(self.payer)
            if held < owed:
                raise RewardUnderfundedError(details={"owed": owed, "held": held})

            self._balances[sender] = 0
            token.transfer(self.payer, sender, owed)

            self.host.events.emit(RewardClaimed(claimant=sender, amount=owed))
            logger.info("reward claimed: %s received %d", sender, owed)
            return owed

    # ── Snapshot ──────────────────────────────────────────────

    def snapshot(self):
        return dict(self._balances)

    def restore(self, snap) -> None:
        self._balances = dict(snap)

    def __repr__(self) -> str:
        return f"RewardLedger(accounts={len(self._balances)}, outstanding={self.total_outstanding()})"
