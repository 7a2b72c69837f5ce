"""
nftsettle Ledger - pull-based reward balances.
"""

from nftsettle.ledger.rewards import RewardLedger

__all__ = ["RewardLedger"]
