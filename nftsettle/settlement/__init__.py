"""
nftsettle Settlement Engine

The Settlement Engine executes a signed listing (MakerOrder) against a
broker-countersigned instruction (DealOrder):

Critical Invariants:
- Validation and all three signature checks happen before any value moves
- A settlement hash executes at most once
- Status is written before any external transfer
- A failed call leaves no observable state change
- Inert auction settlements are recorded, not rejected
"""

from nftsettle.settlement.engine import SettlementEngine

__all__ = ["SettlementEngine"]
