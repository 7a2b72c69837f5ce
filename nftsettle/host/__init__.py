"""
nftsettle host — the collaborators a settlement runs against.

The engine only ever talks to these through their public methods; they
can be swapped for adapters onto a real chain.
"""

from nftsettle.host.assets import MultiAssetContract, UniqueAssetContract
from nftsettle.host.controller import Controller, InMemoryController
from nftsettle.host.environment import HostEnvironment, derive_address
from nftsettle.host.tokens import PaymentToken

__all__ = [
    "Controller",
    "HostEnvironment",
    "InMemoryController",
    "MultiAssetContract",
    "PaymentToken",
    "UniqueAssetContract",
    "derive_address",
]
