"""
Order bundle loading for the CLI.

A bundle is a YAML (or JSON — YAML is a superset) mapping:

    nft_info:    {nft_token, token_id, batch_token_ids, batch_token_prices,
                  token_type, chain_id, salt}
    maker_order: {nft_token_hash, maker, price, quantity, payment_token, ...}
    deal_order:  {maker_order_hash, taker, author, deal_amount, ...}

Hex fields (hashes, signatures) are 0x-prefixed strings.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from nftsettle.core.exceptions import ValidationError
from nftsettle.core.models import DealOrder, MakerOrder, NftInfo

_SECTIONS = ("nft_info", "maker_order", "deal_order")


class BundleError(Exception):
    """Raised when a bundle file cannot be read or parsed."""
    pass


@dataclass(frozen=True)
class OrderBundle:
    nft_info:    NftInfo
    maker_order: MakerOrder
    deal_order:  DealOrder

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nft_info":    self.nft_info.to_dict(),
            "maker_order": self.maker_order.to_dict(),
            "deal_order":  self.deal_order.to_dict(),
        }


def load_bundle(path: Path) -> OrderBundle:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise BundleError(f"cannot read bundle {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise BundleError(f"bundle {path} must be a mapping")
    missing = [s for s in _SECTIONS if s not in data]
    if missing:
        raise BundleError(f"bundle {path} missing sections: {missing}")

    try:
        return OrderBundle(
            nft_info=    NftInfo.from_dict(data["nft_info"]),
            maker_order= MakerOrder.from_dict(data["maker_order"]),
            deal_order=  DealOrder.from_dict(data["deal_order"]),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        raise BundleError(f"malformed bundle {path}: {exc!r}") from exc
