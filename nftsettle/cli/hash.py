"""
nftsettle hash — print every digest of an order bundle.

Usage:
    nftsettle hash bundle.yaml
    nftsettle hash bundle.yaml --config settlement.yaml
    nftsettle hash bundle.yaml --format json
"""

import sys
from pathlib import Path
from typing import Optional

import click
from eth_abi.exceptions import EncodingError

from nftsettle.cli.bundle import BundleError, load_bundle
from nftsettle.config import SettlementConfig
from nftsettle.core.canonical import canonicalize
from nftsettle.core.exceptions import ConfigurationError


def bundle_hashes(bundle, config: SettlementConfig) -> dict:
    domain = config.domain()
    return {
        "domain_separator": "0x" + domain.separator().hex(),
        "nft_token_hash":   "0x" + bundle.nft_info.token_hash().hex(),
        "maker_order_hash": "0x" + bundle.maker_order.order_hash(domain).hex(),
        "taker_order_hash": "0x" + bundle.deal_order.taker_hash(domain).hex(),
        "deal_order_hash":  "0x" + bundle.deal_order.order_hash(domain).hex(),
    }


@click.command(name="hash")
@click.argument("bundle_path", type=click.Path(path_type=Path))
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Settlement config YAML (domain, chain id, verifying contract).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", show_default=True)
def hash_command(bundle_path: Path, config_path: Optional[Path], output_format: str) -> None:
    """Compute the EIP-712 digests of an order bundle."""
    try:
        config = SettlementConfig.load(config_path)
        bundle = load_bundle(bundle_path)
        hashes = bundle_hashes(bundle, config)
    except (BundleError, ConfigurationError, EncodingError, FileNotFoundError, ValueError) as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    if output_format == "json":
        click.echo(canonicalize(hashes).decode("utf-8"))
        return
    for label, value in hashes.items():
        click.echo(f"{label:<18}  {value}")
