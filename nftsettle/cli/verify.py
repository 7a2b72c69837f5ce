"""
nftsettle verify — offline check of an order bundle
====================================================

Runs the order validator and recovers all three signers without touching
any balance. Useful to brokers before submitting, and to operators
diagnosing a rejected settlement.

Usage:
    nftsettle verify <bundle>                          Human output (default)
    nftsettle verify <bundle> --signer 0xBroker...     Check the broker signer
    nftsettle verify <bundle> --format json            Machine-readable JSON
    nftsettle verify <bundle> --quiet                  Exit code only

Exit codes:
    0  Bundle valid (validation + signatures)
    1  Bundle has violations
    2  Error (file missing, malformed bundle or config)
"""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from eth_abi.exceptions import EncodingError
from eth_utils import to_checksum_address

from nftsettle.cli.bundle import BundleError, OrderBundle, load_bundle
from nftsettle.cli.hash import bundle_hashes
from nftsettle.config import SettlementConfig
from nftsettle.core.canonical import canonicalize
from nftsettle.core.exceptions import ConfigurationError
from nftsettle.verification.validator import OrderValidator
from nftsettle.verification.verifier import OrderSignatureVerifier


def verify_bundle(
    bundle:  OrderBundle,
    config:  SettlementConfig,
    signers: Tuple[str, ...] = (),
) -> dict:
    """
    Full offline verification result as a JSON-ready dict.

    The signer check is only enforced when ``signers`` is non-empty;
    otherwise the recovered broker address is reported as unchecked.
    """
    domain = config.domain()
    allowed = {to_checksum_address(s) for s in signers}
    validation = OrderValidator(domain).inspect(
        bundle.nft_info, bundle.maker_order, bundle.deal_order
    )
    recovered = OrderSignatureVerifier(domain, allowed.__contains__).recover_all(
        bundle.maker_order, bundle.deal_order
    )

    signatures = {
        "maker": {
            "expected":  bundle.maker_order.maker,
            "recovered": recovered["maker"],
            "valid":     recovered["maker"] == bundle.maker_order.maker,
        },
        "taker": {
            "expected":  bundle.deal_order.taker,
            "recovered": recovered["taker"],
            "valid":     recovered["taker"] == bundle.deal_order.taker,
        },
        "signer": {
            "expected":  sorted(allowed),
            "recovered": recovered["signer"],
            "valid":     recovered["signer"] in allowed if allowed else None,
        },
    }
    violations = list(validation.reasons())
    for party, result in signatures.items():
        if result["valid"] is False:
            violations.append(f"{party} signature mismatch")

    return {
        "valid":      not violations,
        "violations": violations,
        "signatures": signatures,
        "hashes":     bundle_hashes(bundle, config),
    }


def _print_text(result: dict) -> None:
    for party, sig in result["signatures"].items():
        if sig["valid"] is None:
            mark = click.style("?", fg="yellow")
        elif sig["valid"]:
            mark = click.style("✅", fg="green")
        else:
            mark = click.style("❌", fg="red")
        click.echo(f"  {party:<8} {mark}  {sig['recovered']}")
    click.echo()
    for label, value in result["hashes"].items():
        click.echo(f"  {label:<18}  {value}")
    click.echo()
    if result["valid"]:
        click.echo(click.style("VALID", fg="green", bold=True))
        return
    click.echo(click.style("INVALID", fg="red", bold=True))
    for violation in result["violations"]:
        click.echo(f"  - {violation}")


@click.command(name="verify")
@click.argument("bundle_path", type=click.Path(path_type=Path))
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Settlement config YAML (domain, chain id, verifying contract).")
@click.option("--signer", "signers", multiple=True,
              help="Authorized broker signer address (repeatable).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", show_default=True)
@click.option("--quiet", is_flag=True, help="No output; exit code only.")
def verify_command(
    bundle_path:   Path,
    config_path:   Optional[Path],
    signers:       Tuple[str, ...],
    output_format: str,
    quiet:         bool,
) -> None:
    """Validate an order bundle and check its three signatures."""
    try:
        config = SettlementConfig.load(config_path)
        bundle = load_bundle(bundle_path)
        result = verify_bundle(bundle, config, signers)
    except (BundleError, ConfigurationError, EncodingError, FileNotFoundError, ValueError) as exc:
        if not quiet:
            click.echo(f"error: {exc}", err=True)
        sys.exit(2)

    if not quiet:
        if output_format == "json":
            click.echo(canonicalize(result).decode("utf-8"))
        else:
            _print_text(result)

    sys.exit(0 if result["valid"] else 1)
