"""
nftsettle/cli/__init__.py

nftsettle CLI — root Click command group.

Registered in pyproject.toml as:

    [project.scripts]
    nftsettle = "nftsettle.cli:cli"

Adding a new command:
    1. Create nftsettle/cli/your_command.py with a @click.command()
    2. Import it here
    3. cli.add_command(your_command)
"""

import logging

import click

from nftsettle.cli.hash import hash_command
from nftsettle.cli.verify import verify_command


@click.group()
@click.version_option(package_name="nftsettle")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
def cli(verbose: bool) -> None:
    """
    nftsettle — NFT trade settlement tooling.

    \b
    Commands:
      hash      Print the EIP-712 digests of an order bundle.
      verify    Validate a bundle and recover its three signers.

    \b
    Quick start:
      nftsettle hash bundle.yaml
      nftsettle verify bundle.yaml --signer 0xBroker...
      nftsettle verify bundle.yaml --format json
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


cli.add_command(hash_command)
cli.add_command(verify_command)
