"""
tests/test_cli.py

nftsettle hash / verify via click's CliRunner.

Exit codes for verify:
    0  valid
    1  violations
    2  unreadable bundle or config
"""

import json
from dataclasses import replace

import pytest
import yaml
from click.testing import CliRunner

from nftsettle.cli import cli
from nftsettle.cli.bundle import BundleError, OrderBundle, load_bundle

from helpers.trade import CHAIN_ID, make_deal_order, make_maker_order, sign_orders


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CHAIN_ID", "VERIFYING_CONTRACT", "DOMAIN_NAME", "DOMAIN_VERSION", "REWARD_TOKEN"):
        monkeypatch.delenv("NFTSETTLE_" + name, raising=False)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def bundle(world, nft_info):
    maker = make_maker_order(nft_info, world.bob.address)
    deal = make_deal_order(maker, world.alice.address, world.author.address)
    maker, deal = sign_orders(world.domain, world.bob, maker, world.alice, deal, world.sig_user)
    return OrderBundle(nft_info=nft_info, maker_order=maker, deal_order=deal)


@pytest.fixture
def config_path(world, tmp_path):
    path = tmp_path / "settlement.yaml"
    path.write_text(
        yaml.safe_dump({"chain_id": CHAIN_ID, "verifying_contract": world.engine.address}),
        encoding="utf-8",
    )
    return path


def write_bundle(tmp_path, bundle, name="bundle.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(bundle.to_dict()), encoding="utf-8")
    return path


class TestBundleLoading:

    def test_roundtrip(self, tmp_path, bundle):
        loaded = load_bundle(write_bundle(tmp_path, bundle))
        assert loaded == bundle
        assert loaded.deal_order.signature == bundle.deal_order.signature

    def test_missing_section(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text("nft_info: {}\n", encoding="utf-8")
        with pytest.raises(BundleError, match="missing sections"):
            load_bundle(path)

    def test_out_of_range_field(self, tmp_path, bundle):
        data = bundle.to_dict()
        data["maker_order"]["price"] = 2 ** 256
        path = tmp_path / "overflow.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        with pytest.raises(BundleError, match="malformed bundle"):
            load_bundle(path)

    def test_malformed_section(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("nft_info: {}\nmaker_order: {}\ndeal_order: {}\n", encoding="utf-8")
        with pytest.raises(BundleError, match="malformed bundle"):
            load_bundle(path)


class TestHashCommand:

    def test_text_output(self, runner, tmp_path, bundle, world, config_path):
        result = runner.invoke(cli, ["hash", str(write_bundle(tmp_path, bundle)), "--config", str(config_path)])
        assert result.exit_code == 0
        assert "0x" + bundle.deal_order.order_hash(world.domain).hex() in result.output

    def test_json_output(self, runner, tmp_path, bundle, world, config_path):
        result = runner.invoke(
            cli, ["hash", str(write_bundle(tmp_path, bundle)), "--config", str(config_path), "--format", "json"]
        )
        hashes = json.loads(result.stdout)
        assert hashes["maker_order_hash"] == "0x" + bundle.deal_order.maker_order_hash.hex()
        assert hashes["domain_separator"] == "0x" + world.domain.separator().hex()

    def test_missing_bundle(self, runner, tmp_path):
        result = runner.invoke(cli, ["hash", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 2


class TestVerifyCommand:

    def invoke(self, runner, tmp_path, bundle, config_path, *extra):
        args = ["verify", str(write_bundle(tmp_path, bundle)), "--config", str(config_path), *extra]
        return runner.invoke(cli, args)

    def test_valid_with_signer(self, runner, tmp_path, bundle, world, config_path):
        result = self.invoke(
            runner, tmp_path, bundle, config_path,
            "--signer", world.sig_user.address, "--format", "json",
        )
        assert result.exit_code == 0
        report = json.loads(result.stdout)
        assert report["valid"] is True
        assert report["signatures"]["signer"]["recovered"] == world.sig_user.address

    def test_unchecked_signer_still_valid(self, runner, tmp_path, bundle, config_path):
        result = self.invoke(runner, tmp_path, bundle, config_path, "--format", "json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["signatures"]["signer"]["valid"] is None

    def test_wrong_signer(self, runner, tmp_path, bundle, world, config_path):
        result = self.invoke(
            runner, tmp_path, bundle, config_path,
            "--signer", world.bad_user.address, "--format", "json",
        )
        assert result.exit_code == 1
        assert "signer signature mismatch" in json.loads(result.stdout)["violations"]

    def test_tampered_amount(self, runner, tmp_path, bundle, config_path):
        tampered = replace(bundle, deal_order=replace(bundle.deal_order, deal_amount=1))
        result = self.invoke(runner, tmp_path, tampered, config_path, "--format", "json")
        assert result.exit_code == 1
        violations = json.loads(result.stdout)["violations"]
        assert "deal amount is below the order total" in violations
        assert "taker signature mismatch" in violations

    def test_wrong_domain(self, runner, tmp_path, bundle, config_path):
        other = tmp_path / "other.yaml"
        other.write_text(f"chain_id: {CHAIN_ID}\n", encoding="utf-8")
        result = self.invoke(runner, tmp_path, bundle, other, "--format", "json")
        assert result.exit_code == 1

    def test_text_output(self, runner, tmp_path, bundle, world, config_path):
        result = self.invoke(runner, tmp_path, bundle, config_path, "--signer", world.sig_user.address)
        assert result.exit_code == 0
        assert "VALID" in result.output

    def test_quiet(self, runner, tmp_path, bundle, config_path):
        tampered = replace(bundle, maker_order=bundle.maker_order.with_signature(b""))
        result = self.invoke(runner, tmp_path, tampered, config_path, "--quiet")
        assert result.exit_code == 1
        assert result.output == ""

    def test_bad_config(self, runner, tmp_path, bundle):
        bad = tmp_path / "bad-config.yaml"
        bad.write_text("chain_id: 1\nunknown: true\n", encoding="utf-8")
        result = self.invoke(runner, tmp_path, bundle, bad)
        assert result.exit_code == 2

    def test_out_of_range_field_is_input_error(self, runner, tmp_path, bundle, config_path):
        data = bundle.to_dict()
        data["deal_order"]["quantity"] = -1
        path = tmp_path / "negative.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        for command in ("hash", "verify"):
            result = runner.invoke(cli, [command, str(path), "--config", str(config_path)])
            assert result.exit_code == 2
            assert "value out of range" in result.output
