"""
tests/test_models.py

Order data model: commitments and digests.

    - nft_token_hash commits to every NftInfo field, including the whole
      price table
    - the listing digest covers every signed MakerOrder field; price is
      committed only through nft_token_hash
    - the settlement hash embeds keccak256(taker_sig) and the quantity;
      the taker digest covers neither
    - signatures never feed their own digest
"""

from dataclasses import replace

import pytest
from eth_account import Account

from nftsettle import (
    DealOrder,
    DealOrderStatus,
    FeeSplit,
    MakerOrder,
    NftInfo,
    SaleType,
    TokenType,
)
from nftsettle.core.crypto import recover_signer
from nftsettle.core.exceptions import FieldRangeError, NftSettleError
from nftsettle.core.models import MAKER_ORDER_TYPE, UNSEEN
from nftsettle.core.typed_data import TypedDataDomain

from helpers.trade import make_deal_order, make_maker_order, make_nft_info, sign_orders


@pytest.fixture
def maker_order(world, nft_info):
    return make_maker_order(nft_info, world.bob.address)


@pytest.fixture
def deal_order(world, maker_order):
    return make_deal_order(maker_order, world.alice.address, world.author.address)


class TestNftInfo:

    @pytest.mark.parametrize("change", [
        {"batch_token_prices": (1, 2, 3)},
        {"batch_token_ids": (1, 2, 3)},
        {"token_type": TokenType.UNIQUE},
        {"chain_id": 1},
        {"salt": 1},
    ])
    def test_token_hash_covers_batch(self, nft_info, change):
        assert replace(nft_info, **change).token_hash() != nft_info.token_hash()

    def test_traded_id_not_in_commitment(self, nft_info):
        assert replace(nft_info, token_id=8000001000002).token_hash() == nft_info.token_hash()

    def test_price_of(self, nft_info):
        assert nft_info.price_of(8000001000003) == 5 * 10 ** 18
        assert nft_info.price_of(42) is None

    def test_address_is_checksummed(self, world):
        info = make_nft_info(world.nft.address.lower())
        assert info.nft_token == world.nft.address

    def test_dict_roundtrip(self, nft_info):
        assert NftInfo.from_dict(nft_info.to_dict()) == nft_info

    def test_invalid_token_type(self, world):
        with pytest.raises(ValueError):
            make_nft_info(world.nft.address, token_type=7)


class TestMakerOrder:

    @pytest.mark.parametrize("change", [
        {"quantity": 2},
        {"author_protocol_fee": 100},
        {"sale_type": SaleType.AUCTION},
        {"start_time": 1},
        {"end_time": 1},
        {"create_time": 1},
        {"cancel_time": 1},
        {"nft_token_hash": b"\x01" * 32},
        {"payment_token": "0x1111111111111111111111111111111111111111"},
    ])
    def test_every_signed_field_changes_digest(self, domain, maker_order, change):
        assert replace(maker_order, **change).order_hash(domain) != maker_order.order_hash(domain)

    def test_price_not_in_digest(self, domain, maker_order):
        assert replace(maker_order, price=1).order_hash(domain) == maker_order.order_hash(domain)

    def test_signature_not_in_digest(self, domain, maker_order):
        signed = maker_order.with_signature(b"\x01" * 65)
        assert signed.order_hash(domain) == maker_order.order_hash(domain)

    def test_is_auction(self, maker_order):
        assert not maker_order.is_auction
        assert replace(maker_order, sale_type=SaleType.AUCTION).is_auction

    def test_wallet_signed_listing_recovers(self, world, domain, maker_order):
        signed = Account.sign_typed_data(
            world.bob.private_bytes_raw(), domain.domain_data(),
            MAKER_ORDER_TYPE.types, maker_order.typed_values(),
        )
        assert recover_signer(maker_order.order_hash(domain), bytes(signed.signature)) == world.bob.address

    def test_hex_fields_accepted(self, maker_order):
        data = maker_order.to_dict()
        assert data["nft_token_hash"].startswith("0x")
        assert MakerOrder.from_dict(data) == maker_order


class TestDealOrder:

    def test_taker_hash_ignores_deadline_quantity_and_sigs(self, domain, deal_order):
        changed = replace(deal_order, deadline=1, quantity=9, taker_sig=b"\x02" * 65)
        assert changed.taker_hash(domain) == deal_order.taker_hash(domain)

    @pytest.mark.parametrize("change", [
        {"deadline": 1},
        {"quantity": 2},
        {"taker_sig": b"\x02" * 65},
        {"reward_amount": 1},
        {"minted": True},
    ])
    def test_settlement_hash_covers_extension(self, domain, deal_order, change):
        assert replace(deal_order, **change).order_hash(domain) != deal_order.order_hash(domain)

    def test_broker_signature_not_in_digest(self, domain, deal_order):
        assert deal_order.with_signature(b"\x03" * 65).order_hash(domain) == deal_order.order_hash(domain)

    def test_signed_dict_roundtrip(self, world, maker_order, deal_order):
        _, signed = sign_orders(world.domain, world.bob, maker_order, world.alice, deal_order, world.sig_user)
        restored = DealOrder.from_dict(signed.to_dict())
        assert restored == signed
        assert restored.signature == signed.signature

    def test_digests_differ_across_deployments(self, world, deal_order):
        other = TypedDataDomain(
            world.domain.name, world.domain.version, world.domain.chain_id,
            "0x1111111111111111111111111111111111111111",
        )
        assert deal_order.order_hash(other) != deal_order.order_hash(world.domain)


class TestFieldRanges:

    @pytest.mark.parametrize("change", [
        {"reward_amount": -1},
        {"deal_amount": 2 ** 256},
        {"quantity": -1},
        {"deadline": 1.5},
        {"maker_order_hash": b"\x01" * 31},
    ])
    def test_deal_order(self, deal_order, change):
        with pytest.raises(FieldRangeError):
            replace(deal_order, **change)

    @pytest.mark.parametrize("change", [
        {"price": -1},
        {"author_protocol_fee": 2 ** 256},
        {"nft_token_hash": b""},
    ])
    def test_maker_order(self, maker_order, change):
        with pytest.raises(FieldRangeError):
            replace(maker_order, **change)

    def test_batch_prices(self, nft_info):
        with pytest.raises(FieldRangeError, match="batch_token_prices"):
            replace(nft_info, batch_token_prices=(1, -2, 5))

    def test_upper_bound_accepted(self, deal_order):
        assert replace(deal_order, deal_amount=2 ** 256 - 1).deal_amount == 2 ** 256 - 1

    def test_is_named_rejection(self):
        assert issubclass(FieldRangeError, NftSettleError)


class TestSettlementState:

    def test_unseen_status(self):
        assert UNSEEN == DealOrderStatus(executed=False, processed=False)

    def test_fee_split_adds_up(self):
        assert FeeSplit(amount=93, total_fee=7, protocol_fee=2, author_fee=5).adds_up_to(100)
        assert not FeeSplit(amount=94, total_fee=7, protocol_fee=2, author_fee=5).adds_up_to(100)
        assert not FeeSplit(amount=102, total_fee=-2, protocol_fee=-2, author_fee=0).adds_up_to(100)
