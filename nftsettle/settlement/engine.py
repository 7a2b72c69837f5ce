"""
Settlement engine: executes a signed listing + settlement instruction.

perform_order() runs, inside one atomic host block:

    1. caller gate        market → sender is the taker
                          auction → sender is an authorized signer
    2. deadline gate      now <= deal_order.deadline
    3. payment gate       payment token is on the Controller allow-list;
                          native value only accompanies native-paid orders
    4. validation         OrderValidator (quantity, batch table, price,
                          amount, chain, listing hash)
    5. signatures         maker → taker → signer
    6. replay gate        settlement hash not yet executed
    7. status write       executed=True lands BEFORE any external call
    8. auction check      balances short → inert (recorded, nothing moves)
    9. payment legs       native push or token pull: maker, fee_to, author
   10. delivery           transfer existing units or mint to the taker
   11. reward accrual     always, including inert settlements
   12. event              OrderSettled

Any exception before the block exits restores every tracked component,
so a rejected call leaves no observable change.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Union

from eth_utils import to_checksum_address

from nftsettle.config import SettlementConfig
from nftsettle.core.events import ControllerChanged, OrderSettled
from nftsettle.core.exceptions import (
    AuctionNativePaymentError,
    CallerNotSignerError,
    CallerNotTakerError,
    ConfigurationError,
    DeadlineExpiredError,
    DealOrderCompletedError,
    FeeInvariantError,
    InsufficientValueError,
    MintQuantityError,
    NotControllerError,
    ReentrancyError,
    UnsupportedPaymentError,
    UnexpectedValueError,
    UniqueQuantityError,
    UnsupportedTokenTypeError,
    ZeroAddressError,
    ZeroAuthorAddressError,
    ZeroFeeAddressError,
)
from nftsettle.core.models import (
    UNSEEN,
    ZERO_ADDRESS,
    DealOrder,
    DealOrderStatus,
    FeeSplit,
    MakerOrder,
    NftInfo,
    SettlementResult,
    TokenType,
)
from nftsettle.host.environment import HostEnvironment
from nftsettle.ledger.rewards import RewardLedger
from nftsettle.verification.validator import OrderValidator
from nftsettle.verification.verifier import OrderSignatureVerifier

logger = logging.getLogger(__name__)


class SettlementEngine:
    """
    Owns the settlement status map and the reward ledger.

    The Controller is referenced by address and resolved through the host
    on every use, so a hand-off takes effect for the next call.
    """

    def __init__(
        self,
        host:       HostEnvironment,
        controller: Union[str, object],
        config:     SettlementConfig,
    ) -> None:
        if config.chain_id != host.chain_id:
            raise ConfigurationError(
                "config chain_id does not match host",
                details={"config": config.chain_id, "host": host.chain_id},
            )
        self.host = host
        self.config = config
        self.address = config.verifying_contract
        self.domain = config.domain()

        if not isinstance(controller, str):
            host.register(controller)
            controller = controller.address
        self._controller_address: str = to_checksum_address(controller)

        self._statuses: Dict[bytes, DealOrderStatus] = {}
        self._entered: bool = False

        self.validator = OrderValidator(self.domain)
        self.verifier = OrderSignatureVerifier(
            self.domain, lambda account: self.controller.is_sig_address(account)
        )
        self.rewards = RewardLedger(host, config.reward_token, self.address)
        host.register(self)

    # ── Views ─────────────────────────────────────────────────

    @property
    def controller(self):
        return self.host.contract_at(self._controller_address)

    @property
    def controller_address(self) -> str:
        return self._controller_address

    @property
    def fee_reward_token(self) -> str:
        return self.rewards.reward_token

    def deal_order_status(self, deal_order_hash: bytes) -> DealOrderStatus:
        return self._statuses.get(bytes(deal_order_hash), UNSEEN)

    def reward_balance(self, account: str) -> int:
        return self.rewards.balance_of(account)

    # ── Settlement ────────────────────────────────────────────

    def perform_order(
        self,
        nft_info:    NftInfo,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
        *,
        sender:      str,
        value:       int = 0,
    ) -> SettlementResult:
        """
        Settle ``deal_order`` against ``maker_order``.

        ``value`` is the native coin the caller attaches; it moves into the
        engine's account before anything else and is rolled back with the
        rest of the call on failure.
        """
        with self._non_reentrant(), self.host.atomic():
            sender = to_checksum_address(sender)
            if value:
                self.host.transfer_native(sender, self.address, value)
            controller = self.controller

            # Step 1-3: gates
            if maker_order.is_auction:
                if not controller.is_sig_address(sender):
                    raise CallerNotSignerError(details={"caller": sender})
            elif sender != deal_order.taker:
                raise CallerNotTakerError(
                    details={"caller": sender, "taker": deal_order.taker}
                )
            if self.host.now() > deal_order.deadline:
                raise DeadlineExpiredError(
                    details={"now": self.host.now(), "deadline": deal_order.deadline}
                )
            if not controller.is_support_payment(maker_order.payment_token):
                raise UnsupportedPaymentError(
                    details={"payment_token": maker_order.payment_token}
                )
            if value and not controller.is_origin_token(maker_order.payment_token):
                raise UnexpectedValueError(
                    details={"value": value, "payment_token": maker_order.payment_token}
                )

            # Step 4-5: consistency, then authenticity
            maker_order_hash = self.validator.validate(nft_info, maker_order, deal_order)
            deal_order_hash = self.verifier.check_all(maker_order, deal_order)

            # Step 6-7: replay gate and status write before external calls
            if self.deal_order_status(deal_order_hash).executed:
                raise DealOrderCompletedError(
                    details={"deal_order_hash": "0x" + deal_order_hash.hex()}
                )
            self._statuses[deal_order_hash] = DealOrderStatus(executed=True, processed=False)

            # Step 8: auction precondition
            processed = True
            if maker_order.is_auction:
                if controller.is_origin_token(maker_order.payment_token):
                    raise AuctionNativePaymentError()
                processed = self._auction_funded(nft_info, maker_order, deal_order)

            # Step 9-10: value transfer
            total_fee = 0
            if processed:
                self._check_deliverable(nft_info, maker_order, deal_order)
                fees = controller.check_fee_amount(
                    deal_order.deal_amount, maker_order.author_protocol_fee
                )
                if not fees.adds_up_to(deal_order.deal_amount):
                    raise FeeInvariantError(
                        details={"deal_amount": deal_order.deal_amount, "split": fees}
                    )
                self._pay(controller, maker_order, deal_order, fees, value)
                self._deliver(controller, nft_info, maker_order, deal_order)
                total_fee = fees.total_fee

            # Step 11-12: rewards, final status, event
            self.rewards.accrue(deal_order.taker, deal_order.reward_amount)
            self._statuses[deal_order_hash] = DealOrderStatus(executed=True, processed=processed)
            self.host.events.emit(OrderSettled(
                maker_order_hash= maker_order_hash,
                deal_order_hash=  deal_order_hash,
                sale_type=        maker_order.sale_type,
                maker=            maker_order.maker,
                taker=            deal_order.taker,
                deal_amount=      deal_order.deal_amount,
                total_fee=        total_fee,
                processed=        processed,
            ))

            if processed:
                logger.info(
                    "settled deal order 0x%s: %s → %s, amount=%d fee=%d",
                    deal_order_hash.hex(), maker_order.maker, deal_order.taker,
                    deal_order.deal_amount, total_fee,
                )
            else:
                logger.warning(
                    "auction deal order 0x%s recorded inert: balance precondition failed",
                    deal_order_hash.hex(),
                )

            return SettlementResult(
                deal_order_hash=  deal_order_hash,
                maker_order_hash= maker_order_hash,
                total_fee=        total_fee,
                processed=        processed,
            )

    def claim(self, *, sender: str) -> int:
        """Pay out the caller's accrued reward balance."""
        with self._non_reentrant():
            return self.rewards.claim(sender=sender)

    def set_controller(self, new_controller: str, *, sender: str) -> None:
        """Only the current Controller may elect its successor."""
        with self.host.atomic():
            if to_checksum_address(sender) != self._controller_address:
                raise NotControllerError(details={"caller": sender})
            new_controller = to_checksum_address(new_controller)
            if new_controller == ZERO_ADDRESS:
                raise ZeroAddressError()
            previous = self._controller_address
            self._controller_address = new_controller
            self.host.events.emit(ControllerChanged(previous=previous, current=new_controller))
            logger.info("controller changed: %s → %s", previous, new_controller)

    # ── Internals ─────────────────────────────────────────────

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        if self._entered:
            raise ReentrancyError()
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    def _auction_funded(
        self,
        nft_info:    NftInfo,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
    ) -> bool:
        token = self.host.contract_at(maker_order.payment_token)
        if token.balance_of(deal_order.taker) < deal_order.deal_amount:
            return False
        if deal_order.minted:
            asset = self.host.contract_at(nft_info.nft_token)
            if asset.balance_of(maker_order.maker, nft_info.token_id) < deal_order.quantity:
                return False
        return True

    @staticmethod
    def _check_deliverable(
        nft_info:    NftInfo,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
    ) -> None:
        if nft_info.token_type not in (TokenType.UNIQUE, TokenType.MULTI):
            raise UnsupportedTokenTypeError(details={"token_type": int(nft_info.token_type)})
        if nft_info.token_type == TokenType.UNIQUE and deal_order.quantity != 1:
            raise UniqueQuantityError(details={"requested": deal_order.quantity})
        if not deal_order.minted and maker_order.quantity != 1:
            raise MintQuantityError(details={"listed": maker_order.quantity})

    def _pay(
        self,
        controller,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
        fees:        FeeSplit,
        value:       int,
    ) -> None:
        fee_to = controller.fee_to()
        if fees.protocol_fee > 0 and fee_to == ZERO_ADDRESS:
            raise ZeroFeeAddressError()
        if fees.author_fee > 0 and deal_order.author == ZERO_ADDRESS:
            raise ZeroAuthorAddressError()

        legs = [
            (maker_order.maker, fees.amount),
            (fee_to,            fees.protocol_fee),
            (deal_order.author, fees.author_fee),
        ]

        if controller.is_origin_token(maker_order.payment_token):
            if value < deal_order.deal_amount:
                raise InsufficientValueError(
                    details={"value": value, "deal_amount": deal_order.deal_amount}
                )
            for recipient, amount in legs:
                if amount > 0:
                    self.host.transfer_native(self.address, recipient, amount)
            return

        token = self.host.contract_at(maker_order.payment_token)
        for recipient, amount in legs:
            if amount > 0:
                token.transfer_from(self.address, deal_order.taker, recipient, amount)

    def _deliver(
        self,
        controller,
        nft_info:    NftInfo,
        maker_order: MakerOrder,
        deal_order:  DealOrder,
    ) -> None:
        if not deal_order.minted:
            controller.mint(deal_order.taker, nft_info.token_id, deal_order.quantity)
            return
        asset = self.host.contract_at(nft_info.nft_token)
        asset.transfer(
            self.address, maker_order.maker, deal_order.taker, nft_info.token_id, deal_order.quantity
        )

    # ── Snapshot ──────────────────────────────────────────────

    def snapshot(self):
        return dict(self._statuses), self._controller_address

    def restore(self, snap) -> None:
        self._statuses = dict(snap[0])
        self._controller_address = snap[1]

    def __repr__(self) -> str:
        return (
            f"SettlementEngine(address={self.address}, "
            f"settled={len(self._statuses)}, controller={self._controller_address})"
        )
