"""LiquidationAuctionHouse — English auctions for seized collateral.

The house custodies the seized collateral and the highest bid. Bidders pay
in stablecoin; an outbid bidder is refunded in full within the same
request. Settlement splits the lot between the winner and the engine and
reports back to the engine, which burns the proceeds and books any bad debt.
"""

import logging
from typing import Protocol

from src.cdp_auction.domain.bidding import (
    auction_status,
    awarded_collateral,
    can_finalize,
    next_minimum_bid,
)
from src.cdp_auction.domain.models import Auction, AuctionConfig, AuctionHouseState
from src.cdp_common.clock import Clock
from src.cdp_common.enums import AuctionStatus, EventType
from src.cdp_common.errors import (
    AmountMustBeMoreThanZeroError,
    AuctionAlreadySettledError,
    AuctionExpiredError,
    AuctionNotExpiredError,
    AuctionNotFoundError,
    BidExceedsTargetDebtError,
    BidTooLowError,
    InvalidAuctionParametersError,
    OnlyEngineError,
    TokenNotAllowedError,
    ZeroAddressError,
)
from src.cdp_common.events import EventLog
from src.cdp_common.guards import non_reentrant
from src.cdp_token.token import FungibleToken

logger = logging.getLogger(__name__)


class SettlementProtocol(Protocol):
    address: str

    def on_auction_settled(
        self,
        caller: str,
        auction_id: int,
        stable_coin_to_burn: int,
        collateral_to_return: int,
    ) -> None: ...


class LiquidationAuctionHouse:
    def __init__(
        self,
        address: str,
        clock: Clock,
        events: EventLog,
        engine: SettlementProtocol,
        stable_coin: FungibleToken,
        collateral_tokens: list[FungibleToken],
        config: AuctionConfig,
    ) -> None:
        if not address:
            raise ZeroAddressError("auction address")
        config.validate()
        self.address = address
        self.config = config
        self._clock = clock
        self._events = events
        self._engine = engine
        self._stable = stable_coin
        self._tokens = {t.address: t for t in collateral_tokens}
        self.state = AuctionHouseState()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @non_reentrant
    def create_auction(
        self,
        caller: str,
        user: str,
        token: str,
        collateral_amount: int,
        target_debt: int,
        minimum_bid: int,
        duration: int,
    ) -> int:
        """Open an auction for collateral already transferred to the house."""
        if caller != self._engine.address:
            raise OnlyEngineError(caller)
        if token not in self._tokens:
            raise TokenNotAllowedError(token)
        if collateral_amount <= 0 or target_debt <= 0:
            raise AmountMustBeMoreThanZeroError()
        if not (0 < minimum_bid <= target_debt):
            raise InvalidAuctionParametersError(
                f"minimum bid {minimum_bid} must be in (0, {target_debt}]"
            )
        cfg = self.config
        if not (cfg.min_duration_seconds <= duration <= cfg.max_duration_seconds):
            raise InvalidAuctionParametersError(
                f"duration {duration}s outside [{cfg.min_duration_seconds}, "
                f"{cfg.max_duration_seconds}]"
            )

        now = self._clock.now()
        auction_id = self.state.next_auction_id
        self.state.next_auction_id += 1
        self.state.auctions[auction_id] = Auction(
            auction_id=auction_id,
            user=user,
            token=token,
            collateral_amount=collateral_amount,
            target_debt=target_debt,
            minimum_bid=minimum_bid,
            start_time=now,
            end_time=now + duration,
        )
        self._events.emit(
            EventType.AUCTION_CREATED,
            auction_id=auction_id,
            user=user,
            token=token,
            collateral_amount=collateral_amount,
            target_debt=target_debt,
            minimum_bid=minimum_bid,
            end_time=now + duration,
        )
        logger.info(
            "Auction %d created: user=%s token=%s lot=%d target=%d ends=%d",
            auction_id, user, token, collateral_amount, target_debt, now + duration,
        )
        return auction_id

    @non_reentrant
    def place_bid(self, caller: str, auction_id: int, amount: int) -> None:
        auction = self.get_auction(auction_id)
        now = self._clock.now()
        if auction.settled:
            raise AuctionAlreadySettledError(auction_id)
        if now >= auction.end_time:
            raise AuctionExpiredError(auction_id, auction.end_time, now)
        if amount > auction.target_debt:
            raise BidExceedsTargetDebtError(auction.target_debt, amount)
        required = next_minimum_bid(auction, self.config.min_bid_increment_bps)
        if auction.highest_bidder is not None and required <= auction.highest_bid:
            required = auction.highest_bid + 1
        if amount < required:
            raise BidTooLowError(required, amount)

        previous_bidder, previous_bid = auction.highest_bidder, auction.highest_bid
        auction.highest_bidder = caller
        auction.highest_bid = amount
        self._events.emit(
            EventType.BID_PLACED, auction_id=auction_id, bidder=caller, amount=amount
        )
        if previous_bidder is not None:
            self._events.emit(
                EventType.BID_REFUNDED,
                auction_id=auction_id,
                bidder=previous_bidder,
                amount=previous_bid,
            )

        self._stable.transfer(caller, self.address, amount)
        if previous_bidder is not None:
            self._stable.transfer(self.address, previous_bidder, previous_bid)
        logger.info("Bid on auction %d: %s bid %d", auction_id, caller, amount)

    @non_reentrant
    def finalize_auction(self, caller: str, auction_id: int) -> Auction:
        """Settle an expired or fully-bid auction. Anyone may call."""
        auction = self.get_auction(auction_id)
        now = self._clock.now()
        if auction.settled:
            raise AuctionAlreadySettledError(auction_id)
        if not can_finalize(auction, now):
            raise AuctionNotExpiredError(auction_id, auction.end_time, now)

        winner = auction.highest_bidder
        if winner is None:
            awarded, proceeds = 0, 0
        else:
            awarded = awarded_collateral(
                auction.collateral_amount, auction.highest_bid, auction.target_debt
            )
            proceeds = auction.highest_bid
        returned = auction.collateral_amount - awarded

        auction.settled = True
        auction.collateral_awarded = awarded
        auction.collateral_returned = returned

        token = self._tokens[auction.token]
        engine_address = self._engine.address
        if awarded > 0:
            token.transfer(self.address, winner, awarded)
        if returned > 0:
            token.transfer(self.address, engine_address, returned)
        if proceeds > 0:
            self._stable.transfer(self.address, engine_address, proceeds)
        self._engine.on_auction_settled(self.address, auction_id, proceeds, returned)

        self._events.emit(
            EventType.AUCTION_SETTLED,
            auction_id=auction_id,
            finalized_by=caller,
            winner=winner,
            winning_bid=proceeds,
            collateral_awarded=awarded,
            collateral_returned=returned,
        )
        logger.info(
            "Auction %d settled: winner=%s bid=%d awarded=%d returned=%d",
            auction_id, winner, proceeds, awarded, returned,
        )
        return auction

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_auction(self, auction_id: int) -> Auction:
        auction = self.state.auctions.get(auction_id)
        if auction is None:
            raise AuctionNotFoundError(auction_id)
        return auction

    def get_next_auction_id(self) -> int:
        return self.state.next_auction_id

    def list_auctions(self) -> list[Auction]:
        return list(self.state.auctions.values())

    def next_minimum_bid(self, auction_id: int) -> int:
        return next_minimum_bid(self.get_auction(auction_id), self.config.min_bid_increment_bps)

    def can_finalize(self, auction_id: int) -> bool:
        return can_finalize(self.get_auction(auction_id), self._clock.now())

    def auction_status(self, auction_id: int) -> AuctionStatus:
        return auction_status(self.get_auction(auction_id), self._clock.now())
