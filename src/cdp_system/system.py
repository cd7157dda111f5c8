"""CdpSystem — component wiring and request atomicity.

Every component keeps its mutable data in one `state` object. atomic()
deep-copies all of them on entry, pins the request time, and puts the copies
back if anything inside the block raises, so a failed request leaves no
partial mutation behind. Nested atomic() blocks join the outer request.

execute() is the entry point used by the application services: it
serializes requests with one asyncio.Lock, runs the operation atomically and
writes the events it produced to the journal before the request commits.
"""

import asyncio
import copy
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import Settings
from src.cdp_auction.domain.models import AuctionConfig
from src.cdp_auction.house import LiquidationAuctionHouse
from src.cdp_common.clock import Clock, RequestClock, SystemClock
from src.cdp_common.errors import TokenNotAllowedError, UnknownFeedError
from src.cdp_common.events import EventLog, LedgerEvent
from src.cdp_engine.domain.models import RiskParameters
from src.cdp_engine.engine import CdpEngine
from src.cdp_engine.monitor import PositionMonitor
from src.cdp_journal.persistence import max_sequence, write_events
from src.cdp_ledger.domain.fee_controller import FeeParameters
from src.cdp_ledger.rate_ledger import RateLedger
from src.cdp_oracle.domain.models import FeedConfig
from src.cdp_oracle.feeds import ManualPriceFeed
from src.cdp_oracle.gateway import OracleGateway
from src.cdp_token.token import FungibleToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


def feed_id_for(symbol: str) -> str:
    return f"{symbol}/USD"


def token_address_for(symbol: str) -> str:
    return f"0x{symbol.lower()}"


class CdpSystem:
    def __init__(
        self,
        clock: RequestClock,
        events: EventLog,
        oracle: OracleGateway,
        feeds: dict[str, ManualPriceFeed],
        rate_ledger: RateLedger,
        stable_coin: FungibleToken,
        collateral_tokens: list[FungibleToken],
        engine: CdpEngine,
        auctions: LiquidationAuctionHouse,
        admin: str,
    ) -> None:
        self.clock = clock
        self.events = events
        self.oracle = oracle
        self.feeds = feeds
        self.rate_ledger = rate_ledger
        self.stable_coin = stable_coin
        self.collateral_tokens = {t.address: t for t in collateral_tokens}
        self.engine = engine
        self.auctions = auctions
        self.monitor = PositionMonitor(engine, auctions, clock)
        self.admin = admin
        self._lock = asyncio.Lock()
        self._depth = 0

    # ------------------------------------------------------------------
    # Atomicity
    # ------------------------------------------------------------------

    def _stateful(self) -> list[tuple[Any, str]]:
        holders: list[tuple[Any, str]] = [
            (self.events, "state"),
            (self.oracle, "state"),
            (self.rate_ledger, "state"),
            (self.rate_ledger, "fee_params"),
            (self.stable_coin, "state"),
            (self.engine, "state"),
            (self.auctions, "state"),
        ]
        holders += [(feed, "state") for feed in self.feeds.values()]
        holders += [(token, "state") for token in self.collateral_tokens.values()]
        return holders

    def _snapshot(self) -> list[tuple[Any, str, Any]]:
        return [(obj, name, copy.deepcopy(getattr(obj, name))) for obj, name in self._stateful()]

    @staticmethod
    def _restore(snapshot: list[tuple[Any, str, Any]]) -> None:
        for obj, name, value in snapshot:
            setattr(obj, name, value)

    @contextmanager
    def atomic(self) -> Iterator["CdpSystem"]:
        if self._depth > 0:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = self._snapshot()
        self.clock.pin()
        self._depth = 1
        try:
            yield self
        except BaseException:
            self._restore(snapshot)
            raise
        finally:
            self._depth = 0
            self.clock.unpin()

    async def execute(self, db: AsyncSession, operation: Callable[[], T]) -> T:
        """Run *operation* as one serialized, atomic, journaled request."""
        async with self._lock:
            with self.atomic():
                result = operation()
                events = self.events.drain()
                try:
                    await write_events(events, db)
                    await db.commit()
                except Exception:
                    await db.rollback()
                    logger.error("Journal write failed; rolled back %d events", len(events))
                    raise
            return result

    async def resume_journal(self, db: AsyncSession) -> int:
        """Number new events after the last sequence already in the journal."""
        async with self._lock:
            last = await max_sequence(db)
            self.events.resume_after(last)
            return last

    async def read(self, operation: Callable[[], T]) -> T:
        """Run a read-only *operation* against a consistent view.

        Views never mutate, so the time is pinned without taking a snapshot.
        """
        async with self._lock:
            self.clock.pin()
            try:
                return operation()
            finally:
                self.clock.unpin()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def token(self, address: str) -> FungibleToken:
        if address == self.stable_coin.address:
            return self.stable_coin
        token = self.collateral_tokens.get(address)
        if token is None:
            raise TokenNotAllowedError(address)
        return token

    def feed(self, feed_id: str) -> ManualPriceFeed:
        feed = self.feeds.get(feed_id)
        if feed is None:
            raise UnknownFeedError(feed_id)
        return feed

    def pending_events(self) -> list[LedgerEvent]:
        return self.events.peek()


def build_system(config: Settings, clock: Clock | None = None) -> CdpSystem:
    """Assemble the development system: manual feeds, in-process tokens."""
    request_clock = RequestClock(clock or SystemClock())
    events = EventLog(request_clock)
    oracle = OracleGateway(request_clock, events)
    feed_config = FeedConfig(
        heartbeat_seconds=config.ORACLE_HEARTBEAT_SECONDS,
        max_deviation_bps=config.ORACLE_MAX_DEVIATION_BPS,
        breaker_window_seconds=config.ORACLE_BREAKER_WINDOW_SECONDS,
        breaker_reset_seconds=config.ORACLE_BREAKER_RESET_SECONDS,
        twap_window_seconds=config.ORACLE_TWAP_WINDOW_SECONDS,
    )

    feeds: dict[str, ManualPriceFeed] = {}
    for symbol, usd in config.INITIAL_PRICES_USD.items():
        feed = ManualPriceFeed(request_clock, 0, config.ORACLE_FEED_DECIMALS)
        feed.set_usd(usd)
        feeds[feed_id_for(symbol)] = feed
        oracle.register_feed(feed_id_for(symbol), feed, feed_config)

    peg_feed_id = feed_id_for(config.STABLE_COIN_SYMBOL)
    rate_ledger = RateLedger(
        request_clock,
        oracle,
        events,
        FeeParameters(
            base_fee_bps=config.BASE_FEE_BPS,
            min_fee_bps=config.MIN_FEE_BPS,
            max_fee_bps=config.MAX_FEE_BPS,
            sensitivity_below_peg=config.FEE_SENSITIVITY_BELOW_PEG,
            sensitivity_above_peg=config.FEE_SENSITIVITY_ABOVE_PEG,
        ),
        peg_feed_id if peg_feed_id in feeds else None,
    )

    stable_coin = FungibleToken(
        config.STABLE_COIN_SYMBOL,
        token_address_for(config.STABLE_COIN_SYMBOL),
        minter=config.ENGINE_ADDRESS,
    )
    # Collateral is minted by the admin faucet in development.
    collateral_tokens = [
        FungibleToken(symbol, token_address_for(symbol), minter=config.ADMIN_ADDRESS)
        for symbol in config.COLLATERAL_SYMBOLS
    ]

    engine = CdpEngine(
        address=config.ENGINE_ADDRESS,
        admin=config.ADMIN_ADDRESS,
        clock=request_clock,
        events=events,
        rate_ledger=rate_ledger,
        oracle=oracle,
        stable_coin=stable_coin,
        collateral_tokens=collateral_tokens,
        price_feed_ids=[feed_id_for(s) for s in config.COLLATERAL_SYMBOLS],
        risk=RiskParameters(
            liquidation_threshold=config.LIQUIDATION_THRESHOLD,
            liquidation_bonus=config.LIQUIDATION_BONUS,
            auction_min_bid_pct=config.AUCTION_MIN_BID_PCT,
            auction_duration_seconds=config.AUCTION_DURATION_SECONDS,
        ),
    )
    auctions = LiquidationAuctionHouse(
        address=config.AUCTION_ADDRESS,
        clock=request_clock,
        events=events,
        engine=engine,
        stable_coin=stable_coin,
        collateral_tokens=collateral_tokens,
        config=AuctionConfig(
            min_duration_seconds=config.AUCTION_MIN_DURATION_SECONDS,
            max_duration_seconds=config.AUCTION_MAX_DURATION_SECONDS,
            min_bid_increment_bps=config.AUCTION_MIN_BID_INCREMENT_BPS,
        ),
    )
    engine.set_liquidation_auction(config.ADMIN_ADDRESS, auctions)

    logger.info(
        "CDP system built: collateral=%s peg_feed=%s",
        ",".join(config.COLLATERAL_SYMBOLS), rate_ledger.peg_feed_id,
    )
    return CdpSystem(
        clock=request_clock,
        events=events,
        oracle=oracle,
        feeds=feeds,
        rate_ledger=rate_ledger,
        stable_coin=stable_coin,
        collateral_tokens=collateral_tokens,
        engine=engine,
        auctions=auctions,
        admin=config.ADMIN_ADDRESS,
    )
