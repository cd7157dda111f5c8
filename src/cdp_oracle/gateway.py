"""OracleGateway — validated prices for registered feeds.

read_validated_price() may update the feed's bookkeeping (last accepted
price, TWAP observations) and raises when the answer is invalid, stale,
deviates too fast, or the feed's circuit breaker is open. Any such failure
rejects the whole request: price-dependent operations halt rather than run
on unreliable data.

peek_validated_price() applies the same checks without touching state and
backs read-only queries.
"""

import logging

from src.cdp_common.clock import Clock
from src.cdp_common.enums import EventType
from src.cdp_common.errors import (
    CircuitBreakerOpenError,
    InvalidPriceError,
    PriceDeviationError,
    StalePriceError,
    UnknownFeedError,
)
from src.cdp_common.events import EventLog
from src.cdp_common.fixed_point import BPS_DENOMINATOR, to_wad
from src.cdp_oracle.domain.models import FeedConfig, FeedState, OracleState
from src.cdp_oracle.domain.twap import prune, time_weighted_average
from src.cdp_oracle.feeds import PriceFeedProtocol

logger = logging.getLogger(__name__)


class OracleGateway:
    def __init__(self, clock: Clock, events: EventLog) -> None:
        self._clock = clock
        self._events = events
        self._feeds: dict[str, PriceFeedProtocol] = {}
        self._configs: dict[str, FeedConfig] = {}
        self.state = OracleState()

    def register_feed(self, feed_id: str, feed: PriceFeedProtocol, config: FeedConfig) -> None:
        config.validate()
        self._feeds[feed_id] = feed
        self._configs[feed_id] = config
        self.state.feeds.setdefault(feed_id, FeedState())

    def has_feed(self, feed_id: str) -> bool:
        return feed_id in self._feeds

    def feed(self, feed_id: str) -> PriceFeedProtocol:
        if feed_id not in self._feeds:
            raise UnknownFeedError(feed_id)
        return self._feeds[feed_id]

    def config(self, feed_id: str) -> FeedConfig:
        if feed_id not in self._configs:
            raise UnknownFeedError(feed_id)
        return self._configs[feed_id]

    def feed_state(self, feed_id: str) -> FeedState:
        if feed_id not in self.state.feeds:
            raise UnknownFeedError(feed_id)
        return self.state.feeds[feed_id]

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def read_validated_price(self, feed_id: str) -> int:
        """Validate the latest answer, record it, and return it in 18 decimals."""
        now = self._clock.now()
        price, deviation_bps = self._evaluate(feed_id, now)
        cfg = self._configs[feed_id]
        if deviation_bps is not None:
            logger.warning(
                "Rejected price for %s: deviation %d bps > %d bps",
                feed_id, deviation_bps, cfg.max_deviation_bps,
            )
            raise PriceDeviationError(feed_id, deviation_bps, cfg.max_deviation_bps)
        self._record(feed_id, price, now)
        return price

    def peek_validated_price(self, feed_id: str) -> int:
        """Same checks as read_validated_price; never mutates."""
        now = self._clock.now()
        price, deviation_bps = self._evaluate(feed_id, now)
        if deviation_bps is not None:
            raise PriceDeviationError(
                feed_id, deviation_bps, self._configs[feed_id].max_deviation_bps
            )
        return price

    def poke(self, feed_id: str) -> bool:
        """Keeper entry point: accept the answer, or trip the breaker on deviation.

        Returns True when the answer was accepted. Unlike read_validated_price
        this does not raise on deviation, so the trip survives the request.
        """
        now = self._clock.now()
        st = self.feed_state(feed_id)
        if st.breaker_open_until > now:
            return False
        price, deviation_bps = self._evaluate(feed_id, now)
        if deviation_bps is None:
            self._record(feed_id, price, now)
            return True
        cfg = self._configs[feed_id]
        st.breaker_open_until = now + cfg.breaker_reset_seconds
        self._events.emit(
            EventType.CIRCUIT_BREAKER_TRIPPED,
            feed_id=feed_id,
            price=price,
            reference_price=self._reference_price(st, cfg, now),
            deviation_bps=deviation_bps,
            open_until=st.breaker_open_until,
        )
        logger.warning(
            "Circuit breaker tripped for %s until %d (deviation %d bps)",
            feed_id, st.breaker_open_until, deviation_bps,
        )
        return False

    def twap(self, feed_id: str) -> int:
        st = self.feed_state(feed_id)
        cfg = self._configs[feed_id]
        return time_weighted_average(st.observations, self._clock.now(), cfg.twap_window_seconds)

    def last_price(self, feed_id: str) -> int:
        return self.feed_state(feed_id).last_price

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _evaluate(self, feed_id: str, now: int) -> tuple[int, int | None]:
        """Return (price, deviation_bps) where deviation is set only when excessive."""
        feed = self.feed(feed_id)
        cfg = self._configs[feed_id]
        st = self.state.feeds[feed_id]

        latest = feed.latest_round()
        if latest.answer <= 0:
            raise InvalidPriceError(feed_id, latest.answer)
        if now - latest.updated_at > cfg.heartbeat_seconds:
            raise StalePriceError(feed_id, latest.updated_at, now)
        if st.breaker_open_until > now:
            raise CircuitBreakerOpenError(feed_id, st.breaker_open_until)

        price = to_wad(latest.answer, latest.decimals)
        if st.last_accepted_at is None or now - st.last_accepted_at > cfg.breaker_window_seconds:
            return price, None
        reference = self._reference_price(st, cfg, now)
        if reference == 0:
            return price, None
        deviation_bps = abs(price - reference) * BPS_DENOMINATOR // reference
        if deviation_bps > cfg.max_deviation_bps:
            return price, deviation_bps
        return price, None

    def _reference_price(self, st: FeedState, cfg: FeedConfig, now: int) -> int:
        if st.observations:
            return time_weighted_average(st.observations, now, cfg.twap_window_seconds)
        return st.last_price

    def _record(self, feed_id: str, price: int, now: int) -> None:
        st = self.state.feeds[feed_id]
        cfg = self._configs[feed_id]
        changed = price != st.last_price
        st.last_price = price
        st.last_accepted_at = now
        if st.observations and st.observations[-1][0] == now:
            st.observations[-1] = (now, price)
        else:
            st.observations.append((now, price))
        st.observations = prune(st.observations, now, cfg.twap_window_seconds)
        if changed:
            self._events.emit(EventType.PRICE_ACCEPTED, feed_id=feed_id, price=price)
