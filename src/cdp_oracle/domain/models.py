"""Domain models for cdp_oracle — pure dataclasses."""

from dataclasses import dataclass, field

from src.cdp_common.errors import InvalidParameterError


@dataclass(frozen=True)
class PriceRound:
    """Latest answer reported by a feed."""

    answer: int
    decimals: int
    updated_at: int


@dataclass
class FeedConfig:
    heartbeat_seconds: int
    max_deviation_bps: int
    breaker_window_seconds: int    # deviation is only judged against recent acceptances
    breaker_reset_seconds: int     # how long a tripped breaker stays open
    twap_window_seconds: int

    def validate(self) -> None:
        if self.heartbeat_seconds <= 0:
            raise InvalidParameterError("heartbeat_seconds", "must be positive")
        if self.max_deviation_bps <= 0:
            raise InvalidParameterError("max_deviation_bps", "must be positive")
        if self.breaker_window_seconds < 0 or self.breaker_reset_seconds < 0:
            raise InvalidParameterError("breaker windows", "must not be negative")
        if self.twap_window_seconds < 0:
            raise InvalidParameterError("twap_window_seconds", "must not be negative")


@dataclass
class FeedState:
    """Mutable validation bookkeeping for one feed."""

    last_price: int = 0
    last_accepted_at: int | None = None
    breaker_open_until: int = 0
    observations: list[tuple[int, int]] = field(default_factory=list)  # (time, price)


@dataclass
class OracleState:
    feeds: dict[str, FeedState] = field(default_factory=dict)
