"""Domain models for cdp_engine — pure dataclasses, no framework dependency."""

from dataclasses import dataclass, field

from src.cdp_common.errors import InvalidParameterError


@dataclass(frozen=True)
class CollateralType:
    token: str     # token address
    symbol: str
    feed_id: str


@dataclass
class UserPosition:
    user: str
    collateral: dict[str, int] = field(default_factory=dict)  # token -> amount
    normalized_debt: int = 0            # RAY-indexed; absolute = ceil(n * rate / RAY)
    debt_reserved_for_auction: int = 0  # absolute units pledged to in-flight auctions


@dataclass
class PendingLiquidation:
    """Engine-side mirror of an auction, used to validate its settlement."""

    auction_id: int
    user: str
    token: str
    debt_to_cover: int
    collateral_amount: int


@dataclass
class RiskParameters:
    liquidation_threshold: int        # percent of collateral value counted
    liquidation_bonus: int            # percent of extra collateral seized
    auction_min_bid_pct: int          # opening floor as percent of target debt
    auction_duration_seconds: int

    def validate(self) -> None:
        if not (1 <= self.liquidation_threshold <= 100):
            raise InvalidParameterError(
                "liquidation_threshold", f"{self.liquidation_threshold} not in [1, 100]"
            )
        if not (0 <= self.liquidation_bonus <= 50):
            raise InvalidParameterError(
                "liquidation_bonus", f"{self.liquidation_bonus} not in [0, 50]"
            )
        if not (1 <= self.auction_min_bid_pct <= 100):
            raise InvalidParameterError(
                "auction_min_bid_pct", f"{self.auction_min_bid_pct} not in [1, 100]"
            )
        if self.auction_duration_seconds <= 0:
            raise InvalidParameterError("auction_duration_seconds", "must be positive")


@dataclass
class EngineState:
    risk: RiskParameters
    positions: dict[str, UserPosition] = field(default_factory=dict)
    pending: dict[int, PendingLiquidation] = field(default_factory=dict)
    active_auctions: set[tuple[str, str]] = field(default_factory=set)  # (user, token)
    paused: bool = False
