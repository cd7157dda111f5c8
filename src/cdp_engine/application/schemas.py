"""Pydantic schemas for the positions, liquidations and protocol APIs.

Amounts are 18-decimal integers. Requests accept them as JSON integers or
decimal strings; responses always carry them as decimal strings next to a
human-readable *_display value.
"""

from pydantic import BaseModel, Field

from src.cdp_common.fixed_point import (
    RAY,
    health_factor_to_display,
    wad_to_display,
)
from src.cdp_engine.monitor import PositionSnapshot

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CollateralRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Collateral token address")
    amount: int = Field(..., gt=0, description="Collateral amount (18 decimals)")


class StableCoinRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Stablecoin amount (18 decimals)")


class DepositAndMintRequest(BaseModel):
    token: str = Field(..., min_length=1)
    amount_collateral: int = Field(..., gt=0)
    amount_to_mint: int = Field(..., gt=0)


class BurnAndRedeemRequest(BaseModel):
    token: str = Field(..., min_length=1)
    amount_collateral: int = Field(..., gt=0)
    amount_to_burn: int = Field(..., gt=0)


class LiquidateRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Collateral token to seize")
    user: str = Field(..., min_length=1, description="Address of the unhealthy position")
    debt_to_cover: int = Field(..., gt=0, description="Debt to auction off (18 decimals)")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CollateralBalance(BaseModel):
    token: str
    amount: str
    amount_display: str


class AccountResponse(BaseModel):
    user: str
    collateral: list[CollateralBalance]
    collateral_value_usd: str
    collateral_value_usd_display: str
    debt: str
    debt_display: str
    debt_reserved_for_auction: str
    health_factor: str
    health_factor_display: str
    status: str

    @classmethod
    def from_snapshot(cls, snapshot: PositionSnapshot) -> "AccountResponse":
        return cls(
            user=snapshot.user,
            collateral=[
                CollateralBalance(
                    token=token, amount=str(amount), amount_display=wad_to_display(amount)
                )
                for token, amount in snapshot.collateral.items()
            ],
            collateral_value_usd=str(snapshot.collateral_value_usd),
            collateral_value_usd_display=wad_to_display(snapshot.collateral_value_usd, 2),
            debt=str(snapshot.debt),
            debt_display=wad_to_display(snapshot.debt),
            debt_reserved_for_auction=str(snapshot.debt_reserved_for_auction),
            health_factor=str(snapshot.health_factor),
            health_factor_display=health_factor_to_display(snapshot.health_factor),
            status=snapshot.status.value,
        )


class HealthFactorResponse(BaseModel):
    user: str
    health_factor: str
    health_factor_display: str
    status: str


class PositionListResponse(BaseModel):
    items: list[AccountResponse]
    total: int


class LiquidationResponse(BaseModel):
    auction_id: int
    user: str
    token: str
    debt_to_cover: str
    collateral_seized: str


class CollateralTypeResponse(BaseModel):
    token: str
    symbol: str
    feed_id: str


class ProtocolResponse(BaseModel):
    rate: str
    rate_display: str
    current_fee_bps: int
    target_fee_bps: int
    last_accrual_time: int
    total_normalized_debt: str
    protocol_reserve: str
    protocol_bad_debt: str
    stable_coin_supply: str
    paused: bool
    liquidation_threshold: int
    liquidation_bonus: int
    liquidation_auction: str | None
    collateral_types: list[CollateralTypeResponse]


def rate_to_display(rate: int) -> str:
    """RAY-scaled index as a multiplier: 1.02 * RAY -> '1.020000000'."""
    whole, frac = divmod(rate, RAY)
    return f"{whole}.{frac:027d}"[: len(str(whole)) + 10]


class FeedPokeResponse(BaseModel):
    feed_id: str
    accepted: bool
    last_price: str
    breaker_open_until: int
