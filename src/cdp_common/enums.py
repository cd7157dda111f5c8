"""Global enums — EventType values must match the ledger_events CHECK constraint."""

from enum import Enum


class EventType(str, Enum):
    # Position accounting
    COLLATERAL_DEPOSITED = "COLLATERAL_DEPOSITED"
    COLLATERAL_REDEEMED = "COLLATERAL_REDEEMED"
    STABLE_COIN_MINTED = "STABLE_COIN_MINTED"
    STABLE_COIN_BURNED = "STABLE_COIN_BURNED"
    # Rate ledger
    FEE_ACCRUED = "FEE_ACCRUED"
    # Liquidation
    LIQUIDATION_STARTED = "LIQUIDATION_STARTED"
    LIQUIDATION_SETTLED = "LIQUIDATION_SETTLED"
    BAD_DEBT_SOCIALIZED = "BAD_DEBT_SOCIALIZED"
    # Auction
    AUCTION_CREATED = "AUCTION_CREATED"
    BID_PLACED = "BID_PLACED"
    BID_REFUNDED = "BID_REFUNDED"
    AUCTION_SETTLED = "AUCTION_SETTLED"
    # Administration
    PARAMETER_UPDATED = "PARAMETER_UPDATED"
    AUCTION_MODULE_CONFIGURED = "AUCTION_MODULE_CONFIGURED"
    PAUSED = "PAUSED"
    UNPAUSED = "UNPAUSED"
    # Oracle
    PRICE_ACCEPTED = "PRICE_ACCEPTED"
    CIRCUIT_BREAKER_TRIPPED = "CIRCUIT_BREAKER_TRIPPED"


class AuctionStatus(str, Enum):
    """Derived lifecycle state; only `settled` is stored on the auction."""
    CREATED = "CREATED"
    OPEN = "OPEN"
    EXPIRED = "EXPIRED"
    SETTLED = "SETTLED"


class PositionStatus(str, Enum):
    LIQUIDATABLE = "LIQUIDATABLE"
    AT_RISK = "AT_RISK"
    SAFE = "SAFE"
