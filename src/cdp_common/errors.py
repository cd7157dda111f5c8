"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Authorization
  2xxx: Input validation
  3xxx: Solvency / position
  4xxx: Oracle
  5xxx: Auction
  6xxx: Liquidation / settlement
  9xxx: System

Every failure rejects the whole request; structured fields are kept on the
exception so a caller can correct and resubmit.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)

    def details(self) -> dict[str, object]:
        """Structured fields set by the subclass, e.g. required vs provided."""
        return {
            k: v
            for k, v in vars(self).items()
            if k not in ("code", "message", "http_status") and not k.startswith("_")
        }


# --- 1xxx: Authorization ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class UnauthorizedError(AppError):
    def __init__(self, caller: str, action: str) -> None:
        self.caller = caller
        self.action = action
        super().__init__(1002, f"Caller {caller} is not allowed to {action}", 403)


class OnlyLiquidationAuctionError(AppError):
    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(
            1003, f"Only the configured liquidation auction may settle (caller {caller})", 403
        )


class OnlyEngineError(AppError):
    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(1004, f"Only the engine may open auctions (caller {caller})", 403)


# --- 2xxx: Input validation ---

class AmountMustBeMoreThanZeroError(AppError):
    def __init__(self) -> None:
        super().__init__(2001, "Amount must be more than zero", 422)


class TokenNotAllowedError(AppError):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(2002, f"Token not accepted as collateral: {token}", 422)


class ArrayLengthMismatchError(AppError):
    def __init__(self, tokens: int, feeds: int) -> None:
        super().__init__(
            2003, f"Collateral tokens ({tokens}) and price feeds ({feeds}) differ in length", 422
        )


class ZeroAddressError(AppError):
    def __init__(self, field: str) -> None:
        super().__init__(2004, f"Address must not be empty: {field}", 422)


class InvalidParameterError(AppError):
    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        super().__init__(2005, f"Invalid parameter {name}: {detail}", 422)


class InsufficientCollateralError(AppError):
    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2006,
            f"Insufficient collateral: required {required}, available {available}",
            422,
        )


class InsufficientBalanceError(AppError):
    def __init__(self, symbol: str, required: int, available: int) -> None:
        self.symbol = symbol
        self.required = required
        self.available = available
        super().__init__(
            2007,
            f"Insufficient {symbol} balance: required {required}, available {available}",
            422,
        )


class ProtocolPausedError(AppError):
    def __init__(self) -> None:
        super().__init__(2008, "Protocol is paused", 423)


# --- 3xxx: Solvency / position ---

class BreaksHealthFactorError(AppError):
    def __init__(self, health_factor: int) -> None:
        self.health_factor = health_factor
        super().__init__(3001, f"Health factor too low: {health_factor}", 422)


class BurnAmountExceedsMintedError(AppError):
    def __init__(self, burn_amount: int, minted_amount: int) -> None:
        self.burn_amount = burn_amount
        self.minted_amount = minted_amount
        super().__init__(
            3002,
            f"Burn amount {burn_amount} exceeds minted amount {minted_amount}",
            422,
        )


class DebtReservedForAuctionError(AppError):
    def __init__(self, reserved_debt: int, burn_amount: int) -> None:
        self.reserved_debt = reserved_debt
        self.burn_amount = burn_amount
        super().__init__(
            3003,
            f"Debt {reserved_debt} is reserved for an active auction; cannot burn {burn_amount}",
            422,
        )


class HealthFactorOkError(AppError):
    def __init__(self, health_factor: int) -> None:
        self.health_factor = health_factor
        super().__init__(3004, f"Position is healthy (health factor {health_factor})", 422)


class DebtNotAvailableForLiquidationError(AppError):
    def __init__(self, available_debt: int, requested_debt: int) -> None:
        self.available_debt = available_debt
        self.requested_debt = requested_debt
        super().__init__(
            3005,
            f"Requested debt {requested_debt} exceeds liquidatable debt {available_debt}",
            422,
        )


# --- 4xxx: Oracle ---

class InvalidPriceError(AppError):
    def __init__(self, feed_id: str, answer: int) -> None:
        self.feed_id = feed_id
        self.answer = answer
        super().__init__(4001, f"Invalid price from feed {feed_id}: {answer}", 503)


class StalePriceError(AppError):
    def __init__(self, feed_id: str, updated_at: int, now: int) -> None:
        self.feed_id = feed_id
        self.updated_at = updated_at
        self.now = now
        super().__init__(
            4002, f"Stale price from feed {feed_id}: updated at {updated_at}, now {now}", 503
        )


class PriceDeviationError(AppError):
    def __init__(self, feed_id: str, deviation_bps: int, max_deviation_bps: int) -> None:
        self.feed_id = feed_id
        self.deviation_bps = deviation_bps
        self.max_deviation_bps = max_deviation_bps
        super().__init__(
            4003,
            f"Price from feed {feed_id} moved {deviation_bps} bps (max {max_deviation_bps})",
            503,
        )


class CircuitBreakerOpenError(AppError):
    def __init__(self, feed_id: str, open_until: int) -> None:
        self.feed_id = feed_id
        self.open_until = open_until
        super().__init__(4004, f"Circuit breaker open for feed {feed_id} until {open_until}", 503)


class UnknownFeedError(AppError):
    def __init__(self, feed_id: str) -> None:
        self.feed_id = feed_id
        super().__init__(4005, f"Unknown price feed: {feed_id}", 404)


# --- 5xxx: Auction ---

class AuctionNotFoundError(AppError):
    def __init__(self, auction_id: int) -> None:
        self.auction_id = auction_id
        super().__init__(5001, f"Auction not found: {auction_id}", 404)


class AuctionAlreadySettledError(AppError):
    def __init__(self, auction_id: int) -> None:
        self.auction_id = auction_id
        super().__init__(5002, f"Auction {auction_id} is already settled", 409)


class AuctionExpiredError(AppError):
    def __init__(self, auction_id: int, end_time: int, now: int) -> None:
        self.auction_id = auction_id
        self.end_time = end_time
        self.now = now
        super().__init__(
            5003, f"Auction {auction_id} ended at {end_time} (now {now})", 422
        )


class BidTooLowError(AppError):
    def __init__(self, minimum_required: int, provided: int) -> None:
        self.minimum_required = minimum_required
        self.provided = provided
        super().__init__(
            5004, f"Bid too low: minimum {minimum_required}, provided {provided}", 422
        )


class BidExceedsTargetDebtError(AppError):
    def __init__(self, target_debt: int, provided: int) -> None:
        self.target_debt = target_debt
        self.provided = provided
        super().__init__(
            5005, f"Bid {provided} exceeds target debt {target_debt}", 422
        )


class AuctionNotExpiredError(AppError):
    def __init__(self, auction_id: int, end_time: int, now: int) -> None:
        self.auction_id = auction_id
        self.end_time = end_time
        self.now = now
        super().__init__(
            5006,
            f"Auction {auction_id} runs until {end_time} (now {now}) and has no full-price bid",
            422,
        )


class InvalidAuctionParametersError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5007, f"Invalid auction parameters: {detail}", 422)


# --- 6xxx: Liquidation / settlement ---

class LiquidationAuctionNotConfiguredError(AppError):
    def __init__(self) -> None:
        super().__init__(6001, "Liquidation auction is not configured", 409)


class LiquidationAuctionAlreadyConfiguredError(AppError):
    def __init__(self) -> None:
        super().__init__(6002, "Liquidation auction is already configured", 409)


class ActiveLiquidationAuctionExistsError(AppError):
    def __init__(self, user: str, token: str) -> None:
        self.user = user
        self.token = token
        super().__init__(6003, f"Active liquidation auction exists for {user} / {token}", 409)


class AuctionNotActiveError(AppError):
    def __init__(self, auction_id: int) -> None:
        self.auction_id = auction_id
        super().__init__(6004, f"No active liquidation for auction {auction_id}", 409)


class InvalidAuctionSettlementError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6005, f"Invalid auction settlement: {detail}", 500)


class AuctionBurnExceedsDebtError(AppError):
    def __init__(self, burn_amount: int, minted_amount: int) -> None:
        self.burn_amount = burn_amount
        self.minted_amount = minted_amount
        super().__init__(
            6006,
            f"Settlement debt {burn_amount} exceeds outstanding debt {minted_amount}",
            500,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ReentrantCallError(AppError):
    def __init__(self, entry_point: str) -> None:
        self.entry_point = entry_point
        super().__init__(9003, f"Re-entrant call rejected: {entry_point}", 409)
