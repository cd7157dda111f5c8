"""CdpEngine — position accounting and liquidation orchestration.

Every mutating entry point follows the same order: accrue the global rate,
refresh validated prices for the collateral involved, mutate engine state,
assert the health factor when the action reduces solvency, and only then
move tokens or call into the auction module.

Views never mutate: they use the ledger's preview rate and peeked prices.
"""

import logging
from typing import Protocol

from src.cdp_common.clock import Clock
from src.cdp_common.enums import EventType
from src.cdp_common.errors import (
    ActiveLiquidationAuctionExistsError,
    AmountMustBeMoreThanZeroError,
    ArrayLengthMismatchError,
    AuctionBurnExceedsDebtError,
    AuctionNotActiveError,
    BreaksHealthFactorError,
    BurnAmountExceedsMintedError,
    DebtNotAvailableForLiquidationError,
    DebtReservedForAuctionError,
    HealthFactorOkError,
    InsufficientCollateralError,
    InternalError,
    InvalidAuctionSettlementError,
    LiquidationAuctionAlreadyConfiguredError,
    LiquidationAuctionNotConfiguredError,
    OnlyLiquidationAuctionError,
    ProtocolPausedError,
    TokenNotAllowedError,
    UnauthorizedError,
    UnknownFeedError,
    ZeroAddressError,
)
from src.cdp_common.events import EventLog
from src.cdp_common.fixed_point import LIQUIDATION_PRECISION
from src.cdp_common.guards import non_reentrant
from src.cdp_engine.domain.health import (
    MIN_HEALTH_FACTOR,
    calculate_health_factor,
    token_amount_from_usd,
    usd_value,
)
from src.cdp_engine.domain.models import (
    CollateralType,
    EngineState,
    PendingLiquidation,
    RiskParameters,
    UserPosition,
)
from src.cdp_ledger.domain.rate_math import from_normalized, to_normalized
from src.cdp_ledger.rate_ledger import RateLedger
from src.cdp_oracle.gateway import OracleGateway
from src.cdp_token.token import FungibleToken

logger = logging.getLogger(__name__)


class LiquidationAuctionProtocol(Protocol):
    address: str

    def get_next_auction_id(self) -> int: ...

    def create_auction(
        self,
        caller: str,
        user: str,
        token: str,
        collateral_amount: int,
        target_debt: int,
        minimum_bid: int,
        duration: int,
    ) -> int: ...


class CdpEngine:
    def __init__(
        self,
        address: str,
        admin: str,
        clock: Clock,
        events: EventLog,
        rate_ledger: RateLedger,
        oracle: OracleGateway,
        stable_coin: FungibleToken,
        collateral_tokens: list[FungibleToken],
        price_feed_ids: list[str],
        risk: RiskParameters,
    ) -> None:
        if len(collateral_tokens) != len(price_feed_ids):
            raise ArrayLengthMismatchError(len(collateral_tokens), len(price_feed_ids))
        if not address:
            raise ZeroAddressError("engine address")
        if not admin:
            raise ZeroAddressError("admin address")
        risk.validate()

        self.address = address
        self.admin = admin
        self._clock = clock
        self._events = events
        self._rates = rate_ledger
        self._oracle = oracle
        self._stable = stable_coin
        self._tokens: dict[str, FungibleToken] = {}
        self._collateral: dict[str, CollateralType] = {}
        for token, feed_id in zip(collateral_tokens, price_feed_ids):
            if not oracle.has_feed(feed_id):
                raise UnknownFeedError(feed_id)
            self._tokens[token.address] = token
            self._collateral[token.address] = CollateralType(
                token=token.address, symbol=token.symbol, feed_id=feed_id
            )
        self._auction: LiquidationAuctionProtocol | None = None
        self.state = EngineState(risk=risk)

    # ------------------------------------------------------------------
    # Position accounting
    # ------------------------------------------------------------------

    @non_reentrant
    def deposit_collateral(self, caller: str, token: str, amount: int) -> None:
        self._require_not_paused()
        self._rates.accrue()
        self._refresh_prices(caller)
        self._record_deposit(caller, token, amount)
        self._tokens[token].transfer(caller, self.address, amount)

    @non_reentrant
    def redeem_collateral(self, caller: str, token: str, amount: int) -> None:
        self._require_not_paused()
        rate = self._rates.accrue()
        prices = self._refresh_prices(caller)
        self._record_redeem(caller, token, amount)
        self._assert_healthy(caller, rate, prices)
        self._tokens[token].transfer(self.address, caller, amount)

    @non_reentrant
    def mint_stable_coin(self, caller: str, amount: int) -> None:
        self._require_not_paused()
        rate = self._rates.accrue()
        prices = self._refresh_prices(caller)
        self._record_mint(caller, amount, rate)
        self._assert_healthy(caller, rate, prices)
        self._stable.mint(self.address, caller, amount)

    @non_reentrant
    def burn_stable_coin(self, caller: str, amount: int) -> None:
        rate = self._rates.accrue()
        self._refresh_prices(caller)
        self._record_burn(caller, amount, rate)
        self._stable.burn(self.address, caller, amount)

    @non_reentrant
    def deposit_collateral_and_mint(
        self, caller: str, token: str, amount_collateral: int, amount_to_mint: int
    ) -> None:
        self._require_not_paused()
        rate = self._rates.accrue()
        prices = self._refresh_prices(caller)
        self._record_deposit(caller, token, amount_collateral)
        self._record_mint(caller, amount_to_mint, rate)
        self._assert_healthy(caller, rate, prices)
        self._tokens[token].transfer(caller, self.address, amount_collateral)
        self._stable.mint(self.address, caller, amount_to_mint)

    @non_reentrant
    def burn_and_redeem(
        self, caller: str, token: str, amount_collateral: int, amount_to_burn: int
    ) -> None:
        self._require_not_paused()
        rate = self._rates.accrue()
        prices = self._refresh_prices(caller)
        self._record_burn(caller, amount_to_burn, rate)
        self._record_redeem(caller, token, amount_collateral)
        self._assert_healthy(caller, rate, prices)
        self._stable.burn(self.address, caller, amount_to_burn)
        self._tokens[token].transfer(self.address, caller, amount_collateral)

    # ------------------------------------------------------------------
    # Liquidation
    # ------------------------------------------------------------------

    @non_reentrant
    def liquidate(self, caller: str, token: str, user: str, debt_to_cover: int) -> int:
        """Seize collateral plus bonus from an unhealthy position and auction it.

        Returns the id of the auction that was opened.
        """
        self._require_not_paused()
        self._require_positive(debt_to_cover)
        self._require_allowed(token)
        auction = self._auction
        if auction is None:
            raise LiquidationAuctionNotConfiguredError()
        st = self.state
        if (user, token) in st.active_auctions:
            raise ActiveLiquidationAuctionExistsError(user, token)

        rate = self._rates.accrue()
        prices = self._refresh_prices(user)
        position = self._position(user)
        health_factor = self._health_factor(position, rate, prices)
        if health_factor >= MIN_HEALTH_FACTOR:
            raise HealthFactorOkError(health_factor)

        debt = from_normalized(position.normalized_debt, rate)
        available = debt - position.debt_reserved_for_auction
        if debt_to_cover > available:
            raise DebtNotAvailableForLiquidationError(available, debt_to_cover)

        price = self._price(token, prices)
        base_amount = token_amount_from_usd(price, debt_to_cover)
        bonus = base_amount * st.risk.liquidation_bonus // LIQUIDATION_PRECISION
        seize = base_amount + bonus
        balance = position.collateral.get(token, 0)
        if seize > balance:
            raise InsufficientCollateralError(seize, balance)
        minimum_bid = max(debt_to_cover * st.risk.auction_min_bid_pct // 100, 1)

        auction_id = auction.get_next_auction_id()
        position.collateral[token] = balance - seize
        position.debt_reserved_for_auction += debt_to_cover
        st.active_auctions.add((user, token))
        st.pending[auction_id] = PendingLiquidation(
            auction_id=auction_id,
            user=user,
            token=token,
            debt_to_cover=debt_to_cover,
            collateral_amount=seize,
        )
        self._events.emit(
            EventType.LIQUIDATION_STARTED,
            auction_id=auction_id,
            liquidator=caller,
            user=user,
            token=token,
            debt_to_cover=debt_to_cover,
            collateral_amount=seize,
            health_factor=health_factor,
        )

        self._tokens[token].transfer(self.address, auction.address, seize)
        created_id = auction.create_auction(
            self.address,
            user,
            token,
            seize,
            debt_to_cover,
            minimum_bid,
            st.risk.auction_duration_seconds,
        )
        if created_id != auction_id:
            raise InternalError(f"auction id mismatch: expected {auction_id}, got {created_id}")

        logger.info(
            "Liquidation started: auction=%d user=%s token=%s debt=%d seized=%d hf=%d",
            auction_id, user, token, debt_to_cover, seize, health_factor,
        )
        return auction_id

    @non_reentrant
    def on_auction_settled(
        self,
        caller: str,
        auction_id: int,
        stable_coin_to_burn: int,
        collateral_to_return: int,
    ) -> None:
        """Close the position-side books for a finalized auction.

        The full debt_to_cover leaves the position regardless of proceeds;
        the shortfall becomes protocol bad debt.
        """
        if self._auction is None or caller != self._auction.address:
            raise OnlyLiquidationAuctionError(caller)
        st = self.state
        pending = st.pending.get(auction_id)
        if pending is None:
            raise AuctionNotActiveError(auction_id)
        if stable_coin_to_burn > pending.debt_to_cover:
            raise InvalidAuctionSettlementError(
                f"burn {stable_coin_to_burn} exceeds reserved debt {pending.debt_to_cover}"
            )
        if collateral_to_return > pending.collateral_amount:
            raise InvalidAuctionSettlementError(
                f"return {collateral_to_return} exceeds seized {pending.collateral_amount}"
            )

        rate = self._rates.accrue()
        position = self._position(pending.user)
        debt = from_normalized(position.normalized_debt, rate)
        if pending.debt_to_cover > debt:
            raise AuctionBurnExceedsDebtError(pending.debt_to_cover, debt)

        st.active_auctions.discard((pending.user, pending.token))
        del st.pending[auction_id]
        position.collateral[pending.token] = (
            position.collateral.get(pending.token, 0) + collateral_to_return
        )
        position.debt_reserved_for_auction -= pending.debt_to_cover
        self._set_normalized_debt(position, to_normalized(debt - pending.debt_to_cover, rate))

        bad_debt = pending.debt_to_cover - stable_coin_to_burn
        if bad_debt > 0:
            reserve_used, deficit_increase = self._rates.socialize_bad_debt(bad_debt)
            self._events.emit(
                EventType.BAD_DEBT_SOCIALIZED,
                auction_id=auction_id,
                user=pending.user,
                amount=bad_debt,
                reserve_used=reserve_used,
                deficit_increase=deficit_increase,
            )
            logger.info(
                "Bad debt socialized: auction=%d amount=%d reserve_used=%d deficit=+%d",
                auction_id, bad_debt, reserve_used, deficit_increase,
            )
        self._events.emit(
            EventType.LIQUIDATION_SETTLED,
            auction_id=auction_id,
            user=pending.user,
            token=pending.token,
            debt_covered=pending.debt_to_cover,
            stable_coin_burned=stable_coin_to_burn,
            collateral_returned=collateral_to_return,
            bad_debt=bad_debt,
        )

        if stable_coin_to_burn > 0:
            self._stable.burn(self.address, self.address, stable_coin_to_burn)
        logger.info(
            "Liquidation settled: auction=%d user=%s burned=%d returned=%d",
            auction_id, pending.user, stable_coin_to_burn, collateral_to_return,
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @non_reentrant
    def set_liquidation_auction(self, caller: str, auction: LiquidationAuctionProtocol) -> None:
        self._require_admin(caller, "set liquidation auction")
        if self._auction is not None:
            raise LiquidationAuctionAlreadyConfiguredError()
        if not auction.address:
            raise ZeroAddressError("liquidation auction")
        self._auction = auction
        self._events.emit(EventType.AUCTION_MODULE_CONFIGURED, auction=auction.address)
        logger.info("Liquidation auction module configured: %s", auction.address)

    @non_reentrant
    def pause(self, caller: str) -> None:
        self._require_admin(caller, "pause")
        if not self.state.paused:
            self.state.paused = True
            self._events.emit(EventType.PAUSED, by=caller)
            logger.info("Protocol paused by %s", caller)

    @non_reentrant
    def unpause(self, caller: str) -> None:
        self._require_admin(caller, "unpause")
        if self.state.paused:
            self.state.paused = False
            self._events.emit(EventType.UNPAUSED, by=caller)
            logger.info("Protocol unpaused by %s", caller)

    @non_reentrant
    def set_liquidation_threshold(self, caller: str, value: int) -> None:
        self._require_admin(caller, "set liquidation threshold")
        self._update_risk(caller, "liquidation_threshold", value)

    @non_reentrant
    def set_liquidation_bonus(self, caller: str, value: int) -> None:
        self._require_admin(caller, "set liquidation bonus")
        self._update_risk(caller, "liquidation_bonus", value)

    @non_reentrant
    def set_fee_sensitivity(self, caller: str, below_peg: int, above_peg: int) -> None:
        self._require_admin(caller, "set fee sensitivity")
        self._update_fees(
            caller, sensitivity_below_peg=below_peg, sensitivity_above_peg=above_peg
        )

    @non_reentrant
    def set_fee_caps(self, caller: str, min_fee_bps: int, max_fee_bps: int) -> None:
        self._require_admin(caller, "set fee caps")
        self._update_fees(caller, min_fee_bps=min_fee_bps, max_fee_bps=max_fee_bps)

    @non_reentrant
    def set_base_fee(self, caller: str, base_fee_bps: int) -> None:
        self._require_admin(caller, "set base fee")
        self._update_fees(caller, base_fee_bps=base_fee_bps)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_account_information(self, user: str) -> tuple[int, int]:
        """(absolute debt, collateral value in USD) as of now."""
        position = self._peek_position(user)
        debt = from_normalized(position.normalized_debt, self._rates.preview_rate())
        return debt, self._collateral_value(position, self._peek_prices(position))

    def get_health_factor(self, user: str) -> int:
        position = self._peek_position(user)
        return self._health_factor(
            position, self._rates.preview_rate(), self._peek_prices(position)
        )

    def get_collateral_balance(self, user: str, token: str) -> int:
        return self._peek_position(user).collateral.get(token, 0)

    def get_stable_coin_minted(self, user: str) -> int:
        position = self._peek_position(user)
        return from_normalized(position.normalized_debt, self._rates.preview_rate())

    def get_normalized_debt(self, user: str) -> int:
        return self._peek_position(user).normalized_debt

    def get_debt_reserved_for_auction(self, user: str) -> int:
        return self._peek_position(user).debt_reserved_for_auction

    def get_usd_value(self, token: str, amount: int) -> int:
        self._require_allowed(token)
        return usd_value(self._oracle.peek_validated_price(self._collateral[token].feed_id), amount)

    def get_token_amount_from_usd(self, token: str, usd_amount: int) -> int:
        self._require_allowed(token)
        price = self._oracle.peek_validated_price(self._collateral[token].feed_id)
        return token_amount_from_usd(price, usd_amount)

    def get_account_collateral_value(self, user: str) -> int:
        position = self._peek_position(user)
        return self._collateral_value(position, self._peek_prices(position))

    def get_collateral_tokens(self) -> list[CollateralType]:
        return list(self._collateral.values())

    def get_rate(self) -> int:
        return self._rates.preview_rate()

    def get_current_stability_fee_bps(self) -> int:
        return self._rates.current_target_fee_bps()

    def get_protocol_reserve(self) -> int:
        return self._rates.state.protocol_reserve

    def get_protocol_bad_debt(self) -> int:
        return self._rates.state.protocol_bad_debt

    def get_pending_liquidation(self, auction_id: int) -> PendingLiquidation | None:
        return self.state.pending.get(auction_id)

    def has_active_auction(self, user: str, token: str) -> bool:
        return (user, token) in self.state.active_auctions

    def get_users(self) -> list[str]:
        return list(self.state.positions)

    @property
    def liquidation_auction(self) -> LiquidationAuctionProtocol | None:
        return self._auction

    @property
    def stable_coin(self) -> FungibleToken:
        return self._stable

    def collateral_token(self, token: str) -> FungibleToken:
        self._require_allowed(token)
        return self._tokens[token]

    # ------------------------------------------------------------------
    # State mutations (no token movement)
    # ------------------------------------------------------------------

    def _record_deposit(self, user: str, token: str, amount: int) -> None:
        self._require_positive(amount)
        self._require_allowed(token)
        position = self._position(user)
        position.collateral[token] = position.collateral.get(token, 0) + amount
        self._events.emit(
            EventType.COLLATERAL_DEPOSITED, user=user, token=token, amount=amount
        )

    def _record_redeem(self, user: str, token: str, amount: int) -> None:
        self._require_positive(amount)
        self._require_allowed(token)
        position = self._position(user)
        balance = position.collateral.get(token, 0)
        if amount > balance:
            raise InsufficientCollateralError(amount, balance)
        position.collateral[token] = balance - amount
        self._events.emit(
            EventType.COLLATERAL_REDEEMED, user=user, to=user, token=token, amount=amount
        )

    def _record_mint(self, user: str, amount: int, rate: int) -> None:
        self._require_positive(amount)
        position = self._position(user)
        debt = from_normalized(position.normalized_debt, rate)
        self._set_normalized_debt(position, to_normalized(debt + amount, rate))
        self._events.emit(
            EventType.STABLE_COIN_MINTED,
            user=user,
            amount=amount,
            normalized_debt=position.normalized_debt,
        )

    def _record_burn(self, user: str, amount: int, rate: int) -> None:
        self._require_positive(amount)
        position = self._position(user)
        debt = from_normalized(position.normalized_debt, rate)
        if amount > debt:
            raise BurnAmountExceedsMintedError(amount, debt)
        remaining = debt - amount
        if remaining < position.debt_reserved_for_auction:
            raise DebtReservedForAuctionError(position.debt_reserved_for_auction, amount)
        self._set_normalized_debt(position, to_normalized(remaining, rate))
        self._events.emit(
            EventType.STABLE_COIN_BURNED,
            user=user,
            amount=amount,
            normalized_debt=position.normalized_debt,
        )

    def _set_normalized_debt(self, position: UserPosition, normalized_debt: int) -> None:
        self._rates.adjust_total_normalized_debt(normalized_debt - position.normalized_debt)
        position.normalized_debt = normalized_debt

    def _update_risk(self, caller: str, name: str, value: int) -> None:
        risk = self.state.risk
        old = getattr(risk, name)
        setattr(risk, name, value)
        try:
            risk.validate()
        except Exception:
            setattr(risk, name, old)
            raise
        self._events.emit(EventType.PARAMETER_UPDATED, name=name, old=old, new=value, by=caller)
        logger.info("Parameter %s updated %d -> %d", name, old, value)

    def _update_fees(self, caller: str, **changes: int) -> None:
        # Settle accrued interest at the old parameters first.
        self._rates.accrue()
        before = self._rates.fee_params
        after = self._rates.update_fee_parameters(**changes)
        for name in changes:
            old, new = getattr(before, name), getattr(after, name)
            self._events.emit(EventType.PARAMETER_UPDATED, name=name, old=old, new=new, by=caller)
            logger.info("Parameter %s updated %d -> %d", name, old, new)

    # ------------------------------------------------------------------
    # Health and pricing
    # ------------------------------------------------------------------

    def _refresh_prices(self, user: str) -> dict[str, int]:
        """Read validated prices for every token the user currently holds."""
        prices: dict[str, int] = {}
        position = self.state.positions.get(user)
        if position is None:
            return prices
        for token, amount in position.collateral.items():
            if amount > 0:
                prices[token] = self._oracle.read_validated_price(self._collateral[token].feed_id)
        return prices

    def _price(self, token: str, prices: dict[str, int]) -> int:
        if token not in prices:
            prices[token] = self._oracle.read_validated_price(self._collateral[token].feed_id)
        return prices[token]

    def _peek_prices(self, position: UserPosition) -> dict[str, int]:
        return {
            token: self._oracle.peek_validated_price(self._collateral[token].feed_id)
            for token, amount in position.collateral.items()
            if amount > 0
        }

    def _collateral_value(self, position: UserPosition, prices: dict[str, int]) -> int:
        total = 0
        for token, amount in position.collateral.items():
            if amount > 0:
                total += usd_value(prices[token], amount)
        return total

    def _health_factor(self, position: UserPosition, rate: int, prices: dict[str, int]) -> int:
        debt = from_normalized(position.normalized_debt, rate)
        if debt == 0:
            return calculate_health_factor(0, 0, self.state.risk.liquidation_threshold)
        for token, amount in position.collateral.items():
            if amount > 0:
                self._price(token, prices)
        return calculate_health_factor(
            self._collateral_value(position, prices),
            debt,
            self.state.risk.liquidation_threshold,
        )

    def _assert_healthy(self, user: str, rate: int, prices: dict[str, int]) -> None:
        health_factor = self._health_factor(self._position(user), rate, prices)
        if health_factor < MIN_HEALTH_FACTOR:
            raise BreaksHealthFactorError(health_factor)

    # ------------------------------------------------------------------
    # Guards and lookups
    # ------------------------------------------------------------------

    def _position(self, user: str) -> UserPosition:
        position = self.state.positions.get(user)
        if position is None:
            position = UserPosition(user=user)
            self.state.positions[user] = position
        return position

    def _peek_position(self, user: str) -> UserPosition:
        return self.state.positions.get(user) or UserPosition(user=user)

    def _require_not_paused(self) -> None:
        if self.state.paused:
            raise ProtocolPausedError()

    def _require_positive(self, amount: int) -> None:
        if amount <= 0:
            raise AmountMustBeMoreThanZeroError()

    def _require_allowed(self, token: str) -> None:
        if token not in self._collateral:
            raise TokenNotAllowedError(token)

    def _require_admin(self, caller: str, action: str) -> None:
        if caller != self.admin:
            raise UnauthorizedError(caller, action)
