"""Tests for CdpEngine position accounting: collateral, minting, burning."""

from collections.abc import Callable

import pytest

from src.cdp_common.clock import ManualClock
from src.cdp_common.enums import EventType
from src.cdp_common.errors import (
    AmountMustBeMoreThanZeroError,
    ArrayLengthMismatchError,
    BreaksHealthFactorError,
    BurnAmountExceedsMintedError,
    CircuitBreakerOpenError,
    InsufficientBalanceError,
    InsufficientCollateralError,
    ProtocolPausedError,
    StalePriceError,
    TokenNotAllowedError,
    UnknownFeedError,
)
from src.cdp_common.events import EventLog
from src.cdp_common.fixed_point import MAX_UINT256, RAY, SECONDS_PER_YEAR
from src.cdp_engine.domain.models import RiskParameters
from src.cdp_engine.engine import CdpEngine
from src.cdp_system.system import CdpSystem
from src.cdp_token.token import FungibleToken

WAD = 10**18
ADMIN = "0xadmin"
ENGINE = "0xengine"
WETH = "0xweth"
WBTC = "0xwbtc"
ALICE = "0xalice"


def _fund(system: CdpSystem, user: str, token: str, amount: int) -> None:
    system.collateral_tokens[token].mint(ADMIN, user, amount)


def _open_alice(system: CdpSystem, collateral: int = 10 * WAD, debt: int = 8000 * WAD) -> None:
    _fund(system, ALICE, WETH, collateral)
    system.engine.deposit_collateral_and_mint(ALICE, WETH, collateral, debt)


def _total_normalized(system: CdpSystem) -> int:
    return sum(system.engine.get_normalized_debt(u) for u in system.engine.get_users())


class TestConstruction:
    def test_length_mismatch(self, system: CdpSystem) -> None:
        with pytest.raises(ArrayLengthMismatchError):
            CdpEngine(
                address=ENGINE,
                admin=ADMIN,
                clock=system.clock,
                events=system.events,
                rate_ledger=system.rate_ledger,
                oracle=system.oracle,
                stable_coin=system.stable_coin,
                collateral_tokens=[system.collateral_tokens[WETH]],
                price_feed_ids=[],
                risk=RiskParameters(50, 10, 80, 3600),
            )

    def test_unknown_feed(self, system: CdpSystem) -> None:
        with pytest.raises(UnknownFeedError):
            CdpEngine(
                address=ENGINE,
                admin=ADMIN,
                clock=system.clock,
                events=EventLog(system.clock),
                rate_ledger=system.rate_ledger,
                oracle=system.oracle,
                stable_coin=system.stable_coin,
                collateral_tokens=[FungibleToken("DOGE", "0xdoge", minter=ADMIN)],
                price_feed_ids=["DOGE/USD"],
                risk=RiskParameters(50, 10, 80, 3600),
            )

    def test_collateral_types_registered(self, system: CdpSystem) -> None:
        tokens = [c.token for c in system.engine.get_collateral_tokens()]
        assert tokens == [WETH, WBTC]


class TestDeposit:
    def test_deposit_moves_tokens(self, system: CdpSystem) -> None:
        _fund(system, ALICE, WETH, 5 * WAD)
        system.engine.deposit_collateral(ALICE, WETH, 2 * WAD)
        assert system.engine.get_collateral_balance(ALICE, WETH) == 2 * WAD
        assert system.collateral_tokens[WETH].balance_of(ALICE) == 3 * WAD
        assert system.collateral_tokens[WETH].balance_of(ENGINE) == 2 * WAD

    def test_deposit_emits_event(self, system: CdpSystem) -> None:
        _fund(system, ALICE, WETH, WAD)
        system.engine.deposit_collateral(ALICE, WETH, WAD)
        (event,) = system.events.of_type(EventType.COLLATERAL_DEPOSITED)
        assert event.payload == {"user": ALICE, "token": WETH, "amount": WAD}

    def test_zero_amount(self, system: CdpSystem) -> None:
        with pytest.raises(AmountMustBeMoreThanZeroError):
            system.engine.deposit_collateral(ALICE, WETH, 0)

    def test_token_not_allowed(self, system: CdpSystem) -> None:
        with pytest.raises(TokenNotAllowedError):
            system.engine.deposit_collateral(ALICE, "0xdoge", WAD)

    def test_unfunded_deposit_rolls_back(self, system: CdpSystem) -> None:
        with pytest.raises(InsufficientBalanceError):
            with system.atomic():
                system.engine.deposit_collateral(ALICE, WETH, WAD)
        assert system.engine.get_collateral_balance(ALICE, WETH) == 0
        assert system.events.of_type(EventType.COLLATERAL_DEPOSITED) == []


class TestMint:
    def test_deposit_and_mint(self, system: CdpSystem) -> None:
        _open_alice(system)
        assert system.stable_coin.balance_of(ALICE) == 8000 * WAD
        assert system.engine.get_stable_coin_minted(ALICE) == 8000 * WAD
        assert system.engine.get_normalized_debt(ALICE) == 8000 * WAD
        assert system.engine.get_health_factor(ALICE) == 1_250_000_000_000_000_000

    def test_mint_up_to_threshold(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.mint_stable_coin(ALICE, 2000 * WAD)
        assert system.engine.get_health_factor(ALICE) == WAD

    def test_mint_breaking_health_factor(self, system: CdpSystem) -> None:
        _open_alice(system)
        with pytest.raises(BreaksHealthFactorError):
            with system.atomic():
                system.engine.mint_stable_coin(ALICE, 2000 * WAD + 1)
        assert system.engine.get_stable_coin_minted(ALICE) == 8000 * WAD
        assert system.stable_coin.total_supply == 8000 * WAD

    def test_mint_without_collateral(self, system: CdpSystem) -> None:
        with pytest.raises(BreaksHealthFactorError):
            system.engine.mint_stable_coin(ALICE, WAD)

    def test_zero_debt_health_factor_is_max(self, system: CdpSystem) -> None:
        assert system.engine.get_health_factor(ALICE) == MAX_UINT256


class TestBurnAndRedeem:
    def test_burn_reduces_debt_and_supply(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.burn_stable_coin(ALICE, 3000 * WAD)
        assert system.engine.get_stable_coin_minted(ALICE) == 5000 * WAD
        assert system.stable_coin.total_supply == 5000 * WAD

    def test_burn_more_than_minted(self, system: CdpSystem) -> None:
        _open_alice(system)
        with pytest.raises(BurnAmountExceedsMintedError):
            system.engine.burn_stable_coin(ALICE, 8000 * WAD + 1)

    def test_redeem(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.redeem_collateral(ALICE, WETH, 2 * WAD)
        assert system.engine.get_collateral_balance(ALICE, WETH) == 8 * WAD
        assert system.collateral_tokens[WETH].balance_of(ALICE) == 2 * WAD
        (event,) = system.events.of_type(EventType.COLLATERAL_REDEEMED)
        assert event.payload["to"] == ALICE

    def test_redeem_breaking_health_factor(self, system: CdpSystem) -> None:
        _open_alice(system)
        with pytest.raises(BreaksHealthFactorError):
            with system.atomic():
                system.engine.redeem_collateral(ALICE, WETH, 3 * WAD)
        assert system.engine.get_collateral_balance(ALICE, WETH) == 10 * WAD

    def test_redeem_more_than_deposited(self, system: CdpSystem) -> None:
        _fund(system, ALICE, WETH, WAD)
        system.engine.deposit_collateral(ALICE, WETH, WAD)
        with pytest.raises(InsufficientCollateralError):
            system.engine.redeem_collateral(ALICE, WETH, 2 * WAD)

    def test_burn_and_redeem_closes_position(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.burn_and_redeem(ALICE, WETH, 10 * WAD, 8000 * WAD)
        assert system.engine.get_normalized_debt(ALICE) == 0
        assert system.engine.get_collateral_balance(ALICE, WETH) == 0
        assert system.collateral_tokens[WETH].balance_of(ALICE) == 10 * WAD
        assert system.stable_coin.total_supply == 0
        assert system.rate_ledger.state.total_normalized_debt == 0


class TestInterest:
    def test_debt_grows_with_rate(self, system: CdpSystem, clock: ManualClock) -> None:
        _open_alice(system)
        clock.advance(SECONDS_PER_YEAR)
        assert system.engine.get_rate() == RAY * 102 // 100
        assert system.engine.get_stable_coin_minted(ALICE) == 8160 * WAD
        # Views do not accrue.
        assert system.rate_ledger.state.rate == RAY

    def test_burn_after_accrual_keeps_ledger_in_sync(
        self, system: CdpSystem, clock: ManualClock
    ) -> None:
        _open_alice(system)
        clock.advance(SECONDS_PER_YEAR)
        system.engine.burn_stable_coin(ALICE, 4000 * WAD)
        remaining = system.engine.get_stable_coin_minted(ALICE)
        assert 4160 * WAD <= remaining <= 4160 * WAD + 2
        assert system.rate_ledger.state.total_normalized_debt == _total_normalized(system)
        assert system.engine.get_protocol_reserve() == 160 * WAD

    def test_normalized_sum_matches_total(self, system: CdpSystem, clock: ManualClock) -> None:
        _open_alice(system)
        _fund(system, "0xbob", WBTC, WAD)
        system.engine.deposit_collateral_and_mint("0xbob", WBTC, WAD, 10_000 * WAD)
        clock.advance(3600)
        system.engine.mint_stable_coin(ALICE, 100 * WAD)
        clock.advance(3600)
        system.engine.burn_stable_coin("0xbob", 2500 * WAD)
        assert system.rate_ledger.state.total_normalized_debt == _total_normalized(system)


class TestOracleFailures:
    def test_stale_peg_feed_rejects_mint(
        self, make_system: Callable[..., CdpSystem], clock: ManualClock
    ) -> None:
        system = make_system(ORACLE_HEARTBEAT_SECONDS=3600)
        _open_alice(system)
        accrued_at = system.rate_ledger.state.last_accrual_time
        clock.advance(7200)
        system.feeds["WETH/USD"].touch()

        with pytest.raises(StalePriceError):
            with system.atomic():
                system.engine.mint_stable_coin(ALICE, 100 * WAD)

        assert system.engine.get_normalized_debt(ALICE) == 8000 * WAD
        assert system.rate_ledger.state.total_normalized_debt == 8000 * WAD
        assert system.rate_ledger.state.last_accrual_time == accrued_at
        assert system.stable_coin.total_supply == 8000 * WAD
        assert system.events.of_type(EventType.FEE_ACCRUED) == []

    def test_open_breaker_rejects_redeem(
        self, make_system: Callable[..., CdpSystem], clock: ManualClock
    ) -> None:
        system = make_system(ORACLE_MAX_DEVIATION_BPS=1000)
        _open_alice(system)
        clock.advance(60)
        system.feeds["WETH/USD"].set_usd(1500)
        assert system.oracle.poke("WETH/USD") is False

        with pytest.raises(CircuitBreakerOpenError):
            with system.atomic():
                system.engine.redeem_collateral(ALICE, WETH, WAD)

        assert system.engine.get_collateral_balance(ALICE, WETH) == 10 * WAD
        assert system.collateral_tokens[WETH].balance_of(ALICE) == 0
        assert system.events.of_type(EventType.CIRCUIT_BREAKER_TRIPPED) != []


class TestPause:
    def test_paused_blocks_new_risk(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.pause(ADMIN)
        with pytest.raises(ProtocolPausedError):
            system.engine.mint_stable_coin(ALICE, WAD)
        with pytest.raises(ProtocolPausedError):
            system.engine.redeem_collateral(ALICE, WETH, WAD)

    def test_burn_allowed_while_paused(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.pause(ADMIN)
        system.engine.burn_stable_coin(ALICE, WAD)
        assert system.engine.get_stable_coin_minted(ALICE) == 7999 * WAD

    def test_unpause_restores(self, system: CdpSystem) -> None:
        _open_alice(system)
        system.engine.pause(ADMIN)
        system.engine.unpause(ADMIN)
        system.engine.mint_stable_coin(ALICE, WAD)
        assert [e.event_type for e in system.events.peek()][-3:] == [
            EventType.PAUSED,
            EventType.UNPAUSED,
            EventType.STABLE_COIN_MINTED,
        ]


class TestViews:
    def test_usd_conversions(self, system: CdpSystem) -> None:
        assert system.engine.get_usd_value(WETH, 3 * WAD // 2) == 3000 * WAD
        assert system.engine.get_token_amount_from_usd(WETH, 1000 * WAD) == WAD // 2

    def test_unknown_token(self, system: CdpSystem) -> None:
        with pytest.raises(TokenNotAllowedError):
            system.engine.get_usd_value("0xdoge", WAD)

    def test_account_information_multi_collateral(self, system: CdpSystem) -> None:
        _open_alice(system)
        _fund(system, ALICE, WBTC, WAD)
        system.engine.deposit_collateral(ALICE, WBTC, WAD)
        debt, collateral_usd = system.engine.get_account_information(ALICE)
        assert debt == 8000 * WAD
        assert collateral_usd == 50_000 * WAD
        assert system.engine.get_account_collateral_value(ALICE) == 50_000 * WAD

    def test_unknown_user_is_empty(self, system: CdpSystem) -> None:
        assert system.engine.get_account_information("0xnobody") == (0, 0)
        assert "0xnobody" not in system.engine.get_users()
