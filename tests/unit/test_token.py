"""Tests for the in-process fungible token ledger."""

import pytest

from src.cdp_common.errors import (
    AmountMustBeMoreThanZeroError,
    InsufficientBalanceError,
    UnauthorizedError,
    ZeroAddressError,
)
from src.cdp_token.token import FungibleToken


def _make_token() -> FungibleToken:
    token = FungibleToken("SC", "0xsc", minter="0xengine")
    token.mint("0xengine", "0xalice", 100)
    return token


class TestMintBurn:
    def test_mint_by_minter(self) -> None:
        token = _make_token()
        assert token.balance_of("0xalice") == 100
        assert token.total_supply == 100

    def test_mint_by_other_rejected(self) -> None:
        token = _make_token()
        with pytest.raises(UnauthorizedError):
            token.mint("0xalice", "0xalice", 1)

    def test_burn_reduces_supply(self) -> None:
        token = _make_token()
        token.burn("0xengine", "0xalice", 40)
        assert token.balance_of("0xalice") == 60
        assert token.total_supply == 60

    def test_burn_more_than_balance(self) -> None:
        token = _make_token()
        with pytest.raises(InsufficientBalanceError) as exc_info:
            token.burn("0xengine", "0xalice", 101)
        assert exc_info.value.available == 100

    def test_zero_mint_rejected(self) -> None:
        token = _make_token()
        with pytest.raises(AmountMustBeMoreThanZeroError):
            token.mint("0xengine", "0xalice", 0)


class TestTransfer:
    def test_transfer(self) -> None:
        token = _make_token()
        token.transfer("0xalice", "0xbob", 30)
        assert token.balance_of("0xalice") == 70
        assert token.balance_of("0xbob") == 30
        assert token.total_supply == 100

    def test_insufficient_balance(self) -> None:
        token = _make_token()
        with pytest.raises(InsufficientBalanceError):
            token.transfer("0xbob", "0xalice", 1)

    def test_zero_transfer_is_noop(self) -> None:
        token = _make_token()
        token.transfer("0xbob", "0xalice", 0)
        assert token.balance_of("0xalice") == 100

    def test_empty_recipient_rejected(self) -> None:
        token = _make_token()
        with pytest.raises(ZeroAddressError):
            token.transfer("0xalice", "", 1)
