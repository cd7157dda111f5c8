"""In-process fungible token ledger.

Used for the pegged stablecoin and for collateral tokens. Amounts are
18-decimal ints. Only the configured minter may mint or burn; for the
stablecoin that is the engine.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from src.cdp_common.errors import (
    AmountMustBeMoreThanZeroError,
    InsufficientBalanceError,
    UnauthorizedError,
    ZeroAddressError,
)
from src.cdp_common.guards import non_reentrant

logger = logging.getLogger(__name__)


@dataclass
class TokenState:
    balances: defaultdict[str, int] = field(default_factory=lambda: defaultdict(int))
    total_supply: int = 0


class FungibleToken:
    def __init__(self, symbol: str, address: str, minter: str) -> None:
        if not address:
            raise ZeroAddressError("token address")
        if not minter:
            raise ZeroAddressError("minter")
        self.symbol = symbol
        self.address = address
        self.minter = minter
        self.state = TokenState()

    def balance_of(self, account: str) -> int:
        return self.state.balances.get(account, 0)

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    @non_reentrant
    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if not recipient:
            raise ZeroAddressError("recipient")
        if amount < 0:
            raise AmountMustBeMoreThanZeroError()
        if amount == 0:
            return
        available = self.balance_of(sender)
        if available < amount:
            raise InsufficientBalanceError(self.symbol, amount, available)
        self.state.balances[sender] = available - amount
        self.state.balances[recipient] += amount

    @non_reentrant
    def mint(self, caller: str, to: str, amount: int) -> bool:
        if caller != self.minter:
            raise UnauthorizedError(caller, f"mint {self.symbol}")
        if not to:
            raise ZeroAddressError("mint recipient")
        if amount <= 0:
            raise AmountMustBeMoreThanZeroError()
        self.state.balances[to] += amount
        self.state.total_supply += amount
        return True

    @non_reentrant
    def burn(self, caller: str, from_: str, amount: int) -> None:
        if caller != self.minter:
            raise UnauthorizedError(caller, f"burn {self.symbol}")
        if amount <= 0:
            raise AmountMustBeMoreThanZeroError()
        available = self.balance_of(from_)
        if available < amount:
            raise InsufficientBalanceError(self.symbol, amount, available)
        self.state.balances[from_] = available - amount
        self.state.total_supply -= amount
