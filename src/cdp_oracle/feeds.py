"""Price feed sources.

PriceFeedProtocol is what the gateway consumes. ManualPriceFeed is the
development/test source whose answer is set explicitly, like a mock
aggregator.
"""

from dataclasses import dataclass
from typing import Protocol

from src.cdp_common.clock import Clock
from src.cdp_oracle.domain.models import PriceRound


class PriceFeedProtocol(Protocol):
    def latest_round(self) -> PriceRound: ...


@dataclass
class ManualFeedState:
    answer: int
    updated_at: int


class ManualPriceFeed:
    def __init__(self, clock: Clock, answer: int, decimals: int = 8) -> None:
        self._clock = clock
        self.decimals = decimals
        self.state = ManualFeedState(answer=answer, updated_at=clock.now())

    def latest_round(self) -> PriceRound:
        return PriceRound(
            answer=self.state.answer,
            decimals=self.decimals,
            updated_at=self.state.updated_at,
        )

    def set_answer(self, answer: int) -> None:
        self.state.answer = answer
        self.state.updated_at = self._clock.now()

    def set_usd(self, usd: int) -> None:
        """Set a whole-dollar answer in the feed's decimals."""
        self.set_answer(usd * 10**self.decimals)

    def touch(self) -> None:
        """Re-report the current answer with a fresh timestamp."""
        self.state.updated_at = self._clock.now()
