"""RateLedger — owner of the global debt index and protocol balances.

accrue() brings the index up to the current request time in O(1) for the
whole system; the fee revenue it implies first repays protocol bad debt and
the remainder is added to the protocol reserve.
"""

import logging
from dataclasses import replace

from src.cdp_common.clock import Clock
from src.cdp_common.enums import EventType
from src.cdp_common.errors import InternalError
from src.cdp_common.events import EventLog
from src.cdp_common.fixed_point import PRECISION
from src.cdp_ledger.domain.fee_controller import FeeParameters, target_fee_bps
from src.cdp_ledger.domain.models import AccrualResult, GlobalLedgerState
from src.cdp_ledger.domain.rate_math import from_normalized, grow_rate
from src.cdp_oracle.gateway import OracleGateway

logger = logging.getLogger(__name__)


class RateLedger:
    def __init__(
        self,
        clock: Clock,
        oracle: OracleGateway,
        events: EventLog,
        fee_params: FeeParameters,
        peg_feed_id: str | None,
    ) -> None:
        fee_params.validate()
        self._clock = clock
        self._oracle = oracle
        self._events = events
        self._peg_feed_id = peg_feed_id
        self.fee_params = fee_params
        self.state = GlobalLedgerState(
            last_accrual_time=clock.now(),
            current_fee_bps=fee_params.base_fee_bps,
        )

    @property
    def peg_feed_id(self) -> str | None:
        return self._peg_feed_id

    # ------------------------------------------------------------------
    # Accrual
    # ------------------------------------------------------------------

    def accrue(self) -> int:
        """Bring the rate up to now using a freshly validated peg price."""
        st = self.state
        now = self._clock.now()
        elapsed = now - st.last_accrual_time
        if elapsed <= 0:
            return st.rate

        result = self._project(elapsed, self._peg_price(fresh=True))
        repaid = min(result.revenue, st.protocol_bad_debt)
        st.protocol_bad_debt -= repaid
        st.protocol_reserve += result.revenue - repaid
        st.rate = result.rate
        st.current_fee_bps = result.fee_bps
        st.last_accrual_time = now

        self._events.emit(
            EventType.FEE_ACCRUED,
            fee_bps=result.fee_bps,
            rate=result.rate,
            elapsed=elapsed,
            revenue=result.revenue,
            bad_debt_repaid=repaid,
        )
        logger.debug(
            "Accrued %ds at %d bps: rate=%d revenue=%d", elapsed, result.fee_bps,
            result.rate, result.revenue,
        )
        return st.rate

    def preview_rate(self) -> int:
        """Rate as of now without side effects (peeked peg price)."""
        return self.preview().rate

    def preview(self) -> AccrualResult:
        st = self.state
        elapsed = self._clock.now() - st.last_accrual_time
        if elapsed <= 0:
            return AccrualResult(rate=st.rate, fee_bps=st.current_fee_bps, elapsed=0, revenue=0)
        return self._project(elapsed, self._peg_price(fresh=False))

    def current_target_fee_bps(self) -> int:
        return target_fee_bps(self._peg_price(fresh=False), self.fee_params)

    # ------------------------------------------------------------------
    # Ledger mutations used by position accounting
    # ------------------------------------------------------------------

    def adjust_total_normalized_debt(self, delta: int) -> None:
        new_total = self.state.total_normalized_debt + delta
        if new_total < 0:
            raise InternalError(f"total normalized debt would become negative ({new_total})")
        self.state.total_normalized_debt = new_total

    def socialize_bad_debt(self, amount: int) -> tuple[int, int]:
        """Absorb *amount* with the reserve first, the rest as deficit.

        Returns (reserve_used, deficit_increase).
        """
        st = self.state
        reserve_used = min(amount, st.protocol_reserve)
        deficit_increase = amount - reserve_used
        st.protocol_reserve -= reserve_used
        st.protocol_bad_debt += deficit_increase
        return reserve_used, deficit_increase

    def update_fee_parameters(self, **changes: int) -> FeeParameters:
        candidate = replace(self.fee_params, **changes)
        candidate.validate()
        self.fee_params = candidate
        return candidate

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _peg_price(self, fresh: bool) -> int:
        if self._peg_feed_id is None:
            return PRECISION
        if fresh:
            return self._oracle.read_validated_price(self._peg_feed_id)
        return self._oracle.peek_validated_price(self._peg_feed_id)

    def _project(self, elapsed: int, peg_price: int) -> AccrualResult:
        st = self.state
        fee_bps = target_fee_bps(peg_price, self.fee_params)
        new_rate = grow_rate(st.rate, fee_bps, elapsed)
        revenue = 0
        if st.total_normalized_debt > 0:
            before = from_normalized(st.total_normalized_debt, st.rate)
            after = from_normalized(st.total_normalized_debt, new_rate)
            revenue = after - before
        return AccrualResult(rate=new_rate, fee_bps=fee_bps, elapsed=elapsed, revenue=revenue)
