"""Domain models for cdp_ledger — pure dataclasses."""

from dataclasses import dataclass

from src.cdp_common.fixed_point import RAY


@dataclass
class GlobalLedgerState:
    rate: int = RAY                 # debt growth index, RAY scale
    last_accrual_time: int = 0
    current_fee_bps: int = 0        # last applied annual fee, informational
    total_normalized_debt: int = 0  # == sum of every position's normalized_debt
    protocol_reserve: int = 0       # stablecoin units
    protocol_bad_debt: int = 0      # stablecoin units


@dataclass(frozen=True)
class AccrualResult:
    rate: int
    fee_bps: int
    elapsed: int
    revenue: int  # increase in absolute system debt
