"""
Mock settlement providers.

MockSettlementProvider simulates external settlement:
  - Random latency, uniform in [min_delay_ms, max_delay_ms)
  - Random outcome, success with probability success_rate (default 90%)
  - A failure reason drawn uniformly from FAILURE_REASONS
  - Realistic UTRs for successful payouts

The random source is injectable (pass a seeded random.Random) so runs can
be reproduced. FixedOutcomeProvider always returns the same outcome and is
what tests use to force success or failure.
"""

import random
from typing import Optional

from gateway.config import Settings
from gateway.engine.identifiers import generate_utr
from gateway.models.enums import TransactionStatus
from gateway.models.wallet import local_now
from gateway.providers.base import SettlementDecision, SettlementProvider, SettlementRequest

FAILURE_REASONS = (
    "Insufficient balance in source account",
    "Invalid beneficiary account number",
    "Bank server temporarily unavailable",
    "Transaction limit exceeded",
    "Account temporarily blocked",
    "Network timeout during processing",
)


class MockSettlementProvider(SettlementProvider):
    """Randomized settlement with configurable latency and success rate."""

    def __init__(
        self,
        success_rate: float = 0.9,
        min_delay_ms: int = 2000,
        max_delay_ms: int = 5000,
        rng: Optional[random.Random] = None,
        offset_minutes: Optional[int] = None,
    ):
        self._success_rate = success_rate
        self._min_delay_ms = min_delay_ms
        self._max_delay_ms = max_delay_ms
        if self._max_delay_ms < self._min_delay_ms:
            raise ValueError("max_delay_ms must not be below min_delay_ms")
        self._rng = rng or random.Random()
        self._offset_minutes = offset_minutes

    @classmethod
    def from_settings(cls, config: Settings, rng: Optional[random.Random] = None) -> "MockSettlementProvider":
        return cls(
            success_rate=config.settlement_success_rate,
            min_delay_ms=config.settlement_min_delay_ms,
            max_delay_ms=config.settlement_max_delay_ms,
            rng=rng,
            offset_minutes=config.timezone_offset_minutes,
        )

    @property
    def name(self) -> str:
        return "mock_settlement"

    def settlement_delay(self) -> float:
        span = self._max_delay_ms - self._min_delay_ms
        return (self._min_delay_ms + self._rng.random() * span) / 1000

    async def settle(self, request: SettlementRequest) -> SettlementDecision:
        if self._rng.random() < self._success_rate:
            return SettlementDecision(
                status=TransactionStatus.SUCCESS,
                utr=generate_utr(local_now(self._offset_minutes), self._rng),
            )
        return SettlementDecision(
            status=TransactionStatus.FAILED,
            failure_reason=self._rng.choice(FAILURE_REASONS),
        )


class FixedOutcomeProvider(SettlementProvider):
    """Deterministic provider: every payout ends with the same status."""

    def __init__(
        self,
        status: TransactionStatus = TransactionStatus.SUCCESS,
        failure_reason: str = FAILURE_REASONS[2],
        delay_seconds: float = 0.0,
        offset_minutes: Optional[int] = None,
    ):
        if status == TransactionStatus.PENDING:
            raise ValueError("A settlement outcome must be terminal")
        self._status = status
        self._failure_reason = failure_reason
        self._delay = delay_seconds
        self._offset_minutes = offset_minutes
        self.settled: list[str] = []

    @property
    def name(self) -> str:
        return f"fixed_{self._status.value.lower()}"

    def settlement_delay(self) -> float:
        return self._delay

    async def settle(self, request: SettlementRequest) -> SettlementDecision:
        self.settled.append(request.transfer_id)
        if self._status == TransactionStatus.SUCCESS:
            return SettlementDecision(status=self._status, utr=generate_utr(local_now(self._offset_minutes)))
        return SettlementDecision(status=self._status, failure_reason=self._failure_reason)
