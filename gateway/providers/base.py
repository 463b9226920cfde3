"""
Abstract settlement provider interface.

A provider decides how long a payout takes to settle and how it ends.
The mock provider draws both at random; a real adapter would wrap a bank
or payout-network API. The transfer engine depends only on this interface,
so tests inject a provider with a fixed outcome.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from gateway.models.enums import TransactionStatus


@dataclass
class SettlementRequest:
    """A pending payout handed to the provider for settlement."""

    transaction_id: str
    transfer_id: str
    amount: float
    transfer_mode: str  # "IMPS", "UPI"
    bene_id: Optional[str] = None
    bank_account: Optional[str] = None
    ifsc: Optional[str] = None


@dataclass
class SettlementDecision:
    """Terminal outcome for one payout."""

    status: TransactionStatus  # SUCCESS or FAILED
    utr: Optional[str] = None  # set on SUCCESS
    failure_reason: Optional[str] = None  # set on FAILED

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS


class SettlementProvider(ABC):
    """Abstract base class for settlement providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'mock_settlement')."""
        ...

    @abstractmethod
    def settlement_delay(self) -> float:
        """Seconds to wait before a payout is resolved."""
        ...

    @abstractmethod
    async def settle(self, request: SettlementRequest) -> SettlementDecision:
        """
        Decide the terminal outcome of a payout.

        Raises:
            ProviderError: On transient failure (will be retried).
            PermanentError: On non-retriable failure.
        """
        ...
