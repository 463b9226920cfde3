"""Enumerations for the wallet and payout domain model."""

from enum import Enum


class TransactionStatus(str, Enum):
    """Lifecycle states for a transaction. Only PENDING is non-terminal."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class TransferMode(str, Enum):
    """How money moved. DEPOSIT marks wallet top-ups, the rest are payouts."""

    IMPS = "IMPS"
    UPI = "UPI"
    DEPOSIT = "DEPOSIT"

    @classmethod
    def for_payout(cls, requested: str | None) -> "TransferMode":
        """Instant-payment requests map to UPI, everything else to IMPS."""
        if requested and requested.lower() == "upi":
            return cls.UPI
        return cls.IMPS


class NotificationType(str, Enum):
    LOW_BALANCE = "LOW_BALANCE"
    WITHDRAWAL_SUCCESS = "WITHDRAWAL_SUCCESS"
    WITHDRAWAL_FAILED = "WITHDRAWAL_FAILED"
    DEPOSIT_SUCCESS = "DEPOSIT_SUCCESS"
    ACCOUNT_ADDED = "ACCOUNT_ADDED"


class BeneficiaryStatus(str, Enum):
    ACTIVE = "ACTIVE"
