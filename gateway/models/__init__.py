from gateway.models.enums import BeneficiaryStatus, NotificationType, TransactionStatus, TransferMode
from gateway.models.wallet import (
    BankAccount,
    Base,
    Beneficiary,
    Notification,
    Transaction,
    User,
    local_now,
)

__all__ = [
    "Base",
    "User",
    "BankAccount",
    "Beneficiary",
    "Transaction",
    "Notification",
    "BeneficiaryStatus",
    "NotificationType",
    "TransactionStatus",
    "TransferMode",
    "local_now",
]
