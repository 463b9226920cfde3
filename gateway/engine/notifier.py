"""
User-facing notifications for wallet activity.

Every money movement and account change writes one Notification row in
the caller's session, so it commits (or rolls back) together with the
change it describes. Each write is also logged:

  NOTIFY | user=<id> type=<type> | <message>
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from gateway.models.enums import NotificationType
from gateway.models.wallet import Notification, local_now

logger = logging.getLogger("gateway.notifier")

TITLES = {
    NotificationType.LOW_BALANCE: "Low Wallet Balance",
    NotificationType.WITHDRAWAL_SUCCESS: "Withdrawal Successful",
    NotificationType.WITHDRAWAL_FAILED: "Withdrawal Failed",
    NotificationType.DEPOSIT_SUCCESS: "Money Added Successfully",
    NotificationType.ACCOUNT_ADDED: "Bank Account Added",
}


def format_amount(amount: float) -> str:
    """Render an amount the way notification texts show it: 1,234.50."""
    return f"{amount:,.2f}"


async def notify(
    session: AsyncSession,
    user_id: str,
    type_: NotificationType,
    message: str,
    created_at: Optional[datetime] = None,
) -> Notification:
    """
    Add a notification to the session.

    Args:
        session: Database session; the caller commits.
        user_id: Recipient.
        type_: Notification category, which also selects the title.
        message: Body text.
        created_at: Override the timestamp (used to order settlement
            outcomes with the transfer that caused them).

    Returns:
        The pending Notification row.
    """
    entry = Notification(
        user_id=user_id,
        type=type_.value,
        title=TITLES[type_],
        message=message,
        read=False,
        created_at=created_at or local_now(),
    )
    session.add(entry)
    logger.info("NOTIFY | user=%s type=%s | %s", user_id, type_.value, message[:200])
    return entry


def low_balance_message(balance: float, currency: str) -> str:
    return (
        f"Your wallet balance is low ({currency} {format_amount(balance)}). "
        "Please add money to continue transactions."
    )


def withdrawal_success_message(amount: float, utr: str, currency: str) -> str:
    return (
        f"Your withdrawal of {currency} {format_amount(amount)} has been processed "
        f"successfully. UTR: {utr}"
    )


def withdrawal_failed_message(amount: float, reason: str, currency: str) -> str:
    return (
        f"Your withdrawal of {currency} {format_amount(amount)} failed. "
        f"Reason: {reason}. Amount refunded to wallet."
    )


def deposit_message(amount: float, currency: str) -> str:
    return f"{currency} {format_amount(amount)} has been added to your wallet successfully."


def account_added_message(bank_name: str, account_number: str) -> str:
    return f"Your {bank_name} account ending with {account_number[-4:]} has been successfully added."
