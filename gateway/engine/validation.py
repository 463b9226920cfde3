"""
Input checks for wallet and payout requests.

Format validators are plain predicates. check_transfer runs the request
checks for a payout in a fixed order and returns a structured result, so
the transfer engine reports the first failing rule:

  1. Required fields present (transferId, amount, beneDetails)
  2. Amount is a finite positive number
  3. Amount within the per-transfer ceiling
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Optional


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[6-9]\d{9}$")  # Indian mobile numbers
IFSC_RE = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")
ACCOUNT_NUMBER_RE = re.compile(r"^\d{9,18}$")

MIN_PASSWORD_LENGTH = 6


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def validate_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(phone))


def validate_ifsc(ifsc: str) -> bool:
    """Four uppercase letters, a literal zero, then six alphanumerics."""
    return bool(IFSC_RE.match(ifsc))


def validate_account_number(account_number: str) -> bool:
    return bool(ACCOUNT_NUMBER_RE.match(account_number))


@dataclass
class CheckResult:
    """Result of a request check."""

    ok: bool
    message: str = ""


def check_transfer(
    transfer_id: Optional[str],
    amount: Optional[float],
    bene_details: Optional[Any],
    max_amount: float,
) -> CheckResult:
    """
    Check a payout request before any state is read or written.

    Args:
        transfer_id: Caller-chosen idempotency key.
        amount: Requested amount in wallet currency.
        bene_details: Beneficiary reference or details.
        max_amount: Per-transfer ceiling.

    Returns:
        CheckResult, with the message of the first failing rule.
    """
    if not transfer_id or amount is None or bene_details is None:
        return CheckResult(False, "Missing required fields: transferId, amount, beneDetails")

    if math.isnan(amount) or amount <= 0:
        return CheckResult(False, "Amount must be greater than 0")

    if amount > max_amount:
        return CheckResult(False, f"Amount exceeds maximum limit of {max_amount:,.0f}")

    return CheckResult(True)


def check_deposit(amount: Optional[float], max_amount: float) -> CheckResult:
    if amount is None or math.isnan(amount) or amount <= 0:
        return CheckResult(False, "Valid amount is required")
    if amount > max_amount:
        return CheckResult(False, f"Amount cannot exceed {max_amount:,.0f}")
    return CheckResult(True)


def check_bank_details(account_number: str, ifsc: str) -> CheckResult:
    """Format checks shared by bank accounts and beneficiaries."""
    if not validate_account_number(account_number):
        return CheckResult(False, "Invalid account number format")
    if not validate_ifsc(ifsc):
        return CheckResult(False, "Invalid IFSC code format")
    return CheckResult(True)
