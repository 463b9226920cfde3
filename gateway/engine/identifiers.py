"""Opaque identifier generation and account-number masking."""

import random
import secrets
import string
import time
import uuid
from datetime import datetime
from typing import Optional

_ALPHANUMERIC = string.ascii_uppercase + string.digits


def generate_id() -> str:
    return str(uuid.uuid4())


def _random_code(length: int) -> str:
    return "".join(secrets.choice(_ALPHANUMERIC) for _ in range(length))


def generate_transfer_id(prefix: str = "TXN", suffix_length: int = 6) -> str:
    """e.g. TXN1718000000000AB12CD: prefix, epoch millis, random suffix."""
    return f"{prefix}{int(time.time() * 1000)}{_random_code(suffix_length)}"


def generate_deposit_id() -> str:
    return generate_transfer_id(prefix="DEP", suffix_length=4)


def generate_bene_id() -> str:
    return f"BENE{_random_code(8)}"


def generate_utr(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """Settlement reference: YYYYMMDD followed by six random digits."""
    now = now or datetime.now()
    rng = rng or random
    return f"{now:%Y%m%d}{rng.randint(0, 999_999):06d}"


def mask_account_number(account_number: str) -> str:
    """
    Replace all but the last four characters with X.

    Length-preserving and idempotent; inputs of four characters or fewer
    are returned unchanged.
    """
    if len(account_number) <= 4:
        return account_number
    return "X" * (len(account_number) - 4) + account_number[-4:]
