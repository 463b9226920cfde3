"""SQLAlchemy models for the wallet and payout gateway."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase

from gateway.config import settings
from gateway.models.enums import BeneficiaryStatus, TransactionStatus, TransferMode


class Base(DeclarativeBase):
    pass


def local_now(offset_minutes: Optional[int] = None) -> datetime:
    """
    Current wall-clock time at a UTC offset, without tzinfo.

    Every row stores timestamps in this one offset, so ordering by
    created_at stays chronological. Callers pass the offset from the
    application's Settings; column defaults fall back to the
    environment-derived settings.
    """
    if offset_minutes is None:
        offset_minutes = settings.timezone_offset_minutes
    now = datetime.now(timezone.utc) + timedelta(minutes=offset_minutes)
    return now.replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    """
    A wallet holder.

    wallet_balance is only ever changed with a single SQL increment or
    decrement (transfer debit/refund, add-money), never written from a
    value read into Python.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    wallet_balance = Column(Float, nullable=False, default=10_000.0)
    created_at = Column(DateTime, default=local_now)
    updated_at = Column(DateTime, default=local_now, onupdate=local_now)


class BankAccount(Base):
    __tablename__ = "bank_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "account_number", name="uq_user_account_number"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    account_holder_name = Column(String(200), nullable=False)
    account_number = Column(String(18), nullable=False)
    ifsc_code = Column(String(11), nullable=False)
    bank_name = Column(String(200), nullable=False)
    account_type = Column(String(20), nullable=False, default="savings")
    verified = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=local_now)


class Beneficiary(Base):
    """
    A payout destination registered against a user.

    bene_id is the externally visible key and is unique across the system.
    Beneficiaries are created explicitly or implicitly by a transfer whose
    beneId is not known yet.
    """

    __tablename__ = "beneficiaries"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    bene_id = Column(String(64), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False, default="")
    phone = Column(String(20), nullable=False, default="")
    bank_account = Column(String(32), nullable=False)
    ifsc = Column(String(11), nullable=False)
    address1 = Column(String(255), nullable=False, default="")
    city = Column(String(100), nullable=False, default="")
    state = Column(String(100), nullable=False, default="")
    pincode = Column(String(10), nullable=False, default="")
    status = Column(String(20), nullable=False, default=BeneficiaryStatus.ACTIVE.value)
    created_at = Column(DateTime, default=local_now)


class Transaction(Base):
    """
    One money movement on a wallet.

    Payouts are created PENDING and resolved exactly once to SUCCESS or
    FAILED. Deposits are created already SUCCESS. transfer_id is the
    caller's idempotency key.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_created", "user_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    transfer_id = Column(String(100), nullable=False, unique=True)
    amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    transfer_mode = Column(String(20), nullable=False, default=TransferMode.IMPS.value)
    remarks = Column(Text, nullable=False, default="")
    beneficiary_id = Column(String(36), ForeignKey("beneficiaries.id"), nullable=True)
    utr = Column(String(32), nullable=True)
    failure_reason = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=local_now)
    processed_at = Column(DateTime, nullable=True)


class Notification(Base):
    """Immutable once written, apart from the read flag."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    type = Column(String(30), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=local_now)
