"""
Transfer engine: payout submission, status lookup and settlement.

Submission (synchronous, one commit):

  1. Request checks (required fields, amount > 0, amount <= ceiling)
  2. Balance check
  3. Idempotency check on transferId
  4. Beneficiary lookup by beneId, or implicit creation
  5. PENDING transaction row
  6. Conditional debit: wallet_balance >= amount, in SQL
  7. Low-balance notification when the balance drops below the threshold
  8. Resolution scheduled on the settlement worker (fire-and-forget)

Resolution (deferred, one commit per transaction):

  - The provider decides SUCCESS (with UTR) or FAILED (with reason)
  - The status update is conditional on the row still being PENDING, so
    resolving twice is a no-op
  - FAILED refunds the full amount with an atomic increment
  - Exactly one outcome notification, timestamped with the transfer's
    created_at so it sorts next to the submission
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gateway.config import Settings
from gateway.engine.identifiers import generate_bene_id
from gateway.engine.notifier import (
    low_balance_message,
    notify,
    withdrawal_failed_message,
    withdrawal_success_message,
)
from gateway.engine.retry import BASE_DELAY, MAX_RETRIES, PermanentError, with_retry
from gateway.engine.validation import check_transfer
from gateway.errors import (
    Conflict,
    DuplicateTransfer,
    GatewayError,
    InsufficientBalance,
    NotFound,
    ValidationFailed,
)
from gateway.models.enums import NotificationType, TransactionStatus, TransferMode
from gateway.models.wallet import Beneficiary, Transaction, User, local_now
from gateway.providers.base import SettlementDecision, SettlementProvider, SettlementRequest
from gateway.schemas import BeneDetails, TransferRequest

if TYPE_CHECKING:
    from gateway.engine.settlement import SettlementWorker

logger = logging.getLogger("gateway.transfers")


@dataclass
class TransferAck:
    """Provisional acceptance of a payout; the outcome arrives later."""

    reference_id: str
    transaction_id: str
    balance: float
    acknowledged: int = 1


async def submit_transfer(
    session: AsyncSession,
    user_id: str,
    request: TransferRequest,
    config: Settings,
    worker: Optional["SettlementWorker"] = None,
) -> TransferAck:
    """
    Accept a payout: validate, debit the wallet and schedule settlement.

    Args:
        session: Database session.
        user_id: The authenticated caller.
        request: Payout request body.
        config: Limits, thresholds and currency.
        worker: Settlement worker that resolves the payout later. When
            omitted the transaction stays PENDING until recovered.

    Returns:
        TransferAck echoing the caller's transferId.

    Raises:
        ValidationFailed, InsufficientBalance, DuplicateTransfer, Conflict.
    """
    result = check_transfer(
        transfer_id=request.transfer_id,
        amount=request.amount,
        bene_details=request.bene_details,
        max_amount=config.max_transfer_amount,
    )
    if not result.ok:
        raise ValidationFailed(result.message)

    amount = float(request.amount)

    balance = await session.scalar(select(User.wallet_balance).where(User.id == user_id))
    if balance is None or balance < amount:
        raise InsufficientBalance("Insufficient wallet balance")

    if await _transfer_exists(session, request.transfer_id):
        raise DuplicateTransfer("Transfer with this ID already exists")

    now = local_now(config.timezone_offset_minutes)
    try:
        beneficiary = await _resolve_beneficiary(session, user_id, request.bene_details, now)

        txn = Transaction(
            user_id=user_id,
            transfer_id=request.transfer_id,
            amount=amount,
            status=TransactionStatus.PENDING.value,
            transfer_mode=TransferMode.for_payout(request.transfer_mode).value,
            remarks=request.remarks or "",
            beneficiary_id=beneficiary.id,
            created_at=now,
        )
        session.add(txn)
        await session.flush()

        debited = await session.execute(
            update(User)
            .where(User.id == user_id, User.wallet_balance >= amount)
            .values(wallet_balance=User.wallet_balance - amount, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if debited.rowcount != 1:
            # Another request spent the balance between the check and the debit
            raise InsufficientBalance("Insufficient wallet balance")

        new_balance = await session.scalar(select(User.wallet_balance).where(User.id == user_id))
        if new_balance < config.low_balance_threshold:
            await notify(
                session,
                user_id,
                NotificationType.LOW_BALANCE,
                low_balance_message(new_balance, config.currency),
                created_at=now,
            )

        await session.commit()

    except GatewayError:
        await session.rollback()
        raise

    except IntegrityError:
        await session.rollback()
        if await _transfer_exists(session, request.transfer_id):
            raise DuplicateTransfer("Transfer with this ID already exists")
        if request.bene_details.bene_id and await _bene_id_taken(session, request.bene_details.bene_id):
            raise Conflict("Beneficiary ID already in use")
        raise

    logger.info(
        "Transfer %s accepted: user=%s amount=%.2f mode=%s balance=%.2f",
        txn.transfer_id,
        user_id,
        amount,
        txn.transfer_mode,
        new_balance,
    )

    if worker is not None:
        worker.schedule(txn.id)

    return TransferAck(
        reference_id=txn.transfer_id,
        transaction_id=txn.id,
        balance=new_balance,
    )


async def _transfer_exists(session: AsyncSession, transfer_id: str) -> bool:
    found = await session.scalar(
        select(Transaction.id).where(Transaction.transfer_id == transfer_id)
    )
    return found is not None


async def _bene_id_taken(session: AsyncSession, bene_id: str) -> bool:
    found = await session.scalar(select(Beneficiary.id).where(Beneficiary.bene_id == bene_id))
    return found is not None


async def _resolve_beneficiary(
    session: AsyncSession,
    user_id: str,
    details: BeneDetails,
    created_at: datetime,
) -> Beneficiary:
    """Find the caller's beneficiary by beneId, or create it from the details."""
    if details.bene_id:
        existing = await session.scalar(
            select(Beneficiary).where(Beneficiary.bene_id == details.bene_id)
        )
        if existing is not None:
            if existing.user_id != user_id:
                raise Conflict("Beneficiary ID already in use")
            return existing

    if not details.name or not details.bank_account or not details.ifsc:
        raise ValidationFailed("Missing beneficiary details: name, bankAccount, ifsc")

    beneficiary = Beneficiary(
        user_id=user_id,
        bene_id=details.bene_id or generate_bene_id(),
        name=details.name,
        email=details.email or "",
        phone=details.phone or "",
        bank_account=details.bank_account,
        ifsc=details.ifsc,
        address1=details.address1 or "",
        city=details.city or "",
        state=details.state or "",
        pincode=details.pincode or "",
        created_at=created_at,
    )
    session.add(beneficiary)
    await session.flush()
    logger.info("Beneficiary %s created for user %s during transfer", beneficiary.bene_id, user_id)
    return beneficiary


async def get_transfer(
    session: AsyncSession,
    user_id: str,
    transfer_id: str,
) -> tuple[Transaction, Optional[Beneficiary]]:
    """
    Look up a transfer owned by the caller.

    Raises:
        NotFound: Unknown transferId, or one that belongs to another user.
    """
    row = (
        await session.execute(
            select(Transaction, Beneficiary)
            .outerjoin(Beneficiary, Transaction.beneficiary_id == Beneficiary.id)
            .where(Transaction.transfer_id == transfer_id, Transaction.user_id == user_id)
        )
    ).first()
    if row is None:
        raise NotFound("Transfer not found")
    return row[0], row[1]


async def resolve_transfer(
    session_factory: async_sessionmaker,
    transaction_id: str,
    provider: SettlementProvider,
    currency: str = "INR",
    max_retries: int = MAX_RETRIES,
    retry_delay: float = BASE_DELAY,
    offset_minutes: Optional[int] = None,
) -> Optional[SettlementDecision]:
    """
    Resolve one PENDING payout to its terminal status.

    offset_minutes is the UTC offset used for processed_at; the configured
    default when omitted.

    Returns:
        The applied decision, or None if the transaction was missing or
        already resolved.
    """
    async with session_factory() as session:
        row = (
            await session.execute(
                select(Transaction, Beneficiary)
                .outerjoin(Beneficiary, Transaction.beneficiary_id == Beneficiary.id)
                .where(Transaction.id == transaction_id)
            )
        ).first()

    if row is None:
        logger.warning("Settlement skipped: transaction %s not found", transaction_id)
        return None

    txn, beneficiary = row
    if txn.status != TransactionStatus.PENDING.value:
        logger.info("Settlement skipped: %s already %s", txn.transfer_id, txn.status)
        return None

    request = SettlementRequest(
        transaction_id=txn.id,
        transfer_id=txn.transfer_id,
        amount=txn.amount,
        transfer_mode=txn.transfer_mode,
        bene_id=beneficiary.bene_id if beneficiary else None,
        bank_account=beneficiary.bank_account if beneficiary else None,
        ifsc=beneficiary.ifsc if beneficiary else None,
    )
    decision = await with_retry(
        provider.settle, request, max_retries=max_retries, base_delay=retry_delay
    )
    if decision.status == TransactionStatus.PENDING:
        raise PermanentError(f"Provider {provider.name} returned a non-terminal outcome")

    applied = await with_retry(
        apply_settlement,
        session_factory,
        txn,
        decision,
        currency,
        offset_minutes,
        max_retries=max_retries,
        base_delay=retry_delay,
    )
    if not applied:
        logger.info("Settlement of %s lost a race; already resolved", txn.transfer_id)
        return None

    logger.info(
        "Transfer %s resolved: %s%s",
        txn.transfer_id,
        decision.status.value,
        f" utr={decision.utr}" if decision.utr else f" reason={decision.failure_reason}",
    )
    return decision


async def apply_settlement(
    session_factory: async_sessionmaker,
    txn: Transaction,
    decision: SettlementDecision,
    currency: str = "INR",
    offset_minutes: Optional[int] = None,
) -> bool:
    """
    Write a settlement outcome in one commit.

    Returns:
        False if the transaction was no longer PENDING (nothing written).
    """
    now = local_now(offset_minutes)
    async with session_factory() as session:
        updated = await session.execute(
            update(Transaction)
            .where(
                Transaction.id == txn.id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .values(
                status=decision.status.value,
                utr=decision.utr,
                failure_reason=decision.failure_reason,
                processed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if updated.rowcount != 1:
            await session.rollback()
            return False

        if decision.succeeded:
            await notify(
                session,
                txn.user_id,
                NotificationType.WITHDRAWAL_SUCCESS,
                withdrawal_success_message(txn.amount, decision.utr, currency),
                created_at=txn.created_at,
            )
        else:
            await session.execute(
                update(User)
                .where(User.id == txn.user_id)
                .values(wallet_balance=User.wallet_balance + txn.amount, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await notify(
                session,
                txn.user_id,
                NotificationType.WITHDRAWAL_FAILED,
                withdrawal_failed_message(txn.amount, decision.failure_reason, currency),
                created_at=txn.created_at,
            )

        await session.commit()
    return True
