"""
Wallet endpoints.

GET    /wallet/balance            - Current balance.
POST   /wallet/add-money          - Top up the wallet (testing aid).
GET    /wallet/bank-accounts      - List bank accounts, numbers masked.
POST   /wallet/bank-accounts      - Add a bank account.
DELETE /wallet/bank-accounts/{id} - Remove a bank account.
GET    /wallet/transactions       - Paginated transaction history.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gateway.api.deps import get_current_user, get_session, get_settings
from gateway.api.serializers import (
    bank_account_to_dict,
    pagination,
    success,
    transaction_to_dict,
)
from gateway.config import Settings
from gateway.engine.identifiers import generate_deposit_id
from gateway.engine.notifier import account_added_message, deposit_message, notify
from gateway.engine.validation import check_bank_details, check_deposit
from gateway.errors import AmountLimitExceeded, Conflict, NotFound, ValidationFailed
from gateway.models.enums import NotificationType, TransactionStatus, TransferMode
from gateway.models.wallet import BankAccount, Beneficiary, Transaction, User, local_now
from gateway.schemas import AddMoneyRequest, BankAccountRequest
from gateway.security import TokenPayload

logger = logging.getLogger("gateway.wallet")

router = APIRouter(prefix="/wallet", tags=["wallet"])


async def current_balance(session: AsyncSession, user_id: str) -> float:
    balance = await session.scalar(select(User.wallet_balance).where(User.id == user_id))
    if balance is None:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    return balance


def balance_data(balance: float, config: Settings) -> dict:
    return {
        "availableBalance": balance,
        "currency": config.currency,
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/balance")
async def get_balance(
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    balance = await current_balance(session, caller.user_id)
    return success("Balance retrieved successfully", balance_data(balance, config))


@router.post("/add-money")
async def add_money(
    body: AddMoneyRequest,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    """
    Credit the wallet, record a DEPOSIT transaction and notify, in one commit.
    """
    result = check_deposit(body.amount, config.max_deposit_amount)
    if not result.ok:
        if body.amount is not None and body.amount > config.max_deposit_amount:
            raise AmountLimitExceeded(result.message)
        raise ValidationFailed(result.message)

    amount = float(body.amount)
    now = local_now(config.timezone_offset_minutes)

    credited = await session.execute(
        update(User)
        .where(User.id == caller.user_id)
        .values(wallet_balance=User.wallet_balance + amount, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if credited.rowcount != 1:
        await session.rollback()
        raise NotFound("User not found", code="USER_NOT_FOUND")

    session.add(Transaction(
        user_id=caller.user_id,
        transfer_id=generate_deposit_id(),
        amount=amount,
        status=TransactionStatus.SUCCESS.value,
        transfer_mode=TransferMode.DEPOSIT.value,
        remarks="Money added to wallet",
        created_at=now,
        processed_at=now,
    ))
    await notify(
        session,
        caller.user_id,
        NotificationType.DEPOSIT_SUCCESS,
        deposit_message(amount, config.currency),
        created_at=now,
    )
    new_balance = await current_balance(session, caller.user_id)
    await session.commit()

    logger.info("Deposit of %.2f to user %s; balance=%.2f", amount, caller.user_id, new_balance)
    return success("Money added to wallet successfully", {
        "amountAdded": amount,
        "newBalance": new_balance,
        "currency": config.currency,
    })


@router.get("/bank-accounts")
async def list_bank_accounts(
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(BankAccount)
        .where(BankAccount.user_id == caller.user_id)
        .order_by(BankAccount.created_at.desc())
    )
    accounts = [bank_account_to_dict(a) for a in result.scalars().all()]
    return success("Bank accounts retrieved successfully", {"accounts": accounts})


@router.post("/bank-accounts", status_code=201)
async def add_bank_account(
    body: BankAccountRequest,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    if not body.account_holder_name or not body.account_number or not body.ifsc_code or not body.bank_name:
        raise ValidationFailed("All fields are required")

    result = check_bank_details(body.account_number, body.ifsc_code)
    if not result.ok:
        raise ValidationFailed(result.message)

    existing = await session.scalar(
        select(BankAccount.id).where(
            BankAccount.user_id == caller.user_id,
            BankAccount.account_number == body.account_number,
        )
    )
    if existing is not None:
        raise Conflict("This bank account is already added", code="ACCOUNT_EXISTS")

    account = BankAccount(
        user_id=caller.user_id,
        account_holder_name=body.account_holder_name,
        account_number=body.account_number,
        ifsc_code=body.ifsc_code,
        bank_name=body.bank_name,
        account_type=body.account_type or "savings",
        verified=True,
        created_at=local_now(config.timezone_offset_minutes),
    )
    session.add(account)
    await notify(
        session,
        caller.user_id,
        NotificationType.ACCOUNT_ADDED,
        account_added_message(body.bank_name, body.account_number),
        created_at=account.created_at,
    )
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("This bank account is already added", code="ACCOUNT_EXISTS")

    return success("Bank account added successfully", {"account": bank_account_to_dict(account)})


@router.delete("/bank-accounts/{account_id}")
async def delete_bank_account(
    account_id: str,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    deleted = await session.execute(
        delete(BankAccount).where(
            BankAccount.id == account_id,
            BankAccount.user_id == caller.user_id,
        )
    )
    if deleted.rowcount != 1:
        await session.rollback()
        raise NotFound("Bank account not found", code="ACCOUNT_NOT_FOUND")
    await session.commit()
    return success("Bank account deleted successfully")


@router.get("/transactions")
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Newest first; deposits are CREDIT, payouts DEBIT."""
    result = await session.execute(
        select(Transaction, Beneficiary)
        .outerjoin(Beneficiary, Transaction.beneficiary_id == Beneficiary.id)
        .where(Transaction.user_id == caller.user_id)
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    transactions = [transaction_to_dict(txn, bene) for txn, bene in result.all()]

    total = await session.scalar(
        select(func.count()).select_from(Transaction).where(Transaction.user_id == caller.user_id)
    )
    return success("Transaction history retrieved successfully", {
        "transactions": transactions,
        "pagination": pagination(page, limit, total or 0),
    })
