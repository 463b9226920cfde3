"""
Payout-style endpoints (provider envelope).

GET  /v1/balance               - Wallet balance.
POST /v1/beneficiary           - Register a beneficiary.
GET  /v1/beneficiary           - List beneficiaries.
POST /v1/transfer              - Submit a payout; settles asynchronously.
GET  /v1/transfer/{transferId} - Payout status.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gateway.api.deps import get_current_user, get_session, get_settings, get_worker
from gateway.api.serializers import beneficiary_to_dict, payout_success, transfer_status_to_dict
from gateway.api.wallet import balance_data, current_balance
from gateway.config import Settings
from gateway.engine.identifiers import generate_bene_id
from gateway.engine.settlement import SettlementWorker
from gateway.engine.transfers import get_transfer, submit_transfer
from gateway.engine.validation import check_bank_details
from gateway.errors import Conflict, ValidationFailed
from gateway.models.enums import BeneficiaryStatus
from gateway.models.wallet import Beneficiary, local_now
from gateway.schemas import BeneDetails, TransferRequest
from gateway.security import TokenPayload

logger = logging.getLogger("gateway.payouts")

router = APIRouter(prefix="/v1", tags=["payouts"])


@router.get("/balance")
async def get_balance(
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    balance = await current_balance(session, caller.user_id)
    return payout_success("Balance fetched successfully", balance_data(balance, config))


@router.post("/beneficiary", status_code=201)
async def add_beneficiary(
    body: BeneDetails,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
):
    if not body.name or not body.bank_account or not body.ifsc:
        raise ValidationFailed("Missing required fields: name, bankAccount, ifsc")

    result = check_bank_details(body.bank_account, body.ifsc)
    if not result.ok:
        raise ValidationFailed(result.message)

    duplicate = await session.scalar(
        select(Beneficiary.id).where(
            Beneficiary.user_id == caller.user_id,
            Beneficiary.bank_account == body.bank_account,
        )
    )
    if duplicate is not None:
        raise Conflict("Beneficiary with this account number already exists")

    if body.bene_id:
        taken = await session.scalar(
            select(Beneficiary.id).where(Beneficiary.bene_id == body.bene_id)
        )
        if taken is not None:
            raise Conflict("Beneficiary ID already in use")

    bene = Beneficiary(
        user_id=caller.user_id,
        bene_id=body.bene_id or generate_bene_id(),
        name=body.name,
        email=body.email or "",
        phone=body.phone or "",
        bank_account=body.bank_account,
        ifsc=body.ifsc,
        address1=body.address1 or "",
        city=body.city or "",
        state=body.state or "",
        pincode=body.pincode or "",
        status=BeneficiaryStatus.ACTIVE.value,
        created_at=local_now(config.timezone_offset_minutes),
    )
    session.add(bene)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Beneficiary ID already in use")

    logger.info("Beneficiary %s added for user %s", bene.bene_id, caller.user_id)
    return payout_success("Beneficiary added successfully", beneficiary_to_dict(bene))


@router.get("/beneficiary")
async def list_beneficiaries(
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    result = await session.execute(
        select(Beneficiary)
        .where(Beneficiary.user_id == caller.user_id)
        .order_by(Beneficiary.created_at.desc())
    )
    return payout_success(
        "Beneficiaries fetched successfully",
        [beneficiary_to_dict(b) for b in result.scalars().all()],
    )


@router.post("/transfer")
async def create_transfer(
    body: TransferRequest,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    config: Settings = Depends(get_settings),
    worker: SettlementWorker = Depends(get_worker),
):
    """
    Accept a payout. The response is a provisional acknowledgment; poll
    GET /v1/transfer/{transferId} for the outcome.
    """
    ack = await submit_transfer(session, caller.user_id, body, config, worker)
    return payout_success("Transfer initiated successfully", {
        "referenceId": ack.reference_id,
        "acknowledged": ack.acknowledged,
    })


@router.get("/transfer/{transfer_id}")
async def get_transfer_status(
    transfer_id: str,
    caller: TokenPayload = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    txn, bene = await get_transfer(session, caller.user_id, transfer_id)
    return payout_success("Transfer status fetched successfully", transfer_status_to_dict(txn, bene))
