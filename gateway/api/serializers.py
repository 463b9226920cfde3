"""
Response envelopes and row serializers.

Two envelope conventions coexist, chosen by route family:

  generic  (/api/auth, /api/wallet, /api/notifications)
      {"success": bool, "message": str, "data"?: ..., "error"?: str}
  payout   (/api/v1)
      {"status": "SUCCESS"|"ERROR", "subCode": str, "message": str, "data"?: ...}
"""

from datetime import datetime
from typing import Any, Optional

from gateway.engine.identifiers import mask_account_number
from gateway.models.enums import TransferMode
from gateway.models.wallet import BankAccount, Beneficiary, Notification, Transaction, User

PAYOUT_PREFIX = "/api/v1"


def success(message: str, data: Any = None) -> dict:
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def payout_success(message: str, data: Any = None, sub_code: str = "200") -> dict:
    body: dict[str, Any] = {"status": "SUCCESS", "subCode": sub_code, "message": message}
    if data is not None:
        body["data"] = data
    return body


def error_body(path: str, status_code: int, code: str, message: str) -> dict:
    """Error envelope for the route family that owns `path`."""
    if is_payout_path(path):
        return {"status": "ERROR", "subCode": str(status_code), "message": message}
    return {"success": False, "message": message, "error": code}


def is_payout_path(path: str) -> bool:
    return path == PAYOUT_PREFIX or path.startswith(PAYOUT_PREFIX + "/")


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": (total + limit - 1) // limit,
    }


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone": user.phone,
        "wallet_balance": user.wallet_balance,
        "created_at": iso(user.created_at),
        "updated_at": iso(user.updated_at),
    }


def bank_account_to_dict(account: BankAccount) -> dict:
    return {
        "id": account.id,
        "user_id": account.user_id,
        "account_holder_name": account.account_holder_name,
        "account_number": mask_account_number(account.account_number),
        "ifsc_code": account.ifsc_code,
        "bank_name": account.bank_name,
        "account_type": account.account_type,
        "verified": bool(account.verified),
        "created_at": iso(account.created_at),
    }


def beneficiary_to_dict(bene: Beneficiary) -> dict:
    return {
        "beneId": bene.bene_id,
        "name": bene.name,
        "email": bene.email,
        "phone": bene.phone,
        "bankAccount": bene.bank_account,
        "ifsc": bene.ifsc,
        "maskedCard": mask_account_number(bene.bank_account),
        "status": bene.status,
        "address1": bene.address1,
        "city": bene.city,
        "state": bene.state,
        "pincode": bene.pincode,
    }


def transaction_to_dict(txn: Transaction, bene: Optional[Beneficiary]) -> dict:
    """History entry: snake_case row plus derived type/description."""
    is_deposit = txn.transfer_mode == TransferMode.DEPOSIT.value
    if txn.remarks:
        description = txn.remarks
    elif is_deposit:
        description = "Money added to wallet"
    else:
        description = f"Withdrawal to {bene.name if bene else 'Bank Account'}"

    return {
        "id": txn.id,
        "transfer_id": txn.transfer_id,
        "amount": txn.amount,
        "status": txn.status,
        "utr": txn.utr,
        "transfer_mode": txn.transfer_mode,
        "remarks": txn.remarks,
        "failure_reason": txn.failure_reason,
        "created_at": iso(txn.created_at),
        "processed_at": iso(txn.processed_at),
        "type": "CREDIT" if is_deposit else "DEBIT",
        "description": description,
        "beneficiary_name": bene.name if bene else None,
        "account_number": mask_account_number(bene.bank_account) if bene else None,
    }


def transfer_status_to_dict(txn: Transaction, bene: Optional[Beneficiary]) -> dict:
    """Payout-style status: utr / failureReason only when set."""
    data: dict[str, Any] = {
        "transferId": txn.transfer_id,
        "amount": txn.amount,
        "status": txn.status,
        "transferMode": txn.transfer_mode,
        "remarks": txn.remarks,
        "createdAt": iso(txn.created_at),
        "processedAt": iso(txn.processed_at),
    }
    if txn.utr:
        data["utr"] = txn.utr
    if txn.failure_reason:
        data["failureReason"] = txn.failure_reason
    if bene is not None:
        data["beneficiary"] = {
            "beneId": bene.bene_id,
            "name": bene.name,
            "maskedCard": mask_account_number(bene.bank_account),
        }
    return data


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "user_id": n.user_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "read": bool(n.read),
        "created_at": iso(n.created_at),
    }
