"""
Service health and API index.

GET /       - Enumerate the API.
GET /health - Liveness check.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from gateway import __version__

router = APIRouter(tags=["health"])

ENDPOINTS = {
    "auth": {
        "POST /api/auth/register": "Register new user",
        "POST /api/auth/login": "Login user",
        "GET /api/auth/profile": "Get user profile",
        "PUT /api/auth/profile": "Update user profile",
    },
    "wallet": {
        "GET /api/wallet/balance": "Get wallet balance",
        "POST /api/wallet/add-money": "Add money to wallet (testing)",
        "GET /api/wallet/bank-accounts": "Get bank accounts",
        "POST /api/wallet/bank-accounts": "Add bank account",
        "DELETE /api/wallet/bank-accounts/:id": "Delete bank account",
        "GET /api/wallet/transactions": "Get transaction history",
    },
    "payouts": {
        "GET /api/v1/balance": "Get balance (payout style)",
        "POST /api/v1/beneficiary": "Add beneficiary",
        "GET /api/v1/beneficiary": "Get beneficiaries",
        "POST /api/v1/transfer": "Create transfer",
        "GET /api/v1/transfer/:transferId": "Get transfer status",
    },
    "notifications": {
        "GET /api/notifications": "Get notifications",
        "PUT /api/notifications/:id/read": "Mark notification as read",
        "PUT /api/notifications/read-all": "Mark all notifications as read",
        "DELETE /api/notifications/:id": "Delete notification",
    },
}


@router.get("/")
async def index():
    return {
        "message": "Mock Payout Gateway API",
        "version": __version__,
        "endpoints": ENDPOINTS,
        "authentication": {
            "type": "Bearer Token",
            "header": "Authorization: Bearer <token>",
            "note": "Most endpoints require authentication except registration, login, and health check",
        },
    }


@router.get("/health")
async def health(request: Request):
    return {
        "status": "OK",
        "message": "Mock Payout Gateway is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "pendingSettlements": request.app.state.settlement.pending,
    }
