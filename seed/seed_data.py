"""
Seed the database with a demo user and sample payout destinations.

Creates:
  - The default user (user@example.com / password123, balance 10,000)
  - Two bank accounts on that user
  - One beneficiary per bank account, ready for /api/v1/transfer

Safe to run repeatedly; existing rows are left alone.

Run:
    python -m seed.seed_data
"""

import asyncio
import logging

from sqlalchemy import select

from gateway.config import Settings, settings
from gateway.database import Database
from gateway.engine.accounts import ensure_default_user
from gateway.models.wallet import BankAccount, Beneficiary, User, local_now

BANK_ACCOUNTS = [
    {
        "account_holder_name": "Test User",
        "account_number": "123456789012",
        "ifsc_code": "HDFC0000123",
        "bank_name": "HDFC Bank",
        "account_type": "savings",
        "bene_id": "BENEHDFC0001",
    },
    {
        "account_holder_name": "Test User",
        "account_number": "987654321098",
        "ifsc_code": "ICIC0004567",
        "bank_name": "ICICI Bank",
        "account_type": "current",
        "bene_id": "BENEICIC0001",
    },
]


async def seed(db: Database, config: Settings = settings) -> None:
    await db.init()
    await ensure_default_user(db.session_factory, config)

    async with db.session_factory() as session:
        user = await session.scalar(select(User).where(User.email == config.default_user_email))

        for entry in BANK_ACCOUNTS:
            exists = await session.scalar(
                select(BankAccount.id).where(
                    BankAccount.user_id == user.id,
                    BankAccount.account_number == entry["account_number"],
                )
            )
            if exists is None:
                session.add(BankAccount(
                    user_id=user.id,
                    account_holder_name=entry["account_holder_name"],
                    account_number=entry["account_number"],
                    ifsc_code=entry["ifsc_code"],
                    bank_name=entry["bank_name"],
                    account_type=entry["account_type"],
                    verified=True,
                    created_at=local_now(config.timezone_offset_minutes),
                ))

            bene_exists = await session.scalar(
                select(Beneficiary.id).where(Beneficiary.bene_id == entry["bene_id"])
            )
            if bene_exists is None:
                session.add(Beneficiary(
                    user_id=user.id,
                    bene_id=entry["bene_id"],
                    name=entry["account_holder_name"],
                    email=user.email,
                    phone=user.phone,
                    bank_account=entry["account_number"],
                    ifsc=entry["ifsc_code"],
                    address1="Demo Address",
                    city="Mumbai",
                    state="Maharashtra",
                    pincode="400001",
                    created_at=local_now(config.timezone_offset_minutes),
                ))

        await session.commit()

    print(f"Seeded {config.default_user_email} with {len(BANK_ACCOUNTS)} bank accounts and beneficiaries.")


async def main() -> None:
    db = Database(settings.database_url)
    try:
        await seed(db)
    finally:
        await db.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
