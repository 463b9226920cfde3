"""Shared test fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gateway.config import Settings
from gateway.database import Database
from gateway.engine.accounts import register_user
from gateway.main import create_app
from gateway.models.enums import TransactionStatus
from gateway.models.wallet import User
from gateway.providers.mock_provider import FixedOutcomeProvider
from gateway.schemas import BeneDetails, TransferRequest


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file, with instant settlement."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'wallet_test.db'}",
        password_hash_iterations=1_000,
        create_default_user=False,
        settlement_min_delay_ms=0,
        settlement_max_delay_ms=0,
        settlement_max_retries=0,
    )


@pytest_asyncio.fixture
async def database(test_settings: Settings):
    """Create a fresh database for each test."""
    db = Database(test_settings.database_url)
    await db.init()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database):
    async with database.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def funded_user(db_session, test_settings) -> User:
    """A registered user holding the default 10,000 balance."""
    return await register_user(
        db_session,
        email="asha@example.com",
        password="secret123",
        name="Asha Rao",
        phone="9876543210",
        config=test_settings,
    )


def make_transfer(
    transfer_id: str = "T1",
    amount: float = 500.0,
    bene_id: str = "BENE0001",
    transfer_mode: str = "banktransfer",
    **bene_overrides,
) -> TransferRequest:
    details = {
        "bene_id": bene_id,
        "name": "Ravi Kumar",
        "email": "ravi@example.com",
        "phone": "9123456780",
        "bank_account": "123456789012",
        "ifsc": "HDFC0000123",
        "address1": "12 MG Road",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400001",
    }
    details.update(bene_overrides)
    return TransferRequest(
        transfer_id=transfer_id,
        amount=amount,
        transfer_mode=transfer_mode,
        remarks="rent",
        bene_details=BeneDetails(**details),
    )


@pytest.fixture
def settlement_provider():
    """Override per test to force a different outcome."""
    return FixedOutcomeProvider(TransactionStatus.SUCCESS)


@pytest_asyncio.fixture
async def app(test_settings, settlement_provider):
    application = create_app(test_settings, provider=settlement_provider)
    await application.state.db.init()
    yield application
    await application.state.settlement.shutdown()
    await application.state.db.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def register(client: AsyncClient, email: str = "asha@example.com") -> dict:
    response = await client.post("/api/auth/register", json={
        "email": email,
        "password": "secret123",
        "name": "Asha Rao",
        "phone": "9876543210",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest_asyncio.fixture
async def auth_headers(client) -> dict:
    data = await register(client)
    return {"Authorization": f"Bearer {data['token']}"}


TRANSFER_BODY = {
    "transferId": "T1",
    "amount": 500,
    "transferMode": "banktransfer",
    "remarks": "Withdrawal",
    "beneDetails": {
        "beneId": "BENE0001",
        "name": "Ravi Kumar",
        "email": "ravi@example.com",
        "phone": "9123456780",
        "bankAccount": "123456789012",
        "ifsc": "HDFC0000123",
        "address1": "12 MG Road",
        "city": "Mumbai",
        "state": "Maharashtra",
        "pincode": "400001",
    },
}
