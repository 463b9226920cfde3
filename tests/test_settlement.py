"""Tests for the settlement worker and the settlement providers."""

import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from conftest import make_transfer
from gateway.engine.settlement import SettlementWorker
from gateway.engine.transfers import submit_transfer
from gateway.models.enums import TransactionStatus
from gateway.models.wallet import Notification, Transaction, User
from gateway.providers.base import SettlementDecision, SettlementProvider, SettlementRequest
from gateway.providers.mock_provider import (
    FAILURE_REASONS,
    FixedOutcomeProvider,
    MockSettlementProvider,
)


class PendingProvider(SettlementProvider):
    """Misbehaving provider that never reaches a terminal status."""

    @property
    def name(self) -> str:
        return "pending"

    def settlement_delay(self) -> float:
        return 0.0

    async def settle(self, request: SettlementRequest) -> SettlementDecision:
        return SettlementDecision(status=TransactionStatus.PENDING)


async def _status(database, transaction_id: str) -> str:
    async with database.session_factory() as session:
        return await session.scalar(
            select(Transaction.status).where(Transaction.id == transaction_id)
        )


async def _balance(database, user_id: str) -> float:
    async with database.session_factory() as session:
        return await session.scalar(select(User.wallet_balance).where(User.id == user_id))


@pytest.mark.asyncio
async def test_scheduled_transfer_settles(database, db_session, funded_user, test_settings):
    worker = SettlementWorker(database.session_factory, FixedOutcomeProvider(), max_retries=0)

    ack = await submit_transfer(db_session, funded_user.id, make_transfer(), test_settings, worker)
    assert worker.pending == 1

    await worker.drain()

    assert worker.pending == 0
    assert await _status(database, ack.transaction_id) == "SUCCESS"


@pytest.mark.asyncio
async def test_failed_settlement_refunds(database, db_session, funded_user, test_settings):
    worker = SettlementWorker(
        database.session_factory, FixedOutcomeProvider(TransactionStatus.FAILED), max_retries=0
    )

    ack = await submit_transfer(db_session, funded_user.id, make_transfer(), test_settings, worker)
    await worker.drain()

    assert await _status(database, ack.transaction_id) == "FAILED"
    assert await _balance(database, funded_user.id) == 10_000.0


@pytest.mark.asyncio
async def test_each_transfer_settles_independently(database, db_session, funded_user, test_settings):
    provider = FixedOutcomeProvider()
    worker = SettlementWorker(database.session_factory, provider, max_retries=0)

    for transfer_id in ("T1", "T2", "T3"):
        await submit_transfer(
            db_session, funded_user.id, make_transfer(transfer_id, amount=100.0), test_settings, worker
        )
    await worker.drain()

    assert sorted(provider.settled) == ["T1", "T2", "T3"]
    assert await _balance(database, funded_user.id) == 9_700.0


@pytest.mark.asyncio
async def test_concurrent_refunds_restore_full_balance(database, db_session, funded_user, test_settings):
    """Several failed payouts settling together each refund exactly once."""
    provider = FixedOutcomeProvider(TransactionStatus.FAILED)
    worker = SettlementWorker(database.session_factory, provider, max_retries=3, retry_delay=0.05)
    user_id = funded_user.id

    for transfer_id in ("T1", "T2", "T3"):
        await submit_transfer(
            db_session, user_id, make_transfer(transfer_id, amount=1_500.0), test_settings
        )
    assert await _balance(database, user_id) == 5_500.0

    assert await worker.recover() == 3
    await worker.drain()

    assert sorted(provider.settled) == ["T1", "T2", "T3"]
    assert await _balance(database, user_id) == 10_000.0
    async with database.session_factory() as session:
        statuses = (await session.execute(select(Transaction.status))).scalars().all()
        notes = (await session.execute(select(Notification.type))).scalars().all()
    assert statuses == ["FAILED"] * 3
    assert sorted(notes) == ["WITHDRAWAL_FAILED"] * 3


@pytest.mark.asyncio
async def test_recover_reschedules_pending(database, db_session, funded_user, test_settings):
    """Transfers accepted without a running worker settle after recovery."""
    ack = await submit_transfer(db_session, funded_user.id, make_transfer(), test_settings)
    assert await _status(database, ack.transaction_id) == "PENDING"

    worker = SettlementWorker(
        database.session_factory, FixedOutcomeProvider(TransactionStatus.FAILED), max_retries=0
    )
    assert await worker.recover() == 1
    await worker.drain()

    assert await _status(database, ack.transaction_id) == "FAILED"
    assert await _balance(database, funded_user.id) == 10_000.0
    assert await worker.recover() == 0


@pytest.mark.asyncio
async def test_shutdown_leaves_transfer_pending(database, db_session, funded_user, test_settings):
    provider = FixedOutcomeProvider(delay_seconds=60)
    worker = SettlementWorker(database.session_factory, provider, max_retries=0)

    ack = await submit_transfer(db_session, funded_user.id, make_transfer(), test_settings, worker)
    await asyncio.sleep(0)
    await worker.shutdown()

    assert worker.pending == 0
    assert provider.settled == []
    assert await _status(database, ack.transaction_id) == "PENDING"
    assert await _balance(database, funded_user.id) == 9_500.0


@pytest.mark.asyncio
async def test_non_terminal_outcome_is_contained(database, db_session, funded_user, test_settings):
    """A provider error never escapes the task; the row stays PENDING."""
    worker = SettlementWorker(database.session_factory, PendingProvider(), max_retries=0)

    ack = await submit_transfer(db_session, funded_user.id, make_transfer(), test_settings, worker)
    await worker.drain()

    assert await _status(database, ack.transaction_id) == "PENDING"
    async with database.session_factory() as session:
        notes = (await session.execute(select(Notification))).scalars().all()
    assert notes == []


def test_mock_provider_is_reproducible():
    first = MockSettlementProvider(0.9, 2000, 5000, rng=random.Random(7))
    second = MockSettlementProvider(0.9, 2000, 5000, rng=random.Random(7))
    assert [first.settlement_delay() for _ in range(5)] == [
        second.settlement_delay() for _ in range(5)
    ]


def test_mock_provider_delay_range():
    provider = MockSettlementProvider(0.9, 2000, 5000, rng=random.Random(1))
    for _ in range(200):
        delay = provider.settlement_delay()
        assert 2.0 <= delay < 5.0


def test_mock_provider_rejects_inverted_delays():
    with pytest.raises(ValueError):
        MockSettlementProvider(0.9, 5000, 2000)


def _request() -> SettlementRequest:
    return SettlementRequest(
        transaction_id="txn-1",
        transfer_id="T1",
        amount=500.0,
        transfer_mode="IMPS",
        bene_id="BENE0001",
        bank_account="123456789012",
        ifsc="HDFC0000123",
    )


@pytest.mark.asyncio
async def test_mock_provider_always_succeeds_at_full_rate():
    provider = MockSettlementProvider(1.0, 0, 0, rng=random.Random(3))
    for _ in range(20):
        decision = await provider.settle(_request())
        assert decision.succeeded
        assert len(decision.utr) == 14
        assert decision.failure_reason is None


@pytest.mark.asyncio
async def test_mock_provider_always_fails_at_zero_rate():
    provider = MockSettlementProvider(0.0, 0, 0, rng=random.Random(3))
    for _ in range(20):
        decision = await provider.settle(_request())
        assert decision.status == TransactionStatus.FAILED
        assert decision.utr is None
        assert decision.failure_reason in FAILURE_REASONS


@pytest.mark.asyncio
async def test_mock_provider_success_rate_is_roughly_ninety_percent():
    provider = MockSettlementProvider(0.9, 0, 0, rng=random.Random(42))
    outcomes = [(await provider.settle(_request())).succeeded for _ in range(2000)]
    assert 0.85 < sum(outcomes) / len(outcomes) < 0.95


def test_fixed_provider_rejects_pending():
    with pytest.raises(ValueError):
        FixedOutcomeProvider(TransactionStatus.PENDING)


@pytest.mark.asyncio
async def test_mock_provider_from_settings_uses_injected_offset(test_settings):
    config = test_settings.model_copy(
        update={"timezone_offset_minutes": -600, "settlement_success_rate": 1.0}
    )
    provider = MockSettlementProvider.from_settings(config, rng=random.Random(5))

    before = datetime.now(timezone.utc) - timedelta(minutes=600)
    decision = await provider.settle(_request())
    after = datetime.now(timezone.utc) - timedelta(minutes=600)

    assert decision.utr[:8] in {before.strftime("%Y%m%d"), after.strftime("%Y%m%d")}
    assert provider.settlement_delay() == 0.0
