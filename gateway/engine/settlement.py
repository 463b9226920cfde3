"""
Settlement worker: runs deferred payout resolution on the event loop.

Each accepted payout gets one asyncio task that sleeps for the provider's
settlement delay and then resolves the transaction. Tasks are independent
of the HTTP request that created them.

The PENDING transaction row is the durable record of outstanding work:
tasks lost to a restart are rebuilt by recover(), which reschedules every
payout still PENDING. Failures inside a task are logged and never reach a
caller; the transaction stays PENDING and is picked up by the next
recovery.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from gateway.engine.retry import BASE_DELAY, MAX_RETRIES
from gateway.engine.transfers import resolve_transfer
from gateway.models.enums import TransactionStatus, TransferMode
from gateway.models.wallet import Transaction
from gateway.providers.base import SettlementProvider

logger = logging.getLogger("gateway.settlement")


class SettlementWorker:
    """Schedules and tracks resolution tasks for PENDING payouts."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        provider: SettlementProvider,
        currency: str = "INR",
        max_retries: int = MAX_RETRIES,
        retry_delay: float = BASE_DELAY,
        timezone_offset_minutes: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self._provider = provider
        self._currency = currency
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._offset_minutes = timezone_offset_minutes
        self._tasks: set[asyncio.Task] = set()

    @property
    def provider(self) -> SettlementProvider:
        return self._provider

    @property
    def pending(self) -> int:
        """Number of resolution tasks not finished yet."""
        return len(self._tasks)

    def schedule(self, transaction_id: str, delay: Optional[float] = None) -> asyncio.Task:
        """Start resolving a transaction after `delay` seconds (provider delay by default)."""
        if delay is None:
            delay = self._provider.settlement_delay()
        task = asyncio.create_task(
            self._run(transaction_id, delay),
            name=f"settle-{transaction_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Scheduled settlement of %s in %.2fs", transaction_id, delay)
        return task

    async def _run(self, transaction_id: str, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        try:
            await resolve_transfer(
                self._session_factory,
                transaction_id,
                self._provider,
                currency=self._currency,
                max_retries=self._max_retries,
                retry_delay=self._retry_delay,
                offset_minutes=self._offset_minutes,
            )
        except Exception:
            logger.exception(
                "Settlement of transaction %s failed; left PENDING for recovery",
                transaction_id,
            )

    async def recover(self) -> int:
        """
        Reschedule every payout still PENDING.

        Returns:
            Number of transactions rescheduled.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Transaction.id)
                .where(
                    Transaction.status == TransactionStatus.PENDING.value,
                    Transaction.transfer_mode != TransferMode.DEPOSIT.value,
                )
                .order_by(Transaction.created_at.asc())
            )
            pending_ids = list(result.scalars().all())

        for transaction_id in pending_ids:
            self.schedule(transaction_id)

        if pending_ids:
            logger.info("Recovered %d pending transfers for settlement", len(pending_ids))
        return len(pending_ids)

    async def drain(self) -> None:
        """Wait until every scheduled resolution has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding tasks; their transactions stay PENDING."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d in-flight settlements", len(tasks))
