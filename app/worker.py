"""Background task definitions for asynchronous processing."""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

from celery import Task
from celery.signals import worker_process_init
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.celery_app import celery_app
from app.core.config import get_settings
from app.core.exceptions import InvalidTransitionError, NotFoundError
from app.core.logging import configure_logging
from app.db.session import dispose_engine, get_async_session_maker
from app.models.transaction import TransactionStatus
from app.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

T = TypeVar("T")


@worker_process_init.connect
def setup_worker_logging(**kwargs) -> None:
    configure_logging(get_settings().LOG_LEVEL)


def run_with_session(work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run async ledger work from a synchronous Celery task.

    Each call gets its own event loop, so the engine is disposed before the
    loop closes.
    """

    async def runner() -> T:
        try:
            async with get_async_session_maker()() as session:
                return await work(session)
        finally:
            await dispose_engine()

    return asyncio.run(runner())


@celery_app.task(name="settle_withdrawal", bind=True)
def settle_withdrawal(self: Task, transaction_id: str) -> dict:
    """
    Confirm settlement of a pending withdrawal.

    No funds move on-chain; the confirmation is synthesized once the
    configured completion delay (the task countdown) has passed.

    Args:
        transaction_id: UUID string of the pending withdrawal

    Returns:
        dict: Result with success flag, final status and task id
    """
    service = LedgerService()

    async def work(session: AsyncSession) -> str:
        transaction = await service.complete_transaction(session, uuid.UUID(transaction_id))
        return TransactionStatus(transaction.status).value

    try:
        status = run_with_session(work)
    except InvalidTransitionError as exc:
        # Already failed by the expiry sweep, or settled twice
        logger.warning("[SETTLE TASK %s] %s", self.request.id, exc.message)
        return {
            "success": False,
            "message": exc.message,
            "status": exc.current,
            "task_id": self.request.id,
        }
    except NotFoundError as exc:
        logger.error("[SETTLE TASK %s] %s", self.request.id, exc.message)
        return {
            "success": False,
            "message": exc.message,
            "status": None,
            "task_id": self.request.id,
        }

    logger.info("[SETTLE TASK %s] Withdrawal %s settled", self.request.id, transaction_id)
    return {
        "success": True,
        "message": f"Withdrawal {transaction_id} settled",
        "status": status,
        "task_id": self.request.id,
    }


@celery_app.task(name="expire_stale_withdrawals", bind=True)
def expire_stale_withdrawals(self: Task) -> dict:
    """
    Fail withdrawals whose settlement confirmation never arrived.

    Returns:
        dict: Result with the ids of the withdrawals that were failed
    """
    service = LedgerService()
    expired = run_with_session(service.expire_stale_withdrawals)

    if expired:
        logger.warning(
            "[EXPIRY TASK %s] Failed %d stale withdrawals", self.request.id, len(expired)
        )
    return {
        "success": True,
        "expired": [str(transaction_id) for transaction_id in expired],
        "task_id": self.request.id,
    }


@celery_app.task(name="audit_log_transaction", bind=True)
def audit_log_transaction(
    self: Task,
    transaction_id: str,
    data: dict
) -> dict:
    """
    Write a committed ledger entry to the audit log.

    Args:
        transaction_id: UUID of the ledger entry
        data: Entry data dictionary with keys:
            - wallet_id: UUID string
            - kind: data_sale, withdrawal or deposit
            - amount: Fixed-precision decimal string
            - currency: ETH or USDC
            - status: Status string
            - created_at: ISO timestamp string

    Returns:
        dict: Result with success status and message
    """
    message = f"Audit log for transaction {transaction_id}: {data}"
    logger.info("[AUDIT TASK %s] %s", self.request.id, message)

    return {
        "success": True,
        "message": message,
        "task_id": self.request.id,
        "transaction_id": transaction_id
    }
