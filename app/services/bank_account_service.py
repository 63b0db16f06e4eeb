"""Linking bank accounts as off-ramp destinations (demo mode)."""

import logging
import random

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PersistenceError, ValidationError
from app.models.bank_account import BankAccount

logger = logging.getLogger(__name__)

DEMO_BANK_NAMES = ("Chase", "Bank of America", "Wells Fargo", "Citibank")
ACCOUNT_TYPES = ("checking", "savings")


class BankAccountService:
    """Links and lists consumer bank accounts.

    Verification is simulated: every linked account is marked verified and
    assigned one of a fixed set of bank names.
    """

    async def link_bank_account(
        self,
        session: AsyncSession,
        consumer_id: str,
        routing_number: str,
        account_number: str,
        account_type: str,
        account_holder_name: str,
    ) -> BankAccount:
        """Store a verified account reference keeping only the last four digits.

        Raises:
            ValidationError: Malformed routing or account number, unknown
                account type, or a blank holder name
        """
        if not (routing_number.isdigit() and len(routing_number) == 9):
            raise ValidationError("Routing number must be 9 digits")
        if not (account_number.isdigit() and 4 <= len(account_number) <= 17):
            raise ValidationError("Account number must be 4 to 17 digits")
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(f"Unsupported account type: {account_type}")
        if not account_holder_name.strip():
            raise ValidationError("Account holder name is required")

        account = BankAccount(
            consumer_id=consumer_id,
            account_type=account_type,
            last4=account_number[-4:],
            bank_name=random.choice(DEMO_BANK_NAMES),
            is_verified=True,
        )
        try:
            async with session.begin():
                session.add(account)
        except SQLAlchemyError as exc:
            logger.exception("Failed to store bank account for consumer %s", consumer_id)
            raise PersistenceError("link_bank_account") from exc

        logger.info("Linked bank account %s for consumer %s", account.id, consumer_id)
        return account

    async def list_bank_accounts(self, session: AsyncSession, consumer_id: str) -> list[BankAccount]:
        try:
            async with session.begin():
                result = await session.execute(
                    select(BankAccount)
                    .where(BankAccount.consumer_id == consumer_id)
                    .order_by(BankAccount.added_at)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise PersistenceError("list_bank_accounts") from exc
