"""Ledger service: custodial wallet balances and the transactions behind them.

CONSISTENCY MODEL
=================

Every public operation runs in its own database transaction, opened here
with ``session.begin()``. The balance change and the ledger entry that
justifies it are written inside that one transaction, so they commit or
roll back together. Callers must therefore pass a session with no
transaction in progress, and must only queue follow-up work (settlement,
audit) after the call returns.

Balance changes use OPTIMISTIC LOCKING on ``wallets.version``:

    UPDATE wallets SET <currency>_balance = :new, version = :v + 1
    WHERE id = :id AND version = :v

A zero rowcount means another writer got there first; the operation is
rolled back and re-run from a fresh read, up to ``LEDGER_MAX_RETRIES``
attempts with exponential backoff. Withdrawals also read the wallet
``FOR UPDATE`` so that on PostgreSQL competing debits queue instead of
conflicting (SQLite ignores the clause).

The store is the single source of truth for the balance check: a debit
that would take a balance below zero raises ``InsufficientBalanceError``.
Nothing is clamped.

WITHDRAWAL LIFECYCLE
====================

    pending --complete_transaction()--> completed
    pending --fail_transaction()------> failed  (+ refund deposit entry)

Any other transition raises ``InvalidTransitionError``. A withdrawal that
nobody confirms within ``WITHDRAWAL_SETTLEMENT_TIMEOUT_SECONDS`` is failed
by ``expire_stale_withdrawals``.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.crypto import derive_wallet_address
from app.core.currency import Currency, format_amount, parse_amount, quantize
from app.core.exceptions import (
    ConcurrencyError,
    ConflictError,
    InsufficientBalanceError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.models.bank_account import BankAccount
from app.models.transaction import Transaction, TransactionKind, TransactionStatus
from app.models.wallet import Wallet, utcnow
from app.services.withdrawal_policy import (
    WithdrawalMethod,
    calculate_network_fee,
    estimate_withdrawal_time,
    resolve_destination,
    validate_withdrawal_limits,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SETTLEMENT_TIMEOUT_REASON = "Settlement confirmation timed out"


class LedgerService:
    """Service for wallet creation, credits, withdrawals and history.

    See module docstring for the consistency model.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def create_wallet(self, session: AsyncSession, consumer_id: str) -> Wallet:
        """Create the custodial wallet for ``consumer_id``.

        Args:
            session: Async session with no transaction in progress
            consumer_id: Owning consumer

        Returns:
            Wallet: The new wallet with zero balances

        Raises:
            ValidationError: If consumer_id is blank
            ConflictError: If the consumer already owns a wallet
        """
        if not consumer_id or not consumer_id.strip():
            raise ValidationError("Consumer id is required")

        async def work() -> Wallet:
            existing = await self._find_wallet(session, consumer_id)
            if existing is not None:
                raise ConflictError(f"Consumer {consumer_id} already has a wallet")

            wallet = Wallet(
                consumer_id=consumer_id,
                address=derive_wallet_address(
                    self.settings.MARKETPLACE_SECRET_KEY, consumer_id
                ),
                eth_balance=Decimal("0.000000"),
                usdc_balance=Decimal("0.00"),
                version=1,
            )
            session.add(wallet)
            try:
                await session.flush()
            except IntegrityError:
                # Lost a create race on the unique consumer_id
                raise ConflictError(f"Consumer {consumer_id} already has a wallet") from None
            return wallet

        wallet = await self._transactional(session, "create_wallet", work)
        logger.info("Created wallet %s for consumer %s", wallet.id, consumer_id)
        return wallet

    async def get_wallet(self, session: AsyncSession, consumer_id: str) -> Wallet | None:
        """Return the consumer's wallet, or None if they have none."""
        return await self._transactional(
            session, "get_wallet", lambda: self._find_wallet(session, consumer_id)
        )

    async def get_wallet_by_id(self, session: AsyncSession, wallet_id: uuid.UUID) -> Wallet:
        async def work() -> Wallet:
            wallet = await session.get(Wallet, wallet_id)
            if wallet is None:
                raise NotFoundError("Wallet", str(wallet_id))
            return wallet

        return await self._transactional(session, "get_wallet_by_id", work)

    # ------------------------------------------------------------------
    # Credits
    # ------------------------------------------------------------------

    async def credit(
        self,
        session: AsyncSession,
        wallet_id: uuid.UUID,
        currency: Currency | str,
        amount: Decimal | str,
        description: str,
        metadata: dict[str, Any] | None = None,
        kind: TransactionKind = TransactionKind.DATA_SALE,
    ) -> Transaction:
        """Add ``amount`` to a wallet and record a completed ledger entry.

        Args:
            session: Async session with no transaction in progress
            wallet_id: Wallet to credit
            currency: eth or usdc
            amount: Positive decimal amount
            description: Human readable summary for the entry
            metadata: Kind-specific attributes (broker id, sources, ...)
            kind: data_sale for marketplace payouts, deposit for faucet
                and refund credits

        Returns:
            Transaction: The completed entry; its id is the transaction id

        Raises:
            ValidationError: Unsupported currency or non-positive amount
            NotFoundError: If the wallet does not exist
            PersistenceError: If the write failed (nothing was applied)
        """
        currency = Currency.parse(currency)
        amount = parse_amount(amount, currency)

        async def work() -> Transaction:
            wallet = await session.get(Wallet, wallet_id, populate_existing=True)
            if wallet is None:
                raise NotFoundError("Wallet", str(wallet_id))
            return await self._post_entry(
                session,
                wallet,
                currency,
                amount,
                kind=kind,
                status=TransactionStatus.COMPLETED,
                description=description,
                details=metadata or {},
                to_address=wallet.address,
            )

        transaction = await self._transactional(session, "credit", work)
        logger.info(
            "Credited %s %s to wallet %s (transaction %s)",
            format_amount(amount, currency), currency.code, wallet_id, transaction.id,
        )
        return transaction

    async def fund(
        self,
        session: AsyncSession,
        wallet_id: uuid.UUID,
        amounts: Sequence[tuple[Currency | str, Decimal | str]],
        metadata: dict[str, Any] | None = None,
    ) -> list[Transaction]:
        """Faucet funding: one deposit entry per currency, all or nothing.

        Every credit in ``amounts`` is posted in the same database
        transaction, so a failure on any of them leaves the wallet untouched.

        Returns:
            list[Transaction]: Completed deposit entries, in ``amounts`` order

        Raises:
            ValidationError: Unsupported currency or non-positive amount
            NotFoundError: If the wallet does not exist
            PersistenceError: If the write failed (nothing was applied)
        """
        credits = []
        for currency, amount in amounts:
            currency = Currency.parse(currency)
            credits.append((currency, parse_amount(amount, currency)))
        if not credits:
            raise ValidationError("Nothing to fund")

        async def work() -> list[Transaction]:
            wallet = await session.get(Wallet, wallet_id, populate_existing=True)
            if wallet is None:
                raise NotFoundError("Wallet", str(wallet_id))
            return [
                await self._post_entry(
                    session,
                    wallet,
                    currency,
                    amount,
                    kind=TransactionKind.DEPOSIT,
                    status=TransactionStatus.COMPLETED,
                    description=f"Testnet faucet funding ({currency.code})",
                    details=dict(metadata or {}),
                    to_address=wallet.address,
                )
                for currency, amount in credits
            ]

        transactions = await self._transactional(session, "fund", work)
        logger.info(
            "Funded wallet %s with %s",
            wallet_id,
            ", ".join(f"{format_amount(amount, currency)} {currency.code}" for currency, amount in credits),
        )
        return transactions

    async def credit_consumer(
        self,
        session: AsyncSession,
        consumer_id: str,
        currency: Currency | str,
        amount: Decimal | str,
        description: str,
        metadata: dict[str, Any] | None = None,
        kind: TransactionKind = TransactionKind.DATA_SALE,
    ) -> Transaction:
        """Credit the wallet owned by ``consumer_id``; see :meth:`credit`."""
        wallet = await self.get_wallet(session, consumer_id)
        if wallet is None:
            raise NotFoundError("Wallet", consumer_id)
        return await self.credit(
            session, wallet.id, currency, amount, description, metadata, kind=kind
        )

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    async def withdraw(
        self,
        session: AsyncSession,
        consumer_id: str,
        currency: Currency | str,
        amount: Decimal | str,
        method: WithdrawalMethod | str,
        wallet_address: str | None = None,
        bank_account_id: str | None = None,
    ) -> Transaction:
        """Debit a consumer's wallet and record a pending withdrawal.

        All input checks run before anything is written. The returned entry
        stays pending until :meth:`complete_transaction` or
        :meth:`fail_transaction` is called for it.

        Raises:
            ValidationError: Bad currency, amount, limits or destination
            NotFoundError: No wallet for the consumer, or the bank account
                does not belong to them
            InsufficientBalanceError: If the balance is below ``amount``
        """
        currency = Currency.parse(currency)
        amount = parse_amount(amount, currency)
        validate_withdrawal_limits(amount, currency)
        method, destination = resolve_destination(method, wallet_address, bank_account_id)

        async def work() -> Transaction:
            result = await session.execute(
                select(Wallet)
                .where(Wallet.consumer_id == consumer_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            wallet = result.scalar_one_or_none()
            if wallet is None:
                raise NotFoundError("Wallet", consumer_id)

            if destination.bank_account_id is not None:
                await self._require_bank_account(session, consumer_id, destination.bank_account_id)

            available = wallet.balance_of(currency)
            if available < amount:
                raise InsufficientBalanceError(str(wallet.id), currency.value, amount, available)

            if method is WithdrawalMethod.WALLET:
                description = "Withdrawal to external wallet"
            else:
                description = "Withdrawal to bank account"

            return await self._post_entry(
                session,
                wallet,
                currency,
                -amount,
                kind=TransactionKind.WITHDRAWAL,
                status=TransactionStatus.PENDING,
                description=description,
                details={
                    "withdrawal_method": method.value,
                    "bank_account_id": destination.bank_account_id,
                    "network_fee": calculate_network_fee(amount, currency),
                    "estimated_time": estimate_withdrawal_time(method),
                },
                from_address=wallet.address,
                to_address=destination.wallet_address,
            )

        try:
            transaction = await self._transactional(session, "withdraw", work)
        except (InsufficientBalanceError, NotFoundError) as exc:
            logger.warning("Withdrawal rejected for consumer %s: %s", consumer_id, exc.message)
            raise
        logger.info(
            "Withdrawal %s of %s %s pending for consumer %s",
            transaction.id, format_amount(amount, currency), currency.code, consumer_id,
        )
        return transaction

    # ------------------------------------------------------------------
    # Settlement state machine
    # ------------------------------------------------------------------

    async def complete_transaction(
        self, session: AsyncSession, transaction_id: uuid.UUID
    ) -> Transaction:
        """Move a pending entry to completed and stamp ``completed_at``.

        Raises:
            NotFoundError: Unknown transaction
            InvalidTransitionError: The entry is not pending
        """

        async def work() -> Transaction:
            transaction = await self._load_transaction(session, transaction_id)
            await self._transition(
                session, transaction, TransactionStatus.COMPLETED, completed_at=utcnow()
            )
            return transaction

        transaction = await self._transactional(session, "complete_transaction", work)
        logger.info("Transaction %s completed", transaction_id)
        return transaction

    async def fail_transaction(
        self, session: AsyncSession, transaction_id: uuid.UUID, reason: str
    ) -> Transaction:
        """Move a pending entry to failed.

        A failed withdrawal is refunded in the same database transaction by
        a completed deposit entry carrying ``refund_of`` in its metadata.

        Raises:
            NotFoundError: Unknown transaction
            InvalidTransitionError: The entry is not pending
        """

        async def work() -> Transaction:
            transaction = await self._load_transaction(session, transaction_id)
            await self._transition(
                session, transaction, TransactionStatus.FAILED, failure_reason=reason
            )
            if TransactionKind(transaction.kind) is TransactionKind.WITHDRAWAL:
                wallet = await session.get(Wallet, transaction.wallet_id, populate_existing=True)
                await self._post_entry(
                    session,
                    wallet,
                    transaction.currency_enum,
                    transaction.amount,
                    kind=TransactionKind.DEPOSIT,
                    status=TransactionStatus.COMPLETED,
                    description=f"Refund of failed withdrawal {transaction.id}",
                    details={"refund_of": str(transaction.id)},
                    to_address=wallet.address,
                )
            return transaction

        transaction = await self._transactional(session, "fail_transaction", work)
        logger.warning("Transaction %s failed: %s", transaction_id, reason)
        return transaction

    async def expire_stale_withdrawals(
        self, session: AsyncSession, now: datetime | None = None
    ) -> list[uuid.UUID]:
        """Fail withdrawals still pending after the settlement timeout.

        Returns:
            list[uuid.UUID]: Ids of the withdrawals that were failed
        """
        now = now or utcnow()
        cutoff = now - timedelta(seconds=self.settings.WITHDRAWAL_SETTLEMENT_TIMEOUT_SECONDS)

        async def work() -> list[uuid.UUID]:
            result = await session.execute(
                select(Transaction.id).where(
                    Transaction.kind == TransactionKind.WITHDRAWAL.value,
                    Transaction.status == TransactionStatus.PENDING.value,
                    Transaction.created_at < cutoff,
                )
            )
            return list(result.scalars().all())

        expired = []
        for transaction_id in await self._transactional(session, "expire_stale_withdrawals", work):
            try:
                await self.fail_transaction(session, transaction_id, SETTLEMENT_TIMEOUT_REASON)
            except InvalidTransitionError:
                # Settled between the scan and the update
                logger.info("Withdrawal %s settled before expiry", transaction_id)
                continue
            expired.append(transaction_id)
        return expired

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def list_transactions(self, session: AsyncSession, consumer_id: str) -> list[Transaction]:
        """Every entry on the consumer's wallet, most recent first.

        A consumer without a wallet has an empty history.
        """

        async def work() -> list[Transaction]:
            wallet = await self._find_wallet(session, consumer_id)
            if wallet is None:
                return []
            result = await session.execute(
                select(Transaction)
                .where(Transaction.wallet_id == wallet.id)
                .order_by(Transaction.wallet_version.desc())
            )
            return list(result.scalars().all())

        return await self._transactional(session, "list_transactions", work)

    async def get_transaction(self, session: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
        return await self._transactional(
            session, "get_transaction", lambda: self._load_transaction(session, transaction_id)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _transactional(
        self,
        session: AsyncSession,
        operation: str,
        work: Callable[[], Awaitable[T]],
    ) -> T:
        """Run ``work`` in a fresh transaction, retrying version conflicts."""
        attempts = max(1, self.settings.LEDGER_MAX_RETRIES)
        for attempt in range(attempts):
            try:
                async with session.begin():
                    return await work()
            except ConcurrencyError:
                if attempt == attempts - 1:
                    logger.warning("%s gave up after %d version conflicts", operation, attempts)
                    raise
                logger.info("%s hit a version conflict, retrying (attempt %d)", operation, attempt + 1)
                await asyncio.sleep(self.settings.LEDGER_RETRY_BACKOFF_SECONDS * (2 ** attempt))
            except SQLAlchemyError as exc:
                logger.exception("Ledger storage failure during %s", operation)
                raise PersistenceError(operation) from exc
        raise AssertionError("unreachable")

    async def _find_wallet(self, session: AsyncSession, consumer_id: str) -> Wallet | None:
        result = await session.execute(
            select(Wallet)
            .where(Wallet.consumer_id == consumer_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _load_transaction(self, session: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
        transaction = await session.get(Transaction, transaction_id, populate_existing=True)
        if transaction is None:
            raise NotFoundError("Transaction", str(transaction_id))
        return transaction

    async def _require_bank_account(
        self, session: AsyncSession, consumer_id: str, bank_account_id: str
    ) -> BankAccount:
        try:
            account_uuid = uuid.UUID(str(bank_account_id))
        except ValueError:
            raise NotFoundError("BankAccount", str(bank_account_id)) from None
        result = await session.execute(
            select(BankAccount).where(
                BankAccount.id == account_uuid,
                BankAccount.consumer_id == consumer_id,
            )
        )
        account = result.scalar_one_or_none()
        if account is None:
            raise NotFoundError("BankAccount", str(bank_account_id))
        return account

    async def _post_entry(
        self,
        session: AsyncSession,
        wallet: Wallet,
        currency: Currency,
        delta: Decimal,
        *,
        kind: TransactionKind,
        status: TransactionStatus,
        description: str,
        details: dict[str, Any],
        from_address: str | None = None,
        to_address: str | None = None,
    ) -> Transaction:
        """Apply ``delta`` to one balance and append the matching entry.

        Raises:
            InsufficientBalanceError: If the result would be negative
            ConcurrencyError: If the wallet version moved since it was read
        """
        current = wallet.balance_of(currency)
        new_balance = quantize(current + delta, currency)
        if new_balance < 0:
            raise InsufficientBalanceError(str(wallet.id), currency.value, -delta, current)

        now = utcnow()
        read_version = wallet.version
        result = await session.execute(
            update(Wallet)
            .where(Wallet.id == wallet.id, Wallet.version == read_version)
            .values(
                {
                    Wallet.balance_column(currency): new_balance,
                    "version": read_version + 1,
                    "updated_at": now,
                }
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrencyError("Wallet", str(wallet.id))
        await session.refresh(wallet)

        transaction = Transaction(
            wallet_id=wallet.id,
            wallet_version=read_version + 1,
            kind=kind.value,
            from_address=from_address,
            to_address=to_address,
            amount=quantize(abs(delta), currency),
            currency=currency.code,
            status=status.value,
            description=description,
            details=details,
            created_at=now,
            completed_at=now if status is TransactionStatus.COMPLETED else None,
        )
        session.add(transaction)
        await session.flush()
        return transaction

    async def _transition(
        self,
        session: AsyncSession,
        transaction: Transaction,
        target: TransactionStatus,
        *,
        completed_at: datetime | None = None,
        failure_reason: str | None = None,
    ) -> None:
        """Compare-and-swap a pending entry to ``target``."""
        current = TransactionStatus(transaction.status)
        if current is not TransactionStatus.PENDING:
            raise InvalidTransitionError(str(transaction.id), current.value, target.value)

        values: dict[str, Any] = {"status": target.value}
        if completed_at is not None:
            values["completed_at"] = completed_at
        if failure_reason is not None:
            values["failure_reason"] = failure_reason

        result = await session.execute(
            update(Transaction)
            .where(
                Transaction.id == transaction.id,
                Transaction.status == TransactionStatus.PENDING.value,
            )
            .values(values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise InvalidTransitionError(str(transaction.id), current.value, target.value)
        await session.refresh(transaction)
