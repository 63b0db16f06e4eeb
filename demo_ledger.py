"""Demonstration of the ledger under concurrent credits and withdrawals.

Runs against the configured database (run ``alembic upgrade head`` first).
Each simulated client gets its own session, as separate API requests would.
"""

import asyncio
import uuid
from decimal import Decimal

from app.core.currency import Currency, format_amount
from app.core.exceptions import ConcurrencyError, InsufficientBalanceError
from app.core.logging import configure_logging
from app.db.session import dispose_engine, get_async_session_maker
from app.services.ledger_service import LedgerService

DESTINATION = "0x" + "ab" * 20


async def demo_concurrent_credits(ledger: LedgerService, consumer_id: str) -> None:
    """Many brokers paying the same consumer at once."""
    print("\n" + "=" * 70)
    print("DEMO 1: CONCURRENT CREDITS (optimistic version check + retry)")
    print("=" * 70)

    session_maker = get_async_session_maker()
    async with session_maker() as session:
        wallet = await ledger.create_wallet(session, consumer_id)
    print(f"\n✓ Created wallet {wallet.address} for {consumer_id}")

    async def pay(index: int) -> str:
        async with session_maker() as session:
            try:
                await ledger.credit(
                    session, wallet.id, Currency.USDC, "1.25", f"Data sale #{index}"
                )
            except ConcurrencyError:
                return "gave up"
            return "credited"

    outcomes = await asyncio.gather(*(pay(index) for index in range(20)))
    credited = outcomes.count("credited")

    async with session_maker() as session:
        wallet = await ledger.get_wallet(session, consumer_id)
    print(f"\n✓ {credited} of 20 credits applied, {outcomes.count('gave up')} gave up")
    print(f"  USDC balance: {format_amount(wallet.usdc_balance, Currency.USDC)}")
    print(f"  Expected:     {format_amount(Decimal('1.25') * credited, Currency.USDC)}")
    print(f"  Wallet version: {wallet.version}")


async def demo_competing_withdrawals(ledger: LedgerService, consumer_id: str) -> None:
    """More withdrawals than the balance can cover, all at once."""
    print("\n" + "=" * 70)
    print("DEMO 2: COMPETING WITHDRAWALS (balance never goes negative)")
    print("=" * 70)

    session_maker = get_async_session_maker()

    async def withdraw() -> str:
        async with session_maker() as session:
            try:
                await ledger.withdraw(
                    session, consumer_id, Currency.USDC, "10.00", "wallet",
                    wallet_address=DESTINATION,
                )
            except InsufficientBalanceError:
                return "insufficient"
            except ConcurrencyError:
                return "gave up"
            return "pending"

    outcomes = await asyncio.gather(*(withdraw() for _ in range(5)))

    async with session_maker() as session:
        wallet = await ledger.get_wallet(session, consumer_id)
        history = await ledger.list_transactions(session, consumer_id)
    print(f"\n✓ Outcomes: {sorted(outcomes)}")
    print(f"  USDC balance: {format_amount(wallet.usdc_balance, Currency.USDC)}")
    print(f"  Ledger entries: {len(history)}")


async def demo_settlement(ledger: LedgerService, consumer_id: str) -> None:
    """Confirm one pending withdrawal and fail another."""
    print("\n" + "=" * 70)
    print("DEMO 3: SETTLEMENT STATE MACHINE")
    print("=" * 70)

    async with get_async_session_maker()() as session:
        history = await ledger.list_transactions(session, consumer_id)
        pending = [entry for entry in history if entry.status == "pending"]
        if not pending:
            print("\n  No pending withdrawals to settle")
            return

        completed = await ledger.complete_transaction(session, pending[0].id)
        print(f"\n✓ {completed.id} -> {completed.status}")
        for entry in pending[1:]:
            failed = await ledger.fail_transaction(session, entry.id, "Demo rejection")
            print(f"✓ {failed.id} -> {failed.status} (refunded)")

        wallet = await ledger.get_wallet(session, consumer_id)
        print(f"  USDC balance: {format_amount(wallet.usdc_balance, Currency.USDC)}")


async def main() -> None:
    """Run all demonstrations."""
    configure_logging("WARNING")
    print("\n" + "=" * 70)
    print("DATA MARKETPLACE LEDGER DEMONSTRATION")
    print("=" * 70)

    ledger = LedgerService()
    consumer_id = f"demo-{uuid.uuid4().hex[:8]}"
    try:
        await demo_concurrent_credits(ledger, consumer_id)
        await demo_competing_withdrawals(ledger, consumer_id)
        await demo_settlement(ledger, consumer_id)
        print("\n" + "=" * 70)
        print("✓ All demonstrations completed successfully!")
        print("=" * 70 + "\n")
    finally:
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
