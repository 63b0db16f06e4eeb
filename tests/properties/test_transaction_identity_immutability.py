"""Property-based tests for identity fields across status transitions.

**Feature: data-marketplace-ledger, Property 5: Transaction Identity Immutability**
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings, strategies as st

from app.core.currency import Currency
from app.models.transaction import TransactionStatus
from tests.ledger_db import run_with_ledger

DESTINATION = "0x" + "c3" * 20


def identity(transaction) -> tuple:
    return (
        transaction.id,
        transaction.wallet_id,
        transaction.kind,
        transaction.amount,
        transaction.currency,
        transaction.created_at,
    )


@settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(
    amount=st.decimals(min_value=Decimal("1.00"), max_value=Decimal("500.00"), places=2),
    outcome=st.sampled_from([TransactionStatus.COMPLETED, TransactionStatus.FAILED]),
)
def test_transition_changes_only_status_fields(
    amount: Decimal, outcome: TransactionStatus
) -> None:
    """
    **Feature: data-marketplace-ledger, Property 5: Transaction Identity Immutability**

    *For any* pending withdrawal moving to completed or failed, its id, kind,
    amount, currency and created_at SHALL be unchanged; only the status and
    the completion or failure fields differ.
    """

    async def scenario(session, ledger):
        wallet = await ledger.create_wallet(session, "c1")
        await ledger.credit(session, wallet.id, Currency.USDC, Decimal("500.00"), "data sale")
        pending = await ledger.withdraw(
            session, "c1", Currency.USDC, amount, "wallet", wallet_address=DESTINATION
        )

        stored = await ledger.get_transaction(session, pending.id)
        before = (identity(stored), stored.status, stored.completed_at, stored.failure_reason)

        if outcome is TransactionStatus.COMPLETED:
            await ledger.complete_transaction(session, pending.id)
        else:
            await ledger.fail_transaction(session, pending.id, "rejected")

        stored = await ledger.get_transaction(session, pending.id)
        after = (identity(stored), stored.status, stored.completed_at, stored.failure_reason)
        return before, after

    before, after = run_with_ledger(scenario)
    before_identity, before_status, before_completed_at, before_reason = before
    after_identity, after_status, after_completed_at, after_reason = after

    assert after_identity == before_identity
    assert TransactionStatus(before_status) is TransactionStatus.PENDING
    assert TransactionStatus(after_status) is outcome
    assert before_completed_at is None
    assert before_reason is None
    if outcome is TransactionStatus.COMPLETED:
        assert after_completed_at is not None
        assert after_reason is None
    else:
        assert after_completed_at is None
        assert after_reason == "rejected"
