"""Property-based tests for task parameter serializability.

**Feature: data-marketplace-ledger, Property 10: Task Parameter Serializability**
"""

import json
from decimal import Decimal
from unittest.mock import patch

from hypothesis import HealthCheck, given, settings, strategies as st
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.wallet import queue_audit
from app.core.currency import Currency
from app.models.transaction import TransactionKind
from tests.ledger_db import run_with_ledger

metadata_strategy = st.dictionaries(
    keys=st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=12),
    values=st.one_of(st.text(max_size=20), st.integers(), st.booleans()),
    max_size=4,
)


def assert_json_primitives(value) -> None:
    """Task arguments must be plain JSON types, never sessions or ORM objects."""
    assert not isinstance(value, AsyncSession)
    if isinstance(value, dict):
        for key, item in value.items():
            assert isinstance(key, str)
            assert_json_primitives(item)
    elif isinstance(value, list):
        for item in value:
            assert_json_primitives(item)
    else:
        assert value is None or isinstance(value, (str, int, float, bool))


@settings(max_examples=40, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(
    currency=st.sampled_from([Currency.ETH, Currency.USDC]),
    amount=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("1000"), places=2),
    kind=st.sampled_from([TransactionKind.DATA_SALE, TransactionKind.DEPOSIT]),
    metadata=metadata_strategy,
)
def test_audit_task_parameters_are_json_serializable(
    currency: Currency,
    amount: Decimal,
    kind: TransactionKind,
    metadata: dict,
) -> None:
    """
    **Feature: data-marketplace-ledger, Property 10: Task Parameter Serializability**

    *For any* committed ledger entry, the audit task SHALL be queued with
    JSON-serializable arguments only.
    """

    async def scenario(session, ledger):
        wallet = await ledger.create_wallet(session, "c1")
        return await ledger.credit(
            session, wallet.id, currency, amount, "sale", metadata=metadata, kind=kind
        )

    transaction = run_with_ledger(scenario)

    with patch("app.api.v1.wallet.audit_log_transaction") as audit:
        queue_audit(transaction)

    kwargs = audit.delay.call_args.kwargs
    assert_json_primitives(kwargs)
    decoded = json.loads(json.dumps(kwargs))
    assert decoded["transaction_id"] == str(transaction.id)
    assert decoded["data"]["kind"] == kind.value
    assert decoded["data"]["currency"] == currency.code
