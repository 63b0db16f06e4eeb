"""Wallet API endpoints."""

import secrets

from fastapi import APIRouter, HTTPException

from app.api.deps import BankAccounts, ConsumerId, DBSession, Ledger
from app.core.config import get_settings
from app.core.currency import Currency
from app.core.exceptions import ConflictError, NotFoundError
from app.models.transaction import Transaction, TransactionStatus
from app.schemas.bank_account import BankAccountCreate, BankAccountRead
from app.schemas.transaction import TransactionListResponse, TransactionRead
from app.schemas.wallet import (
    BalanceRead,
    FundRequest,
    FundResponse,
    WalletCreateResponse,
    WalletRead,
    WalletStatusResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from app.worker import audit_log_transaction, settle_withdrawal

router = APIRouter(prefix="/wallet", tags=["wallet"])


def queue_audit(transaction: Transaction) -> None:
    """Queue the audit record for a committed ledger entry."""
    entry = TransactionRead.from_model(transaction)
    audit_log_transaction.delay(
        transaction_id=str(entry.id),
        data={
            "wallet_id": str(entry.wallet_id),
            "kind": entry.kind.value,
            "amount": entry.amount,
            "currency": entry.currency,
            "status": entry.status.value,
            "created_at": entry.created_at.isoformat(),
        },
    )


@router.post("", response_model=WalletCreateResponse)
async def create_wallet(consumer_id: ConsumerId, session: DBSession, ledger: Ledger):
    """
    Create the caller's custodial wallet.

    Returns the wallet with zero balances; 400 if the caller already has one.
    """
    try:
        wallet = await ledger.create_wallet(session, consumer_id)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail="User already has a wallet") from e
    return WalletCreateResponse(wallet=WalletRead.from_model(wallet))


@router.get("", response_model=WalletStatusResponse, response_model_exclude_none=True)
async def get_wallet(consumer_id: ConsumerId, session: DBSession, ledger: Ledger):
    """Return ``{hasWallet, wallet?}`` for the caller."""
    wallet = await ledger.get_wallet(session, consumer_id)
    if wallet is None:
        return WalletStatusResponse(has_wallet=False)
    return WalletStatusResponse(has_wallet=True, wallet=WalletRead.from_model(wallet))


@router.post("/fund", response_model=FundResponse)
async def fund_wallet(
    request: FundRequest,
    consumer_id: ConsumerId,
    session: DBSession,
    ledger: Ledger,
):
    """
    Testnet faucet simulation.

    Credits the configured faucet amounts of ETH and USDC to the caller's
    wallet as deposit entries and returns the new balances.
    """
    if not request.cdp_wallet_id:
        raise HTTPException(status_code=400, detail="CDP Wallet ID is required")

    settings = get_settings()
    wallet = await ledger.get_wallet(session, consumer_id)
    if wallet is None:
        raise NotFoundError("Wallet", consumer_id)

    transactions = await ledger.fund(
        session,
        wallet.id,
        [
            (Currency.ETH, settings.FAUCET_ETH_AMOUNT),
            (Currency.USDC, settings.FAUCET_USDC_AMOUNT),
        ],
        metadata={"cdp_wallet_id": request.cdp_wallet_id, "source": "faucet"},
    )
    for transaction in transactions:
        queue_audit(transaction)

    wallet = await ledger.get_wallet_by_id(session, wallet.id)
    return FundResponse(
        message="Wallet funded successfully (demo mode)",
        transaction_hash="0x" + secrets.token_hex(32),
        balance=BalanceRead.from_wallet(wallet),
        faucet_amount=str(settings.FAUCET_ETH_AMOUNT),
        transaction_ids=[transaction.id for transaction in transactions],
    )


@router.post("/withdraw", response_model=WithdrawResponse)
async def withdraw(
    request: WithdrawRequest,
    consumer_id: ConsumerId,
    session: DBSession,
    ledger: Ledger,
):
    """
    Withdraw to an external wallet or a linked bank account.

    - **amount**: Decimal string within the per-currency limits
    - **currency**: eth or usdc
    - **method**: wallet (needs walletAddress) or bank (needs bankAccountId)

    The entry is created pending and settles after the completion delay.
    """
    transaction = await ledger.withdraw(
        session,
        consumer_id,
        request.currency,
        request.amount,
        request.method,
        wallet_address=request.wallet_address,
        bank_account_id=request.bank_account_id,
    )

    # Committed at this point; safe to queue background work
    settle_withdrawal.apply_async(
        args=[str(transaction.id)],
        countdown=get_settings().WITHDRAWAL_COMPLETION_DELAY_SECONDS,
    )
    queue_audit(transaction)

    return WithdrawResponse(
        transaction_id=transaction.id,
        status=TransactionStatus(transaction.status).value,
        estimated_time=transaction.details["estimated_time"],
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(consumer_id: ConsumerId, session: DBSession, ledger: Ledger):
    """The caller's ledger entries, most recent first."""
    transactions = await ledger.list_transactions(session, consumer_id)
    return TransactionListResponse(
        transactions=[TransactionRead.from_model(transaction) for transaction in transactions]
    )


@router.post("/bank-accounts", response_model=BankAccountRead)
async def link_bank_account(
    request: BankAccountCreate,
    consumer_id: ConsumerId,
    session: DBSession,
    bank_accounts: BankAccounts,
):
    """Link a bank account as a withdrawal destination (auto-verified in demo mode)."""
    account = await bank_accounts.link_bank_account(
        session,
        consumer_id,
        routing_number=request.routing_number,
        account_number=request.account_number,
        account_type=request.account_type,
        account_holder_name=request.account_holder_name,
    )
    return BankAccountRead.model_validate(account)


@router.get("/bank-accounts", response_model=list[BankAccountRead])
async def list_bank_accounts(
    consumer_id: ConsumerId,
    session: DBSession,
    bank_accounts: BankAccounts,
):
    accounts = await bank_accounts.list_bank_accounts(session, consumer_id)
    return [BankAccountRead.model_validate(account) for account in accounts]
