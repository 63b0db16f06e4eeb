"""Data purchase API endpoint.

Brokers buy data points about a consumer. Once payment is presented the
sale price is credited to that consumer's custodial wallet and the data
points are delivered in the response.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from app.api.deps import DBSession, Ledger
from app.api.v1.wallet import queue_audit
from app.core.config import get_settings
from app.core.currency import Currency
from app.models.transaction import TransactionKind
from app.schemas.data_purchase import (
    DataPointRead,
    DataPurchaseRequest,
    DataPurchaseResponse,
    PaymentRequired,
    PurchaseInfo,
)
from app.services.data_catalog import generate_data_points
from app.services.pricing import BULK_DISCOUNT_THRESHOLD, calculate_total_cost

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data-purchase", tags=["data-purchase"])


@router.post(
    "",
    response_model=DataPurchaseResponse,
    responses={402: {"model": PaymentRequired}},
)
async def purchase_data(
    request: DataPurchaseRequest,
    session: DBSession,
    ledger: Ledger,
    x_payment: Annotated[Optional[str], Header()] = None,
):
    """
    Buy consumer data points.

    - **consumerId**: Consumer whose data is sold and who gets paid
    - **sources**: Any of netflix, spotify, instagram, apple-music, facebook
    - **quantity**: 1 to 1000 data points; more than 10 earns a 10% discount

    Without an X-PAYMENT header the response is 402 with payment details.
    """
    total_cost = calculate_total_cost(request.sources, request.quantity)
    description = (
        f"Data sale: {', '.join(request.sources)} ({request.quantity} points)"
    )

    if not x_payment:
        payment = PaymentRequired(
            amount=f"${total_cost:.2f}",
            description=description,
            pay_to=get_settings().MARKETPLACE_PAYMENT_ADDRESS,
            metadata={
                "sources": ",".join(request.sources),
                "quantity": str(request.quantity),
                "timestamp": str(time.time_ns() // 1_000_000),
            },
        )
        return JSONResponse(
            status_code=402,
            content=payment.model_dump(by_alias=True),
            headers={"X-Payment-Required": "true"},
        )

    # Payment header accepted as-is; signatures are not verified in demo mode
    transaction = await ledger.credit_consumer(
        session,
        request.consumer_id,
        Currency.USDC,
        total_cost,
        description=description,
        metadata={
            "data_broker_id": request.data_broker_id,
            "data_sources_requested": request.sources,
            "quantity": request.quantity,
            "payment_reference": x_payment,
        },
        kind=TransactionKind.DATA_SALE,
    )
    queue_audit(transaction)

    data_points = generate_data_points(request.sources, request.quantity)
    logger.info(
        "Delivered %d data points (%s) for consumer %s, transaction %s",
        len(data_points), ", ".join(request.sources), request.consumer_id, transaction.id,
    )

    return DataPurchaseResponse(
        data_points=[DataPointRead.from_profile(point) for point in data_points],
        purchase_info=PurchaseInfo(
            sources=request.sources,
            quantity=request.quantity,
            total_cost_usd=f"{total_cost:.2f}",
            bulk_discount=request.quantity > BULK_DISCOUNT_THRESHOLD,
            timestamp=datetime.now(timezone.utc),
            transaction_id=transaction.id,
        )
    )
