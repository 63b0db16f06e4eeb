"""Data purchase Pydantic schemas."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.wallet import CamelModel
from app.services.data_catalog import ConsumerProfile
from app.services.pricing import DATA_SOURCE_PRICES


class DataPurchaseRequest(CamelModel):
    """A broker buying ``quantity`` data points about one consumer."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "consumerId": "c1",
                "sources": ["netflix", "spotify"],
                "quantity": 3,
                "dataBrokerId": "broker-42",
            }
        },
    )

    consumer_id: str
    sources: list[str] = Field(default_factory=list)
    quantity: int
    data_broker_id: Optional[str] = None


class PaymentRequired(CamelModel):
    """x402-style payment details returned with HTTP 402."""

    type: str = "x402-payment-required"
    amount: str
    description: str
    currency: str = "USDC"
    network: str = "base-sepolia"
    pay_to: str
    metadata: dict[str, str]


class DataPointRead(CamelModel):
    """One delivered consumer data point."""

    id: str
    full_name: str
    state: str
    phone_number: Optional[str] = None
    email: str
    age: int
    data_available: dict[str, bool]
    wallet_address: str
    created_at: str

    @classmethod
    def from_profile(cls, profile: ConsumerProfile) -> "DataPointRead":
        return cls(
            id=profile.id,
            full_name=profile.full_name,
            state=profile.state,
            phone_number=profile.phone_number,
            email=profile.email,
            age=profile.age,
            data_available={
                source: profile.has_source(source) for source in DATA_SOURCE_PRICES
            },
            wallet_address=profile.wallet_address,
            created_at=profile.created_at,
        )


class PurchaseInfo(CamelModel):
    sources: list[str]
    quantity: int
    total_cost_usd: str
    bulk_discount: bool
    timestamp: datetime
    transaction_id: uuid.UUID
    payment_method: str = "x402-protocol"


class DataPurchaseResponse(CamelModel):
    success: bool = True
    data_points: list[DataPointRead]
    purchase_info: PurchaseInfo
