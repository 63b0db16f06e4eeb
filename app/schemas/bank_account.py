"""Bank account Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.wallet import CamelModel


class BankAccountCreate(CamelModel):
    """Schema for linking a bank account. The full account number is not stored."""

    routing_number: str = Field(..., min_length=9, max_length=9)
    account_number: str = Field(..., min_length=4, max_length=17)
    account_type: str = "checking"
    account_holder_name: str


class BankAccountRead(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID
    consumer_id: str
    account_type: str
    last4: str
    bank_name: str
    is_verified: bool
    added_at: datetime
