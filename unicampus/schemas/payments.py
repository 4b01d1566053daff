from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from unicampus.models.transaction import TransactionStatus, TransactionType


class SubscribeRequest(BaseModel):
    phone_number: str = Field(..., max_length=32)


class SubscribeResponse(BaseModel):
    transaction_id: int
    provider_payment_id: str
    message: str = "Payment initiated."


class WebhookAck(BaseModel):
    status: str = "ok"
    outcome: str


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    amount: int
    currency: str
    tx_type: TransactionType
    phone_number: str
    provider_payment_id: Optional[str] = None
    status: TransactionStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
