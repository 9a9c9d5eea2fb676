from datetime import datetime
from typing import Any

from pydantic import BaseModel


class CreateOrderRequest(BaseModel):
    """amount en küçük birimde; currency boşsa varsayılan para birimi kullanılır."""
    amount: int | None = None
    currency: str | None = None
    receipt: str | None = None
    notes: dict[str, Any] | None = None


class OrderResponse(BaseModel):
    id: str
    merchant_id: str
    amount: int
    currency: str
    receipt: str | None = None
    notes: dict[str, Any] | None = None
    status: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class PublicOrderResponse(BaseModel):
    """Checkout sayfası için: yalnızca temel bilgiler."""
    id: str
    amount: int
    currency: str
    status: str

    model_config = {"from_attributes": True}
