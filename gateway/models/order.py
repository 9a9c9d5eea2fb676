from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from gateway.core.clock import utcnow

ORDER_CREATED = "created"
ORDER_PAID = "paid"


class Order(SQLModel, table=True):
    """Merchant siparişi: created -> paid (yalnızca başarılı bir settlement ile, bir kez)."""

    __tablename__ = "orders"
    id: str = Field(primary_key=True, max_length=64)
    merchant_id: str = Field(foreign_key="merchants.id", index=True)
    amount: int  # en küçük birim (paise), >= 100
    currency: str = Field(default="INR", max_length=3)
    receipt: str | None = Field(default=None, max_length=255)
    notes: dict | None = Field(default=None, sa_column=Column(JSON))
    status: str = Field(default=ORDER_CREATED, index=True)  # created | paid
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = Field(default_factory=utcnow)
