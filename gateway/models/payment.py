from datetime import datetime

from sqlmodel import Field, SQLModel

from gateway.core.clock import utcnow

PAYMENT_PROCESSING = "processing"
PAYMENT_SUCCESS = "success"
PAYMENT_FAILED = "failed"
TERMINAL_STATUSES = (PAYMENT_SUCCESS, PAYMENT_FAILED)

METHOD_UPI = "upi"
METHOD_CARD = "card"


class Payment(SQLModel, table=True):
    """Siparişe bağlı ödeme: processing -> success | failed. Terminal durumdan sonra değişmez."""

    __tablename__ = "payments"
    id: str = Field(primary_key=True, max_length=64)
    order_id: str = Field(foreign_key="orders.id", index=True)
    merchant_id: str = Field(foreign_key="merchants.id", index=True)
    # Tutar ve para birimi siparişten kopyalanır, istemciden asla alınmaz
    amount: int
    currency: str = Field(max_length=3)
    method: str  # upi | card
    status: str = Field(default=PAYMENT_PROCESSING, index=True)
    vpa: str | None = Field(default=None, max_length=255)
    card_network: str | None = Field(default=None, max_length=20)
    card_last4: str | None = Field(default=None, max_length=4)
    error_code: str | None = Field(default=None, max_length=50)
    error_description: str | None = None
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
