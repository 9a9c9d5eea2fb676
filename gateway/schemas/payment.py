from datetime import datetime

from pydantic import BaseModel


class CardDetails(BaseModel):
    """Ham kart bilgisi; numara ve CVV hiçbir zaman saklanmaz."""
    number: str | None = None
    expiry_month: str | int | None = None
    expiry_year: str | int | None = None
    cvv: str | None = None
    holder_name: str | None = None


class CreatePaymentRequest(BaseModel):
    """
    Ödeme isteği. Yönteme özgü alanlar burada opsiyonel; doğrulama ve tip ayrımı
    işlemcide yapılır ki her eksik/bozuk alan kendi hata koduyla dönsün.
    İstemcinin gönderdiği amount/currency yok sayılır.
    """
    order_id: str
    method: str
    vpa: str | None = None
    card: CardDetails | None = None

    model_config = {"extra": "ignore"}


class PaymentResponse(BaseModel):
    id: str
    order_id: str
    merchant_id: str | None = None
    amount: int
    currency: str
    method: str
    status: str
    vpa: str | None = None
    card_network: str | None = None
    card_last4: str | None = None
    error_code: str | None = None
    error_description: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
