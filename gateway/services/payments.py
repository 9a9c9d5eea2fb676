"""
Ödeme işlemcisi: istek -> ödeme aracı (UPI | kart) -> doğrulama -> processing olarak kayıt -> settlement.
Merchant kimlikli ve public checkout uçları aynı akışı kullanır.
"""
import logging
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from gateway.core.errors import (
    BadRequestError,
    ExpiredCardError,
    InternalError,
    InvalidCardError,
    InvalidPaymentMethodError,
    InvalidVpaError,
    NotFoundError,
)
from gateway.core.ids import PAYMENT_PREFIX, generate_id
from gateway.models import Payment, PendingSettlement
from gateway.models.order import ORDER_PAID
from gateway.models.payment import METHOD_CARD, METHOD_UPI, PAYMENT_PROCESSING
from gateway.schemas.payment import CreatePaymentRequest
from gateway.services.orders import get_order
from gateway.services.settlement import SettlementWorker
from gateway.services.validators import (
    clean_card_number,
    detect_network,
    validate_expiry,
    validate_luhn,
    validate_vpa,
)

log = logging.getLogger("gateway.payments")


class UpiInstrument(NamedTuple):
    vpa: str


class CardInstrument(NamedTuple):
    number: str
    expiry_month: str
    expiry_year: str


PaymentInstrument = UpiInstrument | CardInstrument


def parse_instrument(req: CreatePaymentRequest) -> PaymentInstrument:
    """İstekteki yönteme göre aracı kurar; desteklenmeyen yöntem reddedilir."""
    method = (req.method or "").strip().lower()
    if method == METHOD_UPI:
        return UpiInstrument(vpa=req.vpa or "")
    if method == METHOD_CARD:
        if req.card is None:
            raise InvalidCardError()
        return CardInstrument(
            number=req.card.number or "",
            expiry_month="" if req.card.expiry_month is None else str(req.card.expiry_month),
            expiry_year="" if req.card.expiry_year is None else str(req.card.expiry_year),
        )
    raise InvalidPaymentMethodError()


def instrument_fields(instrument: PaymentInstrument) -> dict:
    """Aracı doğrular ve ödeme satırına yazılacak yönteme özgü alanları döner (ham kart numarası asla)."""
    if isinstance(instrument, UpiInstrument):
        if not validate_vpa(instrument.vpa):
            raise InvalidVpaError()
        return {"method": METHOD_UPI, "vpa": instrument.vpa}
    if isinstance(instrument, CardInstrument):
        if not validate_luhn(instrument.number):
            raise InvalidCardError()
        if not validate_expiry(instrument.expiry_month, instrument.expiry_year):
            raise ExpiredCardError()
        clean = clean_card_number(instrument.number)
        return {
            "method": METHOD_CARD,
            "card_network": detect_network(clean),
            "card_last4": clean[-4:],
        }
    raise InvalidPaymentMethodError()


def create_payment(
    db: Session,
    worker: SettlementWorker,
    req: CreatePaymentRequest,
    merchant_id: str | None = None,
) -> Payment:
    """
    Ödeme oluşturur ve settlement'ı zamanlar; settlement'ı beklemeden processing durumunda döner.
    merchant_id verilirse sipariş o merchant'a ait olmalı (kimlikli uç); yoksa merchant siparişten alınır.
    """
    order = get_order(db, req.order_id, merchant_id)
    if order.status == ORDER_PAID:
        raise BadRequestError("Order already paid")
    fields = instrument_fields(parse_instrument(req))

    now = worker.clock.now()
    due_at = worker.next_due_at()
    payment = Payment(
        id=generate_id(PAYMENT_PREFIX),
        order_id=order.id,
        merchant_id=order.merchant_id,
        amount=order.amount,
        currency=order.currency,
        status=PAYMENT_PROCESSING,
        created_at=now,
        updated_at=now,
        **fields,
    )
    try:
        db.add(payment)
        db.flush()
        db.add(PendingSettlement(payment_id=payment.id, method=payment.method, due_at=due_at, created_at=now))
        db.commit()
        db.refresh(payment)
    except SQLAlchemyError as e:
        db.rollback()
        log.exception("Payment insert failed: order_id=%s error=%s", order.id, e)
        raise InternalError("Payment could not be recorded") from e

    # Commit'ten sonra: worker satırı görebilmeli
    worker.schedule(payment.id, payment.method, due_at)
    log.info(
        "Payment created: payment_id=%s order_id=%s method=%s amount=%s",
        payment.id,
        payment.order_id,
        payment.method,
        payment.amount,
    )
    return payment


def get_payment(db: Session, payment_id: str) -> Payment:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def list_merchant_payments(db: Session, merchant_id: str, limit: int = 100) -> list[Payment]:
    stmt = (
        select(Payment)
        .where(Payment.merchant_id == merchant_id)
        .order_by(Payment.created_at.desc())
        .limit(limit)
    )
    return list(db.exec(stmt).all())
