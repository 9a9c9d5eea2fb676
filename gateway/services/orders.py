"""Sipariş oluşturma ve okuma."""
import logging

from sqlmodel import Session, select

from gateway.core.clock import utcnow
from gateway.core.config import settings
from gateway.core.errors import BadRequestError, NotFoundError
from gateway.core.ids import ORDER_PREFIX, generate_id
from gateway.models import Order
from gateway.models.order import ORDER_CREATED
from gateway.schemas.order import CreateOrderRequest

log = logging.getLogger("gateway.orders")


def create_order(db: Session, merchant_id: str, req: CreateOrderRequest) -> Order:
    if req.amount is None or req.amount < settings.min_order_amount:
        raise BadRequestError(f"amount must be at least {settings.min_order_amount}")
    currency = (req.currency or settings.default_currency).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise BadRequestError("currency must be a 3-letter ISO code")
    now = utcnow()
    order = Order(
        id=generate_id(ORDER_PREFIX),
        merchant_id=merchant_id,
        amount=req.amount,
        currency=currency,
        receipt=req.receipt,
        notes=req.notes or {},
        status=ORDER_CREATED,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    log.info("Order created: order_id=%s merchant_id=%s amount=%s %s", order.id, merchant_id, order.amount, currency)
    return order


def get_order(db: Session, order_id: str, merchant_id: str | None = None) -> Order:
    """merchant_id verilirse yalnızca o merchant'ın siparişi döner."""
    stmt = select(Order).where(Order.id == order_id)
    if merchant_id is not None:
        stmt = stmt.where(Order.merchant_id == merchant_id)
    order = db.exec(stmt).first()
    if not order:
        raise NotFoundError("Order not found")
    return order
