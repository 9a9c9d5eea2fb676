from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from gateway.api.deps import get_current_merchant
from gateway.core.database import get_db
from gateway.core.rate_limit import limiter, public_rate_limit
from gateway.models import Merchant
from gateway.schemas import CreateOrderRequest, OrderResponse, PublicOrderResponse
from gateway.services.orders import create_order, get_order

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=201)
def create_order_endpoint(
    body: CreateOrderRequest,
    merchant: Merchant = Depends(get_current_merchant),
    db: Session = Depends(get_db),
):
    return create_order(db, merchant.id, body)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order_endpoint(
    order_id: str,
    merchant: Merchant = Depends(get_current_merchant),
    db: Session = Depends(get_db),
):
    return get_order(db, order_id, merchant.id)


@router.get("/{order_id}/public", response_model=PublicOrderResponse)
@limiter.limit(public_rate_limit)
def get_public_order(request: Request, order_id: str, db: Session = Depends(get_db)):
    """Checkout sayfası yüklenirken: yalnızca id, amount, currency, status."""
    return get_order(db, order_id)
