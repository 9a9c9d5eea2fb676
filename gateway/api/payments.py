from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from gateway.api.deps import get_current_merchant, get_settlement_worker
from gateway.core.database import get_db
from gateway.core.rate_limit import limiter, public_rate_limit
from gateway.models import Merchant
from gateway.schemas import CreatePaymentRequest, PaymentResponse
from gateway.services.payments import create_payment, get_payment, list_merchant_payments
from gateway.services.settlement import SettlementWorker

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, response_model_exclude_none=True, status_code=201)
def create_payment_endpoint(
    body: CreatePaymentRequest,
    merchant: Merchant = Depends(get_current_merchant),
    db: Session = Depends(get_db),
    worker: SettlementWorker = Depends(get_settlement_worker),
):
    return create_payment(db, worker, body, merchant_id=merchant.id)


@router.post("/public", response_model=PaymentResponse, response_model_exclude_none=True, status_code=201)
@limiter.limit(public_rate_limit)
def create_public_payment(
    request: Request,
    body: CreatePaymentRequest,
    db: Session = Depends(get_db),
    worker: SettlementWorker = Depends(get_settlement_worker),
):
    """Hosted checkout: merchant kimliği yok, merchant siparişten alınır."""
    return create_payment(db, worker, body)


# /{payment_id}'den önce tanımlanmalı
@router.get("/merchant", response_model=list[PaymentResponse])
def merchant_payments(
    limit: int = 100,
    merchant: Merchant = Depends(get_current_merchant),
    db: Session = Depends(get_db),
):
    """Dashboard işlem listesi: en yeni önce. Kayıt yoksa boş liste."""
    return list_merchant_payments(db, merchant.id, limit=max(1, min(limit, 500)))


@router.get("/{payment_id}", response_model=PaymentResponse)
def get_payment_endpoint(payment_id: str, db: Session = Depends(get_db)):
    """Polling: status processing'den çıkana kadar istemci tekrar sorar."""
    return get_payment(db, payment_id)
