"""Değerlendirme/dashboard için: açılışta oluşturulan test merchant'ın bilgileri."""
from fastapi import APIRouter, Depends
from sqlmodel import Session

from gateway.core.config import settings
from gateway.core.database import get_db
from gateway.core.errors import NotFoundError
from gateway.schemas import SeededMerchantResponse
from gateway.services.merchants import get_seeded_merchant

router = APIRouter(prefix="/api/v1/test", tags=["test"])


@router.get("/merchant", response_model=SeededMerchantResponse)
def seeded_merchant(db: Session = Depends(get_db)):
    merchant = get_seeded_merchant(db, settings)
    if not merchant:
        raise NotFoundError("Test merchant not found")
    return SeededMerchantResponse(id=merchant.id, email=merchant.email, api_key=merchant.api_key)
