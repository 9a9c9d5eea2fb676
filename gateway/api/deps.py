from fastapi import Depends, Header, Request
from sqlmodel import Session

from gateway.core.database import get_db
from gateway.core.errors import AuthenticationError
from gateway.models import Merchant
from gateway.services.merchants import authenticate_merchant
from gateway.services.settlement import SettlementWorker


def get_current_merchant(
    x_api_key: str | None = Header(None, alias="X-Api-Key"),
    x_api_secret: str | None = Header(None, alias="X-Api-Secret"),
    db: Session = Depends(get_db),
) -> Merchant:
    merchant = authenticate_merchant(db, x_api_key, x_api_secret)
    if not merchant:
        raise AuthenticationError()
    return merchant


def get_settlement_worker(request: Request) -> SettlementWorker:
    """Lifespan'de başlatılan worker (testlerde app.state üzerinden değiştirilebilir)."""
    return request.app.state.settlement_worker
