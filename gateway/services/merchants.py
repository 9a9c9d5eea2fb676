"""Merchant dizini: API anahtarı/secret ile kimlik doğrulama ve test merchant'ın oluşturulması."""
import logging
import secrets

from sqlmodel import Session, select

from gateway.core.config import Settings
from gateway.core.security import hash_secret, verify_secret
from gateway.models import Merchant

log = logging.getLogger("gateway.merchants")


def authenticate_merchant(db: Session, api_key: str | None, api_secret: str | None) -> Merchant | None:
    if not api_key or not api_secret:
        return None
    merchant = db.exec(select(Merchant).where(Merchant.api_key == api_key)).first()
    if not merchant or not merchant.is_active:
        return None
    if not verify_secret(api_secret, merchant.api_secret_hash):
        return None
    return merchant


def create_merchant(
    db: Session,
    name: str,
    email: str,
    api_key: str | None = None,
    api_secret: str | None = None,
) -> tuple[Merchant, str]:
    """Yeni merchant. (merchant, düz secret) döner; secret yalnızca burada bir kez görülür."""
    api_key = api_key or f"key_{secrets.token_hex(12)}"
    api_secret = api_secret or f"secret_{secrets.token_hex(16)}"
    merchant = Merchant(
        name=name,
        email=email.strip().lower(),
        api_key=api_key,
        api_secret_hash=hash_secret(api_secret),
    )
    db.add(merchant)
    db.commit()
    db.refresh(merchant)
    return merchant, api_secret


def get_seeded_merchant(db: Session, s: Settings) -> Merchant | None:
    return db.exec(select(Merchant).where(Merchant.email == s.test_merchant_email.strip().lower())).first()


def seed_test_merchant(db: Session, s: Settings) -> Merchant:
    """Açılışta test merchant'ı yoksa oluşturur (idempotent)."""
    existing = get_seeded_merchant(db, s)
    if existing:
        return existing
    merchant, _ = create_merchant(
        db,
        name=s.test_merchant_name,
        email=s.test_merchant_email,
        api_key=s.test_merchant_api_key,
        api_secret=s.test_merchant_api_secret,
    )
    log.info("Test merchant seeded: merchant_id=%s api_key=%s", merchant.id, merchant.api_key)
    return merchant
