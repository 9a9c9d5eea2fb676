"""Pytest fixtures: test client, geçici SQLite dosyası, elle ilerletilen saat ile settlement worker."""
import os
import tempfile
import threading
import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

# Test ortamı (app import edilmeden önce set edilmeli). Settlement iş parçacıkları ayrı
# bağlantı açtığı için in-memory yerine geçici dosya kullanılır.
_TMP_DIR = tempfile.mkdtemp(prefix="gateway-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP_DIR}/gateway.db")
os.environ.setdefault("TEST_MODE", "true")
os.environ.setdefault("TEST_PROCESSING_DELAY", "0")
os.environ.setdefault("TEST_PAYMENT_SUCCESS", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SETTLEMENT_POLL_INTERVAL", "0.01")
# Public uçlar tüm testlerde 429'a düşmesin
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "10000")

from sqlmodel import Session  # noqa: E402

from gateway.core.clock import utcnow  # noqa: E402
from gateway.core.config import settings  # noqa: E402
from gateway.core.database import engine  # noqa: E402
from gateway.main import app  # noqa: E402
from gateway.services.merchants import create_merchant  # noqa: E402
from gateway.services.settlement import SettlementPolicy, SettlementWorker  # noqa: E402


class ManualClock:
    """Testte zamanı elle ilerletmek için."""

    def __init__(self, start=None):
        self._now = start or utcnow()
        self._lock = threading.Lock()

    def now(self):
        with self._lock:
            return self._now

    def advance(self, **kwargs) -> None:
        with self._lock:
            self._now += timedelta(**kwargs)


@pytest.fixture(scope="function")
def client():
    """TestClient; lifespan ile tablolar, test merchant ve settlement worker hazır olur."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers() -> dict:
    """Açılışta oluşturulan test merchant'ın anahtarları."""
    return {
        "X-Api-Key": settings.test_merchant_api_key,
        "X-Api-Secret": settings.test_merchant_api_secret,
    }


@pytest.fixture
def other_merchant_headers(client) -> dict:
    """Ayrı bir merchant (sahiplik kontrolleri için)."""
    suffix = uuid.uuid4().hex[:8]
    with Session(engine) as db:
        merchant, secret = create_merchant(db, "Other Shop", f"other-{suffix}@example.com", api_key=f"key_other_{suffix}")
        api_key = merchant.api_key
    return {"X-Api-Key": api_key, "X-Api-Secret": secret}


@pytest.fixture
def make_order(client, auth_headers):
    def _make(amount: int = 500, currency: str | None = "INR", headers: dict | None = None, **extra) -> dict:
        body = {"amount": amount, **extra}
        if currency is not None:
            body["currency"] = currency
        r = client.post("/api/v1/orders", json=body, headers=headers or auth_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _make


@pytest.fixture
def settlement(client):
    """
    Lifespan worker'ı yerine: elle ilerletilen saat, sabit 5 sn gecikme, zorunlu başarı.
    Test, worker.policy.forced_outcome ile sonucu değiştirebilir.
    """
    client.app.state.settlement_worker.stop()
    worker = SettlementWorker(
        engine,
        SettlementPolicy(fixed_delay_ms=5000, forced_outcome=True),
        clock=ManualClock(),
        poll_interval=0.01,
    )
    worker.start()
    client.app.state.settlement_worker = worker
    yield worker
    # Kalan işleri bitir ki işaretler sonraki testlerin worker'ına devretmesin
    worker.clock.advance(days=1)
    worker.drain(timeout=5)
    worker.stop()


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()
