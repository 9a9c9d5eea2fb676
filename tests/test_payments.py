"""Payments: create (merchant + public checkout), validation errors, polling, end-to-end settlement."""
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from gateway.core.database import engine
from gateway.models import Order, Payment, PendingSettlement

FUTURE_CARD = {"number": "4111111111111111", "expiry_month": "12", "expiry_year": "2099", "cvv": "123"}


def _payments_for_order(order_id: str) -> list[Payment]:
    with Session(engine) as db:
        return list(db.exec(select(Payment).where(Payment.order_id == order_id)).all())


def _order_status(order_id: str) -> str:
    with Session(engine) as db:
        return db.get(Order, order_id).status


def test_upi_payment_end_to_end(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order(amount=500, currency="INR")
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "user@bank"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    pay = r.json()
    assert pay["id"].startswith("pay_")
    assert pay["status"] == "processing"
    assert pay["amount"] == 500
    assert pay["currency"] == "INR"
    assert pay["method"] == "upi"
    assert pay["vpa"] == "user@bank"
    assert "card_network" not in pay

    r = client.get(f"/api/v1/payments/{pay['id']}")
    assert r.status_code == 200
    assert r.json()["status"] == "processing"
    assert _order_status(order["id"]) == "created"

    settlement.clock.advance(seconds=5)
    assert settlement.drain(timeout=5)

    r = client.get(f"/api/v1/payments/{pay['id']}")
    j = r.json()
    assert j["status"] == "success"
    assert j["error_code"] is None
    assert j["error_description"] is None
    assert _order_status(order["id"]) == "paid"


def test_payment_not_settled_before_delay(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "user@bank"},
        headers=auth_headers,
    )
    pay_id = r.json()["id"]
    settlement.clock.advance(seconds=4)
    assert settlement.drain(timeout=0.2) is False
    assert client.get(f"/api/v1/payments/{pay_id}").json()["status"] == "processing"


def test_failed_settlement_leaves_order_created(client: TestClient, auth_headers: dict, make_order, settlement):
    settlement.policy.forced_outcome = False
    order = make_order(amount=900)
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "card", "card": FUTURE_CARD},
        headers=auth_headers,
    )
    assert r.status_code == 201
    pay_id = r.json()["id"]

    settlement.clock.advance(seconds=5)
    assert settlement.drain(timeout=5)

    j = client.get(f"/api/v1/payments/{pay_id}").json()
    assert j["status"] == "failed"
    assert j["error_code"] == "PAYMENT_FAILED"
    assert j["error_description"] == "Payment processing failed due to bank rejection"
    assert _order_status(order["id"]) == "created"


def test_card_payment_records_network_and_last4(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order(amount=2500)
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "card", "card": {**FUTURE_CARD, "number": "5500 0000 0000 0004"}},
        headers=auth_headers,
    )
    assert r.status_code == 201
    j = r.json()
    assert j["card_network"] == "mastercard"
    assert j["card_last4"] == "0004"
    assert "vpa" not in j
    assert {"number", "cvv", "card", "expiry_month", "expiry_year"}.isdisjoint(j)


def test_amount_cannot_be_spoofed(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order(amount=500)
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "user@bank", "amount": 1, "currency": "USD"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    assert r.json()["amount"] == 500
    assert r.json()["currency"] == "INR"
    stored = _payments_for_order(order["id"])
    assert [p.amount for p in stored] == [500]


def test_expired_card_creates_no_payment(client: TestClient, auth_headers: dict, make_order):
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={
            "order_id": order["id"],
            "method": "card",
            "card": {"number": "4111111111111111", "expiry_month": "01", "expiry_year": "2020", "cvv": "123"},
        },
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json() == {"error": {"code": "EXPIRED_CARD", "description": "Card expiry date invalid"}}
    assert _payments_for_order(order["id"]) == []


def test_invalid_luhn_rejected(client: TestClient, auth_headers: dict, make_order):
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "card", "card": {**FUTURE_CARD, "number": "4111111111111112"}},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json() == {"error": {"code": "INVALID_CARD", "description": "Card validation failed"}}
    assert _payments_for_order(order["id"]) == []


def test_card_payload_missing(client: TestClient, auth_headers: dict, make_order):
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "card"},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_CARD"


def test_invalid_vpa_rejected(client: TestClient, auth_headers: dict, make_order):
    order = make_order()
    for body in (
        {"order_id": order["id"], "method": "upi", "vpa": "not-a-vpa"},
        {"order_id": order["id"], "method": "upi"},
        {"order_id": order["id"], "method": "upi", "vpa": "  user@bank  "},
    ):
        r = client.post("/api/v1/payments", json=body, headers=auth_headers)
        assert r.status_code == 400
        assert r.json() == {"error": {"code": "INVALID_VPA", "description": "VPA format invalid"}}
    assert _payments_for_order(order["id"]) == []


def test_unknown_method_rejected(client: TestClient, auth_headers: dict, make_order):
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "netbanking"},
        headers=auth_headers,
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_PAYMENT_METHOD"
    assert _payments_for_order(order["id"]) == []


def test_nonexistent_order(client: TestClient, auth_headers: dict):
    r = client.post(
        "/api/v1/payments",
        json={"order_id": "order_missing000000000", "method": "upi", "vpa": "user@bank"},
        headers=auth_headers,
    )
    assert r.status_code == 404
    assert r.json() == {"error": {"code": "NOT_FOUND_ERROR", "description": "Order not found"}}
    assert _payments_for_order("order_missing000000000") == []


def test_order_of_other_merchant_not_found(client: TestClient, other_merchant_headers: dict, auth_headers: dict, make_order):
    order = make_order(headers=other_merchant_headers)
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "user@bank"},
        headers=auth_headers,
    )
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND_ERROR"


def test_create_payment_requires_credentials(client: TestClient, make_order):
    order = make_order()
    r = client.post("/api/v1/payments", json={"order_id": order["id"], "method": "upi", "vpa": "user@bank"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "AUTHENTICATION_ERROR"


def test_missing_order_id_is_bad_request(client: TestClient, auth_headers: dict):
    r = client.post("/api/v1/payments", json={"method": "upi", "vpa": "user@bank"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": {"code": "BAD_REQUEST_ERROR", "description": "order_id is required"}}


def test_public_checkout_matches_merchant_payment(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order(amount=4200)
    r = client.post(
        "/api/v1/payments/public",
        json={"order_id": order["id"], "method": "upi", "vpa": "buyer@okaxis"},
    )
    assert r.status_code == 201
    pay = r.json()
    assert pay["status"] == "processing"
    assert pay["amount"] == 4200

    stored = _payments_for_order(order["id"])
    assert len(stored) == 1
    assert stored[0].merchant_id == order["merchant_id"]

    settlement.clock.advance(seconds=5)
    assert settlement.drain(timeout=5)
    assert client.get(f"/api/v1/payments/{pay['id']}").json()["status"] == "success"
    assert _order_status(order["id"]) == "paid"


def test_public_checkout_validates_like_merchant_endpoint(client: TestClient, make_order):
    order = make_order()
    r = client.post(
        "/api/v1/payments/public",
        json={"order_id": order["id"], "method": "card", "card": {**FUTURE_CARD, "expiry_year": "2001"}},
    )
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "EXPIRED_CARD"

    r = client.post("/api/v1/payments/public", json={"order_id": "order_nope", "method": "upi", "vpa": "a@b"})
    assert r.status_code == 404


def test_paid_order_rejects_new_payment(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order()
    body = {"order_id": order["id"], "method": "upi", "vpa": "user@bank"}
    client.post("/api/v1/payments", json=body, headers=auth_headers)
    settlement.clock.advance(seconds=5)
    assert settlement.drain(timeout=5)

    r = client.post("/api/v1/payments", json=body, headers=auth_headers)
    assert r.status_code == 400
    assert r.json() == {"error": {"code": "BAD_REQUEST_ERROR", "description": "Order already paid"}}


def test_payment_is_persisted_with_pending_marker(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "user@bank"},
        headers=auth_headers,
    )
    pay_id = r.json()["id"]
    with Session(engine) as db:
        marker = db.get(PendingSettlement, pay_id)
        assert marker is not None
        assert marker.method == "upi"
    assert settlement.is_scheduled(pay_id)

    settlement.clock.advance(seconds=5)
    assert settlement.drain(timeout=5)
    with Session(engine) as db:
        assert db.get(PendingSettlement, pay_id) is None


def test_default_worker_settles_in_test_mode(client: TestClient, auth_headers: dict, make_order):
    """TEST_MODE: gecikme 0, sonuç başarılı (conftest ortam değişkenleri)."""
    order = make_order()
    r = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "user@bank"},
        headers=auth_headers,
    )
    assert r.status_code == 201
    assert r.json()["status"] == "processing"
    assert client.app.state.settlement_worker.drain(timeout=10)
    assert client.get(f"/api/v1/payments/{r.json()['id']}").json()["status"] == "success"


def test_get_payment_not_found(client: TestClient):
    r = client.get("/api/v1/payments/pay_doesnotexist0000")
    assert r.status_code == 404
    assert r.json() == {"error": {"code": "NOT_FOUND_ERROR", "description": "Payment not found"}}


def test_merchant_payment_list(client: TestClient, auth_headers: dict, other_merchant_headers: dict, make_order, settlement):
    order = make_order()
    first = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "first@bank"},
        headers=auth_headers,
    ).json()
    settlement.clock.advance(seconds=1)
    second = client.post(
        "/api/v1/payments",
        json={"order_id": order["id"], "method": "upi", "vpa": "second@bank"},
        headers=auth_headers,
    ).json()

    r = client.get("/api/v1/payments/merchant", headers=auth_headers)
    assert r.status_code == 200
    ids = [p["id"] for p in r.json()]
    assert ids.index(second["id"]) < ids.index(first["id"])

    r = client.get("/api/v1/payments/merchant", headers=other_merchant_headers)
    assert r.status_code == 200
    assert r.json() == []


def test_merchant_payment_list_requires_credentials(client: TestClient):
    r = client.get("/api/v1/payments/merchant")
    assert r.status_code == 401


def test_only_one_payment_per_order_succeeds(client: TestClient, auth_headers: dict, make_order, settlement):
    order = make_order(amount=800)
    ids = []
    for vpa in ("first@bank", "second@bank"):
        r = client.post(
            "/api/v1/payments",
            json={"order_id": order["id"], "method": "upi", "vpa": vpa},
            headers=auth_headers,
        )
        assert r.status_code == 201
        ids.append(r.json()["id"])

    settlement.clock.advance(seconds=5)
    assert settlement.drain(timeout=5)

    results = [client.get(f"/api/v1/payments/{pay_id}").json() for pay_id in ids]
    assert sorted(p["status"] for p in results) == ["failed", "success"]
    loser = next(p for p in results if p["status"] == "failed")
    assert loser["error_code"] == "PAYMENT_FAILED"
    assert loser["error_description"] == "Order already paid"
    assert _order_status(order["id"]) == "paid"
