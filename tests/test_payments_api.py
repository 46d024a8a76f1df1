from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.routes.payments import get_gateway, is_ip_allowed
from application.dtos.payments import Outcome, OutcomeKind, PaymentHandle
from core.settings import WebhookSettings, payment_settings
from domain.common.exceptions import DomainValidationException
from main import app


class StubGateway:
    provider = "yookassa"

    def __init__(self):
        self.calls = []
        self.url = "https://yoomoney.ru/checkout/pay-1"
        self.webhook_result = True

    async def purchase(self, amount, currency, options=None):
        self.calls.append(("purchase", amount, currency, options))
        if amount > Decimal("100000"):
            raise DomainValidationException("amount too large", field="amount")
        return PaymentHandle(transaction_id="pay-1", status="pending", confirmation_url=self.url, ledger_id=1)

    async def complete(self, transaction_id, data=None):
        self.calls.append(("complete", transaction_id))
        return True

    async def get_status(self, transaction_id):
        self.calls.append(("get_status", transaction_id))
        return "waiting_for_capture"

    async def check_payment(self, transaction_id):
        return Outcome(kind=OutcomeKind.PENDING, status="pending")

    async def refund(self, transaction_id, amount):
        return True

    async def refund_payment(self, transaction_id, amount):
        self.calls.append(("refund", transaction_id, amount))
        return Outcome(kind=OutcomeKind.SUCCEEDED, status="succeeded")

    async def get_payment_url(self, transaction_id):
        return self.url

    async def validate_webhook(self, payload):
        self.calls.append(("webhook", payload))
        return self.webhook_result

    async def resolve_return_token(self, token):
        self.calls.append(("resolve", token))
        return "pay-1" if token == "tok-1" else ""


@pytest.fixture
def stub():
    gw = StubGateway()
    app.dependency_overrides[get_gateway] = lambda: gw
    yield gw
    app.dependency_overrides.clear()


@pytest.fixture
def client(stub):
    return TestClient(app)


def test_purchase_route(client, stub):
    resp = client.post("/api/v1/payments", json={"amount": "150.00", "currency": "rub", "order_id": "ord-1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    assert body["data"]["transaction_id"] == "pay-1"
    assert body["data"]["confirmation_url"] == stub.url
    _, amount, currency, options = stub.calls[0]
    assert amount == Decimal("150.00")
    assert currency == "RUB"
    assert options.order_id == "ord-1"
    assert "X-Request-ID" in resp.headers


def test_purchase_route_validation_error(client):
    resp = client.post("/api/v1/payments", json={"amount": "500000", "currency": "RUB"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"]["type"] == "DomainValidationError"
    assert body["error"]["field"] == "amount"


def test_purchase_route_rejects_unknown_currency(client, stub):
    resp = client.post("/api/v1/payments", json={"amount": "10", "currency": "XYZ"})
    assert resp.status_code == 422
    assert stub.calls == []


def test_status_route(client):
    resp = client.get("/api/v1/payments/pay-1/status")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"payment_id": "pay-1", "status": "waiting_for_capture"}


def test_callback_route_completes_payment(client, stub):
    resp = client.get("/api/v1/payments/callback", params={"ref": "tok-1"})
    assert resp.status_code == 200
    assert resp.json()["data"] == {"payment_id": "pay-1", "completed": True}
    assert stub.calls == [("resolve", "tok-1"), ("complete", "pay-1")]


def test_callback_route_unknown_reference(client, stub):
    resp = client.get("/api/v1/payments/callback", params={"ref": "tok-x"})
    assert resp.status_code == 404
    assert stub.calls == [("resolve", "tok-x")]


def test_unknown_route_uses_not_found_code(client):
    resp = client.get("/api/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.json()["code"] == 20006


def test_outcome_route(client):
    resp = client.get("/api/v1/payments/pay-1/outcome")
    assert resp.json()["data"]["kind"] == "pending"


def test_refund_route(client, stub):
    resp = client.post("/api/v1/payments/pay-1/refunds", json={"amount": "25.50"})
    assert resp.status_code == 200
    assert resp.json()["data"]["refunded"] is True
    assert stub.calls == [("refund", "pay-1", Decimal("25.50"))]


def test_payment_url_route_not_found(client, stub):
    stub.url = ""
    resp = client.get("/api/v1/payments/pay-404/url")
    assert resp.status_code == 404
    assert resp.json()["error"]["type"] == "TransactionNotFound"


def test_webhook_route_accepts_notification(client, stub):
    payload = {"type": "notification", "event": "payment.succeeded", "object": {"id": "pay-1"}}
    resp = client.post("/api/v1/payments/webhooks/yookassa", json=payload)

    assert resp.status_code == 200
    assert resp.json()["data"] == {"accepted": True}
    assert stub.calls == [("webhook", payload)]


def test_webhook_route_rejects_invalid_payload(client, stub):
    stub.webhook_result = False
    resp = client.post(
        "/api/v1/payments/webhooks/yookassa",
        content=b"not json",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "WebhookPayloadError"
    assert stub.calls == [("webhook", None)]


def test_webhook_route_enforces_ip_allowlist(client, stub, monkeypatch):
    monkeypatch.setattr(payment_settings, "webhook", WebhookSettings(ip_allowlist=["185.71.76.0/27"]))

    resp = client.post("/api/v1/payments/webhooks/yookassa", json={"event": "payment.succeeded", "object": {"id": "x"}})

    assert resp.status_code == 403
    assert stub.calls == []


def test_gateway_config_route(client):
    resp = client.get("/api/v1/payments/gateway/config")
    assert set(resp.json()["data"]) == {"shop_id", "secret_token"}


@pytest.mark.parametrize(
    "ip,allowed",
    [
        ("185.71.76.5", True),
        ("77.75.156.11", True),
        ("2a02:5180::1", True),
        ("8.8.8.8", False),
        ("testclient", False),
    ],
)
def test_is_ip_allowed(ip, allowed):
    allowlist = ["185.71.76.0/27", "77.75.156.11", "2a02:5180::/32", "not-an-ip"]
    assert is_ip_allowed(ip, allowlist) is allowed
