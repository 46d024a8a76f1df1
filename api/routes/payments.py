"""
Payments API routes.

Thin HTTP layer over the gateway adapter: purchase, confirmation callback,
status, refund, payment URL lookup and webhook intake. No SDK details here.
"""
from __future__ import annotations

import ipaddress
import json
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from application.dtos.payments import PurchaseRequest, RefundBody
from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentService
from core.logging_config import get_logger
from core.response import success_response
from core.settings import describe_gateway_config, payment_settings
from domain.common.exceptions import TransactionNotFoundException
from infrastructure.external.payments import get_payment_processor
from infrastructure.external.payments.exceptions import PaymentSignatureError, WebhookPayloadError
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


def get_gateway() -> PaymentGateway:
    return PaymentService(
        processor=get_payment_processor(),
        uow_factory=SQLAlchemyUnitOfWork,
        config=payment_settings.yookassa,
    )


def is_ip_allowed(remote_ip: str, allowlist: list[str]) -> bool:
    """Match an address against plain IPs and CIDR blocks."""
    try:
        rip = ipaddress.ip_address(remote_ip)
    except ValueError:
        return False
    for entry in allowlist:
        try:
            if "/" in entry:
                if rip in ipaddress.ip_network(entry, strict=False):
                    return True
            elif rip == ipaddress.ip_address(entry):
                return True
        except ValueError:
            logger.warning("webhook_allowlist_entry_invalid", entry=entry)
            continue
    return False


@router.post("", summary="Start a payment")
async def purchase(payload: PurchaseRequest, gateway: PaymentGateway = Depends(get_gateway)):
    handle = await gateway.purchase(payload.amount, payload.currency, payload.options())
    return success_response(data=handle.model_dump(mode="json"), message="Payment created")


@router.get("/callback", summary="Default return target after the hosted payment page")
async def payment_callback(ref: str = Query(..., min_length=1), gateway: PaymentGateway = Depends(get_gateway)):
    payment_id = await gateway.resolve_return_token(ref)
    if not payment_id:
        raise TransactionNotFoundException(ref)
    completed = await gateway.complete(payment_id)
    return success_response(data={"payment_id": payment_id, "completed": completed}, message="Payment confirmation checked")


@router.api_route("/{payment_id}/complete", methods=["GET", "POST"], summary="Confirm a payment")
async def complete_payment(payment_id: str, gateway: PaymentGateway = Depends(get_gateway)):
    completed = await gateway.complete(payment_id)
    return success_response(data={"payment_id": payment_id, "completed": completed}, message="Payment confirmation checked")


@router.get("/{payment_id}/status", summary="Query payment status")
async def payment_status(payment_id: str, gateway: PaymentGateway = Depends(get_gateway)):
    status = await gateway.get_status(payment_id)
    return success_response(data={"payment_id": payment_id, "status": status}, message="Payment status")


@router.get("/{payment_id}/outcome", summary="Query payment outcome")
async def payment_outcome(payment_id: str, gateway: PaymentGateway = Depends(get_gateway)):
    outcome = await gateway.check_payment(payment_id)
    return success_response(data=outcome.model_dump(mode="json"), message="Payment outcome")


@router.post("/{payment_id}/refunds", summary="Refund a payment")
async def refund_payment(payment_id: str, payload: RefundBody, gateway: PaymentGateway = Depends(get_gateway)):
    outcome = await gateway.refund_payment(payment_id, payload.amount)
    return success_response(
        data={"payment_id": payment_id, "refunded": outcome.succeeded, "outcome": outcome.model_dump(mode="json")},
        message="Refund requested",
    )


@router.get("/{payment_id}/url", summary="Confirmation URL of an existing payment")
async def payment_url(payment_id: str, gateway: PaymentGateway = Depends(get_gateway)):
    url = await gateway.get_payment_url(payment_id)
    if not url:
        raise TransactionNotFoundException(payment_id)
    return success_response(data={"payment_id": payment_id, "url": url}, message="Payment URL")


@router.get("/gateway/config", summary="Gateway settings descriptor")
async def gateway_config():
    return success_response(data=describe_gateway_config(), message="Gateway configuration")


@router.post("/webhooks/yookassa", summary="YooKassa notifications")
async def yookassa_webhook(request: Request, gateway: PaymentGateway = Depends(get_gateway)):
    # YooKassa notifications carry no signature; the source IP is the only check available
    allowlist = payment_settings.webhook.ip_allowlist or []
    if allowlist:
        remote_ip = request.client.host if request.client else ""
        if not is_ip_allowed(remote_ip, allowlist):
            logger.warning("webhook_ip_rejected", remote_ip=remote_ip)
            raise PaymentSignatureError("Webhook source not allowed", provider=gateway.provider, details={"remote_ip": remote_ip})

    raw_body = await request.body()
    try:
        payload: Any = json.loads(raw_body or b"{}")
    except ValueError:
        payload = None

    if not await gateway.validate_webhook(payload):
        raise WebhookPayloadError("Invalid webhook payload", provider=gateway.provider)
    return success_response(data={"accepted": True}, message="Webhook received")
