"""
Factory for payment processor clients.
"""
from __future__ import annotations

from typing import Optional

from core.settings import payment_settings
from application.ports.payment_gateway import PaymentProcessor


def get_payment_processor(provider: Optional[str] = None) -> PaymentProcessor:
    name = (provider or payment_settings.default_provider).lower()
    if name in {"yookassa", "yoomoney", "yoo"}:
        from .yookassa_client import YookassaClient
        cfg = payment_settings.yookassa
        return YookassaClient(cfg.shop_id, cfg.secret_token)
    raise ValueError(f"Unsupported payment provider: {name}")
