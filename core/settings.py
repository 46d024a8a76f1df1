"""
Payment-related settings using pydantic-settings v2 with nested env keys.

YooKassa credentials are read from ``YOOKASSA__SHOP_ID`` and
``YOOKASSA__SECRET_TOKEN``. Both are required by the gateway, there are no
defaults; the check happens when the gateway is constructed so that the rest
of the app can boot without them.
"""
from __future__ import annotations

from typing import Any, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class WebhookSettings(BaseModel):
    # Optional IPs/CIDRs allowed to post webhooks. YooKassa authenticates
    # notifications by source address only, so this is off until configured.
    ip_allowlist: list[str] | None = None


class YookassaSettings(BaseModel):
    shop_id: Optional[str] = None
    secret_token: Optional[str] = None
    gateway_name: str = "yookassa"
    default_return_url: str = "http://localhost:8000/api/v1/payments/callback"
    # Refunds are always issued in this currency
    settlement_currency: str = "RUB"


class PaymentSettings(BaseSettings):
    default_provider: str = Field(default="yookassa", validation_alias="PAYMENT__DEFAULT_PROVIDER")
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    yookassa: YookassaSettings = Field(default_factory=YookassaSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()


# Admin-facing descriptor of the gateway settings
GATEWAY_CONFIG_FIELDS: dict[str, dict[str, Any]] = {
    "shop_id": {
        "type": "text",
        "required": True,
        "secret": False,
        "description": "Shop ID",
    },
    "secret_token": {
        "type": "text",
        "required": True,
        "secret": True,
        "description": "Secret key",
    },
}


def describe_gateway_config(cfg: YookassaSettings | None = None) -> dict[str, dict[str, Any]]:
    """Return the config descriptor with current values, secrets masked."""
    cfg = cfg or payment_settings.yookassa
    described: dict[str, dict[str, Any]] = {}
    for name, meta in GATEWAY_CONFIG_FIELDS.items():
        value = getattr(cfg, name, None)
        if value and meta["secret"]:
            value = "*" * 8
        described[name] = {**meta, "value": value}
    return described
