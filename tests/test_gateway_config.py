import pytest

import infrastructure.external.payments.yookassa_client as client_mod
from application.services.payment_service import PaymentService
from core.settings import YookassaSettings, describe_gateway_config, payment_settings
from infrastructure.external.payments import get_payment_processor
from infrastructure.external.payments.yookassa_client import YookassaClient


@pytest.mark.parametrize(
    "cfg",
    [
        YookassaSettings(shop_id=None, secret_token="secret"),
        YookassaSettings(shop_id="123456", secret_token=None),
        YookassaSettings(),
    ],
)
def test_service_requires_credentials(cfg):
    with pytest.raises(RuntimeError):
        PaymentService(processor=object(), uow_factory=object, config=cfg)


def test_missing_credentials_message_names_env_vars():
    with pytest.raises(RuntimeError, match="YOOKASSA__SECRET_TOKEN"):
        PaymentService(processor=object(), uow_factory=object, config=YookassaSettings(shop_id="123456"))


def test_describe_gateway_config_masks_secret():
    described = describe_gateway_config(YookassaSettings(shop_id="123456", secret_token="live_abc"))

    assert described["shop_id"]["value"] == "123456"
    assert described["shop_id"]["required"] is True
    assert described["shop_id"]["type"] == "text"
    assert described["secret_token"]["value"] == "********"
    assert described["secret_token"]["required"] is True


def test_describe_gateway_config_unset_values():
    described = describe_gateway_config(YookassaSettings())
    assert described["secret_token"]["value"] is None


def test_factory_rejects_unknown_provider():
    with pytest.raises(ValueError):
        get_payment_processor("stripe")


@pytest.mark.parametrize("name", ["YooKassa", "yoomoney", "yoo"])
def test_factory_builds_yookassa_client(monkeypatch, name):
    class _Configuration:
        @staticmethod
        def configure(account_id, secret_key):
            pass

    monkeypatch.setattr(client_mod, "Configuration", _Configuration)
    monkeypatch.setattr(payment_settings, "yookassa", YookassaSettings(shop_id="123456", secret_token="secret"))

    processor = get_payment_processor(name)
    assert isinstance(processor, YookassaClient)
    assert processor.provider == "yookassa"


def test_factory_fails_without_credentials(monkeypatch):
    monkeypatch.setattr(payment_settings, "yookassa", YookassaSettings())
    with pytest.raises(RuntimeError, match="YOOKASSA__SHOP_ID"):
        get_payment_processor()
