# tests/test_sdk.py
import pytest

from sdk.billing_client import BillingClient


def test_client_sends_no_credentials():
    client = BillingClient(base_url="http://127.0.0.1:8085/")
    assert client.base_url == "http://127.0.0.1:8085"
    assert "Authorization" not in client.session.headers
    with pytest.raises(TypeError):
        BillingClient(api_key="secret")
