"""HTTP binding: form/JSON parameter shaping and error bodies."""

import pytest
from fastapi.testclient import TestClient

from mockpay.common.errors import InvalidRequest
from mockpay.server.main import app
from mockpay.server.params import unflatten


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        test_client.post("/_mock/reset")
        yield test_client


def _token(client, number="4242424242424242"):
    resp = client.post("/v1/tokens", data={"card[number]": number, "card[exp_month]": "4", "card[exp_year]": "2032"})
    assert resp.status_code == 200
    return resp.json()["id"]


def test_unflatten_bracket_notation():
    params = unflatten(
        [
            ("amount", "100"),
            ("expand[]", "balance_transaction"),
            ("expand[]", "customer"),
            ("card[number]", "4242424242424242"),
            ("metadata[order]", "6735"),
        ]
    )

    assert params == {
        "amount": "100",
        "expand": ["balance_transaction", "customer"],
        "card": {"number": "4242424242424242"},
        "metadata": {"order": "6735"},
    }


def test_unflatten_rejects_plain_and_bracketed_key():
    with pytest.raises(InvalidRequest, match="expand") as excinfo:
        unflatten([("expand", "customer"), ("expand[]", "balance_transaction")])

    assert excinfo.value.param == "expand"


def test_token_card_must_be_an_object(client):
    resp = client.post("/v1/tokens", data={"card": "abc"})

    assert resp.status_code == 400
    assert resp.json()["error"] == {"type": "invalid_request_error", "message": "Invalid object", "param": "card"}


def test_conflicting_form_keys_are_400(client):
    resp = client.post(
        "/v1/charges",
        content=b"amount=100&card=x&card%5Bnumber%5D=4242424242424242",
        headers={"content-type": "application/x-www-form-urlencoded"},
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["param"] == "card"


def test_malformed_json_body_is_400(client):
    resp = client.post("/v1/charges", content=b"{not json", headers={"content-type": "application/json"})

    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Invalid JSON body."


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_create_and_retrieve_charge_form_encoded(client):
    token = _token(client)
    resp = client.post(
        "/v1/charges",
        data={"amount": "999", "currency": "USD", "source": token, "expand[]": "balance_transaction"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"].startswith("test_ch_")
    assert body["currency"] == "usd"
    assert body["balance_transaction"]["fee"] == 20
    assert resp.headers["request-id"].startswith("req_")

    fetched = client.get(f"/v1/charges/{body['id']}").json()
    assert fetched["amount"] == 999
    assert fetched["balance_transaction"] == body["balance_transaction"]["id"]


def test_create_charge_json_body(client):
    token = _token(client)
    resp = client.post("/v1/charges", json={"amount": 500, "currency": "usd", "source": token, "capture": False})

    assert resp.status_code == 200
    assert resp.json()["captured"] is False


def test_validation_error_body(client):
    resp = client.post("/v1/charges", data={"amount": "99.0", "currency": "usd", "source": _token(client)})

    assert resp.status_code == 400
    assert resp.json() == {
        "error": {"type": "invalid_request_error", "message": "Invalid integer: 99.0", "param": "amount"}
    }


def test_missing_charge_is_404(client):
    resp = client.get("/v1/charges/nope")

    assert resp.status_code == 404
    assert resp.json()["error"]["param"] == "charge"


def test_capture_over_http(client):
    token = _token(client)
    charge = client.post(
        "/v1/charges", data={"amount": "777", "currency": "usd", "source": token, "capture": "false"}
    ).json()

    resp = client.post(f"/v1/charges/{charge['id']}/capture", data={"amount": "677"})
    assert resp.status_code == 200
    assert resp.json()["captured"] is True
    assert resp.json()["amount_refunded"] == 100

    again = client.post(f"/v1/charges/{charge['id']}/capture")
    assert again.status_code == 400


def test_customer_flow_and_scoped_listing(client):
    customer = client.post(
        "/v1/customers", data={"email": "johnny@appleseed.com", "source": _token(client, "4012888888881881")}
    ).json()
    assert customer["sources"]["data"][0]["last4"] == "1881"

    mine = client.post("/v1/charges", data={"amount": "1", "currency": "usd", "customer": customer["id"]}).json()
    client.post("/v1/charges", data={"amount": "1", "currency": "usd", "source": _token(client)})

    scoped = client.get("/v1/charges", params={"customer": customer["id"]}).json()
    assert [c["id"] for c in scoped["data"]] == [mine["id"]]

    everything = client.get("/v1/charges", params={"limit": "1"}).json()
    assert len(everything["data"]) == 1
    assert everything["has_more"] is True


def test_attach_source_over_http(client):
    customer = client.post("/v1/customers", data={"email": "x@example.com"}).json()
    resp = client.post(f"/v1/customers/{customer['id']}/sources", data={"source": _token(client)})

    assert resp.status_code == 200
    assert resp.json()["customer"] == customer["id"]
    fetched = client.get(f"/v1/customers/{customer['id']}").json()
    assert fetched["default_source"] == resp.json()["id"]


def test_retrieve_balance_transaction(client):
    charge = client.post("/v1/charges", data={"amount": "300", "currency": "usd", "source": _token(client)}).json()
    txn = client.get(f"/v1/balance_transactions/{charge['balance_transaction']}").json()

    assert txn["source"] == charge["id"]
    assert txn["net"] == 280


def test_metrics_endpoint(client):
    client.get("/health")
    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "mock_http_requests_total" in resp.text
