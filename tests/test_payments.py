import razorpay
import requests
from sqlmodel import Session, select

from storefront.database import engine
from storefront.main import app
from storefront.models.order import Order
from storefront.models.user_book import UserBook
from storefront.services.payment_gateway import RazorpayGateway, get_payment_gateway
from tests.conftest import add_book, register, sign


def _checkout(client, headers, book_id):
    res = client.post("/payments/create-order", json={"itemId": book_id}, headers=headers)
    assert res.status_code == 200, res.text
    return res.json()


def _verify(client, headers, book_id, gateway_order_id, payment_id="pay_test0001", signature=None):
    return client.post(
        "/payments/verify",
        json={
            "itemId": book_id,
            "gatewayOrderId": gateway_order_id,
            "gatewayPaymentId": payment_id,
            "signature": signature if signature is not None else sign(gateway_order_id, payment_id),
        },
        headers=headers,
    )


def _stored_order(gateway_order_id):
    with Session(engine) as session:
        return session.exec(select(Order).where(Order.gateway_order_id == gateway_order_id)).one()


def _grants(user_id, book_id):
    with Session(engine) as session:
        return session.exec(
            select(UserBook).where(UserBook.user_id == user_id).where(UserBook.book_id == book_id)
        ).all()


def test_create_order_charges_catalog_price_in_minor_units(client, user_headers, book_id, gateway_calls):
    body = _checkout(client, user_headers, book_id)

    assert body["amount"] == 50000
    assert body["currency"] == "INR"
    assert body["gatewayOrderId"].startswith("order_test")
    assert body["keyId"] == "rzp_test_key"
    assert body["item"] == {"id": book_id, "title": "Deep Work"}

    assert gateway_calls[0]["data"]["amount"] == 50000
    assert gateway_calls[0]["kwargs"]["timeout"] == 3

    order = _stored_order(body["gatewayOrderId"])
    assert order.id == body["orderId"]
    assert order.status == "created"
    assert order.amount == 50000
    assert order.gateway_payment_id is None


def test_create_order_ignores_forged_amount(client, user_headers, book_id, gateway_calls):
    res = client.post(
        "/payments/create-order",
        json={"itemId": book_id, "amount": 1, "price": 1},
        headers=user_headers,
    )

    assert res.status_code == 200
    assert gateway_calls[0]["data"]["amount"] == 50000
    assert _stored_order(res.json()["gatewayOrderId"]).amount == 50000


def test_create_order_freezes_amount_against_later_price_change(client, user_headers, admin_headers, book_id):
    body = _checkout(client, user_headers, book_id)
    client.put(f"/books/{book_id}", data={"price": "900"}, headers=admin_headers)

    assert _stored_order(body["gatewayOrderId"]).amount == 50000

    res = _verify(client, user_headers, book_id, body["gatewayOrderId"])
    assert res.json()["order"]["amount"] == 50000


def test_create_order_requires_auth(client, book_id):
    res = client.post("/payments/create-order", json={"itemId": book_id})

    assert res.status_code == 401


def test_create_order_for_missing_item(client, user_headers, gateway_calls):
    res = client.post("/payments/create-order", json={"itemId": 4242}, headers=user_headers)

    assert res.status_code == 404
    assert res.json() == {"message": "Book not found"}
    assert gateway_calls == []


def test_create_order_requires_item_id(client, user_headers):
    res = client.post("/payments/create-order", json={}, headers=user_headers)

    assert res.status_code == 400


def test_free_book_cannot_be_checked_out(client, user_headers, storage):
    free_id = add_book(storage, title="Free Sample", price=0)

    res = client.post("/payments/create-order", json={"itemId": free_id}, headers=user_headers)

    assert res.status_code == 400


def test_missing_gateway_keys_is_configuration_error(client, user_headers, book_id):
    app.dependency_overrides[get_payment_gateway] = lambda: RazorpayGateway("your_key_id", "your_key_secret")

    res = client.post("/payments/create-order", json={"itemId": book_id}, headers=user_headers)

    assert res.status_code == 500
    assert "Razorpay keys" in res.json()["message"]


def test_gateway_auth_failure_is_configuration_error(client, user_headers, book_id, gateway, monkeypatch):
    def reject(data=None, **kwargs):
        raise razorpay.errors.BadRequestError("Authentication failed")

    monkeypatch.setattr(gateway.client.order, "create", reject)

    res = client.post("/payments/create-order", json={"itemId": book_id}, headers=user_headers)

    assert res.status_code == 500
    assert "authentication failed" in res.json()["message"].lower()


def test_gateway_timeout_is_temporarily_unavailable(client, user_headers, book_id, gateway, monkeypatch):
    def hang(data=None, **kwargs):
        raise requests.exceptions.Timeout("read timed out")

    monkeypatch.setattr(gateway.client.order, "create", hang)

    res = client.post("/payments/create-order", json={"itemId": book_id}, headers=user_headers)

    assert res.status_code == 503
    assert res.json() == {"message": "Payment gateway unavailable. Please try again later."}
    with Session(engine) as session:
        assert session.exec(select(Order)).all() == []


def test_verify_grants_access(client, book_id):
    headers, user = register(client)
    body = _checkout(client, headers, book_id)

    res = _verify(client, headers, book_id, body["gatewayOrderId"], payment_id="pay_ABC123")

    assert res.status_code == 200
    assert res.json()["message"] == "Payment verified"
    order = res.json()["order"]
    assert order["status"] == "success"
    assert order["gatewayPaymentId"] == "pay_ABC123"

    me = client.get("/auth/me", headers=headers).json()["user"]
    assert me["purchasedBooks"] == [book_id]
    assert len(_grants(user["id"], book_id)) == 1


def test_altered_signature_fails_and_marks_order_failed(client, book_id):
    headers, user = register(client)
    body = _checkout(client, headers, book_id)
    good = sign(body["gatewayOrderId"], "pay_ABC123")
    altered = good[:-1] + ("0" if good[-1] != "0" else "1")

    res = _verify(client, headers, book_id, body["gatewayOrderId"], payment_id="pay_ABC123", signature=altered)

    assert res.status_code == 400
    assert res.json() == {"message": "Payment verification failed"}
    assert _stored_order(body["gatewayOrderId"]).status == "failed"
    assert _grants(user["id"], book_id) == []


def test_signature_with_wrong_secret_never_grants(client, book_id):
    headers, user = register(client)
    body = _checkout(client, headers, book_id)

    for forged in [
        sign(body["gatewayOrderId"], "pay_1", secret="not-the-secret"),
        sign("order_other", "pay_1"),
        "",
        "zz" * 32,
        "ünïcode",
    ]:
        res = _verify(client, headers, book_id, body["gatewayOrderId"], payment_id="pay_1", signature=forged)
        assert res.status_code == 400

    assert _grants(user["id"], book_id) == []
    assert _stored_order(body["gatewayOrderId"]).status == "failed"


def test_valid_signature_after_failure_does_not_revive_order(client, book_id):
    headers, user = register(client)
    body = _checkout(client, headers, book_id)
    _verify(client, headers, book_id, body["gatewayOrderId"], signature="deadbeef")

    res = _verify(client, headers, book_id, body["gatewayOrderId"])

    assert res.status_code == 409
    assert _stored_order(body["gatewayOrderId"]).status == "failed"
    assert _grants(user["id"], book_id) == []


def test_verify_is_idempotent(client, book_id):
    headers, user = register(client)
    body = _checkout(client, headers, book_id)

    first = _verify(client, headers, book_id, body["gatewayOrderId"])
    second = _verify(client, headers, book_id, body["gatewayOrderId"])

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["order"] == second.json()["order"]
    assert len(_grants(user["id"], book_id)) == 1

    me = client.get("/auth/me", headers=headers).json()["user"]
    assert me["purchasedBooks"] == [book_id]


def test_tampered_retry_does_not_undo_success(client, book_id):
    headers, _ = register(client)
    body = _checkout(client, headers, book_id)
    _verify(client, headers, book_id, body["gatewayOrderId"])

    res = _verify(client, headers, book_id, body["gatewayOrderId"], signature="0" * 64)

    assert res.status_code == 400
    assert _stored_order(body["gatewayOrderId"]).status == "success"


def test_second_purchase_of_same_book_keeps_single_grant(client, book_id):
    headers, user = register(client)
    for payment_id in ("pay_one", "pay_two"):
        body = _checkout(client, headers, book_id)
        assert _verify(client, headers, book_id, body["gatewayOrderId"], payment_id=payment_id).status_code == 200

    assert len(_grants(user["id"], book_id)) == 1


def test_verify_for_another_buyers_order_is_not_found(client, book_id):
    buyer_headers, buyer = register(client, email="buyer@example.com")
    thief_headers, thief = register(client, email="thief@example.com")
    body = _checkout(client, buyer_headers, book_id)

    res = _verify(client, thief_headers, book_id, body["gatewayOrderId"])

    assert res.status_code == 404
    assert res.json() == {"message": "Order not found"}
    assert _grants(thief["id"], book_id) == []
    assert _grants(buyer["id"], book_id) == []
    assert _stored_order(body["gatewayOrderId"]).status == "created"


def test_verify_with_other_book_id_is_not_found(client, storage, book_id):
    headers, user = register(client)
    other_id = add_book(storage, title="Pricier", price=5000)
    body = _checkout(client, headers, book_id)

    res = _verify(client, headers, other_id, body["gatewayOrderId"])

    assert res.status_code == 404
    assert _grants(user["id"], other_id) == []


def test_verify_for_order_never_created_is_not_found(client, user_headers, book_id):
    res = _verify(client, user_headers, book_id, "order_fabricated")

    assert res.status_code == 404


def test_verify_requires_all_fields(client, user_headers, book_id):
    res = client.post(
        "/payments/verify",
        json={"itemId": book_id, "gatewayOrderId": "order_x", "gatewayPaymentId": "pay_x"},
        headers=user_headers,
    )

    assert res.status_code == 400
    assert "signature" in res.json()["message"]


def test_verify_without_secret_is_configuration_error(client, user_headers, book_id):
    app.dependency_overrides[get_payment_gateway] = lambda: RazorpayGateway("rzp_test_key", None)

    res = _verify(client, user_headers, book_id, "order_x")

    assert res.status_code == 500
    assert "RAZORPAY_KEY_SECRET" in res.json()["message"]


def test_my_orders_and_admin_orders(client, admin_headers, book_id):
    headers, _ = register(client)
    body = _checkout(client, headers, book_id)
    _verify(client, headers, book_id, body["gatewayOrderId"])

    mine = client.get("/orders/my", headers=headers)
    assert mine.status_code == 200
    assert [o["status"] for o in mine.json()["orders"]] == ["success"]
    assert mine.json()["orders"][0]["itemTitle"] == "Deep Work"

    assert client.get("/orders", headers=headers).status_code == 403

    everything = client.get("/orders", headers=admin_headers)
    assert everything.status_code == 200
    assert len(everything.json()["orders"]) == 1
