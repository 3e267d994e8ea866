"""
API tests for checkout, order lookup and status changes.
"""
import pytest

from services import notification_service


def _payload(items, **extra):
    body = {
        "items": items,
        "shippingAddress": {"street": "1 Road", "city": "Dhaka", "zipCode": "1207", "country": "BD"},
        "notes": "",
    }
    body.update(extra)
    return body


async def _place(client, headers, items, **extra):
    res = await client.post("/orders", json=_payload(items, **extra), headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["data"]["order"]


class TestCreateOrder:

    @pytest.mark.api
    async def test_basic_order(self, client, user_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)

        assert order["ownerId"] == "user-alice"
        assert order["subtotalAmount"] == 250
        assert order["totalAmount"] == 250
        assert order["status"] == "pending"
        assert order["paymentStatus"] == "unpaid"
        assert order["shippingAddress"]["zip"] == "1207"
        assert order["currency"] == "BDT"
        assert len(order["items"]) == 2

    @pytest.mark.api
    async def test_promo_code(self, client, user_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items, promoCode="BINARY10")
        assert order["discountAmount"] == 25
        assert order["totalAmount"] == 225
        assert order["promoCode"] == "BINARY10"

    @pytest.mark.api
    async def test_client_total_is_ignored(self, client, user_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items, totalAmount=1)
        assert order["totalAmount"] == 250

        fetched = await client.get(f"/orders/{order['id']}", headers=user_headers)
        assert fetched.json()["data"]["order"]["totalAmount"] == 250

    @pytest.mark.api
    async def test_empty_items_rejected(self, client, user_headers):
        res = await client.post("/orders", json=_payload([]), headers=user_headers)
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["error"]["code"] == "validation"

        history = await client.get("/users/orders", headers=user_headers)
        assert history.json()["data"]["orders"] == []

    @pytest.mark.api
    async def test_bad_quantity_rejected(self, client, user_headers, basic_payload_items):
        items = [dict(basic_payload_items[0], quantity=0)]
        res = await client.post("/orders", json=_payload(items), headers=user_headers)
        assert res.status_code == 400

    @pytest.mark.api
    async def test_oversized_quantity_rejected(self, client, user_headers, basic_payload_items):
        items = [dict(basic_payload_items[0], quantity=10**20)]
        res = await client.post("/orders", json=_payload(items), headers=user_headers)
        assert res.status_code == 400
        assert res.json()["error"]["code"] == "validation"
        assert "items[0]" in res.json()["error"]["message"]

    @pytest.mark.api
    async def test_requires_authentication(self, client, basic_payload_items):
        res = await client.post("/orders", json=_payload(basic_payload_items))
        assert res.status_code == 401
        assert res.json()["error"]["code"] == "unauthorized"

    @pytest.mark.api
    async def test_confirmation_sent_after_commit(self, client, user_headers, basic_payload_items, monkeypatch):
        sent = []

        async def fake_notify(order, *, recipient=None, transport=None):
            sent.append((order["id"], recipient))
            return True

        monkeypatch.setattr(notification_service, "notify_order_created", fake_notify)
        order = await _place(client, user_headers, basic_payload_items)
        assert sent == [(order["id"], "alice@example.com")]

    @pytest.mark.api
    async def test_notification_failure_does_not_fail_checkout(
        self, client, user_headers, basic_payload_items, monkeypatch
    ):
        from config import settings

        monkeypatch.setattr(settings, "notification_webhook_url", "http://127.0.0.1:9/unreachable")
        order = await _place(client, user_headers, basic_payload_items)
        assert order["id"] is not None

    @pytest.mark.api
    async def test_checkout_is_rate_limited(self, client, user_headers):
        from config import settings

        for _ in range(settings.order_rate_limit_requests):
            res = await client.post("/orders", json=_payload([]), headers=user_headers)
            assert res.status_code == 400

        res = await client.post("/orders", json=_payload([]), headers=user_headers)
        assert res.status_code == 429
        assert res.json()["error"]["code"] == "ratelimit"
        assert res.headers["Retry-After"] == str(settings.order_rate_limit_window_seconds)


class TestGetOrder:

    @pytest.mark.api
    async def test_owner_can_read(self, client, user_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.get(f"/orders/{order['id']}", headers=user_headers)
        assert res.status_code == 200
        assert res.json()["data"]["order"]["id"] == order["id"]

    @pytest.mark.api
    async def test_includes_owner_summary(self, client, user_headers, admin_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        for headers in (user_headers, admin_headers):
            res = await client.get(f"/orders/{order['id']}", headers=headers)
            owner = res.json()["data"]["order"]["owner"]
            assert owner["id"] == "user-alice"
            assert owner["email"] == "alice@example.com"

    @pytest.mark.api
    async def test_other_user_forbidden(self, client, user_headers, other_user_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.get(f"/orders/{order['id']}", headers=other_user_headers)
        assert res.status_code == 403
        assert res.json()["error"]["code"] == "authorization"

    @pytest.mark.api
    async def test_admin_can_read_any(self, client, user_headers, admin_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.get(f"/orders/{order['id']}", headers=admin_headers)
        assert res.status_code == 200

    @pytest.mark.api
    async def test_unknown_order(self, client, user_headers):
        res = await client.get("/orders/999", headers=user_headers)
        assert res.status_code == 404
        assert res.json()["error"]["code"] == "notfound"


class TestMyOrders:

    @pytest.mark.api
    async def test_history_with_meta(self, client, user_headers, other_user_headers, basic_payload_items):
        first = await _place(client, user_headers, basic_payload_items)
        second = await _place(client, user_headers, basic_payload_items)
        await _place(client, other_user_headers, basic_payload_items)

        res = await client.get("/users/orders", params={"limit": 1}, headers=user_headers)
        body = res.json()
        assert [o["id"] for o in body["data"]["orders"]] == [second["id"]]
        assert body["meta"]["total"] == 2
        assert body["meta"]["hasMore"] is True

        res = await client.get("/users/orders", params={"limit": 1, "offset": 1}, headers=user_headers)
        assert [o["id"] for o in res.json()["data"]["orders"]] == [first["id"]]


class TestStatusUpdate:

    @pytest.mark.api
    async def test_admin_updates_status(self, client, user_headers, admin_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.put(
            f"/orders/{order['id']}/status",
            json={"status": "processing", "paymentStatus": "paid"},
            headers=admin_headers,
        )
        assert res.status_code == 200
        updated = res.json()["data"]["order"]
        assert (updated["status"], updated["paymentStatus"]) == ("processing", "paid")
        assert updated["totalAmount"] == order["totalAmount"]

    @pytest.mark.api
    async def test_non_admin_forbidden(self, client, user_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.put(f"/orders/{order['id']}/status", json={"status": "completed"}, headers=user_headers)
        assert res.status_code == 403

    @pytest.mark.api
    async def test_unknown_order(self, client, admin_headers):
        res = await client.put("/orders/999/status", json={"status": "completed"}, headers=admin_headers)
        assert res.status_code == 404

    @pytest.mark.api
    async def test_empty_body_rejected(self, client, user_headers, admin_headers, basic_payload_items):
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.put(f"/orders/{order['id']}/status", json={}, headers=admin_headers)
        assert res.status_code == 400

    @pytest.mark.api
    async def test_strict_policy_conflict(
        self, client, user_headers, admin_headers, basic_payload_items, monkeypatch
    ):
        from config import settings

        monkeypatch.setattr(settings, "order_status_policy", "strict")
        order = await _place(client, user_headers, basic_payload_items)
        res = await client.put(f"/orders/{order['id']}/status", json={"status": "completed"}, headers=admin_headers)
        assert res.status_code == 409
        assert res.json()["error"]["code"] == "conflict"
