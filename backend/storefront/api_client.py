"""
HTTP client for the Orders API, used by the storefront and scripts.

Retry policy:
  - GET requests are retried on transport errors and 5xx responses, with
    exponential backoff (backoff, 2×backoff, ...) up to max_retries extra
    attempts.
  - POST/PUT/PATCH/DELETE are sent exactly once. Order creation has no
    idempotency key, so a blind retry could place a second order.

Every non-2xx response is raised as a storefront.errors exception.
"""
import logging

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config import settings
from storefront.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RateLimitedError,
    StorefrontError,
    TransientIOError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error_from_response(response: httpx.Response) -> StorefrontError:
    code = None
    details = None
    message = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        err = body["error"]
        code = err.get("code")
        message = err.get("message") or message
        details = err.get("details")
    elif response.text:
        message = response.text[:200]

    status = response.status_code
    kwargs = {"status_code": status, "code": code, "details": details}
    if status in (400, 422):
        return ValidationError(message, **kwargs)
    if status in (401, 403):
        return AuthorizationError(message, **kwargs)
    if status == 404:
        return NotFoundError(message, **kwargs)
    if status == 409:
        return ConflictError(message, **kwargs)
    if status == 429:
        retry_after = response.headers.get("Retry-After")
        return RateLimitedError(
            message,
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            **kwargs,
        )
    if status >= 500:
        return TransientIOError(message, **kwargs)
    return StorefrontError(message, **kwargs)


class StorefrontClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = settings.api_timeout_seconds if timeout is None else timeout
        self.max_retries = settings.api_max_retries if max_retries is None else max_retries
        self.backoff = settings.api_backoff_seconds if backoff is None else backoff

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=transport,
        )

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Transport ───────────────────────────────────────────────────

    def _send(self, method: str, path: str, **kwargs) -> dict:
        logger.info(f"StorefrontClient {method} {path}")
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise TransientIOError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            raise _error_from_response(response)
        if not response.content:
            return {}
        body = response.json()
        # API responses use the {"success", "data", "meta"} envelope
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.backoff, min=self.backoff, max=self.backoff * 8),
            retry=retry_if_exception_type(TransientIOError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    def get(self, path: str, params: dict | None = None) -> dict:
        for attempt in self._retrying():
            with attempt:
                return self._send("GET", path, params=params)

    def post(self, path: str, json: dict | None = None) -> dict:
        return self._send("POST", path, json=json)

    def put(self, path: str, json: dict | None = None) -> dict:
        return self._send("PUT", path, json=json)

    def patch(self, path: str, json: dict | None = None) -> dict:
        return self._send("PATCH", path, json=json)

    def delete(self, path: str) -> dict:
        return self._send("DELETE", path)

    # ── Pricing ─────────────────────────────────────────────────────

    def quote(self, items: list[dict], promo_code: str | None = None) -> dict:
        return self.post("/pricing/quote", json={"items": items, "promoCode": promo_code})

    # ── Orders ──────────────────────────────────────────────────────

    def create_order(
        self,
        items: list[dict] | None,
        *,
        shipping_address: dict | None = None,
        notes: str = "",
        payment_method: str | None = None,
        promo_code: str | None = None,
    ) -> dict:
        payload = {
            "items": items,
            "shippingAddress": shipping_address,
            "notes": notes,
            "paymentMethod": payment_method,
            "promoCode": promo_code,
        }
        return self.post("/orders", json=payload)["order"]

    def get_order(self, order_id: int) -> dict:
        return self.get(f"/orders/{order_id}")["order"]

    def my_orders(self, *, limit: int = 50, offset: int = 0) -> list[dict]:
        return self.get("/users/orders", params={"limit": limit, "offset": offset})["orders"]

    def update_order_status(
        self,
        order_id: int,
        *,
        status: str | None = None,
        payment_status: str | None = None,
    ) -> dict:
        payload = {}
        if status is not None:
            payload["status"] = status
        if payment_status is not None:
            payload["paymentStatus"] = payment_status
        return self.put(f"/orders/{order_id}/status", json=payload)["order"]

    # ── Server cart ─────────────────────────────────────────────────

    def get_cart(self, promo_code: str | None = None) -> dict:
        params = {"promoCode": promo_code} if promo_code else None
        return self.get("/cart", params=params)

    def add_to_cart(self, item_id: str, item_type: str, title: str, price, image: str = "") -> dict:
        return self.post(
            "/cart/items",
            json={"itemId": item_id, "itemType": item_type, "title": title, "price": str(price), "image": image},
        )

    def change_cart_quantity(self, item_id: str, delta: int) -> dict:
        return self.patch(f"/cart/items/{item_id}", json={"delta": delta})

    def remove_from_cart(self, item_id: str) -> dict:
        return self.delete(f"/cart/items/{item_id}")

    def clear_cart(self) -> dict:
        return self.delete("/cart")

    # ── Admin ───────────────────────────────────────────────────────

    def admin_orders(
        self,
        *,
        status: str | None = None,
        payment_status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        params = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        if payment_status:
            params["paymentStatus"] = payment_status
        return self.get("/admin/orders", params=params)

    def dashboard(self) -> dict:
        return self.get("/admin/dashboard")

    def analytics(self) -> list[dict]:
        return self.get("/admin/analytics")["monthlyData"]

    def top_items(self) -> list[dict]:
        return self.get("/admin/orders/top-items")["items"]
