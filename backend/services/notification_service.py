"""
Notification service — best-effort order confirmation.

Delivery itself (email templates, SMTP) belongs to an external system. When
NOTIFICATION_WEBHOOK_URL is set, the serialized order is POSTed there;
otherwise the confirmation is only logged.

Failures never propagate: an order that was committed stays committed even
if nobody hears about it.
"""
import logging

import httpx

from config import settings
from domain.constants import EVENT_ORDER_CREATED

logger = logging.getLogger(__name__)


async def notify_order_created(
    order: dict,
    *,
    recipient: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """
    Send the order confirmation.

    Args:
        order: serialized order (services.order_service.serialize_order)
        recipient: owner email, if known
        transport: optional httpx transport (tests)

    Returns:
        True if delivered (or logged with no webhook configured), False otherwise
    """
    url = settings.notification_webhook_url
    if not url:
        logger.info(f"Order confirmation for order {order.get('id')} (to={recipient or 'unknown'}); no webhook configured")
        return True

    payload = {
        "event": EVENT_ORDER_CREATED,
        "recipient": recipient,
        "order": order,
    }
    try:
        async with httpx.AsyncClient(timeout=settings.notification_timeout_seconds, transport=transport) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
        logger.info(f"Order confirmation sent for order {order.get('id')}")
        return True
    except Exception as e:
        logger.warning(f"Order confirmation failed for order {order.get('id')}: {e}")
        return False
