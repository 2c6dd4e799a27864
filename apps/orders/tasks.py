import logging

import requests
from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task
def sync_order_to_crm(order_id: int, event: str, payload: dict = None):
    """
    Push an order event to the external CRM.
    No-op when CRM_API_URL is not configured. Failures are logged, never raised.
    """
    url = getattr(settings, "CRM_API_URL", None)
    if not url:
        return False

    headers = {"Content-Type": "application/json"}
    api_key = getattr(settings, "CRM_API_KEY", None)
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    body = {"orderId": order_id, "event": event, "data": payload or {}}
    try:
        resp = requests.post(
            f"{url.rstrip('/')}/orders/events",
            json=body,
            headers=headers,
            timeout=getattr(settings, "CRM_TIMEOUT_SECONDS", 5),
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"CRM sync failed for order {order_id} ({event}): {e}", extra={"order_id": order_id})
        return False

    logger.info(f"CRM sync ok for order {order_id} ({event})", extra={"order_id": order_id})
    return True
