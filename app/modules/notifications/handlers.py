"""Turn realtime change-feed payloads into notifications."""
import logging
from typing import Any, Dict, Optional, Tuple

from app.config.catalog_config import get_status_label
from app.modules.notifications import hub

logger = logging.getLogger(__name__)


def _records(payload: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """(new row, old row) from a change-feed payload.
    The realtime client nests them under data.record/old_record; plain new/old is accepted too."""
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    record = data.get("record") or data.get("new") or {}
    old_record = data.get("old_record") or data.get("old") or {}
    return record, old_record


def handle_product_insert(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    record, _ = _records(payload)
    name = record.get("name")
    if not name:
        return None
    return hub.publish(
        "new_product",
        f"New product added: {name}",
        audience=hub.AUDIENCE_ALL,
        product_name=name,
    )


def handle_order_insert(payload: Dict[str, Any]) -> None:
    """Remember a new order's starting status so its first update can be compared against it"""
    record, _ = _records(payload)
    if record.get("id") and record.get("status"):
        hub.remember_order_status(record["id"], record["status"])


def handle_order_update(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Notify on order status changes:
    - customer cancellation -> admins, with the reason
    - admin cancellation -> the customer, with the reason
    - any other status change -> the customer, with the new status label
    Updates that leave the status unchanged (notes, address edits) are ignored.

    The default change feed only sends the primary key in old_record, so the previous
    status comes from the hub. When the hub has never seen the order, any status other
    than pending counts as a change, since orders are created pending.
    """
    record, old_record = _records(payload)
    order_id = record.get("id")
    status = record.get("status")
    if not order_id or not status:
        return None

    remembered = hub.remember_order_status(order_id, status)
    previous = old_record.get("status") or remembered or "pending"
    if previous == status:
        return None

    if status == "cancelled" and record.get("cancelled_by") == "user":
        reason = record.get("cancellation_reason") or "Not provided"
        return hub.publish(
            "order_cancelled",
            f"Order #{order_id[:8]} was cancelled. Reason: {reason}",
            audience=hub.AUDIENCE_ADMIN,
            order_id=order_id,
        )

    user_id = record.get("user_id")
    if not user_id:
        logger.warning(f"Order {order_id} update has no user_id, skipping notification")
        return None

    if status == "cancelled" and record.get("cancelled_by") == "admin":
        message = record.get("cancellation_reason") or "Your order has been cancelled by the admin."
        return hub.publish("order_cancelled", message, audience=user_id, order_id=order_id)

    return hub.publish(
        "order_status",
        f"Your order is now: {get_status_label(status)}",
        audience=user_id,
        order_id=order_id,
    )
