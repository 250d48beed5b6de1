"""Thread-safe in-process store of storefront notifications and per-user read state."""
import threading
import uuid
import logging
from collections import OrderedDict, deque
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.config import settings

logger = logging.getLogger(__name__)

AUDIENCE_ALL = "all"
AUDIENCE_ADMIN = "admin"

_lock = threading.Lock()
_items: deque = deque(maxlen=settings.notifications_max_items)
_seq = 0
_read_upto: Dict[str, int] = {}
_cleared_upto: Dict[str, int] = {}
# Last status seen per order, for change feeds that only carry the new row.
# Least recently touched orders are evicted past notifications_max_items.
_order_status: OrderedDict = OrderedDict()


def publish(
    type: str,
    message: str,
    audience: str = AUDIENCE_ALL,
    product_name: Optional[str] = None,
    order_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Record a notification for everyone, for admins, or for a single user id."""
    global _seq
    with _lock:
        _seq += 1
        item = {
            "seq": _seq,
            "id": str(uuid.uuid4()),
            "type": type,
            "message": message,
            "product_name": product_name,
            "order_id": order_id,
            "audience": audience,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        _items.append(item)
    logger.debug(f"Notification {item['id']} ({type}) for {audience}: {message}")
    return item


def _visible(item: Dict[str, Any], user_id: str, is_admin: bool) -> bool:
    audience = item["audience"]
    if audience == AUDIENCE_ALL:
        return True
    if audience == AUDIENCE_ADMIN:
        return is_admin
    return audience == user_id


def list_for(user_id: str, is_admin: bool = False) -> List[Dict[str, Any]]:
    """Notifications visible to the user since they last cleared, newest first, with a read flag."""
    with _lock:
        cleared = _cleared_upto.get(user_id, 0)
        read = _read_upto.get(user_id, 0)
        items = [
            {**item, "read": item["seq"] <= read}
            for item in _items
            if item["seq"] > cleared and _visible(item, user_id, is_admin)
        ]
    items.reverse()
    return items


def mark_all_read(user_id: str) -> None:
    with _lock:
        _read_upto[user_id] = _seq


def clear(user_id: str) -> None:
    with _lock:
        _cleared_upto[user_id] = _seq
        _read_upto[user_id] = _seq


def remember_order_status(order_id: str, status: str) -> Optional[str]:
    """Store the order's latest status and return the one seen before it, if any."""
    with _lock:
        previous = _order_status.pop(order_id, None)
        _order_status[order_id] = status
        while len(_order_status) > settings.notifications_max_items:
            _order_status.popitem(last=False)
    return previous


def seed_order_statuses(orders: List[Dict[str, Any]]) -> None:
    """Preload known statuses (newest first) without overwriting anything already seen."""
    with _lock:
        for order in orders[:settings.notifications_max_items]:
            if order.get("id") and order.get("status") and order["id"] not in _order_status:
                _order_status[order["id"]] = order["status"]
                _order_status.move_to_end(order["id"], last=False)
        while len(_order_status) > settings.notifications_max_items:
            _order_status.popitem(last=False)


def tracked_order_count() -> int:
    with _lock:
        return len(_order_status)


def reset() -> None:
    global _seq
    with _lock:
        _items.clear()
        _read_upto.clear()
        _cleared_upto.clear()
        _order_status.clear()
        _seq = 0
