"""
Realtime change-feed listener.
Subscribes to product inserts and order inserts/updates and records notifications in the hub.
Started from the app startup hook when REALTIME_ENABLED is set.
"""
import asyncio
import logging

from app.database.supabase_client import create_realtime_client
from app.config import settings
from app.modules.notifications import hub
from app.modules.notifications.handlers import handle_product_insert, handle_order_insert, handle_order_update

logger = logging.getLogger(__name__)


def _safe(handler):
    def callback(payload):
        try:
            handler(payload)
        except Exception as e:
            logger.error(f"Error handling realtime payload in {handler.__name__}: {e}")
    return callback


async def seed_order_statuses(client) -> None:
    """Load the most recent orders' statuses so updates to them are compared against real state"""
    try:
        result = await client.table("orders")\
            .select("id, status")\
            .order("created_at", desc=True)\
            .limit(settings.notifications_max_items)\
            .execute()
        hub.seed_order_statuses(result.data or [])
        logger.info(f"Seeded status of {len(result.data or [])} orders")
    except Exception as e:
        logger.warning(f"Could not preload order statuses: {e}")


async def run_listener():
    """Subscribe and keep the subscription open until cancelled."""
    client = await create_realtime_client()
    await seed_order_statuses(client)

    products_channel = client.channel("products-realtime")
    products_channel.on_postgres_changes(
        "INSERT", schema="public", table="products", callback=_safe(handle_product_insert)
    )
    await products_channel.subscribe()

    orders_channel = client.channel("orders-realtime")
    orders_channel.on_postgres_changes(
        "INSERT", schema="public", table="orders", callback=_safe(handle_order_insert)
    )
    orders_channel.on_postgres_changes(
        "UPDATE", schema="public", table="orders", callback=_safe(handle_order_update)
    )
    await orders_channel.subscribe()

    logger.info("Realtime listener subscribed to products INSERT and orders INSERT/UPDATE")
    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        logger.info("Realtime listener stopping")
        await client.remove_all_channels()
        raise
