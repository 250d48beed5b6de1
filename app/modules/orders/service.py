from supabase import Client
from app.modules.orders.schemas import CheckoutRequest, OrderResponse
from app.modules.products.service import ProductService
from app.modules.cart.service import delivery_fee
from app.config.catalog_config import (
    ORDER_STATUS_TRANSITIONS, CUSTOMER_CANCELLABLE_STATUSES, get_status_label
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def merge_checkout_items(items) -> List[Dict[str, Any]]:
    """Collapse repeated product ids into one line, summing quantities, keeping first-seen order"""
    merged: Dict[str, int] = {}
    for item in items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return [{"product_id": pid, "quantity": qty} for pid, qty in merged.items()]


def order_matches_search(order: Dict[str, Any], query: str) -> bool:
    """Case-insensitive match against order id, phone, customer username and email"""
    query = query.strip().lower()
    if not query:
        return True
    profile = order.get("profile") or {}
    fields = [order.get("id"), order.get("phone"), profile.get("username"), profile.get("email")]
    return any(value and query in str(value).lower() for value in fields)


class OrderService:
    def __init__(self, supabase: Client, service_supabase: Optional[Client] = None):
        self.supabase = supabase
        # Stock lives on products, which only admins may write under RLS
        self.products = ProductService(service_supabase or supabase)

    def _get_order(self, order_id: str) -> Dict[str, Any]:
        result = self.supabase.table("orders")\
            .select("*")\
            .eq("id", order_id)\
            .maybe_single()\
            .execute()

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Order not found")
        return result.data

    def _get_order_items(self, order_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("order_items")\
            .select("*")\
            .eq("order_id", order_id)\
            .execute()
        return result.data or []

    def _attach_items(self, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Add line items (with a short product summary) to each order row"""
        if not orders:
            return orders
        items_result = self.supabase.table("order_items")\
            .select("*")\
            .in_("order_id", [o["id"] for o in orders])\
            .execute()
        items = items_result.data or []

        product_ids = list({i["product_id"] for i in items if i.get("product_id")})
        products = {}
        if product_ids:
            products_result = self.supabase.table("products")\
                .select("id, name, image_url")\
                .in_("id", product_ids)\
                .execute()
            products = {p["id"]: p for p in (products_result.data or [])}

        by_order: Dict[str, List[Dict[str, Any]]] = {}
        for item in items:
            by_order.setdefault(item["order_id"], []).append({
                **item,
                "product": products.get(item.get("product_id"))
            })
        return [{**order, "items": by_order.get(order["id"], [])} for order in orders]

    def _attach_profiles(self, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Add the customer's username and email to each order row"""
        user_ids = list({o["user_id"] for o in orders if o.get("user_id")})
        if not user_ids:
            return orders
        result = self.supabase.table("profiles")\
            .select("id, username, email")\
            .in_("id", user_ids)\
            .execute()
        profiles = {p["id"]: p for p in (result.data or [])}
        return [{**order, "profile": profiles.get(order.get("user_id"))} for order in orders]

    def checkout(self, user_id: str, checkout_data: CheckoutRequest) -> OrderResponse:
        """
        Place an order from the submitted cart.
        Prices come from the products table, never from the client, and every line
        is checked against tracked stock before anything is written.
        """
        try:
            lines = merge_checkout_items(checkout_data.items)
            if not lines:
                raise HTTPException(status_code=400, detail="Your cart is empty")

            try:
                current = self.products.get_products_by_ids([line["product_id"] for line in lines])
            except Exception as e:
                logger.error(f"Failed to verify product prices: {e}")
                raise HTTPException(status_code=500, detail="Failed to verify product prices")

            available = {
                pid: p for pid, p in current.items()
                if p.get("is_active") is not False and p.get("price") is not None
            }
            if len(available) != len(lines):
                raise HTTPException(
                    status_code=400,
                    detail="Some products in your cart are no longer available. Please refresh and try again."
                )

            verified_items = []
            items_subtotal = 0.0
            for line in lines:
                product = available[line["product_id"]]
                stock = product.get("stock")
                if stock is not None and stock < line["quantity"]:
                    raise HTTPException(
                        status_code=400,
                        detail=f"Only {stock} units of {product['name']} are available."
                    )
                price = float(product["price"])
                verified_items.append({**line, "price": price})
                items_subtotal += price * line["quantity"]

            total = round(items_subtotal + delivery_fee(checkout_data.delivery_method), 2)

            order_result = self.supabase.table("orders").insert({
                "user_id": user_id,
                "total": total,
                "status": "pending",
                "shipping_address": checkout_data.shipping_address(),
                "delivery_method": checkout_data.delivery_method,
                "phone": checkout_data.phone,
                "notes": checkout_data.notes or None,
            }).execute()

            if not order_result.data:
                raise HTTPException(status_code=500, detail="Failed to create order")
            order = order_result.data[0]

            try:
                items_result = self.supabase.table("order_items")\
                    .insert([{**item, "order_id": order["id"]} for item in verified_items])\
                    .execute()
            except Exception as e:
                logger.error(f"Failed to insert items for order {order['id']}, removing order: {e}")
                self.supabase.table("orders").delete().eq("id", order["id"]).execute()
                raise HTTPException(status_code=500, detail="Failed to create order items")

            logger.info(f"Order {order['id']} placed by {user_id} ({len(verified_items)} items, total {total})")
            return OrderResponse(**{**order, "items": items_result.data or []})
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_user_orders(self, user_id: str) -> List[OrderResponse]:
        """Customer's own orders, newest first"""
        try:
            result = self.supabase.table("orders")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            return [OrderResponse(**o) for o in self._attach_items(result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_order_row(self, order_id: str) -> Dict[str, Any]:
        try:
            return self._get_order(order_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_order(self, order_id: str, order: Optional[Dict[str, Any]] = None) -> OrderResponse:
        """Order with line items and customer profile"""
        try:
            order = order or self._get_order(order_id)
            enriched = self._attach_profiles(self._attach_items([order]))[0]
            return OrderResponse(**enriched)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _mark_cancelled(self, order: Dict[str, Any], reason: str, cancelled_by: str) -> OrderResponse:
        result = self.supabase.table("orders")\
            .update({
                "status": "cancelled",
                "cancellation_reason": reason,
                "cancelled_by": cancelled_by,
                "updated_at": datetime.utcnow().isoformat()
            })\
            .eq("id", order["id"])\
            .execute()

        if not result.data:
            raise HTTPException(status_code=404, detail="Order not found")

        # Stock is only taken on confirmation, so a pending order has nothing to give back
        if order["status"] != "pending":
            self.products.adjust_stock(self._get_order_items(order["id"]), "restore")

        logger.info(f"Order {order['id']} cancelled by {cancelled_by}: {reason}")
        return self.get_order(order["id"], result.data[0])

    def cancel_by_customer(self, order_id: str, user_id: str, reason: str) -> OrderResponse:
        """Customer cancellation, allowed while the order is pending or confirmed"""
        try:
            order = self._get_order(order_id)
            if order.get("user_id") != user_id:
                raise HTTPException(status_code=403, detail="You can only cancel your own orders")
            if order["status"] not in CUSTOMER_CANCELLABLE_STATUSES:
                raise HTTPException(
                    status_code=400,
                    detail=f"Orders that are {get_status_label(order['status']).lower()} can no longer be cancelled"
                )
            return self._mark_cancelled(order, reason, "user")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_admin_orders(self, search: Optional[str] = None, status: Optional[str] = None) -> List[OrderResponse]:
        """All orders, newest first, with items and customer profile; status "all" disables the filter"""
        try:
            query = self.supabase.table("orders").select("*")
            if status and status != "all":
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).execute()

            orders = self._attach_profiles(self._attach_items(result.data or []))
            if search:
                orders = [o for o in orders if order_matches_search(o, search)]
            return [OrderResponse(**o) for o in orders]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_status(self, order_id: str, new_status: str) -> OrderResponse:
        """Move an order along the status workflow. Confirming a pending order takes its stock."""
        try:
            if new_status not in ORDER_STATUS_TRANSITIONS:
                raise HTTPException(status_code=400, detail=f"Invalid status: {new_status}")

            order = self._get_order(order_id)
            current_status = order["status"]

            if current_status == "delivered":
                raise HTTPException(status_code=400, detail="Delivered orders cannot be modified")
            if new_status == current_status:
                raise HTTPException(status_code=400, detail=f"Order is already {get_status_label(current_status).lower()}")
            if new_status == "cancelled":
                raise HTTPException(status_code=400, detail="Use the cancel endpoint to cancel an order with a reason")
            if new_status not in ORDER_STATUS_TRANSITIONS.get(current_status, []):
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot change status from {current_status} to {new_status}"
                )

            result = self.supabase.table("orders")\
                .update({"status": new_status, "updated_at": datetime.utcnow().isoformat()})\
                .eq("id", order_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Order not found")

            if current_status == "pending" and new_status == "confirmed":
                self.products.adjust_stock(self._get_order_items(order_id), "reduce")

            logger.info(f"Order {order_id} status {current_status} -> {new_status}")
            return self.get_order(order_id, result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def cancel_by_admin(self, order_id: str, reason: str) -> OrderResponse:
        try:
            order = self._get_order(order_id)
            if order["status"] == "delivered":
                raise HTTPException(status_code=400, detail="Delivered orders cannot be modified")
            if "cancelled" not in ORDER_STATUS_TRANSITIONS.get(order["status"], []):
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot change status from {order['status']} to cancelled"
                )
            return self._mark_cancelled(order, reason, "admin")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_admin_notes(self, order_id: str, admin_notes: Optional[str]) -> OrderResponse:
        try:
            self._get_order(order_id)
            notes = admin_notes.strip() if admin_notes else None
            result = self.supabase.table("orders")\
                .update({"admin_notes": notes or None})\
                .eq("id", order_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Order not found")

            return self.get_order(order_id, result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_order(self, order_id: str) -> bool:
        """Delete an order and its line items"""
        try:
            self._get_order(order_id)
            self.supabase.table("order_items").delete().eq("order_id", order_id).execute()
            result = self.supabase.table("orders").delete().eq("id", order_id).execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Order not found")

            logger.info(f"Deleted order {order_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
