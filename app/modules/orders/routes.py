from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.orders.schemas import (
    CheckoutRequest, OrderResponse, OrderCancelRequest, OrderStatusUpdate, OrderNotesUpdate
)
from app.modules.orders.service import OrderService
from app.core.dependencies import get_current_user, require_admin, check_order_access, get_access_cache
from supabase import Client
from typing import List, Optional, Dict, Any

router = APIRouter(prefix="/orders", tags=["orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def get_order_service(
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase)
) -> OrderService:
    return OrderService(supabase, service_supabase)


@router.post("", response_model=OrderResponse, status_code=201)
async def checkout(
    checkout_data: CheckoutRequest,
    user_data: Dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Place an order.
    Prices are taken from the catalog and stock is verified for every line;
    delivery address fields are required unless the order is picked up.
    """
    return service.checkout(user_data["id"], checkout_data)


@router.get("", response_model=List[OrderResponse])
async def list_my_orders(
    user_data: Dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    return service.list_user_orders(user_data["id"])


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    user_data: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase),
    cache: Dict[str, Any] = Depends(get_access_cache),
    service: OrderService = Depends(get_order_service)
):
    """Get an order (owner or admin)"""
    order = service.get_order_row(order_id)
    check_order_access(order, user_data, supabase, cache)
    return service.get_order(order_id, order)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_my_order(
    order_id: str,
    cancel_data: OrderCancelRequest,
    user_data: Dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Cancel your own order while it is pending or confirmed"""
    return service.cancel_by_customer(order_id, user_data["id"], cancel_data.reason)


@admin_router.get("", response_model=List[OrderResponse])
async def list_orders(
    search: Optional[str] = None,
    status: Optional[str] = None,
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """All orders; search matches order id, phone, customer name or email"""
    return service.list_admin_orders(search=search, status=status)


@admin_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    return service.update_status(order_id, status_data.status)


@admin_router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    cancel_data: OrderCancelRequest,
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    return service.cancel_by_admin(order_id, cancel_data.reason)


@admin_router.put("/{order_id}/notes", response_model=OrderResponse)
async def update_order_notes(
    order_id: str,
    notes_data: OrderNotesUpdate,
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    return service.update_admin_notes(order_id, notes_data.admin_notes)


@admin_router.delete("/{order_id}", status_code=204)
async def delete_order(
    order_id: str,
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    service.delete_order(order_id)
    return None
