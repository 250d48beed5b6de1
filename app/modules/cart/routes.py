from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.cart.schemas import CartQuoteRequest, CartQuoteResponse
from app.modules.cart.service import CartService
from supabase import Client

router = APIRouter(prefix="/cart", tags=["cart"])


def get_cart_service(supabase: Client = Depends(get_supabase)) -> CartService:
    return CartService(supabase)


@router.post("/quote", response_model=CartQuoteResponse)
async def quote_cart(
    quote_data: CartQuoteRequest,
    service: CartService = Depends(get_cart_service)
):
    """Price a client-side cart with current product prices, delivery fee and stock issues"""
    return service.quote(quote_data.items, quote_data.delivery_method)
