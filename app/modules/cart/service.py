"""
Cart pricing.
The cart lives on the client; these are pure operations over a submitted list of
items plus a quote that re-prices the cart against the products table.
"""

from supabase import Client
from app.modules.cart.schemas import CartItem, CartQuoteItem, CartQuoteResponse
from app.config import settings
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def add_item(items: List[CartItem], product: CartItem) -> List[CartItem]:
    """Increment the quantity when the product is already in the cart, else append it with quantity 1"""
    if any(item.id == product.id for item in items):
        return [
            item.model_copy(update={"quantity": item.quantity + 1}) if item.id == product.id else item
            for item in items
        ]
    return items + [product.model_copy(update={"quantity": 1})]


def update_quantity(items: List[CartItem], product_id: str, delta: int) -> List[CartItem]:
    """Change a line's quantity by delta; quantity never drops below 1"""
    return [
        item.model_copy(update={"quantity": max(1, item.quantity + delta)}) if item.id == product_id else item
        for item in items
    ]


def remove_item(items: List[CartItem], product_id: str) -> List[CartItem]:
    return [item for item in items if item.id != product_id]


def subtotal(items) -> float:
    return round(sum(item.price * item.quantity for item in items), 2)


def delivery_fee(method: Optional[str]) -> float:
    fees = {
        "express": settings.delivery_fee_express,
        "standard": settings.delivery_fee_standard,
        "pickup": settings.delivery_fee_pickup,
    }
    return fees.get(method, settings.delivery_fee_standard)


class CartService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def quote(self, items: List[CartItem], delivery_method: str) -> CartQuoteResponse:
        """Re-price the cart with current product prices and report availability problems"""
        try:
            ids = list({item.id for item in items})
            products = {}
            if ids:
                result = self.supabase.table("products")\
                    .select("id, name, price, stock, image_url, is_active")\
                    .in_("id", ids)\
                    .execute()
                products = {p["id"]: p for p in (result.data or [])}

            quoted: List[CartQuoteItem] = []
            issues: List[str] = []
            for item in items:
                product = products.get(item.id)
                if not product or product.get("is_active") is False or product.get("price") is None:
                    issues.append(f"{item.name} is no longer available.")
                    quoted.append(CartQuoteItem(
                        id=item.id,
                        name=item.name,
                        price=item.price,
                        quantity=item.quantity,
                        line_total=0,
                        image_url=item.image_url,
                        available=False
                    ))
                    continue

                price = float(product["price"])
                stock = product.get("stock")
                if price != item.price:
                    issues.append(f"The price of {product['name']} has changed.")
                if stock is not None and stock < item.quantity:
                    issues.append(f"Only {stock} units of {product['name']} are available.")

                quoted.append(CartQuoteItem(
                    id=item.id,
                    name=product["name"],
                    price=price,
                    quantity=item.quantity,
                    line_total=round(price * item.quantity, 2),
                    image_url=product.get("image_url") or item.image_url,
                    available=stock is None or stock >= item.quantity,
                    stock=stock
                ))

            items_subtotal = subtotal([q for q in quoted if q.line_total > 0])
            fee = delivery_fee(delivery_method)
            return CartQuoteResponse(
                items=quoted,
                subtotal=items_subtotal,
                delivery_fee=fee,
                total=round(items_subtotal + fee, 2),
                issues=issues
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
