from pydantic import BaseModel, Field
from typing import Optional, List


class CartItem(BaseModel):
    id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    image_url: Optional[str] = None


class CartQuoteRequest(BaseModel):
    items: List[CartItem]
    delivery_method: str = "standard"


class CartQuoteItem(BaseModel):
    id: str
    name: str
    price: float
    quantity: int
    line_total: float
    image_url: Optional[str] = None
    available: bool = True
    stock: Optional[int] = None


class CartQuoteResponse(BaseModel):
    items: List[CartQuoteItem]
    subtotal: float
    delivery_fee: float
    total: float
    issues: List[str] = []
