from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime

from app.modules.profiles.schemas import PHONE_PATTERN

DeliveryMethod = Literal["standard", "express", "pickup"]


def _check_length(value: Optional[str], limit: int, message: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) > limit:
        raise ValueError(message)
    return value


class CheckoutItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CheckoutRequest(BaseModel):
    items: List[CheckoutItem] = []
    delivery_method: DeliveryMethod = "standard"
    full_name: str
    email: EmailStr
    phone: str
    address: Optional[str] = None
    city: Optional[str] = None
    pin_code: Optional[str] = None
    landmark: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def check_full_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        if len(value) > 100:
            raise ValueError("Name must be less than 100 characters")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def check_email_length(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if len(value) > 255:
                raise ValueError("Email must be less than 255 characters")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Phone number is required")
        if len(value) > 20:
            raise ValueError("Phone number must be less than 20 characters")
        if not PHONE_PATTERN.match(value):
            raise ValueError("Please enter a valid phone number")
        return value

    @field_validator("address")
    @classmethod
    def check_address(cls, value: Optional[str]) -> Optional[str]:
        return _check_length(value, 200, "Address must be less than 200 characters")

    @field_validator("city")
    @classmethod
    def check_city(cls, value: Optional[str]) -> Optional[str]:
        return _check_length(value, 100, "City must be less than 100 characters")

    @field_validator("pin_code")
    @classmethod
    def check_pin_code(cls, value: Optional[str]) -> Optional[str]:
        return _check_length(value, 10, "Pin code must be less than 10 characters")

    @field_validator("landmark")
    @classmethod
    def check_landmark(cls, value: Optional[str]) -> Optional[str]:
        return _check_length(value, 200, "Landmark must be less than 200 characters")

    @field_validator("notes")
    @classmethod
    def check_notes(cls, value: Optional[str]) -> Optional[str]:
        return _check_length(value, 500, "Notes must be less than 500 characters")

    @model_validator(mode="after")
    def require_shipping_address(self):
        if self.delivery_method == "pickup":
            return self
        if not self.address:
            raise ValueError("Street address is required")
        if not self.city:
            raise ValueError("City is required")
        if not self.pin_code:
            raise ValueError("Pin code is required")
        return self

    def shipping_address(self) -> Optional[Dict[str, Any]]:
        """Address blob stored on the order; pickup orders carry none"""
        if self.delivery_method == "pickup":
            return None
        return {
            "fullName": self.full_name,
            "address": self.address,
            "city": self.city,
            "pinCode": self.pin_code,
            "landmark": self.landmark,
        }


class OrderProductSummary(BaseModel):
    id: str
    name: Optional[str] = None
    image_url: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: str
    order_id: str
    product_id: Optional[str] = None
    quantity: int
    price: float
    product: Optional[OrderProductSummary] = None


class CustomerProfile(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    total: float
    status: str
    shipping_address: Optional[Dict[str, Any]] = None
    delivery_method: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []
    profile: Optional[CustomerProfile] = None

    class Config:
        from_attributes = True


class OrderCancelRequest(BaseModel):
    """A reason from the fixed list, or "Other" with the reason typed into details"""
    reason: str
    details: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def resolve_reason(self):
        reason = self.reason.strip()
        if reason == "Other":
            reason = (self.details or "").strip()
        if not reason:
            raise ValueError("Please select or enter a reason for cancellation")
        self.reason = reason
        return self


class OrderStatusUpdate(BaseModel):
    status: str


class OrderNotesUpdate(BaseModel):
    admin_notes: Optional[str] = Field(default=None, max_length=2000)
