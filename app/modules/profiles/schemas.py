from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
import re

PHONE_PATTERN = re.compile(r"^[\d\s\-+()]+$")


def validate_phone(value: Optional[str]) -> Optional[str]:
    """Trim a phone number; empty becomes None, anything else must look like a phone number."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > 20:
        raise ValueError("Phone number must be less than 20 characters")
    if not PHONE_PATTERN.match(value):
        raise ValueError("Please enter a valid phone number")
    return value


class SavedAddress(BaseModel):
    id: str
    label: str
    landmark: str = ""
    village: str = ""
    pincode: str = ""
    # Addresses saved by the web client use camelCase
    is_default: bool = Field(default=False, validation_alias=AliasChoices("is_default", "isDefault"))


class AddressInput(BaseModel):
    label: str = Field(min_length=1, max_length=50)
    landmark: str = Field(default="", max_length=200)
    village: str = Field(default="", max_length=100)
    pincode: str = Field(default="", max_length=10)
    is_default: bool = False

    @field_validator("label", "landmark", "village", "pincode")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        return validate_phone(value)


class ProfileResponse(BaseModel):
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    saved_addresses: List[SavedAddress] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("saved_addresses", mode="before")
    @classmethod
    def coerce_addresses(cls, value):
        # Older rows store null or a non-array blob
        return value if isinstance(value, list) else []

    class Config:
        from_attributes = True
