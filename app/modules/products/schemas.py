from pydantic import BaseModel, Field, computed_field, field_validator, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from urllib.parse import urlparse

from app.config.catalog_config import (
    get_category_by_value, get_sub_category_by_value, get_weight_options, generate_product_name
)

MAX_COMPARE_PRODUCTS = 4


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def check_catalog_placement(category: Optional[str], sub_category: Optional[str], weight: Optional[str]) -> None:
    """Raise ValueError unless category/sub-category/weight fit the configured category tree."""
    if not category:
        raise ValueError("Category is required")
    cat = get_category_by_value(category)
    if not cat:
        raise ValueError(f"Unknown category: {category}")
    if sub_category and not get_sub_category_by_value(category, sub_category):
        raise ValueError(f"Sub-category {sub_category} does not belong to {category}")
    if weight:
        allowed = [w["value"] for w in get_weight_options(category, sub_category)]
        if allowed and weight not in allowed:
            raise ValueError(f"Weight must be one of: {', '.join(allowed)}")


class ProductFields(BaseModel):
    description: Optional[str] = Field(default=None, max_length=2000)
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    specifications: Optional[Dict[str, Any]] = None

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not _is_http_url(value):
            raise ValueError("Invalid URL format")
        return value

    @field_validator("images")
    @classmethod
    def check_images(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        cleaned = [v.strip() for v in value if v and v.strip()]
        for url in cleaned:
            if not _is_http_url(url):
                raise ValueError(f"Invalid image URL: {url}")
        return cleaned


class ProductCreate(ProductFields):
    name: Optional[str] = Field(default=None, max_length=200)
    price: float = Field(gt=0)
    category: str
    sub_category: Optional[str] = None
    weight: Optional[str] = None
    discount: float = Field(default=0, ge=0, le=100)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True

    @model_validator(mode="after")
    def place_in_catalog(self):
        check_catalog_placement(self.category, self.sub_category, self.weight)
        if self.name is not None:
            self.name = self.name.strip()
        if not self.name:
            self.name = generate_product_name(self.category, self.sub_category, self.weight)
        if not self.image_url and self.images:
            self.image_url = self.images[0]
        return self


class ProductUpdate(ProductFields):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = None
    sub_category: Optional[str] = None
    weight: Optional[str] = None
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    stock: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    stock: Optional[int] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    weight: Optional[str] = None
    discount: Optional[float] = None
    is_active: Optional[bool] = None
    specifications: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def display_price(self) -> Optional[float]:
        if self.price is None:
            return None
        discount = self.discount or 0
        return round(self.price - (self.price * discount / 100), 2)

    @computed_field
    @property
    def in_stock(self) -> bool:
        return self.stock is None or self.stock > 0

    class Config:
        from_attributes = True


class CategoriesResponse(BaseModel):
    categories: List[str]
    catalog: List[Dict[str, Any]]


class CompareRequest(BaseModel):
    product_ids: List[str] = Field(min_length=1)

    @field_validator("product_ids")
    @classmethod
    def check_ids(cls, value: List[str]) -> List[str]:
        if len(value) > MAX_COMPARE_PRODUCTS:
            raise ValueError(f"You can only compare up to {MAX_COMPARE_PRODUCTS} products at once")
        if len(set(value)) != len(value):
            raise ValueError("This product is already in your comparison list")
        return value


class CompareResponse(BaseModel):
    products: List[ProductResponse]
    specification_keys: List[str]
