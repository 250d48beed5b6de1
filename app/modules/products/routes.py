from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_supabase
from app.modules.products.schemas import (
    ProductCreate, ProductUpdate, ProductResponse, CategoriesResponse,
    CompareRequest, CompareResponse
)
from app.modules.products.service import ProductService
from app.core.dependencies import get_optional_user, require_admin, is_admin, get_access_cache
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/products", tags=["products"])


def get_product_service(supabase: Client = Depends(get_supabase)) -> ProductService:
    return ProductService(supabase)


@router.get("", response_model=List[ProductResponse])
async def list_products(
    request: Request,
    category: Optional[str] = None,
    variety: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    include_inactive: bool = False,
    limit: int = 100,
    offset: int = 0,
    user_data: Optional[Dict] = Depends(get_optional_user),
    supabase: Client = Depends(get_supabase),
    service: ProductService = Depends(get_product_service)
):
    """
    List catalog products, newest first.
    Hidden products are only listed for admins that ask for them.
    """
    show_hidden = include_inactive and is_admin(user_data, supabase, get_access_cache(request))
    return service.list_products(
        category=category,
        variety=variety,
        min_price=min_price,
        max_price=max_price,
        search=search,
        include_inactive=show_hidden,
        limit=limit,
        offset=offset
    )


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(service: ProductService = Depends(get_product_service)):
    return service.get_categories()


@router.post("/compare", response_model=CompareResponse)
async def compare_products(
    request: Request,
    compare_data: CompareRequest,
    user_data: Optional[Dict] = Depends(get_optional_user),
    supabase: Client = Depends(get_supabase),
    service: ProductService = Depends(get_product_service)
):
    """Side-by-side comparison of up to 4 products; hidden products only for admins"""
    admin = is_admin(user_data, supabase, get_access_cache(request))
    return service.compare_products(compare_data.product_ids, include_inactive=admin)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    request: Request,
    product_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    supabase: Client = Depends(get_supabase),
    service: ProductService = Depends(get_product_service)
):
    admin = is_admin(user_data, supabase, get_access_cache(request))
    return service.get_product_by_id(product_id, include_inactive=admin)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    product_data: ProductCreate,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_product_service)
):
    """Create a product. The name is generated from category, sub-category and weight when omitted."""
    return service.create_product(product_data)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_product_service)
):
    return service.update_product(product_id, product_data)


@router.post("/{product_id}/toggle-visibility", response_model=ProductResponse)
async def toggle_product_visibility(
    product_id: str,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_product_service)
):
    """Show or hide a product on the storefront"""
    return service.toggle_visibility(product_id)


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_product_service)
):
    service.delete_product(product_id)
    return None
