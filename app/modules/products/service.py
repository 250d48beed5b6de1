from supabase import Client
from app.modules.products.schemas import (
    ProductCreate, ProductUpdate, ProductResponse, CategoriesResponse, CompareResponse,
    check_catalog_placement
)
from app.config.catalog_config import PRODUCT_CATEGORIES
from typing import List, Optional, Dict, Any, Iterable
from fastapi import HTTPException
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def collect_specification_keys(products: Iterable[ProductResponse]) -> List[str]:
    """Union of specification keys across products, in first-seen order"""
    keys: List[str] = []
    for product in products:
        for key in (product.specifications or {}):
            if key not in keys:
                keys.append(key)
    return keys


class ProductService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_products(
        self,
        category: Optional[str] = None,
        variety: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
        limit: int = 100,
        offset: int = 0
    ) -> List[ProductResponse]:
        """List catalog products, newest first"""
        try:
            query = self.supabase.table("products").select("*")

            if not include_inactive:
                query = query.eq("is_active", True)
            if category and category != "All":
                query = query.eq("category", category)
            if variety:
                query = query.eq("name", variety)
            if min_price is not None:
                query = query.gte("price", min_price)
            if max_price is not None:
                query = query.lte("price", max_price)
            if search and search.strip():
                query = query.ilike("name", f"%{search.strip()}%")

            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()

            return [ProductResponse(**p) for p in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_all_active(self) -> List[ProductResponse]:
        """Every visible product, used to build AI prompts"""
        try:
            result = self.supabase.table("products")\
                .select("*")\
                .eq("is_active", True)\
                .order("created_at", desc=True)\
                .execute()
            return [ProductResponse(**p) for p in (result.data or [])]
        except Exception as e:
            logger.error(f"Database error fetching products: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch products")

    def get_categories(self) -> CategoriesResponse:
        """Distinct categories in use, prefixed with "All", plus the static category tree"""
        try:
            result = self.supabase.table("products")\
                .select("category")\
                .eq("is_active", True)\
                .execute()
            categories = ["All"]
            for row in result.data or []:
                category = row.get("category")
                if category and category not in categories:
                    categories.append(category)
            return CategoriesResponse(categories=categories, catalog=PRODUCT_CATEGORIES)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_product_by_id(self, product_id: str, include_inactive: bool = True) -> ProductResponse:
        """Get product by ID"""
        try:
            result = self.supabase.table("products")\
                .select("*")\
                .eq("id", product_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Product not found")
            if not include_inactive and result.data.get("is_active") is False:
                raise HTTPException(status_code=404, detail="Product not found")

            return ProductResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_products_by_ids(self, product_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Raw product rows keyed by id; missing ids are simply absent"""
        if not product_ids:
            return {}
        result = self.supabase.table("products")\
            .select("*")\
            .in_("id", list(product_ids))\
            .execute()
        return {p["id"]: p for p in (result.data or [])}

    def compare_products(self, product_ids: List[str], include_inactive: bool = False) -> CompareResponse:
        """Products side by side (in request order) with the union of their specification keys"""
        try:
            rows = self.get_products_by_ids(product_ids)
            if not include_inactive:
                rows = {pid: p for pid, p in rows.items() if p.get("is_active") is not False}
            missing = [pid for pid in product_ids if pid not in rows]
            if missing:
                raise HTTPException(status_code=404, detail=f"Product not found: {missing[0]}")
            products = [ProductResponse(**rows[pid]) for pid in product_ids]
            return CompareResponse(
                products=products,
                specification_keys=collect_specification_keys(products)
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_product(self, product_data: ProductCreate) -> ProductResponse:
        """Create a new product"""
        try:
            insert_data = product_data.model_dump()
            insert_data["images"] = insert_data.get("images") or None

            result = self.supabase.table("products").insert(insert_data).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create product")

            logger.info(f"Created product {result.data[0]['id']} ({insert_data['name']})")
            return ProductResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_product(self, product_id: str, product_data: ProductUpdate) -> ProductResponse:
        """Update product; category/sub-category/weight are re-checked against the merged row"""
        try:
            existing = self.get_product_by_id(product_id)
            update_data = product_data.model_dump(exclude_unset=True)

            if not update_data:
                return existing

            if {"category", "sub_category", "weight"} & update_data.keys():
                merged = existing.model_dump()
                merged.update(update_data)
                try:
                    check_catalog_placement(merged.get("category"), merged.get("sub_category"), merged.get("weight"))
                except ValueError as e:
                    raise HTTPException(status_code=400, detail=str(e))

            if "images" in update_data and not update_data.get("image_url") and not existing.image_url:
                images = update_data["images"] or []
                update_data["image_url"] = images[0] if images else None

            update_data["updated_at"] = datetime.utcnow().isoformat()

            result = self.supabase.table("products")\
                .update(update_data)\
                .eq("id", product_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Product not found")

            return ProductResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_visibility(self, product_id: str) -> ProductResponse:
        """Flip is_active"""
        try:
            existing = self.get_product_by_id(product_id)
            new_state = not (existing.is_active if existing.is_active is not None else True)
            result = self.supabase.table("products")\
                .update({"is_active": new_state, "updated_at": datetime.utcnow().isoformat()})\
                .eq("id", product_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Product not found")

            logger.info(f"Product {product_id} {'activated' if new_state else 'deactivated'}")
            return ProductResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_product(self, product_id: str) -> bool:
        """Delete product"""
        try:
            result = self.supabase.table("products")\
                .delete()\
                .eq("id", product_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Product not found")

            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def adjust_stock(self, items: Iterable[Dict[str, Any]], action: str) -> None:
        """Reduce or restore stock for order line items.
        Products with untracked (null) stock are left alone; reductions floor at 0."""
        for item in items:
            try:
                result = self.supabase.table("products")\
                    .select("id, stock")\
                    .eq("id", item["product_id"])\
                    .maybe_single()\
                    .execute()
                if not result or not result.data or result.data.get("stock") is None:
                    continue
                stock = result.data["stock"]
                if action == "reduce":
                    new_stock = max(0, stock - item["quantity"])
                else:
                    new_stock = stock + item["quantity"]
                self.supabase.table("products")\
                    .update({"stock": new_stock})\
                    .eq("id", item["product_id"])\
                    .execute()
            except Exception as e:
                logger.error(f"Error updating stock for product {item.get('product_id')}: {e}")
