"""
Seed Catalog Script
Populates the products table with the store's default catalog and optionally
grants the admin role to the user ids passed on the command line.

    python app/scripts/seed_catalog.py [ADMIN_USER_ID ...]
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.config.catalog_config import generate_product_name
from app.database.supabase_client import SupabaseClient
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_PRODUCTS = [
    {"category": "chawal", "sub_category": "basmati_chawal", "price": 85,
     "description": "Premium long-grain aromatic rice"},
    {"category": "chawal", "sub_category": "sona_masoori", "price": 55,
     "description": "Light, aromatic medium-grain rice"},
    {"category": "chawal", "sub_category": "parmal_chawal", "price": 45,
     "description": "Affordable everyday rice"},
    {"category": "chawal", "sub_category": "biryani_rice", "price": 75,
     "description": "Special rice for biryani dishes"},
    {"category": "chawal", "sub_category": "kataranj_chawal", "price": 65,
     "description": "Traditional aromatic rice"},
    {"category": "atta", "weight": "10kg", "price": 400,
     "description": "Fresh stone-ground wheat flour"},
    {"category": "chokar", "weight": "35kg", "price": 875,
     "description": "Wheat bran for health benefits"},
    {"category": "kapila", "sub_category": "special_kapila", "weight": "50kg", "price": 1750,
     "description": "High-quality cattle feed"},
]


def seed_products(supabase: Client):
    """Insert missing default products, refresh description/price of existing ones (matched by name)"""
    logger.info("Seeding products...")

    created_count = 0
    updated_count = 0

    for product in DEFAULT_PRODUCTS:
        name = generate_product_name(product["category"], product.get("sub_category"), product.get("weight"))
        try:
            existing = supabase.table("products")\
                .select("id")\
                .eq("name", name)\
                .execute()

            if existing.data:
                supabase.table("products")\
                    .update({
                        "description": product["description"],
                        "price": product["price"]
                    })\
                    .eq("name", name)\
                    .execute()
                updated_count += 1
                logger.debug(f"Updated product: {name}")
            else:
                supabase.table("products").insert({
                    "name": name,
                    "category": product["category"],
                    "sub_category": product.get("sub_category"),
                    "weight": product.get("weight"),
                    "price": product["price"],
                    "description": product["description"],
                    "stock": 100,
                    "discount": 0,
                    "is_active": True
                }).execute()
                created_count += 1
                logger.debug(f"Created product: {name}")
        except Exception as e:
            logger.error(f"Error processing product {name}: {e}")

    logger.info(f"Products seeded: {created_count} created, {updated_count} updated")
    return created_count + updated_count


def grant_admin(supabase: Client, user_ids: list):
    """Give each user id the admin role unless it already has it"""
    granted = 0
    for user_id in user_ids:
        try:
            existing = supabase.table("user_roles")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("role", "admin")\
                .execute()
            if existing.data:
                logger.info(f"User {user_id} is already an admin")
                continue
            supabase.table("user_roles").insert({"user_id": user_id, "role": "admin"}).execute()
            granted += 1
            logger.info(f"Granted admin role to {user_id}")
        except Exception as e:
            logger.error(f"Error granting admin role to {user_id}: {e}")
    return granted


def main():
    try:
        # Service role bypasses RLS, which only lets admins write products and roles
        supabase = SupabaseClient.get_service_client()

        logger.info("Starting catalog seeding...")
        product_count = seed_products(supabase)
        admin_count = grant_admin(supabase, sys.argv[1:])

        logger.info(f"Seeding completed successfully!")
        logger.info(f"Total: {product_count} products processed, {admin_count} admins granted")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
