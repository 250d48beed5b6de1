# Supabase table: products
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- price: numeric (not null, > 0)
- image_url: text (nullable) - primary image, defaults to images[0]
- images: text[] (nullable)
- stock: integer (nullable) - null means stock is not tracked
- category: text (nullable) - value from catalog_config.PRODUCT_CATEGORIES
- sub_category: text (nullable)
- weight: text (nullable) - e.g. "25kg"
- discount: numeric (nullable, 0..100 percent)
- is_active: boolean (default: true) - hidden from the storefront when false
- specifications: jsonb (nullable) - free-form key/value pairs for comparison
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Row-level security: anyone may select; only has_role(auth.uid(), 'admin') may
insert/update/delete. Inserts are published on the realtime change feed.
"""
