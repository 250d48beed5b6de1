# Supabase tables: orders, order_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

orders:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users)
- total: numeric (not null) - subtotal at server prices plus delivery fee
- status: text (default: 'pending') - pending | confirmed | shipped | delivered | cancelled
- shipping_address: jsonb (nullable) - {fullName, address, city, pinCode, landmark}; null for pickup
- delivery_method: text (nullable) - standard | express | pickup
- phone: text (nullable)
- notes: text (nullable) - customer notes
- admin_notes: text (nullable)
- cancellation_reason: text (nullable)
- cancelled_by: text (nullable) - 'user' | 'admin'
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

order_items:
- id: uuid (primary key)
- order_id: uuid (foreign key to orders.id)
- product_id: uuid (foreign key to products.id)
- quantity: integer (not null, >= 1)
- price: numeric (not null) - unit price at the time of checkout

Row-level security: customers select/insert their own orders and may update
them only to cancel; admins (has_role(auth.uid(), 'admin')) manage all rows.
Updates on orders are published on the realtime change feed.
"""
