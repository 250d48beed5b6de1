# Supabase table: user_roles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_roles:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: app_role enum ('admin', 'user') (not null)
- created_at: timestamp (default: now())
- unique constraint on (user_id, role)

A security-definer SQL function has_role(_user_id, _role) backs the row-level
security policies on products, orders and order_items.
"""
