# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- username: text (nullable)
- email: text (nullable) - synced from auth.users
- phone: text (nullable)
- saved_addresses: jsonb (nullable) - array of
    {id, label, landmark, village, pincode, is_default}
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows are created by the handle_new_user trigger on auth.users insert.
"""
