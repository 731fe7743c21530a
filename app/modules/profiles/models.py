# Supabase tables: profiles, auth.users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id) - the user id, there is no separate user_id column
- full_name: text (nullable)
- email: text (nullable) - synced from auth.users
- avatar_url: text (nullable)
- store_name: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows are created by the handle_new_user trigger on auth.users insert.
Creating them from the application would race the trigger, so this module
only reads and updates existing rows.
"""
