# Supabase tables: stores, store_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

stores:
- id: uuid (primary key)
- owner_id: uuid (references auth.users.id, not null)
- name: text (not null)
- whatsapp: text (nullable)
- primary_color: text (nullable)
- logo_url: text (nullable)
- onboarding_completed_at: timestamp (nullable) - set when the onboarding flow finishes
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

store_members:
- id: uuid (primary key)
- store_id: uuid (foreign key to stores.id, not null)
- user_id: uuid (references auth.users.id, not null)
- role: text (not null, default: 'member') - values: owner, member
- created_at: timestamp (default: now())

Both tables are populated by the handle_new_user trigger / onboarding flow.
This service never inserts into them: at least one store_members row for a
user is the signal that the user has a store.
"""
