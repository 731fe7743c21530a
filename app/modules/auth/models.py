# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - User login and session management (email/password and OAuth providers)
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Inserting into auth.users fires the handle_new_user trigger, which creates
the matching profiles row (and, depending on the migration, the store and
its owner store_members row). full_name and store_name passed as user
metadata on sign up are read by that trigger.
"""
