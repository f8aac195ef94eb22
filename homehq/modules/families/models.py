# Supabase tables: families (+ profiles, see modules/auth/models.py)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

families:
- id: uuid (primary key, default gen_random_uuid())
- name: text (not null, non-blank)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())

Database function:

create_family_and_assign_admin(user_id uuid, family_name text, user_display_name text) returns uuid
- inserts the family and the caller's profile (role = 'admin') in one transaction
- raises if the user already has a profile in a family
- returns the new family id
"""
