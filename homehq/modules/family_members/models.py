# Supabase table: family_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

family_members (people without an account, e.g. children):
- id: uuid (primary key, default gen_random_uuid())
- family_id: uuid (foreign key to families.id, on delete cascade, not null)
- name: text (not null, non-blank)
- is_admin: boolean (not null, default: false) - stored, not enforced
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())

Rows are removed with a hard delete; event_participants rows that point at
the member go with it (on delete cascade).
"""
