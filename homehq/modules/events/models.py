# Supabase tables: events, event_participants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

events:
- id: uuid (primary key, default gen_random_uuid())
- family_id: uuid (foreign key to families.id, on delete cascade, not null)
- created_by: uuid (foreign key to profiles.id, on delete cascade, not null)
- title: text (not null, 1-200 characters)
- description: text (nullable)
- start_time: timestamptz (not null)
- end_time: timestamptz (not null, check end_time > start_time)
- is_private: boolean (not null, default: false)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now(), maintained by trigger)
- archived_at: timestamptz (nullable) - set on soft delete; archived rows are never read again

event_participants:
- id: uuid (primary key)
- event_id: uuid (foreign key to events.id, on delete cascade)
- profile_id: uuid (foreign key to profiles.id, on delete cascade, nullable)
- member_id: uuid (foreign key to family_members.id, on delete cascade, nullable)
- created_at: timestamptz (default: now())
- check: exactly one of profile_id / member_id is set
- unique (event_id, profile_id) and (event_id, member_id)

Visibility: rows of the caller's family that are not archived, and, for
private events, only to their creator. A trigger removes participants when
an event is made private.
"""
