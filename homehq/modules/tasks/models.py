# Supabase table: tasks
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

tasks:
- id: uuid (primary key, default gen_random_uuid())
- family_id: uuid (foreign key to families.id, on delete cascade, not null)
- created_by: uuid (foreign key to profiles.id, on delete set null)
- assigned_to: uuid (foreign key to profiles.id, on delete set null, nullable) - same family as the task
- title: text (not null, non-blank)
- due_date: timestamptz (nullable)
- is_completed: boolean (not null, default: false)
- completed_at: timestamptz (nullable)
- completed_by: uuid (foreign key to profiles.id, on delete set null, nullable)
- is_private: boolean (not null, default: false)
- event_id: uuid (foreign key to events.id, on delete set null, nullable)
- suggestion_id: text (nullable) - id of the suggestion rule the task came from
- created_from_suggestion: boolean (not null, default: false)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())
- archived_at: timestamptz (nullable)

Visibility: non-archived tasks of the caller's family; private tasks only to
their creator. When an event is archived, its tasks keep existing with
event_id cleared.
"""
