# Supabase Auth + profiles
# Authentication itself is handled by Supabase Auth (auth.users, sessions, JWTs).
# The profiles table links an auth user to a family and is the only place
# family membership and role are read from.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

profiles:
- id: uuid (primary key, references auth.users.id, on delete cascade)
- family_id: uuid (foreign key to families.id, on delete cascade) - null until onboarding completes
- role: text (not null, default: 'member') - values: admin, member
- display_name: text (not null, non-blank)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (default: now())

A profile row is created by the create_family_and_assign_admin RPC when a user
founds a family; until then the resolver reports the user as "no_family".
"""
