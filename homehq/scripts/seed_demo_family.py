"""
Seed Demo Family Script
Creates a demo family with two accounts, a child without an account, an
event and a couple of tasks. Used by the in-memory backend at start-up
(SEED_DEMO_DATA=true) and can be run manually against a Supabase project:

    python -m homehq.scripts.seed_demo_family

Running it against Supabase needs SUPABASE_SERVICE_ROLE_KEY.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from supabase import Client, create_client

from homehq.config.settings import settings
from homehq.core.validation import format_iso_datetime

logger = logging.getLogger(__name__)

DEMO_FAMILY: Dict[str, Any] = {
    "name": "The Demo Family",
    "password": "password123",
    "accounts": [
        {"email": "alex@example.com", "display_name": "Alex", "role": "admin"},
        {"email": "sam@example.com", "display_name": "Sam", "role": "member"},
    ],
    "members": [
        {"name": "Robin", "is_admin": False},
    ],
}


def _create_account(supabase: Client, email: str, password: str, display_name: str) -> Optional[str]:
    try:
        result = supabase.auth.admin.create_user({
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"display_name": display_name},
        })
    except Exception as e:
        logger.warning(f"Skipping account {email}: {e}")
        return None
    return result.user.id


def seed_demo_family(supabase: Client) -> Optional[str]:
    """Create the demo family and return its id (None if the admin already exists)"""
    admin, *others = DEMO_FAMILY["accounts"]
    admin_id = _create_account(supabase, admin["email"], DEMO_FAMILY["password"], admin["display_name"])
    if admin_id is None:
        logger.info("Demo family already seeded")
        return None

    family_id = supabase.rpc("create_family_and_assign_admin", {
        "user_id": admin_id,
        "family_name": DEMO_FAMILY["name"],
        "user_display_name": admin["display_name"],
    }).execute().data
    logger.info(f"Created family {family_id} with admin {admin['email']}")

    profile_ids = [admin_id]
    for account in others:
        user_id = _create_account(supabase, account["email"], DEMO_FAMILY["password"], account["display_name"])
        if user_id is None:
            continue
        supabase.table("profiles").insert({
            "id": user_id,
            "family_id": family_id,
            "role": account["role"],
            "display_name": account["display_name"],
        }).execute()
        profile_ids.append(user_id)

    members = supabase.table("family_members").insert([
        {"family_id": family_id, **member} for member in DEMO_FAMILY["members"]
    ]).execute().data

    start = (datetime.now(timezone.utc) + timedelta(days=3)).replace(hour=16, minute=0, second=0, microsecond=0)
    event = supabase.table("events").insert({
        "family_id": family_id,
        "created_by": admin_id,
        "title": "Robin's Birthday Party",
        "description": "Cake in the garden",
        "start_time": format_iso_datetime(start),
        "end_time": format_iso_datetime(start + timedelta(hours=3)),
        "is_private": False,
    }).execute().data[0]
    supabase.table("event_participants").insert(
        [{"event_id": event["id"], "profile_id": pid} for pid in profile_ids]
        + [{"event_id": event["id"], "member_id": m["id"]} for m in members]
    ).execute()

    supabase.table("tasks").insert([
        {
            "family_id": family_id,
            "created_by": admin_id,
            "title": "Buy a gift",
            "due_date": format_iso_datetime(start + timedelta(days=7)),
            "event_id": event["id"],
            "suggestion_id": "birthday",
            "created_from_suggestion": True,
            "is_private": False,
        },
        {
            "family_id": family_id,
            "created_by": admin_id,
            "title": "Renew car insurance",
            "due_date": None,
            "assigned_to": profile_ids[-1],
            "is_private": False,
        },
    ]).execute()

    logger.info(f"Demo family seeded: {len(profile_ids)} accounts, {len(members)} members, 1 event, 2 tasks")
    return family_id


def main():
    """Main seeding function"""
    if not settings.supabase_url or not settings.supabase_service_role_key:
        logger.error("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        return 1
    supabase = create_client(settings.supabase_url, settings.supabase_service_role_key)
    try:
        seed_demo_family(supabase)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(main())
