"""
In-memory stand-in for the Supabase client.

Implements the part of the supabase-py surface the services use (table
queries, the family RPC and the auth calls) on top of plain dicts, so the
app can run locally without a Supabase project and tests can exercise the
real services. Row-level security is not emulated; the services perform
their own family and ownership checks.
"""

import copy
import re
import secrets
import threading
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import AuthApiError

_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")

# Column defaults applied on insert, mirroring the table definitions
TABLE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "families": {"updated_at": None},
    "profiles": {"family_id": None, "role": "member", "updated_at": None},
    "family_members": {"is_admin": False, "updated_at": None},
    "events": {
        "description": None,
        "is_private": False,
        "updated_at": None,
        "archived_at": None,
    },
    "event_participants": {"profile_id": None, "member_id": None},
    "tasks": {
        "due_date": None,
        "assigned_to": None,
        "is_private": False,
        "is_completed": False,
        "completed_at": None,
        "completed_by": None,
        "event_id": None,
        "suggestion_id": None,
        "created_from_suggestion": False,
        "updated_at": None,
        "archived_at": None,
    },
}

# ON DELETE behaviour: parent table -> [(child table, column, action)]
FOREIGN_KEYS: Dict[str, List[Tuple[str, str, str]]] = {
    "families": [
        ("profiles", "family_id", "cascade"),
        ("family_members", "family_id", "cascade"),
        ("events", "family_id", "cascade"),
        ("tasks", "family_id", "cascade"),
    ],
    "profiles": [
        ("event_participants", "profile_id", "cascade"),
        ("tasks", "assigned_to", "set null"),
        ("tasks", "completed_by", "set null"),
    ],
    "family_members": [("event_participants", "member_id", "cascade")],
    "events": [
        ("event_participants", "event_id", "cascade"),
        ("tasks", "event_id", "set null"),
    ],
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _comparable(value: Any) -> Any:
    if isinstance(value, str) and _ISO_PREFIX.match(value):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


def _literal(value: str) -> Any:
    """Convert a PostgREST filter literal (``true``, ``null``...) to Python."""
    lowered = value.lower()
    if lowered == "null":
        return None
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return value


class InMemoryResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


class _InMemoryQuery:
    def __init__(self, store: "InMemorySupabase", table: str):
        self._store = store
        self._table = table
        self._operation = "select"
        self._columns: Optional[List[str]] = None
        self._payload: Any = None
        self._filters: List[Callable[[dict], bool]] = []
        self._orders: List[Tuple[str, bool, Optional[bool]]] = []
        self._range: Optional[Tuple[int, int]] = None
        self._limit: Optional[int] = None
        self._single = False
        self._maybe_single = False
        self._count: Optional[str] = None

    # Operations

    def select(self, columns: str = "*", count: Optional[str] = None) -> "_InMemoryQuery":
        names = [c.strip() for c in columns.split(",") if c.strip()]
        self._columns = None if names == ["*"] else names
        self._count = count
        return self

    def insert(self, rows: Any) -> "_InMemoryQuery":
        self._operation = "insert"
        self._payload = rows
        return self

    def update(self, values: Dict[str, Any]) -> "_InMemoryQuery":
        self._operation = "update"
        self._payload = values
        return self

    def delete(self) -> "_InMemoryQuery":
        self._operation = "delete"
        return self

    # Filters

    def _add(self, column: str, predicate: Callable[[Any], bool]) -> "_InMemoryQuery":
        self._filters.append(lambda row: predicate(row.get(column)))
        return self

    def eq(self, column: str, value: Any) -> "_InMemoryQuery":
        return self._add(column, lambda v: v == value)

    def neq(self, column: str, value: Any) -> "_InMemoryQuery":
        return self._add(column, lambda v: v != value)

    def gt(self, column: str, value: Any) -> "_InMemoryQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) > _comparable(value))

    def gte(self, column: str, value: Any) -> "_InMemoryQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) >= _comparable(value))

    def lt(self, column: str, value: Any) -> "_InMemoryQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) < _comparable(value))

    def lte(self, column: str, value: Any) -> "_InMemoryQuery":
        return self._add(column, lambda v: v is not None and _comparable(v) <= _comparable(value))

    def is_(self, column: str, value: Any) -> "_InMemoryQuery":
        expected = _literal(value) if isinstance(value, str) else value
        return self._add(column, lambda v: v is expected or v == expected)

    def in_(self, column: str, values: List[Any]) -> "_InMemoryQuery":
        allowed = list(values)
        return self._add(column, lambda v: v in allowed)

    def or_(self, filters: str) -> "_InMemoryQuery":
        """Supports ``col.eq.value`` / ``col.neq.value`` / ``col.is.null`` terms."""
        terms = []
        for term in filters.split(","):
            column, operator, raw = term.strip().split(".", 2)
            terms.append((column, operator, _literal(raw)))

        def matches(row: dict) -> bool:
            for column, operator, expected in terms:
                actual = row.get(column)
                if operator in ("eq", "is") and actual == expected:
                    return True
                if operator == "neq" and actual != expected:
                    return True
            return False

        self._filters.append(matches)
        return self

    # Modifiers

    def order(self, column: str, *, desc: bool = False, nullsfirst: Optional[bool] = None, **_: Any) -> "_InMemoryQuery":
        self._orders.append((column, desc, nullsfirst))
        return self

    def range(self, start: int, end: int) -> "_InMemoryQuery":
        self._range = (start, end)
        return self

    def limit(self, size: int) -> "_InMemoryQuery":
        self._limit = size
        return self

    def single(self) -> "_InMemoryQuery":
        self._single = True
        return self

    def maybe_single(self) -> "_InMemoryQuery":
        self._maybe_single = True
        return self

    # Execution

    def execute(self) -> Optional[InMemoryResponse]:
        with self._store.lock:
            if self._operation == "insert":
                rows = self._store.insert_rows(self._table, self._payload)
            elif self._operation == "update":
                rows = self._store.update_rows(self._table, self._matching(), self._payload)
            elif self._operation == "delete":
                rows = self._store.delete_rows(self._table, self._matching())
            else:
                return self._execute_select()
            return InMemoryResponse([copy.deepcopy(r) for r in rows])

    def _matching(self) -> List[dict]:
        return [row for row in self._store.tables.setdefault(self._table, []) if all(f(row) for f in self._filters)]

    def _execute_select(self) -> Optional[InMemoryResponse]:
        rows = self._matching()
        for column, desc, nullsfirst in reversed(self._orders):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: _comparable(r[column]), reverse=desc)
            # Postgres default: NULLS LAST for ASC, NULLS FIRST for DESC
            nulls_first = desc if nullsfirst is None else nullsfirst
            rows = missing + present if nulls_first else present + missing
        total = len(rows)
        if self._range is not None:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]
        projected = [self._project(r) for r in rows]
        count = total if self._count else None

        if self._single:
            if len(projected) != 1:
                raise APIError({
                    "code": "PGRST116",
                    "message": "JSON object requested, multiple (or no) rows returned",
                    "details": f"The result contains {len(projected)} rows",
                    "hint": None,
                })
            return InMemoryResponse(projected[0], count)
        if self._maybe_single:
            if not projected:
                return None
            return InMemoryResponse(projected[0], count)
        return InMemoryResponse(projected, count)

    def _project(self, row: dict) -> dict:
        if self._columns is None:
            return copy.deepcopy(row)
        return {c: copy.deepcopy(row.get(c)) for c in self._columns}


class _InMemoryRpc:
    def __init__(self, store: "InMemorySupabase", fn: str, params: Dict[str, Any]):
        self._store = store
        self._fn = fn
        self._params = params

    def execute(self) -> InMemoryResponse:
        handler = getattr(self._store, f"_rpc_{self._fn}", None)
        if handler is None:
            raise APIError({"code": "PGRST202", "message": f"Could not find the function {self._fn}", "details": None, "hint": None})
        with self._store.lock:
            return InMemoryResponse(handler(**self._params))


class _InMemoryAdmin:
    """``auth.admin`` subset used by the seed script."""

    def __init__(self, auth: "_InMemoryAuth"):
        self._auth = auth

    def create_user(self, attributes: Dict[str, Any]) -> SimpleNamespace:
        email = attributes["email"]
        if any(u["email"] == email for u in self._auth.users.values()):
            raise AuthApiError("A user with this email address has already been registered", 422, "email_exists")
        user_id, _ = self._auth.add_user(email, attributes.get("password", "password"),
                                         user_metadata=attributes.get("user_metadata"))
        return SimpleNamespace(user=self._auth._as_user(self._auth.users[user_id]))


class _InMemoryAuth:
    def __init__(self, store: "InMemorySupabase"):
        self._store = store
        self.users: Dict[str, dict] = {}
        self.tokens: Dict[str, str] = {}
        self.admin = _InMemoryAdmin(self)

    def _as_user(self, user: dict) -> SimpleNamespace:
        return SimpleNamespace(
            id=user["id"],
            email=user["email"],
            user_metadata=user.get("user_metadata") or {},
            app_metadata=user.get("app_metadata") or {},
            created_at=user["created_at"],
            updated_at=user.get("updated_at"),
        )

    def add_user(self, email: str, password: str = "password", user_id: Optional[str] = None,
                 user_metadata: Optional[dict] = None) -> Tuple[str, str]:
        """Register a user directly and return ``(user_id, access_token)``."""
        user_id = user_id or str(uuid.uuid4())
        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "password": password,
            "user_metadata": user_metadata or {},
            "app_metadata": {},
            "created_at": utc_now_iso(),
        }
        return user_id, self.issue_token(user_id)

    def issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(24)
        self.tokens[token] = user_id
        return token

    def get_user(self, jwt: Optional[str] = None) -> SimpleNamespace:
        user_id = self.tokens.get(jwt or "")
        if user_id is None or user_id not in self.users:
            raise AuthApiError("invalid JWT: unable to parse or verify signature", 403, "bad_jwt")
        return SimpleNamespace(user=self._as_user(self.users[user_id]))

    def sign_up(self, credentials: Dict[str, Any]) -> SimpleNamespace:
        email = credentials["email"]
        if any(u["email"] == email for u in self.users.values()):
            raise AuthApiError("User already registered", 422, "user_already_exists")
        metadata = (credentials.get("options") or {}).get("data") or {}
        user_id, token = self.add_user(email, credentials["password"], user_metadata=metadata)
        return SimpleNamespace(
            user=self._as_user(self.users[user_id]),
            session=SimpleNamespace(access_token=token),
        )

    def sign_in_with_password(self, credentials: Dict[str, Any]) -> SimpleNamespace:
        for user in self.users.values():
            if user["email"] == credentials["email"] and user["password"] == credentials["password"]:
                return SimpleNamespace(
                    user=self._as_user(user),
                    session=SimpleNamespace(access_token=self.issue_token(user["id"])),
                )
        raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")

    def sign_out(self) -> None:
        return None


class InMemorySupabase:
    """Dict-backed client; also acts as its own gateway (``client_for``)."""

    def __init__(self):
        self.lock = threading.RLock()
        self.tables: Dict[str, List[dict]] = {}
        self.auth = _InMemoryAuth(self)

    # Gateway surface

    def get_client(self) -> "InMemorySupabase":
        return self

    def client_for(self, token: Optional[str]) -> "InMemorySupabase":
        return self

    def close(self):
        with self.lock:
            self.tables.clear()

    # Client surface

    def table(self, name: str) -> _InMemoryQuery:
        return _InMemoryQuery(self, name)

    def rpc(self, fn: str, params: Optional[Dict[str, Any]] = None) -> _InMemoryRpc:
        return _InMemoryRpc(self, fn, params or {})

    # Storage

    def insert_rows(self, table: str, payload: Any) -> List[dict]:
        rows = payload if isinstance(payload, list) else [payload]
        existing = self.tables.setdefault(table, [])
        inserted = []
        for raw in rows:
            row = dict(TABLE_DEFAULTS.get(table, {}))
            row.update(copy.deepcopy(raw))
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", utc_now_iso())
            if any(r["id"] == row["id"] for r in existing):
                raise APIError({
                    "code": "23505",
                    "message": f'duplicate key value violates unique constraint "{table}_pkey"',
                    "details": None,
                    "hint": None,
                })
            inserted.append(row)
        existing.extend(inserted)
        return inserted

    def update_rows(self, table: str, rows: List[dict], values: Dict[str, Any]) -> List[dict]:
        for row in rows:
            row.update(copy.deepcopy(values))
            if "updated_at" in row and "updated_at" not in values:
                row["updated_at"] = utc_now_iso()
        return rows

    def delete_rows(self, table: str, rows: List[dict]) -> List[dict]:
        ids = {r["id"] for r in rows}
        self.tables[table] = [r for r in self.tables.get(table, []) if r["id"] not in ids]
        for child, column, action in FOREIGN_KEYS.get(table, []):
            dependents = [r for r in self.tables.get(child, []) if r.get(column) in ids]
            if action == "cascade":
                self.delete_rows(child, dependents)
            else:
                for r in dependents:
                    r[column] = None
        return rows

    def _rpc_create_family_and_assign_admin(self, user_id: str, family_name: str, user_display_name: str) -> str:
        profiles = self.tables.setdefault("profiles", [])
        existing = next((p for p in profiles if p["id"] == user_id), None)
        if existing is not None and existing.get("family_id"):
            raise APIError({"code": "P0001", "message": "user already belongs to a family", "details": None, "hint": None})
        family = self.insert_rows("families", {"name": family_name})[0]
        if existing is not None:
            self.update_rows("profiles", [existing], {
                "family_id": family["id"],
                "role": "admin",
                "display_name": user_display_name,
            })
        else:
            self.insert_rows("profiles", {
                "id": user_id,
                "family_id": family["id"],
                "role": "admin",
                "display_name": user_display_name,
            })
        return family["id"]
