from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from application.ports.user_store_port import UserStorePort
from domain.library import User, ValidationError
from infrastructure.persistence.postgres.in_memory_tables import InMemoryTables
from infrastructure.persistence.postgres.library_db import PostgresLibraryDatabase, row_to_dict

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, display_name, photo_url, created_at"


def user_from_row(row: Dict[str, Any]) -> User:
    return User(
        id=str(row["id"]),
        email=str(row.get("email") or ""),
        display_name=row.get("display_name"),
        photo_url=row.get("photo_url"),
        created_at=row.get("created_at"),
    )


def check_identity(user_id: Any, email: Any) -> tuple[str, str]:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValidationError("user id is required")
    mail = str(email or "").strip()
    if not mail:
        raise ValidationError("email is required")
    return uid, mail


def profile_changes(display_name: Optional[str], photo_url: Optional[str]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    if display_name is not None:
        changes["display_name"] = display_name.strip() or None
    if photo_url is not None:
        changes["photo_url"] = photo_url.strip() or None
    return changes


class InMemoryUserStore(UserStorePort):
    def __init__(self, *, tables: InMemoryTables) -> None:
        self._tables = tables

    async def get_user(self, user_id: str) -> Optional[User]:
        row = self._tables.table("users").get(str(user_id))
        return user_from_row(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        wanted = str(email or "").strip().lower()
        for row in self._tables.table("users").values():
            if row["email"].lower() == wanted:
                return user_from_row(row)
        return None

    async def sync_user(self, user_id: str, email: str, *, display_name: Optional[str] = None) -> User:
        uid, mail = check_identity(user_id, email)
        users = self._tables.table("users")
        if uid not in users:
            users[uid] = {
                "id": uid,
                "email": mail,
                "display_name": display_name,
                "photo_url": None,
                "created_at": self._tables.now(),
            }
        return user_from_row(users[uid])

    async def update_profile(
        self,
        user_id: str,
        *,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Optional[User]:
        row = self._tables.table("users").get(str(user_id))
        if row is None:
            return None
        row.update(profile_changes(display_name, photo_url))
        return user_from_row(row)


class PostgresUserStore(UserStorePort):
    def __init__(self, *, db: PostgresLibraryDatabase) -> None:
        self._db = db

    async def get_user(self, user_id: str) -> Optional[User]:
        async with self._db.connection("get user") as conn:
            row = await conn.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1", str(user_id))
        return user_from_row(row_to_dict(row)) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self._db.connection("get user by email") as conn:
            row = await conn.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE lower(email) = lower($1) ORDER BY created_at LIMIT 1",
                str(email or "").strip(),
            )
        return user_from_row(row_to_dict(row)) if row else None

    async def sync_user(self, user_id: str, email: str, *, display_name: Optional[str] = None) -> User:
        uid, mail = check_identity(user_id, email)
        async with self._db.connection("sync user") as conn:
            await conn.execute(
                """
                INSERT INTO users (id, email, display_name)
                VALUES ($1, $2, $3)
                ON CONFLICT (id) DO NOTHING
                """,
                uid,
                mail,
                display_name,
            )
            row = await conn.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1", uid)
        if not row:
            raise RuntimeError("failed to sync user")
        return user_from_row(row_to_dict(row))

    async def update_profile(
        self,
        user_id: str,
        *,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Optional[User]:
        changes = profile_changes(display_name, photo_url)
        if not changes:
            return await self.get_user(user_id)
        assignments = [f"{col} = ${idx}" for idx, col in enumerate(changes, start=2)]
        async with self._db.connection("update profile") as conn:
            row = await conn.fetchrow(
                f"UPDATE users SET {', '.join(assignments)} WHERE id = $1 RETURNING {_USER_COLUMNS}",
                str(user_id),
                *changes.values(),
            )
        return user_from_row(row_to_dict(row)) if row else None
