from __future__ import annotations

from typing import Optional, Protocol

from domain.library import User


class UserStorePort(Protocol):
    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    async def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    async def sync_user(self, user_id: str, email: str, *, display_name: Optional[str] = None) -> User:
        """Insert on first sign-in; return the stored user otherwise."""
        ...

    async def update_profile(
        self,
        user_id: str,
        *,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
    ) -> Optional[User]:
        ...
