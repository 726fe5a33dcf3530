from __future__ import annotations

from typing import List, Optional, Protocol

from domain.library import ListItem, ListItemPatch, ListItemView, ListPatch, ListWithItems, UserList


class ListStorePort(Protocol):
    async def lists_by_user(self, user_id: str) -> List[UserList]:
        ...

    async def get_list(self, list_id: int) -> Optional[UserList]:
        ...

    async def get_list_with_items(
        self,
        list_id: int,
        *,
        viewer_user_id: Optional[str] = None,
    ) -> Optional[ListWithItems]:
        """List with items joined to media and the viewer's watched rating.

        The rating is looked up by (viewer, media), so the same media shows the
        same rating in every list. Without a viewer every rating is None.
        """
        ...

    async def create_list(
        self,
        user_id: str,
        name: str,
        *,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> UserList:
        ...

    async def update_list(self, list_id: int, patch: ListPatch) -> Optional[UserList]:
        ...

    async def delete_list(self, list_id: int) -> None:
        ...

    async def add_item(
        self,
        list_id: int,
        media_id: int,
        *,
        status: str = "watched",
        seasons_watched: Optional[int] = None,
    ) -> ListItem:
        """Raises ConflictError if the media is already in the list."""
        ...

    async def update_item(self, list_item_id: int, patch: ListItemPatch) -> Optional[ListItem]:
        ...

    async def remove_item(self, list_id: int, media_id: int) -> None:
        ...

    async def lists_containing(self, user_id: str, media_id: int) -> List[int]:
        ...

    async def recent_items_by_user(self, user_id: str, *, limit: int) -> List[tuple[ListItemView, UserList]]:
        """Items added to any of the user's lists, newest first."""
        ...
