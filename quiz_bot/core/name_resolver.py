"""Resolves chat user ids to display names for leaderboards."""

from __future__ import annotations

import logging

from quiz_bot.core.errors import StoreUnavailableError
from quiz_bot.core.stores.base import NameDirectory

logger = logging.getLogger(__name__)


def placeholder_name(user_id: str) -> str:
    """Name used when the chat never told us a username for ``user_id``."""
    return f"User{user_id}"


class NameResolver:
    """Looks names up in a directory, falling back to ``User<id>``."""

    def __init__(self, directory: NameDirectory) -> None:
        self._directory = directory

    async def remember(self, user_id: str, username: str | None) -> str:
        name = (username or "").strip().lstrip("@") or placeholder_name(user_id)
        await self._directory.remember(user_id, name)
        return name

    async def resolve(self, user_id: str) -> str:
        try:
            name = await self._directory.lookup(user_id)
        except StoreUnavailableError:
            logger.warning("Name lookup failed for user %s; using placeholder", user_id)
            return placeholder_name(user_id)
        return name or placeholder_name(user_id)
