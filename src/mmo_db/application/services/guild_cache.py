from __future__ import annotations

import logging
from typing import Dict, List, Optional

from mmo_db.domain.models.guild import Guild

logger = logging.getLogger(__name__)


class GuildCache:
    """Guilds resident in this process, populated when their first member logs in."""

    def __init__(self) -> None:
        self._guilds: Dict[str, Guild] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._guilds

    def __len__(self) -> int:
        return len(self._guilds)

    def get(self, name: str) -> Optional[Guild]:
        return self._guilds.get(name)

    def put(self, guild: Guild) -> Guild:
        self._guilds[guild.name] = guild
        return guild

    def evict(self, name: str) -> Optional[Guild]:
        guild = self._guilds.pop(name, None)
        if guild is not None:
            logger.debug("Evicted guild from cache", extra={"guild": name})
        return guild

    def clear(self) -> None:
        self._guilds.clear()

    def names(self) -> List[str]:
        return sorted(self._guilds)
