from __future__ import annotations

from typing import Dict, List, Optional

from mmo_db.domain.models.player import Player


class OnlineRegistry:
    """Live player entities currently in the world, keyed by character name."""

    def __init__(self) -> None:
        self._players: Dict[str, Player] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._players

    def __len__(self) -> int:
        return len(self._players)

    def add(self, player: Player) -> None:
        self._players[player.name] = player

    def remove(self, name: str) -> Optional[Player]:
        return self._players.pop(name, None)

    def get(self, name: str) -> Optional[Player]:
        return self._players.get(name)

    def players(self) -> List[Player]:
        return list(self._players.values())
