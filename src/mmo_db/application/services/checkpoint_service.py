from __future__ import annotations

import logging

from mmo_db.application.services.game_database import GameDatabase
from mmo_db.domain.models.player import Player

logger = logging.getLogger(__name__)


class CheckpointService:
    def __init__(self, database: GameDatabase) -> None:
        self._database = database

    def checkpoint(self) -> int:
        """Save every online player in one transaction and return how many were saved."""
        players = self._database.online_registry.players()
        if not players:
            return 0
        self._database.character_save_many(players, online=True)
        logger.info("Checkpointed %s online character(s)", len(players))
        return len(players)

    def join(self, player: Player) -> None:
        self._database.online_registry.add(player)

    def logout(self, player: Player) -> None:
        self._database.character_save(player, online=False)
        self._database.online_registry.remove(player.name)
