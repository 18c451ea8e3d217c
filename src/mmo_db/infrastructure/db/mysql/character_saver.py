from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Optional

from sqlalchemy import DateTime

from mmo_db.application.services.persistence_hooks import PersistenceHooks
from mmo_db.domain.events import CharacterSaved
from mmo_db.domain.models.item import ItemSlot
from mmo_db.domain.models.player import Player
from mmo_db.domain.time_base import make_server_clock, utc_now
from .query import Command, upsert_statement
from .transaction import TransactionCoordinator

logger = logging.getLogger(__name__)

CHARACTER_COLUMNS = (
    "name",
    "account",
    "classname",
    "x",
    "y",
    "z",
    "level",
    "health",
    "mana",
    "strength",
    "intelligence",
    "experience",
    "skillExperience",
    "gold",
    "coins",
    "online",
    "lastsaved",
)


class CharacterSaver:
    """Writes a player's full aggregate to the character tables.

    Child collections are replaced wholesale on every save: existing rows for
    the character are deleted, then the occupied entries are inserted again.
    """

    def __init__(
        self,
        coordinator: TransactionCoordinator,
        *,
        hooks: Optional[PersistenceHooks] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._coordinator = coordinator
        self._hooks = hooks or PersistenceHooks()
        self._clock = clock or make_server_clock()

    def save(self, player: Player, online: bool) -> None:
        self._coordinator.run(lambda command: self.save_in(command, player, online))

    def save_many(self, players: Iterable[Player], online: bool = True) -> int:
        def _save_all(command: Command) -> int:
            count = 0
            for player in players:
                self.save_in(command, player, online)
                count += 1
            return count

        return self._coordinator.run(_save_all)

    def save_in(self, command: Command, player: Player, online: bool) -> None:
        now = self._clock()
        command.execute(
            upsert_statement(command.dialect, "characters", CHARACTER_COLUMNS, ("name",), lastsaved=DateTime()),
            {
                "name": player.name,
                "account": player.account,
                "classname": player.class_name,
                "x": float(player.position.x),
                "y": float(player.position.y),
                "z": float(player.position.z),
                "level": int(player.level),
                "health": int(player.health),
                "mana": int(player.mana),
                "strength": int(player.strength),
                "intelligence": int(player.intelligence),
                "experience": int(player.experience),
                "skillExperience": int(player.skill_experience),
                "gold": int(player.gold),
                "coins": int(player.coins),
                "online": bool(online),
                "lastsaved": utc_now(),
            },
        )
        self._save_item_slots(command, "character_inventory", player.name, player.inventory)
        self._save_item_slots(command, "character_equipment", player.name, player.equipment)
        self._save_skills(command, player, now)
        self._save_buffs(command, player, now)
        self._save_quests(command, player)

        self._hooks.publish(CharacterSaved(player=player, command=command))
        logger.debug("Saved character %s", player.name)

    def _save_item_slots(self, command: Command, table: str, character: str, slots: list[ItemSlot]) -> None:
        command.execute(f"DELETE FROM {table} WHERE `character` = :character", {"character": character})
        for index, slot in enumerate(slots):
            if slot.is_empty:
                continue
            command.execute(
                f"""
                INSERT INTO {table}
                    (`character`, slot, name, amount, summonedHealth, summonedLevel, summonedExperience)
                VALUES
                    (:character, :slot, :name, :amount, :summonedHealth, :summonedLevel, :summonedExperience)
                """,
                {
                    "character": character,
                    "slot": index,
                    "name": slot.item.name,
                    "amount": int(slot.amount),
                    "summonedHealth": int(slot.item.summoned_health),
                    "summonedLevel": int(slot.item.summoned_level),
                    "summonedExperience": int(slot.item.summoned_experience),
                },
            )

    def _save_skills(self, command: Command, player: Player, now: float) -> None:
        command.execute("DELETE FROM character_skills WHERE `character` = :character", {"character": player.name})
        for skill in player.skills:
            # unlearned skills come back from the class templates on load
            if skill.level <= 0:
                continue
            command.execute(
                """
                INSERT INTO character_skills (`character`, name, level, castTimeEnd, cooldownEnd)
                VALUES (:character, :name, :level, :castTimeEnd, :cooldownEnd)
                """,
                {
                    "character": player.name,
                    "name": skill.name,
                    "level": int(skill.level),
                    "castTimeEnd": skill.cast_time_remaining(now),
                    "cooldownEnd": skill.cooldown_remaining(now),
                },
            )

    def _save_buffs(self, command: Command, player: Player, now: float) -> None:
        command.execute("DELETE FROM character_buffs WHERE `character` = :character", {"character": player.name})
        for buff in player.buffs:
            if buff.level <= 0:
                continue
            command.execute(
                """
                INSERT INTO character_buffs (`character`, name, level, buffTimeEnd)
                VALUES (:character, :name, :level, :buffTimeEnd)
                """,
                {
                    "character": player.name,
                    "name": buff.name,
                    "level": int(buff.level),
                    "buffTimeEnd": buff.buff_time_remaining(now),
                },
            )

    def _save_quests(self, command: Command, player: Player) -> None:
        command.execute("DELETE FROM character_quests WHERE `character` = :character", {"character": player.name})
        for quest in player.quests:
            command.execute(
                """
                INSERT INTO character_quests (`character`, name, progress, completed)
                VALUES (:character, :name, :progress, :completed)
                """,
                {
                    "character": player.name,
                    "name": quest.name,
                    "progress": int(quest.progress),
                    "completed": bool(quest.completed),
                },
            )
