from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from typing import Optional

from sqlalchemy import DateTime

from mmo_db.application.services.guild_cache import GuildCache
from mmo_db.application.services.persistence_hooks import PersistenceHooks
from mmo_db.domain.events import CharacterLoaded
from mmo_db.domain.models.item import Item, ItemSlot
from mmo_db.domain.models.player import Player, PlayerClass
from mmo_db.domain.models.position import Vector3
from mmo_db.domain.models.quest import Quest
from mmo_db.domain.models.skill import Buff, Skill
from mmo_db.domain.services.content_catalog import ContentCatalog
from mmo_db.domain.services.walkable_surface import OpenSurface, WalkableSurface
from mmo_db.domain.time_base import make_server_clock, to_deadline, utc_now
from .query import Command, typed_text
from .transaction import TransactionCoordinator

logger = logging.getLogger(__name__)

DEFAULT_SPAWN_TOLERANCE = float(os.getenv("MMO_SPAWN_TOLERANCE", "0.1"))

_MARK_ONLINE = typed_text(
    "UPDATE characters SET online = 1, lastsaved = :lastsaved WHERE name = :name",
    lastsaved=DateTime(),
)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(int(value), high))


class CharacterLoader:
    """Rebuilds a live player from the character tables.

    All reads, the online stamp for non-preview loads and the CharacterLoaded
    hooks share one transaction. The aggregate comes from a single save point,
    and a failing hook leaves the character offline.
    """

    def __init__(
        self,
        coordinator: TransactionCoordinator,
        catalog: ContentCatalog,
        *,
        guild_loader: Callable[[Command, str], object],
        guild_cache: Optional[GuildCache] = None,
        surface: Optional[WalkableSurface] = None,
        hooks: Optional[PersistenceHooks] = None,
        clock: Optional[Callable[[], float]] = None,
        spawn_tolerance: float = DEFAULT_SPAWN_TOLERANCE,
    ) -> None:
        self._coordinator = coordinator
        self._catalog = catalog
        self._guild_loader = guild_loader
        self._guild_cache = guild_cache if guild_cache is not None else GuildCache()
        self._surface = surface or OpenSurface()
        self._hooks = hooks or PersistenceHooks()
        self._clock = clock or make_server_clock()
        self._spawn_tolerance = spawn_tolerance

    def load(self, name: str, prototypes: Sequence[PlayerClass], is_preview: bool = False) -> Optional[Player]:
        def _load_and_announce(command: Command) -> Optional[Player]:
            player = self._load(command, name, prototypes, is_preview)
            if player is not None:
                self._hooks.publish(CharacterLoaded(player=player))
            return player

        return self._coordinator.run(_load_and_announce)

    def _load(
        self,
        command: Command,
        name: str,
        prototypes: Sequence[PlayerClass],
        is_preview: bool,
    ) -> Optional[Player]:
        row = command.first(
            "SELECT * FROM characters WHERE name = :name AND deleted = 0",
            {"name": name},
        )
        if row is None:
            return None

        class_name = str(row.classname)
        prototype = next((candidate for candidate in prototypes if candidate.name == class_name), None)
        if prototype is None:
            logger.error(
                "No class prototype %s found for character %s",
                class_name,
                name,
                extra={"character": name, "class_name": class_name},
            )
            return None

        player = prototype.instantiate()
        player.name = str(row.name)
        player.account = str(row.account)
        player.class_name = class_name
        player.level = min(int(row.level), player.max_level)
        player.strength = int(row.strength)
        player.intelligence = int(row.intelligence)
        player.experience = int(row.experience)
        player.skill_experience = int(row.skillExperience)
        player.gold = int(row.gold)
        player.coins = int(row.coins)
        health = int(row.health)
        mana = int(row.mana)

        self._place(player, Vector3(float(row.x), float(row.y), float(row.z)))

        now = self._clock()
        self._load_inventory(command, player)
        self._load_equipment(command, player)
        self._load_skills(command, player, now)
        self._load_buffs(command, player, now)
        self._load_quests(command, player)
        self._load_guild_on_demand(command, player)

        # maximum health and mana depend on equipment and buffs
        player.health = health
        player.mana = mana

        if not is_preview:
            command.execute(_MARK_ONLINE, {"lastsaved": utc_now(), "name": name})
        return player

    def _place(self, player: Player, position: Vector3) -> None:
        # stored position may no longer be walkable
        if self._surface.sample_position(position, self._spawn_tolerance):
            player.warp(position)
        else:
            player.warp(self._surface.nearest_spawn_point(position))

    def _item_slots(self, command: Command, table: str, player: Player, size: int) -> list[ItemSlot]:
        slots = [ItemSlot() for _ in range(size)]
        rows = command.rows(f"SELECT * FROM {table} WHERE `character` = :character", {"character": player.name})
        for row in rows:
            index = int(row.slot)
            item_name = str(row.name)
            if not 0 <= index < size:
                logger.warning(
                    "Skipped slot %s for %s in %s: capacity is %s",
                    index,
                    player.name,
                    table,
                    size,
                    extra={"table": table, "character": player.name, "slot": index, "capacity": size},
                )
                continue
            definition = self._catalog.item(item_name)
            if definition is None:
                logger.warning(
                    "Skipped item %s for %s in %s: not in content catalog",
                    item_name,
                    player.name,
                    table,
                    extra={"table": table, "character": player.name, "item": item_name},
                )
                continue
            item = Item(
                definition=definition,
                summoned_health=int(row.summonedHealth),
                summoned_level=int(row.summonedLevel),
                summoned_experience=int(row.summonedExperience),
            )
            slots[index] = ItemSlot(item=item, amount=int(row.amount))
        return slots

    def _load_inventory(self, command: Command, player: Player) -> None:
        player.inventory = self._item_slots(command, "character_inventory", player, player.inventory_size)

    def _load_equipment(self, command: Command, player: Player) -> None:
        player.equipment = self._item_slots(command, "character_equipment", player, player.equipment_size)

    def _load_skills(self, command: Command, player: Player, now: float) -> None:
        # stored rows only overlay level and timers on the class templates
        player.skills = [Skill.from_template(template) for template in player.skill_templates]
        by_name = {skill.name: skill for skill in player.skills}
        rows = command.rows(
            "SELECT name, level, castTimeEnd, cooldownEnd FROM character_skills WHERE `character` = :character",
            {"character": player.name},
        )
        for row in rows:
            skill = by_name.get(str(row.name))
            if skill is None:
                logger.debug("Ignored skill %s for %s: not in class templates", row.name, player.name)
                continue
            skill.level = _clamp(row.level, 1, skill.max_level)
            skill.cast_time_end = to_deadline(row.castTimeEnd, now)
            skill.cooldown_end = to_deadline(row.cooldownEnd, now)

    def _load_buffs(self, command: Command, player: Player, now: float) -> None:
        player.buffs = []
        rows = command.rows(
            "SELECT name, level, buffTimeEnd FROM character_buffs WHERE `character` = :character",
            {"character": player.name},
        )
        for row in rows:
            definition = self._catalog.skill(str(row.name))
            if definition is None:
                logger.warning(
                    "Skipped buff %s for %s: not in content catalog",
                    row.name,
                    player.name,
                    extra={"character": player.name, "buff": row.name},
                )
                continue
            player.buffs.append(
                Buff(
                    definition=definition,
                    level=_clamp(row.level, 1, definition.max_level),
                    buff_time_end=to_deadline(row.buffTimeEnd, now),
                )
            )

    def _load_quests(self, command: Command, player: Player) -> None:
        player.quests = []
        rows = command.rows(
            "SELECT name, progress, completed FROM character_quests WHERE `character` = :character",
            {"character": player.name},
        )
        for row in rows:
            definition = self._catalog.quest(str(row.name))
            if definition is None:
                logger.warning(
                    "Skipped quest %s for %s: not in content catalog",
                    row.name,
                    player.name,
                    extra={"character": player.name, "quest": row.name},
                )
                continue
            player.quests.append(Quest(definition=definition, progress=int(row.progress), completed=bool(row.completed)))

    def _load_guild_on_demand(self, command: Command, player: Player) -> None:
        row = command.first(
            "SELECT guild FROM character_guild WHERE `character` = :character",
            {"character": player.name},
        )
        if row is None:
            return
        guild_name = str(row.guild)
        guild = self._guild_cache.get(guild_name)
        if guild is None:
            guild = self._guild_cache.put(self._guild_loader(command, guild_name))
        player.guild = guild
