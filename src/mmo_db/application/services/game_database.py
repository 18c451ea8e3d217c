from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import List, Optional

from sqlalchemy.orm import sessionmaker

from mmo_db.application.services.guild_cache import GuildCache
from mmo_db.application.services.online_registry import OnlineRegistry
from mmo_db.application.services.persistence_hooks import PersistenceHooks
from mmo_db.domain.events import Connected, SchemaInitialized
from mmo_db.domain.models.guild import Guild, GuildMember
from mmo_db.domain.models.player import Player, PlayerClass
from mmo_db.domain.services.content_catalog import ContentCatalog
from mmo_db.domain.services.walkable_surface import WalkableSurface
from mmo_db.domain.time_base import make_server_clock
from mmo_db.infrastructure.db.mysql.character_loader import DEFAULT_SPAWN_TOLERANCE, CharacterLoader
from mmo_db.infrastructure.db.mysql.character_saver import CharacterSaver
from mmo_db.infrastructure.db.mysql.repos import (
    MysqlAccountRepository,
    MysqlCharacterRepository,
    MysqlGuildRepository,
    MysqlOrderRepository,
)
from mmo_db.infrastructure.db.mysql.schema import SchemaManager
from mmo_db.infrastructure.db.mysql.transaction import TransactionCoordinator

logger = logging.getLogger(__name__)


class GameDatabase:
    """Entry points the game server calls to move state across the persistence boundary."""

    def __init__(
        self,
        catalog: ContentCatalog,
        *,
        session_factory: Optional[sessionmaker] = None,
        surface: Optional[WalkableSurface] = None,
        online_registry: Optional[OnlineRegistry] = None,
        guild_cache: Optional[GuildCache] = None,
        hooks: Optional[PersistenceHooks] = None,
        clock: Optional[Callable[[], float]] = None,
        spawn_tolerance: float = DEFAULT_SPAWN_TOLERANCE,
    ) -> None:
        self.coordinator = TransactionCoordinator(session_factory)
        self.online_registry = online_registry if online_registry is not None else OnlineRegistry()
        self.guild_cache = guild_cache if guild_cache is not None else GuildCache()
        self.hooks = hooks or PersistenceHooks()
        clock = clock or make_server_clock()

        self.schema = SchemaManager(coordinator=self.coordinator)
        self.accounts = MysqlAccountRepository(self.coordinator)
        self.guilds = MysqlGuildRepository(self.coordinator, online_registry=self.online_registry)
        self.orders = MysqlOrderRepository(self.coordinator)
        loader = CharacterLoader(
            self.coordinator,
            catalog,
            guild_loader=self.guilds.load_in,
            guild_cache=self.guild_cache,
            surface=surface,
            hooks=self.hooks,
            clock=clock,
            spawn_tolerance=spawn_tolerance,
        )
        saver = CharacterSaver(self.coordinator, hooks=self.hooks, clock=clock)
        self.characters = MysqlCharacterRepository(loader, saver, self.coordinator)

    def connect(self) -> None:
        self.schema.provision()
        self.hooks.publish(SchemaInitialized(database=self))
        self.hooks.publish(Connected(database=self))

    def try_login(self, account: str, password: str) -> bool:
        return self.accounts.try_login(account, password)

    def character_exists(self, name: str) -> bool:
        return self.characters.exists(name)

    def character_delete(self, name: str) -> None:
        self.characters.delete(name)

    def characters_for_account(self, account: str) -> List[str]:
        return self.characters.list_for_account(account)

    def character_load(self, name: str, prototypes: Sequence[PlayerClass], is_preview: bool = False) -> Optional[Player]:
        return self.characters.load(name, prototypes, is_preview)

    def character_save(self, player: Player, online: bool) -> None:
        self.characters.save(player, online)

    def character_save_many(self, players: Iterable[Player], online: bool = True) -> None:
        self.characters.save_many(players, online)

    def guild_exists(self, name: str) -> bool:
        return self.guilds.exists(name)

    def load_guild(self, name: str) -> Guild:
        return self.guilds.load(name)

    def save_guild(self, guild: Guild, members: Optional[Sequence[GuildMember]] = None) -> None:
        self.guilds.save(guild, members)

    def remove_guild(self, name: str) -> None:
        self.guilds.remove(name)
        self.guild_cache.evict(name)

    def grab_character_orders(self, name: str) -> List[int]:
        return self.orders.drain(name)
