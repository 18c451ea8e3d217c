"""Relational schema for accounts, characters, their child collections and guilds.

Every character-scoped table cascades deletes and renames from
``characters.name``. Provisioning only creates tables that are missing.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CHAR,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    inspect,
    text,
)
from sqlalchemy.orm import sessionmaker

from .transaction import TransactionCoordinator

logger = logging.getLogger(__name__)

NAME_LENGTH = 16
CONTENT_NAME_LENGTH = 50
TABLE_OPTIONS = {"mysql_charset": "utf8mb4"}

metadata = MetaData()


def _character_fk(**kwargs) -> Column:
    return Column(
        "character",
        String(NAME_LENGTH),
        ForeignKey("characters.name", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        **kwargs,
    )


accounts = Table(
    "accounts",
    metadata,
    Column("name", String(NAME_LENGTH), primary_key=True),
    Column("password", CHAR(50), nullable=False),
    Column("created", DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")),
    Column("lastlogin", DateTime),
    Column("banned", Boolean, nullable=False, server_default=text("0")),
    **TABLE_OPTIONS,
)

characters = Table(
    "characters",
    metadata,
    Column("name", String(NAME_LENGTH), primary_key=True),
    Column(
        "account",
        String(NAME_LENGTH),
        ForeignKey("accounts.name", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("classname", String(NAME_LENGTH), nullable=False),
    Column("x", Float, nullable=False),
    Column("y", Float, nullable=False),
    Column("z", Float, nullable=False),
    Column("level", Integer, nullable=False, server_default=text("1")),
    Column("health", Integer, nullable=False),
    Column("mana", Integer, nullable=False),
    Column("strength", Integer, nullable=False, server_default=text("0")),
    Column("intelligence", Integer, nullable=False, server_default=text("0")),
    Column("experience", BigInteger, nullable=False, server_default=text("0")),
    Column("skillExperience", BigInteger, nullable=False, server_default=text("0")),
    Column("gold", BigInteger, nullable=False, server_default=text("0")),
    Column("coins", BigInteger, nullable=False, server_default=text("0")),
    Column("online", Boolean, nullable=False, server_default=text("0")),
    Column("lastsaved", DateTime),
    Column("deleted", Boolean, nullable=False, server_default=text("0")),
    **TABLE_OPTIONS,
)


def _item_slot_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        _character_fk(primary_key=True),
        Column("slot", Integer, primary_key=True, autoincrement=False),
        Column("name", String(CONTENT_NAME_LENGTH), nullable=False),
        Column("amount", Integer, nullable=False),
        Column("summonedHealth", Integer, nullable=False),
        Column("summonedLevel", Integer, nullable=False),
        Column("summonedExperience", BigInteger, nullable=False),
        **TABLE_OPTIONS,
    )


character_inventory = _item_slot_table("character_inventory")
character_equipment = _item_slot_table("character_equipment")

character_skills = Table(
    "character_skills",
    metadata,
    _character_fk(primary_key=True),
    Column("name", String(CONTENT_NAME_LENGTH), primary_key=True),
    Column("level", Integer, nullable=False),
    Column("castTimeEnd", Float, nullable=False),
    Column("cooldownEnd", Float, nullable=False),
    **TABLE_OPTIONS,
)

character_buffs = Table(
    "character_buffs",
    metadata,
    _character_fk(primary_key=True),
    Column("name", String(CONTENT_NAME_LENGTH), primary_key=True),
    Column("level", Integer, nullable=False),
    Column("buffTimeEnd", Float, nullable=False),
    **TABLE_OPTIONS,
)

character_quests = Table(
    "character_quests",
    metadata,
    _character_fk(primary_key=True),
    Column("name", String(CONTENT_NAME_LENGTH), primary_key=True),
    Column("progress", Integer, nullable=False),
    Column("completed", Boolean, nullable=False),
    **TABLE_OPTIONS,
)

character_orders = Table(
    "character_orders",
    metadata,
    Column("orderid", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    _character_fk(index=True),
    Column("coins", BigInteger, nullable=False),
    Column("processed", BigInteger, nullable=False),
    **TABLE_OPTIONS,
)

guild_info = Table(
    "guild_info",
    metadata,
    Column("name", String(NAME_LENGTH), primary_key=True),
    Column("notice", Text, nullable=False),
    **TABLE_OPTIONS,
)

character_guild = Table(
    "character_guild",
    metadata,
    _character_fk(unique=True),
    Column(
        "guild",
        String(NAME_LENGTH),
        ForeignKey("guild_info.name", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    ),
    Column("rank", Integer, nullable=False, server_default=text("0")),
    **TABLE_OPTIONS,
)


def table_names() -> List[str]:
    return [table.name for table in metadata.sorted_tables]


class SchemaManager:
    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        *,
        coordinator: Optional[TransactionCoordinator] = None,
    ) -> None:
        self._coordinator = coordinator or TransactionCoordinator(session_factory)

    def missing_tables(self) -> List[str]:
        def _missing(command) -> List[str]:
            existing = set(inspect(command.connection()).get_table_names())
            return [name for name in table_names() if name not in existing]

        return self._coordinator.run(_missing)

    def provision(self) -> List[str]:
        """Create any missing tables and return the names that were created."""

        def _provision(command) -> List[str]:
            connection = command.connection()
            existing = set(inspect(connection).get_table_names())
            created = [name for name in table_names() if name not in existing]
            metadata.create_all(connection, checkfirst=True)
            return created

        created = self._coordinator.run(_provision)
        if created:
            logger.info("Provisioned schema tables", extra={"tables": created})
        return created
