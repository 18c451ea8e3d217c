from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import List, Optional

from sqlalchemy import DateTime

from mmo_db.application.services.online_registry import OnlineRegistry
from mmo_db.domain.models.guild import Guild, GuildMember, GuildRank
from mmo_db.domain.models.player import Player, PlayerClass
from mmo_db.domain.repositories import (
    AccountRepository,
    CharacterRepository,
    GuildRepository,
    OrderRepository,
)
from mmo_db.domain.time_base import utc_now
from .character_loader import CharacterLoader
from .character_saver import CharacterSaver
from .query import Command, typed_text, upsert_statement
from .schema import NAME_LENGTH
from .transaction import TransactionCoordinator

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class MysqlAccountRepository(AccountRepository):
    _INSERT_ACCOUNT = typed_text(
        """
        INSERT INTO accounts (name, password, created, lastlogin, banned)
        VALUES (:name, :password, :created, :lastlogin, 0)
        """,
        created=DateTime(),
        lastlogin=DateTime(),
    )
    _STAMP_LOGIN = typed_text(
        "UPDATE accounts SET lastlogin = :lastlogin WHERE name = :name",
        lastlogin=DateTime(),
    )

    def __init__(self, coordinator: Optional[TransactionCoordinator] = None) -> None:
        self._coordinator = coordinator or TransactionCoordinator()

    def try_login(self, account: str, password: str) -> bool:
        """Check credentials, creating the account when the name is unknown."""
        if _is_blank(account) or _is_blank(password) or len(account) > NAME_LENGTH:
            return False
        return self._coordinator.run(lambda command: self._try_login(command, account, password))

    def _try_login(self, command: Command, account: str, password: str) -> bool:
        row = command.first("SELECT password, banned FROM accounts WHERE name = :name", {"name": account})
        now = utc_now()
        if row is not None:
            # TODO: store salted password hashes instead of comparing plaintext
            if bool(row.banned) or password != row.password:
                return False
            command.execute(self._STAMP_LOGIN, {"lastlogin": now, "name": account})
            return True

        command.execute(
            self._INSERT_ACCOUNT,
            {"name": account, "password": password, "created": now, "lastlogin": now},
        )
        logger.info("Created account %s on first login", account)
        return True


class MysqlCharacterRepository(CharacterRepository):
    def __init__(
        self,
        loader: CharacterLoader,
        saver: CharacterSaver,
        coordinator: Optional[TransactionCoordinator] = None,
    ) -> None:
        self._loader = loader
        self._saver = saver
        self._coordinator = coordinator or TransactionCoordinator()

    def exists(self, name: str) -> bool:
        # soft-deleted characters still reserve their name
        count = self._coordinator.run(
            lambda command: command.scalar("SELECT COUNT(*) FROM characters WHERE name = :name", {"name": name})
        )
        return int(count or 0) > 0

    def delete(self, name: str) -> None:
        self._coordinator.run(
            lambda command: command.execute("UPDATE characters SET deleted = 1 WHERE name = :name", {"name": name})
        )

    def list_for_account(self, account: str) -> List[str]:
        rows = self._coordinator.run(
            lambda command: command.rows(
                "SELECT name FROM characters WHERE account = :account AND deleted = 0 ORDER BY name",
                {"account": account},
            )
        )
        return [str(row.name) for row in rows]

    def load(self, name: str, prototypes: Sequence[PlayerClass], is_preview: bool = False) -> Optional[Player]:
        return self._loader.load(name, prototypes, is_preview)

    def save(self, player: Player, online: bool) -> None:
        self._saver.save(player, online)

    def save_many(self, players: Iterable[Player], online: bool = True) -> None:
        count = self._saver.save_many(players, online)
        logger.debug("Saved %s character(s) in one transaction", count)


class MysqlGuildRepository(GuildRepository):
    def __init__(
        self,
        coordinator: Optional[TransactionCoordinator] = None,
        *,
        online_registry: Optional[OnlineRegistry] = None,
    ) -> None:
        self._coordinator = coordinator or TransactionCoordinator()
        self._online = online_registry if online_registry is not None else OnlineRegistry()

    def exists(self, name: str) -> bool:
        count = self._coordinator.run(
            lambda command: command.scalar("SELECT COUNT(*) FROM guild_info WHERE name = :name", {"name": name})
        )
        return int(count or 0) > 0

    def load(self, name: str) -> Guild:
        return self._coordinator.run(lambda command: self.load_in(command, name))

    def load_in(self, command: Command, name: str) -> Guild:
        guild = Guild(name=name)
        info = command.first("SELECT notice FROM guild_info WHERE name = :name", {"name": name})
        if info is not None:
            guild.notice = str(info.notice)

        rows = command.rows(
            "SELECT `character`, `rank` FROM character_guild WHERE guild = :guild ORDER BY `character`",
            {"guild": name},
        )
        for row in rows:
            member = GuildMember(name=str(row.character), rank=GuildRank(int(row.rank)))
            player = self._online.get(member.name)
            if player is not None:
                member.online = True
                member.level = player.level
            else:
                level = command.scalar("SELECT level FROM characters WHERE name = :name", {"name": member.name})
                member.level = int(level) if level is not None else 1
            guild.members.append(member)
        return guild

    def save(self, guild: Guild, members: Optional[Sequence[GuildMember]] = None) -> None:
        roster = list(guild.members if members is None else members)

        def _save(command: Command) -> None:
            command.execute(
                upsert_statement(command.dialect, "guild_info", ("name", "notice"), ("name",)),
                {"name": guild.name, "notice": guild.notice},
            )
            command.execute("DELETE FROM character_guild WHERE guild = :guild", {"guild": guild.name})
            membership = upsert_statement(command.dialect, "character_guild", ("character", "guild", "rank"), ("character",))
            for member in roster:
                command.execute(
                    membership,
                    {"character": member.name, "guild": guild.name, "rank": int(member.rank)},
                )

        self._coordinator.run(_save)

    def remove(self, name: str) -> None:
        def _remove(command: Command) -> None:
            command.execute("DELETE FROM guild_info WHERE name = :name", {"name": name})
            command.execute("DELETE FROM character_guild WHERE guild = :name", {"name": name})

        self._coordinator.run(_remove)


class MysqlOrderRepository(OrderRepository):
    def __init__(self, coordinator: Optional[TransactionCoordinator] = None) -> None:
        self._coordinator = coordinator or TransactionCoordinator()

    def drain(self, character: str) -> List[int]:
        """Claim every unprocessed order for the character and return its coin amounts.

        Each row is claimed by a conditional update; only rows this call flipped
        from unprocessed to processed are returned, so a concurrent drain can
        never grant the same order twice. Rows are kept for auditing.
        """

        def _drain(command: Command) -> List[int]:
            rows = command.rows(
                """
                SELECT orderid, coins
                FROM character_orders
                WHERE `character` = :character AND processed = 0
                ORDER BY orderid
                """,
                {"character": character},
            )
            claimed: List[int] = []
            for row in rows:
                result = command.execute(
                    "UPDATE character_orders SET processed = 1 WHERE orderid = :orderid AND processed = 0",
                    {"orderid": int(row.orderid)},
                )
                if result.rowcount == 1:
                    claimed.append(int(row.coins))
            return claimed

        return self._coordinator.run(_drain)

    def place(self, character: str, coins: int) -> int:
        order_id = self._coordinator.run(
            lambda command: command.execute(
                "INSERT INTO character_orders (`character`, coins, processed) VALUES (:character, :coins, 0)",
                {"character": character, "coins": int(coins)},
            ).lastrowid
        )
        return int(order_id)
