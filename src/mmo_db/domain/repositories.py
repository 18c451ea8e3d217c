from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import List, Optional

from mmo_db.domain.models.guild import Guild, GuildMember
from mmo_db.domain.models.player import Player, PlayerClass


class AccountRepository(ABC):
    @abstractmethod
    def try_login(self, account: str, password: str) -> bool:
        raise NotImplementedError


class CharacterRepository(ABC):
    @abstractmethod
    def exists(self, name: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete(self, name: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list_for_account(self, account: str) -> List[str]:
        raise NotImplementedError

    @abstractmethod
    def load(self, name: str, prototypes: Sequence[PlayerClass], is_preview: bool = False) -> Optional[Player]:
        raise NotImplementedError

    @abstractmethod
    def save(self, player: Player, online: bool) -> None:
        raise NotImplementedError

    @abstractmethod
    def save_many(self, players: Iterable[Player], online: bool = True) -> None:
        raise NotImplementedError


class GuildRepository(ABC):
    @abstractmethod
    def exists(self, name: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def load(self, name: str) -> Guild:
        raise NotImplementedError

    @abstractmethod
    def save(self, guild: Guild, members: Optional[Sequence[GuildMember]] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, name: str) -> None:
        raise NotImplementedError


class OrderRepository(ABC):
    @abstractmethod
    def drain(self, character: str) -> List[int]:
        raise NotImplementedError

    @abstractmethod
    def place(self, character: str, coins: int) -> int:
        raise NotImplementedError
