from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class GuildRank(IntEnum):
    MEMBER = 0
    VICE = 1
    MASTER = 2


@dataclass
class GuildMember:
    name: str
    rank: GuildRank = GuildRank.MEMBER
    online: bool = False
    level: int = 1


@dataclass
class Guild:
    name: str
    notice: str = ""
    members: List[GuildMember] = field(default_factory=list)

    def member(self, name: str) -> GuildMember | None:
        return next((member for member in self.members if member.name == name), None)
