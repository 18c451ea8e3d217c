from dataclasses import dataclass

from mmo_db.domain.time_base import to_stored_remaining


@dataclass(frozen=True)
class SkillDefinition:
    name: str
    max_level: int = 1
    learn_default: bool = False
    # granted while active as a buff, per buff level
    health_bonus: int = 0
    mana_bonus: int = 0


@dataclass
class Skill:
    definition: SkillDefinition
    level: int = 0
    cast_time_end: float = 0.0
    cooldown_end: float = 0.0

    @classmethod
    def from_template(cls, definition: SkillDefinition) -> "Skill":
        return cls(definition=definition, level=1 if definition.learn_default else 0)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def max_level(self) -> int:
        return self.definition.max_level

    def cast_time_remaining(self, now: float) -> float:
        return to_stored_remaining(self.cast_time_end, now)

    def cooldown_remaining(self, now: float) -> float:
        return to_stored_remaining(self.cooldown_end, now)


@dataclass
class Buff:
    definition: SkillDefinition
    level: int = 1
    buff_time_end: float = 0.0

    @property
    def name(self) -> str:
        return self.definition.name

    def buff_time_remaining(self, now: float) -> float:
        return to_stored_remaining(self.buff_time_end, now)
