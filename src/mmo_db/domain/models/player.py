from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from mmo_db.domain.models.guild import Guild
from mmo_db.domain.models.item import ItemSlot
from mmo_db.domain.models.position import Vector3
from mmo_db.domain.models.quest import Quest
from mmo_db.domain.models.skill import Buff, Skill, SkillDefinition


@dataclass(frozen=True)
class PlayerClass:
    """Prototype a player character is instantiated from."""

    name: str
    max_level: int = 1
    base_health: int = 100
    base_mana: int = 50
    inventory_size: int = 30
    equipment_slots: Tuple[str, ...] = ()
    skill_templates: Tuple[SkillDefinition, ...] = ()

    def instantiate(self) -> "Player":
        return Player(player_class=self, class_name=self.name)


@dataclass
class Player:
    player_class: PlayerClass
    name: str = ""
    account: str = ""
    class_name: str = ""
    position: Vector3 = field(default_factory=Vector3)
    level: int = 1
    strength: int = 0
    intelligence: int = 0
    experience: int = 0
    skill_experience: int = 0
    gold: int = 0
    coins: int = 0
    inventory: List[ItemSlot] = field(default_factory=list)
    equipment: List[ItemSlot] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)
    buffs: List[Buff] = field(default_factory=list)
    quests: List[Quest] = field(default_factory=list)
    guild: Optional[Guild] = None
    _health: int = field(default=0, repr=False)
    _mana: int = field(default=0, repr=False)

    @property
    def max_level(self) -> int:
        return self.player_class.max_level

    @property
    def inventory_size(self) -> int:
        return self.player_class.inventory_size

    @property
    def equipment_size(self) -> int:
        return len(self.player_class.equipment_slots)

    @property
    def skill_templates(self) -> Tuple[SkillDefinition, ...]:
        return self.player_class.skill_templates

    @property
    def max_health(self) -> int:
        equipped = sum(slot.item.definition.health_bonus for slot in self.equipment if not slot.is_empty)
        buffed = sum(buff.definition.health_bonus * buff.level for buff in self.buffs)
        return self.player_class.base_health + equipped + buffed

    @property
    def max_mana(self) -> int:
        equipped = sum(slot.item.definition.mana_bonus for slot in self.equipment if not slot.is_empty)
        buffed = sum(buff.definition.mana_bonus * buff.level for buff in self.buffs)
        return self.player_class.base_mana + equipped + buffed

    @property
    def health(self) -> int:
        return self._health

    @health.setter
    def health(self, value: int) -> None:
        self._health = min(max(int(value), 0), self.max_health)

    @property
    def mana(self) -> int:
        return self._mana

    @mana.setter
    def mana(self, value: int) -> None:
        self._mana = min(max(int(value), 0), self.max_mana)

    def warp(self, position: Vector3) -> None:
        self.position = position

    def skill(self, name: str) -> Optional[Skill]:
        return next((skill for skill in self.skills if skill.name == name), None)
