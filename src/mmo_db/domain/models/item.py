from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ItemDefinition:
    name: str
    max_stack: int = 1
    health_bonus: int = 0
    mana_bonus: int = 0


@dataclass
class Item:
    definition: ItemDefinition
    summoned_health: int = 0
    summoned_level: int = 0
    summoned_experience: int = 0

    @property
    def name(self) -> str:
        return self.definition.name


@dataclass
class ItemSlot:
    item: Optional[Item] = None
    amount: int = 0

    @property
    def is_empty(self) -> bool:
        return self.item is None or self.amount <= 0
