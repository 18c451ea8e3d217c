from __future__ import annotations

from collections.abc import Iterable
from typing import Dict, Optional

from mmo_db.domain.models.item import ItemDefinition
from mmo_db.domain.models.quest import QuestDefinition
from mmo_db.domain.models.skill import SkillDefinition


class ContentCatalog:
    """Read-only lookup of item, skill and quest definitions by name."""

    def __init__(
        self,
        items: Iterable[ItemDefinition] = (),
        skills: Iterable[SkillDefinition] = (),
        quests: Iterable[QuestDefinition] = (),
    ) -> None:
        self._items: Dict[str, ItemDefinition] = {item.name: item for item in items}
        self._skills: Dict[str, SkillDefinition] = {skill.name: skill for skill in skills}
        self._quests: Dict[str, QuestDefinition] = {quest.name: quest for quest in quests}

    def item(self, name: str) -> Optional[ItemDefinition]:
        return self._items.get(name)

    def skill(self, name: str) -> Optional[SkillDefinition]:
        return self._skills.get(name)

    def quest(self, name: str) -> Optional[QuestDefinition]:
        return self._quests.get(name)
