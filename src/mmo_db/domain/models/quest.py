from dataclasses import dataclass


@dataclass(frozen=True)
class QuestDefinition:
    name: str
    required_amount: int = 1


@dataclass
class Quest:
    definition: QuestDefinition
    progress: int = 0
    completed: bool = False

    @property
    def name(self) -> str:
        return self.definition.name
