from dataclasses import dataclass


@dataclass
class SchemaInitialized:
    database: object


@dataclass
class Connected:
    database: object


@dataclass
class CharacterLoaded:
    player: object


@dataclass
class CharacterSaved:
    player: object
    command: object
