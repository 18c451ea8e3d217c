import math
import sys
from pathlib import Path
import unittest

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from game_fixtures import BLESSING, FIREBALL, POTION, SHIELD, STRIKE, SWORD, WARRIOR, FakeClock, dispose, make_database, make_player
from mmo_db.domain.models.item import Item, ItemSlot
from mmo_db.domain.models.skill import Buff, Skill

clock_times = st.floats(min_value=0.0, max_value=10_000.0, allow_nan=False, allow_infinity=False)


def _slot_strategy(max_amount: int):
    return st.one_of(
        st.none(),
        st.tuples(
            st.sampled_from([SWORD, SHIELD, POTION]),
            st.integers(min_value=0, max_value=max_amount),
            st.integers(min_value=0, max_value=500),
            st.integers(min_value=0, max_value=60),
            st.integers(min_value=0, max_value=1_000_000),
        ),
    )


def _build_slots(layout) -> list[ItemSlot]:
    slots = []
    for entry in layout:
        if entry is None:
            slots.append(ItemSlot())
            continue
        definition, amount, summoned_health, summoned_level, summoned_experience = entry
        item = Item(
            definition=definition,
            summoned_health=summoned_health,
            summoned_level=summoned_level,
            summoned_experience=summoned_experience,
        )
        slots.append(ItemSlot(item=item, amount=amount))
    return slots


def _occupied(slots: list[ItemSlot]) -> dict:
    return {
        index: (
            slot.item.name,
            slot.amount,
            slot.item.summoned_health,
            slot.item.summoned_level,
            slot.item.summoned_experience,
        )
        for index, slot in enumerate(slots)
        if not slot.is_empty
    }


class CharacterRoundTripPropertyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock(0.0)
        self.database = make_database(clock=self.clock)
        self.database.try_login("alice", "secret")

    def tearDown(self) -> None:
        dispose(self.database)

    def _stored_slots(self, table: str) -> set[int]:
        rows = self.database.coordinator.run(
            lambda command: command.rows(f"SELECT slot FROM {table} WHERE `character` = 'Alice'")
        )
        return {int(row.slot) for row in rows}

    def _assert_close(self, expected: float, actual: float, label: str) -> None:
        self.assertTrue(math.isclose(expected, actual, abs_tol=1e-6), f"{label}: {expected} != {actual}")

    @settings(max_examples=40, deadline=None)
    @given(
        inventory=st.lists(_slot_strategy(20), min_size=WARRIOR.inventory_size, max_size=WARRIOR.inventory_size),
        equipment=st.lists(_slot_strategy(1), min_size=len(WARRIOR.equipment_slots), max_size=len(WARRIOR.equipment_slots)),
        strike_level=st.integers(min_value=0, max_value=STRIKE.max_level),
        fireball_level=st.integers(min_value=0, max_value=FIREBALL.max_level),
        fireball_cast_end=clock_times,
        fireball_cooldown_end=clock_times,
        blessing_level=st.integers(min_value=1, max_value=BLESSING.max_level),
        blessing_end=clock_times,
        saved_at=clock_times,
        loaded_at=clock_times,
    )
    def test_save_then_load_preserves_slots_levels_and_remaining_time(
        self,
        *,
        inventory,
        equipment,
        strike_level,
        fireball_level,
        fireball_cast_end,
        fireball_cooldown_end,
        blessing_level,
        blessing_end,
        saved_at,
        loaded_at,
    ) -> None:
        player = make_player()
        player.inventory = _build_slots(inventory)
        player.equipment = _build_slots(equipment)
        player.skills = [
            Skill(definition=STRIKE, level=strike_level),
            Skill(
                definition=FIREBALL,
                level=fireball_level,
                cast_time_end=fireball_cast_end,
                cooldown_end=fireball_cooldown_end,
            ),
        ]
        player.buffs = [Buff(definition=BLESSING, level=blessing_level, buff_time_end=blessing_end)]

        self.clock.now = saved_at
        self.database.character_save(player, online=False)

        self.assertEqual(set(_occupied(player.inventory)), self._stored_slots("character_inventory"))
        self.assertEqual(set(_occupied(player.equipment)), self._stored_slots("character_equipment"))

        self.clock.now = loaded_at
        loaded = self.database.character_load("Alice", [WARRIOR], is_preview=True)

        self.assertIsNotNone(loaded)
        self.assertEqual(_occupied(player.inventory), _occupied(loaded.inventory))
        self.assertEqual(_occupied(player.equipment), _occupied(loaded.equipment))
        self.assertEqual(WARRIOR.inventory_size, len(loaded.inventory))
        self.assertEqual(len(WARRIOR.equipment_slots), len(loaded.equipment))

        for original in player.skills:
            restored = loaded.skill(original.name)
            if original.level <= 0:
                self.assertEqual(Skill.from_template(original.definition).level, restored.level)
                continue
            self.assertEqual(original.level, restored.level)
            self._assert_close(original.cast_time_remaining(saved_at), restored.cast_time_remaining(loaded_at), "cast")
            self._assert_close(original.cooldown_remaining(saved_at), restored.cooldown_remaining(loaded_at), "cooldown")

        self.assertEqual([blessing_level], [buff.level for buff in loaded.buffs])
        self._assert_close(
            player.buffs[0].buff_time_remaining(saved_at),
            loaded.buffs[0].buff_time_remaining(loaded_at),
            "buff",
        )

        # saving the loaded character again changes nothing
        self.database.character_save(loaded, online=False)
        reloaded = self.database.character_load("Alice", [WARRIOR], is_preview=True)
        self.assertEqual(_occupied(loaded.inventory), _occupied(reloaded.inventory))
        self.assertEqual(_occupied(loaded.equipment), _occupied(reloaded.equipment))
        self.assertEqual(
            [(skill.name, skill.level) for skill in loaded.skills],
            [(skill.name, skill.level) for skill in reloaded.skills],
        )


if __name__ == "__main__":
    unittest.main()
