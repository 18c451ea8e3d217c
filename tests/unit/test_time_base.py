import math
import sys
from pathlib import Path
import unittest

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from mmo_db.domain.time_base import make_server_clock, to_deadline, to_stored_remaining, utc_now

clock_values = st.floats(min_value=0.0, max_value=1_000_000.0, allow_nan=False, allow_infinity=False)


class TimeBaseTests(unittest.TestCase):
    def test_remaining_time_is_measured_from_now(self) -> None:
        self.assertEqual(5.0, to_stored_remaining(105.0, 100.0))
        self.assertEqual(105.0, to_deadline(5.0, 100.0))

    def test_elapsed_deadline_stores_zero(self) -> None:
        self.assertEqual(0.0, to_stored_remaining(90.0, 100.0))
        self.assertEqual(0.0, to_stored_remaining(100.0, 100.0))

    def test_server_clock_starts_near_zero_and_never_goes_back(self) -> None:
        clock = make_server_clock()
        first = clock()
        second = clock()

        self.assertGreaterEqual(first, 0.0)
        self.assertLess(first, 5.0)
        self.assertGreaterEqual(second, first)

    def test_utc_now_is_naive(self) -> None:
        self.assertIsNone(utc_now().tzinfo)

    @settings(max_examples=60, deadline=None)
    @given(deadline=clock_values, saved_at=clock_values, loaded_at=clock_values)
    def test_remaining_duration_survives_a_clock_restart(self, deadline, saved_at, loaded_at) -> None:
        stored = to_stored_remaining(deadline, saved_at)
        restored = to_deadline(stored, loaded_at)

        self.assertGreaterEqual(stored, 0.0)
        self.assertTrue(math.isclose(restored - loaded_at, max(deadline - saved_at, 0.0), abs_tol=1e-6))


if __name__ == "__main__":
    unittest.main()
