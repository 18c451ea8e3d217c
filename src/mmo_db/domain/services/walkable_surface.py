from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from mmo_db.domain.models.position import Vector3


class WalkableSurface(Protocol):
    def sample_position(self, position: Vector3, max_distance: float) -> bool:
        """Return True when a walkable point lies within max_distance of position."""

    def nearest_spawn_point(self, position: Vector3) -> Vector3:
        ...


class OpenSurface:
    """Treats every position as walkable; used when no navigation data is loaded."""

    def __init__(self, spawn_points: Sequence[Vector3] = ()) -> None:
        self._spawn_points = tuple(spawn_points) or (Vector3(),)

    def sample_position(self, position: Vector3, max_distance: float) -> bool:
        return True

    def nearest_spawn_point(self, position: Vector3) -> Vector3:
        return min(self._spawn_points, key=position.distance_to)
