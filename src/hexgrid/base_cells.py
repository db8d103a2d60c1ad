"""
Base cell topology: which base cell lies in each direction of another one, and
how many 60 degree rotations separate their digit frames.

The tables are derived once per process from the projection engine:

Neighbors. Resolutions 0 and 2 are both Class II, so their lattices are
aligned and a resolution 2 step is one seventh of a resolution 0 step. The
descendant with digits (0, d) therefore points from the base cell center
towards its neighbor in direction d. Extending that great circle to seven
times the distance lands near the neighbor's center; the nearest base cell
center is the neighbor. A pentagon has no K neighbor.

Rotations. Crossing from base cell b in direction d into n, a step along d
keeps going along rotate_ccw(d, r) in n's frame, so the way back,
opposite(d) rotated r times, must be the direction in which n sees b. That
fixes r. A pentagon's IK wedge is drawn in its deleted K position, so a
pentagon seen from its IK side is entered as if through K.
"""
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from .codec import NUM_BASE_CELLS, PENTAGON_BASE_CELLS, CellIndex
from .errors import ProjectionError
from .ijk import NEIGHBOR_DIRECTIONS, Direction, opposite, rotate_ccw_times
from .projection import ProjectionEngine, get_projection_engine

logger = logging.getLogger(__name__)

Vector = Tuple[float, float, float]

# Class II lattices two resolutions apart differ by this scale
CLASS_II_SCALE = 7


def is_pentagon_base_cell(base_cell: int) -> bool:
    return base_cell in PENTAGON_BASE_CELLS


@dataclass(frozen=True)
class BaseCellTopology:
    """Per base cell, indexed by direction 0..6 (0 is the cell itself)."""
    neighbors: Tuple[Tuple[Optional[int], ...], ...]
    rotations: Tuple[Tuple[int, ...], ...]

    def neighbor(self, base_cell: int, direction: int) -> Optional[int]:
        """Base cell in a direction, or None for a pentagon's K direction."""
        return self.neighbors[base_cell][direction]

    def rotation(self, base_cell: int, direction: int) -> int:
        """Counter-clockwise 60 degree rotations into the neighbor's frame."""
        return self.rotations[base_cell][direction]

    def direction_to(self, base_cell: int, other: int) -> Optional[Direction]:
        """Direction in which a neighboring base cell lies, None if not adjacent."""
        for direction in NEIGHBOR_DIRECTIONS:
            if self.neighbors[base_cell][direction] == other:
                return direction
        return None


def _dot(a: Vector, b: Vector) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _extend(origin: Vector, through: Vector, scale: float) -> Vector:
    """Point on the great circle from origin through `through`, scale times as far."""
    cos_angle = max(-1.0, min(1.0, _dot(origin, through)))
    angle = math.acos(cos_angle)
    tangent = tuple(t - o * cos_angle for o, t in zip(origin, through))
    length = math.sqrt(_dot(tangent, tangent))
    if length == 0.0:
        raise ProjectionError("Descendant center coincides with its base cell center")
    target = angle * scale
    return tuple(
        o * math.cos(target) + (t / length) * math.sin(target)
        for o, t in zip(origin, tangent)
    )


def _nearest(point: Vector, centers: Sequence[Vector], exclude: int) -> int:
    return max(
        (cell for cell in range(len(centers)) if cell != exclude),
        key=lambda cell: _dot(point, centers[cell]),
    )


def _derive_neighbors(engine: ProjectionEngine) -> List[List[Optional[int]]]:
    centers = [
        engine.cell_center(CellIndex.from_digits(base_cell)).to_unit_vector()
        for base_cell in range(NUM_BASE_CELLS)
    ]

    neighbors = []
    for base_cell in range(NUM_BASE_CELLS):
        row: List[Optional[int]] = [base_cell] + [None] * len(NEIGHBOR_DIRECTIONS)
        for direction in NEIGHBOR_DIRECTIONS:
            if is_pentagon_base_cell(base_cell) and direction == Direction.K:
                continue
            descendant = engine.cell_center(CellIndex.from_digits(base_cell, (0, direction)))
            target = _extend(centers[base_cell], descendant.to_unit_vector(), CLASS_II_SCALE)
            row[direction] = _nearest(target, centers, exclude=base_cell)
        neighbors.append(row)
    return neighbors


def _check_neighbors(neighbors: List[List[Optional[int]]]) -> None:
    for base_cell, row in enumerate(neighbors):
        adjacent = [cell for cell in row[1:] if cell is not None]
        expected = 5 if is_pentagon_base_cell(base_cell) else 6
        if len(set(adjacent)) != expected:
            raise ProjectionError(
                f"Base cell {base_cell} resolved to {len(set(adjacent))} distinct neighbors, expected {expected}"
            )
        for cell in adjacent:
            if base_cell not in neighbors[cell][1:]:
                raise ProjectionError(f"Base cells {base_cell} and {cell} are not mutual neighbors")


def _derive_rotations(neighbors: List[List[Optional[int]]]) -> List[List[int]]:
    rotations = []
    for base_cell, row in enumerate(neighbors):
        row_rotations = [0] * len(row)
        for direction in NEIGHBOR_DIRECTIONS:
            neighbor = row[direction]
            if neighbor is None:
                continue
            facing = Direction(neighbors[neighbor].index(base_cell, 1))
            if is_pentagon_base_cell(neighbor) and facing == Direction.IK:
                facing = Direction.K
            back = opposite(direction)
            row_rotations[direction] = next(
                turns for turns in range(6) if rotate_ccw_times(back, turns) == facing
            )
        rotations.append(row_rotations)
    return rotations


def derive_topology(engine: ProjectionEngine) -> BaseCellTopology:
    """
    Build the neighbor and rotation tables from an engine's geometry.

    Raises:
        ProjectionError: If the geometry does not give every hexagon six and
                         every pentagon five mutual neighbors
    """
    neighbors = _derive_neighbors(engine)
    _check_neighbors(neighbors)
    rotations = _derive_rotations(neighbors)
    return BaseCellTopology(
        neighbors=tuple(tuple(row) for row in neighbors),
        rotations=tuple(tuple(row) for row in rotations),
    )


@lru_cache(maxsize=None)
def get_topology() -> BaseCellTopology:
    """Topology derived from the configured projection engine, built on first use."""
    topology = derive_topology(get_projection_engine())
    logger.info("Base cell topology derived for %d base cells", NUM_BASE_CELLS)
    return topology
