"""
Neighbor stepping and grid disk / ring traversal.

A step moves one cell along one of the six IJK unit directions. It is done
on the digits alone: the finest digit is replaced and a carry direction
propagates towards coarser digits, the same way a carry propagates through
the digits of an integer addition. A carry out of resolution 1 crosses into
a neighboring base cell, whose frame may be rotated relative to ours.

Pentagons delete the K wedge of their center lineage. Steps that would land
in it are rotated out of it; the K direction from the pentagon itself does not
exist.
"""
import logging
from typing import Dict, List, Optional, Set, Tuple

from . import config, metrics
from .base_cells import get_topology, is_pentagon_base_cell
from .codec import CellIndex, encode_cell
from .errors import InvalidIndex, InvalidRadius
from .ijk import (
    NEIGHBOR_DIRECTIONS,
    UNIT_VECTORS,
    Direction,
    add,
    down_ap7,
    down_ap7r,
    is_class_iii,
    rotate_ccw,
    rotate_cw,
    sub,
    to_direction,
    up_ap7,
    up_ap7r,
)
from .models import Coordinate
from .projection import get_projection_engine

logger = logging.getLogger(__name__)

DigitStep = Dict[Tuple[int, int], Tuple[Direction, Direction]]


def _build_digit_step(up, down) -> DigitStep:
    """(old digit, direction) -> (new digit, carry direction) for one resolution class."""
    table = {}
    for old in UNIT_VECTORS:
        for direction in UNIT_VECTORS:
            position = add(UNIT_VECTORS[old], UNIT_VECTORS[direction])
            carry = up(position)
            table[(old, direction)] = (to_direction(sub(position, down(carry))), to_direction(carry))
    return table


# Keyed by whether the digit's resolution is Class III
_DIGIT_STEPS = {
    True: _build_digit_step(up_ap7, down_ap7),
    False: _build_digit_step(up_ap7r, down_ap7r),
}


def _leading_nonzero(digits: List[int]) -> int:
    return next((digit for digit in digits if digit != 0), Direction.CENTER)


def _rotate_digits_ccw(digits: List[int]) -> List[int]:
    return [rotate_ccw(digit) for digit in digits]


def _rotate_digits_cw(digits: List[int]) -> List[int]:
    return [rotate_cw(digit) for digit in digits]


def _rotate_pentagon_digits_ccw(digits: List[int]) -> List[int]:
    """Rotate inside a pentagon, skipping over the deleted K wedge."""
    rotated = _rotate_digits_ccw(digits)
    if _leading_nonzero(rotated) == Direction.K:
        rotated = _rotate_digits_ccw(rotated)
    return rotated


def neighbor(index: CellIndex, direction: Direction) -> Optional[CellIndex]:
    """
    Get the cell one step away in a direction.

    Args:
        index: A valid cell
        direction: One of the six neighbor directions

    Returns:
        The neighboring cell, or None when the direction is the deleted K axis
        of a pentagon

    Raises:
        InvalidIndex: If the digits are not those of a valid cell
    """
    if direction == Direction.K and index.is_pentagon():
        return None

    topology = get_topology()
    old_base_cell = index.base_cell
    digits = list(index.digits)
    old_leading = _leading_nonzero(digits)
    new_rotations = 0
    new_base_cell = old_base_cell

    level = len(digits)
    while True:
        if level == 0:
            new_base_cell = topology.neighbor(old_base_cell, direction)
            new_rotations = topology.rotation(old_base_cell, direction)
            if new_base_cell is None:
                # Leaving a pentagon along its deleted K axis: the IK neighbor
                # borders that edge, one wedge further round
                new_base_cell = topology.neighbor(old_base_cell, Direction.IK)
                new_rotations = topology.rotation(old_base_cell, Direction.IK)
                digits = _rotate_digits_ccw(digits)
                metrics.pentagon_reroutes_total.inc()
            break

        new_digit, carry = _DIGIT_STEPS[is_class_iii(level)][(digits[level - 1], direction)]
        digits[level - 1] = new_digit
        if carry == Direction.CENTER:
            break
        direction = carry
        level -= 1

    if is_pentagon_base_cell(new_base_cell) and _leading_nonzero(digits) == Direction.K:
        metrics.pentagon_reroutes_total.inc()
        logger.debug("Rotating %s step out of pentagon %d deleted wedge", index, new_base_cell)
        if old_base_cell != new_base_cell:
            return _enter_deleted_wedge(index, new_base_cell, digits, new_rotations)
        if old_leading == Direction.JK:
            digits = _rotate_digits_ccw(digits)
        elif old_leading == Direction.IK:
            digits = _rotate_digits_cw(digits)
        else:
            raise InvalidIndex(f"{index} stepped into the deleted pentagon wedge from digit {old_leading}")

    return _in_frame(new_base_cell, digits, new_rotations)


def _in_frame(base_cell: int, digits: List[int], rotations: int) -> CellIndex:
    """Rotate digits into a base cell's frame and encode the cell."""
    rotate = _rotate_pentagon_digits_ccw if is_pentagon_base_cell(base_cell) else _rotate_digits_ccw
    for _ in range(rotations):
        digits = rotate(digits)
    return CellIndex(encode_cell(base_cell, digits))


def _shared_corners(boundary: List[Coordinate], other: List[Coordinate]) -> int:
    return sum(
        1 for corner in boundary
        if any(corner.chord_to(point) <= config.VERTEX_TOLERANCE_CHORD for point in other)
    )


def _enter_deleted_wedge(source: CellIndex, base_cell: int, digits: List[int], rotations: int) -> CellIndex:
    """
    Land a step that crossed from another base cell into a pentagon's
    deleted K subsequence.

    The missing wedge closes up, so the cell reached lies in one of the two
    wedges beside it: JK after a clockwise turn, IK after a counter-clockwise
    one. Which side depends on the icosahedron faces the two base cells sit
    on, so it is read off the geometry: the candidate that shares an edge
    with the source cell is the neighbor (nearest center breaks ties).
    """
    engine = get_projection_engine()
    boundary = engine.cell_boundary(source)
    center = engine.cell_center(source)
    candidates = [
        _in_frame(base_cell, turn(digits), rotations)
        for turn in (_rotate_digits_cw, _rotate_digits_ccw)
    ]
    return max(candidates, key=lambda cell: (
        _shared_corners(boundary, engine.cell_boundary(cell)),
        -center.chord_to(engine.cell_center(cell)),
    ))


def _disk_distances(center: CellIndex, k: int) -> Dict[CellIndex, int]:
    if k < 0:
        raise InvalidRadius(f"radius must be non-negative, got {k}")
    if not center.is_valid():
        return {}

    distances = {center: 0}
    frontier = [center]
    for ring in range(1, k + 1):
        next_frontier = []
        for cell in frontier:
            for direction in NEIGHBOR_DIRECTIONS:
                found = neighbor(cell, direction)
                if found is None or found in distances:
                    continue
                distances[found] = ring
                next_frontier.append(found)
        if not next_frontier:
            # Every cell at this resolution is already collected
            break
        frontier = next_frontier
    return distances


def grid_disk_distances(center: CellIndex, k: int) -> Dict[CellIndex, int]:
    """
    Get every cell within k steps, with its distance from the center.

    Breadth-first: ring r + 1 is every unseen neighbor of ring r, so each
    cell is tagged with its shortest step count.

    Args:
        center: Cell at distance 0
        k: Radius (0 = just the center)

    Returns:
        Mapping of cell to distance. Empty if the center is not a valid cell.

    Raises:
        InvalidRadius: If k is negative
    """
    distances = _disk_distances(center, k)
    metrics.traversal_requests_total.labels(operation="grid_disk_distances").inc()
    metrics.traversal_cells.labels(operation="grid_disk_distances").observe(len(distances))
    return distances


def grid_disk(center: CellIndex, k: int) -> Set[CellIndex]:
    """
    Get all cells within k steps of a cell.

    For a cell with no pentagon nearby, k = 1 gives 7 cells, k = 2 gives 19,
    k = 3 gives 37 (3k^2 + 3k + 1 in general).

    Raises:
        InvalidRadius: If k is negative
    """
    cells = set(_disk_distances(center, k))
    metrics.traversal_requests_total.labels(operation="grid_disk").inc()
    metrics.traversal_cells.labels(operation="grid_disk").observe(len(cells))
    return cells


def grid_ring(center: CellIndex, k: int) -> Set[CellIndex]:
    """
    Get the cells exactly k steps away.

    Raises:
        InvalidRadius: If k is negative
    """
    cells = {cell for cell, distance in _disk_distances(center, k).items() if distance == k}
    metrics.traversal_requests_total.labels(operation="grid_ring").inc()
    metrics.traversal_cells.labels(operation="grid_ring").observe(len(cells))
    return cells


def are_neighbors(origin: CellIndex, destination: CellIndex) -> bool:
    """Whether two valid cells of the same resolution share an edge."""
    if not origin.is_valid() or not destination.is_valid():
        return False
    if origin == destination or origin.resolution != destination.resolution:
        return False
    return any(neighbor(origin, direction) == destination for direction in NEIGHBOR_DIRECTIONS)
