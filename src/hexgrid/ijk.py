"""
Integer IJK lattice arithmetic for the aperture-7 hexagon hierarchy.

A hexagon center is addressed by three coordinates on axes 120 degrees apart.
Coordinates are kept normalized: all components are non-negative and at least
one of them is zero, so every lattice point has exactly one representation.

Each resolution is either Class II or Class III. Going one resolution finer
scales the lattice by sqrt(7) and rotates it by about 19.1 degrees,
counter-clockwise into Class III (odd) resolutions and clockwise into Class II
(even) ones. Two steps cancel the rotation, so Class II lattices are aligned
with each other and differ by a scale of 7.
"""
from enum import IntEnum
from typing import Tuple

IJK = Tuple[int, int, int]


class Direction(IntEnum):
    """Digit values: the center or one of the six unit vectors."""
    CENTER = 0
    K = 1
    J = 2
    JK = 3
    I = 4
    IK = 5
    IJ = 6
    INVALID = 7


# The six directions a neighbor can be in
NEIGHBOR_DIRECTIONS = (
    Direction.K,
    Direction.J,
    Direction.JK,
    Direction.I,
    Direction.IK,
    Direction.IJ,
)

UNIT_VECTORS = {
    Direction.CENTER: (0, 0, 0),
    Direction.K: (0, 0, 1),
    Direction.J: (0, 1, 0),
    Direction.JK: (0, 1, 1),
    Direction.I: (1, 0, 0),
    Direction.IK: (1, 0, 1),
    Direction.IJ: (1, 1, 0),
}

_DIRECTION_BY_VECTOR = {vector: direction for direction, vector in UNIT_VECTORS.items()}

_ROTATE_CCW = {
    Direction.CENTER: Direction.CENTER,
    Direction.K: Direction.IK,
    Direction.IK: Direction.I,
    Direction.I: Direction.IJ,
    Direction.IJ: Direction.J,
    Direction.J: Direction.JK,
    Direction.JK: Direction.K,
}

_ROTATE_CW = {after: before for before, after in _ROTATE_CCW.items()}


def is_class_iii(resolution: int) -> bool:
    """Odd resolutions are Class III (rotated counter-clockwise from their parent)."""
    return resolution % 2 == 1


def normalize(ijk: IJK) -> IJK:
    i, j, k = ijk
    if i < 0:
        j -= i
        k -= i
        i = 0
    if j < 0:
        i -= j
        k -= j
        j = 0
    if k < 0:
        i -= k
        j -= k
        k = 0
    smallest = min(i, j, k)
    return i - smallest, j - smallest, k - smallest


def add(a: IJK, b: IJK) -> IJK:
    return a[0] + b[0], a[1] + b[1], a[2] + b[2]


def sub(a: IJK, b: IJK) -> IJK:
    return a[0] - b[0], a[1] - b[1], a[2] - b[2]


def _combine(ijk: IJK, i_vec: IJK, j_vec: IJK, k_vec: IJK) -> IJK:
    i, j, k = ijk
    return normalize((
        i * i_vec[0] + j * j_vec[0] + k * k_vec[0],
        i * i_vec[1] + j * j_vec[1] + k * k_vec[1],
        i * i_vec[2] + j * j_vec[2] + k * k_vec[2],
    ))


def _round_half_away(value: float) -> int:
    if value >= 0:
        return int(value + 0.5)
    return -int(-value + 0.5)


def up_ap7(ijk: IJK) -> IJK:
    """Parent center of a Class III lattice point (undoes a counter-clockwise step)."""
    i = ijk[0] - ijk[2]
    j = ijk[1] - ijk[2]
    return normalize((_round_half_away((3 * i - j) / 7.0), _round_half_away((i + 2 * j) / 7.0), 0))


def up_ap7r(ijk: IJK) -> IJK:
    """Parent center of a Class II lattice point (undoes a clockwise step)."""
    i = ijk[0] - ijk[2]
    j = ijk[1] - ijk[2]
    return normalize((_round_half_away((2 * i + j) / 7.0), _round_half_away((3 * j - i) / 7.0), 0))


def down_ap7(ijk: IJK) -> IJK:
    """Center child of a point in the next finer, Class III lattice."""
    return _combine(ijk, (3, 0, 1), (1, 3, 0), (0, 1, 3))


def down_ap7r(ijk: IJK) -> IJK:
    """Center child of a point in the next finer, Class II lattice."""
    return _combine(ijk, (3, 1, 0), (0, 3, 1), (1, 0, 3))


def to_direction(ijk: IJK) -> Direction:
    """Direction of a unit vector, or INVALID for anything farther away."""
    return _DIRECTION_BY_VECTOR.get(normalize(ijk), Direction.INVALID)


def rotate_ccw(direction: int) -> Direction:
    return _ROTATE_CCW[direction]


def rotate_cw(direction: int) -> Direction:
    return _ROTATE_CW[direction]


def rotate_ccw_times(direction: int, times: int) -> Direction:
    direction = Direction(direction)
    for _ in range(times % 6):
        direction = _ROTATE_CCW[direction]
    return direction


def opposite(direction: int) -> Direction:
    """The unit vector pointing the other way (K <-> IJ, J <-> IK, JK <-> I)."""
    if direction == Direction.CENTER:
        return Direction.CENTER
    return Direction(7 - direction)
