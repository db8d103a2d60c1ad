"""
Parent/child navigation by rewriting digit fields.

The hierarchy is implicit in the digits: a parent is a truncation, a child is
an extension. Nothing is looked up and no cell holds a reference to another.
"""
from itertools import product
from typing import List

from . import metrics
from .codec import MAX_RES, CellIndex, IndexFields, UNSET_DIGIT
from .errors import InvalidResolution, NoChild, NoParent


def _with_digits(index: CellIndex, resolution: int, new_digits=()) -> CellIndex:
    fields = index.fields()
    kept = fields.digits[:min(resolution, fields.resolution)] + tuple(new_digits)
    padded = kept + (UNSET_DIGIT,) * (MAX_RES - len(kept))
    return CellIndex(IndexFields(
        mode=fields.mode,
        resolution=resolution,
        base_cell=fields.base_cell,
        digits=padded,
        reserved=fields.reserved,
        high_bit=fields.high_bit,
    ).encode())


def parent_at(index: CellIndex, resolution: int) -> CellIndex:
    """
    Get the ancestor of a cell at a coarser resolution.

    Args:
        index: Cell to start from
        resolution: Target resolution, 0..index.resolution

    Returns:
        The parent cell; base cell and digits up to the target are unchanged

    Raises:
        InvalidResolution: If the target is finer than the cell or negative
    """
    if resolution < 0 or resolution > index.resolution:
        raise InvalidResolution(
            f"parent resolution {resolution} not in [0, {index.resolution}]"
        )
    return _with_digits(index, resolution)


def direct_parent(index: CellIndex) -> CellIndex:
    """The parent one resolution coarser."""
    if index.resolution == 0:
        raise NoParent(f"{index} is a base cell")
    return parent_at(index, index.resolution - 1)


def center_child_at(index: CellIndex, resolution: int) -> CellIndex:
    """
    Get the descendant at the center of a cell (all new digits 0).

    Raises:
        InvalidResolution: If the target is coarser than the cell or above 15
    """
    if resolution < index.resolution or resolution > MAX_RES:
        raise InvalidResolution(
            f"child resolution {resolution} not in [{index.resolution}, {MAX_RES}]"
        )
    return _with_digits(index, resolution, (0,) * (resolution - index.resolution))


def direct_center_child(index: CellIndex) -> CellIndex:
    """The center child one resolution finer. Exists for hexagons and pentagons alike."""
    if index.resolution == MAX_RES:
        raise NoChild(f"{index} is already at resolution {MAX_RES}")
    return center_child_at(index, index.resolution + 1)


def children_size(index: CellIndex, resolution: int) -> int:
    """
    Number of children children_at() returns for the same arguments.

    A hexagon has 7**n descendants n levels down. A pentagon loses the K
    wedge at every level of its center lineage: 1 + 5 * (7**n - 1) / 6.
    """
    if resolution < index.resolution:
        raise InvalidResolution(
            f"child resolution {resolution} is coarser than {index.resolution}"
        )
    if resolution > MAX_RES:
        return 0
    depth = resolution - index.resolution
    if index.is_pentagon():
        return 1 + 5 * (7 ** depth - 1) // 6
    return 7 ** depth


def children_at(index: CellIndex, resolution: int) -> List[CellIndex]:
    """
    Enumerate all descendants of a cell at a finer resolution.

    Args:
        index: Parent cell
        resolution: Target resolution, index.resolution..15

    Returns:
        Children in ascending order. Empty if the target is above 15.
        For a pentagon, children whose first new non-zero digit is 1 are
        left out: they would lie in the deleted K wedge.

    Raises:
        InvalidResolution: If the target is coarser than the cell
    """
    if resolution < index.resolution:
        raise InvalidResolution(
            f"child resolution {resolution} is coarser than {index.resolution}"
        )
    if resolution > MAX_RES:
        return []

    depth = resolution - index.resolution
    pentagon = index.is_pentagon()
    children = []
    for new_digits in product(range(7), repeat=depth):
        if pentagon and next((digit for digit in new_digits if digit != 0), 0) == 1:
            continue
        children.append(_with_digits(index, resolution, new_digits))

    metrics.children_enumerated_total.inc(len(children))
    return children
