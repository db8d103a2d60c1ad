"""
Vertex indexes: corners of cells, shared by up to three cells.

A vertex index reuses the cell layout with mode 4 and the vertex number in
the reserved bits. It always names the vertex through its owner, the
numerically smallest of the cells that share it, so every cell touching a
corner produces the same vertex index for it.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from . import config, metrics
from .codec import CELL_MODE, VERTEX_MODE, CellIndex, IndexFields, STRING_WIDTH
from .errors import InvalidIndex, ParseError
from .models import Coordinate
from .projection import ProjectionEngine, get_projection_engine
from .traversal import grid_ring


@dataclass(frozen=True, order=True)
class VertexIndex:
    """A cell corner. Immutable; compares and hashes by its integer value."""
    value: int

    @classmethod
    def for_cell(cls, owner: CellIndex, vertex_number: int) -> "VertexIndex":
        fields = owner.fields()
        return cls(IndexFields(
            mode=VERTEX_MODE,
            resolution=fields.resolution,
            base_cell=fields.base_cell,
            digits=fields.digits,
            reserved=vertex_number,
        ).encode())

    @classmethod
    def from_string(cls, text: str) -> "VertexIndex":
        try:
            value = CellIndex.from_string(text).value
        except ParseError as exc:
            raise ParseError(f"not a vertex index: {text!r}") from exc
        return cls(value)

    def to_string(self) -> str:
        return format(self.value, f"0{STRING_WIDTH}x")

    def __str__(self) -> str:
        return self.to_string()

    @property
    def owner(self) -> CellIndex:
        """The cell this vertex is numbered on."""
        fields = IndexFields.decode(self.value)
        return CellIndex(IndexFields(
            mode=CELL_MODE,
            resolution=fields.resolution,
            base_cell=fields.base_cell,
            digits=fields.digits,
        ).encode())

    @property
    def vertex_number(self) -> int:
        return IndexFields.decode(self.value).reserved


def _same_point(a: Coordinate, b: Coordinate) -> bool:
    return a.chord_to(b) <= config.VERTEX_TOLERANCE_CHORD


def _find_point(boundary: Sequence[Coordinate], point: Coordinate) -> Optional[int]:
    return next((number for number, corner in enumerate(boundary) if _same_point(corner, point)), None)


def cell_vertexes(index: CellIndex, engine: Optional[ProjectionEngine] = None) -> List[VertexIndex]:
    """
    Get the vertex indexes of a cell's corners.

    Args:
        index: A valid cell
        engine: Projection engine (defaults to the configured one)

    Returns:
        6 vertexes for a hexagon, 5 for a pentagon, counter-clockwise in the
        engine's boundary order. A corner shared with a neighbor is owned by
        whichever of the sharing cells has the smallest index.

    Raises:
        InvalidIndex: If the cell is not valid
    """
    if not index.is_valid():
        raise InvalidIndex(f"{index} is not a valid cell")
    engine = engine or get_projection_engine()

    boundary = engine.cell_boundary(index)
    neighbor_boundaries = {cell: engine.cell_boundary(cell) for cell in grid_ring(index, 1)}

    vertexes = []
    for number, corner in enumerate(boundary):
        owner, owner_number = index, number
        for cell, cell_boundary in neighbor_boundaries.items():
            if cell > owner:
                continue
            match = _find_point(cell_boundary, corner)
            if match is not None:
                owner, owner_number = cell, match
        vertexes.append(VertexIndex.for_cell(owner, owner_number))

    metrics.vertex_resolutions_total.labels(shape=index.shape.value).inc()
    return vertexes


def vertex_lat_lng(vertex: VertexIndex, engine: Optional[ProjectionEngine] = None) -> Coordinate:
    """
    Get the location of a vertex, in radians.

    Raises:
        InvalidIndex: If the vertex mode, owner or vertex number is malformed
    """
    if IndexFields.decode(vertex.value).mode != VERTEX_MODE:
        raise InvalidIndex(f"{vertex} is not a vertex index")
    owner = vertex.owner
    if not owner.is_valid():
        raise InvalidIndex(f"{vertex} has an invalid owner cell {owner}")
    engine = engine or get_projection_engine()

    boundary = engine.cell_boundary(owner)
    if vertex.vertex_number >= len(boundary):
        raise InvalidIndex(f"{owner} has no vertex {vertex.vertex_number}")
    return boundary[vertex.vertex_number]


def is_valid_vertex(vertex: VertexIndex, engine: Optional[ProjectionEngine] = None) -> bool:
    """Whether a vertex index is well formed and named through its canonical owner."""
    if IndexFields.decode(vertex.value).mode != VERTEX_MODE:
        return False
    owner = vertex.owner
    if not owner.is_valid():
        return False
    corners = 5 if owner.is_pentagon() else 6
    if vertex.vertex_number >= corners:
        return False
    return cell_vertexes(owner, engine)[vertex.vertex_number] == vertex
