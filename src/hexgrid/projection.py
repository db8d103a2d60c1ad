"""
Projection engine: the continuous mapping between cells and the sphere.

The grid core never does projection math itself. It asks an engine for a
cell's center and for the ordered corners of its boundary. The default engine
is backed by the h3 library, whose bit layout this index shares.
"""
import logging
import math
from functools import lru_cache
from typing import List, Protocol

import h3

from . import config
from .codec import CellIndex
from .errors import InvalidIndex, ProjectionError
from .models import Coordinate

logger = logging.getLogger(__name__)


class ProjectionEngine(Protocol):
    def cell_center(self, index: CellIndex) -> Coordinate:
        ...

    def cell_boundary(self, index: CellIndex) -> List[Coordinate]:
        ...


def _from_degrees(lat: float, lng: float) -> Coordinate:
    return Coordinate(lat=math.radians(lat), lng=math.radians(lng))


class H3ProjectionEngine:
    """Projection engine backed by the h3 library (v4 API)."""

    def _address(self, index: CellIndex) -> str:
        if not index.is_valid():
            raise InvalidIndex(f"{index} is not a valid cell")
        return h3.int_to_str(index.value)

    def cell_center(self, index: CellIndex) -> Coordinate:
        lat, lng = h3.cell_to_latlng(self._address(index))
        return _from_degrees(lat, lng)

    def cell_boundary(self, index: CellIndex) -> List[Coordinate]:
        """
        Corners of a cell, counter-clockwise: 6 for a hexagon, 5 for a pentagon.

        h3.cell_to_boundary also returns the points where an edge crosses an
        icosahedron face, so the corners are read through the vertex API.
        """
        vertexes = h3.cell_to_vertexes(self._address(index))
        return [_from_degrees(*h3.vertex_to_latlng(vertex)) for vertex in vertexes]


_BACKENDS = {
    "h3": H3ProjectionEngine,
}


@lru_cache(maxsize=None)
def get_projection_engine() -> ProjectionEngine:
    """The process-wide engine selected by HEXGRID_PROJECTION_BACKEND."""
    backend = _BACKENDS.get(config.PROJECTION_BACKEND)
    if backend is None:
        raise ProjectionError(
            f"Unknown projection backend {config.PROJECTION_BACKEND!r}; "
            f"expected one of {sorted(_BACKENDS)}"
        )
    logger.info("Projection engine initialized (backend=%s)", config.PROJECTION_BACKEND)
    return backend()


def cell_to_lat_lng(index: CellIndex) -> Coordinate:
    """Center of a cell, in radians. Use .to_degrees() for the degrees view."""
    return get_projection_engine().cell_center(index)


def cell_to_boundary(index: CellIndex) -> List[Coordinate]:
    """Ordered corners of a cell, in radians."""
    return get_projection_engine().cell_boundary(index)
