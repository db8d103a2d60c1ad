"""
Unit tests for neighbor stepping and disk / ring traversal.
"""
import logging

import pytest
import h3
from prometheus_client import REGISTRY

from src.hexgrid.codec import CellIndex, PENTAGON_BASE_CELLS
from src.hexgrid.errors import InvalidRadius
from src.hexgrid.hierarchy import center_child_at
from src.hexgrid.ijk import NEIGHBOR_DIRECTIONS, Direction
from src.hexgrid.traversal import (
    are_neighbors,
    grid_disk,
    grid_disk_distances,
    grid_ring,
    neighbor,
)

SF_RES5 = "85283473fffffff"


@pytest.fixture
def sf_cell():
    return CellIndex.from_string(SF_RES5)


@pytest.fixture
def interior_cell():
    """Resolution 9 center of base cell 20, far from any base cell edge."""
    return center_child_at(CellIndex.from_digits(20), 9)


def _h3_disk(cell, k):
    return {CellIndex.from_string(address) for address in h3.grid_disk(h3.int_to_str(cell.value), k)}


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0


@pytest.mark.unit
class TestNeighbor:
    """Test suite for single neighbor steps."""

    def test_six_distinct_neighbors(self, sf_cell):
        """Test that a hexagon has six different neighbors."""
        found = {neighbor(sf_cell, direction) for direction in NEIGHBOR_DIRECTIONS}

        assert None not in found
        assert len(found) == 6
        assert sf_cell not in found

    def test_neighbors_keep_resolution(self, sf_cell):
        """Test that neighbors are valid cells of the same resolution."""
        for direction in NEIGHBOR_DIRECTIONS:
            found = neighbor(sf_cell, direction)
            assert found.is_valid()
            assert found.resolution == sf_cell.resolution

    def test_pentagon_k_direction_has_no_neighbor(self):
        """Test that stepping along a pentagon's deleted axis gives None."""
        pentagon = center_child_at(CellIndex.from_digits(14), 3)

        assert neighbor(pentagon, Direction.K) is None

    def test_base_pentagon_k_direction(self):
        """Test that a resolution 0 pentagon has no K neighbor either."""
        assert neighbor(CellIndex.from_digits(4), Direction.K) is None

    def test_pentagon_has_five_neighbors(self):
        """Test that a pentagon has exactly five distinct neighbors."""
        pentagon = center_child_at(CellIndex.from_digits(14), 3)
        found = {neighbor(pentagon, direction) for direction in NEIGHBOR_DIRECTIONS} - {None}

        assert len(found) == 5

    def test_interior_step_stays_in_base_cell(self, interior_cell):
        """Test that steps from a deep center never leave the base cell."""
        for direction in NEIGHBOR_DIRECTIONS:
            assert neighbor(interior_cell, direction).base_cell == 20


@pytest.mark.unit
class TestGridDisk:
    """Test suite for grid_disk."""

    def test_radius_zero_is_center(self, sf_cell):
        """Test that k = 0 gives just the center."""
        assert grid_disk(sf_cell, 0) == {sf_cell}

    def test_negative_radius_fails(self, sf_cell):
        """Test that a negative radius is rejected."""
        with pytest.raises(InvalidRadius):
            grid_disk(sf_cell, -1)

    def test_invalid_center_gives_empty(self):
        """Test that an invalid center yields an empty set."""
        assert grid_disk(CellIndex.from_int(0), 1) == set()

    def test_base_cell_zero_disk(self):
        """Test the resolution 0 disk around base cell 0."""
        center = CellIndex.from_digits(0)

        disk = grid_disk(center, 1)

        assert len(disk) == 7
        assert center in disk
        assert len(grid_ring(center, 1)) == 6

    @pytest.mark.parametrize("k", [1, 2, 3, 4])
    def test_hexagon_cardinality(self, interior_cell, k):
        """Test 3k^2 + 3k + 1 cells away from pentagons."""
        assert len(grid_disk(interior_cell, k)) == 3 * k * k + 3 * k + 1

    def test_matches_h3(self, sf_cell):
        """Test the disk against the h3 library."""
        assert grid_disk(sf_cell, 3) == _h3_disk(sf_cell, 3)

    def test_monotonic_in_radius(self, sf_cell):
        """Test that disk(k) is contained in disk(k + 1)."""
        for k in range(0, 3):
            assert grid_disk(sf_cell, k) <= grid_disk(sf_cell, k + 1)

    def test_all_cells_valid_same_resolution(self, sf_cell):
        """Test that every disk member is a valid cell at the center's resolution."""
        for cell in grid_disk(sf_cell, 2):
            assert cell.is_valid()
            assert cell.resolution == sf_cell.resolution

    def test_records_metrics(self, sf_cell):
        """Test that traversals are counted."""
        before = _sample('hexgrid_traversal_requests_total', {'operation': 'grid_disk'})

        grid_disk(sf_cell, 1)

        assert _sample('hexgrid_traversal_requests_total', {'operation': 'grid_disk'}) == before + 1


@pytest.mark.unit
class TestGridRing:
    """Test suite for grid_ring and grid_disk_distances."""

    def test_ring_sizes(self, interior_cell):
        """Test that ring k of a hexagon has 6k cells."""
        for k in range(1, 4):
            assert len(grid_ring(interior_cell, k)) == 6 * k

    def test_ring_zero(self, sf_cell):
        """Test that ring 0 is the center."""
        assert grid_ring(sf_cell, 0) == {sf_cell}

    def test_rings_partition_disk(self, sf_cell):
        """Test that disk(k) is the disjoint union of rings 0..k."""
        rings = [grid_ring(sf_cell, k) for k in range(0, 3)]

        assert set().union(*rings) == grid_disk(sf_cell, 2)
        assert sum(len(ring) for ring in rings) == len(grid_disk(sf_cell, 2))

    def test_ring_negative_radius(self, sf_cell):
        """Test that a negative radius is rejected."""
        with pytest.raises(InvalidRadius):
            grid_ring(sf_cell, -2)

    def test_distances_match_h3(self, sf_cell):
        """Test per-cell distances against h3.grid_distance."""
        distances = grid_disk_distances(sf_cell, 2)

        for cell, distance in distances.items():
            assert distance == h3.grid_distance(SF_RES5, h3.int_to_str(cell.value))

    def test_distances_invalid_center(self):
        """Test that an invalid center has no distances."""
        assert grid_disk_distances(CellIndex.from_int(0), 2) == {}


@pytest.mark.unit
class TestPentagons:
    """Test suite for traversal around pentagons."""

    @pytest.fixture
    def pentagon(self):
        return center_child_at(CellIndex.from_digits(14), 3)

    def test_pentagon_ring_has_five(self, pentagon):
        """Test that ring 1 of a pentagon has 5 cells."""
        assert len(grid_ring(pentagon, 1)) == 5
        assert len(grid_disk(pentagon, 1)) == 6

    def test_pentagon_disk_matches_h3(self, pentagon):
        """Test a radius 2 disk around a pentagon against the h3 library."""
        assert grid_disk(pentagon, 2) == _h3_disk(pentagon, 2)

    def test_every_pentagon_ring(self):
        """Test ring 1 of each resolution 2 pentagon against the h3 library."""
        for base_cell in PENTAGON_BASE_CELLS:
            pentagon = center_child_at(CellIndex.from_digits(base_cell), 2)
            assert grid_disk(pentagon, 1) == _h3_disk(pentagon, 1)

    def test_neighbor_symmetry_near_pentagon(self):
        """Test that adjacency is symmetric within two steps of a pentagon."""
        pentagon = center_child_at(CellIndex.from_digits(14), 2)

        for cell in grid_disk(pentagon, 2):
            for other in grid_ring(cell, 1):
                assert cell in grid_ring(other, 1)

    @pytest.mark.parametrize("resolution", [1, 2])
    @pytest.mark.parametrize("base_cell", sorted(PENTAGON_BASE_CELLS))
    def test_pentagon_neighborhood(self, base_cell, resolution):
        """Test disks and adjacency symmetry for every cell within two steps of a pentagon."""
        pentagon = center_child_at(CellIndex.from_digits(base_cell), resolution)

        for cell in _h3_disk(pentagon, 2):
            ring = grid_ring(cell, 1)
            assert ring | {cell} == _h3_disk(cell, 1)
            for other in ring:
                assert cell in grid_ring(other, 1)


@pytest.mark.unit
class TestPolarPentagons:
    """Test suite for steps into the polar pentagons 4 and 117."""

    def test_polar_pentagons_are_pentagons(self):
        """Test that base cells 4 and 117 are among the pentagons."""
        assert {4, 117} <= PENTAGON_BASE_CELLS

    def test_step_from_base_cell_3(self):
        """Test that base cell 3 reaches the wedge of pentagon 4 that borders it."""
        cell = CellIndex.from_string("81073ffffffffff")

        ring = grid_ring(cell, 1)

        assert CellIndex.from_string("81097ffffffffff") in ring
        assert CellIndex.from_string("8109bffffffffff") not in ring
        assert ring | {cell} == _h3_disk(cell, 1)

    @pytest.mark.parametrize("pentagon", [4, 117])
    def test_every_crossing_into_polar_pentagon(self, pentagon):
        """Test each resolution 1 and 2 cell of the neighboring base cells against the h3 library."""
        neighbors = {
            h3.get_base_cell_number(address)
            for address in h3.grid_disk(h3.int_to_str(CellIndex.from_digits(pentagon).value), 1)
        }
        for address in h3.get_res0_cells():
            if h3.get_base_cell_number(address) not in neighbors:
                continue
            for resolution in (1, 2):
                for child in h3.cell_to_children(address, resolution):
                    cell = CellIndex.from_string(child)
                    assert grid_disk(cell, 1) == _h3_disk(cell, 1)

    def test_step_is_logged_lazily(self, caplog):
        """Test that the wedge rotation is logged with deferred formatting."""
        cell = CellIndex.from_string("81073ffffffffff")

        with caplog.at_level(logging.DEBUG, logger="src.hexgrid.traversal"):
            grid_ring(cell, 1)

        records = [record for record in caplog.records if "deleted wedge" in record.getMessage()]
        assert records
        assert all("%s" in record.msg for record in records)


@pytest.mark.unit
class TestBaseCellCrossing:
    """Test suite for steps that leave a base cell."""

    def test_every_base_cell_disk(self):
        """Test the resolution 0 neighborhood of all 122 base cells."""
        for address in h3.get_res0_cells():
            cell = CellIndex.from_string(address)
            assert grid_disk(cell, 1) == _h3_disk(cell, 1)

    def test_resolution_one_disks(self):
        """Test resolution 1 neighborhoods, which cross base cells at the edges."""
        for address in h3.get_res0_cells():
            for child in h3.cell_to_children(address, 1):
                cell = CellIndex.from_string(child)
                assert grid_disk(cell, 1) == _h3_disk(cell, 1)

    def test_resolution_two_symmetry(self):
        """Test that every resolution 2 neighbor relation holds both ways."""
        for address in h3.get_res0_cells():
            for child in h3.cell_to_children(address, 2):
                cell = CellIndex.from_string(child)
                for other in grid_ring(cell, 1):
                    assert are_neighbors(other, cell)


@pytest.mark.unit
class TestAreNeighbors:
    """Test suite for are_neighbors."""

    def test_adjacent_cells(self, sf_cell):
        """Test that each ring 1 cell is a neighbor."""
        for cell in grid_ring(sf_cell, 1):
            assert are_neighbors(sf_cell, cell)
            assert are_neighbors(cell, sf_cell)

    def test_not_adjacent(self, sf_cell):
        """Test that ring 2 cells and the cell itself are not neighbors."""
        assert not are_neighbors(sf_cell, sf_cell)
        for cell in grid_ring(sf_cell, 2):
            assert not are_neighbors(sf_cell, cell)

    def test_different_resolution(self, sf_cell):
        """Test that cells at different resolutions are never neighbors."""
        assert not are_neighbors(sf_cell, center_child_at(sf_cell, 6))

    def test_invalid_cell(self, sf_cell):
        """Test that an invalid cell is never a neighbor."""
        assert not are_neighbors(sf_cell, CellIndex.from_int(0))
