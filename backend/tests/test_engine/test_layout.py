"""Tests for the first-fit square packer."""

from __future__ import annotations

import pytest

from mondrian.engine.layout import Layout, PlacedTile, Row, Slot, pack
from mondrian.engine.pipeline import layout_width
from tests.conftest import SCENARIO_TIERS, SCENARIO_WIDTH, assert_no_overlap, random_tiers


def _slot_squares_are_free(layout: Layout) -> None:
    """Every free slot promises an unoccupied square inside the grid."""
    for slot in layout.free_slots():
        assert slot.width > 0
        assert slot.right <= layout.width
        square = PlacedTile(-1, slot.x, slot.y, slot.width)
        for tile in layout.tiles:
            assert not square.overlaps(tile), f"{slot} covers {tile}"


def _slots_cover_free_columns(layout: Layout) -> None:
    """Each row's slots together span exactly its unoccupied cells."""
    for row in layout.rows:
        covered = set()
        for slot in row.slots.values():
            covered.update(range(slot.x, slot.right))
        free = {x for x in range(layout.width) if layout.item_at(x, row.y) is None}
        assert covered == free, f"row {row.y}: slots cover {sorted(covered)}, free {sorted(free)}"


class TestScenario:
    def _layout(self) -> Layout:
        return pack(SCENARIO_TIERS, SCENARIO_WIDTH)

    def test_large_tiles_fill_first_row(self):
        tiles = self._layout().tiles
        assert (tiles[0].grid_x, tiles[0].grid_y) == (0, 0)
        assert (tiles[1].grid_x, tiles[1].grid_y) == (3, 0)
        assert (tiles[2].grid_x, tiles[2].grid_y) == (6, 0)

    def test_unit_tiles_take_first_gaps_in_scan_order(self):
        tiles = self._layout().tiles
        positions = [(t.grid_x, t.grid_y) for t in tiles[3:]]
        assert positions == [(9, 0), (9, 1), (9, 2), (0, 3), (1, 3), (2, 3), (3, 3)]

    def test_top_band_fully_occupied(self):
        layout = self._layout()
        for gy in range(3):
            for gx in range(SCENARIO_WIDTH):
                assert layout.item_at(gx, gy) is not None
        assert not [s for s in layout.free_slots() if s.y < 3]

    def test_no_overlap(self):
        assert_no_overlap(self._layout().tiles)

    def test_remaining_free_space_is_tail_of_last_row(self):
        slots = list(self._layout().free_slots())
        assert slots == [Slot(4, 3, 6)]


class TestPlacement:
    def test_first_tile_at_origin(self):
        layout = Layout(8)
        tile = layout.place("a", 3)
        assert tile == PlacedTile(0, 0, 0, 3)
        assert layout.height == 3

    def test_opens_row_when_nothing_fits(self):
        layout = Layout(4)
        layout.place("a", 3)
        tile = layout.place("b", 2)
        # Column 3 is only one unit wide, so the 2x2 starts a new row
        assert (tile.grid_x, tile.grid_y) == (0, 3)

    def test_zero_or_negative_size_ignored(self):
        layout = Layout(5)
        assert layout.place("a", 0) is None
        assert layout.place("b", -2) is None
        assert layout.tiles == []
        assert layout.rows == []
        tile = layout.place("c", 1)
        # Ignored placements still consume an index
        assert tile.item_index == 2
        assert layout.item_at(0, 0) == "c"

    def test_oversized_tile_rejected(self):
        with pytest.raises(ValueError):
            Layout(3).place("a", 4)

    def test_invalid_width(self):
        with pytest.raises(ValueError):
            Layout(0)

    def test_shadow_above_is_clipped(self):
        layout = Layout(7)
        layout.place("a", 4)  # (0, 0)
        layout.place("b", 1)  # (4, 0), leaves a 2-wide slot at (5, 0)
        tile = layout.place("c", 3)
        assert (tile.grid_x, tile.grid_y) == (4, 1)
        # The 2x2 promise at (5, 0) reached into row 1; it is cut to one row
        # and the cut-off column handed back as its own 1x1 slot
        assert [s for s in layout.free_slots() if s.y == 0] == [Slot(5, 0, 1), Slot(6, 0, 1)]
        _slot_squares_are_free(layout)
        d = layout.place("d", 1)
        assert (d.grid_x, d.grid_y) == (5, 0)
        assert_no_overlap(layout.tiles)

    def test_new_rows_open_slots_beside_tile(self):
        layout = Layout(4)
        layout.place("a", 1)
        layout.place("b", 3)  # (1, 0) spills into new rows 1-2
        assert [s for s in layout.free_slots()] == [Slot(0, 1, 1), Slot(0, 2, 1)]

    def test_rows_keep_slots_ordered(self):
        row = Row(0)
        for x in (7, 2, 5):
            row.slots[x] = Slot(x, 0, 1)
        assert [s.x for s in row.ordered()] == [2, 5, 7]


class TestOccupancy:
    def test_item_at_matches_tiles(self):
        layout = pack([2, 1, 1, 3, 1], 4, items=["a", "b", "c", "d", "e"])
        for tile in layout.tiles:
            expected = ["a", "b", "c", "d", "e"][tile.item_index]
            for gy in range(tile.grid_y, tile.bottom):
                for gx in range(tile.grid_x, tile.right):
                    assert layout.item_at(gx, gy) == expected

    def test_item_at_out_of_range(self):
        layout = pack([1], 2)
        assert layout.item_at(-1, 0) is None
        assert layout.item_at(2, 0) is None
        assert layout.item_at(0, 5) is None
        assert layout.item_at(1, 0) is None

    def test_occupied_cells_equals_tile_area(self):
        tiers = [3, 2, 1, 1, 2]
        layout = pack(tiers, layout_width(tiers))
        assert layout.occupied_cells() == sum(t * t for t in tiers)


class TestProperties:
    @pytest.mark.parametrize("seed", range(12))
    def test_no_overlap(self, seed):
        tiers = random_tiers(seed, 150)
        layout = pack(tiers, layout_width(tiers))
        assert len(layout.tiles) == len(tiers)
        assert_no_overlap(layout.tiles)

    @pytest.mark.parametrize("seed", range(12))
    def test_tiles_stay_inside_grid(self, seed):
        tiers = random_tiers(seed, 150)
        layout = pack(tiers, layout_width(tiers))
        for tile in layout.tiles:
            assert tile.grid_x >= 0 and tile.right <= layout.width
            assert tile.bottom <= layout.height

    @pytest.mark.parametrize("seed", range(12))
    def test_area_accounting(self, seed):
        tiers = random_tiers(seed, 150)
        layout = pack(tiers, layout_width(tiers))
        assert sum(t.side ** 2 for t in layout.tiles) <= layout.width * layout.height

    @pytest.mark.parametrize("seed", range(6))
    def test_slots_never_cover_tiles(self, seed):
        tiers = random_tiers(seed, 80)
        layout = Layout(layout_width(tiers))
        for i, size in enumerate(tiers):
            layout.place(i, size)
            _slot_squares_are_free(layout)

    @pytest.mark.parametrize("seed", range(6))
    def test_slots_cover_free_columns(self, seed):
        tiers = random_tiers(seed, 80)
        layout = Layout(layout_width(tiers))
        for i, size in enumerate(tiers):
            layout.place(i, size)
            _slots_cover_free_columns(layout)

    def test_slots_in_a_row_may_overlap(self):
        # Split leftovers can land inside a wider slot of the same row
        tiers = [6, 3, 3, 2, 1, 1, 3, 5, 3, 3, 3, 4, 2, 2, 2, 4, 1, 6, 6]
        layout = pack(tiers, 12)
        row = layout.rows[18]
        assert row.slots[2] == Slot(2, 18, 2)
        assert row.slots[3] == Slot(3, 18, 1)
        _slots_cover_free_columns(layout)
        _slot_squares_are_free(layout)

    def test_deterministic(self):
        tiers = random_tiers(99, 200)
        width = layout_width(tiers)
        assert pack(tiers, width).tiles == pack(tiers, width).tiles

    def test_tile_side_is_tier(self):
        tiers = random_tiers(3, 60)
        layout = pack(tiers, layout_width(tiers))
        assert [t.side for t in layout.tiles] == tiers
        assert [t.item_index for t in layout.tiles] == list(range(len(tiers)))
