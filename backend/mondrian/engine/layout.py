"""Packing engine: greedy first-fit square packer over a row/slot model.

The layout is a grid ``width`` columns wide that grows downward one row at a
time. Every row owns a set of free *slots*; a slot at ``(x, y)`` with width
``w`` promises that the ``w x w`` square anchored there is unoccupied. Tiles
are placed into the first slot (rows top-down, slots left-to-right) that is
wide enough, and every slot whose square the new tile intrudes on is shrunk,
clipped or split so the promise keeps holding.

Because placement is first-fit, every slot in a row above the chosen one is
narrower than the tile being placed, so only the ``size`` rows directly above
the tile (its "shadow") can hold slots reaching down into it.

The packer is deterministic: the same width and the same ordered sequence of
sizes always produce the same tiles.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Slot:
    """Free square anchored at column ``x`` of row ``y``, ``width`` units wide."""
    x: int
    y: int
    width: int

    @property
    def right(self) -> int:
        return self.x + self.width


@dataclass
class Row:
    """One grid row. Slots live in a single mapping keyed by column."""
    y: int
    slots: dict[int, Slot] = field(default_factory=dict)

    def ordered(self) -> list[Slot]:
        """Slots in ascending ``x``."""
        return [self.slots[x] for x in sorted(self.slots)]


@dataclass(frozen=True)
class PlacedTile:
    """A square tile at grid position ``(grid_x, grid_y)`` with edge ``side``."""
    item_index: int
    grid_x: int
    grid_y: int
    side: int

    @property
    def right(self) -> int:
        return self.grid_x + self.side

    @property
    def bottom(self) -> int:
        return self.grid_y + self.side

    def overlaps(self, other: PlacedTile) -> bool:
        return (
            self.grid_x < other.right and other.grid_x < self.right
            and self.grid_y < other.bottom and other.grid_y < self.bottom
        )


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

class Layout:
    """Growing grid of fixed width that places square tiles without overlap."""

    def __init__(self, width: int) -> None:
        if width < 1:
            raise ValueError(f"layout width must be >= 1, got {width}")
        self.width = width
        self.rows: list[Row] = []
        self.tiles: list[PlacedTile] = []
        self._items: list[Any] = []
        # Row-major item index per cell; None = free
        self._occupancy: list[list[int | None]] = []

    # ── Public API ──

    @property
    def height(self) -> int:
        """Number of rows created so far."""
        return len(self.rows)

    def place(self, item: Any, size: int) -> PlacedTile | None:
        """Place ``item`` as a ``size x size`` tile and return where it went.

        Non-positive sizes are ignored (no tile, no slot, returns None) but
        still consume an item index so indices line up with the caller's list.
        """
        item_index = len(self._items)
        self._items.append(item)
        if size <= 0:
            return None
        if size > self.width:
            raise ValueError(f"tile of side {size} does not fit layout width {self.width}")

        tile = None
        for row in self.rows:
            for slot in row.ordered():
                if slot.width >= size:
                    tile = self._fill_slot(slot, size, item_index)
                    break
            if tile is not None:
                break

        if tile is None:
            row = self._add_row()
            slot = self._add_slot(0, row.y, self.width)
            tile = self._fill_slot(slot, size, item_index)

        self._mark(tile)
        self.tiles.append(tile)
        return tile

    def item_at(self, grid_x: int, grid_y: int) -> Any | None:
        """Item occupying grid cell ``(grid_x, grid_y)``, or None."""
        if grid_y < 0 or grid_y >= len(self._occupancy):
            return None
        if grid_x < 0 or grid_x >= self.width:
            return None
        index = self._occupancy[grid_y][grid_x]
        return None if index is None else self._items[index]

    def free_slots(self) -> Iterator[Slot]:
        """All free slots, rows top-down, slots left-to-right."""
        for row in self.rows:
            yield from row.ordered()

    def occupied_cells(self) -> int:
        return sum(1 for row in self._occupancy for cell in row if cell is not None)

    # ── Rows & slots ──

    def _row(self, y: int) -> Row | None:
        if 0 <= y < len(self.rows):
            return self.rows[y]
        return None

    def _add_row(self) -> Row:
        row = Row(y=len(self.rows))
        self.rows.append(row)
        return row

    def _add_slot(self, x: int, y: int, width: int) -> Slot | None:
        """Insert a slot, widening an existing one at the same column instead."""
        if width <= 0:
            return None
        row = self._row(y)
        if row is None:
            return None
        existing = row.slots.get(x)
        if existing is not None:
            if width > existing.width:
                existing.width = width
            return existing
        slot = Slot(x, y, width)
        row.slots[x] = slot
        return slot

    def _remove_slot(self, slot: Slot) -> None:
        row = self._row(slot.y)
        if row is not None and row.slots.get(slot.x) is slot:
            del row.slots[slot.x]

    # ── Placement ──

    def _fill_slot(self, slot: Slot, size: int, item_index: int) -> PlacedTile:
        left, right = slot.x, slot.x + size
        top, bottom = slot.y, slot.y + size
        self._remove_slot(slot)

        # Rows the tile spans: cut every slot it intersects back to its left
        # edge, and open a slot on its right edge.
        for y in range(top, bottom):
            row = self._row(y)
            if row is None:
                self._add_row()
                if left > 0:
                    self._add_slot(0, y, left)
                if right < self.width:
                    self._add_slot(right, y, self.width - right)
                continue

            collisions = [s for s in row.ordered() if s.right >= left and s.x < right]
            max_excess = 0
            for s in collisions:
                max_excess = max(max_excess, s.right - slot.right)

            if right < self.width and right not in row.slots:
                self._add_slot(right, y, slot.width - size + max_excess)

            for s in collisions:
                s.width = left - s.x
                if s.width <= 0:
                    self._remove_slot(s)

        # Shadow above: slots whose square reaches down into the tile are
        # clipped to end at its top edge; the cut-off columns are handed back
        # as smaller squares.
        for y in range(max(0, top - size), top):
            row = self._row(y)
            if row is None:
                continue
            for s in row.ordered():
                if not (s.x < right and s.right > left and s.y + s.width >= top):
                    continue
                old_width = s.width
                s.width = top - s.y
                if s.width <= 0:
                    self._remove_slot(s)
                self._split_remaining(s.x + s.width, s.y, old_width - s.width, s.width)

        return PlacedTile(item_index=item_index, grid_x=left, grid_y=top, side=size)

    def _split_remaining(self, x: int, y: int, w: int, h: int) -> None:
        """Re-insert a ``w x h`` free rectangle as a run of squares."""
        while w > 0 and h > 0:
            if w <= h:
                self._add_slot(x, y, w)
                y += w
                h -= w
            else:
                self._add_slot(x, y, h)
                x += h
                w -= h

    def _mark(self, tile: PlacedTile) -> None:
        while len(self._occupancy) < tile.bottom:
            self._occupancy.append([None] * self.width)
        for gy in range(tile.grid_y, tile.bottom):
            cells = self._occupancy[gy]
            for gx in range(tile.grid_x, tile.right):
                cells[gx] = tile.item_index


def pack(sizes: list[int], width: int, items: list[Any] | None = None) -> Layout:
    """Place ``sizes`` in order into a fresh layout of ``width`` columns."""
    layout = Layout(width)
    if items is None:
        items = list(range(len(sizes)))
    for item, size in zip(items, sizes):
        layout.place(item, size)
    logger.debug(
        "Packed %d tiles into %d x %d grid (%d free slots)",
        len(layout.tiles), layout.width, layout.height,
        sum(1 for _ in layout.free_slots()),
    )
    return layout
