"""Shared test fixtures."""

from __future__ import annotations

import io
import random

import pytest
from PIL import Image

from mondrian.engine.layout import PlacedTile
from mondrian.engine.pipeline import Item


# Worked example: three 3x3 tiles then seven 1x1 tiles on a 10-wide grid
SCENARIO_WIDTH = 10
SCENARIO_TIERS = [3, 3, 3, 1, 1, 1, 1, 1, 1, 1]

# Weights landing on a known tier: ceil(log10(w)) - 5
TIER_WEIGHTS = {
    1: 12_345,          # ceil(4.09) - 5 < 1 -> 1
    2: 2_500_000,       # ceil(6.40) - 5 = 2
    3: 50_000_000,      # ceil(7.70) - 5 = 3
    4: 500_000_000,     # ceil(8.70) - 5 = 4
    5: 5_000_000_000,   # ceil(9.70) - 5 = 5
}


def make_items(tiers: list[int]) -> list[Item]:
    return [Item(f"tx{i}", TIER_WEIGHTS[t]) for i, t in enumerate(tiers)]


def random_tiers(seed: int, count: int, max_tier: int = 5) -> list[int]:
    rng = random.Random(seed)
    # Skew toward small tiles like real blocks
    return [min(max_tier, 1 + int(rng.expovariate(1.0))) for _ in range(count)]


def assert_no_overlap(tiles: list[PlacedTile]) -> None:
    for i, a in enumerate(tiles):
        for b in tiles[i + 1:]:
            assert not a.overlaps(b), f"{a} overlaps {b}"


@pytest.fixture
def scenario_items() -> list[Item]:
    return make_items(SCENARIO_TIERS)


@pytest.fixture
def mixed_items() -> list[Item]:
    return make_items([4, 1, 1, 2, 3, 1, 1, 1, 2, 1, 5, 1, 1, 2, 1, 1, 3, 1])


@pytest.fixture
def oversized_png(monkeypatch) -> bytes:
    """A small PNG that Pillow refuses as a decompression bomb."""
    buf = io.BytesIO()
    Image.new("1", (100, 100)).save(buf, format="PNG")
    # Pillow errors out above twice the limit
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)
    return buf.getvalue()
