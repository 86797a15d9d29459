"""Size classifier. Maps an item's raw weight to a discrete square size.

Weights span many orders of magnitude (satoshi values range from dust to
thousands of BTC), so the tier is the decimal order of magnitude shifted down
by a fixed calibration offset:

    tier = ceil(log10(weight)) - 5,   clamped to [1, max_tier]

Anything up to 10^6 lands on tier 1; each further decade adds one grid unit
of edge length.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Iterable, Mapping
from typing import Any

from mondrian.engine.config import DEFAULT_CONFIG


def classify(raw_weight: float | None, max_tier: int | None = None,
             offset: int = DEFAULT_CONFIG.size_offset) -> int:
    """Return the size tier (edge length in grid units, always >= 1).

    NaN counts as no weight. Infinity lands on the cap, or on the tier of the
    largest finite float when uncapped.
    """
    if not raw_weight or math.isnan(raw_weight) or raw_weight <= 0:
        return 1
    if math.isinf(raw_weight):
        if max_tier is not None:
            return max(1, max_tier)
        raw_weight = sys.float_info.max
    scale = math.ceil(math.log10(raw_weight)) - offset
    if max_tier is not None:
        scale = min(max_tier, scale)
    return max(1, scale)


def weight_from_outputs(outputs: Iterable[Mapping[str, Any]] | None) -> float:
    """Sum the ``value`` of every transaction output; missing values count as 0."""
    if not outputs:
        return 0
    return sum(output.get("value") or 0 for output in outputs)


def block_weight(tiers: Iterable[int]) -> int:
    """Total grid area the tiers will cover."""
    return sum(t * t for t in tiers)
