"""Render sample blocks to PNG and read the squares back."""

import random
import sys
import time
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from mondrian.engine.layout import Layout
from mondrian.engine.pipeline import Item, generate_visualization
from mondrian.engine.reconstruction import reconstruct


def _synthetic_block(n_tx: int, seed: int) -> list[Item]:
    """Log-uniform output values between 1k and 100 BTC in satoshis."""
    rng = random.Random(seed)
    return [Item(f"tx{i:05d}", 10 ** rng.uniform(3, 10)) for i in range(n_tx)]


SAMPLES = {
    "Empty block": [],
    "Tiny block": _synthetic_block(12, seed=1),
    "Typical block": _synthetic_block(600, seed=2),
    "Busy block": _synthetic_block(3000, seed=3),
}


def _ascii_preview(layout: Layout, max_cols: int = 64) -> str:
    if layout.width > max_cols:
        return f"  (grid {layout.width} wide, preview skipped)"
    lines = []
    for gy in range(layout.height):
        row = "".join("#" if layout.item_at(gx, gy) is not None else "." for gx in range(layout.width))
        lines.append("  " + row)
    return "\n".join(lines)


def main():
    output_dir = Path(__file__).parent / "sample_output"
    output_dir.mkdir(exist_ok=True)

    for name, items in SAMPLES.items():
        print(f"\n{'='*64}")
        print(f"  Processing: {name} ({len(items)} items)")
        print(f"{'='*64}")

        t0 = time.perf_counter()
        viz = generate_visualization(items)
        t_render = time.perf_counter() - t0

        t0 = time.perf_counter()
        result = reconstruct(viz.buffer)
        t_parse = time.perf_counter() - t0

        print(f"\n  Render: {t_render*1000:.0f}ms  ->  {viz.buffer.width}x{viz.buffer.height} px")
        print(f"  Grid: {viz.grid_width}x{viz.grid_height} @ {viz.scale:.1f} px/unit")
        print(f"  Read-back: {t_parse*1000:.0f}ms  ->  {len(result)} squares"
              f"{' (TRUNCATED)' if result.truncated else ''}")
        if len(result) != len(items):
            print(f"  MISMATCH: {len(items)} items vs {len(result)} squares")
        if viz.layout is not None:
            print(_ascii_preview(viz.layout))

        out_path = output_dir / f"{name.lower().replace(' ', '_')}.png"
        out_path.write_bytes(viz.buffer.to_png())
        print(f"  Saved: {out_path}")


if __name__ == "__main__":
    main()
