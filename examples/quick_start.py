"""
Quick Start Example for pyimgtensor.

Loads an image as a planar B,G,R array, then writes the array back to disk.
"""

import sys
from pathlib import Path

from pyimgtensor import ImageLoader


def main():
    if len(sys.argv) < 2:
        print("usage: python quick_start.py IMAGE [OUTPUT]")
        return

    src = Path(sys.argv[1])
    out = Path(sys.argv[2]) if len(sys.argv) > 2 else src.with_name(f"{src.stem}_roundtrip.png")

    loader = ImageLoader(height=224, width=224, channels=3, center_crop=True)
    tensor = loader.load(src)
    print(f"Loaded {src}: shape={tensor.shape} dtype={tensor.dtype}")
    print(f"Per-channel mean (B, G, R): {tensor.mean(axis=(1, 2)).round(2).tolist()}")

    info = loader.load_image_matrix(src)
    print(f"Bands={info.bands} height={info.height} width={info.width}")

    loader.save(tensor, out)
    print(f"Wrote {out}")


if __name__ == "__main__":
    main()
