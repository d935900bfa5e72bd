"""
Image loading/saving for the inpainter.

Grids are numpy arrays shaped (height, width, 4), dtype uint8, RGBA.
A mask image marks damage through its alpha channel: any pixel whose
alpha is non-zero is damaged.
"""

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

PathLike = Union[str, Path]


def load_rgba(path: PathLike) -> np.ndarray:
    """Decode an image file into an RGBA grid."""
    try:
        with Image.open(path) as img:
            grid = np.array(img.convert("RGBA"), dtype=np.uint8)
    except OSError as e:
        raise FileNotFoundError(f"Could not load image: {path}") from e

    print(f"[IO] Loaded {path}: {grid.shape[1]}×{grid.shape[0]}")
    return grid


def load_mask(path: PathLike) -> np.ndarray:
    """Decode a mask image into a boolean damage grid."""
    return mask_from_rgba(load_rgba(path))


def mask_from_rgba(grid: np.ndarray) -> np.ndarray:
    """Damaged where the alpha channel is non-zero."""
    grid = np.asarray(grid)
    if grid.ndim != 3 or grid.shape[2] != 4:
        raise ValueError(f"Expected an RGBA grid, got shape {grid.shape}")
    return grid[..., 3] != 0


def mask_to_rgba(mask: np.ndarray) -> np.ndarray:
    """Opaque black where damaged, fully transparent elsewhere."""
    mask = np.asarray(mask, dtype=bool)
    grid = np.zeros(mask.shape + (4,), dtype=np.uint8)
    grid[mask, 3] = 255
    return grid


def save_rgba(path: PathLike, grid: np.ndarray) -> Path:
    """Encode an RGBA grid to disk, creating parent folders as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    Image.fromarray(np.ascontiguousarray(grid, dtype=np.uint8)).save(path)
    print(f"[IO] Saved {path}")
    return path
