"""
Adaptive interpolation inpainting (Shih, Chang, Lu, Ko, Wang).

Every damaged pixel looks at a growing square around itself:
- enough known pixels in the square -> mean of the known pixels
- square full of damage past the threshold -> grow the square
- otherwise, or past MAX_DISTANCE -> global mean of the known pixels

Only the original known pixels feed the means, so filled pixels never
influence each other and the fill order does not matter.
"""

from typing import Optional

import cv2
import numpy as np

from inpainter import DegenerateSearchError, PreconditionError, prepare_grids

# thresholds indexed by square distance (index 0 unused)
MU_THRESHOLDS = (0, 7, 8, 9, 10, 12, 14, 16, 18, 20, 22)
LAMBDA_THRESHOLDS = (0, 20, 22, 24, 26, 28, 30, 32, 34, 36, 38)
MAX_DISTANCE = 10


def window_sums(values: np.ndarray, distance: int) -> np.ndarray:
    """Sum over the (2d+1)² square around each pixel, clipped at the edges."""
    size = 2 * distance + 1
    return cv2.boxFilter(values, cv2.CV_64F, (size, size), normalize=False,
                         borderType=cv2.BORDER_CONSTANT)


class AdaptiveInpainter:
    """Local mean fill with per-distance usefulness thresholds."""

    def __init__(self, max_distance: int = MAX_DISTANCE, verbose: bool = True):
        if not 1 <= max_distance < len(MU_THRESHOLDS):
            raise PreconditionError(
                f"max_distance must be in [1, {len(MU_THRESHOLDS) - 1}], got {max_distance}"
            )
        self.max_distance = max_distance
        self.verbose = verbose

        # computed lazily, once per run
        self._global_mean: Optional[np.ndarray] = None

    def global_mean_pixel(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Integer mean RGB of every known pixel."""
        if self._global_mean is None:
            known = image[~mask][:, :3].astype(np.int64)
            if len(known) == 0:
                raise DegenerateSearchError("No undamaged pixel to interpolate from")
            self._global_mean = known.sum(axis=0) // len(known)
        return self._global_mean

    def inpaint(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """Fill every damaged pixel. Returns a new RGBA grid."""
        print(f"\n[INPAINTER] 🎨 ADAPTIVE INPAINTING (max distance={self.max_distance})")
        grid, damaged = prepare_grids(image, mask)
        self._global_mean = None

        total = int(np.count_nonzero(damaged))
        print(f"[INPAINTER] Image: {grid.shape[1]}×{grid.shape[0]}, damaged pixels: {total}")
        if total == 0:
            print("[INPAINTER] WARNING: Mask is empty! Returning original.")
            return grid

        known = (~damaged).astype(np.float64)
        weighted = grid[..., :3].astype(np.float64) * known[..., None]
        ones = np.ones(damaged.shape, dtype=np.float64)

        pending = damaged.copy()
        local_fills = 0
        for distance in range(1, self.max_distance + 1):
            if not pending.any():
                break

            size = window_sums(ones, distance)
            useful = window_sums(known, distance)
            mu = np.trunc(useful / size * 100)
            lam = np.trunc((size - useful) / size * 100)

            take_mean = pending & (mu != 0) & (mu > MU_THRESHOLDS[distance])
            take_global = pending & (mu == 0) & (lam <= LAMBDA_THRESHOLDS[distance])

            if take_mean.any():
                sums = np.rint(window_sums(weighted, distance)[take_mean]).astype(np.int64)
                counts = np.rint(useful[take_mean]).astype(np.int64)
                grid[take_mean, :3] = sums // counts[:, None]
                grid[take_mean, 3] = 255
                local_fills += int(np.count_nonzero(take_mean))

            if take_global.any():
                self._fill_global(grid, damaged, take_global)

            pending &= ~(take_mean | take_global)
            if self.verbose:
                print(f"[ADAPTIVE] Distance {distance}: {int(np.count_nonzero(pending))} pixels pending")

        # past the largest square
        if pending.any():
            self._fill_global(grid, damaged, pending)

        print(f"[INPAINTER] ✅ Adaptive complete: {local_fills} local, {total - local_fills} global")
        return grid

    def _fill_global(self, grid: np.ndarray, damaged: np.ndarray, where: np.ndarray):
        grid[where, :3] = self.global_mean_pixel(grid, damaged)
        grid[where, 3] = 255
