"""
Exemplar-based inpainting - patch propagation over a shrinking fill front.

Each pass:
- extract the fill front (damaged pixels touching known pixels)
- score every front pixel: confidence term x data term (isophote vs normal)
- pick the front window with the LOWEST score
- search the whole image for the undamaged window with minimum SSD
- copy the exemplar into the damaged pixels and update confidence

The loop stops once the fill front is empty.
"""

import time
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from image_io import mask_from_rgba
from window import Window

Coordinate = Tuple[int, int]

# max channel value, normalises the data term
ALPHA = 255.0


class InpaintError(Exception):
    """Base class for inpainting failures."""


class PreconditionError(InpaintError, ValueError):
    """Inputs cannot be processed (shape mismatch, bad radius...)."""


class DegenerateSearchError(InpaintError):
    """No usable source data exists, so the fill cannot progress."""


class InpaintIncompleteError(InpaintError):
    """The pass limit was hit before the fill front emptied."""

    def __init__(self, message: str, image: np.ndarray):
        super().__init__(message)
        self.image = image


class PassRecord(NamedTuple):
    number: int
    boundary_size: int
    target: Window
    exemplar: Window
    filled: int
    remaining: int


def as_rgba(image: np.ndarray) -> np.ndarray:
    """Copy an RGB/RGBA array into a uint8 RGBA grid."""
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise PreconditionError(f"Source must be RGB or RGBA, got shape {image.shape}")

    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([image.astype(np.uint8), alpha], axis=2)
    return image.astype(np.uint8, copy=True)


def as_mask(mask: np.ndarray) -> np.ndarray:
    """Copy a 2-D flag array or an RGBA mask image into a bool grid."""
    mask = np.asarray(mask)
    if mask.ndim == 2:
        return mask != 0
    if mask.ndim == 3 and mask.shape[2] == 4:
        return mask_from_rgba(mask)
    raise PreconditionError(f"Mask must be 2-D or RGBA, got shape {mask.shape}")


def prepare_grids(image: np.ndarray, mask: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Validate and copy the source/mask pair. Nothing is mutated on failure."""
    grid = as_rgba(image)
    damaged = as_mask(mask)

    if grid.shape[:2] != damaged.shape:
        raise PreconditionError(
            f"The source image and mask image must have the same dimensions "
            f"(source {grid.shape[1]}×{grid.shape[0]}, mask {damaged.shape[1]}×{damaged.shape[0]})"
        )
    return grid, damaged


def _perpendicular(a: float, b: float) -> Tuple[float, float]:
    # <a,b> . <-b,a> = 0
    return (-b, a)


def _nearest_known_before(known: np.ndarray, axis: int) -> np.ndarray:
    """Index of the closest known pixel strictly before each pixel, -1 if none."""
    n = known.shape[axis]
    index = np.arange(n).reshape((-1, 1) if axis == 0 else (1, -1))
    marks = np.where(known, index, -1)
    reach = np.maximum.accumulate(marks, axis=axis)

    before = np.full(known.shape, -1, dtype=np.int64)
    if axis == 0:
        before[1:, :] = reach[:-1, :]
    else:
        before[:, 1:] = reach[:, :-1]
    return before


def _nearest_known_after(known: np.ndarray, axis: int) -> np.ndarray:
    """Index of the closest known pixel strictly after each pixel, n if none."""
    n = known.shape[axis]
    index = np.arange(n).reshape((-1, 1) if axis == 0 else (1, -1))
    marks = np.where(known, index, n)
    reach = np.flip(np.minimum.accumulate(np.flip(marks, axis=axis), axis=axis), axis=axis)

    after = np.full(known.shape, n, dtype=np.int64)
    if axis == 0:
        after[:-1, :] = reach[1:, :]
    else:
        after[:, :-1] = reach[:, 1:]
    return after


def _sample(rgb: np.ndarray, index: np.ndarray, axis: int) -> np.ndarray:
    """Gather rgb along one axis; indices off the grid sample zero."""
    h, w = index.shape
    n = h if axis == 0 else w
    off_grid = (index < 0) | (index >= n)
    safe = np.clip(index, 0, n - 1)

    if axis == 0:
        values = rgb[safe, np.arange(w)[None, :]]
    else:
        values = rgb[np.arange(h)[:, None], safe]
    values[off_grid] = 0.0
    return values


class ExemplarInpainter:
    """Exemplar-based inpainting engine. Owns the grids for a run."""

    def __init__(self, patch_radius: int = 4, max_passes: Optional[int] = None,
                 verbose: bool = True):
        if int(patch_radius) < 1:
            raise PreconditionError(f"Patch radius must be positive, got {patch_radius}")

        self.patch_radius = int(patch_radius)
        self.max_passes = max_passes
        self.verbose = verbose

        # run state, reset by load()
        self.image: Optional[np.ndarray] = None
        self.mask: Optional[np.ndarray] = None
        self.confidence: Optional[np.ndarray] = None
        self.passes: List[PassRecord] = []

        # progress tracking
        self.progress_callback: Optional[Callable] = None
        self.is_running = False
        self.total_pixels = 0
        self.filled_pixels = 0

    @property
    def width(self) -> int:
        return self.mask.shape[1]

    @property
    def height(self) -> int:
        return self.mask.shape[0]

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def load(self, image: np.ndarray, mask: np.ndarray):
        """Take private copies of the grids and initialise confidence."""
        self.image, self.mask = prepare_grids(image, mask)
        self.confidence = np.where(self.mask, 0.0, 1.0)
        self.passes = []
        self.total_pixels = int(np.count_nonzero(self.mask))
        self.filled_pixels = 0

    def window(self, x: int, y: int) -> Window:
        return Window(x, y, self.patch_radius, self.width, self.height)

    def is_damaged(self, x: int, y: int) -> bool:
        """Off-canvas pixels count as known."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False
        return bool(self.mask[y, x])

    def extract_boundary(self) -> List[Coordinate]:
        """Damaged pixels with at least one known 4-neighbour, row-major."""
        padded = np.pad(self.mask, 1, mode="constant", constant_values=False)
        exposed = (~padded[:-2, 1:-1] | ~padded[2:, 1:-1] |
                   ~padded[1:-1, :-2] | ~padded[1:-1, 2:])

        ys, xs = np.nonzero(self.mask & exposed)
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def gradient_field(self) -> Tuple[np.ndarray, np.ndarray]:
        """Channel-averaged gradient at every pixel from nearest known neighbours."""
        rgb = self.image[..., :3].astype(np.float64)
        known = ~self.mask

        left = _sample(rgb, _nearest_known_before(known, axis=1), axis=1)
        right = _sample(rgb, _nearest_known_after(known, axis=1), axis=1)
        up = _sample(rgb, _nearest_known_before(known, axis=0), axis=0)
        down = _sample(rgb, _nearest_known_after(known, axis=0), axis=0)

        grad_x = (right - left).sum(axis=2) / 3.0
        grad_y = (down - up).sum(axis=2) / 3.0
        return grad_x, grad_y

    def compute_priorities(self, boundary: List[Coordinate]) -> Dict[Coordinate, float]:
        """Confidence term x data term for every fill front pixel."""
        priorities: Dict[Coordinate, float] = {}
        n = len(boundary)
        if n == 0:
            return priorities

        grad_x, grad_y = self.gradient_field()
        known = ~self.mask

        for i, (x, y) in enumerate(boundary):
            w = self.window(x, y)
            rows, cols = w.rows(), w.cols()
            patch_known = known[rows, cols]

            # nothing known around p: no basis for a proposal
            area = w.area()
            if area == 0 or not patch_known.any():
                priorities[(x, y)] = 0.0
                continue

            conf = float(self.confidence[rows, cols][patch_known].sum()) / area

            # tangent from list neighbours; the list wraps around
            prev_x, prev_y = boundary[(i - 1) % n]
            next_x, next_y = boundary[(i + 1) % n]
            normal = _perpendicular(next_x - prev_x, next_y - prev_y)

            gradient = (float(grad_x[rows, cols][patch_known].max()),
                        float(grad_y[rows, cols][patch_known].max()))
            isophote = _perpendicular(*gradient)

            data = abs(isophote[0] * normal[0] + isophote[1] * normal[1]) / ALPHA
            priorities[(x, y)] = conf * data

        return priorities

    def select_target_window(self, priorities: Dict[Coordinate, float]) -> Window:
        """Window around the minimum-priority pixel; the first one wins ties."""
        best = None
        best_priority = float("inf")
        for coord, priority in priorities.items():
            if best is None or priority < best_priority:
                best = coord
                best_priority = priority

        if best is None:
            raise InpaintError("No fill front pixels to choose from")
        return self.window(*best)

    def candidate_grid(self) -> np.ndarray:
        """Bool grid over full-radius centres: True where the window is fully known.

        Entry [i, j] describes the window centred at (j + r, i + r).
        """
        r = self.patch_radius
        size = 2 * r + 1
        if self.height < size or self.width < size:
            return np.zeros((0, 0), dtype=bool)
        views = sliding_window_view(self.mask, (size, size))
        return ~views.any(axis=(2, 3))

    def find_exemplar(self, target: Window) -> Window:
        """Fully known window with minimum SSD to target (row-major first wins)."""
        r = self.patch_radius
        clean = self.candidate_grid()
        if not clean.any():
            raise DegenerateSearchError(
                f"No undamaged {2 * r + 1}×{2 * r + 1} window exists in the image"
            )

        rgb = self.image[..., :3].astype(np.int64)
        ch, cw = clean.shape
        distance = np.zeros((ch, cw), dtype=np.int64)

        # candidates are full windows, so the overlap is the target's extent
        for dx, dy in target.offsets():
            tx, ty = target.x + dx, target.y + dy
            if self.mask[ty, tx]:
                continue
            block = rgb[r + dy:r + dy + ch, r + dx:r + dx + cw]
            diff = block - rgb[ty, tx]
            distance += (diff * diff).sum(axis=2)

        distance[~clean] = np.iinfo(np.int64).max
        cy, cx = divmod(int(np.argmin(distance)), cw)
        return self.window(cx + r, cy + r)

    def propagate(self, exemplar: Window, target: Window) -> int:
        """Copy exemplar pixels into the damaged pixels of target."""
        rows, cols = target.rows(), target.cols()
        damaged = self.mask[rows, cols]

        source = self.image[exemplar.y - target.up:exemplar.y + target.down + 1,
                            exemplar.x - target.left:exemplar.x + target.right + 1]
        self.image[rows, cols][damaged] = source[damaged]
        return int(np.count_nonzero(damaged))

    def update_confidence(self, target: Window) -> int:
        """Give the damaged pixels of target the patch confidence, then mark them known."""
        rows, cols = target.rows(), target.cols()
        damaged = self.mask[rows, cols].copy()
        patch_conf = self.confidence[rows, cols]

        # measured before anything in the patch changes
        value = float(patch_conf[~damaged].sum()) / target.area()

        patch_conf[damaged] = value
        self.mask[rows, cols][damaged] = False
        return int(np.count_nonzero(damaged))

    def run_pass(self, number: int, boundary: List[Coordinate]) -> PassRecord:
        priorities = self.compute_priorities(boundary)
        target = self.select_target_window(priorities)
        exemplar = self.find_exemplar(target)

        self.propagate(exemplar, target)
        filled = self.update_confidence(target)
        self.filled_pixels += filled

        record = PassRecord(number, len(boundary), target, exemplar, filled,
                            int(np.count_nonzero(self.mask)))
        self.passes.append(record)
        return record

    def inpaint(self, image: np.ndarray, mask: np.ndarray,
                progress_callback: Optional[Callable] = None) -> np.ndarray:
        """Fill every damaged pixel. Returns a new RGBA grid; inputs stay untouched."""
        print(f"\n[INPAINTER] 🎨 EXEMPLAR INPAINTING (radius={self.patch_radius})")
        self.progress_callback = progress_callback

        self.load(image, mask)
        print(f"[INPAINTER] Image: {self.width}×{self.height}, damaged pixels: {self.total_pixels}")

        if self.total_pixels == 0:
            print("[INPAINTER] WARNING: Mask is empty! Returning original.")
            return self.image

        self.is_running = True
        start_time = time.time()
        number = 1
        try:
            while True:
                boundary = self.extract_boundary()
                self._log(f"[EXEMPLAR] Pass {number} - boundary size {len(boundary)}")
                if not boundary:
                    break

                if self.max_passes is not None and number > self.max_passes:
                    remaining = int(np.count_nonzero(self.mask))
                    print(f"[INPAINTER] ⚠️  Reached max passes ({self.max_passes}), {remaining} pixels left")
                    raise InpaintIncompleteError(
                        f"Stopped after {self.max_passes} passes with {remaining} damaged pixels left",
                        self.image,
                    )

                record = self.run_pass(number, boundary)

                if self.progress_callback:
                    percent = (self.filled_pixels / self.total_pixels) * 100
                    self.progress_callback(self.image, number, record.remaining, percent)
                number += 1
        finally:
            self.is_running = False

        total_time = time.time() - start_time
        print(f"[INPAINTER] ✅ Complete in {total_time:.1f}s ({len(self.passes)} passes)")
        return self.image
