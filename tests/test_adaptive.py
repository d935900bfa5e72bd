import numpy as np
import pytest

from adaptive import AdaptiveInpainter, window_sums
from inpainter import DegenerateSearchError, PreconditionError


def solid(width, height, value):
    grid = np.full((height, width, 4), value, dtype=np.uint8)
    grid[..., 3] = 255
    return grid


def test_window_sums_clip_at_edges():
    sums = window_sums(np.ones((3, 3)), 1)
    assert sums.tolist() == [[4, 6, 4], [6, 9, 6], [4, 6, 4]]


def test_single_pixel_takes_local_mean():
    image = solid(9, 9, 0)
    image[..., 0] = 50
    image[..., 1] = 100
    image[..., 2] = 150
    mask = np.zeros((9, 9), dtype=bool)
    mask[4, 4] = True
    image[4, 4] = [0, 0, 0, 0]

    result = AdaptiveInpainter(verbose=False).inpaint(image, mask)
    assert result[4, 4].tolist() == [50, 100, 150, 255]


def test_local_mean_truncates():
    image = solid(3, 3, 0)
    image[..., 0] = [[1, 2, 3], [4, 99, 6], [7, 8, 10]]
    mask = np.zeros((3, 3), dtype=bool)
    mask[1, 1] = True

    result = AdaptiveInpainter(verbose=False).inpaint(image, mask)
    # 41 / 8 = 5.125
    assert result[1, 1, 0] == 5


def test_large_hole_grows_until_enough_known():
    image = solid(21, 21, 80)
    mask = np.zeros((21, 21), dtype=bool)
    mask[8:13, 8:13] = True
    image[mask] = 0

    result = AdaptiveInpainter(verbose=False).inpaint(image, mask)
    assert np.all(result[mask][:, :3] == 80)
    assert np.all(result[..., 3] == 255)


def test_falls_back_to_global_mean():
    image = solid(9, 9, 90)
    image[0, 0, 0] = 180
    mask = np.zeros((9, 9), dtype=bool)
    mask[3:6, 3:6] = True

    result = AdaptiveInpainter(max_distance=1, verbose=False).inpaint(image, mask)
    # centre sees no known pixel at distance 1: 6570 // 72
    assert result[4, 4, 0] == 91
    # ring pixels have known neighbours
    assert result[3, 3, 0] == 90


def test_global_mean_is_recomputed_per_run():
    mask = np.zeros((9, 9), dtype=bool)
    mask[3:6, 3:6] = True
    inpainter = AdaptiveInpainter(max_distance=1, verbose=False)

    first = inpainter.inpaint(solid(9, 9, 10), mask)
    second = inpainter.inpaint(solid(9, 9, 200), mask)
    assert first[4, 4, 0] == 10
    assert second[4, 4, 0] == 200


def test_known_pixels_and_inputs_untouched():
    image = solid(8, 8, 30)
    image[2, 5] = [1, 2, 3, 255]
    mask = np.zeros((8, 8), dtype=bool)
    mask[2:4, 2:4] = True
    before = image.copy()

    result = AdaptiveInpainter(verbose=False).inpaint(image, mask)
    assert np.array_equal(image, before)
    assert np.array_equal(result[~mask], image[~mask])


def test_empty_mask_returns_copy():
    image = solid(4, 4, 60)
    result = AdaptiveInpainter(verbose=False).inpaint(image, np.zeros((4, 4), dtype=bool))
    assert np.array_equal(result, image)
    assert result is not image


def test_all_damaged_is_degenerate():
    with pytest.raises(DegenerateSearchError):
        AdaptiveInpainter(verbose=False).inpaint(solid(4, 4, 60), np.ones((4, 4), dtype=bool))


def test_mismatched_dimensions():
    with pytest.raises(PreconditionError):
        AdaptiveInpainter(verbose=False).inpaint(solid(10, 10, 0), np.zeros((8, 8), dtype=bool))


@pytest.mark.parametrize("distance", [0, 11])
def test_max_distance_bounds(distance):
    with pytest.raises(PreconditionError):
        AdaptiveInpainter(max_distance=distance)
