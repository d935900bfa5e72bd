import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure(config):
    """Ensure the project root (one level above tests/) is on sys.path so
    imports like `from inpainter import ExemplarInpainter` work during tests.
    """
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_rgba(rng):
    def make(width, height):
        grid = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
        grid[..., 3] = 255
        return grid
    return make
