"""
Patch geometry for the exemplar inpainter.

A window is the square neighbourhood of a centre pixel, clipped
independently on each side so it never reaches past the image edge.
Near a border the window is therefore a rectangle, not a square.
"""

from typing import Iterator, Tuple


class Window:
    """Rectangular patch around (x, y), clipped to a width x height grid."""

    def __init__(self, x: int, y: int, radius: int, width: int, height: int):
        self.x = int(x)
        self.y = int(y)
        self.radius = radius

        # each side is clipped on its own
        self.left = radius if self.x >= radius else self.x
        self.right = radius if self.x + radius < width else width - self.x - 1
        self.up = radius if self.y >= radius else self.y
        self.down = radius if self.y + radius < height else height - self.y - 1

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def width(self) -> int:
        return self.left + self.right + 1

    def height(self) -> int:
        return self.up + self.down + 1

    def area(self) -> int:
        return self.width() * self.height()

    def rows(self) -> slice:
        """Row slice for an array indexed [y, x]."""
        return slice(self.y - self.up, self.y + self.down + 1)

    def cols(self) -> slice:
        """Column slice for an array indexed [y, x]."""
        return slice(self.x - self.left, self.x + self.right + 1)

    def offsets(self) -> Iterator[Tuple[int, int]]:
        """Yield (dx, dy) for every pixel of the window, x outer."""
        for dx in range(-self.left, self.right + 1):
            for dy in range(-self.up, self.down + 1):
                yield dx, dy

    def pixels(self) -> Iterator[Tuple[int, int]]:
        """Yield absolute (x, y) coordinates covered by the window."""
        for dx, dy in self.offsets():
            yield self.x + dx, self.y + dy

    def _key(self) -> Tuple[int, ...]:
        return (self.x, self.y, self.left, self.right, self.up, self.down)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Window):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (f"Window(x={self.x}, y={self.y}, left={self.left}, "
                f"right={self.right}, up={self.up}, down={self.down})")
