"""64x32 monochrome framebuffer with XOR sprite drawing."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from ..constants import DISPLAY_HEIGHT, DISPLAY_WIDTH, MAX_SPRITE_HEIGHT, SPRITE_WIDTH

OFF_COLOR: Tuple[int, int, int] = (0, 0, 0)
ON_COLOR: Tuple[int, int, int] = (0, 255, 0)


class Framebuffer:
    """Boolean pixel grid indexed ``[row, column]``.

    ``changed`` is set by every draw or clear and stays set until a renderer
    calls :meth:`consume_changed`. It starts out set so the first frame is
    always rendered.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        # A sprite must never wrap onto itself, or XOR would hit a pixel twice.
        if width < SPRITE_WIDTH or height < MAX_SPRITE_HEIGHT:
            raise ValueError(
                f"Framebuffer must be at least {SPRITE_WIDTH}x{MAX_SPRITE_HEIGHT}, "
                f"got {width}x{height}"
            )
        self.width = width
        self.height = height
        self._pixels = np.zeros((height, width), dtype=bool)
        self.changed = True
        self.draw_count = 0

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels[:, :] = False
        self.changed = True

    def draw(self, x: int, y: int, n: int, sprite: Sequence[int]) -> bool:
        """XOR an ``n``-row sprite onto the grid at ``(x, y)``.

        Coordinates wrap on both axes, so any ``x``/``y`` is accepted.

        Returns:
            True if at least one lit pixel was turned off (collision).
        """
        if n < 0:
            raise ValueError(f"Sprite height must be non-negative, got {n}")
        if len(sprite) < n:
            raise ValueError(f"Sprite has {len(sprite)} rows, {n} requested")
        if n > self.height:
            raise ValueError(f"Sprite height {n} exceeds display height {self.height}")

        self.changed = True
        self.draw_count += 1
        if n == 0:
            return False

        rows = np.array(list(sprite[:n]), dtype=np.uint8)
        bits = np.unpackbits(rows).reshape(n, SPRITE_WIDTH).astype(bool)

        row_idx = (y + np.arange(n)) % self.height
        col_idx = (x + np.arange(SPRITE_WIDTH)) % self.width
        region = np.ix_(row_idx, col_idx)

        current = self._pixels[region]
        collision = bool(np.any(current & bits))
        self._pixels[region] = current ^ bits
        return collision

    def get_pixel(self, x: int, y: int) -> bool:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height}")
        return bool(self._pixels[y, x])

    def consume_changed(self) -> bool:
        """Return the dirty flag and clear it (renderer hand-off)."""
        changed = self.changed
        self.changed = False
        return changed

    @property
    def pixels(self) -> np.ndarray:
        """Read-only copy of the grid, safe to hand to another thread."""
        snapshot = self._pixels.copy()
        snapshot.setflags(write=False)
        return snapshot

    def load_pixels(self, pixels: np.ndarray) -> None:
        if pixels.shape != self._pixels.shape:
            raise ValueError(
                f"Expected shape {self._pixels.shape}, got {pixels.shape}"
            )
        self._pixels[:, :] = pixels.astype(bool)
        self.changed = True

    def lit_count(self) -> int:
        return int(np.count_nonzero(self._pixels))

    def to_text(self, on: str = "#", off: str = ".") -> str:
        return "\n".join(
            "".join(on if cell else off for cell in row) for row in self._pixels
        )

    def to_image(self, zoom: int = 1) -> Image.Image:
        """Render the grid as an RGB PIL image scaled by ``zoom``."""
        if zoom < 1:
            raise ValueError("Zoom must be at least 1")

        image = Image.new("RGB", (self.width * zoom, self.height * zoom), OFF_COLOR)
        draw = ImageDraw.Draw(image)
        for dy, dx in zip(*np.nonzero(self._pixels)):
            draw.rectangle(
                [
                    int(dx) * zoom,
                    int(dy) * zoom,
                    int(dx) * zoom + zoom - 1,
                    int(dy) * zoom + zoom - 1,
                ],
                fill=ON_COLOR,
            )
        return image


__all__ = ["Framebuffer", "OFF_COLOR", "ON_COLOR"]
