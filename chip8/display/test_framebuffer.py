"""Unit tests for the CHIP-8 framebuffer."""

import numpy as np
import pytest
from PIL import Image

from . import OFF_COLOR, ON_COLOR, Framebuffer

ZERO_GLYPH = [0xF0, 0x90, 0x90, 0x90, 0xF0]


class TestDraw:
    """XOR drawing and collision reporting."""

    def test_draw(self):
        fb = Framebuffer()

        assert not fb.draw(2, 5, 5, ZERO_GLYPH)
        # Overlapping draw clears shared pixels
        assert fb.draw(5, 5, 5, ZERO_GLYPH)

        row5 = [fb.get_pixel(x, 5) for x in range(5, 9)]
        row7 = [fb.get_pixel(x, 7) for x in range(5, 9)]
        assert row5 == [False, True, True, True]
        assert row7 == [False, False, False, True]

    def test_double_draw_restores_state(self):
        fb = Framebuffer()
        fb.draw(0, 0, 1, [0b10000001])
        before = fb.pixels

        assert not fb.draw(20, 10, 5, ZERO_GLYPH)
        assert fb.draw(20, 10, 5, ZERO_GLYPH)
        assert np.array_equal(fb.pixels, before)

    def test_no_collision_when_nothing_turns_off(self):
        fb = Framebuffer()
        fb.draw(0, 0, 1, [0xF0])
        assert not fb.draw(4, 0, 1, [0xF0])
        assert fb.lit_count() == 8

    def test_draw_wrap_around(self):
        fb = Framebuffer()
        fb.draw(63, 31, 5, ZERO_GLYPH)

        assert fb.get_pixel(63, 31)
        assert fb.get_pixel(0, 31)
        assert fb.get_pixel(2, 31)
        assert not fb.get_pixel(3, 31)
        assert fb.get_pixel(63, 0)
        assert fb.get_pixel(2, 3)
        assert fb.lit_count() == 14

    def test_full_width_row_at_corner(self):
        fb = Framebuffer()
        fb.draw(63, 31, 1, [0xFF])
        lit = [x for x in range(64) if fb.get_pixel(x, 31)]
        assert lit == [0, 1, 2, 3, 4, 5, 6, 63]

    def test_large_coordinates_wrap(self):
        fb = Framebuffer()
        fb.draw(64 + 3, 32 + 2, 1, [0x80])
        assert fb.get_pixel(3, 2)

    def test_draw_uses_only_n_rows(self):
        fb = Framebuffer()
        fb.draw(0, 0, 2, ZERO_GLYPH)
        assert fb.lit_count() == 6

    def test_zero_height_sprite(self):
        fb = Framebuffer()
        fb.consume_changed()
        assert not fb.draw(0, 0, 0, [])
        assert fb.changed
        assert fb.lit_count() == 0

    def test_short_sprite_rejected(self):
        with pytest.raises(ValueError):
            Framebuffer().draw(0, 0, 3, [0xFF])

    @pytest.mark.parametrize("width,height", [(4, 4), (7, 32), (64, 14)])
    def test_grid_smaller_than_a_sprite_rejected(self, width, height):
        with pytest.raises(ValueError):
            Framebuffer(width=width, height=height)

    def test_minimum_grid_wraps_full_sprite_once(self):
        fb = Framebuffer(width=8, height=15)
        assert not fb.draw(3, 7, 15, [0xFF] * 15)
        assert fb.lit_count() == 8 * 15

    def test_sprite_taller_than_grid_rejected(self):
        fb = Framebuffer(width=8, height=15)
        with pytest.raises(ValueError):
            fb.draw(0, 0, 16, [0xFF] * 16)


class TestDirtyFlag:
    def test_starts_dirty(self):
        assert Framebuffer().changed

    def test_consume_changed(self):
        fb = Framebuffer()
        assert fb.consume_changed()
        assert not fb.changed
        assert not fb.consume_changed()

    def test_draw_and_clear_set_flag(self):
        fb = Framebuffer()
        fb.consume_changed()
        fb.draw(0, 0, 1, [0x00])
        assert fb.consume_changed()

        fb.clear()
        assert fb.consume_changed()


class TestAccessors:
    def test_clear(self):
        fb = Framebuffer()
        fb.draw(0, 0, 1, [0x80])
        fb.clear()
        assert not fb.get_pixel(0, 0)

    def test_get_pixel_bounds(self):
        fb = Framebuffer()
        with pytest.raises(IndexError):
            fb.get_pixel(64, 0)
        with pytest.raises(IndexError):
            fb.get_pixel(0, 32)

    def test_pixels_is_read_only_copy(self):
        fb = Framebuffer()
        snapshot = fb.pixels
        assert snapshot.shape == (32, 64)
        with pytest.raises(ValueError):
            snapshot[0, 0] = True
        fb.draw(0, 0, 1, [0x80])
        assert not snapshot[0, 0]

    def test_load_pixels(self):
        fb = Framebuffer()
        grid = np.zeros((32, 64), dtype=np.uint8)
        grid[1, 2] = 1
        fb.load_pixels(grid)
        assert fb.get_pixel(2, 1)
        with pytest.raises(ValueError):
            fb.load_pixels(np.zeros((2, 2)))

    def test_to_text(self):
        fb = Framebuffer()
        fb.draw(0, 0, 1, [0xC0])
        first = fb.to_text().splitlines()[0]
        assert first.startswith("##..")
        assert len(first) == 64


class TestImage:
    def test_to_image(self):
        fb = Framebuffer()
        fb.draw(1, 2, 1, [0x80])
        img = fb.to_image(zoom=4)

        assert isinstance(img, Image.Image)
        assert img.size == (256, 128)
        assert img.getpixel((4, 8)) == ON_COLOR
        assert img.getpixel((7, 11)) == ON_COLOR
        assert img.getpixel((8, 8)) == OFF_COLOR

    def test_invalid_zoom(self):
        with pytest.raises(ValueError):
            Framebuffer().to_image(zoom=0)
