import numpy as np
import pytest
from PIL import Image

from wallter.errors import EmptyPalette
from wallter.palettes.loader import get_preset_palette
from wallter.palettes.theme import Palette, build_palette
from wallter.pipeline.theming import apply_theme, closest_color, theme_image


def _random_rgba(h=16, w=24, seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, (h, w, 4), dtype=np.uint8)


class TestClosestColor:
    def test_exact_match(self):
        palette = build_palette([(0, 0, 0), (255, 0, 0)])
        assert closest_color((255, 0, 0, 255), palette) == (255, 0, 0)

    def test_nearest(self):
        palette = build_palette([(0, 0, 0), (255, 255, 255)])
        assert closest_color((200, 190, 210), palette) == (255, 255, 255)
        assert closest_color((20, 40, 10), palette) == (0, 0, 0)

    def test_tie_goes_to_first_entry(self):
        # Both entries are at squared distance 300
        palette = build_palette([(0, 0, 0), (20, 20, 20)])
        assert closest_color((10, 10, 10), palette) == (0, 0, 0)

    def test_tie_order_follows_palette(self):
        palette = build_palette([(20, 20, 20), (0, 0, 0)])
        assert closest_color((10, 10, 10), palette) == (20, 20, 20)

    def test_alpha_ignored(self):
        palette = get_preset_palette("nord")
        assert closest_color((90, 10, 200, 0), palette) == closest_color((90, 10, 200, 255), palette)

    def test_empty_palette(self):
        with pytest.raises(EmptyPalette):
            closest_color((1, 2, 3), Palette())


class TestApplyTheme:
    def test_output_same_size(self):
        img = _random_rgba(17, 31)
        result = apply_theme(img, get_preset_palette("gruvbox"))
        assert result.shape == (17, 31, 3)
        assert result.dtype == np.uint8

    def test_output_only_palette_colors(self):
        palette = get_preset_palette("solarized")
        result = apply_theme(_random_rgba(), palette)
        unique = set(map(tuple, result.reshape(-1, 3).tolist()))
        assert unique.issubset(set(palette))

    def test_matches_scalar_search(self):
        img = _random_rgba(8, 8, seed=3)
        palette = get_preset_palette("catppuccin")
        result = apply_theme(img, palette)
        for y in range(8):
            for x in range(8):
                assert tuple(result[y, x].tolist()) == closest_color(img[y, x], palette)

    def test_identity_palette(self):
        img = np.zeros((4, 4, 4), dtype=np.uint8)
        img[:2, :, :3] = [10, 200, 30]
        img[2:, :, :3] = [250, 5, 90]
        img[..., 3] = 128
        palette = build_palette([(250, 5, 90), (10, 200, 30)])
        result = apply_theme(img, palette)
        np.testing.assert_array_equal(result, img[..., :3])

    def test_single_color_palette(self):
        result = apply_theme(_random_rgba(), build_palette([(7, 8, 9)]))
        assert (result == [7, 8, 9]).all()

    def test_tie_break(self):
        img = np.full((2, 3, 4), 10, dtype=np.uint8)
        result = apply_theme(img, build_palette([(0, 0, 0), (20, 20, 20)]))
        assert (result == 0).all()

    def test_alpha_invariance(self):
        img = _random_rgba(seed=5)
        other = img.copy()
        other[..., 3] = 255 - other[..., 3]
        palette = get_preset_palette("dracula")
        np.testing.assert_array_equal(apply_theme(img, palette), apply_theme(other, palette))

    def test_accepts_rgb(self):
        img = _random_rgba(seed=6)
        palette = get_preset_palette("nord")
        np.testing.assert_array_equal(apply_theme(img[..., :3], palette), apply_theme(img, palette))

    def test_accepts_grayscale(self):
        img = np.array([[0, 255]], dtype=np.uint8)
        result = apply_theme(img, build_palette([(0, 0, 0), (255, 255, 255)]))
        np.testing.assert_array_equal(result, [[[0, 0, 0], [255, 255, 255]]])

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            apply_theme(np.zeros((2, 2, 5), dtype=np.uint8), build_palette([(0, 0, 0)]))

    def test_input_not_mutated(self):
        img = _random_rgba(seed=7)
        before = img.copy()
        apply_theme(img, get_preset_palette("gruvbox"))
        np.testing.assert_array_equal(img, before)

    def test_empty_palette(self):
        with pytest.raises(EmptyPalette):
            apply_theme(_random_rgba(), Palette())

    def test_empty_palette_on_empty_image(self):
        with pytest.raises(EmptyPalette):
            apply_theme(np.zeros((0, 0, 4), dtype=np.uint8), Palette())

    def test_empty_image(self):
        result = apply_theme(np.zeros((0, 5, 4), dtype=np.uint8), build_palette([(1, 1, 1)]))
        assert result.shape == (0, 5, 3)

    @pytest.mark.parametrize("chunk_rows, workers", [(1, 1), (3, 4), (7, 2), (1000, 8)])
    def test_chunking_and_workers_do_not_change_result(self, chunk_rows, workers):
        img = _random_rgba(23, 11, seed=9)
        palette = get_preset_palette("gruvbox")
        expected = apply_theme(img, palette)
        result = apply_theme(img, palette, chunk_rows=chunk_rows, workers=workers)
        np.testing.assert_array_equal(result, expected)

    def test_invalid_chunk_rows(self):
        with pytest.raises(ValueError):
            apply_theme(_random_rgba(), build_palette([(0, 0, 0)]), chunk_rows=0)


class TestThemeImage:
    def test_returns_rgb_image(self):
        im = Image.new("RGBA", (5, 3), (250, 80, 80, 0))
        result = theme_image(im, get_preset_palette("dracula"))
        assert result.mode == "RGB"
        assert result.size == (5, 3)
        assert result.getpixel((0, 0)) == (255, 85, 85)

    def test_palette_mode_input(self):
        im = Image.new("P", (2, 2))
        result = theme_image(im, build_palette([(9, 9, 9)]))
        assert result.getpixel((1, 1)) == (9, 9, 9)
