import math

import numpy as np
import pytest
from PIL import Image

from core.color import Color
from core.material import Material, Texture, DEFAULT_TEXTURE_COLOR
from conftest import rgb, vec


def checker():
    """2x2 texture, rows top to bottom: red green / blue white."""
    return Texture(np.array([
        [[255, 0, 0], [0, 255, 0]],
        [[0, 0, 255], [255, 255, 255]],
    ], dtype=np.uint8))


class TestTexture:
    def test_uint8_is_rescaled(self):
        tex = checker()
        assert tex.width == 2 and tex.height == 2
        assert tex.pixels.max() == 1.0

    def test_v_runs_bottom_to_top(self):
        tex = checker()
        assert tex.sample(0.25, 0.75) == Color(1, 0, 0)
        assert tex.sample(0.75, 0.75) == Color(0, 1, 0)
        assert tex.sample(0.25, 0.25) == Color(0, 0, 1)
        assert tex.sample(0.75, 0.25) == Color(1, 1, 1)

    def test_edges_stay_in_bounds(self):
        tex = checker()
        # wraps to (0, 0), the bottom-left texel
        assert tex.sample(1.0, 1.0) == Color(0, 0, 1)
        clamped = Texture(tex.pixels, wrap=False)
        assert clamped.sample(1.0, 0.0) == Color(1, 1, 1)
        assert clamped.sample(0.0, 1.0) == Color(1, 0, 0)

    def test_wrap_tiles(self):
        tex = checker()
        assert tex.sample(1.25, 0.75) == tex.sample(0.25, 0.75)
        assert tex.sample(-0.25, -0.25) == tex.sample(0.75, 0.75)

    def test_clamp_holds_border(self):
        tex = Texture(checker().pixels, wrap=False)
        assert tex.sample(5.0, 0.25) == Color(1, 1, 1)
        assert tex.sample(-5.0, 0.75) == Color(1, 0, 0)

    @pytest.mark.parametrize("u, v", [(math.nan, 0.5), (0.5, math.inf), (-math.inf, math.nan)])
    def test_non_finite_coordinates_use_fallback(self, u, v):
        assert checker().sample(u, v) == DEFAULT_TEXTURE_COLOR

    def test_grayscale_and_rgba(self):
        gray = Texture(np.full((3, 3), 0.5))
        assert gray.sample(0.5, 0.5) == Color(0.5, 0.5, 0.5)
        rgba = Texture(np.zeros((2, 2, 4), dtype=np.uint8))
        assert rgba.pixels.shape == (2, 2, 3)

    @pytest.mark.parametrize("pixels", [np.zeros((0, 4, 3)), np.zeros((4, 4, 2)), np.zeros(5)])
    def test_malformed_pixels_rejected(self, pixels):
        with pytest.raises(ValueError):
            Texture(pixels)

    def test_from_file(self, tmp_path):
        path = tmp_path / "stripe.png"
        Image.fromarray(np.array([[[10, 20, 30], [200, 100, 50]]], dtype=np.uint8)).save(path)
        tex = Texture.from_file(str(path))
        assert (tex.width, tex.height) == (2, 1)
        assert tex.sample(0.75, 0.5).to_rgb8() == (200, 100, 50)


class TestMaterial:
    def test_defaults_are_valid(self):
        m = Material()
        assert m.weight_sum <= 1.0
        assert m.is_diffuse()
        assert not m.is_reflective() and not m.is_transparent()

    def test_weights_may_not_exceed_one(self):
        with pytest.raises(ValueError):
            Material(ambient=0.2, diffuse=0.5, specular=0.2, reflective=0.2)
        Material(ambient=0.2, diffuse=0.3, specular=0.2, reflective=0.2, transparency=0.1)

    @pytest.mark.parametrize("field", ["ambient", "diffuse", "specular", "reflective", "transparency"])
    def test_negative_weight_rejected(self, field):
        with pytest.raises(ValueError):
            Material(**{field: -0.1})

    def test_nan_weight_rejected(self):
        with pytest.raises(ValueError):
            Material(diffuse=float('nan'))

    @pytest.mark.parametrize("ior", [0.0, -1.5])
    def test_refractive_index_must_be_positive(self, ior):
        with pytest.raises(ValueError):
            Material(refractive_index=ior)

    def test_negative_shininess_rejected(self):
        with pytest.raises(ValueError):
            Material(shininess=-1.0)

    def test_base_color_from_color_or_texture(self):
        plain = Material(color=Color(0.2, 0.4, 0.6))
        np.testing.assert_allclose(vec(plain.base_color(0.3, 0.3)), [0.2, 0.4, 0.6])

        textured = Material.with_texture(checker(), ambient=0.1, diffuse=0.9)
        np.testing.assert_allclose(vec(textured.base_color(0.25, 0.25)), [0, 0, 1])
        np.testing.assert_allclose(rgb(textured.color), [1, 1, 1])

    def test_black_material_contributes_nothing(self):
        m = Material.black()
        assert m.weight_sum == 0.0
        np.testing.assert_allclose(vec(m.base_color(0.5, 0.5)), [0, 0, 0])
