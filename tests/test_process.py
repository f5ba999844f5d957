"""Tests for image decoding and colour analysis."""

from PIL import Image
import pytest

from exceptions import InvalidInput
from process import HARMONY_RECOMMENDATIONS, analyze_colors, classify_harmony, load_image, name_color


def split_image(left, right):
    image = Image.new("RGB", (40, 40), left)
    image.paste(Image.new("RGB", (20, 40), right), (20, 0))
    return image


class TestLoadImage:

    def test_decodes_png(self, png_bytes):
        image = load_image(png_bytes)
        assert image.mode == "RGB"
        assert image.size == (32, 32)

    def test_rejects_garbage(self):
        with pytest.raises(InvalidInput):
            load_image(b"not an image")


class TestNameColor:

    @pytest.mark.parametrize("rgb, expected", [
        ((255, 0, 0), "red"),
        ((0, 0, 255), "blue"),
        ((250, 250, 250), "white"),
        ((5, 5, 5), "black"),
        ((255, 255, 0), "yellow"),
    ])
    def test_nearest_palette_colour(self, rgb, expected):
        assert name_color(rgb) == expected


class TestHarmony:

    def test_neutrals(self):
        assert classify_harmony([(0, 0, 0), (255, 255, 255)]) == "neutral"

    def test_complementary(self):
        assert classify_harmony([(0, 0, 255), (255, 255, 0)]) == "complementary"

    def test_analogous(self):
        assert classify_harmony([(255, 0, 0), (255, 128, 0)]) == "analogous"


class TestAnalyzeColors:

    def test_solid_image(self, sample_image):
        result = analyze_colors(sample_image)

        assert result["dominant_colors"] == ["red"]
        assert result["color_harmony"] == "monochromatic"
        assert result["recommendations"] == HARMONY_RECOMMENDATIONS["monochromatic"]

    def test_two_colours(self):
        result = analyze_colors(split_image((0, 0, 255), (255, 255, 0)))

        assert set(result["dominant_colors"]) == {"blue", "yellow"}
        assert result["color_harmony"] == "complementary"

    def test_deterministic(self):
        image = split_image((200, 30, 30), (20, 30, 90))
        assert analyze_colors(image) == analyze_colors(image)
