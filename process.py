from PIL import Image, UnidentifiedImageError
from io import BytesIO
from sklearn.cluster import KMeans
import colorsys
import logging

import numpy as np

from exceptions import InvalidInput

logger = logging.getLogger(__name__)

# Reference colours used to name cluster centres
COLOR_PALETTE = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "grey": (128, 128, 128),
    "beige": (220, 200, 160),
    "brown": (120, 75, 40),
    "red": (200, 30, 30),
    "orange": (240, 140, 30),
    "yellow": (240, 220, 50),
    "green": (40, 160, 60),
    "blue": (40, 70, 200),
    "navy": (20, 30, 90),
    "purple": (120, 50, 160),
    "pink": (240, 150, 190),
}

HARMONY_RECOMMENDATIONS = {
    "monochromatic": ["Add a contrasting accessory", "Play with textures"],
    "neutral": ["Try warm tones", "Metallic accents work well"],
    "complementary": ["Keep one colour dominant", "Neutral shoes balance the look"],
    "analogous": ["Add a neutral base layer", "Try a complementary accent"],
    "contrasting": ["Tie colours together with accessories", "Neutral bottoms calm the palette"],
}

# Below this HSV saturation a colour counts as neutral
NEUTRAL_SATURATION = 0.2


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode uploaded bytes into an RGB PIL image."""
    try:
        image = Image.open(BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInput(f"Could not decode image: {e}") from e
    return image.convert("RGB")


def name_color(rgb) -> str:
    """Name of the palette colour closest to rgb."""
    rgb = np.asarray(rgb, dtype=float)
    return min(
        COLOR_PALETTE,
        key=lambda name: float(np.sum((np.asarray(COLOR_PALETTE[name], dtype=float) - rgb) ** 2)),
    )


def _hue_and_saturation(rgb):
    h, s, _ = colorsys.rgb_to_hsv(*(float(v) / 255 for v in rgb))
    return h * 360, s


def classify_harmony(centers) -> str:
    """Classify the relationship between the dominant colours."""
    names = {name_color(center) for center in centers}
    if len(names) == 1:
        return "monochromatic"

    hues = []
    for center in centers:
        hue, saturation = _hue_and_saturation(center)
        if saturation >= NEUTRAL_SATURATION:
            hues.append(hue)

    if not hues:
        return "neutral"
    if len(hues) == 1:
        return "monochromatic"

    spread = 0.0
    for i, a in enumerate(hues):
        for b in hues[i + 1:]:
            diff = abs(a - b) % 360
            spread = max(spread, min(diff, 360 - diff))

    if spread >= 150:
        return "complementary"
    if spread <= 45:
        return "analogous"
    return "contrasting"


def analyze_colors(image: Image.Image, k: int = 3) -> dict:
    """
    Summarize the dominant colours of an image.

    Returns:
        dict: dominant_colors (largest cluster first), color_harmony,
        recommendations
    """
    # Resize to speed up, nearest keeps the original colours
    image = image.convert("RGB").resize((100, 100), Image.NEAREST)
    rgb_pixels = np.array(image).reshape(-1, 3)

    # Never ask KMeans for more clusters than distinct colours
    actual_k = max(1, min(k, len(np.unique(rgb_pixels, axis=0))))

    kmeans = KMeans(
        n_clusters=actual_k,
        n_init=1,  # Single initialization for speed
        max_iter=100,  # Limit iterations
        random_state=42  # Deterministic results
    )
    labels = kmeans.fit_predict(rgb_pixels)
    counts = np.bincount(labels, minlength=actual_k)
    order = np.argsort(-counts, kind="stable")
    centers = [kmeans.cluster_centers_[i] for i in order]

    dominant_colors = []
    for center in centers:
        name = name_color(center)
        if name not in dominant_colors:
            dominant_colors.append(name)

    harmony = classify_harmony(centers)
    logger.info(f"Color analysis completed: {dominant_colors} ({harmony})")
    return {
        "dominant_colors": dominant_colors,
        "color_harmony": harmony,
        "recommendations": list(HARMONY_RECOMMENDATIONS[harmony]),
    }
