"""
Body Shape Classification Module
Classifies body shape from pose keypoint proportions for styling advice
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

# Landmarks below this confidence are ignored
MIN_KEYPOINT_CONFIDENCE = 0.3

# Skeleton shoulder/hip ratio bands. Hip keypoints are joint centres, so a
# balanced figure measures well above 1.0.
PEAR_RATIO = 1.15
HOURGLASS_RATIO = 1.35
FIT_RATIO = 1.6
# Torso at least as wide as it is tall
APPLE_TORSO_ASPECT = 1.0

BODY_SHAPE_RECOMMENDATIONS = {
    'hourglass': ('Fitted styles', 'Wrap dresses', 'Accentuate waist'),
    'pear': ('A-line bottoms', 'Darker bottoms', 'Lighter tops'),
    'apple': ('Flow fabrics', 'V-necks', 'Long cardigans'),
    'rectangle': ('Layering', 'Belted styles', 'Patterns'),
    'fit': ('Any style works', 'Personal preference', 'Trendy pieces'),
}

REQUIRED_LANDMARKS = ('left_shoulder', 'right_shoulder', 'left_hip', 'right_hip')


@dataclass(frozen=True)
class BodyMeasurements:
    """Torso proportions in image pixels."""
    shoulder_width: float
    hip_width: float
    torso_height: float
    shoulder_hip_ratio: float
    torso_aspect: float

    def to_dict(self) -> dict:
        return {
            'shoulder_width': round(self.shoulder_width, 2),
            'hip_width': round(self.hip_width, 2),
            'torso_height': round(self.torso_height, 2),
            'shoulder_hip_ratio': round(self.shoulder_hip_ratio, 4),
            'torso_aspect': round(self.torso_aspect, 4),
        }


@dataclass(frozen=True)
class BodyShapeResult:
    shape: str
    confidence: float
    recommendations: Tuple[str, ...] = ()
    measurements: Optional[BodyMeasurements] = None

    def to_dict(self) -> dict:
        return {
            'shape': self.shape,
            'confidence': round(self.confidence, 4),
            'recommendations': list(self.recommendations),
            'measurements': self.measurements.to_dict() if self.measurements else None,
        }


UNKNOWN_SHAPE = BodyShapeResult(shape='unknown', confidence=0.0, recommendations=())


def get_body_shape_recommendations(shape: str) -> Tuple[str, ...]:
    """Get styling advice for a body shape, empty for unrecognized shapes."""
    return BODY_SHAPE_RECOMMENDATIONS.get(shape, ())


def _landmarks(keypoints: Iterable) -> Dict[str, object]:
    """Index confident keypoints by name, keeping the first of duplicates."""
    found = {}
    for kp in keypoints:
        if kp.name in REQUIRED_LANDMARKS and kp.name not in found and kp.confidence >= MIN_KEYPOINT_CONFIDENCE:
            found[kp.name] = kp
    return found


def determine_shape(shoulder_hip_ratio: float, torso_aspect: float) -> str:
    """
    Map body proportions to a shape category.

    Args:
        shoulder_hip_ratio: shoulder width / hip width
        torso_aspect: shoulder width / torso height

    Returns:
        'pear', 'fit', 'apple', 'hourglass' or 'rectangle'
    """
    # Hips close to shoulder width
    if shoulder_hip_ratio < PEAR_RATIO:
        return 'pear'

    # Shoulders markedly broader than hips (athletic V)
    elif shoulder_hip_ratio >= FIT_RATIO:
        return 'fit'

    # Short, broad torso
    elif torso_aspect >= APPLE_TORSO_ASPECT:
        return 'apple'

    elif shoulder_hip_ratio < HOURGLASS_RATIO:
        return 'hourglass'

    else:
        return 'rectangle'


def classify_body_shape(keypoints: Optional[Iterable]) -> BodyShapeResult:
    """
    Classify body shape from the keypoints of one pose.

    Missing or low-confidence shoulders/hips give the 'unknown' result with
    zero confidence; this is not an error.
    """
    if not keypoints:
        return UNKNOWN_SHAPE

    landmarks = _landmarks(keypoints)
    if len(landmarks) < len(REQUIRED_LANDMARKS):
        return UNKNOWN_SHAPE

    left_shoulder, right_shoulder = landmarks['left_shoulder'], landmarks['right_shoulder']
    left_hip, right_hip = landmarks['left_hip'], landmarks['right_hip']

    shoulder_width = abs(left_shoulder.x - right_shoulder.x)
    hip_width = abs(left_hip.x - right_hip.x)
    torso_height = abs((left_hip.y + right_hip.y) / 2 - (left_shoulder.y + right_shoulder.y) / 2)

    if hip_width == 0 or torso_height == 0:
        return UNKNOWN_SHAPE

    measurements = BodyMeasurements(
        shoulder_width=shoulder_width,
        hip_width=hip_width,
        torso_height=torso_height,
        shoulder_hip_ratio=shoulder_width / hip_width,
        torso_aspect=shoulder_width / torso_height,
    )
    shape = determine_shape(measurements.shoulder_hip_ratio, measurements.torso_aspect)
    confidence = sum(kp.confidence for kp in landmarks.values()) / len(landmarks)

    return BodyShapeResult(
        shape=shape,
        confidence=min(max(confidence, 0.0), 1.0),
        recommendations=get_body_shape_recommendations(shape),
        measurements=measurements,
    )
