# Test fixtures and configuration
import pytest
import sys
from io import BytesIO
from pathlib import Path

from PIL import Image

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from catalog import CatalogStore
from model_manager import ModelLifecycleManager


class FakeDetectionModel:
    """Stands in for DetectionModel; returns canned raw predictions."""

    def __init__(self, predictions=None, error=None):
        self.predictions = predictions or []
        self.error = error
        self.calls = 0

    def detect(self, image):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.predictions)


class FakePoseModel:
    """Stands in for PoseModel; returns canned raw poses."""

    def __init__(self, poses=None, error=None):
        self.poses = poses or []
        self.error = error

    def estimate_poses(self, image):
        if self.error is not None:
            raise self.error
        return list(self.poses)


def raw_pose(shoulders, hips, confidence=0.9, score=0.85):
    """Raw pose dict with the four torso landmarks.

    shoulders/hips: ((left_x, left_y), (right_x, right_y))
    """
    (lsx, lsy), (rsx, rsy) = shoulders
    (lhx, lhy), (rhx, rhy) = hips
    return {
        "keypoints": [
            {"name": "nose", "x": (lsx + rsx) / 2, "y": lsy - 60, "score": confidence},
            {"name": "left_shoulder", "x": lsx, "y": lsy, "score": confidence},
            {"name": "right_shoulder", "x": rsx, "y": rsy, "score": confidence},
            {"name": "left_hip", "x": lhx, "y": lhy, "score": confidence},
            {"name": "right_hip", "x": rhx, "y": rhy, "score": confidence},
        ],
        "score": score,
    }


@pytest.fixture
def sample_catalog():
    """Three-item catalog used throughout the recommendation tests."""
    return CatalogStore.from_records([
        {"id": 1, "type": "shirt", "colors": ["blue"], "brands": ["Nike"], "price": 50},
        {"id": 2, "type": "pants", "colors": ["black"], "brands": ["Levi"], "price": 80},
        {"id": 3, "type": "shoes", "colors": ["white"], "brands": ["Puma"], "price": 120},
    ])


@pytest.fixture
def shirt_predictions():
    return [
        {"class": "person", "score": 0.99, "bbox": (0, 0, 200, 400)},
        {"class": "shirt", "score": 0.91, "bbox": (40, 60, 120, 140)},
        {"class": "Pants", "score": 0.83, "bbox": (50, 200, 100, 180)},
        {"class": "handbag", "score": 0.7, "bbox": (150, 220, 40, 40)},
        {"class": "boot", "score": 0.65, "bbox": (60, 380, 30, 20)},
    ]


@pytest.fixture
def hourglass_pose():
    return raw_pose(shoulders=((100, 100), (226, 100)), hips=((113, 300), (213, 300)))


@pytest.fixture
def make_manager():
    """Build a ModelLifecycleManager around fake models."""
    def _make(detection=None, pose=None):
        detection = detection or FakeDetectionModel()
        pose = pose or FakePoseModel()
        return ModelLifecycleManager(lambda: detection, lambda: pose)
    return _make


@pytest.fixture
def sample_image():
    """Small solid-red RGB image."""
    return Image.new("RGB", (32, 32), (255, 0, 0))


@pytest.fixture
def png_bytes(sample_image):
    buffer = BytesIO()
    sample_image.save(buffer, format="PNG")
    return buffer.getvalue()
