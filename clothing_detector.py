"""
Virtual Try-On AI - Clothing Detection
======================================

Runs an open-vocabulary object detector on an image and normalizes its
predictions into DetectedItem records.

Model Attribution:
- Base Model: OWL-ViT (zero-shot object detection)
- Source: google/owlvit-base-patch32
- License: Apache 2.0 (OWL-ViT + Transformers)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Tuple

from catalog import ClothingType

logger = logging.getLogger(__name__)

# Labels the detector is prompted with; anything else is discarded
CLOTHING_CLASSES = ("shirt", "pants", "shoe", "boot", "hat", "jacket", "dress", "coat")

# Detector label -> canonical clothing type
CLOTHING_TYPE_MAP = {
    "shirt": ClothingType.SHIRT,
    "pants": ClothingType.PANTS,
    "shoe": ClothingType.SHOES,
    "boot": ClothingType.SHOES,
    "hat": ClothingType.ACCESSORIES,
    "jacket": ClothingType.JACKET,
    "dress": ClothingType.DRESS,
    "coat": ClothingType.JACKET,
}


@dataclass(frozen=True)
class DetectedItem:
    """A clothing item found in the image."""

    type: ClothingType
    confidence: float
    bbox: Tuple[float, float, float, float]  # x, y, width, height

    def to_dict(self) -> dict:
        x, y, width, height = self.bbox
        return {
            "type": self.type.value,
            "confidence": round(self.confidence, 4),
            "bbox": {"x": x, "y": y, "width": width, "height": height},
        }


def is_clothing_item(class_name: str) -> bool:
    """Check if a detected class label is a clothing class."""
    return str(class_name).strip().lower() in CLOTHING_CLASSES


def map_clothing_type(class_name: str) -> ClothingType:
    return CLOTHING_TYPE_MAP.get(str(class_name).strip().lower(), ClothingType.UNKNOWN)


def normalize_predictions(predictions: list) -> List[DetectedItem]:
    """
    Filter raw predictions to clothing classes and convert them to DetectedItems.

    Args:
        predictions: Raw detector output, each a dict with "class", "score"
            and "bbox" (x, y, width, height)

    Returns:
        list: DetectedItems in the detector's original order
    """
    items = []
    for prediction in predictions:
        class_name = prediction["class"]
        if not is_clothing_item(class_name):
            continue
        x, y, width, height = (float(v) for v in prediction["bbox"])
        confidence = min(max(float(prediction["score"]), 0.0), 1.0)
        items.append(DetectedItem(
            type=map_clothing_type(class_name),
            confidence=confidence,
            bbox=(x, y, width, height),
        ))
    return items


def filter_by_type(items: List[DetectedItem], clothing_type: str = "all") -> List[DetectedItem]:
    """Keep only items of the requested type ("all" keeps everything)."""
    if not clothing_type or clothing_type.strip().lower() == "all":
        return list(items)
    wanted = ClothingType.parse(clothing_type)
    return [item for item in items if item.type is wanted]


class DetectionModel:
    """Thin wrapper around a transformers zero-shot object detection pipeline."""

    def __init__(self, detector, candidate_labels=CLOTHING_CLASSES, threshold: float = 0.1):
        self.detector = detector
        self.candidate_labels = list(candidate_labels)
        self.threshold = threshold

    def detect(self, image) -> list:
        """Run inference and return raw predictions with x, y, width, height boxes."""
        outputs = self.detector(image, candidate_labels=self.candidate_labels, threshold=self.threshold)
        predictions = []
        for output in outputs:
            box = output["box"]
            predictions.append({
                "class": output["label"],
                "score": float(output["score"]),
                "bbox": (
                    box["xmin"],
                    box["ymin"],
                    box["xmax"] - box["xmin"],
                    box["ymax"] - box["ymin"],
                ),
            })
        return predictions


def load_detection_model(config) -> DetectionModel:
    """Load the zero-shot detector (blocking, runs in a worker thread)."""
    from transformers import pipeline

    logger.info(f"Loading detection model {config.detection_model} on {config.device}...")
    detector = pipeline(
        task="zero-shot-object-detection",
        model=config.detection_model,
        device=config.device,
    )
    logger.info("Detection model initialized successfully")
    return DetectionModel(detector, threshold=config.detection_threshold)


class ClothingDetector:
    """Detects clothing items using the shared detection model."""

    def __init__(self, model_manager):
        self.model_manager = model_manager

    async def detect_clothing(self, image) -> List[DetectedItem]:
        """
        Detect clothing items in an image.

        Never raises: loading or inference problems are logged and an
        empty list is returned.
        """
        try:
            model = await self.model_manager.get_detection_model()
            loop = asyncio.get_running_loop()
            predictions = await loop.run_in_executor(None, model.detect, image)
            items = normalize_predictions(predictions)
        except Exception as e:
            logger.error(f"Error detecting clothing: {e}")
            return []

        logger.info(f"Clothing detection completed. Found {len(items)} items")
        return items
