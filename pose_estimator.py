"""
Virtual Try-On AI - Pose Estimation
===================================

Top-down pose estimation: people are located with an object detector, then
ViTPose predicts COCO keypoints for each person box.

Model Attribution:
- Person detector: PekingU/rtdetr_r50vd_coco_o365 (Apache 2.0)
- Pose model: usyd-community/vitpose-base-simple (Apache 2.0)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Keypoint:
    """A named anatomical landmark."""

    name: str
    x: float
    y: float
    confidence: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "confidence": round(self.confidence, 4),
        }


@dataclass(frozen=True)
class PoseResult:
    """Keypoints for one detected person."""

    keypoints: Tuple[Keypoint, ...]
    score: float

    def to_dict(self) -> dict:
        return {
            "keypoints": [kp.to_dict() for kp in self.keypoints],
            "score": round(self.score, 4),
        }


def canonical_keypoint_name(label) -> str:
    """Snake-case COCO joint name, e.g. "L_Shoulder" -> "left_shoulder"."""
    name = str(label).strip().lower().replace("-", "_").replace(" ", "_")
    if name.startswith("l_"):
        name = "left_" + name[2:]
    elif name.startswith("r_"):
        name = "right_" + name[2:]
    return name


def normalize_poses(raw_poses: list) -> List[PoseResult]:
    """Convert raw pose dicts ({"keypoints": [...], "score"}) to PoseResults."""
    poses = []
    for raw in raw_poses:
        keypoints = tuple(
            Keypoint(
                name=canonical_keypoint_name(kp["name"]),
                x=float(kp["x"]),
                y=float(kp["y"]),
                confidence=float(kp.get("score", kp.get("confidence", 0.0))),
            )
            for kp in raw["keypoints"]
        )
        poses.append(PoseResult(keypoints=keypoints, score=float(raw.get("score") or 0.0)))
    return poses


def primary_pose(poses: List[PoseResult]) -> Optional[PoseResult]:
    """Return the highest-scoring pose, the earliest one on ties."""
    best = None
    for pose in poses:
        if best is None or pose.score > best.score:
            best = pose
    return best


class PoseModel:
    """Person detector + ViTPose, returning plain keypoint dicts."""

    def __init__(self, person_detector, processor, model, person_threshold: float = 0.3):
        self.person_detector = person_detector
        self.processor = processor
        self.model = model
        self.person_threshold = person_threshold

    def _person_boxes(self, image) -> list:
        """Person boxes in x, y, width, height; the whole image when nobody is found."""
        boxes = []
        for output in self.person_detector(image, threshold=self.person_threshold):
            if output["label"] != "person":
                continue
            box = output["box"]
            boxes.append([
                box["xmin"],
                box["ymin"],
                box["xmax"] - box["xmin"],
                box["ymax"] - box["ymin"],
            ])
        if not boxes:
            width, height = image.size
            boxes.append([0, 0, width, height])
        return boxes

    def estimate_poses(self, image) -> list:
        import torch

        boxes = self._person_boxes(image)
        inputs = self.processor(image, boxes=[boxes], return_tensors="pt")
        inputs = {k: v.to(self.model.device) for k, v in inputs.items()}
        with torch.no_grad():
            outputs = self.model(**inputs)
        results = self.processor.post_process_pose_estimation(outputs, boxes=[boxes])[0]

        id2label = self.model.config.id2label
        poses = []
        for person in results:
            scores = person["scores"].tolist()
            keypoints = [
                {
                    "name": canonical_keypoint_name(id2label[int(label)]),
                    "x": float(point[0]),
                    "y": float(point[1]),
                    "score": float(score),
                }
                for point, label, score in zip(person["keypoints"].tolist(), person["labels"].tolist(), scores)
            ]
            poses.append({
                "keypoints": keypoints,
                "score": sum(scores) / len(scores) if scores else 0.0,
            })
        return poses


def load_pose_model(config) -> PoseModel:
    """Load the person detector and ViTPose (blocking, runs in a worker thread)."""
    from transformers import AutoProcessor, VitPoseForPoseEstimation, pipeline

    logger.info(f"Loading person detector {config.person_model}...")
    person_detector = pipeline(task="object-detection", model=config.person_model, device=config.device)

    logger.info(f"Loading pose model {config.pose_model}...")
    processor = AutoProcessor.from_pretrained(config.pose_model)
    model = VitPoseForPoseEstimation.from_pretrained(config.pose_model)
    model.to(config.device)
    model.eval()

    logger.info("Pose model initialized successfully")
    return PoseModel(person_detector, processor, model, person_threshold=config.person_threshold)


class PoseEstimator:
    """Estimates body poses using the shared pose model."""

    def __init__(self, model_manager):
        self.model_manager = model_manager

    async def analyze_pose(self, image) -> List[PoseResult]:
        """Estimate poses for every person in the image; [] on any failure."""
        try:
            model = await self.model_manager.get_pose_model()
            loop = asyncio.get_running_loop()
            raw_poses = await loop.run_in_executor(None, model.estimate_poses, image)
            poses = normalize_poses(raw_poses)
        except Exception as e:
            logger.error(f"Error analyzing pose: {e}")
            return []

        logger.info(f"Pose analysis completed. Found {len(poses)} poses")
        return poses
