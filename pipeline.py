"""
Request orchestration for the Virtual Try-On AI service.

Each gateway operation runs as one asyncio task. The only shared state is
the model manager and the read-only catalog.
"""
import asyncio
import logging
from datetime import datetime, timezone
from functools import partial

from body_shape import classify_body_shape
from catalog import CatalogStore, load_catalog
from clothing_detector import ClothingDetector, filter_by_type, load_detection_model
from model_manager import ModelLifecycleManager
from pose_estimator import PoseEstimator, load_pose_model, primary_pose
from process import analyze_colors
from recommendation_engine import RecommendationEngine, validate_budget

logger = logging.getLogger(__name__)


class StylePipeline:
    """Detect -> pose -> classify -> recommend, per request."""

    def __init__(self, model_manager: ModelLifecycleManager, catalog: CatalogStore, config):
        self.model_manager = model_manager
        self.catalog = catalog
        self.config = config
        self.clothing_detector = ClothingDetector(model_manager)
        self.pose_estimator = PoseEstimator(model_manager)
        self.recommendation_engine = RecommendationEngine.from_config(catalog, config)

    async def detect(self, image, clothing_type: str = "all") -> dict:
        """Detect clothing in the image, optionally narrowed to one type."""
        clothing_type = clothing_type or "all"

        # Surface ModelLoadFailure here; detection itself is fail-soft
        await self.model_manager.get_detection_model()
        items = await self.clothing_detector.detect_clothing(image)
        items = filter_by_type(items, clothing_type)

        return {
            "success": True,
            "data": {
                "clothing_type": clothing_type,
                "items": [item.to_dict() for item in items],
                "total_detected": len(items),
                "processed_at": datetime.now(timezone.utc).isoformat(),
                "status": "processed",
            },
        }

    async def suggest(self, image, style=None, budget=None) -> dict:
        """
        Recommend catalog items for the person in the image.

        Raises:
            InvalidInput: the budget is missing, non-numeric or negative
            ModelLoadFailure: a model needed for the request could not be loaded
        """
        budget = validate_budget(budget)

        await asyncio.gather(
            self.model_manager.get_detection_model(),
            self.model_manager.get_pose_model(),
        )
        detected_items, poses = await asyncio.gather(
            self.clothing_detector.detect_clothing(image),
            self.pose_estimator.analyze_pose(image),
        )

        pose = primary_pose(poses)
        body_shape = classify_body_shape(pose.keypoints if pose else None)
        recommendations = self.recommendation_engine.generate_recommendations(detected_items, style, budget)

        logger.info(
            f"Suggestions ready: {len(recommendations)} items, "
            f"{len(detected_items)} detected, body shape {body_shape.shape}"
        )
        return {
            "success": True,
            "suggestions": [rec.to_dict() for rec in recommendations],
            "detected_items": [item.to_dict() for item in detected_items],
            "body_shape": body_shape.to_dict(),
        }

    async def analyze(self, image) -> dict:
        """Body shape, poses and colour summary for the image."""
        await self.model_manager.get_pose_model()
        poses = await self.pose_estimator.analyze_pose(image)

        pose = primary_pose(poses)
        body_shape = classify_body_shape(pose.keypoints if pose else None)

        try:
            loop = asyncio.get_running_loop()
            colors = await loop.run_in_executor(None, analyze_colors, image)
        except Exception as e:
            logger.error(f"Error analyzing colors: {e}")
            colors = None

        return {
            "success": True,
            "analysis": {
                "body_shape": body_shape.shape,
                "confidence": round(body_shape.confidence, 4),
                "recommendations": list(body_shape.recommendations),
                "measurements": body_shape.measurements.to_dict() if body_shape.measurements else None,
                "poses": [p.to_dict() for p in poses],
                "colors": colors,
            },
        }


def create_pipeline(config) -> StylePipeline:
    """Build the pipeline with the configured models and catalog."""
    model_manager = ModelLifecycleManager(
        detection_loader=partial(load_detection_model, config),
        pose_loader=partial(load_pose_model, config),
    )
    catalog = load_catalog(config.catalog_path)
    return StylePipeline(model_manager, catalog, config)
