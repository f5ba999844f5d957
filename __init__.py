"""
Virtual Try-On AI
=================

Clothing detection, body shape analysis and budget-aware outfit
recommendations behind a FastAPI service.

Modules:
- main.py: FastAPI application (HTTP gateway)
- config.py: Configuration management
- model_manager.py: Lazy, single-flight model loading
- clothing_detector.py: Clothing detection
- pose_estimator.py: Pose estimation
- body_shape.py: Body shape classification
- recommendation_engine.py: Recommendation scoring and ranking
- catalog.py: Catalog store
- process.py: Image decoding and colour analysis
- pipeline.py: Per-request orchestration
- start.py: Startup script

License: MIT
"""

__version__ = "1.0.0"
__description__ = "Clothing detection, body shape analysis and outfit recommendations"
__license__ = "MIT"
