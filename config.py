import os
from typing import List
from dataclasses import dataclass, field

@dataclass
class APIConfig:
    """Configuration class for the Virtual Try-On AI service."""

    # API Settings
    title: str = "Virtual Try-On AI"
    description: str = "Clothing detection, body shape analysis and outfit recommendations"
    version: str = "1.0.0"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 5000
    workers: int = 1
    reload: bool = False

    # File Upload Settings
    max_upload_mb: int = 50
    max_upload_bytes: int = field(init=False)
    allowed_content_types: set = field(default_factory=lambda: {"image/jpeg", "image/png", "image/webp"})

    # Model Settings
    model_warmup_on_startup: bool = True
    detection_model: str = "google/owlvit-base-patch32"
    detection_threshold: float = 0.1
    pose_model: str = "usyd-community/vitpose-base-simple"
    person_model: str = "PekingU/rtdetr_r50vd_coco_o365"
    person_threshold: float = 0.3
    device: str = "cpu"

    # Recommendation Settings
    catalog_path: str = ""
    default_budget: float = 1000.0
    affinity_seed: int = 0
    compatibility_factor: float = 0.9
    style_bonus: float = 0.1
    max_recommendations: int = 6

    # CORS Settings
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    # Logging Settings
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        """Post-initialization to set computed fields and load from environment."""
        # Load from environment variables
        self.host = os.getenv("HOST", self.host)
        self.port = int(os.getenv("PORT", str(self.port)))
        self.workers = int(os.getenv("WORKERS", str(self.workers)))
        self.reload = os.getenv("RELOAD", str(self.reload)).lower() == "true"

        self.max_upload_mb = int(os.getenv("MAX_UPLOAD_MB", str(self.max_upload_mb)))
        self.max_upload_bytes = self.max_upload_mb * 1024 * 1024

        # Handle allowed content types
        content_types_env = os.getenv("ALLOWED_CONTENT_TYPES")
        if content_types_env:
            self.allowed_content_types = {c.strip() for c in content_types_env.split(",") if c.strip()}

        self.model_warmup_on_startup = os.getenv("MODEL_WARMUP_ON_STARTUP", str(self.model_warmup_on_startup)).lower() == "true"
        self.detection_model = os.getenv("DETECTION_MODEL", self.detection_model)
        self.detection_threshold = float(os.getenv("DETECTION_THRESHOLD", str(self.detection_threshold)))
        self.pose_model = os.getenv("POSE_MODEL", self.pose_model)
        self.person_model = os.getenv("PERSON_MODEL", self.person_model)
        self.person_threshold = float(os.getenv("PERSON_THRESHOLD", str(self.person_threshold)))
        self.device = os.getenv("DEVICE", self.device)

        self.catalog_path = os.getenv("CATALOG_PATH", self.catalog_path)
        self.default_budget = float(os.getenv("DEFAULT_BUDGET", str(self.default_budget)))
        self.affinity_seed = int(os.getenv("AFFINITY_SEED", str(self.affinity_seed)))
        self.compatibility_factor = float(os.getenv("COMPATIBILITY_FACTOR", str(self.compatibility_factor)))
        self.style_bonus = float(os.getenv("STYLE_BONUS", str(self.style_bonus)))
        self.max_recommendations = int(os.getenv("MAX_RECOMMENDATIONS", str(self.max_recommendations)))

        # Handle allowed origins
        origins_env = os.getenv("ALLOWED_ORIGINS")
        if origins_env and origins_env != "*":
            self.allowed_origins = [o.strip() for o in origins_env.split(",") if o.strip()]

        self.log_level = os.getenv("LOG_LEVEL", self.log_level)
        self.log_format = os.getenv("LOG_FORMAT", self.log_format)

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings/errors."""
        warnings = []

        if self.max_upload_mb < 1:
            warnings.append("MAX_UPLOAD_MB should be at least 1")

        if self.workers < 1:
            warnings.append("WORKERS should be at least 1")

        if self.workers > 1:
            warnings.append("Each worker process loads its own copy of the models")

        if not 0.0 <= self.detection_threshold <= 1.0:
            warnings.append("DETECTION_THRESHOLD should be between 0 and 1")

        if self.default_budget < 0:
            warnings.append("DEFAULT_BUDGET should not be negative")

        if not 0.0 < self.compatibility_factor <= 1.5:
            warnings.append("COMPATIBILITY_FACTOR should be in (0, 1.5]")

        if self.max_recommendations < 1:
            warnings.append("MAX_RECOMMENDATIONS should be at least 1")

        if self.catalog_path and not os.path.exists(self.catalog_path):
            warnings.append(f"CATALOG_PATH does not exist: {self.catalog_path}")

        return warnings

# Global configuration instance
config = APIConfig()

# Validate configuration on import
if __name__ == "__main__":
    warnings = config.validate()
    if warnings:
        print("Configuration warnings:")
        for warning in warnings:
            print(f"  - {warning}")
    else:
        print("Configuration is valid!")

    print(f"\nCurrent configuration:")
    print(f"  - File size limit: {config.max_upload_mb}MB")
    print(f"  - Workers: {config.workers}")
    print(f"  - Detection model: {config.detection_model}")
    print(f"  - Pose model: {config.pose_model}")
    print(f"  - Catalog: {config.catalog_path or 'built-in'}")
