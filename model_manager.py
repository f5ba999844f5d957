"""
Async model management for the Virtual Try-On AI service.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable

from exceptions import ModelLoadFailure

logger = logging.getLogger(__name__)


class ModelState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


def _consume_exception(task: asyncio.Future):
    """Mark a load failure as retrieved when every waiter was cancelled."""
    if not task.cancelled():
        task.exception()


class ModelSlot:
    """Lazily loads one model, at most one load in flight at a time."""

    def __init__(self, name: str, loader: Callable[[], Any]):
        self.name = name
        self.loader = loader
        self.state = ModelState.UNLOADED
        self.handle = None
        self.load_attempts = 0
        self.last_error = None
        self.loading_task = None
        self._lock = asyncio.Lock()

    async def get(self):
        """Return the loaded model, loading it if needed."""
        if self.state is ModelState.READY:
            return self.handle

        async with self._lock:
            if self.state is ModelState.READY:
                return self.handle

            if self.loading_task is None:
                # Start loading task
                self.state = ModelState.LOADING
                self.loading_task = asyncio.ensure_future(self._load_model())
                self.loading_task.add_done_callback(_consume_exception)
            task = self.loading_task

        # A cancelled caller must not cancel a load other requests wait on
        return await asyncio.shield(task)

    async def _load_model(self):
        """Load model in background thread."""
        self.load_attempts += 1
        try:
            logger.info(f"Starting {self.name} model loading in background...")

            # Run model loading in thread pool to avoid blocking
            loop = asyncio.get_running_loop()
            handle = await loop.run_in_executor(None, self.loader)
        except Exception as e:
            logger.error(f"Failed to load {self.name} model: {e}")
            self.state = ModelState.UNLOADED
            self.last_error = str(e)
            raise ModelLoadFailure(self.name, e) from e
        finally:
            self.loading_task = None

        self.handle = handle
        self.state = ModelState.READY
        self.last_error = None
        logger.info(f"{self.name.capitalize()} model loaded successfully!")
        return handle

    def get_status(self) -> dict:
        return {
            "state": self.state.value,
            "load_attempts": self.load_attempts,
            "last_error": self.last_error,
        }


class ModelLifecycleManager:
    """Owns the detection and pose models for the process lifetime."""

    def __init__(self, detection_loader: Callable[[], Any], pose_loader: Callable[[], Any]):
        self.detection = ModelSlot("detection", detection_loader)
        self.pose = ModelSlot("pose", pose_loader)

    async def get_detection_model(self):
        return await self.detection.get()

    async def get_pose_model(self):
        return await self.pose.get()

    async def warmup(self):
        """Load both models, logging instead of raising on failure."""
        results = await asyncio.gather(
            self.get_detection_model(),
            self.get_pose_model(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Model warmup failed, will retry on first request: {result}")

    def get_status(self) -> dict:
        """Get current model status for health checks."""
        return {
            "detection": self.detection.get_status(),
            "pose": self.pose.get_status(),
        }
