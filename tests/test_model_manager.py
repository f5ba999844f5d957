"""Tests for lazy, single-flight model loading."""

import asyncio
import gc
import time

import pytest

from exceptions import ModelLoadFailure
from model_manager import ModelLifecycleManager, ModelState


def slow_loader(calls, result="model", delay=0.05):
    def _load():
        calls.append(1)
        time.sleep(delay)
        return result
    return _load


class TestLazyLoading:
    """Models load on first use and are reused afterwards."""

    @pytest.mark.asyncio
    async def test_nothing_loaded_before_first_call(self):
        calls = []
        manager = ModelLifecycleManager(slow_loader(calls), slow_loader(calls))

        status = manager.get_status()
        assert status["detection"]["state"] == "unloaded"
        assert status["pose"]["state"] == "unloaded"
        assert calls == []

    @pytest.mark.asyncio
    async def test_first_call_loads_and_later_calls_reuse(self):
        calls = []
        manager = ModelLifecycleManager(slow_loader(calls, "detector"), slow_loader([], "pose"))

        first = await manager.get_detection_model()
        second = await manager.get_detection_model()

        assert first == "detector"
        assert second is first
        assert len(calls) == 1
        assert manager.detection.state is ModelState.READY

    @pytest.mark.asyncio
    async def test_models_load_independently(self):
        detection_calls, pose_calls = [], []
        manager = ModelLifecycleManager(slow_loader(detection_calls, "d"), slow_loader(pose_calls, "p"))

        assert await manager.get_pose_model() == "p"
        assert detection_calls == []
        assert manager.get_status()["detection"]["state"] == "unloaded"
        assert manager.get_status()["pose"]["state"] == "ready"


class TestSingleFlight:
    """Concurrent first calls share one load."""

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_load_once(self):
        calls = []
        handle = object()
        manager = ModelLifecycleManager(slow_loader(calls, handle), slow_loader([]))

        handles = await asyncio.gather(*[manager.get_detection_model() for _ in range(10)])

        assert len(calls) == 1
        assert all(h is handle for h in handles)

    @pytest.mark.asyncio
    async def test_concurrent_failures_share_one_error_and_stay_retryable(self):
        attempts = []

        def flaky_loader():
            attempts.append(1)
            time.sleep(0.02)
            if len(attempts) == 1:
                raise RuntimeError("weights missing")
            return "model"

        manager = ModelLifecycleManager(flaky_loader, slow_loader([]))

        results = await asyncio.gather(
            *[manager.get_detection_model() for _ in range(5)],
            return_exceptions=True,
        )

        assert len(attempts) == 1
        assert all(isinstance(r, ModelLoadFailure) for r in results)
        assert all(r is results[0] for r in results)
        assert results[0].model_name == "detection"

        status = manager.get_status()["detection"]
        assert status["state"] == "unloaded"
        assert "weights missing" in status["last_error"]

        # Next call retries
        assert await manager.get_detection_model() == "model"
        assert len(attempts) == 2
        assert manager.get_status()["detection"]["last_error"] is None

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_load(self):
        calls = []
        manager = ModelLifecycleManager(slow_loader(calls, "model", delay=0.1), slow_loader([]))

        task = asyncio.create_task(manager.get_detection_model())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await manager.get_detection_model() == "model"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_failed_load_with_no_waiters_is_not_reported_unretrieved(self):
        attempts = []

        def failing_loader():
            attempts.append(1)
            time.sleep(0.05)
            raise RuntimeError("weights missing")

        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _, context: reported.append(context))
        try:
            manager = ModelLifecycleManager(failing_loader, slow_loader([]))

            caller = asyncio.create_task(manager.get_detection_model())
            await asyncio.sleep(0.01)
            caller.cancel()
            with pytest.raises(asyncio.CancelledError):
                await caller

            # Let the orphaned load fail, then collect it
            while manager.detection.state is not ModelState.UNLOADED:
                await asyncio.sleep(0.01)
            await asyncio.sleep(0)
            del caller
            gc.collect()
        finally:
            loop.set_exception_handler(None)

        assert not any("never retrieved" in context.get("message", "") for context in reported)
        assert manager.get_status()["detection"]["state"] == "unloaded"
        with pytest.raises(ModelLoadFailure):
            await manager.get_detection_model()
        assert len(attempts) == 2


class TestWarmup:

    @pytest.mark.asyncio
    async def test_warmup_loads_both_models(self):
        manager = ModelLifecycleManager(slow_loader([], "d"), slow_loader([], "p"))
        await manager.warmup()

        status = manager.get_status()
        assert status["detection"]["state"] == "ready"
        assert status["pose"]["state"] == "ready"

    @pytest.mark.asyncio
    async def test_warmup_failure_is_not_fatal(self):
        def broken():
            raise OSError("no network")

        manager = ModelLifecycleManager(broken, slow_loader([], "p"))
        await manager.warmup()

        status = manager.get_status()
        assert status["detection"]["state"] == "unloaded"
        assert status["detection"]["load_attempts"] == 1
        assert status["pose"]["state"] == "ready"
