"""
Map Host - The shared map that every overlay mounts against.

The host wraps a Map Engine together with the single CameraLock and the
LayerLifecycleManager. It signals readiness once the engine's view is ready
and, on teardown, synchronously releases every layer before destroying the
engine. After teardown the host keeps answering calls as no-ops so that
async work still in flight can finish quietly.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Coroutine, List, Optional, Set

from overlaymap.camera.arbiter import CameraLock
from overlaymap.config import CameraConfig, get_config
from overlaymap.data.schemas.models import CameraTarget
from overlaymap.engine.interface import MapEngine
from overlaymap.layers.manager import LayerLifecycleManager
from overlaymap.utils.logger import get_logger

logger = get_logger(__name__)

ReadyHandler = Callable[["MapHost"], Any]


class MapHost:
    """
    Owner of the engine, the camera lock and the overlay layers.

    Attributes:
        engine: The Map Engine collaborator
        camera_lock: Shared camera arbiter
        camera_config: Timings for camera choreography
        layers: Lifecycle manager for overlay layers
    """

    def __init__(
        self,
        engine: MapEngine,
        camera_lock: Optional[CameraLock] = None,
        camera_config: Optional[CameraConfig] = None
    ):
        self.engine = engine
        self.camera_lock = camera_lock or CameraLock()
        self.camera_config = camera_config or get_config().camera

        self._ready = False
        self._torn_down = False
        self._ready_handlers: List[ReadyHandler] = []
        self._teardown_hooks: List[Callable[[], None]] = []
        self._tasks: Set[asyncio.Task] = set()

        self.layers = LayerLifecycleManager(self)

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def on_ready(self, handler: ReadyHandler) -> None:
        """Register a handler called (or awaited) once the view is ready."""
        self._ready_handlers.append(handler)

    def on_teardown(self, hook: Callable[[], None]) -> None:
        """Register a synchronous hook run during teardown, newest first."""
        self._teardown_hooks.append(hook)

    async def start(self) -> None:
        """
        Wait for the engine's view, then run the ready handlers in order.
        """
        await self.engine.when_ready()
        if self._torn_down:
            return
        self._ready = True
        logger.info("Map view ready")

        for handler in list(self._ready_handlers):
            try:
                result = handler(self)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Ready handler failed: {e}", exc_info=True)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Run a coroutine as a task tracked by the host.

        Returns:
            The task, or None when the host is already torn down
        """
        if self._torn_down:
            coro.close()
            return None
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background task {task.get_name()} failed: {error}")

    async def drain(self) -> None:
        """Wait for every tracked task, including ones spawned meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def go_to(self, target: CameraTarget) -> Awaitable[None]:
        """
        Forward a camera move to the engine.

        After teardown the move is not issued and an already completed
        signal is returned.
        """
        if self._torn_down:
            future = asyncio.get_running_loop().create_future()
            future.set_result(None)
            return future
        return self.engine.go_to(target)

    def teardown(self) -> None:
        """
        Release every layer and destroy the engine.

        Synchronous and idempotent. Running tasks are not cancelled; they
        resume against no-op guards.
        """
        if self._torn_down:
            return
        self._torn_down = True
        self._ready = False

        for hook in reversed(self._teardown_hooks):
            try:
                hook()
            except Exception as e:
                logger.error(f"Teardown hook failed: {e}", exc_info=True)

        self.engine.destroy()
        logger.info("Map host torn down")
