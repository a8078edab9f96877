from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType
from typing import Any, TypeVar

from domain.ports.execution import TaskExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LayoutWorker(TaskExecutor):
    """Single background thread that serializes layout requests."""

    def __init__(self, name: str = "graph-layout") -> None:
        self.name = name
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> None:
        with self._lock:
            if self._executor is not None:
                return
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self.name)
        logger.debug("Started layout worker %s", self.name)

    def stop(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is None:
            return
        executor.shutdown(wait=wait)
        logger.debug("Stopped layout worker %s", self.name)

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        with self._lock:
            if self._executor is None:
                msg = f"Layout worker {self.name} is not running"
                raise RuntimeError(msg)
            return self._executor.submit(fn, *args, **kwargs)

    def __enter__(self) -> LayoutWorker:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.stop()


class CallerThreadExecutor(TaskExecutor):
    """Runs submitted tasks on whichever thread drains the queue.

    Plays the role of a UI-thread dispatcher: tasks queued from other threads
    only execute inside ``run_pending`` or ``run_until``.
    """

    def __init__(self) -> None:
        self._tasks: queue.Queue[tuple[Future[Any], Callable[[], Any]]] = queue.Queue()

    def submit(self, fn: Callable[..., T], /, *args: Any, **kwargs: Any) -> Future[T]:
        future: Future[T] = Future()
        self._tasks.put((future, lambda: fn(*args, **kwargs)))
        return future

    def pending(self) -> int:
        return self._tasks.qsize()

    def run_pending(self) -> int:
        executed = 0
        while True:
            try:
                future, task = self._tasks.get_nowait()
            except queue.Empty:
                return executed
            self._run(future, task)
            executed += 1

    def run_until(self, target: Future[Any], timeout: float | None = None) -> None:
        while not target.done():
            try:
                future, task = self._tasks.get(timeout=timeout)
            except queue.Empty as exc:
                msg = "Timed out waiting for a task on the caller thread"
                raise TimeoutError(msg) from exc
            self._run(future, task)

    @staticmethod
    def _run(future: Future[Any], task: Callable[[], Any]) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = task()
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
