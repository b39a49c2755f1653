"""Single-slot request queue for rate-limited upstream APIs."""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class RequestQueue:
    """Run submitted calls one at a time, pausing ``delay`` seconds after each.

    Callers get a ``Future`` back; the queue guarantees at most one call is in
    flight and that consecutive calls start at least ``delay`` apart.
    """

    def __init__(self, delay: float, sleep: Callable[[float], None] = time.sleep, name: str = "naver-queue") -> None:
        self._delay = delay
        self._sleep = sleep
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        return self._executor.submit(self._run, fn, args, kwargs)

    def _run(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        try:
            return fn(*args, **kwargs)
        finally:
            if self._delay > 0:
                self._sleep(self._delay)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "RequestQueue":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
