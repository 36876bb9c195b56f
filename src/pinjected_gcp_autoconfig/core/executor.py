import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from loguru import logger


def default_executor_thread_count() -> int:
    return max(4, os.cpu_count() or 1)


class BackgroundExecutorProvider:
    """Lazily creates one thread pool that blocking client calls are offloaded to."""

    def __init__(self, thread_count: Optional[int] = None, thread_name_prefix: str = "gcp-client"):
        if thread_count is None:
            thread_count = default_executor_thread_count()
        if thread_count < 1:
            raise ValueError(f"executor thread count must be positive, got {thread_count}")
        self.thread_count = thread_count
        self.thread_name_prefix = thread_name_prefix
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            with self._lock:
                if self._executor is None:
                    logger.debug(
                        f"Starting {self.thread_name_prefix} executor with {self.thread_count} threads"
                    )
                    self._executor = ThreadPoolExecutor(
                        max_workers=self.thread_count,
                        thread_name_prefix=self.thread_name_prefix,
                    )
        return self._executor

    def shutdown(self, wait: bool = True):
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    def __repr__(self):
        return f"BackgroundExecutorProvider(thread_count={self.thread_count})"
