# src/cprunner/executor/sampler.py
from __future__ import annotations
import threading
import time
from typing import Optional

import psutil
import structlog

from ..core.models import UsageStats

log = structlog.get_logger(__name__)


class ResourceSampler:
    """
    Poll the resident memory of a live pid on a background thread.

    Elapsed time is kept on the sampler's own monotonic clock, from start()
    to stop(). Once the process has exited (gone or zombie) polling ends.
    If no sample could be taken at all, stop() returns zeroed stats: a very
    fast program can exit before the first poll.
    """

    def __init__(self, pid: int, interval_ms: int = 500):
        self.pid = pid
        self.interval_s = max(interval_ms, 1) / 1000.0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._proc: Optional[psutil.Process] = None
        self._started_at: Optional[float] = None
        self._peak_kb = 0.0
        self._samples = 0
        self._result: Optional[UsageStats] = None

    @property
    def samples(self) -> int:
        return self._samples

    def start(self) -> "ResourceSampler":
        self._started_at = time.monotonic()
        try:
            self._proc = psutil.Process(self.pid)
        except psutil.Error:
            log.debug("sampler.pid_gone", pid=self.pid)
            return self
        self._thread = threading.Thread(target=self._loop, name=f"sampler-{self.pid}", daemon=True)
        self._thread.start()
        return self

    def _take_sample(self) -> bool:
        try:
            if self._proc.status() == psutil.STATUS_ZOMBIE:
                return False
            rss = self._proc.memory_info().rss
        except psutil.Error:
            return False
        self._peak_kb = max(self._peak_kb, rss / 1024.0)
        self._samples += 1
        return True

    def _loop(self):
        while self._take_sample():
            if self._stop.wait(self.interval_s):
                break

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until polling ends on its own (the process exited)."""
        if self._thread is not None:
            self._thread.join(timeout)

    def stop(self) -> UsageStats:
        if self._result is not None:
            return self._result
        stopped_at = time.monotonic()
        self._stop.set()
        self.join()
        if self._started_at is None or self._samples == 0:
            self._result = UsageStats.zero()
        else:
            self._result = UsageStats(
                elapsed_ms=(stopped_at - self._started_at) * 1000.0,
                memory_kb=self._peak_kb,
            )
        log.debug("sampler.stop", pid=self.pid, samples=self._samples,
                  elapsed_ms=self._result.elapsed_ms, memory_kb=self._result.memory_kb)
        return self._result

    def __enter__(self) -> "ResourceSampler":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()


def sample(pid: int, interval_ms: int = 500) -> UsageStats:
    """
    Sample `pid` until it exits and return the final usage.

    Does not reap the process, so it is safe on a child owned by a Popen.
    """
    sampler = ResourceSampler(pid, interval_ms).start()
    sampler.join()
    return sampler.stop()
