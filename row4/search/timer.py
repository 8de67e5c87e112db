from __future__ import annotations

import time


class Timer:
    """Wall-clock stopwatch started on construction."""

    def __init__(self) -> None:
        self._start = time.perf_counter_ns()

    def elapsed_nanos(self) -> int:
        return time.perf_counter_ns() - self._start

    def elapsed_millis(self) -> int:
        return self.elapsed_nanos() // 1_000_000

    def expired(self, millis: int) -> bool:
        return self.elapsed_millis() >= millis
