"""Progress reporting with a monotonic guarantee.

Callers get (status, percent) pairs where percent never goes backwards
within one parse, even if a phase computes a smaller value than an earlier
one.  The sink is observability only; it never influences the result.
"""

from __future__ import annotations

from typing import Callable, Optional

ProgressSink = Callable[[str, float], None]


class ProgressReporter:
    __slots__ = ("_sink", "_scale", "_last")

    def __init__(self, sink: Optional[ProgressSink] = None,
                 scale: float = 1.0) -> None:
        self._sink = sink
        self._scale = scale
        self._last = 0.0

    @property
    def enabled(self) -> bool:
        return self._sink is not None

    @property
    def last(self) -> float:
        return self._last

    def report(self, status: str, percent: float) -> None:
        if self._sink is None:
            return
        pct = min(100.0, max(0.0, percent * self._scale))
        pct = max(pct, self._last)
        self._last = pct
        self._sink(status, pct)

    def scaled(self, factor: float) -> "ProgressReporter":
        """A child reporter that maps 0-100 onto 0-(100*factor) of this one.

        The child forwards through this reporter, so monotonicity holds
        across both.
        """
        if self._sink is None:
            return ProgressReporter(None)
        return ProgressReporter(self.report, factor)
