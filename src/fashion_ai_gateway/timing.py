"""Elapsed-time bookkeeping for fallback attempts."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter


class TimingTracker:
    """Records elapsed milliseconds per named attempt, in attempt order.

    ``context`` also works around ``await`` expressions inside coroutines, so
    one tracker can time each tier of a fallback walk.
    """

    def __init__(self) -> None:
        self._attempts: list[tuple[str, float]] = []

    @contextmanager
    def context(self, name: str) -> Iterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            self._attempts.append((name, (perf_counter() - start) * 1000))

    def last_ms(self) -> float:
        return self._attempts[-1][1] if self._attempts else 0.0

    def attempts(self) -> list[tuple[str, float]]:
        return list(self._attempts)

    def as_dict(self) -> dict[str, float]:
        """Total milliseconds per name; repeated names are summed."""

        totals: dict[str, float] = {}
        for name, elapsed in self._attempts:
            totals[name] = totals.get(name, 0.0) + elapsed
        return totals

    def total_ms(self) -> float:
        return sum(elapsed for _, elapsed in self._attempts)

    def reset(self) -> None:
        self._attempts.clear()
