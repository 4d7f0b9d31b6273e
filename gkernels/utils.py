"""Small helpers: list search, tokenising, prefix sums, random selection and timing."""

from __future__ import annotations

import itertools
import random
import time
from typing import Any, Callable, Sequence


def search(values: Sequence[Any], key: Any) -> bool:
    """Return True if ``key`` occurs in ``values``."""
    return key in values


def split(text: str, delimiters: str = " ") -> list[str]:
    """Split ``text`` on any character of ``delimiters``, dropping empty tokens."""
    tokens: list[str] = []
    current: list[str] = []
    for ch in text:
        if ch in delimiters:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        tokens.append("".join(current))
    return tokens


def prefix_sum(values: Sequence[int | float]) -> list[int | float]:
    """Exclusive prefix sum of ``values`` followed by the grand total (length n + 1)."""
    return list(itertools.accumulate(values, initial=0))


def select_k_items(
    k: int, begin: int, end: int, rng: random.Random | None = None
) -> list[int]:
    """Pick ``k`` items uniformly at random from ``range(begin, end)`` by reservoir sampling."""
    if k < 0 or k > end - begin:
        raise ValueError(f"cannot select {k} items from [{begin}, {end})")
    rng = rng or random.Random()
    items = range(begin, end)
    reservoir = list(items[:k])
    for position, item in enumerate(items[k:], start=k):
        j = rng.randrange(position + 1)
        if j < k:
            reservoir[j] = item
    return reservoir


def find_ceil(values: Sequence[int | float], r: int | float, low: int, high: int) -> int:
    """Index of the smallest element of sorted ``values[low..high]`` that is >= ``r``, or -1."""
    while low < high:
        mid = low + ((high - low) >> 1)
        if r > values[mid]:
            low = mid + 1
        else:
            high = mid
    return low if values[low] >= r else -1


def select_one_item(dist: Sequence[int], rng: random.Random | None = None) -> int:
    """Pick an index with probability proportional to its integer frequency in ``dist``."""
    if not dist:
        raise ValueError("distribution is empty")
    offsets = list(itertools.accumulate(dist))
    total = offsets[-1]
    if total <= 0:
        raise ValueError("distribution must have a positive total")
    rng = rng or random.Random()
    r = rng.randrange(total) + 1
    return find_ceil(offsets, r, 0, len(offsets) - 1)


class Timer:
    """Wall-clock stopwatch; also usable as a context manager."""

    def __init__(self, name: str = "null") -> None:
        self.name = name
        self._start: float | None = None
        self._elapsed = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start is None:
            raise RuntimeError("timer stopped before it was started")
        self._elapsed = time.perf_counter() - self._start

    def seconds(self) -> float:
        return self._elapsed

    def millisecs(self) -> float:
        return self._elapsed * 1e3

    def microsecs(self) -> float:
        return self._elapsed * 1e6

    def __enter__(self) -> "Timer":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def time_this(func: Callable[[], Any], name: str = "null") -> Any:
    """Run ``func``, print its runtime and return its result."""
    timer = Timer(name)
    with timer:
        result = func()
    print(f"runtime[{timer.name}] = {timer.seconds()} sec")
    return result