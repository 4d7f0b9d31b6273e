"""Seed generation and per-thread random number contexts."""

from __future__ import annotations

import logging
import os
import threading
import time

import numpy as np

logger = logging.getLogger(__name__)

_SEED_BYTES = 8
_FALLBACK_MODULUS = 104729
_UINT64_MASK = (1 << 64) - 1


def cluster_seedgen() -> int:
    """Return a random 64-bit signed seed from the system entropy source.

    When no entropy source is available, a seed is derived from the process
    id and the current time instead.
    """
    try:
        raw = os.urandom(_SEED_BYTES)
    except (OSError, NotImplementedError):
        raw = b""
    if len(raw) == _SEED_BYTES:
        return int.from_bytes(raw, "little", signed=True)
    logger.warning(
        "System entropy source not available, "
        "using fallback algorithm to generate seed instead."
    )
    pid = os.getpid()
    now = int(time.time())
    value = (now * 181) * ((pid - 83) * 359)
    return abs(value) % _FALLBACK_MODULUS


class Context:
    """Per-thread holder of a random number generator."""

    _local = threading.local()

    def __init__(self) -> None:
        self._generator: np.random.Generator | None = None

    @classmethod
    def get(cls) -> "Context":
        """The context of the calling thread, created on first use."""
        context = getattr(cls._local, "context", None)
        if context is None:
            context = cls()
            cls._local.context = context
        return context

    @classmethod
    def set_random_seed(cls, seed: int) -> None:
        """Reseed the calling thread's generator."""
        cls.get()._generator = np.random.default_rng(seed)

    def generator(self) -> np.random.Generator:
        """The generator of this context, seeded from system entropy if never seeded."""
        if self._generator is None:
            self._generator = np.random.default_rng(cluster_seedgen() & _UINT64_MASK)
        return self._generator