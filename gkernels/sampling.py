"""Multi-hop uniform neighbour sampling."""

from __future__ import annotations

import random
from typing import Sequence

from gkernels.graph import CSRGraph

DEFAULT_SAMPLE_SIZES = (15, 10, 10)


def sample_neighbors(
    graph: CSRGraph,
    roots: Sequence[int],
    sample_sizes: Sequence[int] = DEFAULT_SAMPLE_SIZES,
    rng: random.Random | None = None,
) -> list[list[int]]:
    """Sample neighbours hop by hop, with replacement.

    Returns one frontier per hop plus the roots: frontier ``i + 1`` holds
    ``sample_sizes[i]`` sampled neighbours for each vertex of frontier ``i``,
    in order.
    """
    rng = rng or random.Random()
    frontiers = [list(roots)]
    for size in sample_sizes:
        if size < 0:
            raise ValueError("sample sizes must be non-negative")
        next_frontier: list[int] = []
        for v in frontiers[-1]:
            degree = graph.degree(v)
            if degree == 0:
                raise ValueError(f"vertex {v} has no neighbours to sample")
            neighbours = graph.neighbors(v)
            next_frontier.extend(
                int(neighbours[rng.randrange(degree)]) for _ in range(size)
            )
        frontiers.append(next_frontier)
    return frontiers