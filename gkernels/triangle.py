"""Triangle counting by sorted neighbour-list intersection."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from gkernels.graph import CSRGraph


def intersection_count(a: Iterable[int], b: Iterable[int]) -> int:
    """Number of matches found by merging two ascending sequences."""
    it_a, it_b = iter(a), iter(b)
    count = 0
    try:
        x, y = next(it_a), next(it_b)
        while True:
            if x < y:
                x = next(it_a)
            elif x > y:
                y = next(it_b)
            else:
                count += 1
                x, y = next(it_a), next(it_b)
    except StopIteration:
        return count


def count_triangles_range(graph: CSRGraph, begin: int, end: int) -> int:
    """Sum of |N(u) ∩ N(v)| over edges (u, v) with ``begin <= u < end``."""
    if not 0 <= begin <= end <= graph.num_vertices:
        raise ValueError(f"vertex range [{begin}, {end}) out of bounds")
    adjacency = [graph.neighbors(v).tolist() for v in range(graph.num_vertices)]
    return sum(
        intersection_count(adjacency[u], adjacency[v])
        for u in range(begin, end)
        for v in adjacency[u]
    )


def count_triangles(graph: CSRGraph) -> int:
    """Triangle count over all vertices; exact when ``graph`` is oriented."""
    return count_triangles_range(graph, 0, graph.num_vertices)


def orient(graph: CSRGraph) -> CSRGraph:
    """Keep each edge once, pointing from lower to higher (degree, id)."""
    degrees = np.diff(graph.rowptr)
    src = np.repeat(np.arange(graph.num_vertices, dtype=np.int64), degrees)
    dst = graph.colidx
    keep = (degrees[src] < degrees[dst]) | (
        (degrees[src] == degrees[dst]) & (src < dst)
    )
    return CSRGraph.from_edges(
        graph.num_vertices, np.column_stack((src[keep], dst[keep]))
    )