"""Iterative PageRank in pull and push form, with a verifier."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from gkernels.graph import CSRGraph

logger = logging.getLogger(__name__)

DAMPING = 0.85
EPSILON = 1e-4
MAX_ITER = 100


@dataclass
class PageRankResult:
    """Final scores, iterations run and the total change of each iteration."""

    scores: np.ndarray
    iterations: int
    errors: list[float] = field(default_factory=list)


def initial_scores(graph: CSRGraph) -> np.ndarray:
    """Uniform starting scores, 1/|V| per vertex."""
    if graph.num_vertices == 0:
        raise ValueError("graph has no vertices")
    return np.full(graph.num_vertices, 1.0 / graph.num_vertices)


def _outgoing_contributions(graph: CSRGraph, scores: np.ndarray) -> np.ndarray:
    degrees = np.diff(graph.rowptr).astype(np.float64)
    return np.divide(scores, degrees, out=np.zeros_like(scores), where=degrees > 0)


def _pull_sums(graph: CSRGraph, scores: np.ndarray) -> np.ndarray:
    contrib = _outgoing_contributions(graph, scores)
    nv = graph.num_vertices
    dst_rows = np.repeat(np.arange(nv), np.diff(graph.in_rowptr))
    return np.bincount(dst_rows, weights=contrib[graph.in_colidx], minlength=nv)


def _push_sums(graph: CSRGraph, scores: np.ndarray) -> np.ndarray:
    contrib = _outgoing_contributions(graph, scores)
    nv = graph.num_vertices
    src_rows = np.repeat(np.arange(nv), np.diff(graph.rowptr))
    return np.bincount(graph.colidx, weights=contrib[src_rows], minlength=nv)


def _prepare(graph: CSRGraph, scores: Sequence[float]) -> np.ndarray:
    if not graph.has_reverse():
        raise ValueError("PageRank requires the reverse graph; call build_reverse()")
    if graph.num_vertices == 0:
        raise ValueError("graph has no vertices")
    values = np.array(scores, dtype=np.float64)
    if values.shape != (graph.num_vertices,):
        raise ValueError("one score per vertex is required")
    return values


def _iterate(graph, scores, damping, epsilon, max_iter, sums) -> PageRankResult:
    base = (1.0 - damping) / graph.num_vertices
    errors: list[float] = []
    for iteration in range(1, max_iter + 1):
        new_scores = base + damping * sums(graph, scores)
        error = float(np.abs(new_scores - scores).sum())
        scores = new_scores
        errors.append(error)
        logger.debug(" %2d    %f", iteration, error)
        if error < epsilon:
            break
    return PageRankResult(scores, len(errors), errors)


def pagerank_pull(
    graph: CSRGraph,
    scores: Sequence[float],
    damping: float = DAMPING,
    epsilon: float = EPSILON,
    max_iter: int = MAX_ITER,
) -> PageRankResult:
    """PageRank gathering contributions along incoming edges until the change drops below epsilon."""
    return _iterate(graph, _prepare(graph, scores), damping, epsilon, max_iter, _pull_sums)


def pagerank_push(
    graph: CSRGraph,
    scores: Sequence[float],
    damping: float = DAMPING,
    epsilon: float = EPSILON,
    max_iter: int = MAX_ITER,
) -> PageRankResult:
    """PageRank scattering contributions along outgoing edges until the change drops below epsilon."""
    return _iterate(graph, _prepare(graph, scores), damping, epsilon, max_iter, _push_sums)


def pagerank_error(
    graph: CSRGraph, scores: Sequence[float], damping: float = DAMPING
) -> float:
    """Total change a single serial push iteration would make to ``scores``."""
    values = np.asarray(scores, dtype=np.float64)
    if values.shape != (graph.num_vertices,) or graph.num_vertices == 0:
        raise ValueError("one score per vertex is required")
    base = (1.0 - damping) / graph.num_vertices
    new_scores = base + damping * _push_sums(graph, values)
    return float(np.abs(new_scores - values).sum())


def verify_pagerank(
    graph: CSRGraph,
    scores: Sequence[float],
    target_error: float = EPSILON,
    damping: float = DAMPING,
) -> bool:
    """True if one more iteration changes ``scores`` by less than ``target_error``."""
    return pagerank_error(graph, scores, damping) < target_error