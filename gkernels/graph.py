"""Compressed sparse row graphs and raw binary array loading."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np


def read_array(path: str, typecode: str, length: int) -> np.ndarray:
    """Read ``length`` values of numpy type ``typecode`` from a binary file into memory."""
    dtype = np.dtype(typecode)
    with open(path, "rb") as fh:
        data = np.fromfile(fh, dtype=dtype, count=length)
    if data.size < length:
        raise ValueError(
            f"{path}: expected {length} values of {dtype}, found {data.size}"
        )
    return data


def map_array(path: str, typecode: str, length: int) -> np.ndarray:
    """Map ``length`` values of numpy type ``typecode`` from a binary file read-only."""
    return np.memmap(path, dtype=np.dtype(typecode), mode="r", shape=(length,))


class CSRGraph:
    """A directed graph in CSR form, with optional edge weights and reverse (incoming) CSR."""

    def __init__(
        self,
        rowptr: Sequence[int],
        colidx: Sequence[int],
        weights: Sequence[float] | None = None,
    ) -> None:
        self.rowptr = np.asarray(rowptr, dtype=np.int64)
        self.colidx = np.asarray(colidx, dtype=np.int64)
        if self.rowptr.ndim != 1 or self.rowptr.size == 0:
            raise ValueError("rowptr must be a non-empty 1-D sequence")
        if self.rowptr[0] != 0 or self.rowptr[-1] != self.colidx.size:
            raise ValueError("rowptr must start at 0 and end at the number of edges")
        if np.any(np.diff(self.rowptr) < 0):
            raise ValueError("rowptr must be non-decreasing")
        nv = self.rowptr.size - 1
        if self.colidx.size and (self.colidx.min() < 0 or self.colidx.max() >= nv):
            raise ValueError("column index out of range")
        if weights is None:
            self.weights = None
        else:
            self.weights = np.asarray(weights)
            if self.weights.size != self.colidx.size:
                raise ValueError("weights must have one entry per edge")
        self.in_rowptr: np.ndarray | None = None
        self.in_colidx: np.ndarray | None = None

    @classmethod
    def from_edges(
        cls,
        num_vertices: int,
        edges: Iterable[tuple[int, int]],
        weights: Sequence[float] | None = None,
    ) -> "CSRGraph":
        """Build a graph from (src, dst) pairs; each neighbour list is sorted by dst."""
        pairs = np.asarray(list(edges), dtype=np.int64).reshape(-1, 2)
        src, dst = pairs[:, 0], pairs[:, 1]
        if pairs.size and (pairs.min() < 0 or pairs.max() >= num_vertices):
            raise ValueError("edge endpoint out of range")
        if weights is not None and len(weights) != len(src):
            raise ValueError("weights must have one entry per edge")
        order = np.lexsort((dst, src))
        counts = np.bincount(src, minlength=num_vertices)
        rowptr = np.concatenate(([0], np.cumsum(counts)))
        w = None if weights is None else np.asarray(weights)[order]
        return cls(rowptr, dst[order], w)

    @property
    def num_vertices(self) -> int:
        return int(self.rowptr.size - 1)

    @property
    def num_edges(self) -> int:
        return int(self.colidx.size)

    def _check_vertex(self, v: int) -> None:
        if not 0 <= v < self.num_vertices:
            raise IndexError(f"vertex {v} out of range")

    def degree(self, v: int) -> int:
        self._check_vertex(v)
        return int(self.rowptr[v + 1] - self.rowptr[v])

    def neighbors(self, v: int) -> np.ndarray:
        self._check_vertex(v)
        return self.colidx[self.rowptr[v] : self.rowptr[v + 1]]

    def in_neighbors(self, v: int) -> np.ndarray:
        if self.in_rowptr is None or self.in_colidx is None:
            raise RuntimeError("reverse graph has not been built")
        self._check_vertex(v)
        return self.in_colidx[self.in_rowptr[v] : self.in_rowptr[v + 1]]

    def edge_begin(self, v: int) -> int:
        self._check_vertex(v)
        return int(self.rowptr[v])

    def edge_end(self, v: int) -> int:
        self._check_vertex(v)
        return int(self.rowptr[v + 1])

    def edge_weight(self, e: int):
        if self.weights is None:
            raise ValueError("graph has no edge weights")
        return self.weights[e].item()

    def has_reverse(self) -> bool:
        return self.in_rowptr is not None

    def build_reverse(self) -> "CSRGraph":
        """Build the incoming-edge CSR; returns the graph itself."""
        nv = self.num_vertices
        src = np.repeat(np.arange(nv, dtype=np.int64), np.diff(self.rowptr))
        order = np.lexsort((src, self.colidx))
        counts = np.bincount(self.colidx, minlength=nv)
        self.in_rowptr = np.concatenate(([0], np.cumsum(counts))).astype(np.int64)
        self.in_colidx = src[order]
        return self

    def max_degree(self) -> int:
        if self.num_vertices == 0:
            return 0
        return int(np.diff(self.rowptr).max())