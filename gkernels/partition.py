"""Graph partitioning: 1D edge-cut, vertex-induced 1D, CSR segmenting and 2D cluster blocks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np

from gkernels.graph import CSRGraph, map_array
from gkernels.utils import prefix_sum

_META_FILE = "pgraph.meta.txt"
_VOFFSETS_FILE = "pgraph.voffsets.bin"
_EOFFSETS_FILE = "pgraph.eoffsets.bin"
_VERTEX_FILE = "pgraph.vertex.bin"
_EDGE_FILE = "pgraph.edge.bin"
_DISK_DTYPE = "<i4"


@dataclass(frozen=True)
class CSRSegment:
    """A CSR block whose rows are local vertices and whose columns are global vertex ids."""

    rowptr: np.ndarray
    colidx: np.ndarray

    @property
    def num_vertices(self) -> int:
        return int(self.rowptr.size - 1)

    @property
    def num_edges(self) -> int:
        return int(self.colidx.size)

    def degree(self, v: int) -> int:
        if not 0 <= v < self.num_vertices:
            raise IndexError(f"vertex {v} out of range")
        return int(self.rowptr[v + 1] - self.rowptr[v])

    def neighbors(self, v: int) -> np.ndarray:
        if not 0 <= v < self.num_vertices:
            raise IndexError(f"vertex {v} out of range")
        return self.colidx[self.rowptr[v] : self.rowptr[v + 1]]


def _rowptr_from_counts(counts: np.ndarray) -> np.ndarray:
    return np.concatenate(([0], np.cumsum(counts, dtype=np.int64))).astype(np.int64)


def _load(path: Path, length: int) -> np.ndarray:
    if not path.exists():
        raise FileNotFoundError(f"missing partition file {path}")
    if length == 0:
        return np.zeros(0, dtype=_DISK_DTYPE)
    return map_array(str(path), _DISK_DTYPE, length)


class PartitionedGraph:
    """A graph split into subgraphs by one of several partitioning schemes."""

    def __init__(
        self,
        graph: CSRGraph,
        num_chunks: int,
        cluster_ids: Sequence[int] | None = None,
    ) -> None:
        self.graph = graph
        self.num_vertex_chunks = num_chunks
        self.num_2d_partitions = num_chunks * num_chunks
        self.subgraph_size = 0
        self._subgraphs: list[CSRGraph | CSRSegment] = []
        self._idx_map: list[np.ndarray] = []
        self._local_begin: list[int] = []
        self._local_end: list[int] = []
        self._cluster_ids: np.ndarray | None = None
        self._verts_of_clusters: list[list[int]] = []
        self._rank_in_cluster: np.ndarray | None = None
        if cluster_ids is None:
            if num_chunks <= 1:
                raise ValueError("the number of chunks must be greater than 1")
            return
        if num_chunks < 1:
            raise ValueError("the number of clusters must be positive")
        ids = self._validate_clusters(cluster_ids)
        self._cluster_ids = ids
        self._verts_of_clusters = [[] for _ in range(num_chunks)]
        ranks = np.zeros(graph.num_vertices, dtype=np.int64)
        for v, cid in enumerate(ids.tolist()):
            ranks[v] = len(self._verts_of_clusters[cid])
            self._verts_of_clusters[cid].append(v)
        self._rank_in_cluster = ranks

    def _validate_clusters(self, cluster_ids: Sequence[int]) -> np.ndarray:
        ids = np.asarray(cluster_ids, dtype=np.int64)
        if ids.shape != (self.graph.num_vertices,):
            raise ValueError("one cluster id per vertex is required")
        if ids.size and (ids.min() < 0 or ids.max() >= self.num_vertex_chunks):
            raise ValueError("cluster id out of range")
        return ids

    @property
    def num_subgraphs(self) -> int:
        return len(self._subgraphs)

    def _require_partitioned(self) -> None:
        if not self._subgraphs:
            raise RuntimeError("graph has not been partitioned yet")

    def subgraph(self, i: int) -> CSRGraph | CSRSegment:
        """The i-th subgraph."""
        self._require_partitioned()
        return self._subgraphs[i]

    def local_begin(self, i: int) -> int:
        """Local id of the first master vertex of the i-th induced subgraph."""
        if not self._local_begin:
            raise RuntimeError("local ranges exist only after an induced partitioning")
        return self._local_begin[i]

    def local_end(self, i: int) -> int:
        """Local id one past the last master vertex of the i-th induced subgraph."""
        if not self._local_end:
            raise RuntimeError("local ranges exist only after an induced partitioning")
        return self._local_end[i]

    def id_map(self, i: int) -> list[int]:
        """Global vertex ids of the i-th subgraph's local vertices."""
        if not self._idx_map:
            raise RuntimeError("this partitioning has no vertex id map")
        return self._idx_map[i].tolist()

    def _edge_sources(self) -> np.ndarray:
        g = self.graph
        return np.repeat(np.arange(g.num_vertices, dtype=np.int64), np.diff(g.rowptr))

    def _reset(self) -> None:
        self._subgraphs = []
        self._idx_map = []
        self._local_begin = []
        self._local_end = []

    def edgecut_partition_1d(self) -> list[CSRGraph]:
        """Split the edges by source-vertex range; each subgraph keeps all vertex ids."""
        g = self.graph
        nv = g.num_vertices
        if nv == 0:
            raise ValueError("graph has no vertices")
        n = self.num_vertex_chunks
        size = (nv - 1) // n + 1
        self._reset()
        self.subgraph_size = size
        degrees = np.diff(g.rowptr)
        for i in range(n):
            begin = min(i * size, nv)
            end = min((i + 1) * size, nv)
            counts = np.zeros(nv, dtype=np.int64)
            counts[begin:end] = degrees[begin:end]
            e_begin, e_end = int(g.rowptr[begin]), int(g.rowptr[end])
            weights = None if g.weights is None else g.weights[e_begin:e_end]
            self._subgraphs.append(
                CSRGraph(_rowptr_from_counts(counts), g.colidx[e_begin:e_end], weights)
            )
        return list(self._subgraphs)

    def edgecut_induced_partition_1d(self) -> list[CSRGraph]:
        """For each vertex range, build the subgraph induced by the range and its neighbours."""
        g = self.graph
        nv = g.num_vertices
        if nv == 0:
            raise ValueError("graph has no vertices")
        n = self.num_vertex_chunks
        size = -(-nv // n)
        self._reset()
        self.subgraph_size = size
        src = self._edge_sources()
        dst = g.colidx
        for i in range(n):
            begin = size * i
            end = min(begin + size, nv)
            mask = np.zeros(nv, dtype=bool)
            if begin < end:
                mask[begin:end] = True
                mask[dst[g.rowptr[begin] : g.rowptr[end]]] = True
            ids = np.flatnonzero(mask)
            new_ids = np.full(nv, -1, dtype=np.int64)
            new_ids[ids] = np.arange(ids.size)
            keep = mask[src] & mask[dst]
            sub_src = new_ids[src[keep]]
            sub_dst = new_ids[dst[keep]]
            counts = np.bincount(sub_src, minlength=ids.size)
            weights = None if g.weights is None else g.weights[keep]
            self._subgraphs.append(CSRGraph(_rowptr_from_counts(counts), sub_dst, weights))
            self._idx_map.append(ids)
            if begin < end:
                self._local_begin.append(int(new_ids[begin]))
                self._local_end.append(int(new_ids[end - 1]) + 1)
            else:
                self._local_begin.append(0)
                self._local_end.append(0)
        return list(self._subgraphs)

    def csr_segmenting(self) -> list[CSRSegment]:
        """Split the edges by destination range into blocks of the rows that reach each range."""
        g = self.graph
        nv = g.num_vertices
        n = self.num_vertex_chunks
        size = nv // n
        if size == 0:
            raise ValueError("graph has fewer vertices than segments")
        self._reset()
        self.subgraph_size = size
        src = self._edge_sources()
        segment_of = np.minimum(g.colidx // size, n - 1)
        for i in range(n):
            selected = segment_of == i
            rows, counts = np.unique(src[selected], return_counts=True)
            self._subgraphs.append(
                CSRSegment(_rowptr_from_counts(counts), g.colidx[selected].copy())
            )
            self._idx_map.append(rows.astype(np.int64))
        return list(self._subgraphs)

    def _require_clusters(self) -> None:
        if self._rank_in_cluster is None:
            raise RuntimeError("cluster ids were not given to the partitioned graph")

    def partition_2d(
        self, cluster_ids: Sequence[int] | None = None, path: str | Path = "."
    ) -> None:
        """Cut the graph into cluster-by-cluster CSR blocks and write them under ``path``."""
        self._require_clusters()
        ids = self._cluster_ids if cluster_ids is None else self._validate_clusters(cluster_ids)
        g = self.graph
        nc = self.num_vertex_chunks
        src = self._edge_sources()
        pids = ids[src] * nc + ids[g.colidx]
        ranks = self._rank_in_cluster[src]
        rowptrs: list[np.ndarray] = []
        colidxs: list[np.ndarray] = []
        for pid in range(self.num_2d_partitions):
            num = len(self._verts_of_clusters[pid // nc])
            selected = pids == pid
            degrees = np.bincount(ranks[selected], minlength=num)
            rowptrs.append(_rowptr_from_counts(degrees))
            colidxs.append(g.colidx[selected])
        voffsets = prefix_sum([r.size for r in rowptrs])
        eoffsets = prefix_sum([c.size for c in colidxs])

        base = Path(path)
        base.mkdir(parents=True, exist_ok=True)
        (base / _META_FILE).write_text(f"{voffsets[-1]}\n{eoffsets[-1]}\n")
        with open(base / _VERTEX_FILE, "wb") as fh:
            for rowptr in rowptrs:
                fh.write(rowptr.astype(_DISK_DTYPE).tobytes())
        with open(base / _EDGE_FILE, "wb") as fh:
            for colidx in colidxs:
                fh.write(colidx.astype(_DISK_DTYPE).tobytes())
        (base / _VOFFSETS_FILE).write_bytes(np.asarray(voffsets, dtype=_DISK_DTYPE).tobytes())
        (base / _EOFFSETS_FILE).write_bytes(np.asarray(eoffsets, dtype=_DISK_DTYPE).tobytes())

    def fetch_partitions(
        self, path: str | Path, clusters: Sequence[int]
    ) -> tuple[CSRGraph, list[int]]:
        """Load the blocks between ``clusters`` from ``path`` as one CSR subgraph.

        Returns the subgraph and the global id of each of its local vertices;
        local ids follow the vertices of the clusters in the order given.
        """
        self._require_clusters()
        nc = self.num_vertex_chunks
        clusters = [int(c) for c in clusters]
        if any(not 0 <= c < nc for c in clusters):
            raise ValueError("cluster id out of range")
        if len(set(clusters)) != len(clusters):
            raise ValueError("clusters must not repeat")
        base = Path(path)
        meta = base / _META_FILE
        if not meta.exists():
            raise FileNotFoundError(
                f"Cannot find partitioned graph in {path}. Has this graph been partitioned yet?"
            )
        fields = meta.read_text().split()
        if len(fields) < 2:
            raise ValueError(f"{meta}: malformed metadata")
        rowptr_size, colidx_size = int(fields[0]), int(fields[1])
        rowptr = _load(base / _VERTEX_FILE, rowptr_size)
        colidx = _load(base / _EDGE_FILE, colidx_size)
        voffsets = _load(base / _VOFFSETS_FILE, self.num_2d_partitions + 1)
        eoffsets = _load(base / _EOFFSETS_FILE, self.num_2d_partitions + 1)

        vertices = [v for cid in clusters for v in self._verts_of_clusters[cid]]
        local = {v: i for i, v in enumerate(vertices)}
        counts: list[int] = []
        columns: list[int] = []
        for src_cid in clusters:
            for v in self._verts_of_clusters[src_cid]:
                rank = int(self._rank_in_cluster[v])
                before = len(columns)
                for dst_cid in clusters:
                    pid = src_cid * nc + dst_cid
                    vstart, estart = int(voffsets[pid]), int(eoffsets[pid])
                    first = int(rowptr[vstart + rank])
                    last = int(rowptr[vstart + rank + 1])
                    for global_dst in colidx[estart + first : estart + last].tolist():
                        if global_dst not in local:
                            raise ValueError(
                                f"edge to vertex {global_dst} lies outside the fetched clusters"
                            )
                        columns.append(local[global_dst])
                counts.append(len(columns) - before)
        subgraph = CSRGraph(
            _rowptr_from_counts(np.asarray(counts, dtype=np.int64)),
            np.asarray(columns, dtype=np.int64),
        )
        return subgraph, vertices

    def describe(self) -> str:
        """Text listing every subgraph's adjacency and vertex id map."""
        self._require_partitioned()
        lines: list[str] = []
        for i, sg in enumerate(self._subgraphs):
            lines.append(f"subgraph[{i}]: |V| = {sg.num_vertices} |E| = {sg.num_edges}")
            for v in range(sg.num_vertices):
                neighbours = " ".join(str(u) for u in sg.neighbors(v).tolist())
                lines.append(f"  {v}: {neighbours}".rstrip())
            if self._idx_map:
                ids = " ".join(str(u) for u in self._idx_map[i].tolist())
                lines.append(f"vertex id map: {ids}".rstrip())
        return "\n".join(lines) + "\n"