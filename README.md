# gkernels

Graph analytics kernels over graphs stored in compressed sparse row (CSR)
form, together with the dense and sparse maths kernels that graph neural
networks are built from.

## What is inside

| Module                | Contents |
|-----------------------|----------|
| `gkernels.graph`      | `CSRGraph`, the directed CSR graph every kernel works on (optional edge weights, optional reverse CSR via `build_reverse`); `read_array` and `map_array` for raw binary arrays |
| `gkernels.pagerank`   | `initial_scores`, `pagerank_pull`, `pagerank_push` (both return a `PageRankResult` with `scores`, `iterations` and per-iteration `errors`), `pagerank_error`, `verify_pagerank` |
| `gkernels.traversal`  | `bfs`, `bfs_direction_optimizing`, `delta_stepping`; the serial oracles `bfs_reference` and `dijkstra`; `verify_bfs`, `verify_sssp` |
| `gkernels.triangle`   | `intersection_count`, `count_triangles`, `count_triangles_range`, `orient` |
| `gkernels.sampling`   | `sample_neighbors`: multi-hop uniform neighbour sampling with replacement (default sizes 15, 10, 10) |
| `gkernels.partition`  | `PartitionedGraph`: `edgecut_partition_1d`, `edgecut_induced_partition_1d`, `csr_segmenting`, `partition_2d` (writes blocks to disk) and `fetch_partitions` (reads them back) |
| `gkernels.cgr`        | `CGRCompressor`: interval + residual compression with gamma and zeta codes; `encode_gamma`, `encode_zeta`, `pack_bits` |
| `gkernels.mathfn`     | `matmul`, `spmm`, `softmax`, `sigmoid`, `relu`, `cross_entropy`, `sigmoid_cross_entropy`, `dropout`, `masked_f1_score`, `init_glorot`, ... |
| `gkernels.rng`        | `cluster_seedgen` and the per-thread generator `Context` |
| `gkernels.utils`      | `prefix_sum`, `split`, `search`, `select_k_items`, `select_one_item`, `find_ceil`, `Timer`, `time_this` |

Python 3.10 or later and NumPy are required.

## Example

```python
from gkernels.graph import CSRGraph
from gkernels.traversal import bfs, verify_bfs
from gkernels.triangle import count_triangles, orient

# An undirected square with one diagonal, given as both edge directions.
edges = [(0, 1), (1, 0), (1, 2), (2, 1), (2, 3), (3, 2),
         (3, 0), (0, 3), (0, 2), (2, 0)]
graph = CSRGraph.from_edges(4, edges, None)

depths = bfs(graph, 0)                  # [0, 1, 1, 1]
assert verify_bfs(graph, 0, depths)

print(count_triangles(orient(graph)))   # 2
```

Vertices that a search never reaches get depth `gkernels.traversal.INFINITY`
(BFS) or distance `math.inf` (shortest paths).

PageRank needs the reverse graph and a starting score vector:

```python
from gkernels.pagerank import initial_scores, pagerank_pull, verify_pagerank

graph.build_reverse()
result = pagerank_pull(graph, initial_scores(graph), 0.85, 1e-4, 100)
print(result.iterations, result.scores)
assert verify_pagerank(graph, result.scores, 1e-4, 0.85)
```

Compressing a graph and writing `<prefix>.edge.bin` (packed bits) and
`<prefix>.vertex.bin` (64-bit bit offsets per vertex):

```python
from gkernels.cgr import CGRCompressor

compressor = CGRCompressor(graph)
compressor.compress(use_interval=True, add_degree=False)
compressor.write("square")
```

## Errors and results

Kernels raise Python exceptions rather than exiting: `ValueError` for bad
arguments (an out-of-range source, a missing reverse graph, a graph without
edge weights for shortest paths), `IndexError` for out-of-range vertices and
`FileNotFoundError` for missing partition files. The `verify_*` functions
return `True` or `False`; they do not raise on a mismatch.

## What the package does not do

- It has no command-line programs; everything is called from Python.
- It does not read graphs from a dataset directory. Graphs are built with
  `CSRGraph(rowptr, colidx, weights)` or `CSRGraph.from_edges`; only raw
  arrays can be loaded from binary files.
- It does not decompress CGR data; `CGRCompressor` only encodes.
- It provides math kernels for neural networks, but no layers, optimizers
  or training loop.
- Kernels run serially in one process; there is no GPU or multi-machine
  execution.

## Running the tests

Install the `test` extra and run `pytest` from the project root.