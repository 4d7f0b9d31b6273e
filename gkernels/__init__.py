"""Graph analytics kernels on CSR graphs, with math kernels for graph neural networks."""

__version__ = "0.1.0"

__all__ = [
    "cgr",
    "graph",
    "mathfn",
    "pagerank",
    "partition",
    "rng",
    "sampling",
    "traversal",
    "triangle",
    "utils",
]