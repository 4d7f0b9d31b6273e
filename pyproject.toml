[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gkernels"
version = "0.1.0"
description = "Graph analytics kernels on CSR graphs: PageRank, BFS, SSSP, triangle counting, sampling, partitioning, CGR compression and GNN math kernels"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "graph",
    "csr",
    "pagerank",
    "bfs",
    "sssp",
    "delta-stepping",
    "triangle-counting",
    "graph-partitioning",
    "graph-compression",
    "neighbour-sampling",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gkernels"]

[tool.hatch.build.targets.sdist]
include = [
    "gkernels",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
