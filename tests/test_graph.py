import numpy as np
import pytest

from gkernels.graph import CSRGraph, map_array, read_array


@pytest.fixture
def weighted():
    return CSRGraph.from_edges(3, [(0, 2), (0, 1), (1, 2)], weights=[5, 7, 9])


def test_from_edges_sorts_neighbors(weighted):
    assert weighted.neighbors(0).tolist() == [1, 2]
    assert weighted.neighbors(1).tolist() == [2]
    assert weighted.neighbors(2).tolist() == []


def test_counts(weighted):
    assert weighted.num_vertices == 3
    assert weighted.num_edges == 3
    assert sum(weighted.degree(v) for v in range(3)) == weighted.num_edges


def test_weights_follow_sorted_edges(weighted):
    assert weighted.edge_weight(weighted.edge_begin(0)) == 7
    assert weighted.edge_weight(weighted.edge_begin(0) + 1) == 5
    assert weighted.edge_weight(weighted.edge_begin(1)) == 9


def test_edge_range(weighted):
    for v in range(3):
        assert weighted.edge_end(v) - weighted.edge_begin(v) == weighted.degree(v)


def test_reverse_graph(weighted):
    assert weighted.has_reverse() is False
    assert weighted.build_reverse() is weighted
    assert weighted.has_reverse() is True
    assert weighted.in_neighbors(2).tolist() == [0, 1]
    assert weighted.in_neighbors(0).tolist() == []


def test_in_neighbors_requires_reverse(weighted):
    with pytest.raises(RuntimeError):
        weighted.in_neighbors(0)


def test_max_degree(weighted):
    assert weighted.max_degree() == max(weighted.degree(v) for v in range(3))


def test_invalid_vertex(weighted):
    with pytest.raises(IndexError):
        weighted.degree(3)
    with pytest.raises(IndexError):
        weighted.neighbors(-1)


def test_unweighted_edge_weight():
    g = CSRGraph.from_edges(2, [(0, 1)])
    with pytest.raises(ValueError):
        g.edge_weight(0)


def test_invalid_csr():
    with pytest.raises(ValueError):
        CSRGraph([0, 2], [0])
    with pytest.raises(ValueError):
        CSRGraph([0, 1], [4])


def test_from_edges_rejects_bad_input():
    with pytest.raises(ValueError):
        CSRGraph.from_edges(2, [(0, 5)])
    with pytest.raises(ValueError):
        CSRGraph.from_edges(2, [(0, 1)], weights=[1, 2])


def test_read_array_round_trip(tmp_path):
    path = tmp_path / "data.bin"
    original = np.arange(10, dtype=np.int32)
    original.tofile(path)
    loaded = read_array(str(path), "int32", 10)
    assert loaded.tolist() == original.tolist()


def test_read_array_short_file(tmp_path):
    path = tmp_path / "short.bin"
    np.arange(3, dtype=np.int64).tofile(path)
    with pytest.raises(ValueError):
        read_array(str(path), "int64", 10)


def test_read_array_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_array(str(tmp_path / "absent.bin"), "int32", 1)


def test_map_array_round_trip(tmp_path):
    path = tmp_path / "mapped.bin"
    original = np.linspace(0.0, 1.0, 8, dtype=np.float64)
    original.tofile(path)
    mapped = map_array(str(path), "float64", 8)
    assert np.array_equal(np.asarray(mapped), original)


def test_map_array_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        map_array(str(tmp_path / "absent.bin"), "int32", 1)