import numpy as np
import pytest

from gkernels.cgr import (
    CGRCompressor,
    encode_gamma,
    encode_zeta,
    int_to_nat,
    pack_bits,
    significant_bit,
)
from gkernels.graph import CSRGraph


def _read_gamma(bits, pos):
    zeros = 0
    while bits[pos] == 0:
        zeros += 1
        pos += 1
    pos += 1
    x = 1
    for _ in range(zeros):
        x = (x << 1) | bits[pos]
        pos += 1
    return x - 1, pos


def _read_zeta(bits, pos, k):
    h = 0
    while bits[pos] == 0:
        h += 1
        pos += 1
    pos += 1
    x = 0
    for _ in range((h + 1) * k):
        x = (x << 1) | bits[pos]
        pos += 1
    return x - 1, pos


def _nat_to_int(n):
    return n >> 1 if n % 2 == 0 else -((n + 1) >> 1)


@pytest.mark.parametrize("x,expected", [(1, 0), (2, 1), (8, 3), (255, 7)])
def test_significant_bit(x, expected):
    assert significant_bit(x) == expected


def test_significant_bit_rejects_zero():
    with pytest.raises(ValueError):
        significant_bit(0)


@pytest.mark.parametrize("x,expected", [(0, 0), (1, 2), (-1, 1), (-2, 3), (5, 10)])
def test_int_to_nat(x, expected):
    assert int_to_nat(x) == expected


@pytest.mark.parametrize(
    "x,expected",
    [(0, [1]), (1, [0, 1, 0]), (2, [0, 1, 1]), (3, [0, 0, 1, 0, 0])],
)
def test_encode_gamma(x, expected):
    assert encode_gamma(x) == expected


def test_encode_gamma_rejects_negative():
    with pytest.raises(ValueError):
        encode_gamma(-1)


@pytest.mark.parametrize(
    "x,expected",
    [
        (0, [1, 0, 0, 1]),
        (2, [1, 0, 1, 1]),
        (6, [1, 1, 1, 1]),
        (7, [0, 1, 0, 0, 1, 0, 0, 0]),
    ],
)
def test_encode_zeta_k3(x, expected):
    assert encode_zeta(x, 3) == expected


def test_encode_zeta_k1_is_gamma():
    assert encode_zeta(9, 1) == encode_gamma(9)


def test_encode_zeta_too_long():
    with pytest.raises(ValueError):
        encode_zeta(2**40, 3)


def test_pack_bits():
    assert pack_bits([1, 0, 1]) == b"\xa0"
    assert pack_bits([1] * 8) == b"\xff"
    assert pack_bits([0, 1, 0, 1, 0, 1, 1, 1, 1]) == b"\x57\x80"
    assert pack_bits([]) == b""


def _single_edge():
    return CSRGraph.from_edges(2, [(0, 1)])


def test_encode_node_residual_only_values():
    comp = CGRCompressor(_single_edge(), zeta_k=3, min_itv_len=0, itv_seg_len=0, res_seg_len=0)
    comp.compress(use_interval=False, add_degree=False)
    assert comp.nodes[0].bits == [0, 1, 0, 1, 0, 1, 1]
    assert comp.nodes[1].bits == [1]
    assert comp.row_pointers() == [0, 7, 8]
    assert pack_bits(comp.bit_array()) == b"\x57\x80"


def test_write_files(tmp_path):
    comp = CGRCompressor(_single_edge(), zeta_k=3, min_itv_len=0, itv_seg_len=0, res_seg_len=0)
    comp.compress(use_interval=False, add_degree=False)
    prefix = str(tmp_path / "cgr")
    comp.write(prefix)
    packed = pack_bits(comp.bit_array())
    rowptr = comp.row_pointers()
    assert packed == b"\x57\x80"
    assert rowptr == [0, 7, 8]
    assert (tmp_path / "cgr.edge.bin").read_bytes() == packed
    offsets = np.fromfile(tmp_path / "cgr.vertex.bin", dtype="<u8")
    assert offsets.tolist() == rowptr


def test_interval_encoding_values():
    graph = CSRGraph.from_edges(6, [(0, u) for u in range(1, 6)])
    comp = CGRCompressor(graph, zeta_k=3, min_itv_len=4, itv_seg_len=0, res_seg_len=0)
    comp.compress(use_interval=True, add_degree=False)
    node = comp.nodes[0]
    assert node.itv_left == [1]
    assert node.itv_len == [5]
    assert node.res == []
    assert node.bits == [0, 0, 1, 1, 0, 0, 1, 0, 0, 1, 1, 0, 1, 0]
    assert comp.max_itv_len == 5


def test_intervalize_splits_runs_and_residuals():
    graph = CSRGraph.from_edges(12, [(0, u) for u in (1, 2, 3, 4, 5, 9)])
    comp = CGRCompressor(graph, min_itv_len=4)
    node = comp.encode_node(0, use_interval=True, add_degree=False)
    assert node.itv_left == [1]
    assert node.itv_len == [5]
    assert node.res == [9]


def test_isolated_vertex_without_degree():
    graph = CSRGraph.from_edges(1, [])
    comp = CGRCompressor(graph, res_seg_len=256, itv_seg_len=256)
    assert comp.encode_node(0, use_interval=False, add_degree=False).bits == [1, 1]
    assert comp.encode_node(0, use_interval=True, add_degree=False).bits == [1, 1, 1, 1]


def test_round_trip_residual_coding():
    edges = [(0, 1), (0, 4), (0, 7), (2, 0), (2, 1), (2, 5), (3, 3), (5, 0), (5, 6), (6, 2)]
    graph = CSRGraph.from_edges(8, edges)
    comp = CGRCompressor(graph, zeta_k=2, min_itv_len=0, itv_seg_len=0, res_seg_len=0)
    comp.compress(use_interval=False, add_degree=False)
    bits = comp.bit_array()
    rowptr = comp.row_pointers()
    for v in range(graph.num_vertices):
        pos = rowptr[v]
        degree, pos = _read_gamma(bits, pos)
        decoded = []
        for i in range(degree):
            value, pos = _read_zeta(bits, pos, 2)
            decoded.append(v + _nat_to_int(value) if i == 0 else decoded[-1] + value + 1)
        assert pos == rowptr[v + 1]
        assert decoded == graph.neighbors(v).tolist()


def test_residual_segments():
    graph = CSRGraph.from_edges(50, [(0, u) for u in range(2, 42, 2)])
    comp = CGRCompressor(graph, zeta_k=3, min_itv_len=4, itv_seg_len=0, res_seg_len=16)
    comp.compress(use_interval=False, add_degree=False)
    sections = comp.max_num_res_section_per_node
    assert sections > 1
    assert len(comp.nodes[0].bits) >= 16 * (sections - 1)


def test_compress_defaults_like_command(tmp_path):
    edges = [(u, v) for u in range(10) for v in range(10) if u != v and (u + v) % 3]
    graph = CSRGraph.from_edges(10, edges)
    comp = CGRCompressor(graph, 3)
    nodes = comp.compress(True, False)
    assert len(nodes) == 10
    rowptr = comp.row_pointers()
    assert rowptr[-1] == len(comp.bit_array())
    assert all(a <= b for a, b in zip(rowptr, rowptr[1:]))
    comp.write(str(tmp_path / "g"))
    packed = (tmp_path / "g.edge.bin").read_bytes()
    assert len(packed) == (rowptr[-1] + 7) // 8
    assert np.fromfile(tmp_path / "g.vertex.bin", dtype="<u8").tolist() == rowptr


def test_rejects_bad_zeta_k():
    with pytest.raises(ValueError):
        CGRCompressor(_single_edge(), zeta_k=0)