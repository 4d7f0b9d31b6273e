"""Compressed graph representation (CGR): interval and residual coding of neighbour lists.

Each vertex's sorted neighbour list is split into runs of consecutive ids
(intervals) and the remaining ids (residuals). Intervals are written with
Elias-gamma codes and residuals with zeta codes. Both may be cut into
fixed-width, zero-padded segments so that a decoder can jump between them.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable

import numpy as np

from gkernels.graph import CSRGraph

logger = logging.getLogger(__name__)

DEFAULT_ZETA_K = 3
DEFAULT_MIN_ITV_LEN = 4
DEFAULT_ITV_SEG_LEN = 256
DEFAULT_RES_SEG_LEN = 256
MAX_ZETA_BITS = 32


def significant_bit(x: int) -> int:
    """Position of the highest set bit of a positive integer."""
    if x <= 0:
        raise ValueError(f"significant bit is undefined for {x}")
    return x.bit_length() - 1


def int_to_nat(x: int) -> int:
    """Map an integer to a natural number: non-negatives to evens, negatives to odds."""
    return x << 1 if x >= 0 else -((x << 1) + 1)


def _fixed(x: int, length: int) -> tuple[int, ...]:
    return tuple((x >> i) & 1 for i in range(length - 1, -1, -1))


@lru_cache(maxsize=1 << 16)
def _gamma(x: int) -> tuple[int, ...]:
    if x < 0:
        raise ValueError(f"cannot gamma-encode negative value {x}")
    x += 1
    length = significant_bit(x)
    return _fixed(1, length + 1) + _fixed(x, length)


@lru_cache(maxsize=1 << 16)
def _zeta(x: int, k: int) -> tuple[int, ...]:
    if k < 1:
        raise ValueError("zeta parameter k must be at least 1")
    if k == 1:
        return _gamma(x)
    if x < 0:
        raise ValueError(f"cannot zeta-encode negative value {x}")
    x += 1
    h = significant_bit(x) // k
    if (h + 1) * k > MAX_ZETA_BITS:
        raise ValueError(f"zeta code for {x - 1} with k={k} exceeds {MAX_ZETA_BITS} bits")
    return _fixed(1, h + 1) + _fixed(x, (h + 1) * k)


def encode_gamma(x: int) -> list[int]:
    """Elias-gamma code of ``x + 1`` as a list of bits."""
    return list(_gamma(x))


def encode_zeta(x: int, k: int) -> list[int]:
    """Zeta-k code of ``x + 1`` as a list of bits; k = 1 is the gamma code."""
    return list(_zeta(x, k))


def pack_bits(bits: Iterable[int]) -> bytes:
    """Pack bits into bytes, most significant bit first, zero-padding the last byte."""
    out = bytearray()
    current = 0
    count = 0
    for bit in bits:
        current = (current << 1) | (1 if bit else 0)
        count += 1
        if count == 8:
            out.append(current)
            current = 0
            count = 0
    if count:
        out.append(current << (8 - count))
    return bytes(out)


@dataclass
class NodeEncoding:
    """Intervals, residuals and encoded bits of one vertex."""

    node: int
    outd: int = 0
    itv_left: list[int] = field(default_factory=list)
    itv_len: list[int] = field(default_factory=list)
    res: list[int] = field(default_factory=list)
    bits: list[int] = field(default_factory=list)


class CGRCompressor:
    """Encode every neighbour list of a graph into the CGR bit format."""

    def __init__(
        self,
        graph: CSRGraph,
        zeta_k: int = DEFAULT_ZETA_K,
        min_itv_len: int = DEFAULT_MIN_ITV_LEN,
        itv_seg_len: int = DEFAULT_ITV_SEG_LEN,
        res_seg_len: int = DEFAULT_RES_SEG_LEN,
    ) -> None:
        if zeta_k < 1:
            raise ValueError("zeta_k must be at least 1")
        if min(min_itv_len, itv_seg_len, res_seg_len) < 0:
            raise ValueError("lengths must be non-negative")
        self.graph = graph
        self.zeta_k = zeta_k
        self.min_itv_len = min_itv_len
        self.itv_seg_len = itv_seg_len
        self.res_seg_len = res_seg_len
        self.nodes = [NodeEncoding(v) for v in range(graph.num_vertices)]
        self.max_itv_len = 0
        self._reset_stats()

    def _reset_stats(self) -> None:
        self.max_num_itv_per_node = 0
        self.max_num_res_per_node = 0
        self.max_num_itv_section_per_node = 0
        self.max_num_res_section_per_node = 0
        self.max_num_itv_per_section = 0
        self.max_num_res_per_section = 0

    def gamma_size(self, x: int) -> int:
        """Number of bits in the gamma code of ``x``."""
        return 2 * significant_bit(x + 1) + 1

    def zeta_size(self, x: int) -> int:
        """Number of bits in the zeta code of ``x``."""
        if self.zeta_k == 1:
            return self.gamma_size(x)
        h = significant_bit(x + 1) // self.zeta_k
        return (h + 1) * (self.zeta_k + 1)

    def _zeta(self, x: int) -> tuple[int, ...]:
        return _zeta(x, self.zeta_k)

    def compress(
        self, use_interval: bool = True, add_degree: bool = False
    ) -> list[NodeEncoding]:
        """Encode every vertex; returns the per-vertex encodings."""
        logger.info(
            "compressing: zeta_k=%d, interval %s, degree for %s nodes",
            self.zeta_k,
            "enabled" if use_interval else "disabled",
            "all" if add_degree else "zero-residual",
        )
        self._reset_stats()
        self.nodes = [NodeEncoding(v) for v in range(self.graph.num_vertices)]
        for v in range(self.graph.num_vertices):
            self.encode_node(v, use_interval, add_degree)
        logger.info(
            "max_num_itv_per_node=%d max_num_res_per_node=%d "
            "max_num_itv_section_per_node=%d max_num_res_section_per_node=%d "
            "max_num_itv_per_section=%d max_num_res_per_section=%d max_itv_len=%d",
            self.max_num_itv_per_node,
            self.max_num_res_per_node,
            self.max_num_itv_section_per_node,
            self.max_num_res_section_per_node,
            self.max_num_itv_per_section,
            self.max_num_res_per_section,
            self.max_itv_len,
        )
        return self.nodes

    def encode_node(
        self, v: int, use_interval: bool = True, add_degree: bool = False
    ) -> NodeEncoding:
        """Encode the neighbour list of vertex ``v`` and return its encoding."""
        node = NodeEncoding(v, self.graph.degree(v))
        self.nodes[v] = node
        if add_degree or self.res_seg_len == 0:
            node.bits.extend(_gamma(node.outd))
            if node.outd == 0:
                return node
        neighbors = self.graph.neighbors(v).tolist()
        if use_interval:
            self._intervalize(node, neighbors)
            self._encode_intervals(node)
        else:
            node.res = neighbors
        self._encode_residuals(node)
        return node

    def _intervalize(self, node: NodeEncoding, neighbors: list[int]) -> None:
        deg = len(neighbors)
        left = 0
        while left < deg:
            right = left + 1
            while right < deg and neighbors[right - 1] + 1 == neighbors[right]:
                right += 1
            length = right - left
            if self.min_itv_len != 0 and length >= self.min_itv_len:
                node.itv_left.append(neighbors[left])
                node.itv_len.append(length)
                self.max_itv_len = max(self.max_itv_len, length)
            else:
                node.res.extend(neighbors[left:right])
            left = right
        self.max_num_itv_per_node = max(self.max_num_itv_per_node, len(node.itv_left))
        self.max_num_res_per_node = max(self.max_num_res_per_node, len(node.res))

    def _append_segment(
        self, out: list[int], count: int, segment: list[int], align: int
    ) -> None:
        buf = list(_gamma(count)) + segment
        if align and len(buf) > align:
            raise ValueError(f"segment of {len(buf)} bits exceeds alignment {align}")
        buf.extend([0] * (align - len(buf)) if align else [])
        out.extend(buf)

    def _write_segments(
        self, out: list[int], segments: list[list], seg_len: int
    ) -> None:
        out.extend(_gamma(len(segments) - 1))
        last = len(segments) - 1
        for i, (count, bits) in enumerate(segments):
            self._append_segment(out, count, bits, 0 if i == last else seg_len)

    def _encode_intervals(self, node: NodeEncoding) -> None:
        v = node.node
        lefts, lengths = node.itv_left, node.itv_len
        segments: list[list] = []
        cur_seg: list[int] = []
        count = 0
        for i, (left, length) in enumerate(zip(lefts, lengths)):
            if count == 0:
                cur_left = int_to_nat(left - v)
            else:
                cur_left = left - lefts[i - 1] - lengths[i - 1] - 1
            cur_len = length - self.min_itv_len
            if self.itv_seg_len and (
                self.gamma_size(count + 1)
                + len(cur_seg)
                + self.gamma_size(cur_left)
                + self.gamma_size(cur_len)
                > self.itv_seg_len
            ):
                segments.append([count, cur_seg])
                self.max_num_itv_per_section = max(self.max_num_itv_per_section, count)
                count = 0
                cur_left = int_to_nat(left - v)
                cur_seg = []
            count += 1
            cur_seg.extend(_gamma(cur_left))
            cur_seg.extend(_gamma(cur_len))

        if not segments:
            segments.append([count, cur_seg])
        else:
            # The trailing partial segment is merged into the last full one.
            segments[-1][0] += count
            for i in range(len(lefts) - count, len(lefts)):
                segments[-1][1].extend(_gamma(lefts[i] - lefts[i - 1] - lengths[i - 1] - 1))
                segments[-1][1].extend(_gamma(lengths[i] - self.min_itv_len))
        self.max_num_itv_per_section = max(self.max_num_itv_per_section, count)
        self.max_num_itv_section_per_node = max(
            self.max_num_itv_section_per_node, len(segments)
        )

        if self.itv_seg_len != 0:
            self._write_segments(node.bits, segments, self.itv_seg_len)
        else:
            count, bits = segments[0]
            self._append_segment(node.bits, count, bits, 0)

    def _encode_residuals(self, node: NodeEncoding) -> None:
        v = node.node
        res = node.res
        segments: list[list] = []
        cur_seg: list[int] = []
        count = 0
        for i, value in enumerate(res):
            cur = int_to_nat(value - v) if count == 0 else value - res[i - 1] - 1
            if self.res_seg_len and (
                self.gamma_size(count + 1) + len(cur_seg) + self.zeta_size(cur)
                > self.res_seg_len
            ):
                segments.append([count, cur_seg])
                self.max_num_res_per_section = max(self.max_num_res_per_section, count)
                count = 0
                cur = int_to_nat(value - v)
                cur_seg = []
            count += 1
            cur_seg.extend(self._zeta(cur))

        if not segments:
            segments.append([count, cur_seg])
        else:
            segments[-1][0] += count
            for i in range(len(res) - count, len(res)):
                segments[-1][1].extend(self._zeta(res[i] - res[i - 1] - 1))
        self.max_num_res_section_per_node = max(
            self.max_num_res_section_per_node, len(segments)
        )

        if self.res_seg_len != 0:
            self._write_segments(node.bits, segments, self.res_seg_len)
        else:
            node.bits.extend(cur_seg)

    def bit_array(self) -> list[int]:
        """All vertices' bits, concatenated in vertex order."""
        return list(itertools.chain.from_iterable(node.bits for node in self.nodes))

    def row_pointers(self) -> list[int]:
        """Bit offset of each vertex's encoding, followed by the total bit count."""
        return list(itertools.accumulate((len(n.bits) for n in self.nodes), initial=0))

    def write(self, prefix: str) -> None:
        """Write ``prefix.edge.bin`` (packed bits) and ``prefix.vertex.bin`` (64-bit offsets)."""
        with open(f"{prefix}.edge.bin", "wb") as fh:
            fh.write(pack_bits(self.bit_array()))
        offsets = np.asarray(self.row_pointers(), dtype="<u8")
        with open(f"{prefix}.vertex.bin", "wb") as fh:
            fh.write(offsets.tobytes())