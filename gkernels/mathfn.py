"""Dense and sparse math kernels, activations, losses and metrics for graph neural networks."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

LOG_FLOOR = 1e-10
"""Probability used in place of zero when taking logarithms in the cross-entropy loss."""


def _rows(values, num_classes: int) -> np.ndarray:
    return np.asarray(values).reshape(-1, num_classes)


def _selected(begin: int, end: int, masks: Sequence[int] | None) -> np.ndarray:
    rows = np.arange(begin, end)
    if masks is None:
        return rows
    return rows[np.asarray(masks)[begin:end] == 1]


def init_glorot(dim_x: int, dim_y: int, seed: int = 1) -> np.ndarray:
    """Glorot-uniform weights of shape (dim_x, dim_y), drawn from a seeded generator."""
    if dim_x + dim_y <= 0:
        raise ValueError("dimensions must not both be zero")
    init_range = math.sqrt(6.0 / (dim_x + dim_y))
    rng = np.random.default_rng(seed)
    return rng.uniform(-init_range, init_range, size=(dim_x, dim_y)).astype(np.float32)


def binary_search(values: Sequence[int], key: int, begin: int, end: int) -> int:
    """Index of ``key`` in the sorted slice ``values[begin:end]``, or -1 if absent."""
    if begin >= end:
        raise ValueError(f"empty search range [{begin}, {end})")
    low, high = begin, end - 1
    while high >= low:
        mid = low + (high - low) // 2
        value = values[mid]
        if value == key:
            return mid
        if value < key:
            low = mid + 1
        else:
            high = mid - 1
    return -1


def symmetric_csr_transpose(
    rowptr: Sequence[int], colidx: Sequence[int], values: Sequence[float]
) -> np.ndarray:
    """Values of the transpose of a structurally symmetric CSR matrix, in the same layout."""
    rowptr = np.asarray(rowptr, dtype=np.int64)
    colidx_list = np.asarray(colidx, dtype=np.int64).tolist()
    values = np.asarray(values)
    if values.size != len(colidx_list):
        raise ValueError("one value per nonzero is required")
    result = np.zeros_like(values)
    for src in range(rowptr.size - 1):
        for e in range(int(rowptr[src]), int(rowptr[src + 1])):
            dst = colidx_list[e]
            begin, end = int(rowptr[dst]), int(rowptr[dst + 1])
            idx = binary_search(colidx_list, src, begin, end) if begin < end else -1
            if idx == -1:
                raise ValueError(f"matrix is not symmetric: missing entry ({dst}, {src})")
            result[idx] = values[e]
    return result


def masked_accuracy_single(
    begin: int,
    end: int,
    count: int,
    num_classes: int,
    masks: Sequence[int] | None,
    preds,
    labels: Sequence[int],
) -> float:
    """Fraction of selected rows whose highest-scoring class equals the label (NaN if none)."""
    scores = _rows(preds, num_classes)
    labels = np.asarray(labels)
    rows = _selected(begin, end, masks)
    if rows.size == 0:
        return float("nan")
    correct = sum(argmax(scores[i]) == labels[i] for i in rows.tolist())
    return correct / rows.size


def masked_f1_score(
    begin: int,
    end: int,
    count: int,
    num_classes: int,
    masks: Sequence[int] | None,
    preds,
    labels,
) -> float:
    """Micro-averaged F1 score of multi-label predictions thresholded at 0.5."""
    rows = _selected(begin, end, masks)
    predicted = _rows(preds, num_classes)[rows] > 0.5
    truth = _rows(labels, num_classes)[rows]
    positive, negative = truth == 1, truth == 0
    tp = int(np.count_nonzero(positive & predicted))
    fp = int(np.count_nonzero(negative & predicted))
    fn = int(np.count_nonzero(positive & ~predicted))
    precision = tp / (tp + fp) if tp + fp > 0 else 0.0
    recall = tp / (tp + fn) if tp + fn > 0 else 0.0
    if precision + recall <= 0.0:
        return 0.0
    return 2.0 * precision * recall / (precision + recall)


def masked_accuracy_multi(
    begin: int,
    end: int,
    count: int,
    num_classes: int,
    masks: Sequence[int] | None,
    preds,
    labels,
) -> float:
    """Accuracy for multi-label classification, measured as micro F1."""
    return masked_f1_score(begin, end, count, num_classes, masks, preds, labels)


def dot(x, y) -> float:
    """Dot product of two vectors."""
    x, y = np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError("vectors must have the same length")
    return float(x @ y)


def argmax(values) -> int:
    """Index of the first largest value, or -1 when there is none above -inf."""
    arr = np.asarray(values, dtype=np.float64).ravel()
    valid = arr > -np.inf
    if not valid.any():
        return -1
    return int(np.argmax(np.where(valid, arr, -np.inf)))


def matmul(a, b, trans_a: bool = False, trans_b: bool = False) -> np.ndarray:
    """Product op(a) @ op(b), where op transposes when asked."""
    a, b = np.asarray(a), np.asarray(b)
    if trans_a:
        a = a.T
    if trans_b:
        b = b.T
    if a.shape[1] != b.shape[0]:
        raise ValueError(f"shapes {a.shape} and {b.shape} do not align")
    return a @ b


def spmm(rowptr: Sequence[int], colidx: Sequence[int], values: Sequence[float], b) -> np.ndarray:
    """Product of a CSR sparse matrix with a dense matrix ``b``."""
    rowptr = np.asarray(rowptr, dtype=np.int64)
    colidx = np.asarray(colidx, dtype=np.int64)
    values = np.asarray(values)
    b = np.asarray(b)
    rows = rowptr.size - 1
    result = np.zeros((rows, b.shape[1]), dtype=np.result_type(values, b))
    src = np.repeat(np.arange(rows), np.diff(rowptr))
    np.add.at(result, src, values[:, None] * b[colidx])
    return result


def bias_mv(x, bias) -> np.ndarray:
    """Add ``bias`` to every row of ``x``."""
    x, bias = np.asarray(x), np.asarray(bias)
    if x.shape[-1] != bias.shape[-1]:
        raise ValueError("bias length must match the row length")
    return x + bias


def reduce_sum(x) -> np.ndarray:
    """Column sums of a matrix."""
    return np.asarray(x).sum(axis=0)


def scaled_vadd(a: float, x, y) -> np.ndarray:
    """Compute ``a * x + y``."""
    return a * np.asarray(x) + np.asarray(y)


def relu(x) -> np.ndarray:
    """Rectified linear unit."""
    return np.maximum(np.asarray(x), 0)


def d_relu(grad, data) -> np.ndarray:
    """Pass ``grad`` through where the forward input ``data`` was positive."""
    grad, data = np.asarray(grad), np.asarray(data)
    return np.where(data > 0, grad, 0)


def leaky_relu(epsilon: float, x) -> np.ndarray:
    """Leaky ReLU with slope ``epsilon`` for non-positive inputs."""
    x = np.asarray(x)
    return np.where(x > 0, x, epsilon * x)


def d_leaky_relu(epsilon: float, grad, data) -> np.ndarray:
    """Gradient of leaky ReLU given the forward input ``data``."""
    grad, data = np.asarray(grad), np.asarray(data)
    return grad * np.where(data > 0, 1.0, epsilon)


def softmax(x) -> np.ndarray:
    """Numerically stable softmax of a vector."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        raise ValueError("softmax of an empty vector")
    exp = np.exp(x - x.max())
    return exp / exp.sum()


def d_softmax(p, dp) -> np.ndarray:
    """Gradient through softmax given its output ``p`` and the upstream gradient ``dp``."""
    p, dp = np.asarray(p, dtype=np.float64), np.asarray(dp, dtype=np.float64)
    return p * dp - p * float(p @ dp)


def sigmoid(x) -> np.ndarray:
    """Logistic sigmoid."""
    return 1.0 / (1.0 + np.exp(-np.asarray(x, dtype=np.float64)))


def d_sigmoid(p, dp) -> np.ndarray:
    """Gradient through the sigmoid given its output ``p`` and upstream gradient ``dp``."""
    p, dp = np.asarray(p, dtype=np.float64), np.asarray(dp, dtype=np.float64)
    return dp * p * (1.0 - p)


def cross_entropy(y, p) -> float:
    """Cross-entropy of predicted probabilities ``p`` against ground truth ``y``."""
    y, p = np.asarray(y, dtype=np.float64), np.asarray(p, dtype=np.float64)
    used = y != 0
    probs = np.where(p[used] == 0, LOG_FLOOR, p[used])
    return float(-(y[used] * np.log(probs)).sum())


def d_cross_entropy(y, p) -> np.ndarray:
    """Gradient of the cross-entropy with respect to ``p``."""
    y, p = np.asarray(y, dtype=np.float64), np.asarray(p, dtype=np.float64)
    return -y / (p + LOG_FLOOR)


def sigmoid_cross_entropy(labels, logits) -> float:
    """Sigmoid cross-entropy of ``logits`` against 0/1 ``labels``, computed stably."""
    y = np.asarray(labels, dtype=np.float64)
    z = np.asarray(logits, dtype=np.float64)
    positive = (z >= 0).astype(np.float64)
    terms = z * (y - positive) - np.log1p(np.exp(z - 2.0 * z * positive))
    return float(-terms.sum())


def dropout(
    x, rate: float, scale: float | None = None, rng: np.random.Generator | None = None
) -> tuple[np.ndarray, np.ndarray]:
    """Zero each element with probability ``rate`` and scale the rest; returns (output, mask)."""
    if not 0.0 <= rate < 1.0:
        raise ValueError("dropout rate must lie in [0, 1)")
    x = np.asarray(x)
    if scale is None:
        scale = 1.0 / (1.0 - rate)
    rng = rng or np.random.default_rng()
    mask = (rng.random(x.shape) < 1.0 - rate).astype(np.uint8)
    return x * mask * scale, mask


def d_dropout(grad, mask, scale: float) -> np.ndarray:
    """Gradient through dropout given the mask that the forward pass used."""
    return np.asarray(grad) * np.asarray(mask) * scale