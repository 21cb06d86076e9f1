"""Elementary vector operations on embeddings (plain lists or numpy arrays)."""

from typing import List, Optional, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine


def _as_matrix(vectors):
    rows = [np.asarray(v, dtype=float).ravel() for v in vectors]
    if not rows:
        raise ValueError("mean() of an empty list of vectors")
    dimension = rows[0].shape[0]
    if dimension == 0 or any(row.shape[0] != dimension for row in rows):
        raise ValueError("all vectors must share one nonzero dimension")
    return np.vstack(rows)


def _pair(a, b):
    a = np.asarray(a, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if a.shape != b.shape:
        raise ValueError(f"dimension mismatch: {a.shape[0]} vs {b.shape[0]}")
    return a, b


def mean(vectors: Sequence[Sequence[float]], weights: Optional[Sequence[float]] = None) -> List[float]:
    """Per-dimension mean, weighted by ``weights`` when given.

    With no weights every vector counts once, so this is the arithmetic mean.
    """
    matrix = _as_matrix(vectors)
    if weights is None:
        w = np.ones(matrix.shape[0])
    else:
        w = np.asarray(weights, dtype=float).ravel()
        if w.shape[0] != matrix.shape[0]:
            raise ValueError("need exactly one weight per vector")
        if (w < 0).any() or w.sum() <= 0:
            raise ValueError("weights must be non-negative with a positive sum")
    return ((w[:, None] * matrix).sum(axis=0) / w.sum()).tolist()


def dot(a, b) -> float:
    a, b = _pair(a, b)
    return float(np.dot(a, b))


def norm(a) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=float)))


def cosine_similarity(a, b) -> float:
    # A zero vector is similar to nothing, not even another zero vector.
    a, b = _pair(a, b)
    norm_a, norm_b = norm(a), norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot(a, b) / (norm_a * norm_b)


def cosine_scores(query, candidates) -> List[float]:
    """Cosine similarity of ``query`` against every row of ``candidates``.

    scikit-learn normalises rows before the dot product and leaves zero rows
    at zero, which matches cosine_similarity() above.
    """
    if len(candidates) == 0:
        return []
    matrix = _as_matrix(candidates)
    query = np.asarray(query, dtype=float).reshape(1, -1)
    if query.shape[1] != matrix.shape[1]:
        raise ValueError(f"dimension mismatch: {query.shape[1]} vs {matrix.shape[1]}")
    return _pairwise_cosine(query, matrix)[0].tolist()
