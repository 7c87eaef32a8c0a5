"""Two-component PCA through power iteration on the Gram matrix."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from skill_graph.graph_types import Coordinate

POWER_ITERATIONS = 150
COMPONENT_COUNT = 2


@dataclass(frozen=True)
class EigenComponent:
    """Eigenvalue and unit eigenvector of a symmetric matrix.

    Args:
        value: Rayleigh-quotient eigenvalue estimate.
        vector: Unit eigenvector estimate.
    """

    value: float
    vector: np.ndarray


def gram_matrix(*, vectors: np.ndarray) -> np.ndarray:
    """Center rows on their mean and return pairwise dot products."""

    matrix = np.asarray(vectors, dtype=np.float64)
    centered = matrix - matrix.mean(axis=0)
    return centered @ centered.T


def power_iteration(
    *,
    matrix: np.ndarray,
    rng: np.random.Generator,
    iterations: int = POWER_ITERATIONS,
) -> EigenComponent | None:
    """Estimate the dominant eigen-pair of a symmetric matrix.

    Args:
        matrix: `(N, N)` symmetric matrix.
        rng: Random source for the start vector.
        iterations: Fixed iteration count; stops early only on a zero norm.

    Returns:
        Dominant component, or `None` for an empty matrix.
    """

    size = matrix.shape[0]
    if size == 0:
        return None
    vector = rng.random(size) - 0.5
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        vector = np.zeros(size)
        vector[0] = 1.0
    else:
        vector = vector / norm
    value = 0.0
    for _ in range(iterations):
        product = matrix @ vector
        norm = float(np.linalg.norm(product))
        if norm == 0.0:
            break
        vector = product / norm
        value = float(vector @ (matrix @ vector))
    return EigenComponent(value=value, vector=vector)


def top_components(
    *, matrix: np.ndarray, rng: np.random.Generator, count: int = COMPONENT_COUNT
) -> list[EigenComponent]:
    """Extract up to `count` components with deflation, zero-padded.

    Args:
        matrix: `(N, N)` symmetric matrix; not modified.
        rng: Random source for each power-iteration start vector.
        count: Number of components to return.

    Returns:
        Exactly `count` components; missing or non-finite ones are zeros.
    """

    size = matrix.shape[0]
    working = np.array(matrix, dtype=np.float64, copy=True)
    components: list[EigenComponent] = []
    for _ in range(min(count, size)):
        component = power_iteration(matrix=working, rng=rng)
        if component is None or not math.isfinite(component.value):
            break
        components.append(component)
        working -= component.value * np.outer(component.vector, component.vector)
    while len(components) < count:
        components.append(EigenComponent(value=0.0, vector=np.zeros(size)))
    return components


def project_2d(*, vectors: np.ndarray, rng: np.random.Generator) -> list[Coordinate]:
    """Project embeddings onto their two leading principal axes.

    Args:
        vectors: `(N, D)` embedding matrix.
        rng: Seedable random source; fixes axis sign and orientation.

    Returns:
        One coordinate per row; all zeros when `N == 0` or `D == 0`.

    Example:
        >>> coords = project_2d(vectors=np.zeros((2, 0)), rng=np.random.default_rng(0))
        >>> [(c.x, c.y) for c in coords]
        [(0.0, 0.0), (0.0, 0.0)]
    """

    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] == 0 or matrix.shape[1] == 0:
        return [Coordinate(x=0.0, y=0.0) for _ in range(len(matrix))]
    first, second = top_components(matrix=gram_matrix(vectors=matrix), rng=rng)
    x_scale = math.sqrt(max(first.value, 0.0))
    y_scale = math.sqrt(max(second.value, 0.0))
    return [
        Coordinate(
            x=float(first.vector[index] * x_scale),
            y=float(second.vector[index] * y_scale),
        )
        for index in range(matrix.shape[0])
    ]
