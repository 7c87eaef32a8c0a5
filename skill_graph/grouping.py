"""Cluster assignment strategies: K-Means and nearest-taxonomy classification."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from skill_graph.config_types import SkillGraphConfig
from skill_graph.errors import ClusterCountError, ConfigurationError
from skill_graph.graph_types import (
    AreaRecord,
    ClusterSeed,
    GroupingResult,
    SkillRecord,
    TaxonomyEntry,
)
from skill_graph.taxonomy import TAXONOMY, stack_label

KMEANS_MAX_ITERATIONS = 50
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class KMeansResult:
    """K-Means output.

    Args:
        assignments: Cluster index per input vector.
        centroids: `(k, D)` centroid matrix.
        iterations: Rounds executed.
    """

    assignments: tuple[int, ...]
    centroids: np.ndarray
    iterations: int


def kmeans(
    *,
    vectors: np.ndarray,
    k: int,
    rng: np.random.Generator,
    max_iterations: int = KMEANS_MAX_ITERATIONS,
) -> KMeansResult:
    """Lloyd's K-Means with random distinct-point initialization.

    Ties in distance go to the lowest centroid index. A centroid whose
    cluster empties keeps its previous position.

    Args:
        vectors: `(N, D)` input matrix.
        k: Cluster count.
        rng: Random source for picking initial centroids.
        max_iterations: Upper bound on assignment rounds.

    Returns:
        Assignments, final centroids, and executed rounds.

    Raises:
        ClusterCountError: When `k < 1` or `k > N`.
    """

    matrix = np.asarray(vectors, dtype=np.float64)
    count = matrix.shape[0]
    if k < 1:
        raise ClusterCountError("Cluster count must be at least 1")
    if k > count:
        raise ClusterCountError(
            f"Cluster count {k} cannot exceed number of vectors {count}"
        )
    initial = rng.choice(count, size=k, replace=False)
    centroids = matrix[initial].copy()
    assignments = np.full(count, -1, dtype=np.int64)
    iterations = 0
    for _ in range(max_iterations):
        iterations += 1
        distances = np.linalg.norm(
            matrix[:, np.newaxis, :] - centroids[np.newaxis, :, :], axis=2
        )
        next_assignments = np.argmin(distances, axis=1)
        changed = not np.array_equal(next_assignments, assignments)
        assignments = next_assignments
        for cluster_index in range(k):
            members = matrix[assignments == cluster_index]
            if members.shape[0] > 0:
                centroids[cluster_index] = members.mean(axis=0)
        if not changed:
            break
    return KMeansResult(
        assignments=tuple(int(value) for value in assignments),
        centroids=centroids,
        iterations=iterations,
    )


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity, `0.0` when either vector has zero norm."""

    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    norm_product = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm_product == 0.0:
        return 0.0
    return float(np.dot(a, b) / norm_product)


def classify_by_cosine(
    *, vector: np.ndarray, candidates: np.ndarray
) -> tuple[int, float]:
    """Pick the candidate row most similar to `vector`.

    Only a strictly greater similarity replaces the current best, so the
    first-listed candidate wins exact ties.

    Args:
        vector: Query vector.
        candidates: `(M, D)` candidate matrix, `M >= 1`.

    Raises:
        ConfigurationError: When `candidates` is empty.

    Returns:
        Tuple of winning row index and its similarity.

    Example:
        >>> classify_by_cosine(vector=np.array([1.0, 0.0]), candidates=np.array([[0.0, 1.0], [2.0, 0.0]]))
        (1, 1.0)
    """

    if len(candidates) == 0:
        raise ConfigurationError("classification needs at least one candidate")
    best_index = 0
    best_score = cosine_similarity(vector, candidates[0])
    for index in range(1, len(candidates)):
        score = cosine_similarity(vector, candidates[index])
        if score > best_score:
            best_index = index
            best_score = score
    return best_index, best_score


def most_common(values: list[str | None]) -> str | None:
    """Most frequent non-empty value; first seen wins ties."""

    counts = Counter(value for value in values if value)
    if not counts:
        return None
    return max(counts, key=lambda value: counts[value])


class GroupingStrategy(Protocol):
    """Assign every skill to a cluster.

    Args:
        skills: Normalized skills in source order.
        areas: Normalized areas in source order.
        embeddings: `(N, D)` skill embedding matrix aligned with `skills`.

    Returns:
        Grouping result with one assignment per skill.
    """

    def classify(
        self,
        *,
        skills: list[SkillRecord],
        areas: list[AreaRecord],
        embeddings: np.ndarray,
    ) -> GroupingResult: ...


class VectorSpaceGrouping:
    """K-Means over skill embeddings; clusters cut across areas.

    Args:
        cluster_count: Requested cluster count, clamped to the skill count.
        rng: Random source for centroid initialization.
    """

    def __init__(self, *, cluster_count: int, rng: np.random.Generator) -> None:
        self.cluster_count = cluster_count
        self.rng = rng

    def classify(
        self,
        *,
        skills: list[SkillRecord],
        areas: list[AreaRecord],
        embeddings: np.ndarray,
    ) -> GroupingResult:
        k = min(self.cluster_count, len(skills))
        if k != self.cluster_count:
            LOGGER.info("clamped cluster count %d -> %d", self.cluster_count, k)
        result = kmeans(vectors=embeddings, k=k, rng=self.rng)
        LOGGER.info("kmeans converged k=%d iterations=%d", k, result.iterations)
        seeds: dict[int, ClusterSeed] = {}
        for cluster_id in sorted(set(result.assignments)):
            members = [
                skill
                for skill, assigned in zip(skills, result.assignments)
                if assigned == cluster_id
            ]
            category = most_common([skill.category for skill in members])
            stack = most_common([skill.stack for skill in members])
            category_label = next(
                (skill.category_label for skill in members if skill.category == category),
                None,
            )
            seeds[cluster_id] = ClusterSeed(
                id=cluster_id,
                key=f"cluster-{cluster_id}",
                label=None,
                category=category,
                category_label=category_label,
                stack=stack,
                stack_label=stack_label(stack=stack),
            )
        return GroupingResult(
            assignments=result.assignments,
            seeds=seeds,
            area_stacks={area.id: area.stack_override for area in areas},
        )


class TaxonomyGrouping:
    """One cluster per area, stack chosen by nearest taxonomy descriptor.

    Args:
        catalog: Taxonomy entries.
        descriptor_embeddings: `(M, D)` embeddings aligned with `catalog`.
    """

    def __init__(
        self,
        *,
        catalog: tuple[TaxonomyEntry, ...],
        descriptor_embeddings: np.ndarray,
    ) -> None:
        assert len(catalog) == len(
            descriptor_embeddings
        ), "descriptor embeddings must align with catalog"
        self.catalog = catalog
        self.descriptor_embeddings = np.asarray(descriptor_embeddings, dtype=np.float64)

    def resolve_area_stack(
        self, *, area: AreaRecord, area_embedding: np.ndarray
    ) -> tuple[str, float | None]:
        """Resolve one area's stack.

        Args:
            area: Area record.
            area_embedding: Mean embedding of the area's skills.

        Returns:
            Tuple of stack id and similarity (`None` for manual overrides).
        """

        if area.stack_override:
            return area.stack_override, None
        index, similarity = classify_by_cosine(
            vector=area_embedding, candidates=self.descriptor_embeddings
        )
        return self.catalog[index].stack, similarity

    def classify(
        self,
        *,
        skills: list[SkillRecord],
        areas: list[AreaRecord],
        embeddings: np.ndarray,
    ) -> GroupingResult:
        row_by_id = {skill.id: row for row, skill in enumerate(skills)}
        cluster_by_area: dict[str, int] = {}
        seeds: dict[int, ClusterSeed] = {}
        area_stacks: dict[str, str | None] = {}
        for area in areas:
            rows = [row_by_id[skill_id] for skill_id in area.skill_ids if skill_id in row_by_id]
            if not rows:
                continue
            area_embedding = np.asarray(embeddings[rows], dtype=np.float64).mean(axis=0)
            stack, similarity = self.resolve_area_stack(
                area=area, area_embedding=area_embedding
            )
            LOGGER.info(
                "area=%s stack=%s similarity=%s",
                area.id,
                stack,
                "override" if similarity is None else f"{similarity:.4f}",
            )
            cluster_id = len(seeds)
            cluster_by_area[area.id] = cluster_id
            area_stacks[area.id] = stack
            seeds[cluster_id] = ClusterSeed(
                id=cluster_id,
                key=area.id,
                label=area.label,
                category=area.category,
                category_label=area.category_label,
                stack=stack,
                stack_label=stack_label(stack=stack),
            )
        assignments = tuple(cluster_by_area[skill.area_id] for skill in skills)
        return GroupingResult(assignments=assignments, seeds=seeds, area_stacks=area_stacks)


def build_grouping_strategy(
    *,
    config: SkillGraphConfig,
    rng: np.random.Generator,
    descriptor_embeddings: np.ndarray | None = None,
) -> GroupingStrategy:
    """Create the configured grouping strategy.

    Args:
        config: Run configuration.
        rng: Random source shared with the projector.
        descriptor_embeddings: Taxonomy embeddings, required for `taxonomy`.

    Returns:
        Strategy implementing `classify`.
    """

    if config.strategy == "taxonomy":
        assert descriptor_embeddings is not None, "taxonomy strategy needs descriptor embeddings"
        return TaxonomyGrouping(catalog=TAXONOMY, descriptor_embeddings=descriptor_embeddings)
    return VectorSpaceGrouping(cluster_count=config.cluster_count, rng=rng)
