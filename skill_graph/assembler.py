"""Merge enriched skills and clusters into the skill-graph artifact."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np

from skill_graph.graph_types import Cluster, Coordinate, GroupingResult, SkillRecord
from skill_graph.io_utils import write_json
from skill_graph.labels import derive_label

CENTROID_SAMPLE_SIZE = 8
DIMENSIONS = ("pc1", "pc2")


def build_clusters(
    *, skills: list[SkillRecord], grouping: GroupingResult
) -> list[Cluster]:
    """Summarize every non-empty cluster, ordered by id.

    Args:
        skills: Skills with embeddings and cluster ids attached.
        grouping: Grouping result carrying cluster seeds.

    Returns:
        Cluster summaries.
    """

    clusters: list[Cluster] = []
    for cluster_id in grouping.cluster_ids():
        members = [skill for skill in skills if skill.cluster == cluster_id]
        seed = grouping.seeds[cluster_id]
        vectors = [skill.embedding for skill in members if skill.embedding is not None]
        centroid_sample: tuple[float, ...] = ()
        if vectors:
            centroid = np.mean(np.asarray(vectors, dtype=np.float64), axis=0)
            centroid_sample = tuple(float(value) for value in centroid[:CENTROID_SAMPLE_SIZE])
        clusters.append(
            Cluster(
                id=cluster_id,
                key=seed.key,
                label=seed.label or derive_label(skills=members),
                category=seed.category,
                category_label=seed.category_label,
                stack=seed.stack,
                stack_label=seed.stack_label,
                members=tuple(
                    {"id": skill.id, "name": skill.name, "area": skill.area}
                    for skill in members
                ),
                centroid_sample=centroid_sample,
            )
        )
    return clusters


def skill_to_dict(*, skill: SkillRecord) -> dict[str, Any]:
    """Serialize one enriched skill; `level`/`years` only when present."""

    assert skill.cluster is not None, f"skill {skill.id} has no cluster"
    coord = skill.coord or Coordinate(x=0.0, y=0.0)
    payload: dict[str, Any] = {
        "id": skill.id,
        "area": skill.area,
        "areaId": skill.area_id,
        "category": skill.category,
        "categoryLabel": skill.category_label,
        "stack": skill.stack,
        "stackLabel": skill.stack_label,
        "cluster": skill.cluster,
        "name": skill.name,
        "badgeLabel": skill.badge_label,
    }
    if skill.level is not None:
        payload["level"] = skill.level
    if skill.years is not None:
        payload["years"] = skill.years
    payload["tags"] = list(skill.tags)
    payload["coord"] = coord.to_dict()
    return payload


def cluster_to_dict(*, cluster: Cluster) -> dict[str, Any]:
    """Serialize one cluster summary."""

    return {
        "id": cluster.id,
        "key": cluster.key,
        "label": cluster.label,
        "category": cluster.category,
        "categoryLabel": cluster.category_label,
        "stack": cluster.stack,
        "stackLabel": cluster.stack_label,
        "members": [dict(member) for member in cluster.members],
        "centroidSample": list(cluster.centroid_sample),
    }


def coordinate_ranges(*, coords: list[Coordinate]) -> dict[str, dict[str, float]]:
    """Axis-aligned min/max over all produced coordinates.

    Example:
        >>> coordinate_ranges(coords=[Coordinate(x=1.0, y=-2.0), Coordinate(x=-1.0, y=3.0)])
        {'x': {'min': -1.0, 'max': 1.0}, 'y': {'min': -2.0, 'max': 3.0}}
    """

    assert coords, "ranges need at least one coordinate"
    xs = [coord.x for coord in coords]
    ys = [coord.y for coord in coords]
    return {
        "x": {"min": min(xs), "max": max(xs)},
        "y": {"min": min(ys), "max": max(ys)},
    }


def build_artifact(
    *,
    skills: list[SkillRecord],
    clusters: list[Cluster],
    model: str,
    generated_at: str,
) -> dict[str, Any]:
    """Build the JSON-ready skill-graph artifact.

    Args:
        skills: Fully enriched skills.
        clusters: Cluster summaries.
        model: Embedding model id.
        generated_at: ISO-8601 generation timestamp.

    Returns:
        Artifact mapping.
    """

    coords = [skill.coord or Coordinate(x=0.0, y=0.0) for skill in skills]
    return {
        "generatedAt": generated_at,
        "model": model,
        "clusterCount": len(clusters),
        "skills": [skill_to_dict(skill=skill) for skill in skills],
        "clusters": [cluster_to_dict(cluster=cluster) for cluster in clusters],
        "dimensions": list(DIMENSIONS),
        "ranges": coordinate_ranges(coords=coords),
    }


def write_artifact(*, path: Path, artifact: dict[str, Any]) -> None:
    """Write the artifact, creating parent directories."""

    write_json(path=path, payload=artifact)
