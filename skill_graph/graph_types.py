"""Typed records shared by the skill-graph stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass(frozen=True)
class Coordinate:
    """Projected 2-D point.

    Args:
        x: First principal-axis value.
        y: Second principal-axis value.
    """

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        """Serialize to the `{x, y}` artifact shape."""

        return {"x": self.x, "y": self.y}


@dataclass
class SkillRecord:
    """One visible skill, enriched in place by later stages.

    Args:
        id: Unique `areaId:name` identifier.
        name: Display name.
        area_id: Owning area id.
        area: Owning area label.
        category: Category id from the item or area.
        category_label: Category display label.
        stack: Explicit stack override, or inferred stack after grouping.
        stack_label: Display label for `stack`.
        level: Optional proficiency level.
        years: Optional years of experience.
        tags: Free-form tags.
        text: Embedding input blob.
        embedding: Embedding vector, attached after the embedding stage.
        cluster: Cluster id, attached after grouping.
        coord: Projected coordinate, attached after projection.
        badge_label: Character-budgeted display label.
    """

    id: str
    name: str
    area_id: str
    area: str
    category: str | None
    category_label: str | None
    stack: str | None
    stack_label: str | None
    level: Any
    years: Any
    tags: tuple[str, ...]
    text: str
    embedding: np.ndarray | None = None
    cluster: int | None = None
    coord: Coordinate | None = None
    badge_label: str = ""


@dataclass
class AreaRecord:
    """Group of skills sharing one source area.

    Args:
        id: Area id.
        label: Area display label.
        category: Category id.
        category_label: Category display label.
        stack_override: Manual stack from source data, used verbatim.
        skill_ids: Ordered ids of member skills.
        stack: Resolved stack (override or taxonomy classification).
        cluster: Cluster id in the taxonomy strategy.
    """

    id: str
    label: str
    category: str | None
    category_label: str | None
    stack_override: str | None
    skill_ids: list[str] = field(default_factory=list)
    stack: str | None = None
    cluster: int | None = None


@dataclass(frozen=True)
class TaxonomyEntry:
    """Fixed catalog entry used for similarity classification.

    Args:
        stack: Stack id.
        label: Display label.
        descriptor: Natural-language description that gets embedded.
    """

    stack: str
    label: str
    descriptor: str


@dataclass(frozen=True)
class ClusterSeed:
    """Cluster identity produced by a grouping strategy.

    Args:
        id: Cluster id referenced by skills.
        key: Stable string key.
        label: Fixed label, or `None` to derive one from member tokens.
        category: Category id.
        category_label: Category display label.
        stack: Stack id.
        stack_label: Stack display label.
    """

    id: int
    key: str
    label: str | None
    category: str | None = None
    category_label: str | None = None
    stack: str | None = None
    stack_label: str | None = None


@dataclass(frozen=True)
class GroupingResult:
    """Cluster assignment for every skill plus the emitted cluster seeds.

    Args:
        assignments: Cluster id per skill, aligned with input order.
        seeds: Cluster seeds keyed by id.
        area_stacks: Resolved stack per area id.

    Example:
        >>> result = GroupingResult(assignments=(0, 0), seeds={0: ClusterSeed(id=0, key="cluster-0", label=None)})
        >>> result.cluster_ids()
        (0,)
    """

    assignments: tuple[int, ...]
    seeds: dict[int, ClusterSeed]
    area_stacks: dict[str, str | None] = field(default_factory=dict)

    def cluster_ids(self) -> tuple[int, ...]:
        """Return sorted ids that have at least one assigned skill."""

        return tuple(sorted(set(self.assignments)))


@dataclass(frozen=True)
class Cluster:
    """Emitted cluster summary.

    Args:
        id: Cluster id.
        key: Stable string key.
        label: Human-readable label.
        category: Category id.
        category_label: Category display label.
        stack: Stack id.
        stack_label: Stack display label.
        members: `{id, name, area}` summaries in skill order.
        centroid_sample: First 8 dimensions of the mean member embedding.
    """

    id: int
    key: str
    label: str
    category: str | None
    category_label: str | None
    stack: str | None
    stack_label: str | None
    members: tuple[dict[str, str], ...]
    centroid_sample: tuple[float, ...]
