"""Skill-graph pipeline: normalize, embed, group, project, label, assemble."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import numpy as np

from skill_graph.assembler import build_artifact, build_clusters, write_artifact
from skill_graph.config_types import SkillGraphConfig
from skill_graph.embedding_client import EmbeddingClient, embed_texts
from skill_graph.errors import ConfigurationError
from skill_graph.grouping import build_grouping_strategy
from skill_graph.io_utils import read_json, utc_now
from skill_graph.labels import shorten_badge
from skill_graph.normalizer import extract_areas, normalize_catalog
from skill_graph.projection import project_2d
from skill_graph.taxonomy import TAXONOMY, stack_label

LOGGER = logging.getLogger(__name__)


def log_stage(*, stage: str, **fields: object) -> None:
    """Emit one structured stage log event.

    Args:
        stage: Stable stage identifier.
        **fields: Structured event fields.

    Returns:
        None.
    """
    if not LOGGER.isEnabledFor(logging.INFO):
        return
    if not fields:
        LOGGER.info("%s", stage)
        return
    parts = [f"{key}={value}" for key, value in fields.items()]
    LOGGER.info("%s %s", stage, " ".join(parts))


async def build_skill_graph(
    *,
    config: SkillGraphConfig,
    raw_areas: list[dict[str, Any]],
    client: EmbeddingClient,
    rng: np.random.Generator | None = None,
    now: Callable[[], str] = utc_now,
) -> dict[str, Any]:
    """Run every stage in order and return the artifact without writing it.

    Args:
        config: Run configuration.
        raw_areas: Raw skill-area records.
        client: Embedding client.
        rng: Random source for K-Means and projection; seeded from config when omitted.
        now: Timestamp factory for `generatedAt`.

    Returns:
        Artifact mapping.
    """

    active_rng = rng if rng is not None else np.random.default_rng(config.seed)
    skills, areas = normalize_catalog(
        raw_areas=raw_areas, include_hidden=config.include_hidden
    )
    log_stage(stage="normalize", skills=len(skills), areas=len(areas))

    embeddings = await embed_texts(
        client=client,
        texts=[skill.text for skill in skills],
        model=config.model,
        batch_size=config.batch_size,
        progress_desc="embed skills",
    )
    for skill, vector in zip(skills, embeddings):
        skill.embedding = vector
    log_stage(stage="embed", rows=embeddings.shape[0], dimension=embeddings.shape[1])

    descriptor_embeddings = None
    if config.strategy == "taxonomy":
        descriptor_embeddings = await embed_texts(
            client=client,
            texts=[entry.descriptor for entry in TAXONOMY],
            model=config.model,
            batch_size=config.batch_size,
            progress_desc="embed taxonomy",
        )
    strategy = build_grouping_strategy(
        config=config, rng=active_rng, descriptor_embeddings=descriptor_embeddings
    )
    grouping = strategy.classify(skills=skills, areas=areas, embeddings=embeddings)
    for skill, cluster_id in zip(skills, grouping.assignments):
        skill.cluster = cluster_id
        if skill.stack is None and grouping.area_stacks.get(skill.area_id):
            skill.stack = grouping.area_stacks[skill.area_id]
            skill.stack_label = stack_label(stack=skill.stack)
    for area in areas:
        area.stack = grouping.area_stacks.get(area.id, area.stack)
        area.cluster = next(
            (skill.cluster for skill in skills if skill.area_id == area.id), None
        )
    log_stage(
        stage="group", strategy=config.strategy, clusters=len(grouping.cluster_ids())
    )

    coords = project_2d(vectors=embeddings, rng=active_rng)
    for skill, coord in zip(skills, coords):
        skill.coord = coord
        skill.badge_label = shorten_badge(name=skill.name)
    log_stage(stage="project", points=len(coords))

    clusters = build_clusters(skills=skills, grouping=grouping)
    log_stage(stage="label", labels="|".join(cluster.label for cluster in clusters))
    return build_artifact(
        skills=skills, clusters=clusters, model=config.model, generated_at=now()
    )


async def run_skill_graph(
    *,
    config: SkillGraphConfig,
    client: EmbeddingClient,
    rng: np.random.Generator | None = None,
) -> dict[str, Any]:
    """Read the catalog, build the graph, and write it to `config.output_path`.

    The artifact is written only after every stage succeeds.

    Args:
        config: Run configuration.
        client: Embedding client.
        rng: Optional random source override.

    Returns:
        Written artifact mapping.
    """

    try:
        payload = read_json(path=config.input_path)
    except (OSError, json.JSONDecodeError) as error:
        raise ConfigurationError(
            f"Could not read skill catalog {config.input_path}: {error}"
        ) from error
    raw_areas = extract_areas(payload=payload)
    artifact = await build_skill_graph(
        config=config, raw_areas=raw_areas, client=client, rng=rng
    )
    write_artifact(path=config.output_path, artifact=artifact)
    LOGGER.info("Skill graph written to %s", config.output_path)
    return artifact
