"""Fixed stack taxonomy used by similarity classification."""

from __future__ import annotations

import re

from skill_graph.graph_types import TaxonomyEntry

SLUG_SEPARATOR_PATTERN = re.compile(r"[-_\s]+")

TAXONOMY: tuple[TaxonomyEntry, ...] = (
    TaxonomyEntry(
        stack="data-platform",
        label="Data platform",
        descriptor=(
            "Data engineering: SQL, data warehouses, ETL and ELT pipelines, "
            "orchestration, dbt, Snowflake, data modeling and schema design."
        ),
    ),
    TaxonomyEntry(
        stack="analytics",
        label="Analytics & BI",
        descriptor=(
            "Analytics and business intelligence: dashboards, reporting, KPIs, "
            "metrics definitions, statistics, Tableau, Power BI, Looker."
        ),
    ),
    TaxonomyEntry(
        stack="ml-ai",
        label="ML & AI",
        descriptor=(
            "Machine learning and AI: model training, embeddings, retrieval "
            "augmented generation, LLM prompting, evaluation, Python notebooks."
        ),
    ),
    TaxonomyEntry(
        stack="cloud-ops",
        label="Cloud & DevOps",
        descriptor=(
            "Cloud infrastructure and operations: AWS, GCP, Azure, Docker, "
            "Kubernetes, Terraform, CI/CD, monitoring and deployment automation."
        ),
    ),
    TaxonomyEntry(
        stack="software",
        label="Software engineering",
        descriptor=(
            "Software engineering: application development, APIs, TypeScript, "
            "JavaScript, web frameworks, testing, version control, code review."
        ),
    ),
    TaxonomyEntry(
        stack="domain",
        label="Domain & leadership",
        descriptor=(
            "Domain expertise and leadership: healthcare quality measures, "
            "media operations, stakeholder communication, project management."
        ),
    ),
)


def stack_label(*, stack: str | None) -> str | None:
    """Resolve the display label for a stack id.

    Args:
        stack: Stack id from the catalog or a manual override.

    Returns:
        Catalog label, a title-cased slug for unknown ids, or `None`.

    Example:
        >>> stack_label(stack="ml-ai")
        'ML & AI'
        >>> stack_label(stack="game-dev")
        'Game Dev'
    """

    if not stack:
        return None
    for entry in TAXONOMY:
        if entry.stack == stack:
            return entry.label
    words = [word for word in SLUG_SEPARATOR_PATTERN.split(stack) if word]
    return " ".join(word[:1].upper() + word[1:] for word in words)
