"""Cluster label derivation and badge shortening."""

from __future__ import annotations

import re
from collections import Counter

from skill_graph.graph_types import SkillRecord

TOKEN_SPLIT_PATTERN = re.compile(r"[^a-z0-9]+")
STOPWORDS = frozenset({"and", "the", "of", "in", "for"})
NAME_WEIGHT = 2
TAG_WEIGHT = 1
DEFAULT_PRIMARY = "cluster"
FRIENDLY_LABELS: dict[str, str] = {
    "sql": "SQL systems",
    "data": "Data modeling",
    "cloud": "Cloud ops",
    "snowflake": "Warehouse ops",
    "modeling": "Modeling",
    "testing": "Testing",
    "rag": "AI / RAG",
    "systems": "Systems",
    "python": "Python flows",
}

# Widest badge the front-end renders without clipping.
BADGE_REFERENCE = "Infrastructure"
BADGE_BUDGET = len(BADGE_REFERENCE)
ELLIPSIS = "…"
ABBREVIATION_LENGTH = 4
BADGE_OVERRIDES: dict[str, str] = {
    "Amazon Web Services": "AWS",
    "Google Cloud Platform": "GCP",
    "Business Intelligence": "BI",
    "Continuous Integration": "CI",
    "Electronic Health Records": "EHR",
    "Machine Learning": "ML",
    "Natural Language Processing": "NLP",
    "Retrieval-Augmented Generation": "RAG",
    "Large Language Models": "LLMs",
}


def tokenize(*, text: str) -> list[str]:
    """Lower-case, split on non-alphanumeric runs, drop stopwords.

    Example:
        >>> tokenize(text="Design of the SQL-Pipelines")
        ['design', 'sql', 'pipelines']
    """

    return [
        token
        for token in TOKEN_SPLIT_PATTERN.split(text.lower())
        if token and token not in STOPWORDS
    ]


def token_frequency(*, skills: list[SkillRecord]) -> Counter[str]:
    """Weighted token tally over member names and tags."""

    frequency: Counter[str] = Counter()
    for skill in skills:
        for token in tokenize(text=skill.name):
            frequency[token] += NAME_WEIGHT
        for tag in skill.tags:
            for token in tokenize(text=tag):
                frequency[token] += TAG_WEIGHT
    return frequency


def derive_label(*, skills: list[SkillRecord]) -> str:
    """Build a readable cluster label from its members' most frequent tokens.

    Frequency ties keep first-seen order.

    Args:
        skills: Cluster member skills.

    Returns:
        Friendly label for known primary tokens, else `"primary secondary"`.
    """

    frequency = token_frequency(skills=skills)
    ranked = sorted(frequency.items(), key=lambda item: -item[1])
    primary = ranked[0][0] if ranked else DEFAULT_PRIMARY
    secondary = ranked[1][0] if len(ranked) > 1 else None
    friendly = FRIENDLY_LABELS.get(primary)
    if friendly:
        return friendly
    return " ".join(token for token in (primary, secondary) if token)


def shorten_badge(*, name: str, budget: int = BADGE_BUDGET) -> str:
    """Fit a display name into the badge character budget.

    Tries, in order: unchanged, override table, 4-character word
    abbreviations, initials, then hard truncation.

    Args:
        name: Skill display name.
        budget: Maximum badge length.

    Returns:
        Badge text no longer than `budget`.

    Example:
        >>> shorten_badge(name="SQL")
        'SQL'
        >>> shorten_badge(name="Distributed Systems")
        'Dist… Syst…'
    """

    if len(name) <= budget:
        return name
    override = BADGE_OVERRIDES.get(name)
    if override is not None and len(override) <= budget:
        return override
    words = name.split()
    abbreviated = " ".join(
        word[:ABBREVIATION_LENGTH] + ELLIPSIS if len(word) > ABBREVIATION_LENGTH else word
        for word in words
    )
    if len(abbreviated) <= budget:
        return abbreviated
    initials = " ".join(f"{word[0]}." for word in words)
    if len(initials) <= budget:
        return initials
    return name[: max(budget - 1, 0)] + ELLIPSIS
