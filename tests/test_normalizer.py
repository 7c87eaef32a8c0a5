"""Tests for skill catalog normalization."""

from __future__ import annotations

from typing import Any

import pytest

from skill_graph.errors import ConfigurationError, EmptySkillSetError
from skill_graph.normalizer import build_skill_text, extract_areas, normalize_catalog


def raw_catalog() -> list[dict[str, Any]]:
    """Two areas with one hidden item and one item-level stack override."""

    return [
        {
            "id": "data",
            "area": "Data engineering",
            "category": "engineering",
            "categoryLabel": "Engineering",
            "stack": "data-platform",
            "items": [
                {"name": "SQL", "level": "Expert", "years": 8, "tags": ["query"]},
                {"name": "Airflow", "display": False, "tags": ["orchestration"]},
            ],
        },
        {
            "id": "web",
            "area": "Web",
            "items": [
                {"name": "TypeScript", "stack": "software"},
                {"name": "CSS", "display": True},
            ],
        },
    ]


def test_normalize_excludes_hidden_items_by_default() -> None:
    """Items with `display: false` should be dropped unless requested."""

    skills, areas = normalize_catalog(raw_areas=raw_catalog(), include_hidden=False)
    assert [skill.id for skill in skills] == ["data:SQL", "web:TypeScript", "web:CSS"]
    assert [area.id for area in areas] == ["data", "web"]
    assert areas[0].skill_ids == ["data:SQL"]


def test_normalize_includes_hidden_items_once_when_requested() -> None:
    """Include-hidden should add the hidden item exactly once."""

    skills, areas = normalize_catalog(raw_areas=raw_catalog(), include_hidden=True)
    ids = [skill.id for skill in skills]
    assert ids.count("data:Airflow") == 1
    assert len(ids) == 4
    assert areas[0].skill_ids == ["data:SQL", "data:Airflow"]


def test_normalize_applies_area_and_item_overrides() -> None:
    """Area stacks and categories flow to items; item stacks win."""

    skills, areas = normalize_catalog(raw_areas=raw_catalog(), include_hidden=False)
    sql, typescript, css = skills
    assert sql.stack == "data-platform"
    assert sql.stack_label == "Data platform"
    assert sql.category == "engineering"
    assert sql.category_label == "Engineering"
    assert sql.tags == ("query",)
    assert typescript.stack == "software"
    assert css.stack is None
    assert css.stack_label is None
    assert areas[0].stack_override == "data-platform"
    assert areas[1].stack_override is None


def test_normalize_builds_embedding_text() -> None:
    """Text blobs should carry name, area, stack, tags, level, and years."""

    skills, _ = normalize_catalog(raw_areas=raw_catalog(), include_hidden=False)
    assert skills[0].text == (
        "SQL. Area: Data engineering. Stack: Data platform. Tags: query. "
        "Level: Expert. Years: 8"
    )
    assert build_skill_text(
        name="CSS", area="Web", stack=None, tags=(), level=None, years=None
    ) == "CSS. Area: Web. Stack: n/a. Tags: . Level: n/a. Years: n/a"


def test_normalize_rejects_empty_skill_set() -> None:
    """A catalog with no visible items should fail."""

    raw = [{"id": "x", "area": "X", "items": [{"name": "Hidden", "display": False}]}]
    with pytest.raises(EmptySkillSetError):
        normalize_catalog(raw_areas=raw, include_hidden=False)
    with pytest.raises(EmptySkillSetError):
        normalize_catalog(raw_areas=[], include_hidden=True)


def test_extract_areas_accepts_resume_or_bare_list() -> None:
    """Area lists may be wrapped in a resume document or given directly."""

    areas = raw_catalog()
    assert extract_areas(payload={"skills": areas}) == areas
    assert extract_areas(payload=areas) == areas
    assert extract_areas(payload={"header": {}}) == []
    with pytest.raises(ConfigurationError):
        extract_areas(payload={"skills": "nope"})
