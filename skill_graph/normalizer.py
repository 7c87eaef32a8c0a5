"""Flatten raw skill-area records into uniform skill and area records."""

from __future__ import annotations

from typing import Any

from skill_graph.errors import ConfigurationError, EmptySkillSetError
from skill_graph.graph_types import AreaRecord, SkillRecord
from skill_graph.taxonomy import stack_label


def extract_areas(*, payload: Any) -> list[dict[str, Any]]:
    """Pull the raw area list out of a resume document or bare list.

    Args:
        payload: Parsed input JSON root.

    Returns:
        Raw area mappings.
    """

    raw_areas = payload.get("skills", []) if isinstance(payload, dict) else payload
    if not isinstance(raw_areas, list):
        raise ConfigurationError("skill catalog must be a list of areas")
    return [area for area in raw_areas if isinstance(area, dict)]


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_skill_text(
    *,
    name: str,
    area: str,
    stack: str | None,
    tags: tuple[str, ...],
    level: object,
    years: object,
) -> str:
    """Compose the embedding input blob for one skill.

    Args:
        name: Skill name.
        area: Area label.
        stack: Stack label, when known before embedding.
        tags: Skill tags.
        level: Optional level.
        years: Optional years.

    Returns:
        Sentence-like description passed to the embedding service.

    Example:
        >>> build_skill_text(name="SQL", area="Data", stack=None, tags=("query",), level=None, years=5)
        'SQL. Area: Data. Stack: n/a. Tags: query. Level: n/a. Years: 5'
    """

    return (
        f"{name}. Area: {area}. Stack: {stack or 'n/a'}. "
        f"Tags: {', '.join(tags)}. "
        f"Level: {'n/a' if level is None else level}. "
        f"Years: {'n/a' if years is None else years}"
    )


def normalize_catalog(
    *, raw_areas: list[dict[str, Any]], include_hidden: bool
) -> tuple[list[SkillRecord], list[AreaRecord]]:
    """Flatten raw areas into skill and area records.

    Items with `display` explicitly `False` are dropped unless
    `include_hidden` is set. Item-level `category`/`stack` values override
    the area's.

    Args:
        raw_areas: Raw area mappings with `items` lists.
        include_hidden: Keeps hidden items when true.

    Returns:
        Tuple of skill records and area records, in source order.

    Raises:
        EmptySkillSetError: When no visible skill remains.
    """

    skills: list[SkillRecord] = []
    areas: list[AreaRecord] = []
    seen_ids: set[str] = set()
    for area_index, raw_area in enumerate(raw_areas):
        area_id = _optional_str(raw_area.get("id")) or f"area-{area_index}"
        area_label = _optional_str(raw_area.get("area")) or _optional_str(
            raw_area.get("label")
        ) or area_id
        area = AreaRecord(
            id=area_id,
            label=area_label,
            category=_optional_str(raw_area.get("category")),
            category_label=_optional_str(raw_area.get("categoryLabel")),
            stack_override=_optional_str(raw_area.get("stack")),
        )
        area.stack = area.stack_override
        for item in raw_area.get("items") or []:
            if not isinstance(item, dict):
                continue
            if not include_hidden and item.get("display") is False:
                continue
            name = _optional_str(item.get("name"))
            if name is None:
                continue
            skill_id = f"{area_id}:{name}"
            if skill_id in seen_ids:
                continue
            seen_ids.add(skill_id)
            stack = _optional_str(item.get("stack")) or area.stack_override
            tags = tuple(str(tag) for tag in item.get("tags") or [])
            level = item.get("level")
            years = item.get("years")
            skills.append(
                SkillRecord(
                    id=skill_id,
                    name=name,
                    area_id=area_id,
                    area=area_label,
                    category=_optional_str(item.get("category")) or area.category,
                    category_label=_optional_str(item.get("categoryLabel"))
                    or area.category_label,
                    stack=stack,
                    stack_label=stack_label(stack=stack),
                    level=level,
                    years=years,
                    tags=tags,
                    text=build_skill_text(
                        name=name,
                        area=area_label,
                        stack=stack_label(stack=stack),
                        tags=tags,
                        level=level,
                        years=years,
                    ),
                )
            )
            area.skill_ids.append(skill_id)
        areas.append(area)
    if not skills:
        raise EmptySkillSetError("No skills found to cluster.")
    return skills, areas
