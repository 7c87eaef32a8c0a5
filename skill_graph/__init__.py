"""Skill-graph generation package."""

from skill_graph.config_types import SkillGraphConfig, build_config
from skill_graph.pipeline import build_skill_graph, run_skill_graph

__all__ = ["SkillGraphConfig", "build_config", "build_skill_graph", "run_skill_graph"]
