"""Exception types raised by the skill-graph pipeline."""

from __future__ import annotations


class SkillGraphError(RuntimeError):
    """Base class for fatal skill-graph run failures."""


class ConfigurationError(SkillGraphError):
    """Invalid run options or a missing embedding credential."""


class EmptySkillSetError(ConfigurationError):
    """Normalization produced no visible skills to embed."""


class EmbeddingRequestError(SkillGraphError):
    """Non-success or malformed response from the embedding service."""


class ClusterCountError(SkillGraphError):
    """Requested cluster count cannot be satisfied by the input vectors."""
