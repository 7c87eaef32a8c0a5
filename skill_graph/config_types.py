"""Typed run configuration for the skill-graph pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Literal

import yaml

from skill_graph.errors import ConfigurationError

Strategy = Literal["kmeans", "taxonomy"]
Provider = Literal["openai", "gemini"]

STRATEGIES: tuple[str, ...] = ("kmeans", "taxonomy")
PROVIDERS: tuple[str, ...] = ("openai", "gemini")
PATH_FIELDS: tuple[str, ...] = ("input_path", "output_path")
BOOLEAN_STRINGS: dict[str, bool] = {"true": True, "false": False}
API_KEY_NAMES: dict[str, tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


@dataclass(frozen=True)
class SkillGraphConfig:
    """Configuration for one skill-graph run.

    Args:
        input_path: Skill catalog JSON path.
        output_path: Artifact destination path.
        strategy: Grouping strategy (`kmeans` or `taxonomy`).
        cluster_count: Target K-Means cluster count.
        model: Embedding model id.
        include_hidden: Keeps items whose `display` flag is false.
        provider: Embedding service provider.
        base_url: OpenAI-compatible API base URL ending in `/v1`.
        batch_size: Texts per embedding request.
        seed: Seed for K-Means initialization and power iteration.
        timeout_seconds: HTTP request timeout.
        env_paths: Dotenv paths searched for the credential.
        api_key: Resolved embedding-service credential.

    Example:
        >>> SkillGraphConfig().cluster_count
        6
    """

    input_path: Path = Path("data/resume.json")
    output_path: Path = Path("public/skill-graph.json")
    strategy: Strategy = "kmeans"
    cluster_count: int = 6
    model: str = "text-embedding-3-small"
    include_hidden: bool = False
    provider: Provider = "openai"
    base_url: str = "https://api.openai.com/v1"
    batch_size: int = 64
    seed: int | None = 42
    timeout_seconds: float = 120.0
    env_paths: tuple[Path, ...] = (Path(".env"),)
    api_key: str | None = None

    def validate(self) -> None:
        """Check option ranges and enumerations.

        Raises:
            ConfigurationError: When an option is out of range.
        """

        if self.strategy not in STRATEGIES:
            raise ConfigurationError(f"Unsupported strategy: {self.strategy}")
        if self.provider not in PROVIDERS:
            raise ConfigurationError(f"Unsupported provider: {self.provider}")
        if self.cluster_count < 1:
            raise ConfigurationError("cluster_count must be >= 1")
        if self.batch_size < 1:
            raise ConfigurationError("batch_size must be >= 1")

    def with_api_key(self) -> SkillGraphConfig:
        """Return a copy carrying the resolved credential.

        Raises:
            ConfigurationError: When no credential can be found.
        """

        if self.api_key:
            return self
        api_key = resolve_api_key(provider=self.provider, env_paths=self.env_paths)
        if api_key is None:
            names = " or ".join(API_KEY_NAMES[self.provider])
            raise ConfigurationError(f"Missing {names} environment variable.")
        return replace(self, api_key=api_key)


def parse_dotenv(*, path: Path) -> dict[str, str]:
    """Parse dotenv entries from a file.

    Args:
        path: Dotenv file path.

    Returns:
        Parsed key/value mapping, empty when the file is missing.
    """

    if not path.exists():
        return {}
    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", maxsplit=1)
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def resolve_api_key(*, provider: str, env_paths: tuple[Path, ...]) -> str | None:
    """Resolve the provider credential from env vars, then dotenv files.

    Args:
        provider: Embedding provider name.
        env_paths: Dotenv path lookup order.

    Returns:
        Resolved API key or `None`.
    """

    key_names = API_KEY_NAMES.get(provider, ())
    for key_name in key_names:
        value = os.getenv(key_name)
        if value:
            return value
    for path in env_paths:
        values = parse_dotenv(path=path)
        for key_name in key_names:
            value = values.get(key_name)
            if value:
                return value
    return None


def _resolve_path(base_dir: Path, value: str) -> Path:
    """Resolve a relative or absolute path against a base directory."""

    candidate = Path(value)
    if candidate.is_absolute():
        return candidate
    return (base_dir / candidate).resolve()


def _load_yaml_mapping(yaml_path: Path) -> dict[str, Any]:
    """Load one YAML file into a mapping.

    Args:
        yaml_path: YAML file path.

    Returns:
        Parsed mapping payload.
    """

    try:
        payload = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as error:
        raise ConfigurationError(f"Could not read config {yaml_path}: {error}") from error
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigurationError(f"YAML payload must be a mapping: {yaml_path}")
    return payload


def _coerce_bool(*, name: str, value: Any) -> bool:
    """Accept YAML booleans or the literal strings `true`/`false`.

    Example:
        >>> _coerce_bool(name="include_hidden", value="False")
        False
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in BOOLEAN_STRINGS:
        return BOOLEAN_STRINGS[value.strip().lower()]
    raise ConfigurationError(f"{name} must be true or false, got {value!r}")


def _coerce_yaml_values(payload: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    """Convert YAML scalars into config field types.

    Args:
        payload: Raw YAML mapping.
        base_dir: Directory used for relative path values.

    Returns:
        Mapping ready for `SkillGraphConfig` construction.
    """

    known = {config_field.name for config_field in fields(SkillGraphConfig)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")
    values = dict(payload)
    for name in PATH_FIELDS:
        if name in values:
            values[name] = _resolve_path(base_dir=base_dir, value=str(values[name]))
    if "env_paths" in values:
        values["env_paths"] = tuple(
            _resolve_path(base_dir=base_dir, value=str(item))
            for item in values["env_paths"]
        )
    try:
        if "cluster_count" in values:
            values["cluster_count"] = int(values["cluster_count"])
        if "batch_size" in values:
            values["batch_size"] = int(values["batch_size"])
        if "timeout_seconds" in values:
            values["timeout_seconds"] = float(values["timeout_seconds"])
        if values.get("seed") is not None:
            values["seed"] = int(values["seed"])
    except (TypeError, ValueError) as error:
        raise ConfigurationError(f"Invalid numeric config value: {error}") from error
    if "include_hidden" in values:
        values["include_hidden"] = _coerce_bool(
            name="include_hidden", value=values["include_hidden"]
        )
    return values


def build_config(
    *, config_path: Path | None = None, overrides: dict[str, Any] | None = None
) -> SkillGraphConfig:
    """Build a validated config from defaults, optional YAML, and overrides.

    Args:
        config_path: Optional YAML config path.
        overrides: Explicit values (CLI flags); `None` entries are ignored.

    Returns:
        Validated configuration without a resolved credential.

    Example:
        >>> build_config(overrides={"cluster_count": 3, "model": None}).cluster_count
        3
    """

    values: dict[str, Any] = {}
    if config_path is not None:
        payload = _load_yaml_mapping(yaml_path=config_path)
        values.update(
            _coerce_yaml_values(payload=payload, base_dir=config_path.resolve().parent)
        )
    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value
    config = SkillGraphConfig(**values)
    config.validate()
    return config
