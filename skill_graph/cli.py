"""CLI entrypoint for building the skill-graph artifact."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any, Sequence

from skill_graph.config_types import PROVIDERS, STRATEGIES, SkillGraphConfig, build_config
from skill_graph.embedding_client import build_embedding_client
from skill_graph.errors import ConfigurationError, SkillGraphError
from skill_graph.pipeline import run_skill_graph

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI args for a skill-graph run.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Returns:
        Parsed namespace. Unset options stay `None` so config values win.
    """
    parser = argparse.ArgumentParser(
        description="Embed, cluster, and project skills into a 2-D skill graph."
    )
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--input", dest="input_path", type=Path, default=None)
    parser.add_argument("--output", dest="output_path", type=Path, default=None)
    parser.add_argument("--strategy", choices=list(STRATEGIES), default=None)
    parser.add_argument("--clusters", dest="cluster_count", type=int, default=None)
    parser.add_argument("--model", type=str, default=None)
    parser.add_argument(
        "--hidden",
        dest="include_hidden",
        action=argparse.BooleanOptionalAction,
        default=None,
    )
    parser.add_argument("--provider", choices=list(PROVIDERS), default=None)
    parser.add_argument("--base-url", type=str, default=None)
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--env-file", type=Path, action="append", default=None)
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser.parse_args(argv)


def config_from_args(*, args: argparse.Namespace) -> SkillGraphConfig:
    """Build the run configuration from parsed CLI args.

    Args:
        args: Parsed namespace.

    Returns:
        Validated configuration with a resolved credential.
    """
    overrides: dict[str, Any] = {
        "input_path": args.input_path,
        "output_path": args.output_path,
        "strategy": args.strategy,
        "cluster_count": args.cluster_count,
        "model": args.model,
        "include_hidden": args.include_hidden,
        "provider": args.provider,
        "base_url": args.base_url,
        "batch_size": args.batch_size,
        "seed": args.seed,
        "env_paths": tuple(args.env_file) if args.env_file else None,
    }
    config = build_config(config_path=args.config, overrides=overrides)
    return config.with_api_key()


def main(argv: Sequence[str] | None = None) -> None:
    """Entrypoint for the skill-graph pipeline.

    Raises:
        SystemExit: With status 1 on any pipeline failure.
    """
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)
    try:
        config = config_from_args(args=args)
        if not config.input_path.exists():
            raise ConfigurationError(f"Missing skill catalog: {config.input_path}")
        client = build_embedding_client(config=config)
        asyncio.run(run_skill_graph(config=config, client=client))
    except SkillGraphError as error:
        LOGGER.error("skill graph failed: %s", error)
        raise SystemExit(1) from error


if __name__ == "__main__":
    main()
