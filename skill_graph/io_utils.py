"""I/O helpers for skill catalogs and graph artifacts."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def utc_now() -> str:
    """Return current UTC timestamp as ISO string."""

    return datetime.now(timezone.utc).isoformat()


def ensure_parent_dir(*, path: Path) -> None:
    """Create parent directory for given file path."""

    path.parent.mkdir(parents=True, exist_ok=True)


def read_json(*, path: Path) -> Any:
    """Read one JSON document.

    Args:
        path: Input JSON path.

    Returns:
        Parsed JSON root.
    """

    return json.loads(path.read_text(encoding="utf-8"))


def write_json(*, path: Path, payload: dict[str, Any]) -> None:
    """Write one JSON mapping file, creating parent directories.

    Args:
        path: Output path.
        payload: JSON payload mapping.

    Returns:
        None.
    """

    ensure_parent_dir(path=path)
    content = json.dumps(payload, ensure_ascii=False, indent=2)
    path.write_text(content + "\n", encoding="utf-8")
