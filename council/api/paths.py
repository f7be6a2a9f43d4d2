"""
Path helpers for repository layout.

Layout:
- config/defaults/: tracked default configs
- config/local/: instance-specific writable configs (gitignored)
- logs/: server logs
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional


@lru_cache(maxsize=1)
def repo_root() -> Path:
    # This file lives at council/api/paths.py -> parents: api/ -> council/ -> repo root
    return Path(__file__).resolve().parents[2]


def config_defaults_dir() -> Path:
    return repo_root() / "config" / "defaults"


def config_local_dir() -> Path:
    return repo_root() / "config" / "local"


def first_existing(paths: Iterable[Path]) -> Optional[Path]:
    for path in paths:
        try:
            if path.exists():
                return path
        except OSError:
            continue
    return None


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def ensure_local_file(
    *,
    local_path: Path,
    defaults_path: Optional[Path] = None,
    initial_text: Optional[str] = None,
) -> None:
    """
    Ensure a writable local file exists.

    Bootstraps from defaults_path when it exists, otherwise from initial_text.
    """
    if local_path.exists():
        return

    ensure_dir(local_path.parent)

    if defaults_path is not None and defaults_path.exists():
        local_path.write_text(defaults_path.read_text(encoding="utf-8"), encoding="utf-8")
        return

    local_path.write_text(initial_text or "", encoding="utf-8")


def resolve_layered_read_path(
    *,
    local_path: Path,
    defaults_path: Optional[Path] = None,
) -> Path:
    """Pick an existing file to read, preferring the local override."""
    candidates: list[Path] = [local_path]
    if defaults_path is not None:
        candidates.append(defaults_path)

    existing = first_existing(candidates)
    return existing or local_path
