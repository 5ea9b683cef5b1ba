"""
Configuration model for format-modifications.

A Config is an immutable snapshot built by merging caller overrides on
top of BASE_CONFIG. It is passed down into the reformat loop so behavior
can be adjusted without relying on global state.
"""

from __future__ import annotations

import dataclasses
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .diff_engine import DiffCallback, get_diff_engine, git_diff
from .dispatch import FormatCallback, dispatch_format
from .errors import ConfigError

LOG = logging.getLogger(__name__)

PYPROJECT_TABLE = "format-modifications"


@dataclass(frozen=True)
class Config:
    """
    Settings for one reformat invocation.

    diff_callback computes hunks between the baseline and the current
    text; format_callback performs each formatting request. When
    empty_line_handling is enabled, blank lines at the edges of a hunk
    are not handed to the formatter, and all-blank hunks are skipped.
    max_passes bounds the number of diffs taken per invocation; None
    lets the loop run until the formatter stops changing the document.
    """

    diff_callback: DiffCallback = git_diff
    format_callback: FormatCallback = dispatch_format
    format_on_save: bool = False
    vcs: str = "git"
    empty_line_handling: bool = False
    max_passes: Optional[int] = 100


BASE_CONFIG = Config()

_FIELDS = {field.name for field in dataclasses.fields(Config)}


def merge_config(overrides: Optional[Mapping[str, Any]] = None, base: Config = BASE_CONFIG) -> Config:
    """
    Return base with every key of overrides replacing the base value.

    diff_callback may name a registered diff engine instead of being a
    callable.
    """

    overrides = dict(overrides or {})

    if "diff_options" in overrides:
        raise ConfigError("diff_options is deprecated, use diff_callback instead")

    unknown = sorted(set(overrides) - _FIELDS)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

    if isinstance(overrides.get("diff_callback"), str):
        overrides["diff_callback"] = get_diff_engine(overrides["diff_callback"])

    max_passes = overrides.get("max_passes")
    if max_passes is not None and (
        isinstance(max_passes, bool) or not isinstance(max_passes, int) or max_passes < 1
    ):
        raise ConfigError(f"max_passes must be a positive integer, got {max_passes!r}")

    return dataclasses.replace(base, **overrides)


def find_pyproject(start: Path) -> Optional[Path]:
    start = start.absolute()
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        pyproject = candidate / "pyproject.toml"
        if pyproject.is_file():
            return pyproject
    return None


def load_project_config(start: Path) -> Dict[str, Any]:
    """
    Read [tool.format-modifications] from the nearest pyproject.toml.

    Keys are returned in Config spelling ("empty-line-handling" becomes
    empty_line_handling, "diff" becomes diff_callback). A "formatter"
    entry is passed through for the CLI. Returns an empty dict when no
    pyproject.toml or no table is found.
    """

    pyproject = find_pyproject(start)
    if pyproject is None:
        return {}

    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"cannot parse {pyproject}: {exc}") from exc

    table = data.get("tool", {}).get(PYPROJECT_TABLE)
    if table is None:
        return {}
    if not isinstance(table, dict):
        raise ConfigError(f"[tool.{PYPROJECT_TABLE}] in {pyproject} must be a table")

    LOG.debug("Loaded configuration from %s", pyproject)
    settings: Dict[str, Any] = {}
    for key, value in table.items():
        name = key.replace("-", "_")
        if name == "diff":
            name = "diff_callback"
        settings[name] = value
    return settings
