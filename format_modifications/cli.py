"""
Command-line interface for format-modifications.

This module is responsible for argument parsing, loading the document,
and delegating to the attachment registry and the reformat loop.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import load_project_config
from .diff_engine import DIFF_ENGINES
from .dispatch import CommandFormatter
from .document import TextDocument
from .errors import ConfigError, FormatModificationsError
from .logging_utils import configure_logging
from .registry import AttachmentRegistry
from .vcs import VCS_BACKENDS

LOG = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="format-modifications",
        description=(
            "Run a range-capable formatter over only the lines of a file "
            "that differ from its version-control baseline."
        ),
    )

    parser.add_argument("path", help="File to reformat.")
    parser.add_argument(
        "-f",
        "--formatter",
        help=(
            "Formatter command reading stdin and writing stdout. {start} and "
            "{end} expand to the line range, {path} to the file path, e.g. "
            "'black -q --line-ranges={start}-{end} -'."
        ),
    )
    parser.add_argument(
        "--vcs",
        choices=sorted(VCS_BACKENDS),
        help="Version-control backend (default: git).",
    )
    parser.add_argument(
        "--diff",
        dest="diff_callback",
        choices=sorted(DIFF_ENGINES),
        help="Diff engine used to find changed lines (default: git).",
    )
    parser.add_argument(
        "--empty-line-handling",
        dest="empty_line_handling",
        action="store_true",
        default=None,
        help="Do not format blank lines at the edges of changed regions.",
    )
    parser.add_argument(
        "--max-passes",
        type=int,
        help="Give up after this many diff passes (default: 100).",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the result instead of rewriting the file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (can be specified multiple times).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all warnings and errors.",
    )

    return parser


def _collect_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides = load_project_config(Path(args.path))
    for key in ("vcs", "diff_callback", "empty_line_handling", "max_passes"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value
    return overrides


def run(args: argparse.Namespace) -> int:
    overrides = _collect_overrides(args)
    project_command = overrides.pop("formatter", None)
    command = args.formatter or project_command
    if not command:
        raise ConfigError(
            "no formatter given; pass --formatter or set "
            "formatter in [tool.format-modifications]"
        )

    path = Path(args.path)
    document = TextDocument.from_path(path)
    formatter = CommandFormatter(command, cwd=path.absolute().parent)

    original = document.text

    registry = AttachmentRegistry()
    registry.attach(formatter, document, overrides)
    results = registry.format_document(document)

    for result in results:
        LOG.info(
            "%s: %s (%d pass(es), %d formatter call(s))",
            path,
            result.outcome.value,
            result.passes,
            result.dispatches,
        )

    if args.stdout:
        sys.stdout.write(document.text)
    elif document.text != original:
        document.write()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(verbosity=args.verbose, quiet=args.quiet)

    try:
        return run(args)
    except KeyboardInterrupt:
        return 130
    except (FormatModificationsError, OSError, UnicodeDecodeError) as exc:
        if not args.quiet:
            print(f"format-modifications: error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
