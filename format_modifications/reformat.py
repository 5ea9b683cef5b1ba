"""
The reformat loop: format only the lines a document changed.

The loop is responsible for:
  - resolving the document's repository and tracking status,
  - fetching the baseline content once,
  - diffing the baseline against the live document,
  - asking the formatter to format each changed range, and
  - re-diffing whenever a formatting call changed the document, because
    every hunk after it may now point at the wrong lines or be gone.

It stops once a full pass over the hunks leaves the document unchanged.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import Config
from .dispatch import FormatRequest, Formatter
from .document import Document
from .domain import FormatRange, Hunk, ReformatOutcome, ReformatResult
from .errors import BaselineUnavailableError, NotInRepositoryError, ReformatLoopError
from .vcs import VCSClient, get_vcs_client

LOG = logging.getLogger(__name__)


def format_modifications(
    target: Formatter,
    document: Document,
    config: Config,
    vcs_client: Optional[VCSClient] = None,
) -> ReformatResult:
    """
    Format the regions of document that differ from its baseline.

    Untracked documents are formatted whole; conflicted documents are
    left alone. Errors raised by the formatter propagate unchanged.
    """

    client = vcs_client or get_vcs_client(config.vcs)

    try:
        handle = client.resolve_root(document.path)
    except NotInRepositoryError as exc:
        LOG.warning("%s, doing nothing", exc)
        return ReformatResult(outcome=ReformatOutcome.NOT_IN_REPOSITORY)

    status = client.classify(handle, document.path)

    if not status.tracked:
        # No baseline to compare against, so everything is new.
        LOG.debug("%s is untracked, formatting the whole document", status.relative_path)
        config.format_callback(FormatRequest(target=target, document=document))
        return ReformatResult(outcome=ReformatOutcome.FORMATTED_WHOLE, dispatches=1)

    if status.conflicted:
        # Conflict markers make the hunks meaningless.
        LOG.debug("%s has unresolved conflicts, doing nothing", status.relative_path)
        return ReformatResult(outcome=ReformatOutcome.CONFLICTED)

    try:
        baseline_lines = client.fetch_baseline(handle, document.path)
    except BaselineUnavailableError as exc:
        LOG.error("failed to get baseline for %s, %s", status.relative_path, exc)
        raise

    baseline = document.newline.join(baseline_lines)

    passes = 0
    dispatches = 0
    clean = False
    while not clean:
        if config.max_passes is not None and passes >= config.max_passes:
            raise ReformatLoopError(
                f"{status.relative_path} still changing after {passes} passes; "
                "the formatter does not appear to be idempotent"
            )

        passes += 1
        lines = document.get_lines()
        current = document.newline.join(lines)
        hunks = config.diff_callback(baseline, current)
        LOG.debug("Pass %d: %d hunk(s) in %s", passes, len(hunks), status.relative_path)

        clean = True
        for hunk in hunks:
            format_range = hunk_to_range(hunk, lines, config.empty_line_handling)
            if format_range is None:
                continue

            config.format_callback(
                FormatRequest(target=target, document=document, range=format_range)
            )
            dispatches += 1

            if document.newline.join(document.get_lines()) != current:
                # Later hunks may be stale; diff again.
                clean = False
                break

    return ReformatResult(
        outcome=ReformatOutcome.FORMATTED_HUNKS,
        passes=passes,
        dispatches=dispatches,
    )


def hunk_to_range(hunk: Hunk, lines: List[str], empty_line_handling: bool = False) -> Optional[FormatRange]:
    """
    Return the range to format for hunk, or None if nothing needs formatting.

    Pure deletions have nothing left to format. With empty_line_handling,
    blank lines are trimmed from both ends of the range, and a range of
    only blank lines is dropped.
    """

    if hunk.is_deletion:
        return None

    start_line, end_line = hunk.new_start, hunk.new_end

    if empty_line_handling:
        while start_line != end_line and lines[start_line - 1] == "":
            start_line += 1
        while start_line != end_line and lines[end_line - 1] == "":
            end_line -= 1
        if lines[start_line - 1] == "":
            return None

    return FormatRange.from_lines(lines, start_line, end_line)
