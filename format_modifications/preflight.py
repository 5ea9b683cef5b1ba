"""
Capability checks for format-modifications attachments.

These checks run when a formatter is attached to a document, before any
reformatting work, so unsupported setups fail fast with an error naming
the missing capability.
"""

from __future__ import annotations

from typing import List

from .config import Config
from .dispatch import Formatter
from .errors import UnsupportedCapabilityError
from .vcs import VCS_BACKENDS


def validate_attachment(formatter: Formatter, config: Config) -> None:
    """
    Validate that formatter and config can reformat modifications.

    Raises UnsupportedCapabilityError listing every problem found.
    """

    problems: List[str] = []

    if not formatter.supports_range_formatting:
        problems.append(f"formatter {formatter.name} does not support range formatting")

    if config.vcs not in VCS_BACKENDS:
        problems.append(f"VCS {config.vcs} isn't supported")

    if not callable(config.diff_callback):
        problems.append("diff_callback is not callable")

    if not callable(config.format_callback):
        problems.append("format_callback is not callable")

    if problems:
        raise UnsupportedCapabilityError(f"failed checks: {'; '.join(problems)}")
