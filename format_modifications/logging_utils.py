"""
Logging helpers for format-modifications.

Warnings and errors raised during a reformat are the user-facing
notifications, so the default level lets them through while hiding
progress messages.
"""

from __future__ import annotations

import logging


def configure_logging(verbosity: int, quiet: bool = False) -> None:
    """
    Configure the root logger based on a verbosity count.

    verbosity == 0 -> WARNING
    verbosity == 1 -> INFO
    verbosity >= 2 -> DEBUG

    quiet silences everything short of a crash.
    """

    if quiet:
        level = logging.CRITICAL
    elif verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="format-modifications: %(levelname)s %(name)s: %(message)s",
    )
