"""
Formatter interface and the default format callback.

A Formatter is the opaque capability that reformats a document, either
whole or restricted to a line range, by mutating it in place before
returning. The reformat loop never inspects what a formatter did beyond
re-reading the document afterwards.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .document import Document, split_lines
from .domain import FormatRange
from .errors import FormatterError

LOG = logging.getLogger(__name__)

_RANGE_PLACEHOLDERS = ("{start}", "{end}")


class Formatter(ABC):
    """
    Abstract interface for formatting backends.

    name identifies the formatter in the attachment registry, so two
    formatters attached to one document must have distinct names.
    """

    name: str

    @property
    @abstractmethod
    def supports_range_formatting(self) -> bool:
        """Whether format() honors a range instead of formatting everything."""

    @abstractmethod
    def format(self, document: Document, format_range: Optional[FormatRange] = None) -> None:
        """
        Format document in place.

        When format_range is None the whole document is formatted.
        """


class CommandFormatter(Formatter):
    """
    Formats by piping the document through an external command.

    The command is a shell-style string. {start} and {end} expand to the
    first and last line of the range, and {path} to the document path.
    When formatting a whole document, every argument containing a range
    placeholder is dropped, e.g.

        black -q --line-ranges={start}-{end} -
        clang-format --lines={start}:{end} --assume-filename={path}

    The command reads the document on stdin and writes the formatted
    text to stdout.
    """

    def __init__(self, command: str, name: Optional[str] = None, cwd: Optional[Path] = None) -> None:
        self.argv = shlex.split(command)
        if not self.argv:
            raise ValueError("formatter command is empty")
        self.name = name or Path(self.argv[0]).name
        self.cwd = cwd

    @property
    def supports_range_formatting(self) -> bool:
        return any(
            placeholder in arg for arg in self.argv for placeholder in _RANGE_PLACEHOLDERS
        )

    def build_args(self, document: Document, format_range: Optional[FormatRange] = None) -> List[str]:
        args: List[str] = []
        for arg in self.argv:
            has_range = any(placeholder in arg for placeholder in _RANGE_PLACEHOLDERS)
            if has_range and format_range is None:
                continue
            args.append(
                arg.replace("{path}", str(document.path))
                .replace("{start}", str(format_range.start_line) if format_range else "")
                .replace("{end}", str(format_range.end_line) if format_range else "")
            )
        return args

    def format(self, document: Document, format_range: Optional[FormatRange] = None) -> None:
        args = self.build_args(document, format_range)
        text = _document_text(document)

        LOG.debug("Running formatter: %s", " ".join(args))
        try:
            completed = subprocess.run(
                args,
                cwd=str(self.cwd) if self.cwd is not None else None,
                input=text,
                check=False,
                capture_output=True,
                text=True,
                encoding="utf-8",
            )
        except OSError as exc:  # noqa: BLE001
            raise FormatterError(f"failed to execute {args[0]}: {exc}") from exc

        if completed.returncode != 0:
            detail = completed.stderr.strip() or completed.stdout.strip() or "no output"
            raise FormatterError(
                f"formatter {self.name} failed (rc={completed.returncode}): {detail}"
            )

        if completed.stdout != text:
            _set_document_text(document, completed.stdout)


class CallableFormatter(Formatter):
    """Adapts a plain function taking (document, format_range) to a Formatter."""

    def __init__(
        self,
        func: Callable[[Document, Optional[FormatRange]], None],
        name: str,
        supports_range_formatting: bool = True,
    ) -> None:
        self._func = func
        self.name = name
        self._supports_range_formatting = supports_range_formatting

    @property
    def supports_range_formatting(self) -> bool:
        return self._supports_range_formatting

    def format(self, document: Document, format_range: Optional[FormatRange] = None) -> None:
        self._func(document, format_range)


def _document_text(document: Document) -> str:
    text = getattr(document, "text", None)
    if isinstance(text, str):
        return text
    lines = document.get_lines()
    return document.newline.join(lines) + (document.newline if lines else "")


def _set_document_text(document: Document, text: str) -> None:
    set_text = getattr(document, "set_text", None)
    if set_text is not None:
        set_text(text)
        return
    document.set_lines(split_lines(text))


@dataclass(frozen=True)
class FormatRequest:
    """
    One call into the format callback.

    target is the formatter to use; range is None for whole-document
    formatting.
    """

    target: Formatter
    document: Document
    range: Optional[FormatRange] = None


FormatCallback = Callable[[FormatRequest], None]


def dispatch_format(request: FormatRequest) -> None:
    """Default format callback: hand the request to its target formatter."""

    if request.range is None:
        LOG.info("Formatting all of %s with %s", request.document.path, request.target.name)
    else:
        LOG.info(
            "Formatting lines %d-%d of %s with %s",
            request.range.start_line,
            request.range.end_line,
            request.document.path,
            request.target.name,
        )
    request.target.format(request.document, request.range)
