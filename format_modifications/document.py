"""
In-memory text documents.

The reformat loop only needs to read a document's lines and let a
formatter replace them. TextDocument is the file-backed implementation
used by the CLI; editors can supply their own object with the same
attributes.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Protocol, Sequence


def split_lines(text: str, strip_cr: bool = True) -> List[str]:
    """
    Split text on "\\n" only, dropping the final empty line a trailing
    newline would produce.

    str.splitlines() also breaks on form feeds and other separators,
    which would rewrite such characters when the lines are joined again.
    """

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    if strip_cr:
        lines = [line[:-1] if line.endswith("\r") else line for line in lines]
    return lines


class Document(Protocol):
    """The live buffer being reformatted."""

    id: str
    path: Path
    newline: str

    def get_lines(self) -> List[str]:
        """Return a fresh copy of the current lines, without terminators."""

    def set_lines(self, lines: Sequence[str]) -> None:
        """Replace the whole content of the document."""


class TextDocument:
    """A list-of-lines buffer optionally backed by a file on disk."""

    def __init__(
        self,
        path: Path,
        lines: Sequence[str],
        newline: str = "\n",
        trailing_newline: bool = True,
        document_id: Optional[str] = None,
    ) -> None:
        self.path = Path(path).absolute()
        self.id = document_id or str(self.path)
        self.newline = newline
        self.trailing_newline = trailing_newline
        self._lines: List[str] = list(lines)
        self.version = 0

    @classmethod
    def from_text(cls, path: Path, text: str, document_id: Optional[str] = None) -> "TextDocument":
        newline = "\r\n" if "\r\n" in text else "\n"
        trailing_newline = text.endswith("\n")
        lines = split_lines(text, strip_cr=newline == "\r\n")
        return cls(
            path,
            lines,
            newline=newline,
            trailing_newline=trailing_newline,
            document_id=document_id,
        )

    @classmethod
    def from_path(cls, path: Path) -> "TextDocument":
        # newline="" keeps \r\n intact so the convention can be detected.
        with open(path, encoding="utf-8", newline="") as handle:
            text = handle.read()
        return cls.from_text(Path(path), text)

    def get_lines(self) -> List[str]:
        return list(self._lines)

    def set_lines(self, lines: Sequence[str]) -> None:
        self._lines = list(lines)
        self.version += 1

    @property
    def text(self) -> str:
        text = self.newline.join(self._lines)
        if self.trailing_newline and self._lines:
            text += self.newline
        return text

    def set_text(self, text: str) -> None:
        """
        Replace the content from a full text, as returned by a formatter.

        The document keeps its own newline convention; the trailing
        newline state follows the new text.
        """

        self.trailing_newline = text.endswith("\n")
        self.set_lines(split_lines(text, strip_cr=self.newline == "\r\n"))

    def write(self) -> None:
        with open(self.path, "w", encoding="utf-8", newline="") as handle:
            handle.write(self.text)

    def __repr__(self) -> str:
        return f"TextDocument({str(self.path)!r}, lines={len(self._lines)})"
