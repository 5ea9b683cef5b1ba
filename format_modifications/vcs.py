"""
Version-control integration for format-modifications.

Each backend knows how to locate a repository root, classify a path as
tracked, untracked or conflicted, and fetch the baseline content a
document is compared against. All commands run synchronously in a
subprocess pinned to the repository root, and pass paths in a literal,
no-glob form so that file names cannot be mistaken for flags or patterns.
"""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from .document import split_lines
from .domain import FileStatus, RepositoryHandle
from .errors import (
    BaselineUnavailableError,
    NotInRepositoryError,
    UnsupportedCapabilityError,
    VCSError,
)

LOG = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """
    Outcome of one VCS subprocess.

    stdout and stderr are captured separately, one entry per line.
    """

    exitcode: int
    stdout: List[str]
    stderr: List[str]


def run_command(args: Sequence[str], cwd: Optional[Path] = None) -> CommandResult:
    """
    Run a command and wait for it to exit.

    A non-zero exit code is not an error at this level; callers decide
    what it means for the command they ran. Output that is not valid
    UTF-8 raises UnicodeDecodeError.
    """

    cmd = list(args)
    LOG.debug("Running command in %s: %s", cwd, " ".join(cmd))
    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
    except OSError as exc:  # noqa: BLE001
        raise VCSError(f"failed to execute {cmd[0]}: {exc}") from exc

    if completed.returncode != 0:
        LOG.debug("%s exited with %d: %s", cmd[0], completed.returncode, completed.stderr.strip())

    return CommandResult(
        exitcode=completed.returncode,
        stdout=split_lines(completed.stdout),
        stderr=split_lines(completed.stderr),
    )


class VCSClient(ABC):
    """
    Abstract interface for version-control backends.

    Implementations must be stateless between invocations: the handle
    returned by resolve_root carries everything later calls need.
    """

    name: str = ""

    @abstractmethod
    def resolve_root(self, path: Path) -> RepositoryHandle:
        """
        Return the working copy containing path.

        path may name a file or a directory. Raises NotInRepositoryError
        when no working copy contains it.
        """

    def relativize(self, handle: RepositoryHandle, path: Path) -> str:
        """
        Return path relative to the repository root.

        Passing a path outside the root is a programming error.
        """

        absolute = os.path.realpath(path)
        prefix = str(handle.root) + os.sep
        if not absolute.startswith(prefix):
            raise ValueError(f"{absolute} is not inside repository {handle.root}")
        return absolute[len(prefix):]

    @abstractmethod
    def classify(self, handle: RepositoryHandle, path: Path) -> FileStatus:
        """Return the tracking status of path."""

    @abstractmethod
    def fetch_baseline(self, handle: RepositoryHandle, path: Path) -> List[str]:
        """
        Return the lines of path at the comparison point.

        Raises BaselineUnavailableError when the backend cannot provide
        them.
        """

    def _search_dir(self, path: Path) -> Path:
        path = Path(os.path.abspath(path))
        return path if path.is_dir() else path.parent


class GitClient(VCSClient):
    """Compares documents against the version staged in the git index."""

    name = "git"

    def resolve_root(self, path: Path) -> RepositoryHandle:
        result = run_command(["git", "rev-parse", "--show-toplevel"], cwd=self._search_dir(path))
        if result.exitcode != 0 or not result.stdout:
            raise NotInRepositoryError("not inside git repository")

        root = Path(os.path.realpath("\n".join(result.stdout)))
        return RepositoryHandle(root=root, backend=self.name)

    def classify(self, handle: RepositoryHandle, path: Path) -> FileStatus:
        relative_path = self.relativize(handle, path)
        result = run_command(
            [
                "git",
                "--literal-pathspecs",
                "ls-files",
                "--stage",
                "--eol",
                "--error-unmatch",
                "--",
                relative_path,
            ],
            cwd=handle.root,
        )
        if result.exitcode != 0:
            return FileStatus.untracked(relative_path)

        return parse_ls_files(relative_path, result.stdout)

    def fetch_baseline(self, handle: RepositoryHandle, path: Path) -> List[str]:
        relative_path = self.relativize(handle, path)
        try:
            result = run_command(
                ["git", "--no-pager", "--literal-pathspecs", "show", f":0:./{relative_path}"],
                cwd=handle.root,
            )
        except UnicodeDecodeError as exc:
            raise BaselineUnavailableError(f"staged {relative_path} is not valid UTF-8: {exc}") from exc
        if result.exitcode != 0:
            detail = "\n".join(result.stderr).strip()
            raise BaselineUnavailableError(
                f"exit code from git show is non-zero ({result.exitcode})"
                + (f": {detail}" if detail else "")
            )

        return result.stdout


def parse_ls_files(relative_path: str, lines: Sequence[str]) -> FileStatus:
    """
    Parse `git ls-files --stage --eol` output for a single path.

    Each entry reads "<mode> <object> <stage>\\t<eol info>\\t<path>"; the
    eol column is absent when --eol was not passed. An unmerged path has
    one entry per index stage, and any stage above 1 marks it conflicted.
    """

    entries = []
    for line in lines:
        if not line.strip():
            continue

        fields = line.split("\t")
        meta = fields[0].split()
        if len(fields) < 2 or len(meta) != 3 or not meta[2].isdigit():
            raise VCSError(f"unexpected git ls-files output: {line!r}")

        index_eol: Optional[str] = None
        worktree_eol: Optional[str] = None
        if len(fields) >= 3:
            for token in fields[1].split():
                if token.startswith("i/"):
                    index_eol = token[2:] or None
                elif token.startswith("w/"):
                    worktree_eol = token[2:] or None

        entries.append((meta[0], meta[1], int(meta[2]), index_eol, worktree_eol))

    if not entries:
        raise VCSError(f"git ls-files returned no entries for {relative_path}")

    conflicted = any(stage > 1 for _, _, stage, _, _ in entries)
    mode, object_id, stage, index_eol, worktree_eol = min(entries, key=lambda entry: entry[2])

    return FileStatus(
        relative_path=relative_path,
        tracked=True,
        conflicted=conflicted,
        mode=mode,
        object_id=object_id,
        stage=stage,
        index_eol=index_eol,
        worktree_eol=worktree_eol,
    )


class MercurialClient(VCSClient):
    """
    Compares documents against the working directory's parent revision.

    Mercurial has no staging area, so there are no index stages to
    detect conflicts from: files are never reported as conflicted, and
    line-ending flags are always reported as "lf". This is an accepted
    approximation of the git behavior.
    """

    name = "hg"

    # "A" files were added but never committed and have no baseline.
    _TRACKED_CODES = {"M", "C", "!", "R"}

    def resolve_root(self, path: Path) -> RepositoryHandle:
        result = run_command(["hg", "root"], cwd=self._search_dir(path))
        if result.exitcode != 0 or not result.stdout:
            raise NotInRepositoryError("not inside mercurial repository")

        root = Path(os.path.realpath("\n".join(result.stdout)))
        return RepositoryHandle(root=root, backend=self.name)

    def classify(self, handle: RepositoryHandle, path: Path) -> FileStatus:
        relative_path = self.relativize(handle, path)
        result = run_command(
            ["hg", "status", "--all", "--", f"path:{relative_path}"],
            cwd=handle.root,
        )
        if result.exitcode != 0:
            raise VCSError(f"hg status failed: {' '.join(result.stderr).strip()}")

        codes = [line[0] for line in result.stdout if line]
        if not codes or codes[0] not in self._TRACKED_CODES:
            return FileStatus.untracked(relative_path)

        return FileStatus(
            relative_path=relative_path,
            tracked=True,
            conflicted=False,
            index_eol="lf",
            worktree_eol="lf",
        )

    def fetch_baseline(self, handle: RepositoryHandle, path: Path) -> List[str]:
        relative_path = self.relativize(handle, path)
        try:
            result = run_command(
                ["hg", "cat", "-r", ".", "--", f"path:{relative_path}"],
                cwd=handle.root,
            )
        except UnicodeDecodeError as exc:
            raise BaselineUnavailableError(f"committed {relative_path} is not valid UTF-8: {exc}") from exc
        if result.exitcode != 0:
            raise BaselineUnavailableError(
                f"exit code from hg cat is non-zero ({result.exitcode})"
            )

        return result.stdout


VCS_BACKENDS: Dict[str, Type[VCSClient]] = {
    GitClient.name: GitClient,
    MercurialClient.name: MercurialClient,
}


def get_vcs_client(name: str) -> VCSClient:
    """Instantiate the backend registered under name."""

    try:
        backend = VCS_BACKENDS[name]
    except KeyError:
        raise UnsupportedCapabilityError(f"VCS {name} isn't supported") from None
    return backend()
