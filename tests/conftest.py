import shlex
import sys
import textwrap
from pathlib import Path

import pytest


UPPERCASE_FORMATTER = textwrap.dedent(
    """\
    import sys

    text = sys.stdin.read()
    lines = text.split("\\n")
    start, end = 1, len(lines)
    for arg in sys.argv[1:]:
        if arg.startswith("--lines="):
            first, last = arg[len("--lines="):].split("-")
            start, end = int(first), int(last)
        elif arg == "--fail":
            sys.stderr.write("syntax error on line 1\\n")
            sys.exit(3)
    for i in range(start - 1, min(end, len(lines))):
        lines[i] = lines[i].upper()
    sys.stdout.write("\\n".join(lines))
    """
)


@pytest.fixture
def uppercase_command(tmp_path: Path) -> str:
    """
    A formatter command that uppercases the requested lines.

    Pass "--lines={start}-{end}" to restrict it to a range.
    """

    script = tmp_path / "uppercase_formatter.py"
    script.write_text(UPPERCASE_FORMATTER)
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"
