import dataclasses

from format_modifications.config import Config
from format_modifications.dispatch import CallableFormatter, CommandFormatter
from format_modifications.errors import UnsupportedCapabilityError
from format_modifications.preflight import validate_attachment


def _formatter(*, supports_range_formatting: bool = True) -> CallableFormatter:
    return CallableFormatter(
        lambda document, format_range: None,
        name="fmt",
        supports_range_formatting=supports_range_formatting,
    )


def test_validate_attachment_rejects_whole_file_formatter():
    try:
        validate_attachment(_formatter(supports_range_formatting=False), Config())
    except UnsupportedCapabilityError as exc:
        assert "formatter fmt does not support range formatting" in str(exc)
    else:
        raise AssertionError("expected UnsupportedCapabilityError to be raised")


def test_validate_attachment_rejects_command_without_range_placeholders():
    try:
        validate_attachment(CommandFormatter("gofmt"), Config())
    except UnsupportedCapabilityError as exc:
        assert "formatter gofmt does not support range formatting" in str(exc)
    else:
        raise AssertionError("expected UnsupportedCapabilityError to be raised")


def test_validate_attachment_rejects_unknown_vcs():
    try:
        validate_attachment(_formatter(), Config(vcs="svn"))
    except UnsupportedCapabilityError as exc:
        assert "VCS svn isn't supported" in str(exc)
    else:
        raise AssertionError("expected UnsupportedCapabilityError to be raised")


def test_validate_attachment_reports_every_problem():
    config = dataclasses.replace(Config(vcs="cvs"), diff_callback="git")

    try:
        validate_attachment(_formatter(supports_range_formatting=False), config)
    except UnsupportedCapabilityError as exc:
        message = str(exc)
        assert message.startswith("failed checks: ")
        assert "does not support range formatting" in message
        assert "VCS cvs isn't supported" in message
        assert "diff_callback is not callable" in message
    else:
        raise AssertionError("expected UnsupportedCapabilityError to be raised")


def test_validate_attachment_accepts_supported_setup():
    validate_attachment(_formatter(), Config())
    validate_attachment(_formatter(), Config(vcs="hg"))
    validate_attachment(CommandFormatter("black -q --line-ranges={start}-{end} -"), Config())
