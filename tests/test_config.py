import textwrap

from format_modifications.config import BASE_CONFIG, load_project_config, merge_config
from format_modifications.diff_engine import difflib_diff, git_diff
from format_modifications.dispatch import dispatch_format
from format_modifications.errors import ConfigError, UnsupportedCapabilityError


def test_base_config_defaults():
    assert BASE_CONFIG.diff_callback is git_diff
    assert BASE_CONFIG.format_callback is dispatch_format
    assert BASE_CONFIG.format_on_save is False
    assert BASE_CONFIG.vcs == "git"
    assert BASE_CONFIG.empty_line_handling is False


def test_merge_config_overrides_only_given_keys():
    config = merge_config({"format_on_save": True, "vcs": "hg"})

    assert config.format_on_save is True
    assert config.vcs == "hg"
    assert config.diff_callback is git_diff
    assert BASE_CONFIG.format_on_save is False


def test_merge_config_resolves_diff_engine_names():
    assert merge_config({"diff_callback": "difflib"}).diff_callback is difflib_diff

    try:
        merge_config({"diff_callback": "myers"})
    except UnsupportedCapabilityError as exc:
        assert "diff engine myers isn't supported" in str(exc)
    else:
        raise AssertionError("expected UnsupportedCapabilityError to be raised")


def test_merge_config_rejects_deprecated_diff_options():
    try:
        merge_config({"diff_options": {"algorithm": "patience"}})
    except ConfigError as exc:
        assert str(exc) == "diff_options is deprecated, use diff_callback instead"
    else:
        raise AssertionError("expected ConfigError to be raised")


def test_merge_config_rejects_unknown_keys():
    try:
        merge_config({"fromat_on_save": True, "colour": "red"})
    except ConfigError as exc:
        assert "unknown configuration keys: colour, fromat_on_save" in str(exc)
    else:
        raise AssertionError("expected ConfigError to be raised")


def test_merge_config_validates_max_passes():
    assert merge_config({"max_passes": None}).max_passes is None
    assert merge_config({"max_passes": 5}).max_passes == 5

    for bad in (0, -1, "3", True):
        try:
            merge_config({"max_passes": bad})
        except ConfigError as exc:
            assert "max_passes must be a positive integer" in str(exc)
        else:
            raise AssertionError(f"expected ConfigError for {bad!r}")


def test_load_project_config_reads_tool_table(tmp_path):
    (tmp_path / "pyproject.toml").write_text(
        textwrap.dedent(
            """\
            [project]
            name = "demo"

            [tool.format-modifications]
            formatter = "black -q --line-ranges={start}-{end} -"
            diff = "difflib"
            empty-line-handling = true
            max-passes = 10
            """
        )
    )
    nested = tmp_path / "src" / "demo"
    nested.mkdir(parents=True)

    settings = load_project_config(nested / "mod.py")

    assert settings == {
        "formatter": "black -q --line-ranges={start}-{end} -",
        "diff_callback": "difflib",
        "empty_line_handling": True,
        "max_passes": 10,
    }

    settings.pop("formatter")
    config = merge_config(settings)
    assert config.diff_callback is difflib_diff
    assert config.empty_line_handling is True


def test_load_project_config_without_table(tmp_path):
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n')

    assert load_project_config(tmp_path / "mod.py") == {}


def test_load_project_config_reports_invalid_toml(tmp_path):
    (tmp_path / "pyproject.toml").write_text("[tool.format-modifications\n")

    try:
        load_project_config(tmp_path / "mod.py")
    except ConfigError as exc:
        assert "cannot parse" in str(exc)
    else:
        raise AssertionError("expected ConfigError to be raised")
