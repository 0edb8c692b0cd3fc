import json
from pathlib import Path
from typing import Optional

import pytest
from click.testing import CliRunner

from globfind.__version__ import __version__
from globfind.cli import globfind
from globfind.cli.application import Application, ColoredOutput
from globfind.pattern import MAX_PATTERN_LENGTH
from globfind.utils.logging import LoggingDescriptor


def test_find_should_print_sorted_matches(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "**/a.txt"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["a.txt", "b/a.txt", "b/c/a.txt"]


def test_find_should_merge_multiple_patterns(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "*.txt", "b/c/*", "x.txt"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["a.txt", "b/c/a.txt", "b/c/d.js", "x.txt"]


def test_find_with_dot_should_include_hidden_entries(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "--dot", "*.txt"])

    assert result.exit_code == 0
    assert result.output.splitlines() == [".dot.txt", "a.txt", "x.txt"]


def test_find_should_leave_out_excluded_paths(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "**/a.txt", "-x", "b/**"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["a.txt"]


def test_ls_should_be_an_alias_for_find(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["ls", "-C", str(tree), "*.txt"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["a.txt", "x.txt"]


def test_find_without_matches_should_fail(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "*.nope"])

    assert result.exit_code == 1
    assert 'no files matching glob pattern "*.nope"' in result.output


def test_find_with_nonull_should_print_the_pattern(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "--nonull", "*.nope"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["*.nope"]


def test_find_with_too_long_pattern_should_be_a_usage_error(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "a" * (MAX_PATTERN_LENGTH + 1)])

    assert result.exit_code == 2
    assert "pattern is too long" in result.output


def test_json_format(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["--format", "json", "find", "-C", str(tree), "b/**/*.js"])

    assert result.exit_code == 0
    assert json.loads(result.output) == {"paths": ["b/c/d.js"]}


def test_toml_format(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["--format", "toml", "find", "-C", str(tree), "*.txt"])

    assert result.exit_code == 0
    assert result.output.startswith("paths = [")
    assert '"a.txt"' in result.output
    assert '"x.txt"' in result.output


def test_format_should_be_read_from_environment(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["expand", "{a,b}"], env={"GLOBFIND_FORMAT": "json-indent"})

    assert result.exit_code == 0
    assert json.loads(result.output) == {"expansions": ["a", "b"]}


def test_expand_should_print_all_expansions() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["expand", "file{1..3}.{txt,md}", "x"])

    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "file1.txt",
        "file1.md",
        "file2.txt",
        "file2.md",
        "file3.txt",
        "file3.md",
        "x",
    ]


def test_match_should_print_matching_arguments() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["match", "**/*.js", "a.js", "b/c.js", "d.txt"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["a.js", "b/c.js"]


def test_test_should_read_paths_from_stdin() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["test", "-i", "*.JS"], input="a.js\nb.txt\nC.js\n")

    assert result.exit_code == 0
    assert result.output.splitlines() == ["a.js", "C.js"]


def test_match_with_negated_pattern() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["match", "!*.js", "a.js", "b.txt"])

    assert result.exit_code == 0
    assert result.output.splitlines() == ["b.txt"]


def test_match_without_matches_should_fail() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["match", "*.js", "a.txt"])

    assert result.exit_code == 1
    assert 'no paths matching glob pattern "*.js"' in result.output


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_should_list_aliases() -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["--help"])

    assert result.exit_code == 0
    assert "Aliases" in result.output
    assert "ls" in result.output


def test_text_output_should_be_plain_if_not_a_terminal(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "*.txt"])

    assert result.exit_code == 0
    assert "\x1b" not in result.output
    assert result.output == "a.txt\nx.txt\n"


def test_errors_should_be_plain_if_not_a_terminal(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["find", "-C", str(tree), "*.nope"])

    assert result.exit_code == 1
    assert "\x1b" not in result.output


def test_forced_color_should_style_errors(tree: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(globfind, ["--color", "find", "-C", str(tree), "*.nope"])

    assert result.exit_code == 1
    assert "\x1b[" in result.output


@pytest.mark.parametrize(
    ("colored_output", "expected"),
    [(ColoredOutput.AUTO, None), (ColoredOutput.YES, True), (ColoredOutput.NO, False)],
)
def test_colored_should_defer_to_click_in_auto_mode(colored_output: ColoredOutput, expected: Optional[bool]) -> None:
    app = Application()
    app.config.colored_output = colored_output

    assert app.colored is expected


def test_log_options_should_only_configure_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(LoggingDescriptor, "_call_tracing_enabled", False)

    runner = CliRunner()
    result = runner.invoke(globfind, ["--log", "--log-level", "DEBUG", "--log-calls", "expand", "{a,b}"])

    assert result.exit_code == 0
    assert {"a", "b"} <= set(result.output.splitlines())
    assert not hasattr(Application().config, "log_enabled")
