import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

import click

from ..__version__ import __version__
from ..brace_expansion import expand as brace_expand
from ..glob import find as glob_find
from ..pattern import GlobError, GlobOptions, GlobPattern
from ..utils.logging import LoggingDescriptor
from .application import Application, ColoredOutput, OutputFormat, pass_application
from .click_helper.aliases import AliasedCommand, AliasedGroup
from .click_helper.types import EnumChoice, add_options

__all__ = ["globfind"]

_logger = LoggingDescriptor(name=__package__)

MATCH_OPTIONS = (
    click.option("--dot", is_flag=True, help="Let wildcards and `**` match names starting with a dot."),
    click.option("-i", "--nocase", is_flag=True, help="Match case insensitive."),
    click.option(
        "--match-base",
        is_flag=True,
        help="Patterns without a slash match the basename of a path at any depth.",
    ),
    click.option("--no-globstar", is_flag=True, help="Treat `**` like `*`."),
    click.option("--no-brace", is_flag=True, help="Do not expand `{a,b}` and `{1..3}` groups."),
    click.option("--no-ext", is_flag=True, help="Disable extglob groups like `+(a|b)`."),
    click.option("--nonull", is_flag=True, help="Print the pattern itself if nothing matches."),
)


def _glob_options(
    dot: bool,
    nocase: bool,
    match_base: bool,
    no_globstar: bool,
    no_brace: bool,
    no_ext: bool,
    nonull: bool,
    **kwargs: bool,
) -> GlobOptions:
    return GlobOptions(
        dot=dot,
        nocase=nocase,
        match_base=match_base,
        noglobstar=no_globstar,
        nobrace=no_brace,
        noext=no_ext,
        nonull=nonull,
        **kwargs,
    )


@click.group(
    cls=AliasedGroup,
    context_settings={"auto_envvar_prefix": "GLOBFIND"},
    invoke_without_command=False,
)
@click.option(
    "-f",
    "--format",
    "format",
    type=EnumChoice(OutputFormat),
    default=None,
    help="Set the output format.",
    show_default=True,
)
@click.option(
    "--color / --no-color",
    "color",
    default=None,
    help="Whether or not to display colored output (default is auto-detection).",
    show_envvar=True,
)
@click.option("-v", "--verbose", is_flag=True, help="Enables verbose mode.", show_envvar=True)
@click.option("--log", is_flag=True, help="Enables logging.", show_envvar=True)
@click.option(
    "--log-level",
    type=click.Choice(["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Sets the log level.",
    default="CRITICAL",
    show_default=True,
    show_envvar=True,
)
@click.option("--log-calls", is_flag=True, help="Enables logging of function calls.", show_envvar=True)
@click.version_option(version=__version__, prog_name="globfind")
@pass_application
def globfind(
    app: Application,
    format: Optional[OutputFormat],
    color: Optional[bool],
    verbose: bool,
    log: bool,
    log_level: str,
    log_calls: bool,
) -> None:
    """Find files with shell style glob patterns.

    Supports `*`, `?`, `[...]` classes, `**` for any number of directories,
    `{a,b}` and `{1..9}` brace expansion and extglob groups like `+(a|b)`.
    """
    app.config.output_format = format
    app.config.verbose = verbose

    if color is None:
        app.config.colored_output = ColoredOutput.AUTO
    elif color:
        app.config.colored_output = ColoredOutput.YES
    else:
        app.config.colored_output = ColoredOutput.NO

    if log:
        if log_calls:
            LoggingDescriptor.set_call_tracing(True)

        logging.basicConfig(level=log_level, format="%(name)s:%(levelname)s: %(message)s")


async def _find_all(
    patterns: Sequence[str], cwd: str, options: GlobOptions, follow_symlinks: bool
) -> List[Tuple[str, List[str]]]:
    results = await asyncio.gather(
        *(glob_find(p, cwd, options.dot, follow_symlinks=follow_symlinks, options=options) for p in patterns)
    )
    return list(zip(patterns, results))


@globfind.command(cls=AliasedCommand, aliases=["ls"])
@click.argument("patterns", nargs=-1, required=True)
@click.option(
    "-C",
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    default=".",
    show_default=True,
    help="Directory the patterns are resolved against.",
)
@add_options(*MATCH_OPTIONS)
@click.option("--follow-symlinks", is_flag=True, help="Let `**` descend into symbolic links to directories.")
@click.option(
    "-x",
    "--exclude",
    "excludes",
    multiple=True,
    metavar="PATTERN",
    help="Leave out paths matching this pattern. Can be specified multiple times.",
)
@pass_application
def find(
    app: Application,
    patterns: Tuple[str, ...],
    cwd: str,
    follow_symlinks: bool,
    excludes: Tuple[str, ...],
    **kwargs: bool,
) -> None:
    """Prints all paths matching one of the PATTERNS.

    \b
    Examples:
      globfind find 'src/**/*.py'
      globfind find -C tests '*Test.{py,txt}' -x '**/fixtures/**'
    """
    options = _glob_options(**kwargs)

    try:
        exclude_patterns = [GlobPattern(e, GlobOptions(dot=True, nocase=options.nocase)) for e in excludes]
        results = asyncio.run(_find_all(patterns, cwd, options, follow_symlinks))
    except GlobError as e:
        raise click.UsageError(str(e)) from e

    paths = {}
    for pattern, found in results:
        app.verbose(lambda: f"{pattern!r}: {len(found)} matches")
        for path in found:
            if not any(e.matches(path) for e in exclude_patterns):
                paths[path] = True

    if not paths:
        for pattern in patterns:
            app.error(f'no files matching glob pattern "{pattern}"')
        app.exit(1)

    app.print_items("paths", sorted(paths))


@globfind.command()
@click.argument("patterns", nargs=-1, required=True)
@pass_application
def expand(app: Application, patterns: Tuple[str, ...]) -> None:
    """Prints the brace expansion of the PATTERNS.

    \b
    Examples:
      globfind expand 'file{1..3}.{txt,md}'
    """
    result: List[str] = []
    for pattern in patterns:
        result.extend(brace_expand(pattern))

    app.print_items("expansions", result)


@globfind.command(cls=AliasedCommand, aliases=["test"])
@click.argument("pattern")
@click.argument("paths", nargs=-1)
@add_options(*MATCH_OPTIONS)
@click.option("--no-negate", is_flag=True, help="A leading `!` is part of the pattern.")
@click.option("--flip-negate", is_flag=True, help="Return matches of a negated pattern instead of non matches.")
@pass_application
def match(
    app: Application,
    pattern: str,
    paths: Tuple[str, ...],
    no_negate: bool,
    flip_negate: bool,
    **kwargs: bool,
) -> None:
    """Prints the PATHS that match PATTERN without looking at the filesystem.

    If no PATHS are given, they are read from stdin, one per line.
    """
    options = _glob_options(nonegate=no_negate, flip_negate=flip_negate, **kwargs)

    if not paths:
        paths = tuple(line.rstrip("\r\n") for line in click.get_text_stream("stdin"))

    try:
        glob = GlobPattern(pattern, options)
    except GlobError as e:
        raise click.UsageError(str(e)) from e

    _logger.debug(lambda: f"{glob!r} compiled to {glob.globset!r}")

    matched = glob.filter(paths)

    if not matched:
        app.error(f'no paths matching glob pattern "{pattern}"')
        app.exit(1)

    app.print_items("paths", matched)
