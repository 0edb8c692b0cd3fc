from __future__ import annotations

import asyncio
import dataclasses
import os
from typing import Any, List, Optional, Union

from .pattern import DEFAULT_OPTIONS, GLOBSTAR, CompiledAlternative, GlobOptions, GlobPattern
from .utils.logging import LoggingDescriptor
from .walker import WalkState, Walker, merge_results

__all__ = ["find"]

_logger = LoggingDescriptor(name=__name__)


def _walk_alternatives(glob: GlobPattern) -> List[CompiledAlternative]:
    if not glob.options.match_base:
        return glob.globset

    # a single segment pattern matches the basename anywhere below cwd
    return [(GLOBSTAR, *alternative) if len(alternative) == 1 else alternative for alternative in glob.globset]


async def find(
    pattern: str,
    cwd: Union[str, "os.PathLike[Any]", None] = None,
    dotfiles: bool = False,
    *,
    follow_symlinks: bool = False,
    options: Optional[GlobOptions] = None,
) -> List[str]:
    """Returns all paths below `cwd` that match the glob `pattern`.

    Relative patterns give paths relative to `cwd`, absolute patterns are rooted at
    `cwd`, which defaults to `/`. The result contains every path once, in no
    particular order. Unreadable or missing directories just contribute nothing.

    Args:
        pattern: the glob pattern, brace groups are expanded first
        cwd: directory to resolve the pattern against
        dotfiles: let wildcards and `**` match names starting with `.`
        follow_symlinks: let `**` descend into symbolic links to directories
        options: matching options, `nonull` returns `[pattern]` if nothing matched

    Raises:
        TypeError: if `pattern` is not a string
        PatternTooLongError: if `pattern` exceeds the maximum pattern length
    """
    if options is None:
        options = DEFAULT_OPTIONS

    walk_options = dataclasses.replace(options, nonegate=True, nocomment=True, dot=options.dot or dotfiles)

    glob = GlobPattern(pattern, walk_options)
    alternatives = _walk_alternatives(glob)

    state = WalkState(
        os.fspath(cwd) if cwd is not None else "/",
        dotfiles=walk_options.dot,
        follow_symlinks=follow_symlinks,
    )
    walker = Walker(state, walk_options)

    with _logger.measure_time(lambda: f"find {pattern!r} in {state.cwd!r}"):
        merged = merge_results(await asyncio.gather(*(walker.walk(a) for a in alternatives)))

    _logger.debug(lambda: f"{len(merged)} matches for {pattern!r}, {state.read_count} directory reads")

    if not merged and options.nonull:
        return [pattern]

    return list(merged)
