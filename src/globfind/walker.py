from __future__ import annotations

import asyncio
import os
import stat
from enum import Enum
from typing import Awaitable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .pattern import (
    DEFAULT_OPTIONS,
    CompiledAlternative,
    GlobOptions,
    GlobStarSegment,
    LiteralSegment,
    Segment,
    match_segment,
)
from .utils.async_tools import run_in_thread
from .utils.logging import LoggingDescriptor

__all__ = ["DirEntries", "EntryInfo", "ResultSet", "WalkState", "Walker", "merge_results"]

ResultSet = Dict[str, bool]

_Ancestors = FrozenSet[str]
_NO_ANCESTORS: _Ancestors = frozenset()


class EntryInfo(Enum):
    NOT_FOUND = "not-found"
    FILE = "file"
    DIRECTORY = "directory"
    LINK_DIRECTORY = "link-directory"

    @property
    def exists(self) -> bool:
        return self is not EntryInfo.NOT_FOUND

    @property
    def is_dir(self) -> bool:
        return self in (EntryInfo.DIRECTORY, EntryInfo.LINK_DIRECTORY)


DirEntries = List[Tuple[str, EntryInfo]]


def merge_results(results: Iterable[ResultSet]) -> ResultSet:
    merged: ResultSet = {}
    for r in results:
        merged.update(r)
    return merged


def _entry_info(entry: os.DirEntry[str]) -> EntryInfo:
    try:
        if entry.is_symlink():
            return EntryInfo.LINK_DIRECTORY if entry.is_dir() else EntryInfo.FILE
        return EntryInfo.DIRECTORY if entry.is_dir(follow_symlinks=False) else EntryInfo.FILE
    except OSError:
        return EntryInfo.FILE


def _scan_dir(path: str) -> DirEntries:
    with os.scandir(path) as it:
        return [(entry.name, _entry_info(entry)) for entry in it]


def _path_info(path: str) -> EntryInfo:
    try:
        st = os.lstat(path)
    except (OSError, ValueError):
        return EntryInfo.NOT_FOUND

    if stat.S_ISLNK(st.st_mode):
        try:
            st = os.stat(path)
        except OSError:
            # dangling link, the entry itself exists
            return EntryInfo.FILE
        return EntryInfo.LINK_DIRECTORY if stat.S_ISDIR(st.st_mode) else EntryInfo.FILE

    return EntryInfo.DIRECTORY if stat.S_ISDIR(st.st_mode) else EntryInfo.FILE


class WalkState:
    """Mutable state shared by all branches of one `find` call.

    Both caches are write once per key: a key goes from absent to pending (a task) to
    resolved and is never replaced, so concurrent branches asking for the same
    directory share a single read.
    """

    _logger = LoggingDescriptor()

    def __init__(self, cwd: str = "/", dotfiles: bool = False, follow_symlinks: bool = False) -> None:
        self.cwd = cwd
        self.dotfiles = dotfiles
        self.follow_symlinks = follow_symlinks

        self.path_cache: Dict[str, asyncio.Task[Optional[DirEntries]]] = {}
        self.existence_cache: Dict[str, Union[EntryInfo, asyncio.Future[EntryInfo]]] = {}
        self.read_count = 0

    def make_abs(self, path: str) -> str:
        # absolute patterns are rooted at cwd
        return os.path.normpath(os.path.join(self.cwd, path.lstrip("/")))

    def result_path(self, path: str) -> str:
        if path.startswith("/"):
            return self.cwd.rstrip("/") + path
        return path

    def cached_info(self, path: str) -> Optional[EntryInfo]:
        cached = self.existence_cache.get(path)
        if isinstance(cached, EntryInfo):
            return cached
        if cached is not None and cached.done():
            return cached.result()
        return None

    def _set_info(self, path: str, info: EntryInfo) -> None:
        self.existence_cache.setdefault(path, info)

    async def list_dir(self, path: str) -> Optional[DirEntries]:
        """Returns `(name, kind)` pairs for the entries of the directory `path`, or `None` if it can't be listed."""
        task = self.path_cache.get(path)
        if task is None:
            task = asyncio.ensure_future(self._read_dir(path))
            self.path_cache[path] = task

        return await task

    async def _read_dir(self, path: str) -> Optional[DirEntries]:
        self.read_count += 1
        self._logger.trace(lambda: f"read directory {path!r}")

        try:
            entries = await run_in_thread(_scan_dir, path)
        except FileNotFoundError:
            self._set_info(path, EntryInfo.NOT_FOUND)
            return None
        except NotADirectoryError:
            self._set_info(path, EntryInfo.FILE)
            return None
        except (OSError, ValueError) as e:
            self._logger.warning(lambda: f"can't read directory {path!r}: {e}")
            return None

        self._set_info(path, EntryInfo.DIRECTORY)

        for name, info in entries:
            self._set_info(os.path.join(path, name), info)

        return entries

    async def info(self, path: str) -> EntryInfo:
        cached = self.existence_cache.get(path)
        if cached is None:
            cached = run_in_thread(_path_info, path)
            self.existence_cache[path] = cached

        if isinstance(cached, EntryInfo):
            return cached

        return await cached

    async def realpath(self, path: str) -> str:
        return await run_in_thread(os.path.realpath, path)


def _join(prefix: Optional[str], name: str) -> str:
    if prefix is None:
        return name
    if prefix.endswith("/"):
        return prefix + name
    return prefix + "/" + name


class Walker:
    """Resolves compiled alternatives against the filesystem.

    Leading literal segments are joined into a prefix without listing anything, the
    first non literal segment lists the prefix directory, and `**` branches into
    "stop here", "stop below each entry" and "continue below each entry".
    """

    _logger = LoggingDescriptor()

    def __init__(self, state: WalkState, options: GlobOptions = DEFAULT_OPTIONS) -> None:
        self.state = state
        self.options = options

    async def walk(self, alternative: CompiledAlternative) -> ResultSet:
        if len(alternative) > 1 and alternative[0] == LiteralSegment(""):
            return await self._process(alternative[1:], "/", _NO_ANCESTORS)

        return await self._process(alternative, None, _NO_ANCESTORS)

    async def _gather(self, branches: Iterable[Awaitable[ResultSet]]) -> ResultSet:
        return merge_results(await asyncio.gather(*branches))

    async def _process(self, segments: Sequence[Segment], prefix: Optional[str], ancestors: _Ancestors) -> ResultSet:
        n = 0
        while n < len(segments):
            segment = segments[n]
            if not isinstance(segment, LiteralSegment):
                break
            prefix = _join(prefix, segment.text)
            n += 1

        remain = segments[n:]
        if not remain:
            return await self._process_simple(prefix)

        path = self.state.make_abs("." if prefix is None else prefix)

        entries = await self.state.list_dir(path)
        if entries is None:
            return {}

        if isinstance(remain[0], GlobStarSegment):
            return await self._process_globstar(remain, prefix, path, entries, ancestors)

        return await self._process_list(remain, prefix, entries, ancestors)

    async def _process_simple(self, prefix: Optional[str]) -> ResultSet:
        # an empty prefix is cwd itself, reached by `**/` matching zero segments
        if not prefix:
            return {}

        info = await self.state.info(self.state.make_abs(prefix))

        if not info.exists or (prefix.endswith("/") and not info.is_dir):
            return {}

        return {self.state.result_path(prefix): True}

    async def _process_list(
        self, remain: Sequence[Segment], prefix: Optional[str], entries: DirEntries, ancestors: _Ancestors
    ) -> ResultSet:
        segment = remain[0]
        matches = [name for name, _ in entries if match_segment(name, segment, self.options)]

        if not matches:
            return {}

        if len(remain) == 1:
            return {self.state.result_path(_join(prefix, m)): True for m in matches}

        rest = remain[1:]
        return await self._gather(self._process(rest, _join(prefix, m), ancestors) for m in matches)

    async def _process_globstar(
        self, remain: Sequence[Segment], prefix: Optional[str], path: str, entries: DirEntries, ancestors: _Ancestors
    ) -> ResultSet:
        child_ancestors = ancestors
        if self.state.follow_symlinks:
            real = await self.state.realpath(path)
            if real in ancestors:
                self._logger.debug(lambda: f"symlink cycle at {path!r}, skipped")
                return {}
            child_ancestors = ancestors | {real}

        rest = remain[1:]

        # ** matches zero segments
        branches = [self._process(rest, prefix, ancestors)]

        for name, info in entries:
            if name.startswith(".") and not self.options.dot:
                continue

            child = _join(prefix, name)
            is_dir = info.is_dir

            # ** ends at this entry
            if not rest or is_dir:
                branches.append(self._process(rest, child, child_ancestors))

            # ** continues below this entry, symlinked directories only if followed
            if is_dir and (info is not EntryInfo.LINK_DIRECTORY or self.state.follow_symlinks):
                branches.append(self._process(remain, child, child_ancestors))

        return await self._gather(branches)
