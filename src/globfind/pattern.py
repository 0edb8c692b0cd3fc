from __future__ import annotations

import dataclasses
import functools
import re
import warnings
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from .brace_expansion import expand
from .utils.logging import LoggingDescriptor

__all__ = [
    "GLOBSTAR",
    "INVALID",
    "CompiledAlternative",
    "GlobError",
    "GlobOptions",
    "GlobPattern",
    "GlobStarSegment",
    "InvalidSegment",
    "LiteralSegment",
    "MatcherSegment",
    "PatternTooLongError",
    "Segment",
    "compile_alternative",
    "compile_segment",
    "match",
    "match_segment",
]

MAX_PATTERN_LENGTH = 1024 * 64

QMARK = "[^/]"
STAR = QMARK + "*?"

# a leading `.` has to be matched explicitly
_NO_DOT_START = r"(?!\.)"
# with `dot` set, `.` and `..` are still never matched by a wildcard
_DOT_START = r"(?!(?:^|/)\.{1,2}(?:$|/))"

_RE_SPECIAL = frozenset("().*{}+?[]^$\\!")

_PATH_SEPARATORS = re.compile(r"/+")
_HAS_BRACES = re.compile(r"\{.*\}", re.DOTALL)
_UNESCAPED_PIPES = re.compile(r"((?:\\{2}){0,64})(\\?)\|")
_CLOSING_PAREN = re.compile(r"\)[+*?]?")
_GLOB_ESCAPE = re.compile(r"\\(.)", re.DOTALL)

_PL_OPEN = {"!": "(?:(?!(?:", "?": "(?:", "+": "(?:", "*": "(?:", "@": "(?:"}
_PL_CLOSE = {"!": "))[^/]*?)", "?": ")?", "+": ")+", "*": ")*", "@": ")"}

_logger = LoggingDescriptor(name=__name__)


class GlobError(Exception):
    pass


class PatternTooLongError(GlobError, ValueError):
    pass


@dataclass(frozen=True)
class GlobOptions:
    nocase: bool = False
    dot: bool = False
    match_base: bool = False
    noglobstar: bool = False
    nobrace: bool = False
    nonegate: bool = False
    flip_negate: bool = False
    nonull: bool = False
    noext: bool = False
    nocomment: bool = False


DEFAULT_OPTIONS = GlobOptions()


@dataclass(frozen=True)
class LiteralSegment:
    text: str

    def test(self, name: str, nocase: bool = False) -> bool:
        if nocase:
            return name.lower() == self.text.lower()
        return name == self.text


class GlobStarSegment:
    __slots__ = ()

    def __repr__(self) -> str:
        return "GLOBSTAR"


class InvalidSegment:
    __slots__ = ()

    def __repr__(self) -> str:
        return "INVALID"


GLOBSTAR = GlobStarSegment()
INVALID = InvalidSegment()


@dataclass(frozen=True)
class MatcherSegment:
    glob: str
    regex: re.Pattern[str] = dataclasses.field(compare=False)

    @property
    def source(self) -> str:
        return self.regex.pattern

    @property
    def nocase(self) -> bool:
        return bool(self.regex.flags & re.IGNORECASE)

    def test(self, name: str, dot: bool = False) -> bool:
        if name.startswith(".") and not (dot or self.glob.startswith(".")):
            return False
        return self.regex.match(name) is not None

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(glob={self.glob!r}, source={self.source!r})"


Segment = Union[LiteralSegment, GlobStarSegment, MatcherSegment, InvalidSegment]
CompiledAlternative = Tuple[Segment, ...]


def match_segment(name: str, segment: Segment, options: GlobOptions = DEFAULT_OPTIONS) -> bool:
    """Decides if a single directory entry name matches one compiled segment."""
    if isinstance(segment, LiteralSegment):
        return segment.test(name, options.nocase)
    if isinstance(segment, MatcherSegment):
        return segment.test(name, options.dot)
    if isinstance(segment, InvalidSegment):
        return False

    raise TypeError("a globstar segment can't be tested against a single name")


def _glob_unescape(s: str) -> str:
    return _GLOB_ESCAPE.sub(r"\1", s)


@dataclass
class _PatternList:
    type: str
    re_start: int
    open: str
    close: str
    re_end: int = -1


def _translate(pattern: str, options: GlobOptions, is_sub: bool) -> Tuple[Optional[str], bool]:
    """Translates one path segment into regular expression source.

    Returns the source and whether the segment has any magic at all, or `None` as
    source if the segment contains a path separator.
    """
    pattern_lists: List[_PatternList] = []
    negative_lists: List[_PatternList] = []

    source = ""
    has_magic = options.nocase
    escaping = False
    in_class = False
    class_start = -1
    re_class_start = -1
    state_char: Optional[str] = None

    if pattern.startswith("."):
        pattern_start = ""
    elif options.dot:
        pattern_start = _DOT_START
    else:
        pattern_start = _NO_DOT_START

    def clear_state_char() -> None:
        nonlocal source, has_magic, state_char

        if state_char == "*":
            source += STAR
            has_magic = True
        elif state_char == "?":
            source += QMARK
            has_magic = True
        elif state_char:
            source += "\\" + state_char
        state_char = None

    for i, c in enumerate(pattern):
        if c == "/":
            return None, False

        if escaping:
            source += "\\|" if c == "|" else re.escape(c)
            escaping = False
            continue

        if c == "\\":
            clear_state_char()
            escaping = True

        elif c in "?*+@!":
            if in_class:
                source += "^" if c == "!" and i == class_start + 1 else c
                continue

            clear_state_char()
            state_char = c

            if options.noext:
                clear_state_char()

        elif c == "(":
            if in_class:
                source += "("
            elif not state_char:
                source += "\\("
            else:
                pattern_lists.append(
                    _PatternList(
                        type=state_char,
                        re_start=len(source),
                        open=_PL_OPEN[state_char],
                        close=_PL_CLOSE[state_char],
                    )
                )
                source += _PL_OPEN[state_char]
                state_char = None

        elif c == ")":
            if in_class or not pattern_lists:
                source += "\\)"
                continue

            clear_state_char()
            has_magic = True
            pl = pattern_lists.pop()
            source += pl.close
            pl.re_end = len(source)
            if pl.type == "!":
                negative_lists.append(pl)

        elif c == "|":
            if in_class or not pattern_lists:
                source += "\\|"
                continue

            clear_state_char()
            source += "|"

        elif c == "[":
            clear_state_char()

            if in_class:
                source += "\\["
                continue

            in_class = True
            class_start = i
            re_class_start = len(source)
            source += "["

        elif c == "]":
            if i == class_start + 1 or not in_class:
                source += "\\]"
                continue

            class_body = pattern[class_start + 1 : i]
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", FutureWarning)
                    re.compile("[" + class_body + "]")
            except re.error:
                # not a valid class, take the brackets literally
                sub_source, sub_magic = _translate(class_body, options, True)
                source = source[:re_class_start] + "\\[" + (sub_source or "") + "\\]"
                has_magic = has_magic or sub_magic
                in_class = False
                continue

            has_magic = True
            in_class = False
            source += "]"

        else:
            clear_state_char()

            if c in _RE_SPECIAL and not (c == "^" and in_class):
                source += "\\"
            source += c

    if in_class:
        # unterminated class
        sub_source, sub_magic = _translate(pattern[class_start + 1 :], options, True)
        source = source[:re_class_start] + "\\[" + (sub_source or "")
        has_magic = has_magic or sub_magic

    # unclosed pattern lists are taken literally
    while pattern_lists:
        pl = pattern_lists.pop()
        tail = _UNESCAPED_PIPES.sub(
            lambda m: m.group(1) * 2 + (m.group(2) or "\\") + "|",
            source[pl.re_start + len(pl.open) :],
        )
        t = STAR if pl.type == "*" else QMARK if pl.type == "?" else "\\" + pl.type
        has_magic = True
        source = source[: pl.re_start] + t + "\\(" + tail

    clear_state_char()

    if escaping:
        source += "\\\\"

    add_pattern_start = source[:1] in (".", "[", "(")

    # !(x) must not match if the rest of the segment could follow x, so the lookahead
    # is moved in front of everything after the group
    for nl in reversed(negative_lists):
        split = nl.re_end - len(nl.close) + 1
        nl_before = source[: nl.re_start]
        nl_first = source[nl.re_start : split]
        nl_last = source[split : nl.re_end]
        nl_after = source[nl.re_end :]

        nl_last += nl_after

        for _ in range(nl_before.count("(")):
            nl_after = _CLOSING_PAREN.sub("", nl_after, count=1)

        dollar = "$" if nl_after == "" and not is_sub else ""

        source = nl_before + nl_first + nl_after + dollar + nl_last

    if source and has_magic:
        source = "(?=.)" + source

    if add_pattern_start:
        source = pattern_start + source

    return source, has_magic


@functools.lru_cache(maxsize=1024)
def compile_segment(pattern: str, options: GlobOptions = DEFAULT_OPTIONS) -> Segment:
    """Compiles a single path segment (no `/`) into a segment program."""
    if len(pattern) > MAX_PATTERN_LENGTH:
        raise PatternTooLongError("pattern is too long")

    if not options.noglobstar and pattern == "**":
        return GLOBSTAR

    if pattern == "":
        return LiteralSegment("")

    source, has_magic = _translate(pattern, options, False)

    if source is None:
        return INVALID

    if not has_magic:
        return LiteralSegment(_glob_unescape(pattern))

    flags = re.DOTALL | (re.IGNORECASE if options.nocase else 0)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FutureWarning)
            regex = re.compile("^" + source + "$", flags)
    except re.error:
        return INVALID

    return MatcherSegment(pattern, regex)


@_logger.call
def compile_alternative(alternative: str, options: GlobOptions = DEFAULT_OPTIONS) -> CompiledAlternative:
    return tuple(compile_segment(s, options) for s in _PATH_SEPARATORS.split(alternative))


def brace_expand(pattern: str, options: GlobOptions = DEFAULT_OPTIONS) -> List[str]:
    if options.nobrace or not _HAS_BRACES.search(pattern):
        return [pattern]

    return expand(pattern)


def _is_hidden_segment(name: str, options: GlobOptions) -> bool:
    return name in (".", "..") or (not options.dot and name.startswith("."))


def _match_one(parts: Sequence[str], segments: CompiledAlternative, partial: bool, options: GlobOptions) -> bool:
    file_len = len(parts)
    pattern_len = len(segments)

    fi = pi = 0
    while fi < file_len and pi < pattern_len:
        p = segments[pi]
        f = parts[fi]

        if isinstance(p, InvalidSegment):
            return False

        if isinstance(p, GlobStarSegment):
            fr = fi
            pr = pi + 1

            if pr == pattern_len:
                # a trailing ** swallows the rest, but never a dot segment
                return not any(_is_hidden_segment(rest, options) for rest in parts[fi:])

            while fr < file_len:
                swallowee = parts[fr]

                if _match_one(parts[fr:], segments[pr:], partial, options):
                    return True

                if _is_hidden_segment(swallowee, options):
                    break

                fr += 1

            return partial and fr == file_len

        if isinstance(p, LiteralSegment):
            hit = p.test(f, options.nocase)
        else:
            hit = p.regex.match(f) is not None

        if not hit:
            return False

        fi += 1
        pi += 1

    if fi == file_len and pi == pattern_len:
        return True
    if fi == file_len:
        return partial

    # "a/b/" matches the pattern "a/b"
    return fi == file_len - 1 and parts[fi] == ""


class GlobPattern:
    """A glob pattern compiled into one segment list per brace alternative.

    Leading `!` characters negate the pattern unless `nonegate` is set. A pattern that
    starts with `#` is a comment and matches nothing unless `nocomment` is set.
    """

    def __init__(self, pattern: str, options: Optional[GlobOptions] = None) -> None:
        if not isinstance(pattern, str):
            raise TypeError("glob pattern string required")

        if len(pattern) > MAX_PATTERN_LENGTH:
            raise PatternTooLongError("pattern is too long")

        self.options = options if options is not None else DEFAULT_OPTIONS

        self.negate, self.pattern = self._parse_negate(pattern.strip(), self.options)
        self.comment = not self.options.nocomment and self.pattern.startswith("#")
        self.empty = self.pattern == ""

        self.globset: List[CompiledAlternative] = []
        if not self.comment and not self.empty:
            for alternative in brace_expand(self.pattern, self.options):
                compiled = compile_alternative(alternative, self.options)
                if INVALID not in compiled:
                    self.globset.append(compiled)

    @staticmethod
    def _parse_negate(pattern: str, options: GlobOptions) -> Tuple[bool, str]:
        if options.nonegate:
            return False, pattern

        stripped = pattern.lstrip("!")
        return (len(pattern) - len(stripped)) % 2 == 1, stripped

    @property
    def has_magic(self) -> bool:
        return any(not isinstance(s, LiteralSegment) for alternative in self.globset for s in alternative)

    def matches(self, path: str, partial: bool = False) -> bool:
        if self.comment:
            return False
        if self.empty:
            return path == ""

        parts = _PATH_SEPARATORS.split(path)
        filename = next((p for p in reversed(parts) if p), "")

        for alternative in self.globset:
            file_parts = [filename] if self.options.match_base and len(alternative) == 1 else parts

            if _match_one(file_parts, alternative, partial, self.options):
                return True if self.options.flip_negate else not self.negate

        return False if self.options.flip_negate else self.negate

    def filter(self, paths: Sequence[str]) -> List[str]:
        result = [p for p in paths if self.matches(p)]

        if self.options.nonull and not result:
            return [self.pattern]

        return result

    def __str__(self) -> str:
        return self.pattern

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(pattern={self.pattern!r}, negate={self.negate!r})"


def match(pattern: str, paths: Sequence[str], options: Optional[GlobOptions] = None) -> List[str]:
    """Returns the paths that match `pattern`, without touching the filesystem."""
    return GlobPattern(pattern, options).filter(paths)
