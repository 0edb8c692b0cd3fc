"""Bash-like brace expansion.

`{a,b}c` expands to `ac`, `bc` and `{1..3}` to `1`, `2`, `3`. Groups may be nested,
sequences may carry a step (`{0..10..5}`) and are zero padded if one of the bounds
is (`{01..10}`).
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Optional, Tuple

__all__ = ["expand"]

_ESC_SLASH = "\0SLASH\0"
_ESC_OPEN = "\0OPEN\0"
_ESC_CLOSE = "\0CLOSE\0"
_ESC_COMMA = "\0COMMA\0"
_ESC_PERIOD = "\0PERIOD\0"

_ESCAPES: Tuple[Tuple[str, str], ...] = (
    ("\\\\", _ESC_SLASH),
    ("\\{", _ESC_OPEN),
    ("\\}", _ESC_CLOSE),
    ("\\,", _ESC_COMMA),
    ("\\.", _ESC_PERIOD),
)
_UNESCAPES: Tuple[Tuple[str, str], ...] = (
    (_ESC_SLASH, "\\"),
    (_ESC_OPEN, "{"),
    (_ESC_CLOSE, "}"),
    (_ESC_COMMA, ","),
    (_ESC_PERIOD, "."),
)

_NUMERIC_SEQUENCE = re.compile(r"-?\d+\.\.-?\d+(?:\.\.-?\d+)?", re.ASCII)
_ALPHA_SEQUENCE = re.compile(r"[a-zA-Z]\.\.[a-zA-Z](?:\.\.-?\d+)?", re.ASCII)
_PADDED = re.compile(r"-?0\d", re.ASCII)
_JOINS_LATER_GROUP = re.compile(r",.*\}", re.DOTALL)


class _Balanced(NamedTuple):
    pre: str
    body: str
    post: str


def _balanced_range(text: str, start: str, end: str) -> Optional[Tuple[int, int]]:
    ai = text.find(start)
    bi = text.find(end, ai + 1)

    if ai < 0 or bi <= 0:
        return None

    begs: List[int] = []
    left = len(text)
    right: Optional[int] = None
    result: Optional[Tuple[int, int]] = None
    i = ai

    while i >= 0 and result is None:
        if i == ai:
            begs.append(i)
            ai = text.find(start, i + 1)
        elif len(begs) == 1:
            result = (begs.pop(), bi)
        else:
            beg = begs.pop()
            if beg < left:
                left = beg
                right = bi

            bi = text.find(end, i + 1)

        i = ai if 0 <= ai < bi else bi

    if begs and right is not None:
        result = (left, right)

    return result


def _balanced(text: str, start: str = "{", end: str = "}") -> Optional[_Balanced]:
    r = _balanced_range(text, start, end)
    if r is None:
        return None

    return _Balanced(text[: r[0]], text[r[0] + len(start) : r[1]], text[r[1] + len(end) :])


def _escape_braces(text: str) -> str:
    for s, r in _ESCAPES:
        text = text.replace(s, r)
    return text


def _unescape_braces(text: str) -> str:
    for s, r in _UNESCAPES:
        text = text.replace(s, r)
    return text


def _numeric(value: str) -> int:
    try:
        return int(value, 10)
    except ValueError:
        return ord(value[0])


def _parse_comma_parts(text: str) -> List[str]:
    if not text:
        return [""]

    m = _balanced(text)
    if m is None:
        return text.split(",")

    parts = m.pre.split(",")
    parts[-1] += "{" + m.body + "}"

    if m.post:
        post_parts = _parse_comma_parts(m.post)
        parts[-1] += post_parts.pop(0)
        parts.extend(post_parts)

    return parts


def _sequence(parts: List[str], is_alpha: bool) -> List[str]:
    x = _numeric(parts[0])
    y = _numeric(parts[1])

    incr = abs(_numeric(parts[2])) if len(parts) == 3 else 1
    if incr == 0:
        incr = 1

    descending = y < x
    if descending:
        incr = -incr

    pad = any(_PADDED.match(p) for p in parts)
    width = max(len(parts[0]), len(parts[1]))

    result: List[str] = []
    i = x
    while (i >= y) if descending else (i <= y):
        if is_alpha:
            c = chr(i)
            if c == "\\":
                c = ""
        else:
            c = str(i)
            if pad:
                need = width - len(c)
                if need > 0:
                    c = "-" + "0" * need + c[1:] if i < 0 else "0" * need + c

        result.append(c)
        i += incr

    return result


def _expand(text: str, is_top: bool = False) -> List[str]:
    m = _balanced(text)

    if m is None or m.pre.endswith("$"):
        return [text]

    is_alpha = _ALPHA_SEQUENCE.fullmatch(m.body) is not None
    is_sequence = is_alpha or _NUMERIC_SEQUENCE.fullmatch(m.body) is not None
    is_options = "," in m.body

    if not is_sequence and not is_options:
        # `{a}` stays literal, unless a later comma group makes it part of a bigger one
        if _JOINS_LATER_GROUP.search(m.post):
            return _expand("{" + m.body + _ESC_CLOSE + m.post)

        return [text]

    if is_sequence:
        parts = m.body.split("..")
    else:
        parts = _parse_comma_parts(m.body)

        if len(parts) == 1:
            # x{{a,b}}y -> x{a}y x{b}y
            parts = ["{" + s + "}" for s in _expand(parts[0])]

            if len(parts) == 1:
                post = _expand(m.post) if m.post else [""]
                return [m.pre + parts[0] + p for p in post]

    post = _expand(m.post) if m.post else [""]

    if is_sequence:
        values = _sequence(parts, is_alpha)
    else:
        values = [v for part in parts for v in _expand(part)]

    result: List[str] = []
    for value in values:
        for p in post:
            expansion = m.pre + value + p
            if not is_top or is_sequence or expansion:
                result.append(expansion)

    return result


def expand(pattern: str) -> List[str]:
    """Expands all brace groups of `pattern`, left to right and outer to inner.

    Returns `[pattern]` if there is nothing to expand. Escaped braces, commas, periods
    and backslashes are kept as literal text.
    """
    if not pattern:
        return [pattern]

    escaped = _escape_braces("\\{\\}" + pattern[2:] if pattern.startswith("{}") else pattern)
    if _balanced(escaped) is None:
        return [pattern]

    return [_unescape_braces(s) for s in _expand(escaped, True)]
