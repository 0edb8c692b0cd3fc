from .__version__ import __version__
from .brace_expansion import expand
from .glob import find
from .pattern import GlobError, GlobOptions, GlobPattern, PatternTooLongError, match

__all__ = [
    "GlobError",
    "GlobOptions",
    "GlobPattern",
    "PatternTooLongError",
    "__version__",
    "expand",
    "find",
    "match",
]
