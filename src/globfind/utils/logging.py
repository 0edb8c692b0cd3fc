from __future__ import annotations

import functools
import inspect
import logging
import os
import reprlib
import time
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    ClassVar,
    Iterator,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
    cast,
    overload,
)

__all__ = ["TRACE", "LoggingDescriptor"]


TRACE = logging.DEBUG - 6
logging.addLevelName(TRACE, "TRACE")

_F = TypeVar("_F", bound=Callable[..., Any])

_MessageType = Union[str, Callable[[], str]]

_repr = reprlib.Repr()
_repr.maxother = 100


class LoggerError(Exception):
    pass


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "0").lower() not in ["", "0", "false", "no"]


class LoggingDescriptor:
    """Lazily creates a `logging.Logger` named after the owning class or module.

    Use it as a class attribute (`_logger = LoggingDescriptor()`) or at module level
    with an explicit name (`_logger = LoggingDescriptor(name=__name__)`). Messages may
    be given as callables, they are only evaluated if the level is enabled.
    """

    _call_tracing_enabled: ClassVar[bool] = _env_flag("GLOBFIND_CALL_TRACING_ENABLED")
    _call_tracing_default_level: ClassVar[int] = (
        logging.getLevelName(os.environ["GLOBFIND_CALL_TRACING_LEVEL"])
        if "GLOBFIND_CALL_TRACING_LEVEL" in os.environ
        else TRACE
    )

    def __init__(self, *, name: Optional[str] = None, postfix: str = "", level: int = logging.NOTSET) -> None:
        self.__name = name
        self.__postfix = postfix
        self.__level = level
        self.__owner: Any = None
        self.__logger: Optional[logging.Logger] = None

    def __set_name__(self, owner: Any, name: str) -> None:
        self.__owner = owner

    def __get__(self, obj: Any, objtype: Type[Any]) -> LoggingDescriptor:
        return self

    @property
    def logger(self) -> logging.Logger:
        if self.__logger is None:
            if self.__name is not None:
                name = self.__name
            elif self.__owner is not None:
                name = self.__owner.__module__ + "." + self.__owner.__qualname__
            else:
                raise LoggerError("LoggingDescriptor needs a name or an owner class")

            self.__logger = logging.getLogger(name + self.__postfix)
            self.__logger.setLevel(self.__level)

        return self.__logger

    @property
    def name(self) -> str:
        return self.logger.name

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def log(
        self,
        level: int,
        msg: Any,
        *args: Any,
        stacklevel: int = 2,
        extra: Optional[Mapping[str, object]] = None,
        **kwargs: Any,
    ) -> None:
        if self.is_enabled_for(level):
            self.logger.log(level, msg() if callable(msg) else msg, *args, stacklevel=stacklevel, extra=extra, **kwargs)

    def trace(self, msg: _MessageType, *args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
        self.log(TRACE, msg, *args, stacklevel=stacklevel, **kwargs)

    def debug(self, msg: _MessageType, *args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, stacklevel=stacklevel, **kwargs)

    def info(self, msg: _MessageType, *args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, stacklevel=stacklevel, **kwargs)

    def warning(self, msg: _MessageType, *args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, stacklevel=stacklevel, **kwargs)

    def error(self, msg: _MessageType, *args: Any, stacklevel: int = 3, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, stacklevel=stacklevel, **kwargs)

    def exception(
        self,
        msg: Union[BaseException, _MessageType],
        *args: Any,
        exc_info: Any = True,
        level: int = logging.ERROR,
        stacklevel: int = 3,
        **kwargs: Any,
    ) -> None:
        if isinstance(msg, BaseException):
            text = type(msg).__qualname__
            if str(msg):
                text += ": " + str(msg)
            msg = text

        self.log(level, msg, *args, exc_info=exc_info, stacklevel=stacklevel, **kwargs)

    @contextmanager
    def measure_time(self, msg: _MessageType, *, level: int = logging.DEBUG) -> Iterator[None]:
        if not self.is_enabled_for(level):
            yield
            return

        self.log(level, lambda: f"Start {msg() if callable(msg) else msg}", stacklevel=4)
        start_time = time.monotonic()
        try:
            yield
        finally:
            duration = time.monotonic() - start_time
            self.log(level, lambda: f"End {msg() if callable(msg) else msg} took {duration:.4f} seconds", stacklevel=4)

    @classmethod
    def set_call_tracing(cls, value: bool) -> None:
        cls._call_tracing_enabled = value

    @classmethod
    def set_call_tracing_default_level(cls, level: int) -> None:
        cls._call_tracing_default_level = level

    @overload
    def call(self, _func: _F) -> _F: ...

    @overload
    def call(self, *, level: Optional[int] = None, prefix: str = "") -> Callable[[_F], _F]: ...

    def call(self, _func: Optional[_F] = None, *, level: Optional[int] = None, prefix: str = "") -> Any:
        """Logs every call of the decorated function with its arguments.

        The decision is taken when the wrapper runs, so `set_call_tracing` also affects
        functions decorated at import time.
        """

        def _decorator(func: _F) -> _F:
            unwrapped = inspect.unwrap(func)
            skip_first_arg = len(unwrapped.__qualname__.split(".<locals>.", 1)[-1].rsplit(".", 1)) > 1

            @functools.wraps(func)
            def _wrapper(*args: Any, **kwargs: Any) -> Any:
                if type(self)._call_tracing_enabled:
                    message_args = args[1:] if skip_first_arg else args

                    def build_message() -> str:
                        parts = [_repr.repr(a) for a in message_args]
                        parts.extend(f"{k}={_repr.repr(v)}" for k, v in kwargs.items())
                        return f"{prefix}{unwrapped.__qualname__}({', '.join(parts)})"

                    self.log(
                        level if level is not None else type(self)._call_tracing_default_level,
                        build_message,
                        stacklevel=3,
                    )
                return func(*args, **kwargs)

            return cast(_F, _wrapper)

        if _func is None:
            return _decorator

        return _decorator(_func)

    def __repr__(self) -> str:
        level = logging.getLevelName(self.logger.getEffectiveLevel())
        return f"{type(self).__name__}(name={self.logger.name!r}, level={level!r})"
