from __future__ import annotations

import asyncio
import atexit
import contextvars
import functools
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar, cast

__all__ = ["run_in_thread"]

_T = TypeVar("_T")


__executor = ThreadPoolExecutor(thread_name_prefix="globfind_io")


def shutdown_thread_pool_executor() -> None:
    __executor.shutdown(wait=False)


atexit.register(shutdown_thread_pool_executor)


def run_in_thread(func: Callable[..., _T], /, *args: Any, **kwargs: Any) -> asyncio.Future[_T]:
    """Runs a blocking call on the shared executor and returns an awaitable future.

    The current context is copied, so context variables are visible in the worker thread.
    """
    loop = asyncio.get_running_loop()

    ctx = contextvars.copy_context()
    func_call = functools.partial(ctx.run, func, *args, **kwargs)

    return cast("asyncio.Future[_T]", loop.run_in_executor(__executor, cast(Callable[..., _T], func_call)))
