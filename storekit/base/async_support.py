"""
Async support for Storekit.

The canonical implementations are synchronous and block on threads
(waiting for an upload completion, fetching and writing policies).
``async_wrap`` turns such a blocking call into a coroutine via
:func:`asyncio.to_thread` so it can be awaited without stalling the
event loop::

    outcome = await pending.await_outcome(timeout=30)
    result = await merger.aapply_grant(BucketTarget("b"), "id", "READ")
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from typing import Any, Callable, Coroutine, TypeVar

T = TypeVar("T")


def async_wrap(
    fn: Callable[..., T],
) -> Callable[..., Coroutine[Any, Any, T]]:
    """Return an async version of *fn* that runs it in a worker thread.

    Args:
        fn: A blocking callable to wrap.

    Returns:
        An async callable with the same parameters and return type.
    """

    @functools.wraps(fn)
    async def _wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(fn, *args, **kwargs)

    return _wrapper


class AsyncMixin:
    """Mixin that adds an ``a<method>`` coroutine for each public method.

    Only methods defined directly on the subclass are wrapped, and an
    explicitly defined ``a<method>`` is never overwritten.
    """

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for name, attr in list(vars(cls).items()):
            if name.startswith("_") or not inspect.isfunction(attr):
                continue
            if inspect.iscoroutinefunction(attr):
                continue
            async_name = f"a{name}"
            if async_name not in vars(cls):
                setattr(cls, async_name, async_wrap(attr))
