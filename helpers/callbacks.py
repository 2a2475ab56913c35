import inspect
from typing import Any, Callable


async def call_maybe_async(fn: Callable[..., Any], *args, **kwargs) -> Any:
    """Invoke a listener that may be a plain function or a coroutine function."""
    result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
