"""Re-entrancy guard for state-mutating entry points.

A component's guarded methods share one flag: while any of them runs, a
nested call into any of them raises ReentrantCallError.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from src.cdp_common.errors import ReentrantCallError

F = TypeVar("F", bound=Callable[..., Any])


def non_reentrant(method: F) -> F:
    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        if getattr(self, "_entered", False):
            raise ReentrantCallError(f"{type(self).__name__}.{method.__name__}")
        self._entered = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper  # type: ignore[return-value]
