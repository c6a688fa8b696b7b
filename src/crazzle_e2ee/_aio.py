"""Small asyncio helpers shared by the stores and the crypto components."""
from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged.

    Lets key stores and directories be implemented either synchronously or
    as coroutines.
    """
    return await value if inspect.isawaitable(value) else value
