"""Utility functions for CompeteAI."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from competeai.exceptions import ProviderTimeoutError

T = TypeVar("T")


async def call_with_timeout(call: Awaitable[T], timeout: float | None, provider: str) -> T:
    """
    Await a provider call, bounded by a timeout.

    Args:
        call: Awaitable provider call
        timeout: Seconds to wait; None or <= 0 disables the bound
        provider: Provider name reported on timeout

    Returns:
        Result of the call

    Raises:
        ProviderTimeoutError: If the call does not finish in time
    """
    if not timeout or timeout <= 0:
        return await call
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        raise ProviderTimeoutError(provider, timeout)


def first_line(text: str, max_length: int = 100) -> str:
    """First non-empty line of text, or a truncated prefix when there is none."""
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return text[:max_length]
