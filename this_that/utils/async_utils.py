"""
Async utilities shared by the enrichment pipeline.

Every optional lookup (image, news, map, website) goes through
try_with_timeout so they all share one timeout/failure contract: the
caller gets a value or None, never an exception.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)


async def try_with_timeout(
    fn: Callable[[], Awaitable[T]],
    timeout: float,
    label: str = "",
) -> Optional[T]:
    """Run a best-effort coroutine factory with a timeout.

    Args:
        fn: Zero-argument callable returning an awaitable
        timeout: Timeout in seconds
        label: Name used in log lines

    Returns:
        The awaited value, or None on timeout or any exception
    """
    name = label or getattr(fn, '__name__', 'call')
    try:
        return await asyncio.wait_for(fn(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{name} timed out after {timeout}s")
        return None
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"{name} failed: {e}")
        return None
