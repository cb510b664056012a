"""Timeout and classification for calls into collaborators."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from ..errors import AppError, StorageError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_store(awaitable: Awaitable[T], action: str, timeout: float | None = None) -> T:
    """Await a store call, classifying whatever it raises.

    Already-classified errors (e.g. ConflictError) pass through, a timeout
    becomes UpstreamTimeoutError and anything else becomes StorageError.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except TimeoutError as e:
        raise UpstreamTimeoutError(f"timed out while trying to {action}") from e
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Storage failure while trying to {action}: {e}", exc_info=True)
        raise StorageError(f"failed to {action}") from e
