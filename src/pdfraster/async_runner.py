"""Run pipeline coroutines from synchronous callers such as the CLI."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from pdfraster.exceptions import AsyncExecutionError, PipelineError

if TYPE_CHECKING:
    from collections.abc import Coroutine


def run_async[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run `coro` to completion and return its result.

    Without a running loop the coroutine runs on a fresh loop in the calling
    thread. Inside a running loop it is handed to a one-shot worker thread
    with its own loop, since the current loop cannot be re-entered.

    Args:
        coro: The coroutine to run.

    Raises:
        PipelineError: Conversion errors, unchanged, so callers can map them.
        AsyncExecutionError: If the worker thread fails with any other error.

    Returns:
        The result of the coroutine.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdfraster-async") as executor:
        future = executor.submit(asyncio.run, coro)
        try:
            return future.result()
        except PipelineError:
            raise
        except Exception as exc:
            raise AsyncExecutionError(result=exc) from exc
