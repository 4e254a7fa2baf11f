from __future__ import annotations

import asyncio

import pytest

from pdfraster.async_runner import run_async
from pdfraster.exceptions import AsyncExecutionError, InvalidScaleError


async def _identity(value: int) -> int:
    await asyncio.sleep(0)
    return value


async def _raise(exc: Exception) -> None:
    await asyncio.sleep(0)
    raise exc


def test_run_async_from_sync_context() -> None:
    assert run_async(_identity(7)) == 7


def test_run_async_with_running_loop() -> None:
    async def _nested() -> int:
        await asyncio.sleep(0)
        return run_async(_identity(11))

    assert asyncio.run(_nested()) == 11


def test_run_async_with_running_loop_keeps_pipeline_errors() -> None:
    async def _nested() -> None:
        run_async(_raise(InvalidScaleError(message="scale")))

    with pytest.raises(InvalidScaleError):
        asyncio.run(_nested())


def test_run_async_with_running_loop_wraps_other_errors() -> None:
    async def _nested() -> None:
        run_async(_raise(RuntimeError("boom")))

    with pytest.raises(AsyncExecutionError, match="boom"):
        asyncio.run(_nested())
