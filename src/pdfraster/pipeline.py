"""Application context and the render-then-upload conversion pipeline."""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from pdfraster.exceptions import PipelineError, RenderTaskError
from pdfraster.pdf_render import render_document
from pdfraster.storage import build_object_store, upload_images
from pdfraster.typing.enums import RenderFailurePolicy

if TYPE_CHECKING:
    from pdfraster.settings import Settings
    from pdfraster.typing.models import RenderedImage, RenderParameters
    from pdfraster.typing.protocol import ObjectStore


@dataclass(frozen=True)
class AppContext:
    """Process-wide collaborators shared read-only by every request."""

    store: ObjectStore
    render_executor: ThreadPoolExecutor
    auth_token: str | None = None
    body_limit: int | None = None
    failure_policy: RenderFailurePolicy = RenderFailurePolicy.SKIP
    upload_rollback: bool = False
    contrast: float = 0.0

    def close(self) -> None:
        """Release the render worker pool."""
        self.render_executor.shutdown(wait=True, cancel_futures=True)


def build_context(settings: Settings, *, store: ObjectStore | None = None) -> AppContext:
    """Build the application context once at startup.

    Args:
        settings (Settings): Runtime settings.
        store (ObjectStore | None): Store override; built from settings when unset.

    Returns:
        AppContext: Immutable context handed to request handlers.
    """
    return AppContext(
        store=store if store is not None else build_object_store(settings),
        render_executor=ThreadPoolExecutor(
            max_workers=settings.render_workers,
            thread_name_prefix="pdfraster-render",
        ),
        auth_token=settings.auth_token or None,
        body_limit=settings.body_limit_bytes,
        failure_policy=settings.render_failure_policy,
        upload_rollback=settings.upload_rollback,
        contrast=settings.contrast,
    )


async def render_in_pool(context: AppContext, data: bytes, params: RenderParameters) -> list[RenderedImage]:
    """Render on the dedicated worker pool, away from the event loop.

    Raises:
        PipelineError: Rendering errors, unchanged.
        RenderTaskError: If the pool itself fails to run the task.

    Returns:
        list[RenderedImage]: Rendered pages.
    """
    task = partial(
        render_document,
        data,
        params,
        failure_policy=context.failure_policy,
        contrast=context.contrast,
    )
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(context.render_executor, task)
    except PipelineError:
        raise
    except Exception as exc:
        raise RenderTaskError(message=f"Render task failed: {exc}") from exc


async def convert_document(context: AppContext, data: bytes, params: RenderParameters) -> list[str]:
    """Render every selected page, then persist all of them concurrently.

    Args:
        context (AppContext): Application context.
        data (bytes): Raw uploaded document.
        params (RenderParameters): Resolved request parameters.

    Returns:
        list[str]: Object keys in ascending page order.
    """
    images = await render_in_pool(context, data, params)
    return await upload_images(context.store, images, rollback=context.upload_rollback)
