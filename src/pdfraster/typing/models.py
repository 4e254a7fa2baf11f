"""Core domain models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pdfraster.typing.enums import OutputFormat


class PageRange(BaseModel):
    """Inclusive range of zero-indexed page numbers."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)


class RenderParameters(BaseModel):
    """Resolved rendering parameters of one conversion request.

    `pages` holds sorted, disjoint page ranges; `None` selects every page.
    `scale` of `None` renders at the native 1x resolution.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    format: OutputFormat = OutputFormat.PNG
    scale: float | None = None
    pages: tuple[PageRange, ...] | None = None


class RenderedImage(BaseModel):
    """One encoded page, ready to be persisted under `object_key`."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    object_key: str
    page_index: int = Field(ge=0)
    content_type: str
    data: bytes = Field(repr=False)


class UploadResponse(BaseModel):
    """Success payload listing the persisted object keys."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    images: list[str]


class ErrorResponse(BaseModel):
    """Failure payload returned with any non-2xx status."""

    model_config = ConfigDict(extra="forbid")

    message: str


class HealthResponse(BaseModel):
    """Liveness payload."""

    model_config = ConfigDict(extra="forbid")

    status: str = "ok"
