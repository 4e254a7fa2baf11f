"""Typing-centric domain modules."""

from pdfraster.typing.enums import OutputFormat, RenderFailurePolicy
from pdfraster.typing.models import (
    ErrorResponse,
    HealthResponse,
    PageRange,
    RenderedImage,
    RenderParameters,
    UploadResponse,
)
from pdfraster.typing.protocol import ObjectStore

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "ObjectStore",
    "OutputFormat",
    "PageRange",
    "RenderFailurePolicy",
    "RenderParameters",
    "RenderedImage",
    "UploadResponse",
]
