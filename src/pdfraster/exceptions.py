"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class AsyncExecutionError(PackageError):
    """Raised when an async operation fails in compatibility runner."""

    result: BaseException
    message: str = "Async operation failed"

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.result}"


@dataclass(frozen=True)
class DependencyError(PackageError):
    """Raised when optional runtime dependencies are missing."""

    missing_package: list[str]
    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Missing runtime dependencies for '{self.message}': {', '.join(self.missing_package)}"


@dataclass(frozen=True)
class PipelineError(PackageError):
    """Raised when a conversion request cannot be completed.

    `status_code` is the HTTP status the error maps to. When `public_message`
    is set it replaces `message` in the response body, so internal details
    stay in the logs.
    """

    message: str

    status_code: ClassVar[int] = 500
    public_message: ClassVar[str | None] = None

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message

    @property
    def response_message(self) -> str:
        """Return the message exposed to API clients."""
        return self.public_message or self.message


@dataclass(frozen=True)
class UnauthorizedError(PipelineError):
    """Raised when the request token does not match the configured secret."""

    message: str = "Unauthorized"

    status_code: ClassVar[int] = 401


@dataclass(frozen=True)
class PayloadTooLargeError(PipelineError):
    """Raised when the request body grows past the configured limit."""

    message: str = "Request body too large"

    status_code: ClassVar[int] = 413
    public_message: ClassVar[str | None] = "Request body too large"


@dataclass(frozen=True)
class FieldNotFoundError(PipelineError):
    """Raised when the multipart form carries no field."""

    message: str = "No field found in multipart form"

    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class MalformedFormError(PipelineError):
    """Raised when the multipart body cannot be decoded."""

    message: str = "Malformed multipart form"

    status_code: ClassVar[int] = 400
    public_message: ClassVar[str | None] = "Failed to read PDF file from request"


@dataclass(frozen=True)
class InvalidPageRangeError(PipelineError):
    """Raised when a page selection is malformed or out of bounds."""

    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class InvalidScaleError(PipelineError):
    """Raised when the scale factor is outside the accepted bounds."""

    status_code: ClassVar[int] = 400


@dataclass(frozen=True)
class DocumentLoadError(PipelineError):
    """Raised when uploaded bytes are not a readable PDF document."""

    status_code: ClassVar[int] = 500
    public_message: ClassVar[str | None] = "Failed to load PDF document"


@dataclass(frozen=True)
class PageRenderError(PipelineError):
    """Raised when a page fails to render under the `abort` failure policy."""

    page_index: int = -1

    status_code: ClassVar[int] = 500
    public_message: ClassVar[str | None] = "Internal Server Error"


@dataclass(frozen=True)
class RenderTaskError(PipelineError):
    """Raised when the render worker pool fails to run a render task."""

    status_code: ClassVar[int] = 500
    public_message: ClassVar[str | None] = "Internal Server Error"


@dataclass(frozen=True)
class StorageError(PipelineError):
    """Raised when one or more uploads to the object store failed."""

    key: str = ""
    failed: int = 1

    status_code: ClassVar[int] = 500
    public_message: ClassVar[str | None] = "Internal Server Error"
