"""FastAPI application exposing the PDF-to-images conversion pipeline."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated
from uuid import uuid4

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from pdfraster import __version__
from pdfraster.access import check_access
from pdfraster.exceptions import FieldNotFoundError, MalformedFormError, PayloadTooLargeError, PipelineError
from pdfraster.logging import bind_request_context, clear_request_context, get_logger
from pdfraster.parameters import resolve_parameters
from pdfraster.pipeline import AppContext, build_context, convert_document
from pdfraster.settings import Settings, get_settings
from pdfraster.typing.enums import OutputFormat
from pdfraster.typing.models import ErrorResponse, HealthResponse, UploadResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from starlette.responses import Response
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)


def get_context(request: Request) -> AppContext:
    """Return the application context attached at startup."""
    return request.app.state.context


async def read_first_field(request: Request) -> bytes:
    """Read the first multipart field as the document bytes.

    Remaining fields are ignored.

    Raises:
        MalformedFormError: If the body cannot be decoded.
        FieldNotFoundError: If the form has no field.

    Returns:
        bytes: Content of the first field.
    """
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as exc:
        raise MalformedFormError(message=f"Failed to decode multipart form: {exc}") from exc

    try:
        fields = form.multi_items()
        if not fields:
            raise FieldNotFoundError
        _, value = fields[0]
        if isinstance(value, UploadFile):
            return await value.read()
        return value.encode("utf-8")
    finally:
        await form.close()


def error_response(exc: PipelineError) -> JSONResponse:
    """Log a pipeline failure and map it to its wire response."""
    logger.error(
        "Request failed",
        extra={"error_type": type(exc).__name__, "error": str(exc), "status_code": exc.status_code},
    )
    payload = ErrorResponse(message=exc.response_message)
    return JSONResponse(status_code=exc.status_code, content=payload.model_dump())


class BodyLimitMiddleware:
    """Reject request bodies larger than the context's `body_limit`.

    A declared `Content-Length` over the limit is answered right away. Other
    bodies, chunked uploads included, are counted as they stream in, and the
    read that crosses the limit raises `PayloadTooLargeError`.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        ctx: AppContext | None = None
        if scope["type"] == "http":
            ctx = getattr(scope["app"].state, "context", None)
        limit = ctx.body_limit if ctx is not None else None
        if not limit:
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length", "")
        if declared.isdigit() and int(declared) > limit:
            response = error_response(
                PayloadTooLargeError(message=f"Declared body of {declared} bytes exceeds {limit} bytes"),
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise PayloadTooLargeError(message=f"Streamed body exceeds {limit} bytes")
            return message

        await self.app(scope, limited_receive, send)


def create_app(context: AppContext | None = None, *, settings: Settings | None = None) -> FastAPI:
    """Create the HTTP application.

    Args:
        context (AppContext | None): Prebuilt context, e.g. with a fake store.
            When unset, it is built from settings at startup and closed on
            shutdown.
        settings (Settings | None): Settings used to build the context.

    Returns:
        FastAPI: Configured application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if context is not None:
            yield
            return

        app.state.context = build_context(settings or get_settings())
        try:
            yield
        finally:
            app.state.context.close()

    app = FastAPI(title="pdfraster", version=__version__, lifespan=lifespan)
    if context is not None:
        app.state.context = context

    app.add_middleware(BodyLimitMiddleware)

    @app.middleware("http")
    async def request_context(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid4().hex
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(PipelineError)
    async def handle_pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:  # noqa: ARG001
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: ARG001
        details = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}" for error in exc.errors()
        )
        logger.error("Invalid request parameters", extra={"error": details})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(message=f"Invalid request parameters: {details}").model_dump(),
        )

    @app.post("/", response_model=UploadResponse)
    async def upload_pdf(
        request: Request,
        ctx: Annotated[AppContext, Depends(get_context)],
        output_format: Annotated[OutputFormat, Query(alias="format")] = OutputFormat.PNG,
        pages: Annotated[str | None, Query()] = None,
        scale: Annotated[float | None, Query()] = None,
        token: Annotated[str | None, Query()] = None,
    ) -> UploadResponse:
        check_access(ctx.auth_token, token)
        data = await read_first_field(request)
        params = resolve_parameters(output_format=output_format, pages=pages, scale=scale)
        images = await convert_document(ctx, data, params)
        return UploadResponse(success=True, images=images)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse()

    return app
