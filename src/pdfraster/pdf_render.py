"""PDF rendering engine: load, fingerprint, rasterize and encode pages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import fitz
from blake3 import blake3
from PIL import Image, ImageEnhance

from pdfraster.encoders import encode_image
from pdfraster.exceptions import DocumentLoadError, PageRenderError
from pdfraster.logging import get_logger
from pdfraster.parameters import expand_page_selection, validate_page_bounds
from pdfraster.typing.enums import OutputFormat, RenderFailurePolicy
from pdfraster.typing.models import RenderedImage

if TYPE_CHECKING:
    from pdfraster.typing.models import RenderParameters

logger = get_logger(__name__)


def fingerprint(data: bytes) -> str:
    """Return the hex BLAKE3 digest of the raw document bytes.

    Same key scheme as the objects already stored in the bucket.

    Args:
        data (bytes): Uploaded document.

    Returns:
        str: 64-character lowercase hex digest.
    """
    return blake3(data).hexdigest()


def object_key(digest: str, page_index: int, output_format: OutputFormat) -> str:
    """Build the storage key `{fingerprint}-{page_index}.{extension}`.

    Args:
        digest (str): Content fingerprint.
        page_index (int): Zero-based page index.
        output_format (OutputFormat): Target format.

    Returns:
        str: Object key.
    """
    return f"{digest}-{page_index}.{output_format.extension}"


def _open_document(data: bytes) -> fitz.Document:
    """Open a PDF from memory.

    Raises:
        DocumentLoadError: If the bytes are not a readable PDF or require a password.
    """
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:
        raise DocumentLoadError(message=f"Failed to open PDF: {exc}") from exc

    if doc.needs_pass:
        doc.close()
        raise DocumentLoadError(message="PDF is encrypted and no password is supported")
    return doc


def _contrast_factor(contrast: float) -> float:
    """Map a contrast adjustment in percent to a Pillow enhancement factor."""
    return ((100.0 + contrast) / 100.0) ** 2


def _render_page(
    doc: fitz.Document,
    page_index: int,
    *,
    matrix: fitz.Matrix,
    contrast: float,
) -> Image.Image:
    """Rasterize one page into an RGB Pillow image."""
    page = doc.load_page(page_index)
    pix = page.get_pixmap(matrix=matrix, alpha=False)
    image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    if contrast:
        image = ImageEnhance.Contrast(image).enhance(_contrast_factor(contrast))
    return image


def render_document(
    data: bytes,
    params: RenderParameters,
    *,
    failure_policy: RenderFailurePolicy = RenderFailurePolicy.SKIP,
    contrast: float = 0.0,
) -> list[RenderedImage]:
    """Render the selected pages of a PDF into encoded images.

    Pages are rendered in ascending index order. Under the `skip` policy a page
    that fails to render or encode is left out of the result; under `abort`
    the whole call fails.

    Args:
        data (bytes): Raw uploaded document.
        params (RenderParameters): Resolved format, scale and page selection.
        failure_policy (RenderFailurePolicy): Per-page failure handling.
        contrast (float): Contrast adjustment in percent, `0` to disable.

    Raises:
        DocumentLoadError: If the document cannot be opened.
        InvalidPageRangeError: If a selected page is past the last page.
        PageRenderError: If a page fails under the `abort` policy.

    Returns:
        list[RenderedImage]: Rendered pages, possibly fewer than selected.
    """
    doc = _open_document(data)
    digest = fingerprint(data)
    output_format = params.format

    with doc:
        total_pages = len(doc)
        if params.pages is None:
            page_indices = list(range(total_pages))
        else:
            validate_page_bounds(params.pages, total_pages)
            page_indices = expand_page_selection(params.pages)

        matrix = fitz.Identity if params.scale is None else fitz.Matrix(params.scale, params.scale)

        rendered: list[RenderedImage] = []
        for page_index in page_indices:
            try:
                image = _render_page(doc, page_index, matrix=matrix, contrast=contrast)
                payload = encode_image(image, output_format)
            except Exception as exc:
                if failure_policy is RenderFailurePolicy.ABORT:
                    raise PageRenderError(
                        message=f"Failed to render page {page_index}: {exc}",
                        page_index=page_index,
                    ) from exc
                logger.warning(
                    "Skipping page that failed to render",
                    extra={"page_index": page_index, "fingerprint": digest, "error": str(exc)},
                )
                continue

            rendered.append(
                RenderedImage(
                    object_key=object_key(digest, page_index, output_format),
                    page_index=page_index,
                    content_type=output_format.content_type,
                    data=payload,
                ),
            )

    logger.info(
        "PDF rendered",
        extra={
            "fingerprint": digest,
            "total_pages": total_pages,
            "selected_pages": len(page_indices),
            "rendered_pages": len(rendered),
            "format": output_format.to_str(),
        },
    )
    return rendered
