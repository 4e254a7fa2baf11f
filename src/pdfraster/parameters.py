"""Request parameter parsing: output format, page selection and scale."""

from __future__ import annotations

import math

from pdfraster.exceptions import InvalidPageRangeError, InvalidScaleError
from pdfraster.typing.enums import OutputFormat
from pdfraster.typing.models import PageRange, RenderParameters

MIN_SCALE = 0.1
MAX_SCALE = 10.0

# Page numbers with more digits are rejected before int() conversion.
_MAX_PAGE_DIGITS = 18


def parse_scale(scale: float | None) -> float | None:
    """Validate an optional scale factor.

    Args:
        scale (float | None): Requested scale, `None` for native resolution.

    Raises:
        InvalidScaleError: If the scale lies outside `[MIN_SCALE, MAX_SCALE]`.

    Returns:
        float | None: The validated scale.
    """
    if scale is None:
        return None
    if math.isnan(scale) or not MIN_SCALE <= scale <= MAX_SCALE:
        raise InvalidScaleError(message=f"scale must be between {MIN_SCALE} and {MAX_SCALE}, got {scale}")
    return scale


def _parse_page_number(raw: str, token: str) -> int:
    """Parse one 1-indexed page number of `token`."""
    value = raw.strip()
    if not value.isdecimal() or len(value) > _MAX_PAGE_DIGITS:
        raise InvalidPageRangeError(message=f"invalid page range: '{token}'")
    number = int(value)
    if number < 1:
        raise InvalidPageRangeError(message=f"invalid page range: '{token}'")
    return number


def _merge_ranges(ranges: list[tuple[int, int]]) -> tuple[PageRange, ...]:
    """Sort ranges and merge the overlapping or adjacent ones."""
    merged: list[list[int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1] + 1:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return tuple(PageRange(start=start, end=end) for start, end in merged)


def parse_page_selection(expression: str) -> tuple[PageRange, ...]:
    """Parse a 1-indexed page expression into zero-indexed page ranges.

    The expression is a comma-separated list of single pages (`3`) and
    inclusive ranges (`2-5`). Whitespace around tokens and empty tokens are
    ignored. Ranges are kept as bounds, so their size does not matter until
    they are checked against the document page count once it is loaded.

    Args:
        expression (str): Raw expression, e.g. `"1, 3-4"`.

    Raises:
        InvalidPageRangeError: If a token is not numeric, is zero, is an
            inverted range, or if no page remains.

    Returns:
        tuple[PageRange, ...]: Sorted, disjoint zero-indexed page ranges.
    """
    ranges: list[tuple[int, int]] = []
    for raw_token in expression.split(","):
        token = raw_token.strip()
        if not token:
            continue

        start_raw, separator, end_raw = token.partition("-")
        if not separator:
            number = _parse_page_number(token, token)
            ranges.append((number - 1, number - 1))
            continue

        start = _parse_page_number(start_raw, token)
        end = _parse_page_number(end_raw, token)
        if start > end:
            raise InvalidPageRangeError(message=f"invalid page range: '{token}'")
        ranges.append((start - 1, end - 1))

    if not ranges:
        raise InvalidPageRangeError(message="no valid pages specified")
    return _merge_ranges(ranges)


def validate_page_bounds(pages: tuple[PageRange, ...], total_pages: int) -> None:
    """Ensure every selected page exists in a document of `total_pages` pages.

    Raises:
        InvalidPageRangeError: If a selected page is past the last page.
    """
    out_of_range = [max(page_range.start, total_pages) for page_range in pages if page_range.end >= total_pages]
    if out_of_range:
        raise InvalidPageRangeError(
            message=f"page {min(out_of_range) + 1} is out of range (document has {total_pages} pages)",
        )


def expand_page_selection(pages: tuple[PageRange, ...]) -> list[int]:
    """Return the zero-indexed page numbers of bounds-checked ranges, ascending."""
    return [page for page_range in pages for page in range(page_range.start, page_range.end + 1)]


def resolve_parameters(
    *,
    output_format: OutputFormat | str | None = None,
    pages: str | None = None,
    scale: float | None = None,
) -> RenderParameters:
    """Resolve raw request parameters into `RenderParameters`.

    Args:
        output_format (OutputFormat | str | None): Target format, PNG when unset.
        pages (str | None): Optional page expression; all pages when unset.
        scale (float | None): Optional scale factor.

    Returns:
        RenderParameters: Validated parameters.
    """
    if output_format is None:
        resolved_format = OutputFormat.PNG
    elif isinstance(output_format, OutputFormat):
        resolved_format = output_format
    else:
        resolved_format = OutputFormat.from_str(output_format)

    return RenderParameters(
        format=resolved_format,
        scale=parse_scale(scale),
        pages=parse_page_selection(pages) if pages is not None else None,
    )
