from __future__ import annotations

import pytest

from pdfraster.typing.enums import OutputFormat, RenderFailurePolicy


def test_every_output_format_has_extension_and_content_type() -> None:
    for output_format in OutputFormat:
        assert output_format.extension
        assert output_format.content_type.startswith("image/")


def test_output_format_extensions() -> None:
    assert {fmt.value: fmt.extension for fmt in OutputFormat} == {
        "png": "png",
        "jpeg": "jpg",
        "gif": "gif",
        "webp": "webp",
        "pnm": "pnm",
        "tiff": "tiff",
        "tga": "tga",
        "bmp": "bmp",
        "ico": "ico",
        "hdr": "hdr",
        "openexr": "exr",
        "farbfeld": "ff",
        "avif": "avif",
        "qoi": "qoi",
    }


def test_output_format_extensions_are_unique() -> None:
    extensions = [fmt.extension for fmt in OutputFormat]
    assert len(extensions) == len(set(extensions))


def test_from_str_is_case_insensitive() -> None:
    assert OutputFormat.from_str("WebP") is OutputFormat.WEBP
    assert OutputFormat.from_str("jpeg").to_str() == "jpeg"


def test_from_str_lists_supported_values() -> None:
    with pytest.raises(ValueError, match="Expected one of: png, jpeg"):
        OutputFormat.from_str("jpg")


def test_render_failure_policy_values() -> None:
    assert RenderFailurePolicy.from_str("skip") is RenderFailurePolicy.SKIP
    assert RenderFailurePolicy.from_str("abort") is RenderFailurePolicy.ABORT
