from __future__ import annotations

import pytest

from pdfraster.dependencies import (
    _is_module_available,
    ensure_cli_dependencies_for_render,
    ensure_cli_dependencies_for_serve,
    missing_dependencies,
)
from pdfraster.exceptions import DependencyError


def test_ensure_cli_dependencies_for_render_succeeds(monkeypatch) -> None:
    monkeypatch.setattr("pdfraster.dependencies._is_module_available", lambda module_name: True)
    ensure_cli_dependencies_for_render()


def test_ensure_cli_dependencies_for_render_raises(monkeypatch) -> None:
    monkeypatch.setattr("pdfraster.dependencies._is_module_available", lambda module_name: module_name != "fitz")
    with pytest.raises(DependencyError, match="'render': pymupdf"):
        ensure_cli_dependencies_for_render()


def test_ensure_cli_dependencies_for_serve_succeeds(monkeypatch) -> None:
    monkeypatch.setattr("pdfraster.dependencies._is_module_available", lambda module_name: True)
    ensure_cli_dependencies_for_serve()


def test_ensure_cli_dependencies_for_serve_lists_web_stack(monkeypatch) -> None:
    monkeypatch.setattr("pdfraster.dependencies._is_module_available", lambda module_name: False)
    with pytest.raises(DependencyError, match="fastapi, uvicorn, python-multipart"):
        ensure_cli_dependencies_for_serve()


def test_missing_dependencies_keeps_declaration_order(monkeypatch) -> None:
    monkeypatch.setattr(
        "pdfraster.dependencies._is_module_available",
        lambda module_name: module_name not in {"numpy", "uvicorn"},
    )

    assert missing_dependencies("serve") == ["numpy", "uvicorn"]
    assert missing_dependencies("render") == ["numpy"]


def test_is_module_available_handles_missing_parent_package() -> None:
    assert _is_module_available("pdfraster_missing_parent.child") is False
    assert _is_module_available("pdfraster.settings") is True
