"""Pytest marker auto-assignment by folder and shared fixtures."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

import fitz
import pytest

from pdfraster import logger
from pdfraster.pipeline import AppContext
from pdfraster.storage import InMemoryObjectStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    """Mark collected tests located under tests/<marker>/."""
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            path = Path(str(item.fspath)).resolve()
        except Exception:
            logger.warning(
                f"Could not resolve path for test item {item.name!s}; skipping {marker!s} marker assignment",
            )
            continue

        if path == target_dir or target_dir in path.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Apply directory-based markers to test items."""
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")


class FlakyObjectStore(InMemoryObjectStore):
    """In-memory store whose uploads fail for keys with a given suffix."""

    def __init__(self, failing_suffixes: tuple[str, ...] = ()) -> None:
        super().__init__()
        self.failing_suffixes = failing_suffixes

    def put_object(self, key: str, body: bytes, content_type: str) -> None:
        if key.endswith(self.failing_suffixes):
            raise ConnectionError(f"simulated storage fault for {key}")
        super().put_object(key, body, content_type)


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Return a factory building small in-memory PDFs with numbered pages."""

    def _make(pages: int = 3) -> bytes:
        doc = fitz.open()
        for number in range(1, pages + 1):
            page = doc.new_page(width=120, height=160)
            page.insert_text((20, 40), f"Page {number}")
        data = doc.tobytes()
        doc.close()
        return data

    return _make


@pytest.fixture
def render_executor() -> Iterator[ThreadPoolExecutor]:
    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="test-render")
    yield executor
    executor.shutdown(wait=True)


@pytest.fixture
def memory_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def make_context(render_executor: ThreadPoolExecutor, memory_store: InMemoryObjectStore) -> Callable[..., AppContext]:
    """Return a factory building an application context around a fake store."""

    def _make(**overrides: object) -> AppContext:
        values: dict[str, object] = {"store": memory_store, "render_executor": render_executor}
        values.update(overrides)
        return AppContext(**values)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def make_flaky_store() -> Callable[..., FlakyObjectStore]:
    """Return a factory building stores that fail uploads for given key suffixes."""

    def _make(*failing_suffixes: str) -> FlakyObjectStore:
        return FlakyObjectStore(failing_suffixes)

    return _make
