"""pdfraster: rasterize PDF pages and store them in an S3-compatible bucket."""

from pdfraster.async_runner import run_async
from pdfraster.exceptions import (
    AsyncExecutionError,
    DependencyError,
    PackageError,
    PipelineError,
    SettingsError,
    StorageError,
)
from pdfraster.logging import configure_logging, get_logger
from pdfraster.settings import Settings, get_settings
from pdfraster.typing.enums import OutputFormat, RenderFailurePolicy

__version__ = "0.1.0"

logger = get_logger("pdfraster")

__all__ = [
    "AsyncExecutionError",
    "DependencyError",
    "OutputFormat",
    "PackageError",
    "PipelineError",
    "RenderFailurePolicy",
    "Settings",
    "SettingsError",
    "StorageError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
    "run_async",
]
