"""Runtime dependency checks for CLI commands."""

from __future__ import annotations

import importlib.util

from pdfraster.exceptions import DependencyError

# Distribution name -> import name, per command.
_RENDER_MODULES = {
    "pymupdf": "fitz",
    "pillow": "PIL",
    "numpy": "numpy",
    "blake3": "blake3",
    "boto3": "boto3",
}
_SERVE_MODULES = {
    **_RENDER_MODULES,
    "fastapi": "fastapi",
    "uvicorn": "uvicorn",
    "python-multipart": "python_multipart",
}
_COMMAND_MODULES: dict[str, dict[str, str]] = {
    "render": _RENDER_MODULES,
    "serve": _SERVE_MODULES,
}


def _is_module_available(module_name: str) -> bool:
    """Return whether `module_name` resolves without importing it."""
    try:
        return importlib.util.find_spec(module_name) is not None
    except (ImportError, ValueError):
        return False


def missing_dependencies(command: str) -> list[str]:
    """List the distributions `command` needs that are not installed.

    Args:
        command (str): CLI command name, `render` or `serve`.

    Returns:
        list[str]: Missing distribution names, in declaration order.
    """
    modules = _COMMAND_MODULES[command]
    return [package for package, module in modules.items() if not _is_module_available(module)]


def ensure_cli_dependencies(command: str) -> None:
    """Fail early when `command` cannot run in this environment.

    Raises:
        DependencyError: If one or more required distributions are missing.
    """
    missing = missing_dependencies(command)
    if missing:
        raise DependencyError(missing_package=missing, message=command)


def ensure_cli_dependencies_for_render() -> None:
    """Validate required runtime dependencies for `pdfraster render`."""
    ensure_cli_dependencies("render")


def ensure_cli_dependencies_for_serve() -> None:
    """Validate required runtime dependencies for `pdfraster serve`."""
    ensure_cli_dependencies("serve")
