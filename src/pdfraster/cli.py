"""CLI entry point for pdfraster."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pdfraster import __version__, logger
from pdfraster.async_runner import run_async
from pdfraster.dependencies import ensure_cli_dependencies_for_render, ensure_cli_dependencies_for_serve
from pdfraster.exceptions import PackageError, PipelineError
from pdfraster.logging import configure_logging
from pdfraster.settings import Settings, get_settings
from pdfraster.typing.enums import OutputFormat
from pdfraster.typing.models import ErrorResponse, UploadResponse


def _output_format_from_cli(value: str) -> OutputFormat:
    """Convert `--format` CLI value into an output format.

    Raises:
        argparse.ArgumentTypeError: If value is not supported.

    Returns:
        OutputFormat: Selected format.
    """
    try:
        return OutputFormat.from_str(value)  # type: ignore[return-value]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="pdfraster")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP conversion service")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    render_parser = subparsers.add_parser("render", help="Convert a local PDF and upload its pages")
    render_parser.add_argument("--input", required=True, type=Path, dest="input_path")
    render_parser.add_argument("--format", default=OutputFormat.PNG, type=_output_format_from_cli, dest="output_format")
    render_parser.add_argument("--pages", default=None)
    render_parser.add_argument("--scale", type=float, default=None)
    render_parser.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Render into memory without touching the object store",
    )

    return parser


def _serve(args: argparse.Namespace, settings: Settings) -> int:
    """Run uvicorn with the application factory."""
    ensure_cli_dependencies_for_serve()

    import uvicorn

    from pdfraster.webapi import create_app

    uvicorn.run(
        create_app(settings=settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


def _render(args: argparse.Namespace, settings: Settings) -> int:
    """Run the conversion pipeline once on a local file and print the response."""
    ensure_cli_dependencies_for_render()

    from pdfraster.parameters import resolve_parameters
    from pdfraster.pipeline import build_context, convert_document
    from pdfraster.storage import InMemoryObjectStore

    try:
        params = resolve_parameters(output_format=args.output_format, pages=args.pages, scale=args.scale)
        data = args.input_path.read_bytes()
        context = build_context(settings, store=InMemoryObjectStore() if args.dry_run else None)
        try:
            images = run_async(convert_document(context, data, params))
        finally:
            context.close()
    except PipelineError as exc:
        logger.error("Conversion failed", extra={"error": str(exc), "input_path": str(args.input_path)})
        sys.stdout.write(ErrorResponse(message=exc.response_message).model_dump_json() + "\n")
        return 1

    sys.stdout.write(UploadResponse(success=True, images=images).model_dump_json() + "\n")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {"serve": _serve, "render": _render}
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        return command(args, settings)
    except PackageError:
        logger.exception("Command failed")
        return 1
    except OSError:
        logger.exception("Failed to read input")
        return 1
    except KeyboardInterrupt:
        logger.info("Aborted by user")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
