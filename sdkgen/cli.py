"""CLI entrypoints for sdkgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, ConfigError, load_config, merge_options
from .languages import list_languages
from .logging import configure_logging
from .orchestrator import GenerationReport, Orchestrator, RunStatus
from .verify import VerifyStatus


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Only log warnings and errors to the console.",
    )
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write a debug-level log to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdkgen",
        description="Generate client SDKs from OpenAPI descriptions.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate or incrementally update an SDK.",
    )
    _add_logging_options(generate_parser, suppress_default=True)
    generate_parser.add_argument("--spec", help="Path to the OpenAPI 3.x spec (YAML or JSON).")
    generate_parser.add_argument("--language", help="Target language (see `sdkgen languages`).")
    generate_parser.add_argument("--output", help="Output directory for the SDK.")
    generate_parser.add_argument(
        "--instructions", help="Extra instructions passed to the planner and writer."
    )
    generate_parser.add_argument("--model", help="Model name used for planning and writing.")
    generate_parser.add_argument(
        "--force",
        action="store_true",
        default=None,
        help="Regenerate every file, ignoring the manifest.",
    )
    generate_parser.add_argument(
        "--no-verify",
        dest="verify",
        action="store_false",
        default=None,
        help="Skip the verification and repair loop.",
    )
    generate_parser.add_argument(
        "--config",
        default=".",
        help=f"Path to {CONFIG_FILENAME} or the directory containing it (defaults to current directory).",
    )

    languages_parser = subparsers.add_parser("languages", help="List supported target languages.")
    _add_logging_options(languages_parser, suppress_default=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service (FastAPI + uvicorn).")
    _add_logging_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for sdkgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        log_file=Path(args.log_file) if args.log_file else None,
    )

    if args.command == "languages":
        for name in list_languages():
            print(name)
        return

    if args.command == "generate":
        try:
            config = merge_options(
                load_config(Path(args.config)),
                spec=args.spec,
                language=args.language,
                output=args.output,
                instructions=args.instructions,
                model=args.model,
                force=args.force,
                verify=args.verify,
            )
            report = Orchestrator().run_generate(config)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        except Exception as exc:
            parser.exit(1, f"sdkgen generate failed: {exc}\nRun with --verbose for more details.\n")
        _print_report(report)
        if report.status is RunStatus.PARTIAL:
            sys.exit(2)
        return

    if args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
        return

    parser.exit(1, "Unknown command\n")  # pragma: no cover - argparse enforces choices


def _print_report(report: GenerationReport) -> None:
    location = _relativize(report.output_dir)
    if report.status is RunStatus.SKIPPED:
        print(f"SDK at {location} is up to date (spec and instructions unchanged)")
        return
    if report.status is RunStatus.UP_TO_DATE:
        print(f"All files in {location} are up to date")
    else:
        print(f"SDK generated at {location}: {len(report.generated)} file(s) written")

    for path in report.removed:
        print(f"Removed orphan: {path}")
    for failure in report.failed:
        print(f"Failed: {failure.file.id} ({failure.file.output_path}): {failure.reason}")

    verify = report.verify
    if verify is not None and verify.status is VerifyStatus.PASSED_WITH_WARNINGS:
        print(f"Verification finished with {len(verify.errors)} warning(s):")
        for error in verify.errors:
            print(f"  {error.file}:{error.line}: {error.message}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
