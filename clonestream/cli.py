"""CLI entrypoints for clonestream commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, DetectorConfig, StoreConfig, load_config
from .ingest import CloneDetector
from .logging import configure_logging
from .stores import StorageFailure


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_store_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Directory of a JSON corpus store (overrides the configured store).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clonestream",
        description="Detect duplicated code across a growing corpus of source files.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Path to .clonestream.yml or the directory containing it.",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Number of content lines per compared chunk.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Compare files against the corpus and add them to it.",
    )
    _add_verbose_option(ingest_parser, suppress_default=True)
    _add_store_option(ingest_parser)
    ingest_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Files or directories to ingest, in order.",
    )

    report_parser = subparsers.add_parser(
        "report",
        help="Print the clones recorded in a JSON corpus store.",
    )
    _add_verbose_option(report_parser, suppress_default=True)
    _add_store_option(report_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP ingestion service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_store_option(serve_parser)
    serve_parser.add_argument("--host", default=None, help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to listen on.")

    return parser


def _resolve_config(args: argparse.Namespace) -> DetectorConfig:
    config = load_config(args.config)
    if args.chunk_size is not None:
        if args.chunk_size < 1:
            raise ConfigError("--chunk-size must be a positive integer")
        config.chunk_size = args.chunk_size
    store = getattr(args, "store", None)
    if store is not None:
        config.store = StoreConfig(backend="json", path=store)
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for clonestream commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        config = _resolve_config(args)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "ingest":
        detector = CloneDetector.from_config(config)
        try:
            summary = detector.ingest_paths(args.paths)
        except StorageFailure as exc:  # pragma: no cover - reported per file
            parser.exit(1, f"clonestream ingest failed: {exc}\n")
        for result in summary.results:
            detail = f" ({result.reason})" if result.reason else ""
            print(f"{result.status:<8} {result.name}{detail}")
        print(
            f"{summary.count('accepted')} accepted, {summary.count('rejected')} rejected, "
            f"{summary.count('failed')} failed. {detector.statistics()}"
        )
        if summary.count("failed"):
            parser.exit(1)
    elif args.command == "report":
        if config.store.backend != "json":
            parser.exit(1, "clonestream report needs a JSON store; pass --store or configure one.\n")
        detector = CloneDetector.from_config(config)
        print(detector.statistics())
        clones = detector.clone_store.clones
        if not clones:
            print("No clone data found.")
        for clone in clones:
            print(f"{clone.source_file}:{clone.source_start}-{clone.source_end}")
            for target in clone.sorted_targets():
                print(f"  found in {target.file}:{target.start_line}-{target.end_line}")
    elif args.command == "serve":
        from .service import run_service

        if args.host:
            config.service.host = args.host
        if args.port:
            config.service.port = args.port
        run_service(config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
