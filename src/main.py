# src/main.py — v2
"""CLI entry point: process, store, cache and providers commands.

Usage:
    lingocore process <task> [text | --file PATH] [--param key=value ...]
    lingocore store migrate | list | export | import
    lingocore cache clear
    lingocore providers

Exit codes: 0 ok, 1 error, 2 all providers failed, 130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from lingocore.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ALL_PROVIDERS_FAILED = 2
EXIT_INTERRUPTED = 130


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR

    from lingocore.config.settings import ConfigurationError, load_settings
    from lingocore.core.errors import AllProvidersFailed, LingocoreError

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        _setup_logging(args.verbose)
        logger.error("Invalid configuration: %s", exc)
        return EXIT_ERROR

    _setup_logging(args.verbose, settings)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except AllProvidersFailed as exc:
        logger.error("%s", exc)
        for failure in exc.failures:
            logger.error("  %s: %s (%s)", failure.provider, failure.error_type, failure.message)
        if exc.user_action == "configure":
            logger.error("Check PROVIDER_CHAIN and the provider API keys in your .env")
        return EXIT_ALL_PROVIDERS_FAILED
    except LingocoreError as exc:
        logger.error("%s", exc)
        return EXIT_ERROR
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_ERROR


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="lingocore",
        description=f"lingocore v{__version__}: AI processing core for language learning",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- process ---
    p_process = subparsers.add_parser("process", help="Run one processing task")
    p_process.add_argument(
        "task",
        choices=["detect-language", "summarize", "translate", "rewrite", "analyze-vocabulary"],
    )
    p_process.add_argument("text", nargs="?", default=None, help="Input text")
    p_process.add_argument("-f", "--file", type=Path, default=None, help="Read input from file")
    p_process.add_argument(
        "-p", "--param", action="append", default=[], metavar="KEY=VALUE",
        help="Task parameter (repeatable), e.g. target_language=es, difficulty=3",
    )
    p_process.add_argument("--json", action="store_true", help="Print the full result as JSON")
    p_process.set_defaults(func=_cmd_process)

    # --- store ---
    p_store = subparsers.add_parser("store", help="Inspect and maintain the result store")
    store_sub = p_store.add_subparsers(dest="store_command", required=True)

    p_migrate = store_sub.add_parser("migrate", help="Migrate the store to the current schema")
    p_migrate.set_defaults(func=_cmd_store_migrate)

    p_list = store_sub.add_parser("list", help="List stored records")
    p_list.add_argument("--kind", choices=["article", "vocabulary", "sentence"], default=None)
    p_list.set_defaults(func=_cmd_store_list)

    p_export = store_sub.add_parser("export", help="Export stored records")
    p_export.add_argument("--format", choices=["json", "markdown"], default="json")
    p_export.add_argument("-o", "--output", type=Path, default=None,
                          help="Output file (default: stdout)")
    p_export.set_defaults(func=_cmd_store_export)

    p_import = store_sub.add_parser("import", help="Import a JSON export (any schema version)")
    p_import.add_argument("file", type=Path)
    p_import.set_defaults(func=_cmd_store_import)

    # --- cache ---
    p_cache = subparsers.add_parser("cache", help="Manage the result cache")
    cache_sub = p_cache.add_subparsers(dest="cache_command", required=True)
    p_clear = cache_sub.add_parser("clear", help="Remove every cache entry")
    p_clear.set_defaults(func=_cmd_cache_clear)

    # --- providers ---
    p_providers = subparsers.add_parser("providers", help="Show the provider chain")
    p_providers.set_defaults(func=_cmd_providers)

    return parser


async def _cmd_process(args: argparse.Namespace, settings: Any) -> int:
    """Run a single task and print its output."""
    from lingocore.api.facade import LearningProcessor

    if args.file is not None:
        if not args.file.exists():
            logger.error("File not found: %s", args.file)
            return EXIT_ERROR
        text = args.file.read_text(encoding="utf-8")
    elif args.text is not None:
        text = args.text
    else:
        text = sys.stdin.read()

    params = _parse_params(args.param)
    processor = LearningProcessor.from_settings(settings)
    try:
        result = await processor.process(args.task, text, **params)
    finally:
        processor.close()

    if args.json:
        print(result.model_dump_json(indent=2))
        return EXIT_OK

    output = result.output
    if output.language is not None:
        print(output.language)
    elif output.vocabulary is not None:
        for entry in output.vocabulary:
            print(f"{entry.word}: {entry.definition}")
    else:
        print(output.text)

    source = "cache" if result.from_cache else result.provider_used
    logger.info("Served by %s (%d failed attempt(s))", source, len(result.failures))
    return EXIT_OK


async def _cmd_store_migrate(args: argparse.Namespace, settings: Any) -> int:
    from lingocore.store.json_store import JsonResultStore

    report = await JsonResultStore(settings.store_path).migrate()
    print(f"Schema {report.from_version} → {report.to_version}: "
          f"{report.records_migrated} record(s) migrated, {report.writes} write(s)")
    return EXIT_OK


async def _cmd_store_list(args: argparse.Namespace, settings: Any) -> int:
    from lingocore.store.json_store import JsonResultStore

    records = await JsonResultStore(settings.store_path).list_records(args.kind)
    for record in records:
        print(f"{record.id:24s} {record.kind:10s} {_record_label(record)}")
    print(f"\n{len(records)} record(s)")
    return EXIT_OK


async def _cmd_store_export(args: argparse.Namespace, settings: Any) -> int:
    from lingocore.store.exporter import export_json, export_markdown
    from lingocore.store.json_store import JsonResultStore

    records = await JsonResultStore(settings.store_path).load()
    text = export_json(records) if args.format == "json" else export_markdown(records)
    if args.output is None:
        print(text)
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info("Exported %d record(s) to %s", len(records), args.output)
    return EXIT_OK


async def _cmd_store_import(args: argparse.Namespace, settings: Any) -> int:
    from lingocore.store.exporter import import_json
    from lingocore.store.json_store import JsonResultStore

    if not args.file.exists():
        logger.error("File not found: %s", args.file)
        return EXIT_ERROR
    count = await import_json(
        JsonResultStore(settings.store_path), args.file.read_text(encoding="utf-8")
    )
    print(f"Imported {count} record(s)")
    return EXIT_OK


async def _cmd_cache_clear(args: argparse.Namespace, settings: Any) -> int:
    from lingocore.cache.cache_factory import create_cache

    cache = create_cache(settings)
    try:
        await cache.clear()
    finally:
        cache.close()
    print("Cache cleared")
    return EXIT_OK


async def _cmd_providers(args: argparse.Namespace, settings: Any) -> int:
    from lingocore.coordinator.coordinator import FallbackCoordinator
    from lingocore.providers.provider_factory import build_provider_chain

    status = FallbackCoordinator(build_provider_chain(settings), settings=settings).service_status()
    print(f"{'provider':12s} {'priority':>8s}  {'locality':10s} state")
    for p in status["providers"]:
        print(f"{p['name']:12s} {p['priority']:8d}  {p['locality']:10s} {p['state']}")
    return EXIT_OK


def _parse_params(pairs: list[str]) -> dict[str, Any]:
    """Parse KEY=VALUE pairs; values are JSON when they parse as JSON."""
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Invalid --param {pair!r}, expected KEY=VALUE")
        try:
            params[key.strip()] = json.loads(value)
        except json.JSONDecodeError:
            params[key.strip()] = value
    return params


def _record_label(record: Any) -> str:
    if record.kind == "vocabulary":
        return record.word
    if record.kind == "sentence":
        return record.content[:60]
    return record.title or record.url or (record.content or record.source_text)[:60]


def _setup_logging(verbose: bool, settings: Any = None) -> None:
    """Configure logging for CLI usage."""
    from lingocore.logging.logger import setup_logging, setup_logging_from_settings

    if settings is None:
        setup_logging(level="DEBUG" if verbose else "INFO")
    else:
        setup_logging_from_settings(settings, verbose=verbose)
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
