# symbols_awakening/cli.py
"""
Process entry point.

Usage:
    symbols-awakening                       # MCP server over stdio (default)
    symbols-awakening --demo api --port 3000
    symbols-awakening init-db --sample-data
    symbols-awakening import symbols.csv --max-rows 100
    symbols-awakening export out/symbols.csv --category spiritual
    symbols-awakening sample-csv sample.csv

The backend is the in-memory demo store when `--demo` / DEMO_MODE is set or
no database URL is configured; otherwise the relational store.
"""
import argparse
import asyncio
import sys
from typing import Awaitable, Callable, List, Optional

import structlog

from symbols_awakening import __version__
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository
from symbols_awakening.services.csv_transfer import (
    CsvTransferService,
    ExportOptions,
    ImportOptions,
)
from symbols_awakening.shared.config import Settings, StorageBackend, settings as env_settings
from symbols_awakening.shared.container import Container, build_container
from symbols_awakening.shared.logging_config import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="symbols-awakening",
        description="Symbolic ontology server (MCP + REST)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--demo", action="store_true", help="Use the in-memory demo dataset")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("mcp", help="Serve MCP tools over stdio (default)")

    api_parser = subparsers.add_parser("api", help="Serve the REST API")
    api_parser.add_argument("--host", default=None, help="Bind address (default: API_HOST)")
    api_parser.add_argument("--port", type=int, default=None, help="Port (default: PORT)")

    init_parser = subparsers.add_parser("init-db", help="Create tables and indexes")
    init_parser.add_argument("--sample-data", action="store_true", help="Insert the sample dataset")

    import_parser = subparsers.add_parser("import", help="Import symbols from a CSV file")
    import_parser.add_argument("file", help="CSV file to read")
    import_parser.add_argument(
        "--no-skip-duplicates",
        dest="skip_duplicates",
        action="store_false",
        help="Report existing ids as errors instead of skipping them",
    )
    import_parser.add_argument("--max-rows", type=int, default=None, help="Process at most N rows")
    import_parser.add_argument(
        "--validate-relations",
        action="store_true",
        help="Reject rows whose related_symbols reference unknown ids",
    )

    export_parser = subparsers.add_parser("export", help="Export symbols to a CSV file")
    export_parser.add_argument("file", help="CSV file to write")
    export_parser.add_argument("--category", default=None, help="Only export this category")
    export_parser.add_argument("--ids", default=None, help="Comma-separated list of symbol ids")

    sample_parser = subparsers.add_parser("sample-csv", help="Write a sample CSV file")
    sample_parser.add_argument("file", help="CSV file to write")

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.demo:
        overrides["DEMO_MODE"] = True
    if args.database_url:
        overrides["DATABASE_URL"] = args.database_url
    return Settings(**overrides) if overrides else env_settings


# --- COMMANDS ---

async def _with_repository(
    container: Container,
    work: Callable[[ISymbolRepository], Awaitable[bool]],
) -> bool:
    """Runs `work` between connect() and disconnect()."""
    repository = container.symbol_repository()
    connected = await repository.connect()
    if not connected.success:
        print(f"Could not connect: {connected.error.message}", file=sys.stderr)
        return False
    try:
        return await work(repository)
    finally:
        await repository.disconnect()


def _init_db(args: argparse.Namespace, container: Container) -> Callable[[ISymbolRepository], Awaitable[bool]]:
    async def work(repository: ISymbolRepository) -> bool:
        if container.settings().STORAGE_BACKEND == StorageBackend.MEMORY:
            print("Demo backend selected: nothing to initialize.")
        result = await repository.initialize_schema(include_sample_data=args.sample_data)
        if not result.success:
            print(f"Schema initialization failed: {result.error.message}", file=sys.stderr)
            return False
        print("Schema ready" + (" (sample data inserted where missing)" if args.sample_data else ""))
        return True

    return work


def _import(args: argparse.Namespace, container: Container) -> Callable[[ISymbolRepository], Awaitable[bool]]:
    async def work(repository: ISymbolRepository) -> bool:
        service: CsvTransferService = container.csv_transfer_service(repository=repository)
        report = await service.import_symbols(
            args.file,
            ImportOptions(
                skip_duplicates=args.skip_duplicates,
                max_rows=args.max_rows,
                validate_relations=args.validate_relations,
            ),
        )
        print(
            f"Processed: {report.processed}  Created: {report.created}  "
            f"Skipped: {report.skipped}  Errors: {len(report.errors)}"
        )
        for error in report.errors:
            print(f"  row {error.row}: {error.error}", file=sys.stderr)
        return report.success

    return work


def _export(args: argparse.Namespace, container: Container) -> Callable[[ISymbolRepository], Awaitable[bool]]:
    async def work(repository: ISymbolRepository) -> bool:
        service: CsvTransferService = container.csv_transfer_service(repository=repository)
        symbol_ids = [s.strip() for s in args.ids.split(",") if s.strip()] if args.ids else None
        report = await service.export_symbols(
            ExportOptions(file_path=args.file, category=args.category, symbol_ids=symbol_ids)
        )
        if not report.success:
            print(f"Export failed: {report.error}", file=sys.stderr)
            return False
        print(f"Exported {report.exported} symbols to {report.file_path}")
        return True

    return work


def _run_api(args: argparse.Namespace, container: Container) -> None:
    import uvicorn

    from symbols_awakening.adapters.api.main import create_app

    settings = container.settings()
    uvicorn.run(
        create_app(container),
        host=args.host or settings.API_HOST,
        port=args.port or settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


def _run_mcp(container: Container) -> None:
    from symbols_awakening.adapters.mcp.server import serve_stdio

    backend = container.settings().STORAGE_BACKEND.value
    try:
        asyncio.run(serve_stdio(container.symbol_repository(), backend=backend))
    except KeyboardInterrupt:
        logger.info("mcp_server_interrupted")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = settings_from_args(args)
    configure_logging(settings)
    container = build_container(settings)
    command = args.command or "mcp"

    if command == "mcp":
        _run_mcp(container)
        return 0
    if command == "api":
        _run_api(args, container)
        return 0
    if command == "sample-csv":
        service = CsvTransferService(container.symbol_repository())
        written = asyncio.run(service.write_sample_csv(args.file))
        print(f"Sample CSV written to {args.file}" if written else f"Could not write {args.file}")
        return 0 if written else 1

    commands = {"init-db": _init_db, "import": _import, "export": _export}
    ok = asyncio.run(_with_repository(container, commands[command](args, container)))
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
