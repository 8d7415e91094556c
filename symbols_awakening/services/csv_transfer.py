# symbols_awakening/services/csv_transfer.py
"""
CSV bulk import / export of symbols.

Row format:

    id,name,category,description,interpretations,related_symbols,properties

- `interpretations` / `properties`: JSON-encoded objects
- `related_symbols`: comma-separated list of ids (quoted when needed)

The service only talks to the ISymbolRepository port, so it works unchanged
against the relational and the in-memory backend.
"""

from __future__ import annotations

import csv
import io
import json
from contextlib import aclosing
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set, Tuple

import aiofiles
import structlog
from pydantic import ValidationError

from symbols_awakening.core.domain.exceptions import ErrorKind
from symbols_awakening.core.domain.models import Symbol, SymbolCreate
from symbols_awakening.core.ports.symbol_repository import ISymbolRepository

logger = structlog.get_logger()

CSV_COLUMNS = [
    "id",
    "name",
    "category",
    "description",
    "interpretations",
    "related_symbols",
    "properties",
]

# Upper bound on how many symbols a single export fetches.
EXPORT_FETCH_CAP = 10_000

SAMPLE_ROWS: List[Dict[str, str]] = [
    {
        "id": "sample_symbol_1",
        "name": "Sample Symbol",
        "category": "example",
        "description": "This is a sample symbol for demonstration",
        "interpretations": '{"philosophical": "Example meaning", "spiritual": "Example significance"}',
        "related_symbols": "sample_symbol_2, sample_symbol_3",
        "properties": '{"complexity": "low", "origin": "modern"}',
    },
    {
        "id": "sample_symbol_2",
        "name": "Another Sample",
        "category": "example",
        "description": "Another example symbol",
        "interpretations": '{"mathematical": "Some formula", "cultural": "Cultural meaning"}',
        "related_symbols": "sample_symbol_1",
        "properties": '{"verified": true, "year": 2024}',
    },
]

ProgressCallback = Callable[[int, int], None]


# ---------------------------------------------------------------------------
# Options & reports
# ---------------------------------------------------------------------------


@dataclass
class ImportOptions:
    skip_duplicates: bool = True
    max_rows: Optional[int] = None
    validate_relations: bool = False
    on_progress: Optional[ProgressCallback] = None


@dataclass
class RowError:
    row: int
    error: str
    data: Optional[Dict[str, Any]] = None


@dataclass
class ImportReport:
    success: bool = True
    processed: int = 0
    created: int = 0
    skipped: int = 0
    errors: List[RowError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ExportOptions:
    file_path: str
    category: Optional[str] = None
    symbol_ids: Optional[List[str]] = None
    on_progress: Optional[ProgressCallback] = None


@dataclass
class ExportReport:
    success: bool
    exported: int
    file_path: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RowValidationError(ValueError):
    """A CSV row that cannot be turned into a SymbolCreate."""


# ---------------------------------------------------------------------------
# Row codec
# ---------------------------------------------------------------------------


def _decode_json_object(raw: Optional[str], column: str) -> Dict[str, Any]:
    if raw is None or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RowValidationError(f"Invalid JSON format in {column} field") from e
    if not isinstance(value, dict):
        raise RowValidationError(f"Invalid JSON format in {column} field: expected an object")
    return value


def split_related(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "row"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def parse_row(row: Dict[str, Optional[str]]) -> SymbolCreate:
    """Validates one CSV record against the Symbol shape."""
    payload = {
        "id": (row.get("id") or "").strip(),
        "name": row.get("name") or "",
        "category": row.get("category") or None,
        "description": row.get("description") or "",
        "interpretations": _decode_json_object(row.get("interpretations"), "interpretations"),
        "related_symbols": split_related(row.get("related_symbols")),
        "properties": _decode_json_object(row.get("properties"), "properties"),
    }
    try:
        return SymbolCreate.model_validate(payload)
    except ValidationError as e:
        raise RowValidationError(_describe(e)) from e


def format_row(symbol: Symbol) -> Dict[str, str]:
    return {
        "id": symbol.id,
        "name": symbol.name,
        "category": symbol.category or "",
        "description": symbol.description,
        "interpretations": json.dumps(symbol.interpretations, ensure_ascii=False),
        "related_symbols": ",".join(symbol.related_symbols),
        "properties": json.dumps(symbol.properties, ensure_ascii=False),
    }


async def _records(path: Path) -> AsyncIterator[List[str]]:
    """
    Yields parsed CSV records one at a time. Physical lines are joined while
    a quoted field is still open, so cells may contain newlines.
    """
    async with aiofiles.open(path, mode="r", encoding="utf-8", newline="") as f:
        pending = ""
        async for line in f:
            pending += line
            if pending.count('"') % 2:
                continue
            for record in csv.reader(io.StringIO(pending, newline=""), strict=True):
                if record:
                    yield record
            pending = ""
        if pending:
            # Unterminated quote; strict parsing raises csv.Error here
            for record in csv.reader(io.StringIO(pending, newline=""), strict=True):
                if record:
                    yield record


async def _scan(path: Path) -> Tuple[List[str], int]:
    header: List[str] = []
    count = 0
    async for record in _records(path):
        if not header:
            header = record
        else:
            count += 1
    return header, count


async def _stream_rows(path: Path) -> AsyncIterator[Dict[str, Optional[str]]]:
    """Header-keyed rows; missing trailing cells are None, surplus cells are dropped."""
    header: Optional[List[str]] = None
    async with aclosing(_records(path)) as records:
        async for record in records:
            if header is None:
                header = record
                continue
            yield {column: (record[i] if i < len(record) else None) for i, column in enumerate(header)}


def _render(rows: List[Dict[str, str]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class CsvTransferService:
    """Bulk import/export of symbols through the data-access port."""

    def __init__(self, repository: ISymbolRepository):
        self.repository = repository

    # --- Import ---

    async def import_symbols(self, file_path: str, options: Optional[ImportOptions] = None) -> ImportReport:
        options = options or ImportOptions()
        report = ImportReport()
        path = Path(file_path)

        if not path.is_file():
            report.success = False
            report.errors.append(RowError(row=0, error=f"File not found: {file_path}"))
            return report

        # First pass: header and syntax check plus row count, nothing is written yet.
        try:
            header, total = await _scan(path)
        except (csv.Error, UnicodeDecodeError) as e:
            report.success = False
            report.errors.append(RowError(row=0, error=f"CSV parsing failed: {e}"))
            return report

        missing = [c for c in ("id", "name", "description") if c not in header]
        if missing:
            report.success = False
            report.errors.append(RowError(row=0, error=f"CSV header is missing columns: {', '.join(missing)}"))
            return report

        if options.max_rows is not None:
            total = min(total, max(options.max_rows, 0))

        logger.info("csv_import_started", file=str(path), rows=total)
        created_ids: Set[str] = set()

        row_number = 0
        async with aclosing(_stream_rows(path)) as rows:
            async for data in rows:
                if row_number >= total:
                    break
                row_number += 1
                report.processed += 1
                error = await self._import_row(data, options, report, created_ids)
                if error:
                    report.errors.append(RowError(row=row_number, error=error, data=data))
                if options.on_progress:
                    options.on_progress(report.processed, total)

        report.success = not report.errors
        logger.info(
            "csv_import_finished",
            processed=report.processed,
            created=report.created,
            skipped=report.skipped,
            errors=len(report.errors),
        )
        return report

    async def _import_row(
        self,
        data: Dict[str, Any],
        options: ImportOptions,
        report: ImportReport,
        created_ids: Set[str],
    ) -> Optional[str]:
        """Returns an error message for the row, or None when it was created/skipped."""
        try:
            symbol = parse_row(data)
        except RowValidationError as e:
            return str(e)

        # Bounded existence check: one lookup by id.
        existing = await self.repository.get_symbol(symbol.id)
        if not existing.success:
            return existing.error.message
        if existing.data is not None:
            if options.skip_duplicates:
                report.skipped += 1
                return None
            return f'Symbol with ID "{symbol.id}" already exists'

        if options.validate_relations and symbol.related_symbols:
            unknown = await self._unknown_relations(symbol, created_ids)
            if unknown:
                return f"Unknown related symbols: {', '.join(unknown)}"

        result = await self.repository.create_symbol(symbol)
        if result.success:
            report.created += 1
            created_ids.add(symbol.id)
            return None
        if result.kind == ErrorKind.ALREADY_EXISTS and options.skip_duplicates:
            report.skipped += 1
            return None
        return result.error.message

    async def _unknown_relations(self, symbol: SymbolCreate, created_ids: Set[str]) -> List[str]:
        unknown = []
        for related_id in symbol.related_symbols:
            if related_id == symbol.id or related_id in created_ids:
                continue
            found = await self.repository.get_symbol(related_id)
            if found.success and found.data is None:
                unknown.append(related_id)
        return unknown

    # --- Export ---

    async def export_symbols(self, options: ExportOptions) -> ExportReport:
        try:
            symbols = await self._collect(options)
        except LookupError as e:
            return ExportReport(success=False, exported=0, file_path=options.file_path, error=str(e))

        if not symbols:
            return ExportReport(
                success=False,
                exported=0,
                file_path=options.file_path,
                error="No symbols found matching the criteria",
            )

        rows = []
        for index, symbol in enumerate(symbols, start=1):
            rows.append(format_row(symbol))
            if options.on_progress:
                options.on_progress(index, len(symbols))

        path = Path(options.file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, mode="w", encoding="utf-8", newline="") as f:
                await f.write(_render(rows))
        except OSError as e:
            logger.error("csv_export_failed", file=str(path), error=str(e))
            return ExportReport(success=False, exported=0, file_path=options.file_path, error=str(e))

        logger.info("csv_export_finished", file=str(path), exported=len(symbols))
        return ExportReport(success=True, exported=len(symbols), file_path=options.file_path)

    async def _collect(self, options: ExportOptions) -> List[Symbol]:
        if options.symbol_ids is not None:
            wanted = list(dict.fromkeys(options.symbol_ids))
            symbols = []
            for symbol_id in wanted[:EXPORT_FETCH_CAP]:
                result = await self.repository.get_symbol(symbol_id)
                if not result.success:
                    raise LookupError(result.error.message)
                if result.data is not None:
                    symbols.append(result.data)
            return symbols

        if options.category:
            result = await self.repository.filter_by_category(options.category, limit=EXPORT_FETCH_CAP)
        else:
            result = await self.repository.get_symbols(limit=EXPORT_FETCH_CAP)
        if not result.success:
            raise LookupError(result.error.message)
        return result.data or []

    # --- Sample ---

    async def write_sample_csv(self, file_path: str) -> bool:
        """Writes a two-row reference file. Returns False if it cannot be written."""
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, mode="w", encoding="utf-8", newline="") as f:
                await f.write(_render(SAMPLE_ROWS))
        except OSError as e:
            logger.error("sample_csv_failed", file=str(path), error=str(e))
            return False
        return True
