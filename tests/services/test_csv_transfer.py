# tests\services\test_csv_transfer.py
import csv
import json

import pytest
import pytest_asyncio

from symbols_awakening.core.domain.models import SymbolCreate
from symbols_awakening.services.csv_transfer import (
    CSV_COLUMNS,
    CsvTransferService,
    ExportOptions,
    ImportOptions,
    RowValidationError,
    parse_row,
)

HEADER = ",".join(CSV_COLUMNS)


def write_csv(path, *lines):
    path.write_text("\n".join((HEADER,) + lines) + "\n", encoding="utf-8")
    return str(path)


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


@pytest_asyncio.fixture
async def service(memory_repo):
    return CsvTransferService(memory_repo)


class TestRowCodec:

    def test_parse_full_row(self):
        symbol = parse_row(
            {
                "id": "lotus",
                "name": "Lotus",
                "category": "",
                "description": "Purity rising from mud",
                "interpretations": '{"buddhist": "enlightenment"}',
                "related_symbols": "mandala, , ankh",
                "properties": '{"petals": 8}',
            }
        )

        assert symbol.category is None
        assert symbol.interpretations == {"buddhist": "enlightenment"}
        assert symbol.related_symbols == ["mandala", "ankh"]
        assert symbol.properties == {"petals": 8}

    def test_empty_json_cells_become_empty_objects(self):
        symbol = parse_row({"id": "x", "name": "X", "description": "d", "interpretations": "", "properties": None})
        assert symbol.interpretations == {}
        assert symbol.properties == {}

    def test_bad_json_is_reported_by_column(self):
        with pytest.raises(RowValidationError, match="Invalid JSON format in interpretations field"):
            parse_row({"id": "x", "name": "X", "description": "d", "interpretations": "{not json"})

    def test_json_array_is_not_an_object(self):
        with pytest.raises(RowValidationError, match="properties"):
            parse_row({"id": "x", "name": "X", "description": "d", "properties": "[1, 2]"})

    def test_missing_required_field(self):
        with pytest.raises(RowValidationError, match="description"):
            parse_row({"id": "x", "name": "X", "description": ""})


@pytest.mark.asyncio
class TestImport:

    async def test_missing_file(self, service, tmp_path):
        report = await service.import_symbols(str(tmp_path / "absent.csv"))

        assert report.success is False
        assert report.processed == 0
        assert report.errors[0].row == 0
        assert report.errors[0].error.startswith("File not found")

    async def test_imports_new_rows_and_skips_existing(self, service, memory_repo, tmp_path):
        path = write_csv(
            tmp_path / "in.csv",
            'lotus,Lotus,botanical,Purity,"{""buddhist"": ""enlightenment""}","mandala,ankh",{}',
            "ankh,Ankh again,egyptian,Duplicate row,{},,{}",
        )

        report = await service.import_symbols(path)

        assert report.success is True
        assert (report.processed, report.created, report.skipped) == (2, 1, 1)
        lotus = (await memory_repo.get_symbol("lotus")).data
        assert lotus.interpretations == {"buddhist": "enlightenment"}
        assert lotus.related_symbols == ["mandala", "ankh"]
        assert (await memory_repo.get_symbol("ankh")).data.name == "Ankh (☥)"

    async def test_duplicates_are_errors_when_not_skipped(self, service, tmp_path):
        path = write_csv(tmp_path / "in.csv", "ankh,Ankh,egyptian,Again,{},,{}")

        report = await service.import_symbols(path, ImportOptions(skip_duplicates=False))

        assert report.success is False
        assert report.errors[0].row == 1
        assert "already exists" in report.errors[0].error

    async def test_bad_rows_do_not_stop_the_batch(self, service, tmp_path):
        path = write_csv(
            tmp_path / "in.csv",
            "good_one,Good,,Fine,{},,{}",
            "bad_one,Bad,,Broken,{oops,,{}",
            "good_two,Good Two,,Fine too,{},,{}",
        )

        report = await service.import_symbols(path)

        assert report.created == 2
        assert [(e.row, e.error) for e in report.errors] == [
            (2, "Invalid JSON format in interpretations field")
        ]
        assert report.errors[0].data["id"] == "bad_one"

    async def test_max_rows(self, service, tmp_path):
        path = write_csv(tmp_path / "in.csv", *[f"s{i},S{i},,Row {i},{{}},,{{}}" for i in range(5)])

        report = await service.import_symbols(path, ImportOptions(max_rows=2))

        assert report.processed == 2
        assert report.created == 2

    async def test_rows_past_max_rows_are_not_read(self, service, memory_repo, tmp_path):
        path = write_csv(
            tmp_path / "in.csv",
            "first,First,,Kept,{},,{}",
            "second,Second,,Dropped,{broken,,{}",
        )
        calls = []

        report = await service.import_symbols(
            path, ImportOptions(max_rows=1, on_progress=lambda done, total: calls.append((done, total)))
        )

        assert report.success is True
        assert report.processed == 1
        assert calls == [(1, 1)]
        assert (await memory_repo.get_symbol("second")).data is None

    async def test_quoted_cells_may_span_lines(self, service, memory_repo, tmp_path):
        path = write_csv(
            tmp_path / "in.csv",
            'lotus,Lotus,,"Rises from mud\nopens at dawn",{},,{}',
            "lily,Lily,,Single line,{},,{}",
        )

        report = await service.import_symbols(path)

        assert report.errors == []
        assert (report.processed, report.created) == (2, 2)
        lotus = (await memory_repo.get_symbol("lotus")).data
        assert lotus.description == "Rises from mud\nopens at dawn"

    async def test_unterminated_quote_writes_nothing(self, service, memory_repo, tmp_path):
        path = write_csv(
            tmp_path / "in.csv",
            "early,Early,,Valid row,{},,{}",
            'late,Late,,"never closed,{},,{}',
        )

        report = await service.import_symbols(path)

        assert report.success is False
        assert report.processed == 0
        assert report.errors[0].error.startswith("CSV parsing failed")
        assert (await memory_repo.get_symbol("early")).data is None

    async def test_validate_relations(self, service, tmp_path):
        path = write_csv(
            tmp_path / "in.csv",
            "alpha,Alpha,,First,{},\"alpha,ankh\",{}",
            "beta,Beta,,Second,{},alpha,{}",
            "gamma,Gamma,,Third,{},\"unicorn,ankh\",{}",
        )

        report = await service.import_symbols(path, ImportOptions(validate_relations=True))

        assert report.created == 2
        assert [(e.row, e.error) for e in report.errors] == [(3, "Unknown related symbols: unicorn")]

    async def test_progress_callback(self, service, tmp_path):
        path = write_csv(tmp_path / "in.csv", "a1,A,,d,{},,{}", "a2,B,,d,{},,{}")
        calls = []

        await service.import_symbols(path, ImportOptions(on_progress=lambda done, total: calls.append((done, total))))

        assert calls == [(1, 2), (2, 2)]

    async def test_header_without_required_columns(self, service, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text("id,title\nx,X\n", encoding="utf-8")

        report = await service.import_symbols(str(path))

        assert report.success is False
        assert report.errors[0].row == 0
        assert "name" in report.errors[0].error and "description" in report.errors[0].error

    async def test_malformed_csv(self, service, tmp_path):
        path = tmp_path / "in.csv"
        path.write_text(HEADER + '\nx,"X" oops,,d,{},,{}\n', encoding="utf-8")

        report = await service.import_symbols(str(path))

        assert report.success is False
        assert report.errors[0].error.startswith("CSV parsing failed")


@pytest.mark.asyncio
class TestExport:

    async def test_export_all(self, service, tmp_path):
        target = tmp_path / "out" / "symbols.csv"

        report = await service.export_symbols(ExportOptions(file_path=str(target)))

        assert report.success is True
        assert report.exported == 6
        rows = read_csv(target)
        assert list(rows[0].keys()) == CSV_COLUMNS
        infinity = next(r for r in rows if r["id"] == "infinity")
        assert infinity["related_symbols"] == "ouroboros,mobius_strip,eternal_knot"
        assert json.loads(infinity["properties"])["unicode"] == "∞"

    async def test_export_by_category(self, service, tmp_path):
        target = tmp_path / "egypt.csv"

        report = await service.export_symbols(ExportOptions(file_path=str(target), category="EGYPTIAN"))

        assert report.exported == 1
        assert [r["id"] for r in read_csv(target)] == ["ankh"]

    async def test_export_by_ids_skips_unknown(self, service, tmp_path):
        target = tmp_path / "picked.csv"

        report = await service.export_symbols(
            ExportOptions(file_path=str(target), symbol_ids=["mandala", "ghost", "ankh"])
        )

        assert report.exported == 2
        assert [r["id"] for r in read_csv(target)] == ["mandala", "ankh"]

    async def test_nothing_to_export(self, service, tmp_path):
        target = tmp_path / "none.csv"

        report = await service.export_symbols(ExportOptions(file_path=str(target), category="nonexistent"))

        assert report.success is False
        assert report.error == "No symbols found matching the criteria"
        assert not target.exists()

    async def test_empty_id_list_exports_nothing(self, service, tmp_path):
        target = tmp_path / "empty.csv"

        report = await service.export_symbols(ExportOptions(file_path=str(target), symbol_ids=[]))

        assert report.success is False
        assert report.exported == 0
        assert report.error == "No symbols found matching the criteria"
        assert not target.exists()

    async def test_null_category_exports_as_empty_cell(self, service, memory_repo, tmp_path):
        await memory_repo.create_symbol(SymbolCreate(id="blank", name="Blank", description="No category"))
        target = tmp_path / "blank.csv"

        await service.export_symbols(ExportOptions(file_path=str(target), symbol_ids=["blank"]))

        assert read_csv(target)[0]["category"] == ""

    async def test_export_then_import_into_empty_store(self, service, empty_memory_repo, tmp_path):
        target = tmp_path / "all.csv"
        await service.export_symbols(ExportOptions(file_path=str(target)))
        await empty_memory_repo.connect()

        report = await CsvTransferService(empty_memory_repo).import_symbols(
            str(target), ImportOptions(skip_duplicates=False)
        )

        assert report.errors == []
        assert report.created == 6
        timestamps = {"created_at", "updated_at"}
        copied = (await empty_memory_repo.get_symbols(limit=100)).data
        original = (await service.repository.get_symbols(limit=100)).data
        assert [s.model_dump(exclude=timestamps) for s in copied] == [
            s.model_dump(exclude=timestamps) for s in original
        ]


@pytest.mark.asyncio
class TestSample:

    async def test_sample_file_is_importable(self, service, tmp_path):
        target = tmp_path / "sample.csv"

        assert await service.write_sample_csv(str(target)) is True
        report = await service.import_symbols(str(target))

        assert report.created == 2
        assert report.errors == []
