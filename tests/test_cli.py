# tests\test_cli.py
import csv

import pytest

from symbols_awakening import __version__
from symbols_awakening.cli import build_parser, main, settings_from_args
from symbols_awakening.shared.config import StorageBackend


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    """main() would bind structlog to the stream captured for this test only."""
    monkeypatch.setattr("symbols_awakening.cli.configure_logging", lambda settings=None: None)


def exported_ids(path):
    with open(path, newline="", encoding="utf-8") as f:
        return [row["id"] for row in csv.DictReader(f)]


class TestArguments:

    def test_defaults_to_mcp(self):
        args = build_parser().parse_args([])
        assert args.command is None

    def test_demo_flag_selects_memory_backend(self):
        args = build_parser().parse_args(["--demo", "api", "--port", "8080"])
        settings = settings_from_args(args)

        assert settings.STORAGE_BACKEND == StorageBackend.MEMORY
        assert args.port == 8080

    def test_database_url_selects_relational_backend(self):
        args = build_parser().parse_args(["--database-url", "sqlite:///x.db", "init-db"])
        assert settings_from_args(args).STORAGE_BACKEND == StorageBackend.RELATIONAL

    def test_import_flags(self):
        args = build_parser().parse_args(
            ["import", "in.csv", "--no-skip-duplicates", "--max-rows", "10", "--validate-relations"]
        )
        assert args.skip_duplicates is False
        assert args.max_rows == 10
        assert args.validate_relations is True

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out


class TestCommands:

    def test_sample_csv(self, tmp_path, capsys):
        target = tmp_path / "sample.csv"

        assert main(["--demo", "sample-csv", str(target)]) == 0
        assert exported_ids(target) == ["sample_symbol_1", "sample_symbol_2"]
        assert "Sample CSV written" in capsys.readouterr().out

    def test_demo_export_by_category(self, tmp_path):
        target = tmp_path / "egypt.csv"

        assert main(["--demo", "export", str(target), "--category", "egyptian"]) == 0
        assert exported_ids(target) == ["ankh"]

    def test_demo_export_with_no_matches_fails(self, tmp_path, capsys):
        code = main(["--demo", "export", str(tmp_path / "none.csv"), "--ids", "ghost"])

        assert code == 1
        assert "No symbols found" in capsys.readouterr().err

    def test_init_db_then_import_and_export_on_sqlite(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'symbols.db'}"
        source = tmp_path / "new.csv"
        source.write_text(
            "id,name,category,description,interpretations,related_symbols,properties\n"
            "lotus,Lotus,botanical,Purity rising from mud,{},mandala,{}\n",
            encoding="utf-8",
        )
        target = tmp_path / "all.csv"

        assert main(["--database-url", url, "init-db", "--sample-data"]) == 0
        assert main(["--database-url", url, "import", str(source), "--validate-relations"]) == 0
        assert main(["--database-url", url, "export", str(target)]) == 0

        assert "lotus" in exported_ids(target)
        assert len(exported_ids(target)) == 7
        assert "Created: 1" in capsys.readouterr().out

    def test_import_errors_give_nonzero_exit(self, tmp_path):
        assert main(["--demo", "import", str(tmp_path / "absent.csv")]) == 1
