"""
End-to-end tests for the typer CLI against a temporary database.

What we test
------------
1. init-db / validate-config succeed with an explicit config file.
2. import-listings → value-listings → show-valuation → show-deals flow.
3. Input errors print ``[ERROR]`` and exit with code 1.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from bazaar_valuator.cli import app

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path) -> str:
    db_path = (tmp_path / "db" / "cli.db").as_posix()
    export_dir = (tmp_path / "exports").as_posix()
    path = tmp_path / "cli.toml"
    path.write_text(
        f'[database]\ndb_path = "{db_path}"\n\n'
        f'[data]\nexport_dir = "{export_dir}"\n\n'
        '[logging]\nlevel = "WARNING"\nlog_file = ""\n',
        encoding="utf-8",
    )
    return str(path)


@pytest.fixture
def listing_files(tmp_path) -> tuple[Path, Path]:
    sold = [
        {"listing_id": i, "external_id": f"S-{i}", "vocation": "Elite Knight",
         "level": 300 + i, "sword": 110, "magic_level": 12, "sold_price": 1000}
        for i in range(1, 7)
    ]
    active = [
        {"listing_id": 50, "character_name": "Cheap Knight", "vocation": "Knight",
         "level": 303, "sword": 110, "magic_level": 12, "current_bid": 600},
        {"listing_id": 51, "character_name": "No Level", "vocation": "Knight"},
    ]
    sold_path = tmp_path / "sold.json"
    active_path = tmp_path / "active.json"
    sold_path.write_text(json.dumps(sold), encoding="utf-8")
    active_path.write_text(json.dumps(active), encoding="utf-8")
    return sold_path, active_path


def _invoke(*args: str):
    return runner.invoke(app, list(args))


def _import_all(config_path, listing_files):
    sold_path, active_path = listing_files
    for kind, path in (("sold", sold_path), ("active", active_path)):
        result = _invoke("import-listings", "--kind", kind, "--file", str(path),
                         "--config", config_path)
        assert result.exit_code == 0, result.output


class TestSetupCommands:
    def test_init_db(self, config_path):
        result = _invoke("init-db", "--config", config_path)
        assert result.exit_code == 0, result.output
        assert "[OK] Database ready." in result.output

    def test_validate_config(self, config_path):
        result = _invoke("validate-config", "--config", config_path)
        assert result.exit_code == 0
        assert "[OK] Config valid." in result.output

    def test_missing_config_exits(self, tmp_path):
        result = _invoke("validate-config", "--config", str(tmp_path / "nope.toml"))
        assert result.exit_code == 1
        assert "[ERROR]" in result.output


class TestValuationFlow:
    def test_value_listings_table_and_export(self, config_path, listing_files, tmp_path):
        _import_all(config_path, listing_files)
        result = _invoke("value-listings", "--export", "csv", "--config", config_path)
        assert result.exit_code == 0, result.output
        assert "Cheap Knight" in result.output
        assert "Valued: 1 of 2" in result.output
        assert len(list((tmp_path / "exports").glob("valuations_*.csv"))) == 1

    def test_value_listings_json(self, config_path, listing_files):
        _import_all(config_path, listing_files)
        result = _invoke("value-listings", "--json", "--config", config_path)
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["50"]["estimated_value"] == 1000
        assert payload["50"]["sample_size"] == 6

    def test_show_valuation(self, config_path, listing_files):
        _import_all(config_path, listing_files)
        result = _invoke("show-valuation", "50", "--config", config_path)
        assert result.exit_code == 0, result.output
        assert "Estimate:   1,000" in result.output
        assert "S-3" in result.output
        assert "Similarity factors" in result.output

    def test_show_valuation_unknown_listing(self, config_path):
        result = _invoke("show-valuation", "999", "--config", config_path)
        assert result.exit_code == 1

    def test_show_deals(self, config_path, listing_files):
        _import_all(config_path, listing_files)
        _invoke("value-listings", "--config", config_path)
        result = _invoke("show-deals", "--config", config_path)
        assert result.exit_code == 0, result.output
        assert "Cheap Knight" in result.output
        assert "40%" in result.output

        stricter = _invoke("show-deals", "--min-discount", "50", "--config", config_path)
        assert "no deals found" in stricter.output


class TestInputErrors:
    def test_bad_kind(self, config_path, listing_files):
        result = _invoke("import-listings", "--kind", "pending", "--file",
                         str(listing_files[0]), "--config", config_path)
        assert result.exit_code == 1
        assert "[ERROR]" in result.output

    def test_invalid_rows(self, config_path, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"listing_id": 1, "level": -2}]), encoding="utf-8")
        result = _invoke("import-listings", "--kind", "active", "--file", str(path),
                         "--config", config_path)
        assert result.exit_code == 1
        assert "failed validation" in result.output

    def test_dry_run_writes_nothing(self, config_path, listing_files):
        result = _invoke("import-listings", "--kind", "sold", "--file",
                         str(listing_files[0]), "--dry-run", "--config", config_path)
        assert result.exit_code == 0
        assert "[DRY RUN] 6 listing(s) valid" in result.output

    def test_bad_export_format(self, config_path):
        result = _invoke("value-listings", "--export", "xlsx", "--config", config_path)
        assert result.exit_code == 1
