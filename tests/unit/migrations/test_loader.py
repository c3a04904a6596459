"""Tests for migration unit discovery and loading."""

from pathlib import Path

import pytest

from dbmigrate.exceptions import ExecutorError
from dbmigrate.migrations.loader import discover_units, load_hook
from dbmigrate.migrations.models import UnitKind


class FakeDb:
    """Records statements instead of executing them."""

    def __init__(self) -> None:
        self.statements: list[str] = []

    def execute(self, sql: str, params: tuple = ()) -> list:
        self.statements.append(sql)
        return []

    def execute_script(self, script: str) -> None:
        self.statements.append(script)


class TestDiscoverUnits:
    """Tests for discover_units()."""

    def test_missing_directory_is_empty(self, tmp_path: Path):
        """Should return empty list when the directory does not exist."""
        assert discover_units(tmp_path / "missing") == []

    def test_sorted_by_name(self, migrations_dir: Path):
        """Should sort units by their timestamped name."""
        (migrations_dir / "20240103000000-third.py").write_text("")
        (migrations_dir / "20240101000000-first.yaml").write_text("")
        (migrations_dir / "20240102000000-second.yml").write_text("")

        units = discover_units(migrations_dir)

        assert [u.name for u in units] == [
            "20240101000000-first",
            "20240102000000-second",
            "20240103000000-third",
        ]
        assert [u.kind for u in units] == [UnitKind.YAML, UnitKind.YAML, UnitKind.PYTHON]

    def test_skips_non_migration_files(self, migrations_dir: Path):
        """Should skip files without a timestamp prefix or known extension."""
        (migrations_dir / "20240101000000-valid.py").write_text("")
        (migrations_dir / "readme.yaml").write_text("not a migration")
        (migrations_dir / "20240102000000-notes.txt").write_text("")
        (migrations_dir / "__init__.py").write_text("")

        assert [u.name for u in discover_units(migrations_dir)] == ["20240101000000-valid"]

    def test_is_not_recursive(self, migrations_dir: Path):
        """Should ignore units in subdirectories (scopes, sqls/)."""
        (migrations_dir / "billing").mkdir()
        (migrations_dir / "billing" / "20240101000000-invoices.py").write_text("")

        assert discover_units(migrations_dir) == []

    def test_duplicate_names_raise(self, migrations_dir: Path):
        """Should refuse two files with the same unit name."""
        (migrations_dir / "20240101000000-a.py").write_text("")
        (migrations_dir / "20240101000000-a.yaml").write_text("")

        with pytest.raises(ExecutorError, match="Duplicate"):
            discover_units(migrations_dir)


class TestLoadHook:
    """Tests for load_hook()."""

    def test_python_hook(self, migrations_dir: Path):
        """Should load the named function from a Python unit."""
        (migrations_dir / "20240101000000-a.py").write_text(
            'def up(db):\n    db.execute("CREATE TABLE a (id INTEGER)")\n'
        )
        (unit,) = discover_units(migrations_dir)
        db = FakeDb()

        load_hook(unit, "up")(db)

        assert db.statements == ["CREATE TABLE a (id INTEGER)"]

    def test_python_missing_hook_raises(self, migrations_dir: Path):
        """Should fail when the unit lacks the hook."""
        (migrations_dir / "20240101000000-a.py").write_text("def up(db):\n    pass\n")
        (unit,) = discover_units(migrations_dir)

        with pytest.raises(ExecutorError, match="does not define down"):
            load_hook(unit, "down")

    def test_python_import_error_raises(self, migrations_dir: Path):
        """Should wrap errors raised while importing the unit."""
        (migrations_dir / "20240101000000-a.py").write_text("raise ValueError('bad unit')\n")
        (unit,) = discover_units(migrations_dir)

        with pytest.raises(ExecutorError, match="bad unit"):
            load_hook(unit, "up")

    def test_yaml_hook_runs_statements_in_order(self, migrations_dir: Path):
        """Should execute each YAML statement in order."""
        (migrations_dir / "20240101000000-a.yaml").write_text(
            """
description: "Create a"
up:
  - CREATE TABLE a (id INTEGER)
  - CREATE INDEX ix_a ON a (id)
down:
  - DROP TABLE a
"""
        )
        (unit,) = discover_units(migrations_dir)
        db = FakeDb()

        load_hook(unit, "up")(db)

        assert db.statements == ["CREATE TABLE a (id INTEGER)", "CREATE INDEX ix_a ON a (id)"]

    def test_invalid_yaml_raises(self, migrations_dir: Path):
        """Should fail on invalid YAML instead of skipping the unit."""
        (migrations_dir / "20240101000000-a.yaml").write_text("up: [unclosed")
        (unit,) = discover_units(migrations_dir)

        with pytest.raises(ExecutorError, match="Failed to load"):
            load_hook(unit, "up")

    def test_yaml_wrong_shape_raises(self, migrations_dir: Path):
        """Should fail when a direction is not a list of statements."""
        (migrations_dir / "20240101000000-a.yaml").write_text("up: {not: a list}\n")
        (unit,) = discover_units(migrations_dir)

        with pytest.raises(ExecutorError):
            load_hook(unit, "up")
