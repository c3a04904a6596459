"""Shared pytest fixtures for dbmigrate tests.

This module provides temporary migration directories, SQLite-backed
configurations and helpers for inspecting the resulting database.
"""

import json
import sqlite3
from collections.abc import Callable
from pathlib import Path

import pytest

from dbmigrate.models import ResolvedConfiguration, RunOptions

# =============================================================================
# Migration Unit Fixtures
# =============================================================================


def unit_source(table: str) -> str:
    """Python migration creating ``table`` on up and dropping it on down."""
    return (
        "def up(db):\n"
        f'    db.execute("CREATE TABLE {table} (id INTEGER PRIMARY KEY)")\n'
        "\n"
        "\n"
        "def down(db):\n"
        f'    db.execute("DROP TABLE {table}")\n'
    )


@pytest.fixture
def migrations_dir(tmp_path: Path) -> Path:
    """Create a temporary migrations directory."""
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    return migrations


@pytest.fixture
def write_unit() -> Callable[..., Path]:
    """Return a helper writing a Python migration unit.

    The default unit creates a table named after the unit's title.
    """

    def _write(directory: Path, name: str, source: str | None = None) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.py"
        table = name.split("-", 1)[1].replace("-", "_")
        path.write_text(source if source is not None else unit_source(table))
        return path

    return _write


@pytest.fixture
def three_migrations(migrations_dir: Path, write_unit: Callable[..., Path]) -> list[str]:
    """Three pending migrations A, B, C in ledger order."""
    names = ["20240101000000-a", "20240102000000-b", "20240103000000-c"]
    for name in names:
        write_unit(migrations_dir, name)
    return names


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_file(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def sqlite_config(db_file: Path) -> ResolvedConfiguration:
    """Configuration pointing at a temporary SQLite file."""
    return ResolvedConfiguration(
        env="test",
        settings={"driver": "sqlite3", "filename": str(db_file)},
    )


@pytest.fixture
def config_file(tmp_path: Path, db_file: Path) -> Path:
    """Write a database.json with dev and test environments."""
    path = tmp_path / "database.json"
    path.write_text(
        json.dumps(
            {
                "defaultEnv": "dev",
                "dev": {"driver": "sqlite3", "filename": str(tmp_path / "dev.db")},
                "test": {"driver": "sqlite3", "filename": str(db_file)},
            }
        )
    )
    return path


@pytest.fixture
def options(tmp_path: Path, migrations_dir: Path, config_file: Path) -> RunOptions:
    """RunOptions rooted in the temporary directory, test environment."""
    return RunOptions(
        env="test",
        config_path=config_file,
        migrations_dir=migrations_dir,
        vcseeder_dir=tmp_path / "VCSeeder",
        staticseeder_dir=tmp_path / "Seeder",
    )


@pytest.fixture
def ledger(db_file: Path) -> Callable[..., list[str]]:
    """Return a helper reading ledger names from the test database."""

    def _read(table: str = "migrations") -> list[str]:
        with sqlite3.connect(db_file) as conn:
            rows = conn.execute(f'SELECT name FROM "{table}" ORDER BY id').fetchall()
        return [row[0] for row in rows]

    return _read


@pytest.fixture
def tables(db_file: Path) -> Callable[[], set[str]]:
    """Return a helper listing user tables in the test database."""

    def _read() -> set[str]:
        with sqlite3.connect(db_file) as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' "
                "AND name NOT LIKE 'sqlite_%'"
            ).fetchall()
        return {row[0] for row in rows}

    return _read
