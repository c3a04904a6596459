"""Data models for dbmigrate.

This module defines the pydantic models that carry one invocation's intent
(``Directive``), its flags (``RunOptions``) and its connection settings
(``ResolvedConfiguration``). All three are frozen: they are built once by a
validating parse step and passed explicitly to every component.
"""

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Sentinel count meaning "every unit in that direction"
COUNT_ALL = sys.maxsize

SEED_MODE_VC = "vc"
SEED_MODE_STATIC = "static"

SECRET_KEYS = frozenset({"password", "passwd", "secret", "token"})
SECRET_MASK = "******"


class Action(str, Enum):
    """Actions understood by the dispatcher."""

    APPLY = "up"
    REVERT = "down"
    RESET = "reset"
    CREATE = "create"
    SEED = "seed"
    DATABASE_CREATE = "db:create"
    DATABASE_DROP = "db:drop"


class TemplateType(str, Enum):
    """Template variants the scaffolder can materialize."""

    DEFAULT_PY = "default_py"
    SQL_FILE_LOADER = "sql_file_loader"
    DEFAULT_SQL = "default_sql"
    YAML = "yaml"


class Directive(BaseModel):
    """A single, validated execution request.

    Attributes:
        action: What to do.
        scope: Subdirectory of migrations/seeds to run, also the ledger filter.
        mode: Seed source (vc/static) or a qualifier forwarded to the executor.
        destination: Last migration to apply (inclusive), Apply and Seed only.
        count: Maximum number of units to run; ``COUNT_ALL`` for "all".
        name: Migration name for Create, database name for database admin.
        dry_run: Report intended actions without applying them.
        use_transactions: Wrap each unit in its own transaction.
    """

    model_config = ConfigDict(frozen=True)

    action: Action = Field(..., description="Requested action")
    scope: str | None = Field(default=None, description="Scope subdirectory")
    mode: str | None = Field(default=None, description="Secondary qualifier")
    destination: str | None = Field(default=None, description="Last unit to apply")
    count: int | None = Field(default=None, ge=0, description="Max units to run")
    name: str | None = Field(default=None, description="Migration or database name")
    dry_run: bool = Field(default=False, description="Report without applying")
    use_transactions: bool = Field(default=True, description="One transaction per unit")

    @field_validator("scope", "mode", "destination", "name", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def effective_count(self) -> int:
        """Count the executor should honor, with per-action defaults applied."""
        if self.count is not None:
            return self.count
        if self.action is Action.REVERT:
            return 1
        return COUNT_ALL

    @property
    def is_static_seed(self) -> bool:
        return self.mode == SEED_MODE_STATIC


class RunOptions(BaseModel):
    """Invocation flags, built once at startup.

    Paths default relative to the current working directory at construction.
    """

    model_config = ConfigDict(frozen=True)

    env: str | None = Field(default=None, description="Environment name")
    config_path: Path = Field(
        default_factory=lambda: Path.cwd() / "database.json",
        description="Location of the config file",
    )
    migrations_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "migrations",
        description="Directory containing migration files",
    )
    vcseeder_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "VCSeeder",
        description="Version-controlled seeder directory",
    )
    staticseeder_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "Seeder",
        description="Static seeder directory",
    )
    migration_table: str = Field(default="migrations", description="Ledger table name")
    seeds_table: str = Field(default="seeds", description="Seed ledger table name")
    verbose: bool = Field(default=False, description="Verbose logging")
    force_exit: bool = Field(default=False, description="Exit right after completion")
    sql_file: bool = Field(default=False, description="Scaffold the SQL-file loader")
    yaml_file: bool = Field(default=False, description="Scaffold a YAML migration")

    @property
    def template_type(self) -> TemplateType:
        if self.sql_file:
            return TemplateType.SQL_FILE_LOADER
        if self.yaml_file:
            return TemplateType.YAML
        return TemplateType.DEFAULT_PY


def mask_secrets(settings: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``settings`` with credential fields masked."""
    masked: dict[str, Any] = {}
    for key, value in settings.items():
        if key.lower() in SECRET_KEYS and value is not None:
            masked[key] = SECRET_MASK
        elif isinstance(value, dict):
            masked[key] = mask_secrets(value)
        else:
            masked[key] = value
    return masked


class ResolvedConfiguration(BaseModel):
    """Connection settings for one environment."""

    model_config = ConfigDict(frozen=True)

    env: str = Field(..., description="Environment name")
    settings: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def driver(self) -> str | None:
        return self.settings.get("driver")

    def masked_settings(self) -> dict[str, Any]:
        return mask_secrets(self.settings)


@dataclass
class ExecutionContext:
    """Per-invocation state owned by the coordinator.

    Attributes:
        directive: The request being executed.
        config: Connection settings, absent for Create.
        target_dir: Resolved migrations or seeds directory.
        handle: Live executor or driver, closed by the completion protocol.
    """

    directive: Directive
    config: ResolvedConfiguration | None
    target_dir: Path | None = None
    handle: Any = None
