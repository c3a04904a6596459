"""Data models for the migration and seed executors."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class UnitKind(str, Enum):
    """Supported migration unit file types."""

    PYTHON = "python"
    YAML = "yaml"


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    SEED = "seed"


class MigrationUnit(BaseModel):
    """A migration or seed file discovered on disk.

    Attributes:
        name: File stem, e.g. "20240101120000-add-users". Ledger key.
        path: Location of the file.
        kind: Python module or declarative YAML.
    """

    name: str = Field(..., description="Unit name (file stem)")
    path: Path = Field(..., description="Unit file")
    kind: UnitKind = Field(..., description="Unit file type")

    @property
    def title(self) -> str:
        """Name without the timestamp prefix."""
        return self.name.split("-", 1)[1] if "-" in self.name else self.name


class YamlUnit(BaseModel):
    """Contents of a declarative YAML unit.

    Each list holds SQL statements executed in order for that direction.
    """

    description: str | None = Field(default=None, description="Human-readable description")
    up: list[str] = Field(default_factory=list, description="Statements to apply")
    down: list[str] = Field(default_factory=list, description="Statements to revert")
    seed: list[str] = Field(default_factory=list, description="Seed statements")


class RunSummary(BaseModel):
    """Outcome of one executor run.

    Attributes:
        direction: up, down or seed.
        executed: Unit names run (or that would run, in dry-run mode), in order.
        dry_run: Whether this was a dry run.
        scope: Scope the run was limited to.
        mode: Qualifier forwarded from the directive.
    """

    direction: Direction
    executed: list[str] = Field(default_factory=list)
    dry_run: bool = False
    scope: str | None = None
    mode: str | None = None
