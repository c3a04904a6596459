"""Directory resolution for migrations and seeds."""

import logging
from pathlib import Path

from dbmigrate.exceptions import DirectoryCreationError, InvalidActionError
from dbmigrate.models import RunOptions

logger = logging.getLogger(__name__)


def scoped_dir(base: Path, scope: str | None = None) -> Path:
    """Return ``base/scope`` when a scope is set, otherwise ``base``.

    Existence is not checked; executors report missing directories themselves.
    """
    base = Path(base).expanduser()
    if scope:
        return (base / scope).resolve()
    return base.resolve()


def resolve_migrations_dir(options: RunOptions, scope: str | None = None) -> Path:
    return scoped_dir(options.migrations_dir, scope)


def resolve_seeds_dir(options: RunOptions, static: bool, scope: str | None = None) -> Path:
    """Pick the static or version-controlled seeder directory."""
    base = options.staticseeder_dir if static else options.vcseeder_dir
    return scoped_dir(base, scope)


def ensure_directory(path: Path) -> Path:
    """Create ``path`` recursively if it does not exist.

    Raises:
        DirectoryCreationError: If creation itself fails.
    """
    if path.is_dir():
        return path

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(path, str(e)) from e

    logger.debug(f"Created directory {path}")
    return path


def split_migration_name(name: str) -> tuple[str, list[str]]:
    """Split a possibly nested migration name.

    ``"group/add-users"`` becomes ``("add-users", ["group"])``; the leading
    segments are subdirectories below the migrations directory.

    Raises:
        InvalidActionError: If the name has no title segment.
    """
    segments = [segment for segment in name.replace("\\", "/").split("/") if segment]
    if not segments:
        raise InvalidActionError("'migrationName' is required.")
    if any(segment == ".." for segment in segments):
        raise InvalidActionError(f"Migration name may not leave the migrations directory: {name}")

    return segments[-1], segments[:-1]
