"""Discovery and loading of migration units.

Units are files named ``<14-digit timestamp>-<title>`` with a ``.py``,
``.yaml`` or ``.yml`` extension. Python units define ``up(db)``/``down(db)``
(seeds define ``seed(db)``); YAML units list SQL statements under the keys of
the same names. Discovery is not recursive: scoped units live in their own
subdirectory and ``sqls/`` companions are never picked up.
"""

import importlib.util
import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from dbmigrate.exceptions import ExecutorError
from dbmigrate.migrations.models import MigrationUnit, UnitKind, YamlUnit

logger = logging.getLogger(__name__)

UNIT_PATTERN = re.compile(r"^\d{14}-.+$")
UNIT_SUFFIXES = {".py": UnitKind.PYTHON, ".yaml": UnitKind.YAML, ".yml": UnitKind.YAML}

Hook = Callable[[Any], None]


def discover_units(directory: Path) -> list[MigrationUnit]:
    """List the units in ``directory``, sorted by name.

    A missing directory yields an empty list.

    Raises:
        ExecutorError: If two files share one unit name.
    """
    if not directory.is_dir():
        logger.info(f"Directory {directory} does not exist, nothing to run")
        return []

    units: dict[str, MigrationUnit] = {}
    for path in directory.iterdir():
        kind = UNIT_SUFFIXES.get(path.suffix)
        if kind is None or not path.is_file() or not UNIT_PATTERN.match(path.stem):
            continue
        if path.stem in units:
            raise ExecutorError(
                f"Duplicate migration name {path.stem} ({units[path.stem].path.name}, {path.name})"
            )
        units[path.stem] = MigrationUnit(name=path.stem, path=path, kind=kind)

    return sorted(units.values(), key=lambda u: u.name)


def _import_module(unit: MigrationUnit) -> Any:
    module_name = f"dbmigrate_unit_{re.sub(r'[^0-9A-Za-z_]', '_', unit.name)}"
    spec = importlib.util.spec_from_file_location(module_name, unit.path)
    if spec is None or spec.loader is None:
        raise ExecutorError(f"Cannot load migration {unit.path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ExecutorError(f"Failed to import migration {unit.name}: {e}") from e
    return module


def _load_yaml(unit: MigrationUnit) -> YamlUnit:
    try:
        data = yaml.safe_load(unit.path.read_text()) or {}
        return YamlUnit.model_validate(data)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        raise ExecutorError(f"Failed to load migration {unit.name}: {e}") from e


def load_hook(unit: MigrationUnit, hook: str) -> Hook:
    """Return the callable running ``hook`` (up, down or seed) for ``unit``.

    Raises:
        ExecutorError: If the unit cannot be loaded or lacks the hook.
    """
    if unit.kind is UnitKind.PYTHON:
        func = getattr(_import_module(unit), hook, None)
        if not callable(func):
            raise ExecutorError(f"Migration {unit.name} does not define {hook}()")
        return func

    statements = getattr(_load_yaml(unit), hook)

    def run_statements(db: Any) -> None:
        for statement in statements:
            db.execute_script(statement)

    return run_statements
