"""Migration file scaffolding.

Materializes new migration units from templates. File names carry a
``YYYYMMDDHHMMSS`` prefix so that lexical order is execution order; every
artifact of one ``create`` shares the same prefix.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import yaml

from dbmigrate.exceptions import ScaffoldError
from dbmigrate.models import TemplateType
from dbmigrate.paths import ensure_directory

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
SQLS_DIRNAME = "sqls"

_DEFAULT_PY = '''"""Migration: {title}."""


def up(db):
    """Apply the migration."""
    pass


def down(db):
    """Revert the migration."""
    pass
'''

_SQL_FILE_LOADER = '''"""Migration: {title}.

Statements are kept in sqls/{stem}-up.sql and sqls/{stem}-down.sql.
"""

from pathlib import Path

SQLS_DIR = Path(__file__).parent / "{sqls_dir}"


def up(db):
    db.execute_script((SQLS_DIR / "{stem}-up.sql").read_text())


def down(db):
    db.execute_script((SQLS_DIR / "{stem}-down.sql").read_text())
'''

_DEFAULT_SQL = "/* Replace with your SQL commands */\n"

_YAML = '''{description}# Each entry is one SQL statement, executed in order.
up: []
down: []
'''

_TEMPLATES = {
    TemplateType.DEFAULT_PY: (_DEFAULT_PY, ".py"),
    TemplateType.SQL_FILE_LOADER: (_SQL_FILE_LOADER, ".py"),
    TemplateType.DEFAULT_SQL: (_DEFAULT_SQL, ".sql"),
    TemplateType.YAML: (_YAML, ".yaml"),
}


@dataclass
class MigrationTemplate:
    """One file to scaffold.

    Attributes:
        title: Migration title (last segment of the requested name).
        directory: Directory the file is written to.
        created_at: Timestamp used for the file name prefix.
        template_type: Which template to render.
    """

    title: str
    directory: Path
    created_at: datetime
    template_type: TemplateType = TemplateType.DEFAULT_PY

    @property
    def stem(self) -> str:
        return f"{self.created_at.strftime(TIMESTAMP_FORMAT)}-{self.title}"

    @property
    def path(self) -> Path:
        _, extension = _TEMPLATES[self.template_type]
        return self.directory / f"{self.stem}{extension}"

    def render(self) -> str:
        template, _ = _TEMPLATES[self.template_type]
        # Title may hold YAML metacharacters
        description = yaml.safe_dump({"description": self.title}, allow_unicode=True)
        return template.format(
            title=self.title,
            stem=self.stem,
            sqls_dir=SQLS_DIRNAME,
            description=description,
        )

    def write(self) -> Path:
        """Write the rendered template, refusing to overwrite.

        Raises:
            ScaffoldError: If the target exists or cannot be written.
        """
        target = self.path
        if target.exists():
            raise ScaffoldError(f"Migration file already exists: {target}")

        try:
            target.write_text(self.render())
        except OSError as e:
            raise ScaffoldError(f"Failed to write migration file {target}: {e}") from e

        return target


def create_migration(
    title: str,
    directory: Path,
    template_type: TemplateType = TemplateType.DEFAULT_PY,
    created_at: datetime | None = None,
) -> list[Path]:
    """Scaffold a migration unit.

    The SQL-file loader variant also writes ``<stem>-up.sql`` and
    ``<stem>-down.sql`` into a ``sqls`` directory beside the loader.

    Args:
        title: Migration title.
        directory: Resolved target directory (created if missing).
        template_type: Template variant for the main file.
        created_at: Timestamp for the file name prefix. Defaults to now.

    Returns:
        Paths of the created files, loader script first.
    """
    created_at = created_at or datetime.now()
    ensure_directory(directory)

    migration = MigrationTemplate(title, directory, created_at, template_type)
    created = [migration.write()]
    logger.info(f"Created migration at {created[0]}")

    if template_type is TemplateType.SQL_FILE_LOADER:
        sql_dir = ensure_directory(directory / SQLS_DIRNAME)
        for direction in ("up", "down"):
            sql_file = MigrationTemplate(
                f"{title}-{direction}", sql_dir, created_at, TemplateType.DEFAULT_SQL
            )
            created.append(sql_file.write())
            logger.info(f"Created migration {direction} sql file at {created[-1]}")

    return created
