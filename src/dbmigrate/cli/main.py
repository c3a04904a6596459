"""Command-line interface for dbmigrate."""

import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from dbmigrate.__version__ import __version__
from dbmigrate.api import DBMigrate
from dbmigrate.dispatcher import USAGE
from dbmigrate.guard import error_boundary
from dbmigrate.models import RunOptions

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@click.command(context_settings=CONTEXT_SETTINGS, epilog=USAGE)
@click.version_option(__version__, "--version", "-i")
@click.argument("action", required=False)
@click.argument("args", nargs=-1)
@click.option("--env", "-e", help="The environment to run the migrations under (dev, test, prod).")
@click.option(
    "--migrations-dir",
    "-m",
    type=click.Path(path_type=Path),
    help="The directory containing your migration files.",
)
@click.option("--count", "-c", type=click.IntRange(min=0), help="Max number of migrations to run.")
@click.option("--dry-run", is_flag=True, help="Report what would run without running it.")
@click.option("--force-exit", is_flag=True, help="Forcibly exit the process on completion.")
@click.option("--verbose", "-v", is_flag=True, help="Verbose mode.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    help="Location of the database.json file.",
)
@click.option(
    "--sql-file",
    is_flag=True,
    help="Create up/down sql files in sqls/ and a migration that loads them.",
)
@click.option("--yaml-file", is_flag=True, help="Create a declarative YAML migration.")
@click.option(
    "--table",
    "-t",
    "--migration-table",
    "migration_table",
    help="Name of the table storing the migration history.",
)
@click.option("--seeds-table", help="Name of the table storing the seed history.")
@click.option(
    "--vcseeder-dir",
    type=click.Path(path_type=Path),
    help="Path to the version-controlled seeder directory.",
)
@click.option(
    "--staticseeder-dir",
    type=click.Path(path_type=Path),
    help="Path to the static seeder directory.",
)
@click.option("--no-transactions", is_flag=True, help="Explicitly disable transactions.")
@click.pass_context
def main(
    ctx: click.Context,
    action: str | None,
    args: tuple[str, ...],
    env: str | None,
    migrations_dir: Path | None,
    count: int | None,
    dry_run: bool,
    force_exit: bool,
    verbose: bool,
    config_path: Path | None,
    sql_file: bool,
    yaml_file: bool,
    migration_table: str | None,
    seeds_table: str | None,
    vcseeder_dir: Path | None,
    staticseeder_dir: Path | None,
    no_transactions: bool,
) -> None:
    """Run database migrations and seeders.

    ACTION is one of up, down, reset, create, seed or db, optionally followed
    by :mode and :scope (e.g. seed:static, db:create, up::billing).

    \b
    Examples:
      db-migrate up --count 2 --env test
      db-migrate down
      db-migrate create group/add-users --sql-file
      db-migrate seed static
      db-migrate db:create app_test
    """
    setup_logging(verbose)

    if not action:
        click.echo(ctx.get_help())
        ctx.exit(1)

    flags = {
        "env": env,
        "migrations_dir": migrations_dir,
        "config_path": config_path,
        "migration_table": migration_table,
        "seeds_table": seeds_table,
        "vcseeder_dir": vcseeder_dir,
        "staticseeder_dir": staticseeder_dir,
    }

    with error_boundary(on_usage=lambda: click.echo(ctx.get_help(), err=True)):
        # Process environment wins over .env
        load_dotenv(Path.cwd() / ".env")

        options = RunOptions(
            **{key: value for key, value in flags.items() if value is not None},
            verbose=verbose,
            force_exit=force_exit,
            sql_file=sql_file,
            yaml_file=yaml_file,
        )

        dbm = DBMigrate(options, progress=click.echo)
        dbm.run(
            action,
            args,
            count=count,
            dry_run=dry_run,
            use_transactions=not no_transactions,
        )

    if force_exit:
        logger.debug("Forcing exit")
        ctx.exit(0)


if __name__ == "__main__":
    main()
