import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.pretty import Pretty

from .core import ResourceOrchestrator, TmpPostgresError
from .models import Config, ConnectionOptions, DirectoryType, Plan, ProcessConfig
from .services.config_loader import ConfigLoader
from .services.plan import options_to_plan

DEFAULT_CONFIG_FILE = ".tmppostgres.yml"

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def _cli_layer(port, temp_dir, data_dir, socket_dir, initdb, createdb) -> Config:
    plan = Plan()
    if initdb:
        plan = plan.combine(Plan(initdb_config=ProcessConfig()))
    if createdb:
        plan = plan.combine(options_to_plan(ConnectionOptions(dbname=createdb)))

    return Config(
        plan=plan,
        port=port,
        temporary_directory=temp_dir,
        data_directory=DirectoryType.permanent(data_dir) if data_dir else DirectoryType(),
        socket_directory=DirectoryType.permanent(socket_dir) if socket_dir else DirectoryType(),
    )


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--port", type=int, default=None, help="Port for postgres (default: a free port).")
@click.option(
    "--temp-dir",
    type=click.Path(),
    default=None,
    help="Directory in which temporary directories are created.",
)
@click.option(
    "--data-dir",
    type=click.Path(),
    default=None,
    help="Existing data directory to use instead of a temporary one. It is never deleted.",
)
@click.option(
    "--socket-dir",
    type=click.Path(),
    default=None,
    help="Existing UNIX socket directory to use instead of a temporary one.",
)
@click.option("--initdb", is_flag=True, default=None, help="Plan an initdb step.")
@click.option(
    "--createdb",
    required=False,
    help="Plan a createdb step for this database name.",
)
@click.option(
    "--keep",
    is_flag=True,
    default=False,
    help="Keep the temporary directories instead of removing them after printing the plan.",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(config, port, temp_dir, data_dir, socket_dir, initdb, createdb, keep, verbose, log_file):
    """Provision the directories and plan for a throwaway postgres instance."""
    logger = logging.getLogger("tmppostgres")

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    resolved_config = config
    if resolved_config is None:
        default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
        if os.path.exists(default_config_path):
            resolved_config = default_config_path

    orchestrator = ResourceOrchestrator()
    try:
        file_layer = ConfigLoader().load(resolved_config)
        cli_layer = _cli_layer(port, temp_dir, data_dir, socket_dir, initdb, createdb)
        resources = orchestrator.setup(file_layer.combine(cli_layer))
    except TmpPostgresError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(Pretty(resources.plan))
    console.print(f"[blue]Connection:[/blue] {resources.plan.postgres_plan.connection_options.to_dsn()}")

    if keep:
        console.print(f"[yellow]Kept socket directory:[/yellow] {resources.socket_directory.path}")
        console.print(f"[yellow]Kept data directory:[/yellow] {resources.data_directory.path}")
        return

    try:
        orchestrator.cleanup(resources)
    except TmpPostgresError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Temporary directories removed.[/green]")


if __name__ == "__main__":
    main()
