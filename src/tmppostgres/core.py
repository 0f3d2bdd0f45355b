import logging
import os
import tempfile
from contextlib import ExitStack
from typing import Callable, List, Optional, Tuple

from rich.pretty import pretty_repr

from .errors import CleanupError, CompletePlanFailed, TmpPostgresError
from .models import CompleteDirectoryType, Config, DirectoryType, Resources
from .services.directory import DirectoryService, uninterruptible
from .services.plan import complete_plan, generate_plan
from .services.ports import get_free_port

logger = logging.getLogger("tmppostgres")

SOCKET_DIRECTORY_PATTERN = "tmp-postgres-socket"
DATA_DIRECTORY_PATTERN = "tmp-postgres-data"


def render(value) -> str:
    """Readable multi-line rendering of a config, plan or resources record."""
    return pretty_repr(value, max_width=100)


def default_temporary_directory() -> str:
    return tempfile.gettempdir()


def snapshot_environment() -> List[Tuple[str, str]]:
    return list(os.environ.items())


class ResourceOrchestrator:
    """Acquires the port and directories a plan needs and completes the plan."""

    def __init__(
        self,
        directory_service: Optional[DirectoryService] = None,
        port_provider: Optional[Callable[[], int]] = None,
        environment_provider: Optional[Callable[[], List[Tuple[str, str]]]] = None,
        temporary_directory_provider: Optional[Callable[[], str]] = None,
    ):
        self.directory_service = directory_service or DirectoryService(logger=logger)
        self.port_provider = port_provider or get_free_port
        self.environment_provider = environment_provider or snapshot_environment
        self.temporary_directory_provider = (
            temporary_directory_provider or default_temporary_directory
        )

    def setup(self, config: Config) -> Resources:
        environment = self.environment_provider()
        port = config.port if config.port is not None else self.port_provider()
        temporary_directory = config.temporary_directory or self.temporary_directory_provider()
        logger.debug("Provisioning on port %s under %s", port, temporary_directory)

        with ExitStack() as rollback:
            try:
                socket_directory = self._acquire(
                    rollback, temporary_directory, SOCKET_DIRECTORY_PATTERN, config.socket_directory
                )
                data_directory = self._acquire(
                    rollback, temporary_directory, DATA_DIRECTORY_PATTERN, config.data_directory
                )

                generated = generate_plan(
                    config.plan.has_initdb,
                    config.plan.has_createdb,
                    port,
                    socket_directory.path,
                    data_directory.path,
                )
                final_plan = generated.combine(config.plan)
                completed = complete_plan(environment, final_plan)
                if not completed.ok:
                    raise CompletePlanFailed(completed.errors, render(final_plan))
            except TmpPostgresError as exc:
                logger.warning("Provisioning failed, releasing acquired directories: %s", exc)
                raise

            resources = Resources(
                plan=completed.value,
                socket_directory=socket_directory,
                data_directory=data_directory,
                temporary_directory=temporary_directory,
            )
            rollback.pop_all()

        logger.debug("Provisioned resources: %s", render(resources))
        return resources

    def _acquire(
        self,
        rollback: ExitStack,
        temporary_directory: str,
        pattern: str,
        directory_type: DirectoryType,
    ) -> CompleteDirectoryType:
        # No signal may land between creating the directory and registering its release.
        with uninterruptible():
            directory = self.directory_service.acquire(temporary_directory, pattern, directory_type)
            rollback.callback(self.directory_service.release, directory)
        return directory

    def cleanup(self, resources: Resources):
        """Release both directories, attempting the second even if the first fails."""
        failures = []
        for directory in (resources.socket_directory, resources.data_directory):
            try:
                self.directory_service.release(directory)
            except CleanupError as exc:
                logger.warning("%s", exc)
                failures.append(exc)

        if failures:
            raise failures[0]


def setup_config(config: Config) -> Resources:
    """Create the temporary resources for ``config`` layered over the generated plan."""
    return ResourceOrchestrator().setup(config)


def cleanup_config(resources: Resources):
    """Free the temporary resources created by :func:`setup_config`."""
    ResourceOrchestrator().cleanup(resources)
