"""Temporary and permanent directory lifecycle for tmppostgres."""

import logging
import os
import shutil
import signal
import tempfile
from contextlib import contextmanager
from pathlib import Path

from tmppostgres.errors import CleanupError, ResourceAcquisitionError
from tmppostgres.models import CompleteDirectoryType, DirectoryType

REMOVING_SUFFIX = "_removing"
_DEFERRED_SIGNALS = {signal.SIGINT, signal.SIGTERM}


@contextmanager
def uninterruptible():
    """Hold back SIGINT/SIGTERM for the duration of the block.

    Signals raised meanwhile are delivered once the previous mask is restored.
    Platforms without ``pthread_sigmask`` run the block unprotected.
    """
    if not hasattr(signal, "pthread_sigmask"):
        yield
        return

    previous = signal.pthread_sigmask(signal.SIG_BLOCK, _DEFERRED_SIGNALS)
    try:
        yield
    finally:
        signal.pthread_sigmask(signal.SIG_SETMASK, previous)


class DirectoryService:
    """Creates temporary directories and removes them again."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def acquire(
        self, temporary_root: str, pattern: str, directory_type: DirectoryType
    ) -> CompleteDirectoryType:
        if directory_type.is_temporary:
            try:
                path = tempfile.mkdtemp(prefix=f"{pattern}-", dir=temporary_root)
            except OSError as exc:
                raise ResourceAcquisitionError(
                    f"Could not create temporary directory '{pattern}' under {temporary_root}: {exc}"
                ) from exc
            self.logger.debug("Created temporary directory: %s", path)
            return CompleteDirectoryType.temporary_dir(path)

        path = self.expand_home(directory_type.permanent_path)
        self.logger.debug("Using permanent directory: %s", path)
        return CompleteDirectoryType.permanent_dir(path)

    @staticmethod
    def expand_home(path: str) -> str:
        if not path.startswith("~"):
            return path

        try:
            home = str(Path.home())
        except (KeyError, RuntimeError) as exc:
            raise ResourceAcquisitionError(
                f"Could not determine the home directory to expand {path}: {exc}"
            ) from exc
        return os.path.join(home, path[1:].lstrip("/"))

    def release(self, directory: CompleteDirectoryType):
        if not directory.temporary:
            return

        removing_path = f"{directory.path}{REMOVING_SUFFIX}"
        try:
            # Renaming first keeps new files from landing in the tree while it is deleted.
            with uninterruptible():
                os.rename(directory.path, removing_path)
                shutil.rmtree(removing_path)
        except FileNotFoundError:
            self.logger.debug("Directory already removed: %s", directory.path)
            return
        except OSError as exc:
            raise CleanupError(f"Could not remove {directory.path}: {exc}") from exc

        self.logger.debug("Removed directory: %s", directory.path)
