"""Domain errors for tmppostgres."""

from typing import List


class TmpPostgresError(RuntimeError):
    """Raised when a temporary database instance cannot be provisioned."""


class ResourceAcquisitionError(TmpPostgresError):
    """Raised when a port or directory could not be acquired."""


class CleanupError(TmpPostgresError):
    """Raised when a temporary directory exists but could not be removed."""


class ConfigFileError(TmpPostgresError):
    """Raised when a YAML configuration layer is unreadable or invalid."""


class CompletePlanFailed(TmpPostgresError):
    """Raised when the merged plan is missing required options."""

    def __init__(self, errors: List[str], plan_snapshot: str):
        self.errors = list(errors)
        self.plan_snapshot = plan_snapshot
        details = "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(
            f"Could not complete the plan ({len(self.errors)} problem(s)):\n"
            f"{details}\nPlan:\n{plan_snapshot}"
        )
