"""
tmppostgres - Disposable PostgreSQL instance configuration for tests
"""

__version__ = "0.1.0"

from .core import ResourceOrchestrator, cleanup_config, setup_config
from .errors import CompletePlanFailed, TmpPostgresError
from .models import Config, ConnectionOptions, DirectoryType, Plan, ProcessConfig, Resources

__all__ = [
    "CompletePlanFailed",
    "Config",
    "ConnectionOptions",
    "DirectoryType",
    "Plan",
    "ProcessConfig",
    "ResourceOrchestrator",
    "Resources",
    "TmpPostgresError",
    "cleanup_config",
    "setup_config",
]
