"""Partial and complete configuration records for tmppostgres.

Partial records leave fields unset (``None``, empty dict or empty list) and are
layered with ``combine``, where the right operand's explicitly set fields win.
Each partial record's ``empty()`` is the identity of its ``combine``.
Complete records are produced by the completion services once every required
field has been resolved.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import IO, Dict, List, Optional, Tuple

from tmppostgres.partial import last, merge_maps


@dataclass(frozen=True)
class EnvironmentVariables:
    """Inherit the calling process environment and/or add specific variables."""

    inherit: Optional[bool] = None
    specific: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "EnvironmentVariables":
        return cls()

    def combine(self, other: "EnvironmentVariables") -> "EnvironmentVariables":
        return EnvironmentVariables(
            inherit=last(self.inherit, other.inherit),
            specific=merge_maps(self.specific, other.specific),
        )

    __add__ = combine


@dataclass(frozen=True)
class CommandLineArgs:
    """Command line arguments keyed by flag or by position.

    ``key_based`` values are appended directly to their key, so the key carries
    any separator: ``{"-h ": "foo"}`` renders ``-h foo`` and ``{"--host=": "foo"}``
    renders ``--host=foo``. A ``None`` value renders a bare switch.
    ``index_based`` arguments follow the keyed ones.
    """

    key_based: Dict[str, Optional[str]] = field(default_factory=dict)
    index_based: Dict[int, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "CommandLineArgs":
        return cls()

    def combine(self, other: "CommandLineArgs") -> "CommandLineArgs":
        return CommandLineArgs(
            key_based=merge_maps(self.key_based, other.key_based),
            index_based=merge_maps(self.index_based, other.index_based),
        )

    __add__ = combine


@dataclass(frozen=True)
class ProcessConfig:
    environment_variables: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    command_line: CommandLineArgs = field(default_factory=CommandLineArgs)
    std_in: Optional[IO] = None
    std_out: Optional[IO] = None
    std_err: Optional[IO] = None

    @classmethod
    def empty(cls) -> "ProcessConfig":
        return cls()

    def combine(self, other: "ProcessConfig") -> "ProcessConfig":
        return ProcessConfig(
            environment_variables=self.environment_variables.combine(other.environment_variables),
            command_line=self.command_line.combine(other.command_line),
            std_in=last(self.std_in, other.std_in),
            std_out=last(self.std_out, other.std_out),
            std_err=last(self.std_err, other.std_err),
        )

    __add__ = combine


def combine_optional_process_config(
    left: Optional[ProcessConfig], right: Optional[ProcessConfig]
) -> Optional[ProcessConfig]:
    """Unset sub-configs never erase set ones; two set ones merge field-wise."""
    if left is None:
        return right
    if right is None:
        return left
    return left.combine(right)


@dataclass(frozen=True)
class ConnectionOptions:
    """Client connection parameters for the ``postgres`` server."""

    host: Optional[str] = None
    port: Optional[int] = None
    dbname: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def empty(cls) -> "ConnectionOptions":
        return cls()

    def combine(self, other: "ConnectionOptions") -> "ConnectionOptions":
        return ConnectionOptions(
            host=last(self.host, other.host),
            port=last(self.port, other.port),
            dbname=last(self.dbname, other.dbname),
            user=last(self.user, other.user),
            password=last(self.password, other.password),
        )

    __add__ = combine

    def to_dsn(self) -> str:
        parts = []
        for key in ("host", "port", "dbname", "user", "password"):
            value = getattr(self, key)
            if value is None:
                continue
            text = str(value).replace("\\", "\\\\").replace("'", "\\'")
            parts.append(f"{key}='{text}'")
        return " ".join(parts)


@dataclass(frozen=True)
class PostgresPlan:
    postgres_config: ProcessConfig = field(default_factory=ProcessConfig)
    connection_options: ConnectionOptions = field(default_factory=ConnectionOptions)

    @classmethod
    def empty(cls) -> "PostgresPlan":
        return cls()

    def combine(self, other: "PostgresPlan") -> "PostgresPlan":
        return PostgresPlan(
            postgres_config=self.postgres_config.combine(other.postgres_config),
            connection_options=self.connection_options.combine(other.connection_options),
        )

    __add__ = combine


@dataclass(frozen=True)
class InitDbCache:
    """Where cached ``initdb`` output lives. ``directory=None`` disables caching."""

    directory: Optional[str] = None


@dataclass(frozen=True)
class Plan:
    """Describes how to run ``initdb``, ``createdb`` and ``postgres``."""

    logger: Optional[logging.Logger] = None
    initdb_config: Optional[ProcessConfig] = None
    createdb_config: Optional[ProcessConfig] = None
    postgres_plan: PostgresPlan = field(default_factory=PostgresPlan)
    postgres_config_file: List[str] = field(default_factory=list)
    data_directory: Optional[str] = None
    connection_timeout: Optional[int] = None
    initdb_cache: Optional[InitDbCache] = None

    @classmethod
    def empty(cls) -> "Plan":
        return cls()

    def combine(self, other: "Plan") -> "Plan":
        return Plan(
            logger=last(self.logger, other.logger),
            initdb_config=combine_optional_process_config(self.initdb_config, other.initdb_config),
            createdb_config=combine_optional_process_config(
                self.createdb_config, other.createdb_config
            ),
            postgres_plan=self.postgres_plan.combine(other.postgres_plan),
            postgres_config_file=self.postgres_config_file + other.postgres_config_file,
            data_directory=last(self.data_directory, other.data_directory),
            connection_timeout=last(self.connection_timeout, other.connection_timeout),
            initdb_cache=last(self.initdb_cache, other.initdb_cache),
        )

    __add__ = combine

    @property
    def has_initdb(self) -> bool:
        return self.initdb_config is not None

    @property
    def has_createdb(self) -> bool:
        return self.createdb_config is not None


@dataclass(frozen=True)
class DirectoryType:
    """A ``Permanent`` caller-owned path or a ``Temporary`` generated directory.

    ``permanent_path=None`` means temporary, which is also the identity: a
    permanent operand beats a temporary one on either side, and between two
    permanent operands the right one wins.
    """

    permanent_path: Optional[str] = None

    @classmethod
    def empty(cls) -> "DirectoryType":
        return cls()

    @classmethod
    def temporary(cls) -> "DirectoryType":
        return cls()

    @classmethod
    def permanent(cls, path: str) -> "DirectoryType":
        return cls(permanent_path=path)

    @property
    def is_temporary(self) -> bool:
        return self.permanent_path is None

    def combine(self, other: "DirectoryType") -> "DirectoryType":
        return DirectoryType(permanent_path=last(self.permanent_path, other.permanent_path))

    __add__ = combine


@dataclass(frozen=True)
class Config:
    """High level options layered over the generated plan."""

    plan: Plan = field(default_factory=Plan)
    socket_directory: DirectoryType = field(default_factory=DirectoryType)
    data_directory: DirectoryType = field(default_factory=DirectoryType)
    port: Optional[int] = None
    temporary_directory: Optional[str] = None

    @classmethod
    def empty(cls) -> "Config":
        return cls()

    def combine(self, other: "Config") -> "Config":
        return Config(
            plan=self.plan.combine(other.plan),
            socket_directory=self.socket_directory.combine(other.socket_directory),
            data_directory=self.data_directory.combine(other.data_directory),
            port=last(self.port, other.port),
            temporary_directory=last(self.temporary_directory, other.temporary_directory),
        )

    __add__ = combine


@dataclass(frozen=True)
class CompleteDirectoryType:
    """A resolved directory; ``temporary`` ones are deleted on release."""

    path: str
    temporary: bool

    @classmethod
    def temporary_dir(cls, path: str) -> "CompleteDirectoryType":
        return cls(path=path, temporary=True)

    @classmethod
    def permanent_dir(cls, path: str) -> "CompleteDirectoryType":
        return cls(path=path, temporary=False)

    def make_permanent(self) -> "CompleteDirectoryType":
        return replace(self, temporary=False)


@dataclass(frozen=True)
class CompleteProcessConfig:
    environment_variables: List[Tuple[str, str]]
    command_line: List[str]
    std_in: IO
    std_out: IO
    std_err: IO


@dataclass(frozen=True)
class CompletePostgresPlan:
    process_config: CompleteProcessConfig
    connection_options: ConnectionOptions


@dataclass(frozen=True)
class CompletePlan:
    logger: logging.Logger
    initdb_config: Optional[CompleteProcessConfig]
    createdb_config: Optional[CompleteProcessConfig]
    postgres_plan: CompletePostgresPlan
    config_text: str
    data_directory: str
    connection_timeout: int
    initdb_cache: InitDbCache


@dataclass(frozen=True)
class Resources:
    """Completed plan plus the directory handles needed to release it."""

    plan: CompletePlan
    socket_directory: CompleteDirectoryType
    data_directory: CompleteDirectoryType
    temporary_directory: str

    def make_data_dir_permanent(self) -> "Resources":
        return replace(self, data_directory=self.data_directory.make_permanent())
