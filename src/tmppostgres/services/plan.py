"""Generated default plans, plan completion and connection-option translation."""

import logging
from typing import List, Optional

from tmppostgres.models import (
    CommandLineArgs,
    CompletePlan,
    CompletePostgresPlan,
    CompleteProcessConfig,
    Config,
    ConnectionOptions,
    DirectoryType,
    EnvironmentVariables,
    InitDbCache,
    Plan,
    PostgresPlan,
    ProcessConfig,
)
from tmppostgres.partial import Validation, accumulate, require, with_context
from tmppostgres.services.process_config import (
    Environment,
    complete_process_config,
    standard_process_config,
)

DEFAULT_CONNECTION_TIMEOUT = 60 * 1000000  # one minute, in microseconds
DEFAULT_DBNAME = "postgres"
EXISTING_DATABASES = frozenset({"postgres", "template1"})

default_logger = logging.getLogger("tmppostgres")


def socket_directory_config(socket_directory: str) -> List[str]:
    return [
        "listen_addresses = '127.0.0.1, ::1'",
        f"unix_socket_directories = '{socket_directory}'",
    ]


def generate_plan(
    make_initdb: bool,
    make_createdb: bool,
    port: int,
    socket_directory: str,
    data_directory: str,
) -> Plan:
    """Build the plan every caller plan is layered over.

    Option keys use the attached getopt form (``-p5432``), so each flag and its
    value travel as one argv entry.
    """
    postgres_config = standard_process_config().combine(
        ProcessConfig(
            command_line=CommandLineArgs(
                key_based={"-p": str(port), "-D": data_directory},
            )
        )
    )

    initdb_config = None
    if make_initdb:
        initdb_config = standard_process_config().combine(
            ProcessConfig(command_line=CommandLineArgs(key_based={"--pgdata=": data_directory}))
        )

    createdb_config = None
    if make_createdb:
        createdb_config = standard_process_config().combine(
            ProcessConfig(
                command_line=CommandLineArgs(
                    key_based={"-h": socket_directory, "-p": str(port)},
                )
            )
        )

    return Plan(
        logger=default_logger,
        initdb_config=initdb_config,
        createdb_config=createdb_config,
        postgres_plan=PostgresPlan(
            postgres_config=postgres_config,
            connection_options=ConnectionOptions(
                host=socket_directory,
                port=port,
                dbname=DEFAULT_DBNAME,
            ),
        ),
        postgres_config_file=socket_directory_config(socket_directory),
        data_directory=data_directory,
        connection_timeout=DEFAULT_CONNECTION_TIMEOUT,
        initdb_cache=InitDbCache(),
    )


def _complete_optional(
    environment: Environment, config: Optional[ProcessConfig]
) -> Validation[Optional[CompleteProcessConfig]]:
    if config is None:
        return Validation.success(None)
    return complete_process_config(environment, config)


def complete_postgres_plan(
    environment: Environment, plan: PostgresPlan
) -> Validation[CompletePostgresPlan]:
    process_config = with_context(
        "postgres_config: ", complete_process_config(environment, plan.postgres_config)
    )
    return process_config.map(
        lambda value: CompletePostgresPlan(
            process_config=value,
            connection_options=plan.connection_options,
        )
    )


def complete_plan(environment: Environment, plan: Plan) -> Validation[CompletePlan]:
    """Resolve every required field of ``plan``, reporting all missing ones together."""
    result = accumulate(
        logger=require("logger", plan.logger),
        initdb_config=with_context(
            "initdb_config: ", _complete_optional(environment, plan.initdb_config)
        ),
        createdb_config=with_context(
            "createdb_config: ", _complete_optional(environment, plan.createdb_config)
        ),
        postgres_plan=with_context(
            "postgres_plan: ", complete_postgres_plan(environment, plan.postgres_plan)
        ),
        config_text=Validation.success("".join(f"{line}\n" for line in plan.postgres_config_file)),
        data_directory=require("data_directory", plan.data_directory),
        connection_timeout=require("connection_timeout", plan.connection_timeout),
        initdb_cache=require("initdb_cache", plan.initdb_cache),
    )
    return result.map(lambda values: CompletePlan(**values))


def _username_args(user: Optional[str]) -> CommandLineArgs:
    if user is None:
        return CommandLineArgs()
    return CommandLineArgs(key_based={"--username=": user})


def _password_env(password: Optional[str]) -> EnvironmentVariables:
    if password is None:
        return EnvironmentVariables()
    return EnvironmentVariables(specific={"PGPASSWORD": password})


def dbname_to_plan(dbname: str, user: Optional[str], password: Optional[str]) -> Plan:
    """Add a ``createdb`` step for ``dbname`` unless it exists in every new cluster."""
    if dbname in EXISTING_DATABASES:
        return Plan()

    args = _username_args(user).combine(CommandLineArgs(index_based={0: dbname}))
    return Plan(
        createdb_config=ProcessConfig(
            command_line=args,
            environment_variables=_password_env(password),
        )
    )


def user_to_plan(user: str) -> Plan:
    return Plan(initdb_config=ProcessConfig(command_line=_username_args(user)))


def password_to_plan(password: str) -> Plan:
    return Plan(initdb_config=ProcessConfig(environment_variables=_password_env(password)))


def options_to_plan(options: ConnectionOptions) -> Plan:
    """Translate client connection options into a plan that accepts them."""
    plan = Plan()
    if options.dbname is not None:
        plan = plan.combine(dbname_to_plan(options.dbname, options.user, options.password))
    if options.user is not None:
        plan = plan.combine(user_to_plan(options.user))
    if options.password is not None:
        plan = plan.combine(password_to_plan(options.password))
    return plan.combine(Plan(postgres_plan=PostgresPlan(connection_options=options)))


def host_to_directory_type(host: str) -> DirectoryType:
    """Absolute hosts are UNIX socket directories; anything else is a network host."""
    if host.startswith("/"):
        return DirectoryType.permanent(host)
    return DirectoryType.temporary()


def options_to_config(options: ConnectionOptions) -> Config:
    socket_directory = DirectoryType.temporary()
    if options.host is not None:
        socket_directory = host_to_directory_type(options.host)

    return Config(
        plan=options_to_plan(options),
        port=options.port,
        socket_directory=socket_directory,
    )
