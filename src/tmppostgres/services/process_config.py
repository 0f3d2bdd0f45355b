"""Completion of partial process configs into runnable invocations."""

import os
import sys
from typing import IO, List, Tuple

from tmppostgres.models import (
    CommandLineArgs,
    CompleteProcessConfig,
    EnvironmentVariables,
    ProcessConfig,
)
from tmppostgres.partial import Validation, accumulate, require

Environment = List[Tuple[str, str]]


def standard_process_config() -> ProcessConfig:
    """Inherit the calling environment and bind to the calling process's stdio."""
    return ProcessConfig(
        environment_variables=EnvironmentVariables(inherit=True),
        std_in=sys.stdin,
        std_out=sys.stdout,
        std_err=sys.stderr,
    )


def open_devnull() -> IO:
    """Open the null device once so it can be shared by silent process configs."""
    return open(os.devnull, "r+", encoding="utf-8")


def silent_process_config(devnull: IO) -> ProcessConfig:
    """Inherit the calling environment and bind every stream to ``devnull``."""
    return ProcessConfig(
        environment_variables=EnvironmentVariables(inherit=True),
        std_in=devnull,
        std_out=devnull,
        std_err=devnull,
    )


def complete_environment_variables(
    environment: Environment, variables: EnvironmentVariables
) -> Validation[Environment]:
    """Resolve the final environment list.

    Inherited entries come first, then ``specific`` ones sorted by name. A name
    present in both is kept twice; which entry wins is up to the process
    launcher.
    """
    if variables.inherit is None:
        return Validation.failure("Missing inherit option")

    inherited = list(environment) if variables.inherit else []
    return Validation.success(inherited + sorted(variables.specific.items()))


def complete_command_line_args(args: CommandLineArgs) -> List[str]:
    rendered = [
        key if value is None else f"{key}{value}" for key, value in sorted(args.key_based.items())
    ]

    # Positional args stop at the first gap so no argument shifts position.
    position = 0
    while position in args.index_based:
        rendered.append(args.index_based[position])
        position += 1
    return rendered


def complete_process_config(
    environment: Environment, config: ProcessConfig
) -> Validation[CompleteProcessConfig]:
    result = accumulate(
        environment_variables=complete_environment_variables(
            environment, config.environment_variables
        ),
        command_line=Validation.success(complete_command_line_args(config.command_line)),
        std_in=require("std_in", config.std_in),
        std_out=require("std_out", config.std_out),
        std_err=require("std_err", config.std_err),
    )
    return result.map(lambda values: CompleteProcessConfig(**values))
