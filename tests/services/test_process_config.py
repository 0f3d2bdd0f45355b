import io
import sys

from tmppostgres.models import CommandLineArgs, EnvironmentVariables, ProcessConfig
from tmppostgres.services.process_config import (
    complete_command_line_args,
    complete_environment_variables,
    complete_process_config,
    open_devnull,
    silent_process_config,
    standard_process_config,
)


def test_positional_args_stop_at_first_gap():
    args = CommandLineArgs(index_based={0: "a", 1: "b", 3: "d"})

    assert complete_command_line_args(args) == ["a", "b"]


def test_positional_args_without_index_zero_are_dropped():
    assert complete_command_line_args(CommandLineArgs(index_based={1: "b"})) == []


def test_key_args_render_in_ascending_key_order():
    args = CommandLineArgs(key_based={"-p ": "5432", "-D ": "x", "--switch": None})

    assert complete_command_line_args(args) == ["--switch", "-D x", "-p 5432"]


def test_key_args_come_before_positional_args():
    args = CommandLineArgs(key_based={"--username=": "bob"}, index_based={0: "app"})

    assert complete_command_line_args(args) == ["--username=bob", "app"]


def test_inherit_true_appends_sorted_specific_after_environment():
    variables = EnvironmentVariables(inherit=True, specific={"B": "2", "A": "1"})

    result = complete_environment_variables([("PATH", "/bin")], variables)

    assert result.value == [("PATH", "/bin"), ("A", "1"), ("B", "2")]


def test_inherit_false_uses_only_specific():
    variables = EnvironmentVariables(inherit=False, specific={"A": "1"})

    result = complete_environment_variables([("PATH", "/bin")], variables)

    assert result.value == [("A", "1")]


def test_overlapping_keys_are_kept_twice():
    variables = EnvironmentVariables(inherit=True, specific={"PATH": "/usr/bin"})

    result = complete_environment_variables([("PATH", "/bin")], variables)

    assert result.value == [("PATH", "/bin"), ("PATH", "/usr/bin")]


def test_missing_inherit_is_an_error():
    result = complete_environment_variables([], EnvironmentVariables())

    assert result.errors == ["Missing inherit option"]


def test_completion_reports_every_missing_field():
    config = ProcessConfig(std_in=io.StringIO())

    result = complete_process_config([], config)

    assert not result.ok
    assert result.errors == [
        "Missing inherit option",
        "Missing std_out option",
        "Missing std_err option",
    ]


def test_standard_process_config_completes():
    config = standard_process_config().combine(
        ProcessConfig(command_line=CommandLineArgs(key_based={"-p": "5432"}))
    )

    result = complete_process_config([("HOME", "/root")], config)

    assert result.ok
    assert result.value.command_line == ["-p5432"]
    assert result.value.environment_variables == [("HOME", "/root")]
    assert result.value.std_out is sys.stdout


def test_silent_process_config_uses_given_handle():
    devnull = io.StringIO()

    config = silent_process_config(devnull)

    assert config.std_in is devnull
    assert config.std_out is devnull
    assert config.std_err is devnull
    assert config.environment_variables.inherit is True


def test_open_devnull_handle_completes_silent_config():
    devnull = open_devnull()
    try:
        result = complete_process_config([("PATH", "/bin")], silent_process_config(devnull))

        assert result.ok
        assert result.value.std_in is devnull
        assert result.value.std_out is devnull
        assert result.value.std_err is devnull
        assert result.value.environment_variables == [("PATH", "/bin")]
        devnull.write("discarded")
    finally:
        devnull.close()

    assert devnull.closed
