"""YAML configuration layers for tmppostgres."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from tmppostgres.errors import ConfigFileError
from tmppostgres.models import (
    CommandLineArgs,
    Config,
    ConnectionOptions,
    DirectoryType,
    EnvironmentVariables,
    Plan,
    PostgresPlan,
    ProcessConfig,
)
from tmppostgres.services.plan import options_to_config


class ConfigLoader:
    """Loads a YAML file into a partial :class:`Config` layer."""

    SUPPORTED_KEYS = {
        "port",
        "temporary_directory",
        "socket_directory",
        "data_directory",
        "connection_timeout",
        "config_lines",
        "initdb",
        "createdb",
        "postgres",
        "connection",
    }
    PROCESS_KEYS = {"args", "positional", "env", "inherit"}
    CONNECTION_KEYS = {"host", "port", "dbname", "user", "password"}

    def load(self, config_path: Optional[str]) -> Config:
        if not config_path:
            return Config()

        path = Path(config_path)
        if not path.exists():
            raise ConfigFileError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigFileError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return Config()
        if not isinstance(parsed, dict):
            raise ConfigFileError("Config file must contain a YAML mapping at the root.")

        return self.from_mapping(parsed)

    def from_mapping(self, values: Dict[str, Any]) -> Config:
        self._reject_unknown(values, self.SUPPORTED_KEYS, "configuration")

        plan = Plan(
            connection_timeout=values.get("connection_timeout"),
            postgres_config_file=[
                str(line) for line in self._list_value("config_lines", values.get("config_lines"))
            ],
        )
        if "initdb" in values:
            plan = plan.combine(
                Plan(initdb_config=self._process_config("initdb", values["initdb"]))
            )
        if "createdb" in values:
            plan = plan.combine(
                Plan(createdb_config=self._process_config("createdb", values["createdb"]))
            )
        if "postgres" in values:
            postgres_config = self._process_config("postgres", values["postgres"])
            plan = plan.combine(Plan(postgres_plan=PostgresPlan(postgres_config=postgres_config)))

        config = Config(
            plan=plan,
            socket_directory=self._directory_type(values.get("socket_directory")),
            data_directory=self._directory_type(values.get("data_directory")),
            port=values.get("port"),
            temporary_directory=values.get("temporary_directory"),
        )

        if values.get("connection"):
            options = self._connection_options(values["connection"])
            config = config.combine(options_to_config(options))
        return config

    def _process_config(self, name: str, values: Optional[Dict[str, Any]]) -> ProcessConfig:
        values = values or {}
        if not isinstance(values, dict):
            raise ConfigFileError(f"'{name}' must be a mapping.")
        self._reject_unknown(values, self.PROCESS_KEYS, name)

        args = self._mapping_value(f"{name}.args", values.get("args"))
        positional = self._list_value(f"{name}.positional", values.get("positional"))
        env = self._mapping_value(f"{name}.env", values.get("env"))
        return ProcessConfig(
            environment_variables=EnvironmentVariables(
                inherit=values.get("inherit"),
                specific={str(key): str(value) for key, value in env.items()},
            ),
            command_line=CommandLineArgs(
                key_based={
                    str(key): None if value is None else str(value) for key, value in args.items()
                },
                index_based={index: str(value) for index, value in enumerate(positional)},
            ),
        )

    def _connection_options(self, values: Dict[str, Any]) -> ConnectionOptions:
        if not isinstance(values, dict):
            raise ConfigFileError("'connection' must be a mapping.")
        self._reject_unknown(values, self.CONNECTION_KEYS, "connection")
        return ConnectionOptions(**values)

    @staticmethod
    def _mapping_value(name: str, value: Any) -> Dict[Any, Any]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigFileError(f"'{name}' must be a mapping.")
        return value

    @staticmethod
    def _list_value(name: str, value: Any) -> List[Any]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ConfigFileError(f"'{name}' must be a list.")
        return value

    @staticmethod
    def _directory_type(value: Optional[str]) -> DirectoryType:
        if value is None:
            return DirectoryType.temporary()
        return DirectoryType.permanent(str(value))

    @staticmethod
    def _reject_unknown(values: Dict[str, Any], supported, section: str):
        unknown = sorted(set(values.keys()) - supported)
        if unknown:
            unknown_list = ", ".join(str(key) for key in unknown)
            raise ConfigFileError(f"Unknown {section} keys: {unknown_list}")
