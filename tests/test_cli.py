import os

from click.testing import CliRunner

import tmppostgres.cli as cli_module
from tmppostgres.models import DirectoryType


class FakeOrchestrator:
    def __init__(self, captured, real):
        self.captured = captured
        self.real = real

    def setup(self, config):
        self.captured["config"] = config
        resources = self.real.setup(config)
        self.captured["resources"] = resources
        return resources

    def cleanup(self, resources):
        self.captured["cleaned"] = True
        self.real.cleanup(resources)


def _patch_orchestrator(monkeypatch, captured):
    real_class = cli_module.ResourceOrchestrator

    def factory():
        real = real_class(port_provider=lambda: 5432, environment_provider=lambda: [])
        return FakeOrchestrator(captured, real)

    monkeypatch.setattr(cli_module, "ResourceOrchestrator", factory)


def test_cli_layers_flags_over_config_file(tmp_path, monkeypatch):
    config_file = tmp_path / ".tmppostgres.yml"
    config_file.write_text(
        f"port: 6000\ntemporary_directory: {tmp_path}\nconnection_timeout: 10\n",
        encoding="utf-8",
    )
    captured = {}
    _patch_orchestrator(monkeypatch, captured)

    result = CliRunner().invoke(
        cli_module.main,
        ["--config", str(config_file), "--port", "6001", "--initdb", "--createdb", "app"],
    )

    assert result.exit_code == 0, result.output
    config = captured["config"]
    assert config.port == 6001
    assert config.temporary_directory == str(tmp_path)
    assert config.plan.connection_timeout == 10
    assert config.plan.has_initdb
    assert config.plan.createdb_config.command_line.index_based == {0: "app"}
    assert captured["cleaned"] is True
    assert os.listdir(tmp_path) == [".tmppostgres.yml"]


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".tmppostgres.yml").write_text(
        f"temporary_directory: {tmp_path}\nport: 7000\n",
        encoding="utf-8",
    )
    captured = {}
    _patch_orchestrator(monkeypatch, captured)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code == 0, result.output
    assert captured["config"].port == 7000


def test_cli_keep_leaves_directories(tmp_path, monkeypatch):
    captured = {}
    _patch_orchestrator(monkeypatch, captured)
    data_dir = tmp_path / "data"
    data_dir.mkdir()

    result = CliRunner().invoke(
        cli_module.main,
        ["--temp-dir", str(tmp_path), "--data-dir", str(data_dir), "--keep"],
    )

    assert result.exit_code == 0, result.output
    assert "cleaned" not in captured
    assert captured["config"].data_directory == DirectoryType.permanent(str(data_dir))
    assert os.path.isdir(captured["resources"].socket_directory.path)


def test_cli_reports_config_errors(tmp_path):
    config_file = tmp_path / "bad.yml"
    config_file.write_text("unknown: 1\n", encoding="utf-8")

    result = CliRunner().invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code != 0
    assert "Unknown configuration keys" in result.output
