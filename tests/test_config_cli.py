"""CLI tests for configuration commands."""

from pathlib import Path
from typing import Any

from click.testing import CliRunner

from tagg.cli import cli
from tagg.config import ConfigManager


def _env(tmp_path: Path) -> dict[str, Any]:
    return {
        "TAGG_CONFIG": str(_config_path(tmp_path)),
        "TAGG_STATE": None,
    }


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".tagg" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env(tmp_path))

    assert result.exit_code == 0, result.output
    assert "storage_path:" in result.output
    assert f"storage: {tmp_path / '.tagg' / 'storage'}" in result.output
    assert _config_path(tmp_path).exists()


def test_config_view_applies_environment_overrides(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)
    env["TAGG__HASH_ADDED_FILES"] = "true"

    result = runner.invoke(cli, ["config", "view"], env=env)
    ignored = runner.invoke(cli, ["config", "view", "--no-env"], env=env)

    assert "hash_added_files: true" in result.output
    assert "hash_added_files: false" in ignored.output


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "cli.confirm_default", "--value", "false"], env=_env(tmp_path)
    )

    assert result.exit_code == 0, result.output
    assert "Updated cli.confirm_default." in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path), env={})
    config = manager.load(include_env=False)
    assert config.cli.confirm_default is False


def test_config_set_same_value_reports_no_change(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env(tmp_path)
    runner.invoke(cli, ["config", "set", "storage_path", "--value", "files"], env=env)

    result = runner.invoke(cli, ["config", "set", "storage_path", "--value", "files"], env=env)

    assert result.exit_code == 0, result.output
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "hash_added_files", "--value", "maybe"], env=_env(tmp_path)
    )

    assert result.exit_code == 1
    assert "Error:" in result.output
