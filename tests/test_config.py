"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from ytvault.cli import cli
from ytvault.config import DEFAULT_CONFIG, load_config, sync_options, validate_config
from ytvault.errors import ConfigError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("YTVAULT_VAULT_PATH", "YTVAULT_CHANNEL_ID", "YTVAULT_PLAYLIST_ID"):
        monkeypatch.delenv(var, raising=False)


def test_defaults_when_file_missing(tmp_path):
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg["page_size"] == DEFAULT_CONFIG["page_size"]
    assert cfg["existing_notes"] == "skip"
    assert Path(cfg["vault_path"]).is_absolute()


def test_file_is_deep_merged(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        f"vault_path: {tmp_path / 'vault'}\n"
        "playlist_id: PL123\n"
        "http:\n  timeout: 5\n"
    )
    cfg = load_config(config_file)
    assert cfg["playlist_id"] == "PL123"
    assert cfg["http"] == {"timeout": 5, "retries": 3}
    assert cfg["vault_path"] == str((tmp_path / "vault").resolve())
    assert DEFAULT_CONFIG["http"]["timeout"] == 30


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("YTVAULT_CHANNEL_ID", "UCenv")
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg["channel_id"] == "UCenv"


def test_invalid_yaml_raises(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("vault_path: [oops\n")
    with pytest.raises(ConfigError):
        load_config(config_file)


def test_validate_config(tmp_path):
    cfg = load_config(tmp_path / "nope.yaml")
    with pytest.raises(ConfigError, match="channel_id"):
        validate_config(cfg)
    cfg.update(channel_id="UC1", playlist_id="PL1", existing_notes="merge")
    with pytest.raises(ConfigError, match="existing_notes"):
        validate_config(cfg)


def test_sync_options_join_thumbnail_paths(tmp_path):
    cfg = load_config(tmp_path / "nope.yaml")
    cfg.update(vault_path=str(tmp_path), channel_id="UC1", playlist_id="PL1")
    options = sync_options(cfg)
    assert options.video_thumbnail_path == tmp_path / "YouTube/Thumbnails/Videos"
    assert options.channel_template == "youtube-channel.md.j2"
    assert options.existing_notes == "skip"


def test_cli_index_lists_tags(tmp_path):
    vault = tmp_path / "vault"
    vault.mkdir()
    (vault / "a.md").write_text("---\ntags: [music]\nstereotype: song\n---\n")
    config_file = tmp_path / "config.yaml"
    config_file.write_text(f"vault_path: {vault}\n")

    result = CliRunner().invoke(cli, ["--config", str(config_file), "index"])

    assert result.exit_code == 0
    assert "#music" in result.output
    assert "#song" in result.output


def test_cli_sync_reports_config_errors(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(f"vault_path: {tmp_path}\n")
    result = CliRunner().invoke(cli, ["--config", str(config_file), "sync"])
    assert result.exit_code == 1
    assert "channel_id" in result.output


@pytest.mark.parametrize("key, value, message", [
    ("timezone", "Europe/Londn", "timezone"),
    ("page_size", "ten", "page_size"),
    ("page_size", 0, "page_size"),
])
def test_validate_config_rejects_bad_values(tmp_path, key, value, message):
    cfg = load_config(tmp_path / "nope.yaml")
    cfg.update(channel_id="UC1", playlist_id="PL1")
    cfg[key] = value
    with pytest.raises(ConfigError, match=message):
        validate_config(cfg)


def test_cli_init_writes_config_where_asked(tmp_path):
    config_file = tmp_path / "conf" / "config.yaml"
    vault = tmp_path / "vault"

    result = CliRunner().invoke(cli, ["--config", str(config_file), "init", "--path", str(vault)])

    assert result.exit_code == 0
    assert (vault / "YouTube/Thumbnails/Channels").is_dir()
    cfg = load_config(config_file)
    assert cfg["vault_path"] == str(vault.resolve())
    lines = config_file.read_text().splitlines()
    policy_line = next(i for i, line in enumerate(lines) if line.startswith("existing_notes:"))
    assert lines[policy_line - 1].startswith("# What to do with notes already in the vault")
