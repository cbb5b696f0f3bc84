"""Configuration management for ytvault."""

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigError


EXISTING_NOTE_POLICIES = ("skip", "refresh", "overwrite")

DEFAULT_CONFIG = {
    "vault_path": "~/Obsidian/vault",
    "channel_id": "",
    "playlist_id": "",
    "video_folder": "YouTube/Videos",
    "video_thumbnail_folder": "YouTube/Thumbnails/Videos",
    "channel_folder": "YouTube/Channels",
    "channel_thumbnail_folder": "YouTube/Thumbnails/Channels",
    "templates": {"video": "youtube-video.md.j2", "channel": "youtube-channel.md.j2"},
    "exclude": [],
    "existing_notes": "skip",
    "fail_fast": False,
    "page_size": 10,
    "batch_channel_lookup": False,
    "timezone": "Europe/London",
    "http": {"timeout": 30, "retries": 3},
    "auth": {
        "client_secret_file": "~/.ytvault/client_secret.json",
        "token_file": "~/.ytvault/token.json",
    },
}

ENV_OVERRIDES = {
    "YTVAULT_VAULT_PATH": "vault_path",
    "YTVAULT_CHANNEL_ID": "channel_id",
    "YTVAULT_PLAYLIST_ID": "playlist_id",
}


@dataclass
class SyncOptions:
    """Everything the sync orchestrator needs from the configuration."""
    channel_id: str
    playlist_id: str
    video_folder: str
    channel_folder: str
    video_thumbnail_path: Path
    channel_thumbnail_path: Path
    video_template: str
    channel_template: str
    existing_notes: str = "skip"
    fail_fast: bool = False
    timezone: str = "Europe/London"
    batch_channel_lookup: bool = False


def _find_config_file() -> Path | None:
    """Look for config.yaml in standard locations."""
    candidates = [
        Path.cwd() / "config" / "config.yaml",
        Path.cwd() / "config.yaml",
        Path.home() / ".ytvault" / "config.yaml",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else _find_config_file()
    if path and path.exists():
        with open(path) as f:
            try:
                file_cfg = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse {path}: {e}") from e
        if not isinstance(file_cfg, dict):
            raise ConfigError(f"{path} must contain a YAML mapping")
        _deep_merge(cfg, file_cfg)

    # Env overrides
    for env_var, key in ENV_OVERRIDES.items():
        if value := os.environ.get(env_var):
            cfg[key] = value

    # Expand paths
    cfg["vault_path"] = str(Path(cfg["vault_path"]).expanduser().resolve())
    for key in ("client_secret_file", "token_file"):
        cfg["auth"][key] = str(Path(cfg["auth"][key]).expanduser())

    return cfg


def validate_config(cfg: dict[str, Any]) -> None:
    """Raise ConfigError if the config cannot drive a sync."""
    missing = [key for key in ("channel_id", "playlist_id") if not cfg.get(key)]
    if missing:
        raise ConfigError(
            f"Missing required setting(s): {', '.join(missing)}. "
            f"Set them in config.yaml or via YTVAULT_CHANNEL_ID / YTVAULT_PLAYLIST_ID."
        )
    if cfg.get("existing_notes") not in EXISTING_NOTE_POLICIES:
        raise ConfigError(
            f"existing_notes must be one of {', '.join(EXISTING_NOTE_POLICIES)}, "
            f"got {cfg.get('existing_notes')!r}"
        )
    try:
        page_size = int(cfg.get("page_size", 0))
    except (TypeError, ValueError):
        page_size = 0
    if page_size < 1:
        raise ConfigError(f"page_size must be a positive integer, got {cfg.get('page_size')!r}")
    try:
        ZoneInfo(cfg.get("timezone"))
    except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
        raise ConfigError(
            f"Unknown timezone {cfg.get('timezone')!r}; use an IANA name such as 'Europe/London'"
        ) from e


def sync_options(cfg: dict[str, Any]) -> SyncOptions:
    """Build SyncOptions from a loaded config dict."""
    validate_config(cfg)
    vault_path = Path(cfg["vault_path"])
    templates = cfg.get("templates", {})
    return SyncOptions(
        channel_id=cfg["channel_id"],
        playlist_id=cfg["playlist_id"],
        video_folder=cfg["video_folder"],
        channel_folder=cfg["channel_folder"],
        video_thumbnail_path=vault_path / cfg["video_thumbnail_folder"],
        channel_thumbnail_path=vault_path / cfg["channel_thumbnail_folder"],
        video_template=templates.get("video", DEFAULT_CONFIG["templates"]["video"]),
        channel_template=templates.get("channel", DEFAULT_CONFIG["templates"]["channel"]),
        existing_notes=cfg["existing_notes"],
        fail_fast=bool(cfg.get("fail_fast", False)),
        timezone=cfg.get("timezone", "Europe/London"),
        batch_channel_lookup=bool(cfg.get("batch_channel_lookup", False)),
    )


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
