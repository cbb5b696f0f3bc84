"""CLI entry point for ytvault."""

import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.table import Table

from .config import DEFAULT_CONFIG, EXISTING_NOTE_POLICIES, load_config
from .errors import YtVaultError

console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """ytvault - keep an Obsidian vault in sync with a YouTube playlist."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # googleapiclient logs every discovery/cache lookup at INFO
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _get_config(ctx) -> dict:
    try:
        return load_config(ctx.obj.get("config_path"))
    except YtVaultError as e:
        _fail(e)


CONFIG_COMMENTS = {
    "channel_id": "Playlist to mirror and the channel that owns it",
    "existing_notes": "What to do with notes already in the vault: skip, refresh or overwrite",
    "timezone": "IANA timezone for the human-readable dates in notes",
}


def _starter_config(cfg: dict) -> str:
    """YAML for `cfg`, one top-level key at a time so comments sit above their key."""
    parts = []
    for key, value in cfg.items():
        if key in CONFIG_COMMENTS:
            parts.append(f"# {CONFIG_COMMENTS[key]}\n")
        parts.append(yaml.safe_dump({key: value}, default_flow_style=False, sort_keys=False))
    return "".join(parts)


def _fail(error: Exception):
    console.print(f"[red]✗ {error}[/]")
    sys.exit(1)


@cli.command()
@click.option("--path", default=None, help="Vault path (default: from config)")
@click.pass_context
def init(ctx, path):
    """Create the vault folders and a starter config."""
    config = _get_config(ctx)
    vault_path = Path(path).expanduser().resolve() if path else Path(config["vault_path"])

    console.print(f"[bold green]Initializing ytvault in {vault_path}[/]")
    for key in ("video_folder", "video_thumbnail_folder", "channel_folder", "channel_thumbnail_folder"):
        (vault_path / config[key]).mkdir(parents=True, exist_ok=True)

    config_file = Path(ctx.obj.get("config_path") or Path.home() / ".ytvault" / "config.yaml")
    if config_file.exists():
        if Path(config["vault_path"]) != vault_path:
            console.print(f"[yellow]  {config_file} exists and points at {config['vault_path']}; "
                          f"set vault_path there to use {vault_path}[/]")
    else:
        cfg = dict(DEFAULT_CONFIG)
        cfg["vault_path"] = str(vault_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(_starter_config(cfg))
        console.print(f"  Created config: {config_file}")

    console.print("[bold green]✓ ytvault initialized![/]")
    console.print("  Run: ytvault auth, then ytvault sync")


@cli.command()
@click.pass_context
def auth(ctx):
    """Sign in with Google and cache the OAuth token."""
    from .youtube.auth import authorise

    config = _get_config(ctx)
    try:
        authorise(config["auth"]["client_secret_file"], config["auth"]["token_file"])
    except YtVaultError as e:
        _fail(e)
    console.print(f"[green]✓ Token saved to {config['auth']['token_file']}[/]")


@cli.command()
@click.option("--tag", "-t", "tags", multiple=True, help="Only list notes with this tag (repeatable)")
@click.pass_context
def index(ctx, tags):
    """Scan the vault and show its tags, or the notes carrying TAGs."""
    from .vault.index import VaultIndex

    config = _get_config(ctx)
    vault = VaultIndex.scan(config["vault_path"], config.get("exclude", []))

    if tags:
        notes = vault.search(tags)
        table = Table(title=f"Notes tagged {', '.join(tags)}")
        table.add_column("Title", style="cyan")
        table.add_column("Folder", style="dim")
        table.add_column("Tags")
        for note in notes:
            table.add_row(note.title, note.folder, " ".join(note.tags))
    else:
        table = Table(title=f"Tags in {config['vault_path']}")
        table.add_column("Tag", style="cyan")
        table.add_column("Notes", justify="right", style="green")
        for tag in sorted(vault.tags):
            table.add_row(tag, str(len(vault.notes_by_tag[tag])))

    console.print(table)
    console.print(f"[dim]{len(vault)} note(s) indexed[/]")


@cli.command()
@click.option("--playlist", "playlist_id", default=None, help="Playlist id (overrides config)")
@click.option("--channel", "channel_id", default=None, help="Channel id (overrides config)")
@click.option("--existing", type=click.Choice(EXISTING_NOTE_POLICIES), default=None,
              help="What to do with notes already in the vault")
@click.option("--fail-fast", is_flag=True, help="Stop at the first failed note")
@click.pass_context
def sync(ctx, playlist_id, channel_id, existing, fail_fast):
    """Sync the playlist's videos and channels into the vault."""
    from .config import sync_options
    from .sync.assets import AssetCache
    from .sync.orchestrator import YouTubeSync
    from .vault.index import VaultIndex
    from .vault.writer import NoteWriter
    from .youtube.auth import load_credentials
    from .youtube.client import YouTubeClient

    config = _get_config(ctx)
    for key, value in (("playlist_id", playlist_id), ("channel_id", channel_id),
                       ("existing_notes", existing)):
        if value is not None:
            config[key] = value
    if fail_fast:
        config["fail_fast"] = True

    try:
        options = sync_options(config)
        console.print(f"[blue]Indexing vault {config['vault_path']}...[/]")
        vault = VaultIndex.scan(config["vault_path"], config.get("exclude", []))

        creds = load_credentials(config["auth"]["client_secret_file"], config["auth"]["token_file"])
        client = YouTubeClient.from_credentials(
            creds, page_size=int(config["page_size"]), retries=config["http"]["retries"]
        )
        assets = AssetCache(timeout=config["http"]["timeout"], retries=config["http"]["retries"])
        syncer = YouTubeSync(vault, client, NoteWriter(config["vault_path"]), assets, options)

        console.print(f"[blue]Syncing playlist {options.playlist_id}...[/]")
        stats = syncer.sync()
    except YtVaultError as e:
        _fail(e)

    console.print(f"\n[bold]Sync summary[/]\n{stats}")
    for error in stats.errors[:10]:
        console.print(f"  [red]✗ {error}[/]")
    if len(stats.errors) > 10:
        console.print(f"  [dim]... ({len(stats.errors) - 10} more)[/]")

    if stats.failed:
        console.print(f"[red]✗ Sync finished with {stats.failed} failed note(s)[/]")
        sys.exit(1)
    console.print("[bold green]✓ Sync complete![/]")


if __name__ == "__main__":
    cli()
