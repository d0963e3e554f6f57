"""CLI for generating videos and managing the local history.

Usage:
    videogen generate "A cat on a skateboard"
    videogen generate "animate this" --media cat.png
    videogen history --search cat --sort oldest
    videogen delete video_1700000000000_abc123xyz
    videogen download video_1700000000000_abc123xyz --output videos/
    videogen models
    videogen settings show
    videogen serve --port 8000
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from videogen.catalog import available_models
from videogen.client import InferenceClient
from videogen.config import get_fallback_urls, get_storage_dir, load_config
from videogen.downloader import DownloadError, download_video, video_filename
from videogen.gallery import SORT_OPTIONS, filter_videos, status_counts
from videogen.generation import GenerationValidationError, validate_request
from videogen.media import MediaQueue
from videogen.models import (
    VIDEO_STATUSES,
    AppSettings,
    GeneratedVideoRecord,
    GenerationRequest,
    GenerationSettings,
    ProgressState,
    settings_as_dict,
)
from videogen.orchestrator import CANCELLED_MESSAGE, GenerationOrchestrator
from videogen.store import AppStore, JsonFileRepository, RemoveVideo, SetVideos, UpdateSettings

console = Console()

_STATUS_STYLES = {"completed": "green", "generating": "yellow", "failed": "red"}


def _setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Quiet down httpx unless debugging
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _open_store(config: dict) -> AppStore:
    store = AppStore(JsonFileRepository(get_storage_dir(config)))
    store.load()
    return store


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """AI video generation client."""
    ctx.ensure_object(dict)
    _setup_logging(verbose)
    try:
        ctx.obj["config"] = load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Configuration error: {exc}[/red]")
        sys.exit(1)


@cli.command("generate")
@click.argument("prompt", default="")
@click.option("--media", "-m", "media_paths", multiple=True, type=click.Path(), help="Image or video input (repeatable)")
@click.option("--model", default=None, help="Model id (defaults to the configured default model)")
@click.option("--duration", type=int, default=None, help="Duration in seconds")
@click.option("--resolution", default=None, help="Resolution as WIDTHxHEIGHT")
@click.option("--style", default=None, help="Visual style")
@click.option("--strength", type=float, default=None, help="Transformation strength 0.1-1.0 (media only)")
@click.option("--motion", type=int, default=None, help="Motion level 1-255 (media only)")
@click.pass_context
def cmd_generate(
    ctx: click.Context,
    prompt: str,
    media_paths: tuple[str, ...],
    model: str | None,
    duration: int | None,
    resolution: str | None,
    style: str | None,
    strength: float | None,
    motion: int | None,
) -> None:
    """Generate a video from a prompt and/or media files."""
    config = ctx.obj["config"]
    store = _open_store(config)
    settings = GenerationSettings.from_dict({
        "duration": duration,
        "resolution": resolution,
        "style": style,
        "strength": strength,
        "motionBucket": motion,
    })

    try:
        record = asyncio.run(_generate(config, store, prompt, list(media_paths), model, settings))
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)

    if record is None:
        sys.exit(1)
    console.print(f"[green]Video {record.id} ready:[/green] {record.video_url}")


async def _generate(
    config: dict,
    store: AppStore,
    prompt: str,
    media_paths: list[str],
    model: str | None,
    settings: GenerationSettings,
) -> GeneratedVideoRecord | None:
    media_cfg = config["media"]
    queue = MediaQueue(
        max_files=media_cfg["max_files"],
        max_size=int(media_cfg["max_file_size_mb"] * 1024 * 1024),
        preview_at=media_cfg["preview_at_seconds"],
    )
    if media_paths:
        if len(media_paths) > queue.max_files:
            console.print(f"[yellow]Only the first {queue.max_files} media file(s) will be used.[/yellow]")
        added, errors = await queue.add_files(media_paths)
        for error in errors:
            console.print(f"[red]{error}[/red]")
        for descriptor in added:
            console.print(f"  [cyan]{descriptor.kind}[/cyan] {descriptor.filename} ({descriptor.size / 1024:.1f} KB)")

    request = GenerationRequest(
        prompt=prompt,
        model=model or store.state.selected_model,
        media=queue.items,
        settings=settings,
    )
    try:
        validate_request(request)
    except GenerationValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        return None

    last_state: list[ProgressState] = []
    async with InferenceClient.from_config(config) as client:
        orchestrator = GenerationOrchestrator.from_config(client, config, store=store)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Waiting...", total=100)

            def on_progress(state: ProgressState) -> None:
                last_state[:] = [state]
                progress.update(task, completed=state.progress, description=state.message or state.status)

            orchestrator.add_listener(on_progress)
            try:
                record = await orchestrator.start_generation(request)
            except asyncio.CancelledError:
                console.print(f"[yellow]{CANCELLED_MESSAGE}[/yellow]")
                raise

    if record is None:
        reason = last_state[0].message if last_state else "unknown error"
        console.print(f"[red]Generation failed: {reason}[/red]")
        return None
    if record.video_url in (orchestrator.fallbacks.reply, orchestrator.fallbacks.empty):
        console.print("[yellow]The model reply contained no video URL; a placeholder reference was stored.[/yellow]")
    return record


@cli.command("models")
def cmd_models() -> None:
    """List available models."""
    table = Table(title="Models", show_lines=True)
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Max duration", justify="right")
    table.add_column("Capabilities")
    for m in available_models():
        table.add_row(m.id, m.name, f"{m.max_duration}s", ", ".join(m.capabilities))
    console.print(table)


@cli.command("history")
@click.option("--search", "-s", default="", help="Match prompt or model")
@click.option("--status", type=click.Choice(("all", *VIDEO_STATUSES)), default="all")
@click.option("--sort", "sort_by", type=click.Choice(SORT_OPTIONS), default="newest")
@click.pass_context
def cmd_history(ctx: click.Context, search: str, status: str, sort_by: str) -> None:
    """Show generated videos."""
    store = _open_store(ctx.obj["config"])
    videos = store.state.videos
    if not videos:
        console.print("[yellow]No videos yet. Run 'generate' first.[/yellow]")
        return

    matches = filter_videos(videos, search=search, status=status, sort_by=sort_by)
    if not matches:
        console.print("[yellow]No videos match your search.[/yellow]")
        return

    table = Table(title="Videos", show_lines=True)
    table.add_column("Id", style="cyan")
    table.add_column("Created")
    table.add_column("Model")
    table.add_column("Prompt", max_width=40)
    table.add_column("Status", justify="center")
    table.add_column("URL", max_width=50)
    for v in matches:
        color = _STATUS_STYLES.get(v.status, "dim")
        table.add_row(v.id, v.created_at[:19], v.model, v.prompt, f"[{color}]{v.status.upper()}[/{color}]", v.video_url)
    console.print(table)

    counts = status_counts(videos)
    console.print(
        f"[bold]Summary:[/bold] {len(videos)} total, "
        f"{counts['completed']} completed, {counts['generating']} generating, {counts['failed']} failed"
    )


@cli.command("delete")
@click.argument("video_id")
@click.pass_context
def cmd_delete(ctx: click.Context, video_id: str) -> None:
    """Delete one video from the history."""
    store = _open_store(ctx.obj["config"])
    if store.get_video(video_id) is None:
        console.print(f"[red]No video with id {video_id}[/red]")
        sys.exit(1)
    store.dispatch(RemoveVideo(video_id))
    console.print(f"[green]Deleted {video_id}[/green]")


@cli.command("clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def cmd_clear(ctx: click.Context, yes: bool) -> None:
    """Delete all videos from the history."""
    store = _open_store(ctx.obj["config"])
    if not yes and not click.confirm("Delete all generated videos? This cannot be undone."):
        return
    store.dispatch(SetVideos(()))
    console.print("[green]History cleared.[/green]")


@cli.command("download")
@click.argument("video_id")
@click.option("--output", "-o", "output_dir", default=".", type=click.Path(file_okay=False), help="Directory to save into")
@click.pass_context
def cmd_download(ctx: click.Context, video_id: str, output_dir: str) -> None:
    """Download a generated video as ai-video-<id>.mp4."""
    config = ctx.obj["config"]
    store = _open_store(config)
    record = store.get_video(video_id)
    if record is None:
        console.print(f"[red]No video with id {video_id}[/red]")
        sys.exit(1)
    if not record.video_url:
        console.print(f"[red]Video {video_id} has no URL[/red]")
        sys.exit(1)
    if record.video_url in get_fallback_urls(config):
        console.print(f"[yellow]Video {video_id} only has a placeholder reference; nothing to download.[/yellow]")
        sys.exit(1)

    output = Path(output_dir) / video_filename(record.id)
    try:
        path = asyncio.run(_download(record.video_url, output))
    except DownloadError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)
    console.print(f"[green]Downloaded {video_id} -> {path}[/green]")


async def _download(url: str, output: Path) -> Path:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Downloading {output.name}", total=None)

        def on_progress(received: int, total: int | None) -> None:
            progress.update(task, completed=received, total=total)

        return await download_video(url, output, on_progress=on_progress)


@cli.group("settings")
def settings_group() -> None:
    """Show or change stored preferences."""


@settings_group.command("show")
@click.pass_context
def cmd_settings_show(ctx: click.Context) -> None:
    store = _open_store(ctx.obj["config"])
    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in settings_as_dict(store.state.settings).items():
        table.add_row(key, str(value))
    console.print(table)


@settings_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def cmd_settings_set(ctx: click.Context, key: str, value: str) -> None:
    """Set KEY (default_model, system_prompt, auto_save, video_quality) to VALUE."""
    store = _open_store(ctx.obj["config"])
    parsed: object = value
    if key == "auto_save":
        if value.lower() not in ("true", "false", "1", "0", "yes", "no"):
            console.print(f"[red]auto_save expects true or false, got {value!r}[/red]")
            sys.exit(1)
        parsed = value.lower() in ("true", "1", "yes")
    try:
        store.dispatch(UpdateSettings({key: parsed}))
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(1)
    console.print(f"[green]{key} updated.[/green]")


@settings_group.command("reset")
@click.pass_context
def cmd_settings_reset(ctx: click.Context) -> None:
    store = _open_store(ctx.obj["config"])
    store.dispatch(UpdateSettings(settings_as_dict(AppSettings())))
    console.print("[green]Settings reset to defaults.[/green]")


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to server.host)")
@click.option("--port", type=int, default=None, help="Port (defaults to server.port)")
@click.pass_context
def cmd_serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Run the HTTP proxy."""
    from videogen.server import create_app

    config = ctx.obj["config"]
    app = create_app(config)
    app.run(host=host or config["server"]["host"], port=port or config["server"]["port"])


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
