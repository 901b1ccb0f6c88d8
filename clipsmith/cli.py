"""
clipsmith.cli - Typer CLI entry point.

Provides the process, probe, config, version and doctor subcommands.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from clipsmith import __version__
from clipsmith.config import (
    CONFIG_KEYS,
    SECRET_KEYS,
    ClipsmithConfig,
    build_config,
    default_config_path,
    get_config_value,
    list_config,
    load_config,
    mask_secret,
    reset_config,
    set_config_value,
)
from clipsmith.exceptions import ClipsmithError, ConfigError
from clipsmith.logging import configure_logging
from clipsmith.utils import format_bytes, format_duration, format_offset

app = typer.Typer(
    name="clipsmith",
    help="AI-powered video editor for creating short clips from long content.\n\n"
    "Stages long-form video as bounded audio chunks for speech-to-text "
    "transcription and AI content analysis.",
    add_completion=False,
)
config_app = typer.Typer(
    help="Manage configuration settings (stored in ~/.clipsmith.yaml).",
    add_completion=False,
)
app.add_typer(config_app, name="config")
console = Console()

state: dict[str, Any] = {"config_path": None, "quiet": False}


def _config_path() -> Path:
    return state["config_path"] or default_config_path()


def _load_config_or_exit() -> ClipsmithConfig:
    try:
        return load_config(_config_path())
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _display_value(key: str, value: str | None) -> str:
    if value is None:
        return "(not set)"
    if key in SECRET_KEYS:
        return mask_secret(value)
    return value


@app.callback()
def main(
    config_file: str | None = typer.Option(
        None, "--config", help="Config file (default is ~/.clipsmith.yaml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Quiet mode (minimal output)"),
) -> None:
    """Clipsmith - AI-powered short clip editor."""
    configure_logging(verbose=verbose, quiet=quiet)
    state["config_path"] = Path(config_file).expanduser() if config_file else None
    state["quiet"] = quiet and not verbose


@app.command("version")
def show_version() -> None:
    """Show version information."""
    console.print("Clipsmith")
    console.print(f"Version:    {__version__}")
    console.print(f"Python:     {sys.version.split()[0]}")
    console.print(f"OS/Arch:    {platform.system().lower()}/{platform.machine()}")


@app.command("process")
def process_video(
    video: str = typer.Argument(..., help="Video file to process"),
    prompt: str = typer.Argument(..., help="What to look for, e.g. 'find funny moments'"),
    output: str = typer.Option("./clips", "--output", "-o", help="Output directory for clips"),
    duration: str | None = typer.Option(
        None, "--duration", "-d", help="Target clip duration (e.g. 15s, 1m)"
    ),
    max_clips: int = typer.Option(10, "--max-clips", "-m", help="Maximum number of clips"),
    quality: str | None = typer.Option(
        None, "--quality", help="Output quality (low, medium, high)"
    ),
    chunk_duration: str | None = typer.Option(
        None, "--chunk-duration", help="Audio chunk length for transcription (e.g. 30s)"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Chunks to extract concurrently"
    ),
    with_video: bool = typer.Option(
        False, "--with-video", help="Also stage a silent copy of the video stream"
    ),
    keep: bool = typer.Option(False, "--keep", help="Keep staged files after the run"),
) -> None:
    """Process a video file and stage it for clip extraction.

    Probes the video, extracts its audio as 16kHz mono WAV chunks and loads
    them for transcription.
    """
    from clipsmith.media.probe import probe_media
    from clipsmith.media.tool import MediaTool
    from clipsmith.pipeline import stage_source, stage_video
    from clipsmith.staging.workspace import Workspace
    from clipsmith.validation import (
        check_disk_space,
        estimate_audio_size,
        validate_video_file,
    )

    config = _load_config_or_exit()
    overrides = {
        "default_duration": duration,
        "default_quality": quality,
        "chunk_duration": chunk_duration,
        "max_workers": workers,
    }
    try:
        config = build_config(
            {
                **config.model_dump(),
                **{k: v for k, v in overrides.items() if v is not None},
            }
        )
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if max_clips < 1:
        console.print("[red]Error: --max-clips must be at least 1[/red]")
        raise typer.Exit(1)

    try:
        source = validate_video_file(Path(video).expanduser())
    except ClipsmithError as e:
        console.print(f"[red]Invalid video file: {e}[/red]")
        raise typer.Exit(1)

    output_dir = Path(output).expanduser()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        console.print(f"[red]Failed to create output directory: {e}[/red]")
        raise typer.Exit(1)

    quiet = state["quiet"]
    if not quiet:
        console.print("[bold]Clipsmith[/bold]")
        console.print(f"Input: {source.path}")
        console.print(f"Prompt: {prompt}")
        console.print(f"Output: {output_dir}")
        console.print(f"Duration: {config.default_duration}")
        console.print(f"Max clips: {max_clips}")
        console.print(f"Quality: {config.default_quality}")
        console.print()

    workspace = Workspace.for_run(config.temp_dir)
    try:
        tool = MediaTool.from_config(config)
        info = probe_media(source.path, tool, timeout=config.probe_timeout)

        required_mb = estimate_audio_size(info.duration_seconds) + 10
        disk = check_disk_space(config.temp_dir, required_mb)
        if not disk["sufficient"]:
            console.print(
                f"[red]Error: Insufficient disk space. "
                f"Need ~{required_mb}MB, have {disk['available_mb']}MB[/red]"
            )
            raise typer.Exit(1)

        if not quiet:
            console.print(
                f"[cyan]Staging audio ({format_duration(info.duration_seconds)} "
                f"in {config.chunk_duration:g}s chunks)...[/cyan]"
            )
        run = stage_source(
            source,
            config,
            tool,
            workspace=workspace,
            info=info,
            console=None if quiet else console,
        )
        video_path = None
        if with_video:
            video_path = stage_video(source, workspace, tool, timeout=config.extract_timeout)
    except KeyboardInterrupt:
        workspace.release_all()
        console.print("\n[yellow]Cancelled; staged files removed[/yellow]")
        raise typer.Exit(130)
    except ClipsmithError as e:
        workspace.release_all()
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not quiet:
        table = Table(title="Staged Audio Chunks")
        table.add_column("Chunk", style="cyan")
        table.add_column("Start", style="green")
        table.add_column("End", style="green")
        table.add_column("Size", style="yellow")
        for chunk in run:
            table.add_row(
                str(chunk.index),
                format_offset(chunk.start_offset),
                format_offset(chunk.end_offset),
                format_bytes(chunk.size),
            )
        console.print(table)
        if video_path:
            console.print(f"[dim]  Video stream staged at {video_path}[/dim]")

    console.print(
        f"\n[green]✓[/green] Staged {len(run)} chunk(s), "
        f"{format_bytes(run.total_bytes)} ready for transcription"
    )

    if keep:
        console.print(f"[dim]  Staged files kept in {workspace.path}[/dim]")
    else:
        run.close()


@app.command("probe")
def probe_cmd(
    video: str = typer.Argument(..., help="Video file to inspect"),
) -> None:
    """Show duration and stream information for a video file."""
    from clipsmith.media.probe import probe_media
    from clipsmith.media.tool import MediaTool

    config = _load_config_or_exit()
    try:
        tool = MediaTool.from_config(config)
        info = probe_media(Path(video).expanduser(), tool, timeout=config.probe_timeout)
    except ClipsmithError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=Path(video).name)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Duration", format_duration(info.duration_seconds))
    table.add_row("Seconds", f"{info.duration_seconds:.3f}")
    table.add_row("Format", info.format_name or "-")
    table.add_row("Audio", info.audio_codec or ("yes" if info.has_audio else "no"))
    if info.sample_rate:
        table.add_row("Sample rate", f"{info.sample_rate} Hz")
    if info.channels:
        table.add_row("Channels", str(info.channels))
    table.add_row("Video", info.video_codec or ("yes" if info.has_video else "no"))
    if info.resolution:
        table.add_row("Resolution", info.resolution)
    if info.frame_rate:
        table.add_row("Frame rate", f"{info.frame_rate:g}")
    console.print(table)


@app.command("doctor")
def run_doctor() -> None:
    """Check dependencies and environment setup."""
    from clipsmith.exceptions import DependencyError
    from clipsmith.validation import check_ffmpeg

    console.print("[cyan]Running preflight checks...[/cyan]\n")
    config = _load_config_or_exit()

    table = Table(title="Dependency Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Version/Details")

    all_passed = True
    try:
        versions = check_ffmpeg(config)
        table.add_row("FFmpeg", "✓ Installed", versions["ffmpeg_version"])
        table.add_row("FFprobe", "✓ Installed", versions["ffprobe_version"])
    except DependencyError as e:
        table.add_row(e.dependency, "✗ Missing", e.install_hint or "")
        all_passed = False

    table.add_row("Temp dir", "-", str(config.temp_dir))
    console.print(table)

    if all_passed:
        console.print("\n[green]✓ All checks passed[/green]")
    else:
        console.print("\n[yellow]⚠ Some checks failed[/yellow]")
        raise typer.Exit(1)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"One of: {', '.join(CONFIG_KEYS)}"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Set a configuration value."""
    try:
        set_config_value(key, value, _config_path())
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Configuration updated: {key} = {_display_value(key, value)}")


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Configuration key"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_value(key, _config_path())
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    if value is None:
        console.print(f"[yellow]Configuration key '{key}' is not set[/yellow]")
        return
    console.print(f"{key} = {_display_value(key, value)}")


@config_app.command("list")
def config_list() -> None:
    """List all configuration values."""
    try:
        settings = list_config(_config_path())
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Current configuration")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    for key, value in settings.items():
        table.add_row(key, _display_value(key, value))
    console.print(table)

    path = _config_path()
    if path.exists():
        console.print(f"\nConfig file: {path}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Reset configuration to defaults by removing the config file."""
    if not yes and not typer.confirm("This will reset all configuration to defaults. Continue?"):
        console.print("Configuration reset cancelled.")
        return
    try:
        removed = reset_config(_config_path())
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    if removed:
        console.print("[green]✓[/green] Configuration reset to defaults.")
    else:
        console.print("[dim]No config file to reset.[/dim]")


if __name__ == "__main__":
    app()
