"""CLI entry point for meeting-summary."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from .cache import (
    clear_cache,
    create_summary_cache,
    create_transcript_cache,
    get_cache_key_file,
    get_cache_stats,
    list_cached,
    load_summary,
    load_transcript,
)
from .config import Settings, get_settings
from .costs import estimate_summarization_cost, format_cost_warning
from .summarize import (
    ChunkingError,
    FinalSummary,
    OpenAICompletionProvider,
    ProviderError,
    SummarizationError,
    SummarizeOptions,
    chunk_transcript,
    count_tokens,
    create_client,
    generate_title,
    summarize_transcript,
)
from .transcribe import TranscriptionError, is_audio_file, transcribe_audio

# Main app
app = typer.Typer(
    name="meeting-summary",
    help="Transcribe meeting recordings and summarize them into key points and next steps.",
    no_args_is_help=True,
)

# Cache subcommand group
cache_app = typer.Typer(help="Manage cache.")
app.add_typer(cache_app, name="cache")

console = Console()


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_provider(settings: Settings) -> OpenAICompletionProvider:
    """Build the completion provider from settings."""
    return OpenAICompletionProvider(create_client(settings.openai_api_key or None))


def _render_markdown(summary: FinalSummary, title: str | None) -> str:
    lines = [f"# {title or 'Meeting Summary'}", "", "## Key Points", summary.key_points, ""]
    if summary.next_steps:
        lines += ["## Next Steps", summary.next_steps, ""]
    return "\n".join(lines)


def _write_outputs(
    out_dir: Path,
    transcript_text: str,
    summary: FinalSummary,
    title: str | None,
    meta: dict,
) -> None:
    """Write output files."""
    out_dir.mkdir(parents=True, exist_ok=True)

    (out_dir / "meta.json").write_text(json.dumps(meta, indent=2, ensure_ascii=False))
    (out_dir / "transcript.txt").write_text(transcript_text)

    payload = {"title": title, **summary.model_dump(by_alias=True)}
    (out_dir / "summary.json").write_text(json.dumps(payload, indent=2, ensure_ascii=False))
    (out_dir / "summary.md").write_text(_render_markdown(summary, title))


def _load_source_text(source: Path, settings: Settings, model: str | None) -> tuple[str, str]:
    """Read a .txt transcript or transcribe an audio file. Returns (text, method)."""
    if is_audio_file(source):
        client = create_client(settings.openai_api_key or None)
        text = transcribe_audio(source, client=client, model=model or settings.transcribe_model)
        return text, "stt"

    if source.suffix != ".txt":
        raise typer.BadParameter(
            f"Expected a .txt transcript or an audio file, got: {source.suffix or source.name}"
        )
    return source.read_text(encoding="utf-8"), "file"


@app.command()
def summarize(
    source: Annotated[Path, typer.Argument(help="Local .txt transcript or audio recording")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output directory"),
    ] = None,
    max_chars: Annotated[
        int | None,
        typer.Option("--max-chars", help="Maximum characters per chunk"),
    ] = None,
    split_mode: Annotated[
        str,
        typer.Option("--split-mode", help="Chunk splitting: simple or sentences"),
    ] = "simple",
    chunk_model: Annotated[
        str | None,
        typer.Option("--chunk-model", help="OpenAI model for per-chunk summaries"),
    ] = None,
    aggregate_model: Annotated[
        str | None,
        typer.Option("--aggregate-model", "-m", help="OpenAI model for the final summary"),
    ] = None,
    transcribe_model: Annotated[
        str | None,
        typer.Option("--transcribe-model", help="OpenAI STT model"),
    ] = None,
    structured: Annotated[
        bool,
        typer.Option("--structured", help="Request JSON output for the final summary"),
    ] = False,
    with_title: Annotated[
        bool,
        typer.Option("--title/--no-title", help="Generate a meeting title"),
    ] = True,
    force: Annotated[
        bool,
        typer.Option("--force", help="Ignore cache and re-transcribe/re-summarize"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip cost confirmation prompts"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output"),
    ] = False,
) -> None:
    """Summarize a meeting transcript or recording into key points and next steps."""
    settings = get_settings()
    _configure_logging(settings, verbose)

    if not source.exists():
        console.print(f"[red]File not found:[/red] {source}")
        raise typer.Exit(1)

    if out is None:
        out = Path("./meeting-summary") / source.stem

    options = SummarizeOptions.from_settings(
        settings,
        max_chars=max_chars,
        split_mode=split_mode,
        chunk_model=chunk_model,
        aggregate_model=aggregate_model,
        structured_output=structured,
    )

    cache_key = get_cache_key_file(source)
    transcript_text: str | None = None
    method = "file"

    # Step 1: Get transcript
    if not force:
        cached = load_transcript(cache_key)
        if cached:
            if verbose:
                console.print(f"[dim]Using cached transcript ({cached.method})[/dim]")
            transcript_text = cached.text
            method = cached.method

    if transcript_text is None:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Loading transcript...", total=None)
            try:
                transcript_text, method = _load_source_text(source, settings, transcribe_model)
            except (TranscriptionError, ProviderError) as e:
                console.print(f"[red]Transcription failed:[/red] {e}")
                raise typer.Exit(1) from e

        create_transcript_cache(cache_key, transcript_text, str(source.absolute()), method)
        if verbose:
            console.print(f"[dim]Cached transcript with key: {cache_key}[/dim]")

    console.print(f"[green]✓[/green] Transcript: {len(transcript_text)} chars")

    # Step 2: Summarize
    summary: FinalSummary | None = None
    title: str | None = None

    if not force:
        cached_summary = load_summary(cache_key, options)
        if cached_summary and (cached_summary.title or not with_title):
            if verbose:
                console.print("[dim]Using cached summary[/dim]")
            summary = cached_summary.to_summary()
            title = cached_summary.title

    if summary is None:
        try:
            chunks = chunk_transcript(transcript_text, options.max_chars, options.split_mode)
        except ChunkingError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

        token_count = count_tokens(transcript_text, options.chunk_model)
        estimate = estimate_summarization_cost(
            token_count, len(chunks), options.chunk_model, options.aggregate_model
        )
        if estimate["should_warn"] and not yes:
            console.print(
                format_cost_warning(
                    "Summarization",
                    estimate["estimated_cost"],
                    f"{token_count:,} tokens → {estimate['num_chunks']} chunks",
                )
            )
            if not typer.confirm("Continue?"):
                raise typer.Exit(0)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Generating summary...", total=None)
            try:
                provider = _build_provider(settings)
                summary = summarize_transcript(transcript_text, provider, options)
                if with_title:
                    title = generate_title(transcript_text, provider, options)
            except (SummarizationError, ProviderError) as e:
                console.print(f"[red]Summarization failed:[/red] {e}")
                raise typer.Exit(1) from e

        create_summary_cache(cache_key, summary, title, options)

    console.print("[green]✓[/green] Summary generated")

    # Step 3: Write outputs
    meta = {
        "source_file": str(source.absolute()),
        "method": method,
        "generated_at": datetime.now().isoformat(),
        "chunk_model": options.chunk_model,
        "aggregate_model": options.aggregate_model,
        "max_chars": options.max_chars,
    }
    _write_outputs(out, transcript_text, summary, title, meta)

    console.print(Panel(f"[bold green]Done![/bold green]\n\nOutput: {out}"))


@app.command()
def transcribe(
    audio: Annotated[Path, typer.Argument(help="Audio recording to transcribe")],
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Write transcript to this file"),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="OpenAI STT model"),
    ] = None,
    lang: Annotated[
        str | None,
        typer.Option("--lang", "-l", help="Language code (en, sv, etc.)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output"),
    ] = False,
) -> None:
    """Transcribe a meeting recording."""
    settings = get_settings()
    _configure_logging(settings, verbose)

    if not audio.exists():
        console.print(f"[red]File not found:[/red] {audio}")
        raise typer.Exit(1)

    try:
        client = create_client(settings.openai_api_key or None)
        text = transcribe_audio(
            audio, client=client, model=model or settings.transcribe_model, lang=lang
        )
    except (TranscriptionError, ProviderError) as e:
        console.print(f"[red]Transcription failed:[/red] {e}")
        raise typer.Exit(1) from e

    if out is None:
        console.print(text)
    else:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text)
        console.print(f"[green]✓[/green] Transcript written to {out}")


@app.command()
def title(
    source: Annotated[Path, typer.Argument(help="Local .txt transcript")],
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output"),
    ] = False,
) -> None:
    """Generate a short title for a meeting transcript."""
    settings = get_settings()
    _configure_logging(settings, verbose)

    if not source.exists():
        console.print(f"[red]File not found:[/red] {source}")
        raise typer.Exit(1)

    text = source.read_text(encoding="utf-8")
    try:
        provider = _build_provider(settings)
        console.print(generate_title(text, provider, SummarizeOptions.from_settings(settings)))
    except (SummarizationError, ProviderError) as e:
        console.print(f"[red]Title generation failed:[/red] {e}")
        raise typer.Exit(1) from e


# Cache subcommands
@cache_app.command("list")
def cache_list() -> None:
    """List cached entries."""
    entries = list_cached()
    if not entries:
        console.print("[dim]Cache is empty[/dim]")
        return

    for entry in entries:
        summary_indicator = "📝" if entry["has_summary"] else "  "
        label = entry["title"] or Path(entry["source"]).name
        console.print(
            f"{summary_indicator} [bold]{label[:50]}[/bold] "
            f"[dim]({entry['cache_key']}, {entry['method']})[/dim]"
        )


@cache_app.command("stats")
def cache_stats() -> None:
    """Show cache statistics."""
    stats = get_cache_stats()
    console.print(f"Cache directory: {stats['cache_dir']}")
    console.print(f"Transcripts: {stats['transcript_count']}")
    console.print(f"Summaries: {stats['summary_count']}")
    console.print(f"Total size: {stats['total_size_kb']:.1f} KB")


@cache_app.command("clear")
def cache_clear(
    key: Annotated[
        str | None,
        typer.Option("--key", "-k", help="Specific cache key to clear"),
    ] = None,
    all_entries: Annotated[
        bool,
        typer.Option("--all", "-a", help="Clear all cache entries"),
    ] = False,
) -> None:
    """Clear cache entries."""
    if not key and not all_entries:
        console.print("[yellow]Specify --key or --all to clear cache[/yellow]")
        raise typer.Exit(1)

    count = clear_cache(key)
    console.print(f"[green]Cleared {count} cache files[/green]")


if __name__ == "__main__":
    app()
