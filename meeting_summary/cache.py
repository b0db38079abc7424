"""Caching utilities for transcripts and summaries."""

import hashlib
import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from .summarize.map_reduce import SummarizeOptions
from .summarize.schema import FinalSummary


@dataclass
class CachedTranscript:
    """Cached transcript data."""

    text: str
    source: str
    method: str  # "file" | "stt"
    cached_at: str


@dataclass
class CachedSummary:
    """Cached summary data."""

    key_points: str
    next_steps: str
    title: str | None
    chunk_model: str
    aggregate_model: str
    max_chars: int
    split_mode: str
    structured_output: bool
    cached_at: str

    def to_summary(self) -> FinalSummary:
        return FinalSummary(key_points=self.key_points, next_steps=self.next_steps)

    def matches(self, options: SummarizeOptions) -> bool:
        """Whether this summary was produced with the same chunking and models."""
        return (
            self.chunk_model == options.chunk_model
            and self.aggregate_model == options.aggregate_model
            and self.max_chars == options.max_chars
            and self.split_mode == options.split_mode
            and self.structured_output == options.structured_output
        )


def get_cache_key_file(file_path: Path) -> str:
    """Generate cache key for a source file based on content hash."""
    content = file_path.read_bytes()
    return hashlib.sha256(content).hexdigest()[:16]


def get_cache_dir() -> Path:
    """Get the cache directory path."""
    cache_dir = Path.home() / ".cache" / "meeting-summary"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def _get_cache_path(cache_key: str, cache_type: str) -> Path:
    return get_cache_dir() / f"{cache_key}_{cache_type}.json"


def load_cached(cache_key: str, cache_type: str) -> dict[str, Any] | None:
    """Load cached data if it exists."""
    cache_file = _get_cache_path(cache_key, cache_type)
    if cache_file.exists():
        try:
            return json.loads(cache_file.read_text())
        except json.JSONDecodeError:
            return None
    return None


def save_to_cache(cache_key: str, cache_type: str, data: dict[str, Any]) -> None:
    cache_file = _get_cache_path(cache_key, cache_type)
    cache_file.write_text(json.dumps(data, indent=2, ensure_ascii=False))


def load_transcript(cache_key: str) -> CachedTranscript | None:
    """Load cached transcript."""
    data = load_cached(cache_key, "transcript")
    if data:
        try:
            return CachedTranscript(**data)
        except TypeError:
            return None
    return None


def load_summary(cache_key: str, options: SummarizeOptions | None = None) -> CachedSummary | None:
    """
    Load cached summary.

    With options, a summary made with different models or chunking counts
    as a miss.
    """
    data = load_cached(cache_key, "summary")
    if not data:
        return None
    try:
        cached = CachedSummary(**data)
    except TypeError:
        return None
    if options is not None and not cached.matches(options):
        return None
    return cached


def create_transcript_cache(
    cache_key: str,
    text: str,
    source: str,
    method: str,
) -> CachedTranscript:
    """Create and save transcript cache entry."""
    transcript = CachedTranscript(
        text=text,
        source=source,
        method=method,
        cached_at=datetime.now().isoformat(),
    )
    save_to_cache(cache_key, "transcript", asdict(transcript))
    return transcript


def create_summary_cache(
    cache_key: str,
    summary: FinalSummary,
    title: str | None,
    options: SummarizeOptions,
) -> CachedSummary:
    """Create and save summary cache entry."""
    cached = CachedSummary(
        key_points=summary.key_points,
        next_steps=summary.next_steps,
        title=title,
        chunk_model=options.chunk_model,
        aggregate_model=options.aggregate_model,
        max_chars=options.max_chars,
        split_mode=options.split_mode,
        structured_output=options.structured_output,
        cached_at=datetime.now().isoformat(),
    )
    save_to_cache(cache_key, "summary", asdict(cached))
    return cached


def clear_cache(cache_key: str | None = None) -> int:
    """
    Clear cache entries.

    Args:
        cache_key: If provided, clear only entries for this key.
                   If None, clear all cache.

    Returns:
        Number of files deleted
    """
    count = 0

    if cache_key:
        for suffix in ["transcript", "summary"]:
            cache_file = _get_cache_path(cache_key, suffix)
            if cache_file.exists():
                cache_file.unlink()
                count += 1
    else:
        for cache_file in get_cache_dir().glob("*.json"):
            cache_file.unlink()
            count += 1

    return count


def list_cached() -> list[dict[str, Any]]:
    """List all cached transcripts."""
    entries = []

    for cache_file in sorted(get_cache_dir().glob("*_transcript.json")):
        cache_key = cache_file.stem.removesuffix("_transcript")
        try:
            data = json.loads(cache_file.read_text())
        except json.JSONDecodeError:
            continue
        summary = load_summary(cache_key)
        entries.append(
            {
                "cache_key": cache_key,
                "source": data.get("source", ""),
                "method": data.get("method", ""),
                "cached_at": data.get("cached_at", ""),
                "title": summary.title if summary and summary.title else "",
                "has_summary": summary is not None,
            }
        )

    return entries


def get_cache_stats() -> dict[str, Any]:
    """Get cache statistics."""
    cache_dir = get_cache_dir()

    transcript_files = list(cache_dir.glob("*_transcript.json"))
    summary_files = list(cache_dir.glob("*_summary.json"))
    total_size = sum(f.stat().st_size for f in cache_dir.glob("*.json"))

    return {
        "cache_dir": str(cache_dir),
        "transcript_count": len(transcript_files),
        "summary_count": len(summary_files),
        "total_size_kb": total_size / 1024,
    }
