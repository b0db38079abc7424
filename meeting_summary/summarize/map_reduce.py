"""Map-reduce summarization for long meeting transcripts."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import tiktoken

from ..config import Settings
from .chunking import DEFAULT_MAX_CHARS, ChunkingError, chunk_transcript
from .prompts import (
    AGGREGATE_PROMPT,
    AGGREGATE_PROMPT_JSON,
    CHUNK_PROMPT,
    SUMMARY_SYSTEM,
    TITLE_PROMPT,
    TITLE_SYSTEM,
)
from .provider import CompletionOptions, ProviderError, TextCompletionProvider
from .schema import SUMMARY_OUTPUT_SCHEMA, FinalSummary
from .sections import parse_sections, parse_structured

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Meeting"


class SummarizationError(Exception):
    """Raised when summarization fails."""


@dataclass
class SummarizeOptions:
    """Options for summarization."""

    max_chars: int = DEFAULT_MAX_CHARS
    split_mode: str = "simple"  # "simple" | "sentences"
    chunk_model: str = "gpt-3.5-turbo"
    aggregate_model: str = "gpt-4"
    title_model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_workers: int = 8
    structured_output: bool = False

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "SummarizeOptions":
        values = {
            "max_chars": settings.max_chars,
            "chunk_model": settings.chunk_model,
            "aggregate_model": settings.aggregate_model,
            "title_model": settings.title_model,
            "temperature": settings.temperature,
            "max_workers": settings.max_workers,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def count_tokens(text: str, model: str = "gpt-4") -> int:
    """Count tokens in text using tiktoken."""
    try:
        enc = tiktoken.encoding_for_model(model)
    except KeyError:
        enc = tiktoken.get_encoding("cl100k_base")
    return len(enc.encode(text))


def summarize_chunk(
    provider: TextCompletionProvider,
    chunk: str,
    options: SummarizeOptions,
) -> str:
    """Summarize a single transcript chunk. Returns the provider text verbatim."""
    return provider.complete(
        SUMMARY_SYSTEM,
        CHUNK_PROMPT.format(chunk=chunk),
        CompletionOptions(model=options.chunk_model, temperature=options.temperature),
    )


def summarize_chunks(
    provider: TextCompletionProvider,
    chunks: list[str],
    options: SummarizeOptions,
) -> list[str]:
    """
    Summarize every chunk concurrently.

    Partial summaries come back in chunk order, whatever order the calls
    finish in. A single failed call fails the whole batch.

    Raises:
        SummarizationError: If any chunk could not be summarized
    """
    if not chunks:
        return []

    workers = max(1, min(options.max_workers, len(chunks)))
    logger.debug("Summarizing %d chunks with %d workers", len(chunks), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(summarize_chunk, provider, chunk, options) for chunk in chunks
        ]

        partials = []
        for i, future in enumerate(futures):
            try:
                partials.append(future.result())
            except Exception as e:
                for pending in futures:
                    pending.cancel()
                raise SummarizationError(f"Failed on chunk {i + 1}/{len(chunks)}: {e}") from e

    return partials


def aggregate(
    provider: TextCompletionProvider,
    partials: list[str],
    options: SummarizeOptions,
) -> str:
    """
    Merge partial summaries into one "Key Points:" / "Next Steps:" text.

    Returns an empty string without calling the provider when there is
    nothing to merge.
    """
    if not partials:
        return ""

    prompt = AGGREGATE_PROMPT.format(partials="\n\n".join(partials))
    return provider.complete(
        SUMMARY_SYSTEM,
        prompt,
        CompletionOptions(model=options.aggregate_model, temperature=options.temperature),
    )


def aggregate_structured(
    provider: TextCompletionProvider,
    partials: list[str],
    options: SummarizeOptions,
) -> FinalSummary:
    """
    Merge partial summaries, asking the provider for JSON output.

    Falls back to the plain aggregate prompt and marker parsing when the
    model rejects the JSON schema request, and to marker parsing alone when
    the response is not valid JSON.
    """
    if not partials:
        return FinalSummary()

    prompt = AGGREGATE_PROMPT_JSON.format(partials="\n\n".join(partials))
    try:
        raw = provider.complete(
            SUMMARY_SYSTEM,
            prompt,
            CompletionOptions(model=options.aggregate_model, temperature=options.temperature),
            json_schema=SUMMARY_OUTPUT_SCHEMA,
        )
    except ProviderError as e:
        logger.warning(
            "Structured output failed for %s, using plain aggregate prompt: %s",
            options.aggregate_model,
            e,
        )
        return parse_sections(aggregate(provider, partials, options))

    try:
        return parse_structured(raw)
    except ValueError as e:
        logger.warning("Structured summary could not be parsed, using section markers: %s", e)
        return parse_sections(raw)


def summarize_transcript(
    text: str,
    provider: TextCompletionProvider,
    options: SummarizeOptions | None = None,
) -> FinalSummary:
    """
    Summarize transcript using map-reduce pattern.

    Args:
        text: Full transcript text
        provider: Text completion provider
        options: Summarization options

    Returns:
        FinalSummary with key points and (possibly empty) next steps

    Raises:
        SummarizationError: If chunking or any provider call fails
    """
    options = options or SummarizeOptions()

    try:
        chunks = chunk_transcript(text, options.max_chars, options.split_mode)
    except ChunkingError as e:
        raise SummarizationError(str(e)) from e

    # Empty fragments on a chunk boundary can leave blank chunks
    blank = sum(1 for chunk in chunks if not chunk.strip())
    if blank:
        logger.debug("Skipping %d blank chunks", blank)
        chunks = [chunk for chunk in chunks if chunk.strip()]

    if not chunks:
        logger.info("Empty transcript, nothing to summarize")
        return FinalSummary()

    logger.info("Split transcript (%d chars) into %d chunks", len(text), len(chunks))

    # Map phase
    partials = summarize_chunks(provider, chunks, options)

    # Reduce phase
    try:
        if options.structured_output:
            summary = aggregate_structured(provider, partials, options)
        else:
            summary = parse_sections(aggregate(provider, partials, options))
    except Exception as e:
        raise SummarizationError(f"Failed to combine chunk summaries: {e}") from e

    logger.info("Summary completed for %d chunks", len(chunks))
    return summary


def generate_title(
    text: str,
    provider: TextCompletionProvider,
    options: SummarizeOptions | None = None,
) -> str:
    """Generate a short (under 10 words) title for a transcript."""
    options = options or SummarizeOptions()

    if not text.strip():
        return DEFAULT_TITLE

    try:
        raw = provider.complete(
            TITLE_SYSTEM,
            TITLE_PROMPT.format(transcript=text),
            CompletionOptions(
                model=options.title_model, max_tokens=20, temperature=options.temperature
            ),
        )
    except Exception as e:
        raise SummarizationError(f"Failed to generate title: {e}") from e

    title = raw.strip().strip('"').strip()
    return title or DEFAULT_TITLE
