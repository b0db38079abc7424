"""Summarization modules."""

from .chunking import ChunkingError, chunk_transcript
from .map_reduce import (
    SummarizationError,
    SummarizeOptions,
    aggregate,
    aggregate_structured,
    count_tokens,
    generate_title,
    summarize_chunk,
    summarize_chunks,
    summarize_transcript,
)
from .provider import (
    CompletionOptions,
    OpenAICompletionProvider,
    ProviderError,
    TextCompletionProvider,
    create_client,
)
from .schema import FinalSummary
from .sections import parse_sections, parse_structured

__all__ = [
    "ChunkingError",
    "CompletionOptions",
    "FinalSummary",
    "OpenAICompletionProvider",
    "ProviderError",
    "SummarizationError",
    "SummarizeOptions",
    "TextCompletionProvider",
    "aggregate",
    "aggregate_structured",
    "chunk_transcript",
    "count_tokens",
    "create_client",
    "generate_title",
    "parse_sections",
    "parse_structured",
    "summarize_chunk",
    "summarize_chunks",
    "summarize_transcript",
]
