"""Split long transcripts into bounded-size chunks."""

import re

DEFAULT_MAX_CHARS = 2500
SIMPLE_DELIMITER = ". "

# Sentence end followed by whitespace, or any line break
_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?。？！])\s+|\n+")


class ChunkingError(ValueError):
    """Raised for invalid chunking configuration."""


def _split_simple(text: str) -> tuple[list[str], str]:
    return text.split(SIMPLE_DELIMITER), SIMPLE_DELIMITER


def _split_sentences(text: str) -> tuple[list[str], str]:
    fragments = [s.strip() for s in _SENTENCE_BOUNDARY.split(text)]
    return [s for s in fragments if s], " "


_SPLITTERS = {
    "simple": _split_simple,
    "sentences": _split_sentences,
}


def chunk_transcript(
    text: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    mode: str = "simple",
) -> list[str]:
    """
    Split transcript into chunks of at most max_chars characters.

    In "simple" mode the text is split on ". " and every fragment, empty
    ones included, lands in exactly one chunk, so joining the chunks back
    with ". " gives the original text. An empty fragment that cannot fit
    next to its neighbours becomes an empty chunk. "sentences" mode also
    breaks on "!", "?" and newlines, drops blank fragments and rejoins
    with a single space, so it does not round-trip.

    A fragment longer than max_chars is never split further; it becomes
    its own oversized chunk.

    Raises:
        ChunkingError: max_chars is not positive or mode is unknown
    """
    if max_chars <= 0:
        raise ChunkingError(f"max_chars must be positive, got {max_chars}")

    try:
        splitter = _SPLITTERS[mode]
    except KeyError:
        raise ChunkingError(
            f"Unknown split mode: {mode!r}. Expected one of: {', '.join(_SPLITTERS)}"
        ) from None

    if not text:
        return []

    fragments, separator = splitter(text)

    chunks = []
    buffer: list[str] = []
    length = 0

    for fragment in fragments:
        added = len(separator) + len(fragment) if buffer else len(fragment)
        if buffer and length + added > max_chars:
            chunks.append(separator.join(buffer))
            buffer, length = [fragment], len(fragment)
        else:
            buffer.append(fragment)
            length += added

    if buffer:
        chunks.append(separator.join(buffer))

    return chunks
