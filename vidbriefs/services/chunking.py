"""
Chunking strategy for large transcripts.

This module provides the TranscriptChunker class that splits a transcript
into word-bounded chunks for the chunked summarization pass.
"""
from typing import Generator

from vidbriefs.core.constants import SummarizationConfig


def count_words(text: str) -> int:
    """Number of whitespace-delimited words, the pipeline's token estimate."""
    return len(text.split())


class TranscriptChunker:
    """
    Greedy word-count chunker.

    A word approximates one token for budgeting; this is not a tokenizer.
    Words are packed into the current chunk until the next word would
    exceed `max_words_per_chunk`, then a new chunk starts. Joining the
    chunks with single spaces reproduces the transcript's word sequence.

    Example:
        chunker = TranscriptChunker(max_words_per_chunk=80_000)
        chunks = chunker.split(transcript)
    """

    def __init__(self, max_words_per_chunk: int = SummarizationConfig.DEFAULT_MAX_WORDS_PER_CHUNK):
        """
        Initialize the chunker.

        Args:
            max_words_per_chunk: Upper bound on words per chunk (must be positive).
        """
        if max_words_per_chunk <= 0:
            raise ValueError("max_words_per_chunk must be positive")
        self.max_words_per_chunk = max_words_per_chunk

    def split(self, transcript: str, max_words_per_chunk: int | None = None) -> list[str]:
        """
        Split a transcript into ordered chunks.

        Args:
            transcript: The full transcript text.
            max_words_per_chunk: Optional override of the configured limit.

        Returns:
            Ordered chunk texts; empty when the transcript has no words.
        """
        return list(self.iter_chunks(transcript, max_words_per_chunk))

    def iter_chunks(
        self, transcript: str, max_words_per_chunk: int | None = None
    ) -> Generator[str, None, None]:
        limit = self.max_words_per_chunk if max_words_per_chunk is None else max_words_per_chunk
        if limit <= 0:
            raise ValueError("max_words_per_chunk must be positive")

        words = transcript.split()
        for start in range(0, len(words), limit):
            yield " ".join(words[start:start + limit])
