"""
Text chunking service for the PDF Flashcard Generator

Splits extracted document text into sentence-aligned chunks small enough to
fit in a single completion prompt.
"""
import re
from typing import List, Optional
from dataclasses import dataclass

from utils.exceptions import TextChunkingError


@dataclass
class ChunkingConfig:
    """Configuration for text chunking parameters"""
    chunk_size: int = 800  # Maximum characters per chunk (a lone longer sentence may exceed it)


class TextChunker:
    """
    Greedy sentence packer.

    Sentences are appended to a running buffer until the next one would push
    it past ``chunk_size``; the buffer is then emitted and a new one started.
    Sentences are never split, so a single sentence longer than the limit
    becomes an oversized chunk of its own.
    """

    # A run of non-terminators closed by terminators, or trailing text with none
    sentence_pattern = re.compile(r'[^.!?]*[.!?]+|[^.!?]+\Z')

    def __init__(self, config: Optional[ChunkingConfig] = None):
        """
        Initialize the text chunker with configuration.

        Args:
            config: Chunking configuration parameters
        """
        self.config = config or ChunkingConfig()
        if self.config.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    def split_sentences(self, text: str) -> List[str]:
        """Split text into stripped, non-empty sentences in document order."""
        sentences = []
        for match in self.sentence_pattern.finditer(text):
            sentence = match.group(0).strip()
            if sentence:
                sentences.append(sentence)
        return sentences

    def chunk_text(self, text: str) -> List[str]:
        """
        Chunk text into sentence-aligned segments.

        Args:
            text: The text content to chunk

        Returns:
            Non-empty list of non-empty chunks, in document order

        Raises:
            TextChunkingError: If the text is empty or only whitespace
        """
        if not isinstance(text, str) or not text.strip():
            raise TextChunkingError(
                "No text chunks to process",
                text_length=len(text) if isinstance(text, str) else None
            )

        chunks: List[str] = []
        current = ""

        for sentence in self.split_sentences(text):
            if not current:
                current = sentence
            elif len(current) + 1 + len(sentence) > self.config.chunk_size:
                chunks.append(current)
                current = sentence
            else:
                current = f"{current} {sentence}"

        if current:
            chunks.append(current)

        return chunks

    def get_chunk_statistics(self, chunks: List[str]) -> dict:
        """
        Get statistics about the generated chunks.

        Args:
            chunks: List of chunks to analyze

        Returns:
            Dictionary with chunk statistics
        """
        if not chunks:
            return {
                "total_chunks": 0,
                "avg_chunk_size_chars": 0,
                "min_chunk_size_chars": 0,
                "max_chunk_size_chars": 0,
                "oversized_chunks": 0,
                "total_characters": 0
            }

        sizes = [len(chunk) for chunk in chunks]

        return {
            "total_chunks": len(chunks),
            "avg_chunk_size_chars": sum(sizes) / len(chunks),
            "min_chunk_size_chars": min(sizes),
            "max_chunk_size_chars": max(sizes),
            "oversized_chunks": sum(1 for size in sizes if size > self.config.chunk_size),
            "total_characters": sum(sizes)
        }
