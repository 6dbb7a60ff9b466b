"""Word-count text chunking module."""
from typing import List
from utils.logger import setup_logger
from ingestion.models import Chunk
import config

logger = setup_logger(__name__)


def count_words(text: str) -> int:
    """Count whitespace-delimited words."""
    return len(text.split())


def split_text_into_chunks(text: str, words_per_chunk: int = 1500) -> List[str]:
    """Split text into consecutive runs of at most ``words_per_chunk`` words.

    Words are re-joined with single spaces, so joining the returned chunks
    with a space reproduces the input word sequence exactly.

    Args:
        text: Source text
        words_per_chunk: Maximum words per chunk

    Returns:
        Ordered list of chunk texts, empty for blank input
    """
    if words_per_chunk < 1:
        raise ValueError(f"words_per_chunk must be positive, got {words_per_chunk}")

    words = text.split()
    return [
        " ".join(words[i:i + words_per_chunk])
        for i in range(0, len(words), words_per_chunk)
    ]


class WordChunker:
    """Chunks pasted story material into analysis-sized pieces."""

    def __init__(self, words_per_chunk: int = config.WORDS_PER_CHUNK):
        """Initialize chunker.

        Args:
            words_per_chunk: Target chunk size in words
        """
        if words_per_chunk < 1:
            raise ValueError(f"words_per_chunk must be positive, got {words_per_chunk}")
        self.words_per_chunk = words_per_chunk

    def split(self, text: str) -> List[str]:
        """Split text into chunk strings."""
        word_count = count_words(text)
        if word_count > config.MAX_INPUT_WORDS:
            logger.warning(
                f"Input has {word_count:,} words, above the supported {config.MAX_INPUT_WORDS:,}"
            )

        chunks = split_text_into_chunks(text, self.words_per_chunk)
        logger.info(
            f"Split {word_count:,} words into {len(chunks)} chunks "
            f"({self.words_per_chunk} words per chunk)"
        )
        return chunks

    def build_chunks(self, text: str) -> List[Chunk]:
        """Split text and wrap each piece in an unprocessed Chunk.

        Args:
            text: Source text

        Returns:
            Chunks with 1-based ids in text order
        """
        return [
            Chunk(id=index, text=chunk_text)
            for index, chunk_text in enumerate(self.split(text), start=1)
        ]
