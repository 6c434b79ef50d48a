"""
Abstract interfaces and base classes for the DMR vehicle designation extractor.

This module defines the contracts that the parsing strategies and the
extraction processors implement so they can be swapped by configuration.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .models import Excerpt, ExtractionResult, MarkerConfig


class ExcerptParserInterface(ABC):
    """
    Abstract interface for excerpt parsing strategies.

    A parsing strategy reduces one excerpt to zero or one ParsedKey. Its failure
    policy is a property of the strategy itself: when ``fatal_on_error`` is True a
    decode failure halts the whole pipeline, otherwise the excerpt is skipped.
    """

    name: str = ""
    fatal_on_error: bool = False

    def __init__(self, markers: Optional[MarkerConfig] = None):
        self.markers = markers or MarkerConfig()

    @abstractmethod
    def parse(self, excerpt: Excerpt) -> Optional[str]:
        """
        Parse an excerpt into a ParsedKey.

        Args:
            excerpt: Trimmed lines of one record, open and close marker included

        Returns:
            ``brand;model`` for a motor vehicle record, None otherwise

        Raises:
            ExcerptDecodeError: If the strategy cannot decode the excerpt
        """
        pass

    def parse_all(self, excerpt: Excerpt) -> List[str]:
        """Return every key found in the excerpt (at most one unless overridden)."""
        key = self.parse(excerpt)
        return [key] if key is not None else []


class ExtractionProcessorInterface(ABC):
    """
    Abstract interface for extraction processing strategies.

    Allows:
    - Parallel processing via ParallelCoordinator (production)
    - Sequential processing for testing and debugging
    """

    @abstractmethod
    def run(self, lines: Iterable[str]) -> ExtractionResult:
        """
        Scan, parse and deduplicate every record in the line stream.

        Args:
            lines: Input text lines (a text file object works)

        Returns:
            ExtractionResult holding the final key set and run metrics
        """
        pass
