"""
Custom exceptions for the DMR vehicle designation extractor.

This module defines specific exception types for the error conditions that can
occur while scanning, parsing and collecting vehicle designations.
"""


class DMRExtractionError(Exception):
    """Base exception for all extraction related errors."""

    def __init__(self, message: str, worker_id: int = None):
        """
        Initialize extraction error.

        Args:
            message: Error description
            worker_id: Optional identity of the worker that raised or reported the error
        """
        super().__init__(message)
        self.worker_id = worker_id


class ExcerptDecodeError(DMRExtractionError):
    """Exception raised when structured decoding of an excerpt fails."""

    def __init__(self, message: str, excerpt_text: str = None, worker_id: int = None):
        """
        Initialize excerpt decode error.

        Args:
            message: Error description
            excerpt_text: Optional excerpt content that failed to decode (truncated for logging)
            worker_id: Optional identity of the worker
        """
        super().__init__(message, worker_id)
        # Store truncated excerpt for debugging (first 500 chars)
        self.excerpt_text = excerpt_text[:500] + "..." if excerpt_text and len(excerpt_text) > 500 else excerpt_text


class InputStreamError(DMRExtractionError):
    """Exception raised when the input stream cannot be read."""
    pass


class InputFileNotFoundError(DMRExtractionError):
    """Exception raised when the input file does not exist."""

    def __init__(self, message: str, path: str = None):
        super().__init__(message)
        self.path = path


class OutputWriteError(DMRExtractionError):
    """Exception raised when the final key set cannot be written."""

    def __init__(self, message: str, path: str = None, lines_written: int = 0):
        """
        Initialize output write error.

        Args:
            message: Error description
            path: Destination that failed
            lines_written: Number of keys written before the failure
        """
        super().__init__(message)
        self.path = path
        self.lines_written = lines_written


class ConfigurationError(DMRExtractionError):
    """Exception raised when configuration is invalid or missing."""
    pass


class PipelineAbortedError(DMRExtractionError):
    """Exception raised when a fatal parse failure halts the whole pipeline."""

    def __init__(self, message: str, worker_id: int = None, excerpt_text: str = None):
        super().__init__(message, worker_id)
        self.excerpt_text = excerpt_text


class WorkerCrashedError(DMRExtractionError):
    """Exception raised when a worker process exits without reporting completion."""

    def __init__(self, message: str, worker_id: int = None, exit_code: int = None):
        super().__init__(message, worker_id)
        self.exit_code = exit_code
