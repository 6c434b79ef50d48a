"""
Centralized configuration defaults for extraction runs.

This module defines operational configuration constants used throughout the system.
CLI arguments and DMR_EXTRACTOR_* environment variables can override these defaults.
"""

import multiprocessing as mp


def default_worker_count() -> int:
    """One worker per CPU core, leaving one core for the scanner and collector."""
    return max(1, mp.cpu_count() - 1)


class ProcessingDefaults:
    """
    Centralized operational configuration for extraction runs.

    All values are defaults that can be overridden via CLI arguments:
    - dmr-extractor --parser xml --workers 8
    - dmr-extractor --log-level DEBUG
    """

    # Parsing strategy ("string" or "xml")
    PARSER = "string"

    # Files
    INFILE = "input.xml"
    OUTFILE = "out.csv"

    # Parallelization (None = cpu count - 1)
    WORKERS = None

    # Excerpt queue depth per worker
    QUEUE_DEPTH_FACTOR = 1

    # Seconds the collector waits on the result queue before checking worker liveness
    RESULT_POLL_SECONDS = 0.5

    # Seconds to wait for a worker to exit after completion
    WORKER_JOIN_TIMEOUT = 10

    # Input encoding
    ENCODING = "utf-8"

    # Logging
    LOG_LEVEL = "INFO"

    @classmethod
    def to_dict(cls) -> dict:
        """
        Export all defaults as a dictionary.

        Returns:
            Dictionary of all ProcessingDefaults class attributes.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if not key.startswith('_') and key.isupper()
        }

    @classmethod
    def log_summary(cls, logger=None):
        """
        Log a summary of all operational defaults.

        Args:
            logger: Optional logger instance. If None, prints to stdout.
        """
        config_dict = cls.to_dict()
        summary = "\n".join([f"  {key}: {value}" for key, value in sorted(config_dict.items())])
        message = f"Processing Configuration Defaults:\n{summary}"

        if logger:
            logger.info(message)
        else:
            print(message)
