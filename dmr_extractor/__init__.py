"""
DMR Vehicle Designation Extractor

Streams a Danish motor registry (DMR) statistics export, parses each record in
parallel worker processes and collects the unique brand;model designations.
"""

__version__ = "1.0.0"

from .models import (
    Excerpt,
    MarkerConfig,
    VehicleStatistic,
    ExtractionResult,
)

from .interfaces import (
    ExcerptParserInterface,
    ExtractionProcessorInterface,
)

from .exceptions import (
    DMRExtractionError,
    ExcerptDecodeError,
    InputStreamError,
    InputFileNotFoundError,
    OutputWriteError,
    ConfigurationError,
    PipelineAbortedError,
    WorkerCrashedError,
)

__all__ = [
    # Core models
    "Excerpt",
    "MarkerConfig",
    "VehicleStatistic",
    "ExtractionResult",

    # Interfaces
    "ExcerptParserInterface",
    "ExtractionProcessorInterface",

    # Exceptions
    "DMRExtractionError",
    "ExcerptDecodeError",
    "InputStreamError",
    "InputFileNotFoundError",
    "OutputWriteError",
    "ConfigurationError",
    "PipelineAbortedError",
    "WorkerCrashedError",
]
