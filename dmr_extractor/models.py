"""
Core data models for the DMR vehicle designation extractor.

This module defines the data structures shared by the scanner, the parsing
strategies, the worker pool and the collector.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


# An excerpt is the ordered, immutable sequence of trimmed lines of one record.
Excerpt = Tuple[str, ...]

DMR_NAMESPACE = "http://skat.dk/dmr/2007/05/31/"


@dataclass(frozen=True)
class MarkerConfig:
    """
    Line-prefix markers and key settings used to recognize records and fields.

    Attributes:
        record_open: Prefix of the line opening a statistics record
        record_close: Prefix of the line closing a statistics record
        discriminant: Prefix of the vehicle type discriminant line
        brand: Prefix of the brand name line
        model: Prefix of the model name line
        vehicle_sentinel: Discriminant value identifying a motor vehicle
        key_delimiter: Delimiter joining brand and model into a key
        namespaces: Prefix to URI map declared around an excerpt for structured decoding
    """
    record_open: str = "<ns:Statistik>"
    record_close: str = "</ns:Statistik>"
    discriminant: str = "<ns:KoeretoejArtNummer>"
    brand: str = "<ns:KoeretoejMaerkeTypeNavn>"
    model: str = "<ns:KoeretoejModelTypeNavn>"
    vehicle_sentinel: str = "1"
    key_delimiter: str = ";"
    namespaces: Dict[str, str] = field(default_factory=lambda: {"ns": DMR_NAMESPACE})

    def __post_init__(self):
        """Validate marker configuration."""
        for name in ("record_open", "record_close", "discriminant", "brand", "model"):
            if not getattr(self, name):
                raise ValueError(f"{name} marker cannot be empty")
        if self.record_open == self.record_close:
            raise ValueError("record_open and record_close markers must differ")
        if not self.vehicle_sentinel:
            raise ValueError("vehicle_sentinel cannot be empty")
        if not self.key_delimiter:
            raise ValueError("key_delimiter cannot be empty")

    def make_key(self, brand: str, model: str) -> str:
        """Join normalized brand and model into a ParsedKey."""
        return f"{brand.strip()}{self.key_delimiter}{model.strip()}"


@dataclass
class NamedNumber:
    """A number/name pair such as <ns:Model> or <ns:Variant>."""
    number: int = 0
    name: str = ""


@dataclass
class VehicleDesignation:
    """<ns:KoeretoejBetegnelseStruktur>"""
    brand_number: int = 0
    brand_name: str = ""
    model: NamedNumber = field(default_factory=NamedNumber)
    variant: NamedNumber = field(default_factory=NamedNumber)
    type: NamedNumber = field(default_factory=NamedNumber)


@dataclass
class VehicleStatistic:
    """
    Typed view of one <ns:Statistik> record.

    Attributes:
        ident: Vehicle identifier (KoeretoejIdent)
        type_number: Type discriminant (KoeretoejArtNummer), 1 for motor vehicles
        designation: Brand, model, variant and type designation
    """
    ident: int = 0
    type_number: int = 0
    designation: VehicleDesignation = field(default_factory=VehicleDesignation)


class MessageKind(Enum):
    """Kinds of messages workers post to the result queue."""
    KEY = "key"
    DONE = "done"
    ERROR = "error"
    FAILED = "failed"


@dataclass
class WorkerMessage:
    """Message from a worker to the collector."""
    kind: MessageKind
    worker_id: int
    key: Optional[str] = None
    error_message: Optional[str] = None
    excerpt_text: Optional[str] = None
    processed: int = 0
    emitted: int = 0
    failed: int = 0


@dataclass
class WorkerStats:
    """Per-worker counters reported with the completion message."""
    worker_id: int
    processed: int = 0
    emitted: int = 0
    failed: int = 0


@dataclass
class ExtractionResult:
    """
    Results from an extraction run.

    Attributes:
        keys: Final deduplicated key set
        excerpts_scanned: Number of excerpts emitted by the scanner
        keys_parsed: Number of keys produced by workers, duplicates included
        duplicate_keys: Number of keys ignored because already present
        records_failed: Number of excerpts that failed to decode (lenient mode only)
        worker_stats: Completion counters per worker identity
        processing_time_seconds: Wall-clock duration of the run
        performance_metrics: Dictionary of performance metrics
    """
    keys: frozenset = frozenset()
    excerpts_scanned: int = 0
    keys_parsed: int = 0
    duplicate_keys: int = 0
    records_failed: int = 0
    worker_stats: Dict[int, WorkerStats] = field(default_factory=dict)
    processing_time_seconds: float = 0.0
    performance_metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def unique_keys(self) -> int:
        """Number of distinct keys."""
        return len(self.keys)
