"""
Excerpt parsing strategies.

Two interchangeable strategies share ExcerptParserInterface:
- "string": substring scan, tolerant of malformed markup
- "xml": structured lxml decode, fatal on malformed markup unless lenient
"""

from typing import Optional

from ..exceptions import ConfigurationError
from ..interfaces import ExcerptParserInterface
from ..models import MarkerConfig
from .string_parser import StringParser, get_element_value
from .xml_parser import XMLParser

PARSERS = ('string', 'xml')


def create_parser(name: str, markers: Optional[MarkerConfig] = None, strict: bool = True) -> ExcerptParserInterface:
    """
    Build the parsing strategy selected by name.

    Args:
        name: "string" or "xml"
        markers: Marker configuration shared by the scanner and parser
        strict: Failure policy of the xml strategy (ignored by "string")

    Raises:
        ConfigurationError: If the name is unknown
    """
    if name == 'string':
        return StringParser(markers)
    if name == 'xml':
        return XMLParser(markers, strict=strict)
    raise ConfigurationError(f"Invalid parser: {name!r} (expected one of {', '.join(PARSERS)})")


__all__ = ['PARSERS', 'StringParser', 'XMLParser', 'create_parser', 'get_element_value']
