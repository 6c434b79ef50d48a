"""
Substring-scan parsing strategy.

Treats an excerpt as plain text and looks for the discriminant, brand and model
lines by prefix. Nothing is parsed, so this strategy is fast and tolerant: a
malformed line gives a wrong or empty value but never stops the worker.
"""

import re
import sys

from typing import List, Optional

from ..interfaces import ExcerptParserInterface
from ..models import Excerpt, MarkerConfig

_NAMED_ENTITIES = {"amp": "&", "lt": "<", "gt": ">", "quot": '"', "apos": "'"}

# Single pass, so "&amp;#203;" stays the literal text "&#203;"
_REFERENCE = re.compile(r"&(#[0-9]{1,7}|#x[0-9a-fA-F]{1,6}|amp|lt|gt|quot|apos);")


def _decode_reference(match) -> str:
    ref = match.group(1)
    if not ref.startswith("#"):
        return _NAMED_ENTITIES[ref]
    code = int(ref[2:], 16) if ref.startswith("#x") else int(ref[1:])
    if code > sys.maxunicode:
        return match.group(0)
    return chr(code)


def get_element_value(line: str) -> str:
    """
    Return the text between the first '>' and the last '<' of a line.

    Examples:
        '<ns:KoeretoejMaerkeTypeNavn>VOLVO</ns:KoeretoejMaerkeTypeNavn>' -> 'VOLVO'
        '<ns:KoeretoejMaerkeTypeNavn>VOLVO' -> ''
    """
    start = line.find('>') + 1
    end = line.rfind('<')
    if end < start:
        return ''
    return _REFERENCE.sub(_decode_reference, line[start:end]).strip()


class StringParser(ExcerptParserInterface):
    """Tolerant substring scanner; never raises on malformed markup."""

    name = "string"
    fatal_on_error = False

    def __init__(self, markers: Optional[MarkerConfig] = None):
        super().__init__(markers)

    def parse(self, excerpt: Excerpt) -> Optional[str]:
        keys = self.parse_all(excerpt)
        return keys[0] if keys else None

    def parse_all(self, excerpt: Excerpt) -> List[str]:
        """
        Scan all lines of an excerpt and return the keys found.

        The discriminant, brand and model lines may come in any order. A key is
        emitted as soon as the record is known to be a vehicle and both names are
        known, after which brand and model are reset for repeated sub-structures.
        """
        markers = self.markers
        is_vehicle = False
        brand = model = ''
        keys: List[str] = []

        for line in excerpt:
            if line.startswith(markers.discriminant):
                is_vehicle = get_element_value(line) == markers.vehicle_sentinel
            elif line.startswith(markers.brand):
                brand = get_element_value(line)
            elif line.startswith(markers.model):
                model = get_element_value(line)
            else:
                continue

            if is_vehicle and brand and model:
                keys.append(markers.make_key(brand, model))
                brand = model = ''

        return keys
