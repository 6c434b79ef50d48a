"""
Structured-decode parsing strategy.

Decodes an excerpt with lxml into a typed VehicleStatistic before extracting the
designation. Unlike the substring scanner this strategy validates the markup, and
by default any decode failure is fatal to the whole pipeline.
"""

import logging

from typing import Optional
from xml.sax.saxutils import quoteattr

from lxml import etree

from ..exceptions import ConfigurationError, ExcerptDecodeError
from ..interfaces import ExcerptParserInterface
from ..models import (Excerpt, MarkerConfig, NamedNumber, VehicleDesignation,
                      VehicleStatistic)

_WRAPPER_TAG = "dmr-excerpt"


class XMLParser(ExcerptParserInterface):
    """
    Strict lxml decoder mapping one <ns:Statistik> record onto VehicleStatistic.

    Excerpts are cut from the middle of a document, so the namespace prefixes
    declared on the document root are missing. The excerpt is wrapped in a
    synthetic element that declares the configured namespaces before parsing.
    Elements are matched on local name only.

    Args:
        markers: Marker configuration (sentinel, delimiter, namespaces)
        strict: When True (default) a decode failure halts the pipeline;
            when False the failing excerpt is reported and skipped
    """

    name = "xml"

    def __init__(self, markers: Optional[MarkerConfig] = None, strict: bool = True):
        super().__init__(markers)
        self.strict = strict
        self.fatal_on_error = strict
        self.logger = logging.getLogger(__name__)
        try:
            self._sentinel = int(self.markers.vehicle_sentinel)
        except ValueError:
            raise ConfigurationError(
                f"vehicle_sentinel must be numeric for the xml parser, got {self.markers.vehicle_sentinel!r}")
        declarations = " ".join(
            f"xmlns:{prefix}={quoteattr(uri)}" for prefix, uri in sorted(self.markers.namespaces.items()))
        self._wrapper_open = f"<{_WRAPPER_TAG} {declarations}>" if declarations else f"<{_WRAPPER_TAG}>"
        self._wrapper_close = f"</{_WRAPPER_TAG}>"
        self._parser = None

    def __getstate__(self):
        # lxml parser objects cannot be pickled; each worker process builds its own
        state = self.__dict__.copy()
        state['_parser'] = None
        return state

    def _get_parser(self):
        if self._parser is None:
            self._parser = etree.XMLParser(
                recover=False,  # Malformed markup must fail, not be patched up
                resolve_entities=False,  # Security: don't resolve external entities
                no_network=True,  # Security: disable network access
                remove_comments=True,
            )
        return self._parser

    def parse(self, excerpt: Excerpt) -> Optional[str]:
        statistic = self.decode(excerpt)
        if statistic.type_number != self._sentinel:
            return None

        designation = statistic.designation
        brand = designation.brand_name.strip()
        model = designation.model.name.strip()
        if not brand or not model:
            self.logger.debug(f"Vehicle {statistic.ident} has no brand or model name, skipping")
            return None
        return self.markers.make_key(brand, model)

    def decode(self, excerpt: Excerpt) -> VehicleStatistic:
        """
        Decode an excerpt into a VehicleStatistic.

        Raises:
            ExcerptDecodeError: If the excerpt is not well-formed or a numeric field is not
                a non-negative integer
        """
        text = "\n".join(excerpt)
        if not text.strip():
            raise ExcerptDecodeError("Excerpt is empty", text)

        document = f"{self._wrapper_open}{text}{self._wrapper_close}"
        try:
            wrapper = etree.fromstring(document.encode('utf-8'), self._get_parser())
        except etree.XMLSyntaxError as e:
            raise ExcerptDecodeError(f"XML syntax error: {e}", text)

        records = [child for child in wrapper if isinstance(child.tag, str)]
        if len(records) != 1:
            raise ExcerptDecodeError(f"Expected exactly one record element, found {len(records)}", text)
        record = records[0]

        try:
            info = _child(record, "KoeretoejOplysningGrundStruktur")
            designation_el = _child(info, "KoeretoejBetegnelseStruktur")
            return VehicleStatistic(
                ident=_number(record, "KoeretoejIdent"),
                type_number=_number(record, "KoeretoejArtNummer"),
                designation=VehicleDesignation(
                    brand_number=_number(designation_el, "KoeretoejMaerkeTypeNummer"),
                    brand_name=_text(designation_el, "KoeretoejMaerkeTypeNavn"),
                    model=_named_number(_child(designation_el, "Model"),
                                        "KoeretoejModelTypeNummer", "KoeretoejModelTypeNavn"),
                    variant=_named_number(_child(designation_el, "Variant"),
                                          "KoeretoejVariantTypeNummer", "KoeretoejVariantTypeNavn"),
                    type=_named_number(_child(designation_el, "Type"),
                                       "KoeretoejTypeTypeNummer", "KoeretoejTypeTypeNavn"),
                ),
            )
        except ValueError as e:
            raise ExcerptDecodeError(str(e), text)


def _child(element, local_name: str):
    """First child element with the given local name, or None."""
    if element is None:
        return None
    for child in element:
        if isinstance(child.tag, str) and etree.QName(child).localname == local_name:
            return child
    return None


def _text(element, local_name: str) -> str:
    child = _child(element, local_name)
    if child is None:
        return ""
    return "".join(child.itertext())


def _number(element, local_name: str) -> int:
    """Non-negative integer content of a child element; missing or empty is 0."""
    value = _text(element, local_name).strip()
    if not value:
        return 0
    if not value.isdigit():
        raise ValueError(f"{local_name}: expected a non-negative integer, got {value!r}")
    return int(value)


def _named_number(element, number_name: str, text_name: str) -> NamedNumber:
    return NamedNumber(number=_number(element, number_name), name=_text(element, text_name))
