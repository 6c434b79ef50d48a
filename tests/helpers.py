"""Builders for small DMR statistics exports used across the tests.

Records follow the layout of the real ESStatistikListeModtag export: one element
per line, indented, inside a root element that declares the ns prefix.
"""
from typing import List, Optional

from dmr_extractor.models import DMR_NAMESPACE


def make_record(ident: int = 1, type_number="1", brand: Optional[str] = "VOLVO",
                model: Optional[str] = "V70", variant: str = "2,4", vehicle_type: str = "SW",
                indent: str = "    ") -> List[str]:
    """Return the lines of one <ns:Statistik> record; None omits brand or model."""
    lines = [
        "<ns:Statistik>",
        f"<ns:KoeretoejIdent>{ident}</ns:KoeretoejIdent>",
        f"<ns:KoeretoejArtNummer>{type_number}</ns:KoeretoejArtNummer>",
        "<ns:KoeretoejArtNavn>Personbil</ns:KoeretoejArtNavn>",
        "<ns:KoeretoejOplysningGrundStruktur>",
        "<ns:KoeretoejBetegnelseStruktur>",
        "<ns:KoeretoejMaerkeTypeNummer>10</ns:KoeretoejMaerkeTypeNummer>",
    ]
    if brand is not None:
        lines.append(f"<ns:KoeretoejMaerkeTypeNavn>{brand}</ns:KoeretoejMaerkeTypeNavn>")
    lines.append("<ns:Model>")
    lines.append("<ns:KoeretoejModelTypeNummer>20</ns:KoeretoejModelTypeNummer>")
    if model is not None:
        lines.append(f"<ns:KoeretoejModelTypeNavn>{model}</ns:KoeretoejModelTypeNavn>")
    lines += [
        "</ns:Model>",
        "<ns:Variant>",
        "<ns:KoeretoejVariantTypeNummer>30</ns:KoeretoejVariantTypeNummer>",
        f"<ns:KoeretoejVariantTypeNavn>{variant}</ns:KoeretoejVariantTypeNavn>",
        "</ns:Variant>",
        "<ns:Type>",
        "<ns:KoeretoejTypeTypeNummer>40</ns:KoeretoejTypeTypeNummer>",
        f"<ns:KoeretoejTypeTypeNavn>{vehicle_type}</ns:KoeretoejTypeTypeNavn>",
        "</ns:Type>",
        "</ns:KoeretoejBetegnelseStruktur>",
        "</ns:KoeretoejOplysningGrundStruktur>",
        "</ns:Statistik>",
    ]
    return [indent + line for line in lines]


def make_excerpt(**kwargs) -> tuple:
    """A record as the scanner emits it: trimmed lines in a tuple."""
    return tuple(line.strip() for line in make_record(**kwargs))


def make_document(*records: List[str]) -> str:
    """Wrap records in the export's root element."""
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<ns:ESStatistikListeModtag_I xmlns:ns="{DMR_NAMESPACE}">',
        "  <ns:StatistikSamling>",
    ]
    for record in records:
        lines.extend(record)
    lines += [
        "  </ns:StatistikSamling>",
        "</ns:ESStatistikListeModtag_I>",
    ]
    return "\n".join(lines) + "\n"


def fleet(count: int) -> List[List[str]]:
    """A mixed export: repeating designations plus non-vehicle records."""
    designations = [("VOLVO", "V70"), ("FORD", "FOCUS"), ("TOYOTA", "YARIS"),
                    ("VW", "GOLF"), ("FORD", "FIESTA"), ("VOLVO", "XC60")]
    records = []
    for i in range(count):
        brand, model = designations[i % len(designations)]
        type_number = "1" if i % 4 != 3 else "2"
        records.append(make_record(ident=i + 1, type_number=type_number, brand=brand, model=model))
    return records
