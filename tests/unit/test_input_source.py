"""
Unit tests for opening plain and zipped exports.
"""

import zipfile

import pytest

from dmr_extractor.exceptions import InputFileNotFoundError, InputStreamError
from dmr_extractor.input_source import check_input_file, open_input
from tests.helpers import make_document, make_record


@pytest.fixture
def document():
    return make_document(make_record(ident=1, brand="ŠKODA", model="FABIA"), make_record(ident=2))


def test_missing_file(tmp_path):
    with pytest.raises(InputFileNotFoundError, match="does not seem to exist") as info:
        check_input_file(tmp_path / "input.xml")
    assert info.value.path == str(tmp_path / "input.xml")


def test_directory_is_not_an_input(tmp_path):
    with pytest.raises(InputFileNotFoundError):
        check_input_file(tmp_path)


def test_plain_file(tmp_path, document):
    path = tmp_path / "input.xml"
    path.write_text(document, encoding="utf-8")
    with open_input(path) as stream:
        assert stream.read() == document


def test_zip_member_is_streamed(tmp_path, document):
    path = tmp_path / "ESStatistikListeModtag.zip"
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("export/", "")
        archive.writestr("export/ESStatistikListeModtag.xml", document.encode("utf-8"))
    with open_input(path) as stream:
        lines = list(stream)
    assert "".join(lines) == document
    assert any("ŠKODA" in line for line in lines)
    assert not (tmp_path / "export").exists()


def test_empty_zip(tmp_path):
    path = tmp_path / "empty.zip"
    with zipfile.ZipFile(path, "w"):
        pass
    with pytest.raises(InputStreamError, match="no files"):
        with open_input(path):
            pass


def test_corrupt_zip(tmp_path):
    path = tmp_path / "broken.zip"
    path.write_bytes(b"this is not an archive")
    with pytest.raises(InputStreamError):
        with open_input(path):
            pass
