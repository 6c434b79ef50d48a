"""
Input handling for DMR statistics exports.

The export is published as a ZIP archive holding a single XML file. Both the
archive and an already unpacked XML file are accepted; archive members are
decompressed as a stream, never unpacked to disk.
"""

import io
import logging
import zipfile

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO, Union

from .config.processing_defaults import ProcessingDefaults
from .exceptions import InputFileNotFoundError, InputStreamError

logger = logging.getLogger(__name__)


def check_input_file(path: Union[str, Path]) -> Path:
    """
    Return the input path if it exists.

    Raises:
        InputFileNotFoundError: If the path does not exist or is not a file
    """
    input_path = Path(path)
    if not input_path.is_file():
        raise InputFileNotFoundError(f"file {str(input_path)!r} does not seem to exist", str(input_path))
    return input_path


@contextmanager
def open_input(path: Union[str, Path], encoding: str = ProcessingDefaults.ENCODING) -> Iterator[TextIO]:
    """
    Open an export for line-by-line reading.

    A path ending in .zip is read from the first file member of the archive.

    Args:
        path: XML file or ZIP archive
        encoding: Text encoding of the XML

    Yields:
        Text stream positioned at the start of the XML

    Raises:
        InputFileNotFoundError: If the path does not exist
        InputStreamError: If the file or archive cannot be opened
    """
    input_path = check_input_file(path)

    if input_path.suffix.lower() == '.zip':
        try:
            archive = zipfile.ZipFile(input_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise InputStreamError(f"Unable to open archive {input_path}: {e}")
        with archive:
            members = [info for info in archive.infolist() if not info.is_dir()]
            if not members:
                raise InputStreamError(f"Archive {input_path} contains no files")
            if len(members) > 1:
                logger.warning(f"Archive {input_path} contains {len(members)} files, reading {members[0].filename}")
            logger.info(f"Streaming {members[0].filename} from {input_path}")
            try:
                raw = archive.open(members[0])
            except (zipfile.BadZipFile, RuntimeError, OSError) as e:
                raise InputStreamError(f"Unable to read {members[0].filename} from {input_path}: {e}")
            with io.TextIOWrapper(raw, encoding=encoding) as stream:
                yield stream
        return

    try:
        stream = open(input_path, 'r', encoding=encoding)
    except OSError as e:
        raise InputStreamError(f"Unable to open file: {e}")
    with stream:
        yield stream
