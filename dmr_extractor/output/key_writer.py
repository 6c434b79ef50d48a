"""
Serializer for the final key set.

Writes one ``brand;model`` key per line, no header. Keys are sorted so repeated
runs over the same export produce identical files.
"""

import logging
import os

from pathlib import Path
from typing import Iterable, TextIO, Union

from ..exceptions import OutputWriteError


class KeyWriter:
    """Writes a key set to a stream or, atomically, to a file."""

    def __init__(self, sort_keys: bool = True, encoding: str = "utf-8"):
        self.logger = logging.getLogger(__name__)
        self.sort_keys = sort_keys
        self.encoding = encoding

    def write_lines(self, keys: Iterable[str], stream: TextIO) -> int:
        """Write keys to an open text stream. Returns the number of lines written."""
        ordered = sorted(keys) if self.sort_keys else keys
        written = 0
        for key in ordered:
            stream.write(key + "\n")
            written += 1
        return written

    def write(self, keys: Iterable[str], path: Union[str, Path]) -> int:
        """
        Write keys to a file.

        The data goes to a temporary sibling file that replaces the destination only
        once everything is written, so a failed write never leaves a truncated file.

        Returns:
            Number of lines written

        Raises:
            OutputWriteError: If the file cannot be created or written
        """
        out_path = Path(path)
        tmp_path = out_path.with_name(out_path.name + ".tmp")
        written = 0
        try:
            with open(tmp_path, 'w', encoding=self.encoding, newline="\n") as stream:
                written = self.write_lines(keys, stream)
            os.replace(tmp_path, out_path)
        except OSError as e:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                self.logger.warning(f"Unable to remove {tmp_path}: {cleanup_error}")
            raise OutputWriteError(f"Unable to write output file {out_path}: {e}", str(out_path), written)

        self.logger.info(f"Done - {written} keys written to {out_path}")
        return written
