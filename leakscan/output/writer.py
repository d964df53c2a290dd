"""Plain-text result file writer."""

from __future__ import annotations

UTF8_BOM = "\ufeff"


class ResultWriter:
    """Appends formatted result blocks to the output file.

    A UTF-8 byte-order mark is written first whenever the file is new or empty.
    Existing content is never truncated: successive runs append.

    Not thread-safe; the result aggregator is its only caller.
    """

    def __init__(self, path: str):
        self.path = path
        self.blocks_written = 0

    def write_block(self, text: str) -> None:
        """Append one block.

        Raises:
            OSError: If the output file cannot be opened or written.
        """
        with open(self.path, "a", encoding="utf-8") as fh:
            if fh.tell() == 0:
                fh.write(UTF8_BOM)
            fh.write(text)
        self.blocks_written += 1
