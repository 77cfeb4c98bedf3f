"""Incremental delimiter-based framing over a growing text buffer."""

from __future__ import annotations

from collections.abc import Iterator

from ..constants import RECORD_TERMINATOR


class LineTokenizer:
    """Cursor-based tokenizer.

    ``tokenize`` never rescans text consumed by an earlier match; text
    after the cursor stays buffered until a later ``feed`` completes it.
    The same class frames socket data into records (``"\\r\\n"``) and
    splits a record on the trailing-parameter boundary (``" :"``).
    """

    def __init__(self, data: str = "") -> None:
        self._buffer = data
        self._cursor = 0

    def feed(self, data: str) -> None:
        # Drop the consumed prefix so the buffer only holds the carry.
        if self._cursor:
            self._buffer = self._buffer[self._cursor :]
            self._cursor = 0
        self._buffer += data

    def tokenize(self, delimiter: str | None = RECORD_TERMINATOR) -> str | None:
        """Return the text up to the next ``delimiter`` and step past it.

        Returns ``None`` when the delimiter is not present, leaving the
        cursor where it was. With ``delimiter=None`` the rest of the buffer
        is returned and the cursor moves to its end.
        """
        if delimiter is None:
            rest = self._buffer[self._cursor :]
            self._cursor = len(self._buffer)
            return rest
        if not delimiter:
            raise ValueError("delimiter must be a non-empty string or None")
        index = self._buffer.find(delimiter, self._cursor)
        if index == -1:
            return None
        token = self._buffer[self._cursor : index]
        self._cursor = index + len(delimiter)
        return token

    def drain(self, delimiter: str = RECORD_TERMINATOR) -> Iterator[str]:
        """Yield every complete record currently buffered."""
        while (record := self.tokenize(delimiter)) is not None:
            yield record

    @property
    def pending(self) -> str:
        """Unconsumed text (the carry for the next chunk)."""
        return self._buffer[self._cursor :]

    def reset(self) -> None:
        self._buffer = ""
        self._cursor = 0
