"""Streaming FASTA/FASTQ reader."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import IO, Iterator, Optional

from swkit.utils import xzopen

_BUFSIZE = 16384

_SEP_SPACE = re.compile(rb"[ \t\n\v\f\r]")
_SEP_LINE = re.compile(rb"\n")

_GT = ord(">")
_AT = ord("@")
_PLUS = ord("+")
_NL = ord("\n")
_CR = ord("\r")


@dataclass(frozen=True)
class SeqRecord:
    """One sequence; ``qual`` is None for FASTA records."""

    name: str
    comment: str
    seq: str
    qual: Optional[str] = None


class TruncatedQualityError(ValueError):
    """A FASTQ record whose quality string is missing or of the wrong length."""


class _ByteStream:
    """Buffered byte reader with single-byte and read-until-delimiter access."""

    def __init__(self, f: IO) -> None:
        self._f = f
        self.reset()

    def reset(self) -> None:
        self._buf = b""
        self._begin = 0
        self._eof = False

    def _fill(self) -> bool:
        if self._begin < len(self._buf):
            return True
        if self._eof:
            return False
        chunk = self._f.read(_BUFSIZE)
        if isinstance(chunk, str):
            chunk = chunk.encode("latin-1")
        if not chunk:
            self._eof = True
            self._buf = b""
            self._begin = 0
            return False
        self._buf = chunk
        self._begin = 0
        return True

    def getc(self) -> int:
        if not self._fill():
            return -1
        c = self._buf[self._begin]
        self._begin += 1
        return c

    def getuntil(self, pattern: "re.Pattern[bytes]") -> tuple[Optional[bytes], int]:
        """Read up to the next delimiter, consuming it.

        Returns the bytes read (None when nothing was left) and the
        delimiter byte met (0 at end of input).
        """
        parts: list[bytes] = []
        gotany = False
        delim = 0
        while self._fill():
            gotany = True
            m = pattern.search(self._buf, self._begin)
            if m is None:
                parts.append(self._buf[self._begin:])
                self._begin = len(self._buf)
                continue
            i = m.start()
            parts.append(self._buf[self._begin:i])
            delim = self._buf[i]
            self._begin = i + 1
            break
        if not gotany:
            return None, 0
        return b"".join(parts), delim


def _decode(data: bytes | bytearray) -> str:
    return bytes(data).decode("latin-1")


class SeqReader:
    """Read FASTA and FASTQ records, in any mix, from a byte stream."""

    def __init__(self, stream: IO) -> None:
        self._stream = stream
        self._ks = _ByteStream(stream)
        self._last_char = 0

    def __iter__(self) -> Iterator[SeqRecord]:
        while (record := self.read()) is not None:
            yield record

    def _append_line(self, buf: bytearray) -> bool:
        data, _ = self._ks.getuntil(_SEP_LINE)
        if data is None:
            return False
        buf.extend(data)
        if len(buf) > 1 and buf[-1] == _CR:
            del buf[-1]
        return True

    def read(self) -> Optional[SeqRecord]:
        """Return the next record, or None at end of input.

        Raises TruncatedQualityError for a FASTQ record whose quality
        string is absent or differs in length from the sequence.
        """
        ks = self._ks
        if not self._last_char:
            while True:
                c = ks.getc()
                if c == -1:
                    return None
                if c in (_GT, _AT):
                    break
            self._last_char = c
        name, c = ks.getuntil(_SEP_SPACE)
        if name is None:
            return None
        comment = b""
        if c != _NL:
            data, _ = ks.getuntil(_SEP_LINE)
            if data is not None:
                comment = data[:-1] if len(data) > 1 and data[-1] == _CR else data
        seq = bytearray()
        while True:
            c = ks.getc()
            if c in (-1, _GT, _PLUS, _AT):
                break
            if c == _NL:
                continue
            seq.append(c)
            self._append_line(seq)
        if c in (_GT, _AT):
            self._last_char = c
        if c != _PLUS:
            return SeqRecord(_decode(name), _decode(comment), _decode(seq))
        while True:
            c = ks.getc()
            if c in (-1, _NL):
                break
        if c == -1:
            raise TruncatedQualityError(f"no quality string for '{_decode(name)}'")
        qual = bytearray()
        while self._append_line(qual) and len(qual) < len(seq):
            pass
        self._last_char = 0
        if len(seq) != len(qual):
            raise TruncatedQualityError(
                f"quality string of '{_decode(name)}' has length {len(qual)}, "
                f"sequence has {len(seq)}"
            )
        return SeqRecord(_decode(name), _decode(comment), _decode(seq), _decode(qual))

    def rewind(self) -> None:
        """Seek the stream back to its start and forget any buffered input."""
        self._stream.seek(0)
        self._ks.reset()
        self._last_char = 0


def read_sequences(path: str) -> Iterator[SeqRecord]:
    """Yield the records of a plain or gzip-compressed file ("-" for stdin)."""
    fp = xzopen(path, "r")
    try:
        yield from SeqReader(fp)
    finally:
        if path != "-":
            fp.close()