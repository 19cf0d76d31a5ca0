"""File opening with fatal errors, timers and a 64-bit integer hash."""

from __future__ import annotations

import gzip
import io
import os
import stat
import sys
import time
from typing import IO

_MASK64 = (1 << 64) - 1
_GZIP_MAGIC = b"\x1f\x8b"


class FatalError(RuntimeError):
    """An unrecoverable error reported by the function that met it."""

    def __init__(self, func: str, message: str) -> None:
        super().__init__(f"[{func}] {message}")
        self.func = func
        self.message = message


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def xopen(fn: str, mode: str = "r") -> IO:
    """Open ``fn``; "-" stands for standard input or output.

    Raises FatalError when the file cannot be opened.
    """
    if fn == "-":
        stream = sys.stdin if "r" in mode else sys.stdout
        return stream.buffer if "b" in mode else stream
    try:
        return open(fn, mode)
    except OSError as exc:
        raise FatalError("xopen", f"fail to open file '{fn}' : {_reason(exc)}") from exc


def _read_transparent(buffered: io.BufferedIOBase) -> IO[bytes]:
    if buffered.peek(2)[:2] == _GZIP_MAGIC:
        return gzip.GzipFile(fileobj=buffered, mode="rb")
    return buffered


def xzopen(fn: str, mode: str = "r") -> IO[bytes]:
    """Open ``fn`` as a binary stream, gzip-compressed or not.

    Reading accepts both gzip-compressed and plain files. Writing and
    appending produce gzip output. "-" stands for standard input or output.
    Raises FatalError when the file cannot be opened.
    """
    kind = mode[:1]
    if kind not in ("r", "w", "a"):
        raise FatalError("xzopen", f"unsupported mode '{mode}'")
    if fn == "-":
        if kind == "r":
            raw = sys.stdin.buffer
            buffered = raw if hasattr(raw, "peek") else io.BufferedReader(raw)
            return _read_transparent(buffered)
        return gzip.GzipFile(fileobj=sys.stdout.buffer, mode="wb")
    try:
        if kind == "r":
            plain = open(fn, "rb")
            if plain.peek(2)[:2] == _GZIP_MAGIC:
                plain.close()
                return gzip.open(fn, "rb")
            return plain
        return gzip.open(fn, kind + "b")
    except OSError as exc:
        raise FatalError("xzopen", f"fail to open file '{fn}' : {_reason(exc)}") from exc


def flush_and_sync(stream: IO) -> None:
    """Flush ``stream`` and, if it is backed by a regular file, fsync it.

    Raises FatalError when flushing or syncing fails.
    """
    try:
        stream.flush()
    except OSError as exc:
        raise FatalError("fflush", _reason(exc)) from exc
    try:
        fd = stream.fileno()
    except (io.UnsupportedOperation, AttributeError, ValueError):
        return
    try:
        st = os.fstat(fd)
    except OSError as exc:
        raise FatalError("fstat", _reason(exc)) from exc
    if stat.S_ISREG(st.st_mode):
        try:
            os.fsync(fd)
        except OSError as exc:
            raise FatalError("fsync", _reason(exc)) from exc


def cputime() -> float:
    """User plus system CPU time of this process, in seconds."""
    t = os.times()
    return t.user + t.system


def realtime() -> float:
    """Wall-clock time in seconds since the epoch."""
    return time.time()


def peakrss() -> int:
    """Peak resident set size of this process in bytes (0 where unknown)."""
    try:
        import resource
    except ImportError:
        return 0
    rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return rss * 1024 if sys.platform.startswith("linux") else rss


def hash_64(key: int) -> int:
    """Mix a 64-bit unsigned integer into another (an invertible hash)."""
    key &= _MASK64
    key = (key + (~(key << 32) & _MASK64)) & _MASK64
    key ^= key >> 22
    key = (key + (~(key << 13) & _MASK64)) & _MASK64
    key ^= key >> 8
    key = (key + (key << 3)) & _MASK64
    key ^= key >> 15
    key = (key + (~(key << 27) & _MASK64)) & _MASK64
    key ^= key >> 31
    return key