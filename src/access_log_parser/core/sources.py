"""Source adapters: turn strings, files, archives and streams into async line streams."""

from __future__ import annotations

import asyncio
import fnmatch
import gzip
import io
import threading
import zipfile
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any

import aiofiles
from aiofiles.threadpool import wrap

from .errors import ConfigurationError, SourceNotFoundError

_GZIP_MAGIC = b"\x1f\x8b"

LineSource = AsyncIterable[str | bytes] | Iterable[str | bytes] | io.IOBase


def resolve_path(path: str | Path) -> Path:
    """Validate a source path before any run starts."""
    if not str(path):
        raise ConfigurationError("empty path detected")
    p = Path(path)
    if not p.is_file():
        raise SourceNotFoundError(f"cannot open file: {p}")
    return p


async def iter_lines(
    source: LineSource, *, encoding: str = "utf-8", decode_errors: str = "replace"
) -> AsyncIterator[str]:
    """Yield lines without trailing newline characters."""
    if isinstance(source, io.IOBase):
        source = wrap(source)

    if hasattr(source, "__aiter__"):
        async for raw in source:
            yield _normalize(raw, encoding=encoding, decode_errors=decode_errors)
        return

    for raw in source:
        yield _normalize(raw, encoding=encoding, decode_errors=decode_errors)


_EOF = object()


async def thread_lines(stream: Iterable[str | bytes]) -> AsyncIterator[str | bytes]:
    """Yield raw lines of a blocking stream read on a daemon thread.

    A blocked read never keeps the process alive, so a cancelled run over an
    idle pipe (stdin) can return and exit. Read errors are re-raised here.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Any] = asyncio.Queue()

    def put(item: Any) -> bool:
        if loop.is_closed():
            return False
        loop.call_soon_threadsafe(queue.put_nowait, item)
        return True

    def pump() -> None:
        try:
            for raw in stream:
                if not put(raw):
                    return
        except Exception as exc:
            put(exc)
            return
        put(_EOF)

    threading.Thread(target=pump, name="access-log-reader", daemon=True).start()
    while True:
        item = await queue.get()
        if item is _EOF:
            return
        if isinstance(item, Exception):
            raise item
        yield item


def _normalize(raw: Any, *, encoding: str, decode_errors: str) -> str:
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode(encoding, errors=decode_errors)
    # one terminator only: "\n" then at most one "\r"
    if raw.endswith("\n"):
        raw = raw[:-1]
    if raw.endswith("\r"):
        raw = raw[:-1]
    return raw


@asynccontextmanager
async def open_string(text: str):
    """Expose an in-memory string as an async text file."""
    af = wrap(io.StringIO(text))
    try:
        yield af
    finally:
        await af.close()


@asynccontextmanager
async def open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a plain log file for async text reading."""
    try:
        af = await aiofiles.open(path, encoding=encoding, errors=decode_errors, newline="\n")
    except OSError as exc:
        raise ConfigurationError(f"cannot open file: {exc}") from exc
    try:
        yield af
    finally:
        await af.close()


@asynccontextmanager
async def open_gzip(path: Path, *, encoding: str, decode_errors: str):
    """Open a gzip-compressed log file for async text reading."""
    try:
        with path.open("rb") as fh:
            magic = fh.read(2)
    except OSError as exc:
        raise ConfigurationError(f"cannot open file: {exc}") from exc
    if magic != _GZIP_MAGIC:
        raise ConfigurationError(f"cannot create gzip reader for {path}: not a gzip file")

    f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors, newline="\n")
    af = wrap(f)
    try:
        yield af
    finally:
        await af.close()


@contextmanager
def open_zip(path: Path) -> Iterator[zipfile.ZipFile]:
    try:
        z = zipfile.ZipFile(path)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ConfigurationError(f"cannot open zip file: {exc}") from exc
    try:
        yield z
    finally:
        z.close()


def matching_entries(z: zipfile.ZipFile, glob_pattern: str) -> list[zipfile.ZipInfo]:
    """Archive entries whose names match the glob, in archive order."""
    return [
        info
        for info in z.infolist()
        if not info.is_dir() and fnmatch.fnmatchcase(info.filename, glob_pattern)
    ]


@asynccontextmanager
async def open_zip_entry(
    z: zipfile.ZipFile, info: zipfile.ZipInfo, *, encoding: str, decode_errors: str
):
    """Open one archive entry for async text reading."""
    try:
        raw = z.open(info)
    except (OSError, zipfile.BadZipFile, RuntimeError) as exc:
        raise ConfigurationError(f"cannot open zip file entry {info.filename}: {exc}") from exc
    f = io.TextIOWrapper(raw, encoding=encoding, errors=decode_errors, newline="\n")
    af = wrap(f)
    try:
        yield af
    finally:
        await af.close()
