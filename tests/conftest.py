from __future__ import annotations

import gzip
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

APACHE_LINES = [
    '192.168.0.1 - - [10/Oct/2000:13:55:36 -0700] "GET /index.html HTTP/1.0" 200 2326 "http://www.example.com/start.html" "Mozilla/4.08"',
    '192.168.0.2 - frank [10/Oct/2000:13:55:37 -0700] "POST /login HTTP/1.1" 302 -',
    "not an access log line",
    '192.168.0.3 - - [10/Oct/2000:13:55:38 -0700] "GET /missing HTTP/1.1" 404 512 "-" "curl/8.0"',
]


@pytest.fixture
def apache_lines() -> list[str]:
    return list(APACHE_LINES)


@pytest.fixture
def write_log() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    return _write


@pytest.fixture
def write_gzip_log() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        with gzip.open(path, mode="wt", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    return _write


@pytest.fixture
def write_zip_log() -> Callable[[Path, dict[str, list[str]]], None]:
    def _write(path: Path, entries: dict[str, list[str]]) -> None:
        with zipfile.ZipFile(path, "w") as z:
            for name, lines in entries.items():
                z.writestr(name, "\n".join(lines) + "\n")

    return _write


@pytest.fixture
def write_bytes() -> Callable[[Path, list[bytes]], None]:
    def _write(path: Path, lines: list[bytes]) -> None:
        path.write_bytes(b"".join(line + b"\n" for line in lines))

    return _write
