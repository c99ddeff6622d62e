from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from access_log_parser.cli import main


def test_cli_preset_prints_records_and_summary(
    tmp_path: Path, write_log, apache_lines: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    log = tmp_path / "access.log"
    write_log(log, apache_lines)

    main([str(log), "--preset", "apache_clf", "--label", "status", "--no-unmatched"])

    out = capsys.readouterr().out.splitlines()
    assert out[:3] == [
        '{"index":1,"status":"200"}',
        '{"index":2,"status":"302"}',
        '{"index":3,"status":"404"}',
    ]
    summary = json.loads(out[3])
    assert summary["unmatched"] == 1
    assert summary["source"] == "access.log"


def test_cli_prefix_and_kv_format(
    tmp_path: Path, write_log, capsys: pytest.CaptureFixture[str]
) -> None:
    log = tmp_path / "app.log"
    write_log(log, ["GET 200", "???"])

    main([str(log), "--pattern", r"(?P<method>[A-Z]+) (?P<status>\d+)", "--prefix", "--format", "kv"])

    out = capsys.readouterr().out.splitlines()
    assert out == [
        '[ PROCESSED ] index=1 method="GET" status="200"',
        "[ UNMATCHED ] ???",
        'total=2 matched=1 unmatched=1 skipped=0 source="app.log" errors=null',
    ]


def test_cli_configuration_error_exits_2(
    tmp_path: Path, write_log, capsys: pytest.CaptureFixture[str]
) -> None:
    log = tmp_path / "app.log"
    write_log(log, ["x"])

    with pytest.raises(SystemExit) as exc_info:
        main([str(log), "--preset", "apache_clf", "--label", "nope"])

    assert exc_info.value.code == 2
    assert "unknown label" in capsys.readouterr().err


def test_cli_missing_file_exits_2(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main([str(tmp_path / "missing.log"), "--preset", "clb"])
    assert exc_info.value.code == 2


def test_cli_rejects_archive_flags_with_stdin() -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["-", "--preset", "clb", "--gzip"])
    assert exc_info.value.code == 2


def test_cli_unreadable_zip_entry_exits_2(
    tmp_path: Path, write_zip_log, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "logs.zip"
    write_zip_log(path, {"a.log": ["GET 200"]})

    def encrypted(self, name, *args, **kwargs):
        raise RuntimeError("File is encrypted, password required for extraction")

    monkeypatch.setattr(zipfile.ZipFile, "open", encrypted)

    with pytest.raises(SystemExit) as exc_info:
        main([str(path), "--pattern", r"(?P<method>[A-Z]+) (?P<status>\d+)", "--zip", "*.log"])

    assert exc_info.value.code == 2
    assert "cannot open zip file entry a.log" in capsys.readouterr().err
