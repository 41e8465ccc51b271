from __future__ import annotations

from pathlib import Path

import pytest

from tree_digest.text_detection import is_text_file, looks_like_text, read_file_content


@pytest.mark.unit
def test_plain_text_is_text(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("hello\r\nworld\tand more\n", encoding="utf-8")

    assert is_text_file(path)


@pytest.mark.unit
def test_accepted_control_bytes_keep_text() -> None:
    assert looks_like_text(b"bell\x07 back\x08 feed\x0c esc\x1b[0m")


@pytest.mark.unit
@pytest.mark.parametrize("byte", [0x00, 0x01, 0x0B, 0x1F])
def test_other_control_bytes_mark_binary(byte: int) -> None:
    assert not looks_like_text(b"abc" + bytes([byte]) + b"def")


@pytest.mark.unit
def test_empty_file_is_not_text(tmp_path: Path) -> None:
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")

    assert not is_text_file(path)


@pytest.mark.unit
def test_only_the_first_kilobyte_is_inspected(tmp_path: Path) -> None:
    path = tmp_path / "late_nul.txt"
    path.write_bytes(b"a" * 1024 + b"\x00")

    assert is_text_file(path)


@pytest.mark.unit
def test_unreadable_targets_fail_closed(tmp_path: Path) -> None:
    assert not is_text_file(tmp_path / "missing.txt")
    assert not is_text_file(tmp_path)


@pytest.mark.unit
def test_read_file_content_replaces_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "latin.txt"
    path.write_bytes(b"caf\xe9")

    assert read_file_content(path) == "caf\ufffd"


@pytest.mark.unit
def test_read_file_content_reports_errors_inline(tmp_path: Path) -> None:
    content = read_file_content(tmp_path / "missing.txt")

    assert content.startswith("Error reading file: ")
