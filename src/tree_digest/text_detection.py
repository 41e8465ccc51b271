from __future__ import annotations

from typing import TYPE_CHECKING

from tree_digest.config import TEXT_SNIFF_BYTES

if TYPE_CHECKING:
    from pathlib import Path

# bell, backspace, tab, LF, form feed, CR, escape
ALLOWED_CONTROL_BYTES = frozenset({0x07, 0x08, 0x09, 0x0A, 0x0C, 0x0D, 0x1B})


def looks_like_text(chunk: bytes) -> bool:
    """Check a byte prefix for control bytes that only appear in binary data.

    Args:
        chunk (bytes): the bytes to inspect

    Returns:
        bool: True if `chunk` is non-empty and holds no disallowed control byte
    """
    if not chunk:
        return False
    return all(byte >= 0x20 or byte in ALLOWED_CONTROL_BYTES for byte in chunk)  # noqa: PLR2004


def is_text_file(path: Path, nbytes: int = TEXT_SNIFF_BYTES) -> bool:
    """Check if a file is probably text.

    Reads up to `nbytes` from the start of the file. Empty files and files that
    cannot be read (missing, permission denied, directories) are not text.

    Args:
        path (Path): the file path to check
        nbytes (int, optional): number of bytes to inspect. Defaults to 1024.

    Returns:
        bool: True if the file is probably text, False otherwise
    """
    try:
        with path.open("rb") as f:
            chunk = f.read(nbytes)
    except OSError:
        return False
    return looks_like_text(chunk)


def read_file_content(path: Path) -> str:
    """Read a whole text file.

    Invalid UTF-8 sequences are replaced rather than rejected. A read failure
    does not raise: the error message becomes the content.

    Args:
        path (Path): the file to read

    Returns:
        str: the file content, or `Error reading file: <reason>`
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        return f"Error reading file: {e.strerror or e}"
