"""Text rendering of inode and block bitmaps."""

from __future__ import annotations

import os

PER_LINE = 20


def format_bitmap(data: bytes, count: int) -> str:
    """Render the first ``count`` bitmap bytes as 0/1 digits, 20 per line."""
    if count <= 0:
        raise ValueError(f"invalid bitmap size: {count}")
    if len(data) < count:
        raise ValueError(f"bitmap too short: need {count} bytes, got {len(data)}")

    parts = []
    for position, byte in enumerate(data[:count], start=1):
        parts.append("1" if byte else "0")
        parts.append("\n" if position % PER_LINE == 0 else " ")
    if count % PER_LINE:
        parts.append("\n")
    return "".join(parts)


def _extension(path: str) -> str:
    base = os.path.basename(path)
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def resolve_bitmap_out_path(out: str, prefix: str, report_id: str) -> str:
    """Choose the report file path for ``out`` (empty, a directory or a file name)."""
    out = out.strip()
    default = f"{prefix}_{report_id}.txt"
    if not out:
        return default
    if not _extension(out):
        if os.path.isdir(out):
            return os.path.join(out, default)
        return out + ".txt"
    return out


def write_bitmap_report(data: bytes, count: int, out: str, prefix: str, report_id: str) -> str:
    """Write the rendered bitmap and return the path written."""
    text = format_bitmap(data, count)
    path = resolve_bitmap_out_path(out, prefix, report_id)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(text)
    return path