"""Helpers shared by the report builders: decoding, escaping and output."""

from __future__ import annotations

import json
import os
from datetime import datetime
from typing import Any, Tuple

_FITS = {"b": "BF", "f": "FF", "w": "WF"}
_TYPES = {1: "file", 2: "dir"}


def escape(text: str) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"`` for HTML output."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def map_fit(raw: int) -> str:
    """Map a fit byte (``b``/``f``/``w``, any case) to ``BF``/``FF``/``WF``."""
    if not 0 <= raw <= 0x7F:
        return ""
    return _FITS.get(chr(raw).lower(), "")


def trim_name(raw: bytes) -> str:
    """Decode a fixed-width name, dropping trailing NULs and spaces."""
    return bytes(raw).rstrip(b"\x00 ").decode("utf-8", errors="replace")


def decode_type(raw: int) -> str:
    """Name of an inode type byte: ``file``, ``dir`` or ``unknown``."""
    return _TYPES.get(raw, "unknown")


def decode_perm(raw: bytes) -> str:
    """Decode the permission field; ``000`` when it holds nothing."""
    text = trim_name(raw).strip()
    return text or "000"


def _format_rfc3339(epoch: int) -> str:
    moment = datetime.fromtimestamp(epoch).astimezone()
    text = moment.isoformat(timespec="seconds")
    offset = moment.utcoffset()
    if offset is not None and offset.total_seconds() == 0:
        text = text[: -len("+00:00")] + "Z"
    return text


def to_rfc3339(epoch: int) -> str:
    """Format a Unix time in local time as RFC 3339; empty for non-positive times."""
    if epoch <= 0:
        return ""
    return _format_rfc3339(epoch)


def make_preview(data: bytes, max_len: int) -> str:
    """Printable preview of at most ``max_len`` bytes; other bytes become ``.``."""
    chars = []
    for byte in bytes(data[:max_len]):
        if byte in (0x0A, 0x0D, 0x09) or 32 <= byte <= 126:
            chars.append(chr(byte))
        else:
            chars.append(".")
    return "".join(chars).rstrip("\x00 \r\n\t")


def write_json(path: str, value: Any) -> None:
    """Write ``value`` as indented JSON, refusing to overwrite a ``.mia`` disk."""
    if path.strip().lower().endswith(".mia"):
        raise ValueError(
            "ruta de salida apunta a un .mia; se aborta para no sobrescribir el disco"
        )
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(json.dumps(value, indent=2, ensure_ascii=False))


def _extension(path: str) -> str:
    base = path.replace("\\", "/").rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def resolve_report_out_path(out: str, default_name: str) -> Tuple[str, str]:
    """Choose the output path and format (``json`` or ``html``) for a report."""
    out = out.strip()
    if not out:
        return default_name, "json"
    ext = _extension(out).lower()
    if ext == ".json":
        return out, "json"
    if ext in (".html", ".htm"):
        return out, "html"
    if os.path.isdir(out):
        return os.path.join(out, default_name), "json"
    if not ext:
        return out + ".json", "json"
    return out, "json"