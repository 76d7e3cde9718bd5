"""MBR report: primary partitions plus the logical partitions of the extended one."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..diskutil import read_mbr
from ..structs import EBR
from .common import (
    _extension,
    _format_rfc3339,
    escape,
    map_fit,
    trim_name,
    write_json,
)

logger = logging.getLogger(__name__)

MAX_EBRS = 128


def _byte_str(raw: int) -> str:
    return bytes([raw]).decode("utf-8", errors="replace")


@dataclass
class MBRPartReport:
    """One partition row of the MBR report."""

    index: int
    status: str
    type: str
    fit: str
    raw_status: int
    raw_type: int
    raw_fit: int
    start: int
    size: int
    name: str
    usable: bool
    id: str = ""
    correlative: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "index": self.index,
            "status": self.status,
            "type": self.type,
            "fit": self.fit,
            "rawStatus": self.raw_status,
            "rawType": self.raw_type,
            "rawFit": self.raw_fit,
            "start": self.start,
            "size": self.size,
            "name": self.name,
        }
        if self.id:
            data["id"] = self.id
        if self.correlative:
            data["correlative"] = self.correlative
        data["usable"] = self.usable
        return data


@dataclass
class MBRReport:
    """Contents of a disk's MBR and its EBR chain."""

    disk_path: str
    created: str
    size: int
    signature: int
    fit: str
    raw_fit: int
    parts: List[MBRPartReport] = field(default_factory=list)
    kind: str = "mbr"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "diskPath": self.disk_path,
            "created": self.created,
            "sizeBytes": self.size,
            "signature": self.signature,
            "fit": self.fit,
            "rawFit": self.raw_fit,
            "partitions": [p.to_dict() for p in self.parts],
        }


def read_ebr_at(disk_path: str, offset: int) -> EBR:
    """Read the EBR stored at ``offset`` of the disk image."""
    with open(disk_path, "rb") as handle:
        handle.seek(offset)
        data = handle.read(EBR.SIZE)
    if len(data) < EBR.SIZE:
        raise EOFError(f"EBR at offset {offset}: unexpected end of file")
    return EBR.from_bytes(data)


def append_logical_partitions(report: MBRReport, disk_path: str, ext_start: int) -> None:
    """Follow the EBR chain from ``ext_start`` and append its logical partitions."""
    if ext_start <= 0:
        raise ValueError(f"extendida con start inválido: {ext_start}")

    offset = ext_start
    for step in range(MAX_EBRS):
        try:
            ebr = read_ebr_at(disk_path, offset)
        except (OSError, EOFError, ValueError):
            if step == 0:
                raise
            return
        if ebr.size <= 0:
            return

        logical_start = ext_start + ebr.start
        report.parts.append(
            MBRPartReport(
                index=len(report.parts),
                status=_byte_str(ebr.status),
                type="l",
                fit=map_fit(ebr.fit),
                raw_status=ebr.status,
                raw_type=ord("l"),
                raw_fit=ebr.fit,
                start=logical_start,
                size=ebr.size,
                name=trim_name(ebr.name),
                usable=ebr.size > 0 and logical_start >= 0,
            )
        )
        if ebr.next <= 0:
            return
        offset = ext_start + ebr.next

    raise ValueError("cadena EBR demasiado larga o con ciclo")


def build_mbr(disk_path: str) -> MBRReport:
    """Read the MBR of ``disk_path`` and build its report."""
    with open(disk_path, "rb") as handle:
        mbr = read_mbr(handle)

    report = MBRReport(
        disk_path=disk_path,
        created=_format_rfc3339(mbr.created),
        size=mbr.size,
        signature=mbr.signature,
        fit=map_fit(mbr.fit),
        raw_fit=mbr.fit,
    )
    for index, part in enumerate(mbr.partitions):
        report.parts.append(
            MBRPartReport(
                index=index,
                status=_byte_str(part.status),
                type=_byte_str(part.type),
                fit=map_fit(part.fit),
                raw_status=part.status,
                raw_type=part.type,
                raw_fit=part.fit,
                start=part.start,
                size=part.size,
                name=trim_name(part.name),
                usable=part.size > 0 and part.start >= 0,
                id=trim_name(part.id),
                correlative=part.correlative,
            )
        )
        if part.type in (ord("e"), ord("E")):
            try:
                append_logical_partitions(report, disk_path, part.start)
            except (OSError, EOFError, ValueError) as exc:
                logger.warning("leyendo EBR: %s", exc)
    return report


def render_mbr_html(report: MBRReport) -> str:
    """Render the MBR report as an HTML page."""
    out = [
        '<!doctype html><meta charset="utf-8"><title>MBR Report</title>',
        "<style>body{font-family:system-ui,Segoe UI,Roboto,Arial}table{border-collapse:collapse}"
        "td,th{border:1px solid #ccc;padding:.4rem .6rem}th{background:#f5f5f5}</style>",
        "<h2>MBR</h2>",
        f"<p><b>Disk:</b> {escape(report.disk_path)}<br><b>Created:</b> {escape(report.created)}"
        f"<br><b>Size:</b> {report.size} bytes<br><b>Signature:</b> {report.signature}"
        f"<br><b>Fit:</b> {escape(report.fit)} (0x{report.raw_fit:02X})</p>",
        "<table><thead><tr>",
        "<th>#</th><th>Status</th><th>Type</th><th>Fit</th><th>Start</th><th>Size</th>"
        "<th>Name</th><th>Usable</th>",
        "</tr></thead><tbody>",
    ]
    for part in report.parts:
        out.append(
            f"<tr><td>{part.index}</td><td>{escape(part.status)} (0x{part.raw_status:02X})</td>"
            f"<td>{escape(part.type)}</td><td>{escape(part.fit)}</td><td>{part.start}</td>"
            f"<td>{part.size}</td><td>{escape(part.name)}</td>"
            f"<td>{'true' if part.usable else 'false'}</td></tr>"
        )
    out.append("</tbody></table>")
    return "".join(out)


def _resolve_out_path(out: str, report_id: str) -> Tuple[str, str]:
    out = out.strip()
    default = f"mbr_{report_id}.json"
    if not out:
        return default, "json"
    ext = _extension(out).lower()
    if ext == ".json":
        return out, "json"
    if ext in (".html", ".htm"):
        return out, "html"
    if os.path.isdir(out):
        return os.path.join(out, default), "json"
    if os.path.exists(out):
        base = os.path.basename(out)
        stem = base[: len(base) - len(ext)] if ext else base
        directory = os.path.dirname(out)
        name = stem + ".json"
        return (os.path.join(directory, name) if directory else name), "json"
    if not ext:
        return out + ".json", "json"
    return out[: len(out) - len(ext)] + ".json", "json"


def generate_mbr(disk_path: str, report_id: str, out_path: str) -> str:
    """Build the MBR report and write it as JSON or HTML; return the path written."""
    report = build_mbr(disk_path)
    path, fmt = _resolve_out_path(out_path, report_id)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    if fmt == "html":
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(render_mbr_html(report))
    else:
        write_json(path, report.to_dict())
    return path


def _dump(report: MBRReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)