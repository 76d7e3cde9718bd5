"""Disk layout report: MBR, primary, extended, logical and free segments."""

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, field, replace
from itertools import cycle
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..diskutil import read_mbr
from ..structs import EBR, MBR
from .common import _extension, escape, trim_name, write_json
from .mbr_report import read_ebr_at

logger = logging.getLogger(__name__)

MAX_EBRS = 128

_STYLE = """<style>
body{font-family:system-ui,Segoe UI,Roboto,Arial;margin:16px}
h2{margin:8px 0}
.wrap{border:1px solid #ccc;border-radius:6px;overflow:hidden}
.bar{display:flex;height:28px;margin-bottom:12px}
.seg{height:28px;display:inline-block;white-space:nowrap;overflow:hidden;text-overflow:ellipsis;font-size:12px;line-height:28px;text-align:center;color:#111;border-right:1px solid #fff;padding:0 6px}
.seg.MBR{background:#ffd166}
.seg.P{background:#06d6a0}
.seg.E{background:#118ab2;color:#fff}
.seg.FREE{background:#efefef}
.table{border-collapse:collapse;margin-top:8px}
.table th,.table td{border:1px solid #ccc;padding:.35rem .5rem}
.table th{background:#f7f7f7}
.small{color:#555;font-size:12px}
</style>"""


@dataclass
class DiskSegment:
    """A contiguous byte range of the disk; ``end`` is exclusive."""

    kind: str
    label: str
    start: int
    size: int
    end: int
    percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "label": self.label,
            "start": self.start,
            "size": self.size,
            "end": self.end,
            "percent": self.percent,
        }


@dataclass
class ExtendedView:
    """Detailed layout of the extended partition."""

    start: int
    size: int
    segments: List[DiskSegment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start,
            "size": self.size,
            "segments": [s.to_dict() for s in self.segments],
        }


@dataclass
class DiskReport:
    """Whole-disk layout with percentages of the total size."""

    disk_path: str
    size: int
    mbr_size: int
    segments: List[DiskSegment] = field(default_factory=list)
    extended: Optional[ExtendedView] = None
    kind: str = "disk"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "diskPath": self.disk_path,
            "sizeBytes": self.size,
            "mbrBytes": self.mbr_size,
            "segments": [s.to_dict() for s in self.segments],
        }
        if self.extended is not None:
            data["extended"] = self.extended.to_dict()
        return data


def make_segment(kind: str, label: str, start: int, size: int, total: int) -> DiskSegment:
    """Build a segment, clamping negative values and computing its raw percentage."""
    start = max(start, 0)
    size = max(size, 0)
    percent = (size / total) * 100.0 if total > 0 and size > 0 else 0.0
    return DiskSegment(kind, label, start, size, start + size, percent)


def _fill_gaps(
    segments: Iterable[DiskSegment], begin: int, end: int, total: int
) -> List[DiskSegment]:
    out: List[DiskSegment] = []
    current = begin
    for seg in sorted(segments, key=lambda s: s.start):
        if seg.start > current:
            out.append(make_segment("FREE", "libre", current, seg.start - current, total))
        out.append(seg)
        current = max(current, seg.end)
    if end > current:
        out.append(make_segment("FREE", "libre", current, end - current, total))
    return out


def fill_top_level_free(total: int, segments: List[DiskSegment]) -> List[DiskSegment]:
    """Insert FREE segments for every gap between ``segments`` across the disk."""
    if not segments:
        return [make_segment("FREE", "libre", 0, total, total)]
    return _fill_gaps(segments, 0, total, total)


def normalize_percents(
    segments: List[DiskSegment], total: int, decimals: int
) -> List[DiskSegment]:
    """Round percentages to ``decimals`` places so they add up to exactly 100."""
    if total <= 0 or not segments:
        return segments
    scale = 10**decimals
    target = 100 * scale

    floors = [0] * len(segments)
    remainders: List[Tuple[int, float]] = []
    for index, seg in enumerate(segments):
        if seg.size <= 0:
            continue
        exact = (seg.size / total) * target
        floor = int(math.floor(exact + 1e-9))
        floors[index] = floor
        remainders.append((index, exact - floor))

    diff = target - sum(floors)
    if diff > 0 and remainders:
        ordered = sorted(remainders, key=lambda r: r[1], reverse=True)
        for index, _ in cycle(ordered):
            if diff <= 0:
                break
            floors[index] += 1
            diff -= 1
    if diff < 0 and remainders:
        ordered = sorted(remainders, key=lambda r: r[1])
        for index, _ in cycle(ordered):
            if diff >= 0:
                break
            if floors[index] > 0:
                floors[index] -= 1
                diff += 1

    return [replace(seg, percent=floors[i] / scale) for i, seg in enumerate(segments)]


def build_extended_view(disk_path: str, ext_start: int, ext_size: int, total: int) -> ExtendedView:
    """Walk the EBR chain of an extended partition and lay out its contents."""
    if ext_size <= 0:
        raise ValueError("extendida con tamaño inválido")

    view = ExtendedView(start=ext_start, size=ext_size)
    occupied: List[DiskSegment] = []
    offset = ext_start
    for _ in range(MAX_EBRS):
        try:
            ebr = read_ebr_at(disk_path, offset)
        except (OSError, EOFError, ValueError):
            break
        occupied.append(make_segment("EBR", "ebr", offset, EBR.SIZE, total))
        if ebr.size > 0:
            label = trim_name(ebr.name) or "logica"
            occupied.append(make_segment("L", label, ext_start + ebr.start, ebr.size, total))
        if ebr.next <= 0:
            break
        offset = ext_start + ebr.next

    if not occupied:
        return view

    view.segments = normalize_percents(
        _fill_gaps(occupied, ext_start, ext_start + ext_size, total), total, 2
    )
    return view


def build_disk(disk_path: str) -> DiskReport:
    """Read the disk image's MBR and EBR chain and build its layout report."""
    with open(disk_path, "rb") as handle:
        mbr = read_mbr(handle)

    total = mbr.size
    if total <= 0:
        total = os.stat(disk_path).st_size

    report = DiskReport(disk_path=disk_path, size=total, mbr_size=MBR.SIZE)
    top = [make_segment("MBR", "MBR", 0, MBR.SIZE, total)]

    primaries: List[DiskSegment] = []
    extended: Optional[DiskSegment] = None
    for number, part in enumerate(mbr.partitions, start=1):
        if part.size <= 0 or part.start < 0:
            continue
        name = trim_name(part.name) or f"part{number}"
        if part.type in (ord("e"), ord("E")):
            extended = make_segment("E", "extendida", part.start, part.size, total)
        else:
            primaries.append(make_segment("P", name, part.start, part.size, total))

    top.extend(primaries)
    if extended is not None:
        top.append(extended)

    filled = sorted(fill_top_level_free(total, top), key=lambda s: s.start)
    report.segments = normalize_percents(filled, total, 2)

    if extended is not None:
        try:
            report.extended = build_extended_view(
                disk_path, extended.start, extended.size, total
            )
        except ValueError as exc:
            logger.warning("rep disk: extendida: %s", exc)

    return report


def _segment_rows(segments: Iterable[DiskSegment]) -> List[str]:
    return [
        f"<tr><td>{escape(s.kind)}</td><td>{escape(s.label)}</td><td>{s.start}</td>"
        f"<td>{s.size}</td><td>{s.end}</td><td>{s.percent:.2f}</td></tr>"
        for s in segments
    ]


def render_disk_html(report: DiskReport) -> str:
    """Render the disk report as an HTML page with a proportional bar."""
    out = [
        '<!doctype html><meta charset="utf-8"><title>DISK Report</title>',
        _STYLE,
        "<h2>DISK</h2>",
        f'<p class="small"><b>Disco:</b> {escape(report.disk_path)} &nbsp; '
        f"<b>Tamaño:</b> {report.size} bytes &nbsp; <b>MBR:</b> {report.mbr_size} bytes</p>",
        '<div class="wrap"><div class="bar">',
    ]
    for seg in report.segments:
        if seg.kind in ("L", "EBR"):
            continue
        width = max(seg.percent, 0.0)
        label = seg.label or seg.kind
        out.append(
            f'<div class="seg {seg.kind}" style="width:{width:.2f}%">{escape(label)}</div>'
        )
    out.append("</div></div>")

    out.append(
        '<table class="table"><thead><tr><th>Kind</th><th>Label</th><th>Start</th>'
        "<th>Size</th><th>End</th><th>%</th></tr></thead><tbody>"
    )
    out.extend(_segment_rows(report.segments))
    out.append("</tbody></table>")

    if report.extended is not None:
        ext = report.extended
        out.append("<h3>Extendida (detalle)</h3>")
        out.append(f'<p class="small"><b>Start:</b> {ext.start} &nbsp; <b>Size:</b> {ext.size}</p>')
        out.append(
            '<table class="table"><thead><tr><th>Kind</th><th>Label</th><th>Start</th>'
            "<th>Size</th><th>End</th><th>% del disco</th></tr></thead><tbody>"
        )
        out.extend(_segment_rows(ext.segments))
        out.append("</tbody></table>")

    return "".join(out)


def _resolve_out_path(out: str, report_id: str) -> Tuple[str, str]:
    out = out.strip()
    default = f"disk_{report_id}.json"
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


def generate_disk(disk_path: str, report_id: str, out_path: str) -> str:
    """Build the disk report and write it as JSON or HTML; return the path written."""
    report = build_disk(disk_path)
    path, fmt = _resolve_out_path(out_path, report_id)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    if fmt == "html":
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(render_disk_html(report))
    else:
        write_json(path, report.to_dict())
    return path


def _dump(report: DiskReport) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)