import json
import os
from datetime import datetime

import pytest

from miadisk.diskutil import write_ebr, write_mbr
from miadisk.reports.mbr_report import (
    MBRReport,
    append_logical_partitions,
    build_mbr,
    generate_mbr,
    read_ebr_at,
    render_mbr_html,
)
from miadisk.structs import EBR, MBR, Partition, new_mbr

DISK_SIZE = 10000
EXT_START = 2000


def _make_disk(path, ext_start=EXT_START, with_chain=True):
    with open(path, "wb") as handle:
        handle.write(b"\x00" * DISK_SIZE)
    mbr = new_mbr(DISK_SIZE, ord("f"), 1234)
    mbr.partitions[0] = Partition(
        status=ord("1"), type=ord("p"), fit=ord("f"), start=MBR.SIZE, size=1000,
        name=b"Part1", correlative=1, id=b"39A1",
    )
    mbr.partitions[1] = Partition(
        status=ord("1"), type=ord("e"), fit=ord("w"), start=ext_start, size=3000,
        name=b"Ext", correlative=-1,
    )
    with open(path, "r+b") as handle:
        write_mbr(handle, mbr)
        if with_chain:
            write_ebr(handle, EBR(ord("0"), ord("w"), EBR.SIZE, 500, 1000, b"Log1"), ext_start)
            write_ebr(handle, EBR(ord("0"), ord("b"), EBR.SIZE, 400, -1, b"Log2"), ext_start + 1000)
    return str(path)


def test_build_mbr_header_fields(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    report = build_mbr(disk)
    assert report.size == DISK_SIZE
    assert report.signature == 1234
    assert report.fit == "FF"
    assert report.raw_fit == ord("f")
    parsed = datetime.fromisoformat(report.created.replace("Z", "+00:00"))
    assert abs(parsed.timestamp() - datetime.now().timestamp()) < 120


def test_unused_partition_not_usable(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    report = build_mbr(disk)
    unused = report.parts[4]
    assert unused.status == "0"
    assert unused.start == -1
    assert unused.usable is False
    assert report.parts[0].usable is True


def test_to_dict_omits_empty_id_and_correlative(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    data = build_mbr(disk).to_dict()
    assert data["kind"] == "mbr"
    first = data["partitions"][0]
    assert first["id"] == "39A1"
    assert first["correlative"] == 1
    logical = data["partitions"][2]
    assert "id" not in logical
    assert "correlative" not in logical
    assert data["partitions"][4]["correlative"] == -1


def test_read_ebr_at_round_trip_and_eof(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    ebr = read_ebr_at(disk, EXT_START)
    assert ebr.name == b"Log1"
    assert ebr.size == 500
    with pytest.raises(EOFError):
        read_ebr_at(disk, DISK_SIZE - 2)


def test_append_logical_rejects_bad_start(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    report = MBRReport(disk, "", 0, 0, "", 0)
    with pytest.raises(ValueError):
        append_logical_partitions(report, disk, 0)
    assert report.parts == []


def test_append_logical_detects_cycle(tmp_path):
    disk = _make_disk(tmp_path / "d.mia", with_chain=False)
    with open(disk, "r+b") as handle:
        write_ebr(handle, EBR(ord("0"), ord("w"), EBR.SIZE, 50, 100, b"A"), EXT_START)
        write_ebr(handle, EBR(ord("0"), ord("w"), EBR.SIZE, 50, 100, b"B"), EXT_START + 100)
    report = MBRReport(disk, "", 0, 0, "", 0)
    with pytest.raises(ValueError):
        append_logical_partitions(report, disk, EXT_START)
    assert len(report.parts) == 128


def test_unreadable_extended_is_only_warned(tmp_path):
    disk = _make_disk(tmp_path / "d.mia", ext_start=DISK_SIZE + 50, with_chain=False)
    report = build_mbr(disk)
    assert len(report.parts) == 4


def test_render_html(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    html = render_mbr_html(build_mbr(disk))
    assert html.startswith("<!doctype html>")
    assert "<h2>MBR</h2>" in html
    assert "(0x66)" in html
    assert "<td>Part1</td>" in html
    assert html.count("<tr><td>") == 6


def test_generate_json(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    out = tmp_path / "rep" / "m.json"
    path = generate_mbr(disk, "39A1", str(out))
    assert path == str(out)
    with open(out, encoding="utf-8") as handle:
        data = json.load(handle)
    assert data["diskPath"] == disk
    assert len(data["partitions"]) == 6


def test_generate_html(tmp_path):
    disk = _make_disk(tmp_path / "d.mia")
    out = tmp_path / "m.html"
    generate_mbr(disk, "39A1", str(out))
    assert "<h2>MBR</h2>" in out.read_text(encoding="utf-8")


def test_generate_default_and_other_extensions(tmp_path, monkeypatch):
    disk = _make_disk(tmp_path / "d.mia")
    monkeypatch.chdir(tmp_path)
    assert generate_mbr(disk, "39A1", "") == "mbr_39A1.json"
    assert os.path.exists(tmp_path / "mbr_39A1.json")
    assert generate_mbr(disk, "39A1", "r.txt") == "r.json"
    assert generate_mbr(disk, "39A1", "noext") == "noext.json"
    (tmp_path / "outdir").mkdir()
    path = generate_mbr(disk, "39A1", "outdir")
    assert path == os.path.join("outdir", "mbr_39A1.json")
    assert os.path.exists(tmp_path / path)