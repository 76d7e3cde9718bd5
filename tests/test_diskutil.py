import pytest

from miadisk.diskutil import (
    FreeSpace,
    find_best_fit,
    find_first_fit,
    find_worst_fit,
    get_free_spaces,
    get_free_spaces_in_extended,
    normalize_flags,
    read_ebr,
    read_mbr,
    tokenize,
    write_ebr,
    write_mbr,
)
from miadisk.structs import EBR, MBR, Partition, new_mbr


def _active(start, size):
    return Partition(status=ord("1"), type=ord("p"), start=start, size=size)


def test_free_spaces_empty_disk():
    mbr = new_mbr(10000, ord("f"), 1)
    spaces = get_free_spaces(mbr)
    assert spaces == [FreeSpace(MBR.SIZE, 9999, 10000 - MBR.SIZE)]


def test_free_spaces_with_gaps():
    mbr = new_mbr(10000, ord("f"), 1)
    mbr.partitions[0] = _active(5000, 1000)
    mbr.partitions[2] = _active(1000, 500)
    spaces = get_free_spaces(mbr)
    assert [s.start for s in spaces] == [MBR.SIZE, 1500, 6000]
    assert [s.end for s in spaces] == [999, 4999, 9999]
    for s in spaces:
        assert s.size == s.end - s.start + 1


def test_free_spaces_full_disk():
    mbr = new_mbr(1000, ord("f"), 1)
    mbr.partitions[0] = _active(MBR.SIZE, 1000 - MBR.SIZE)
    assert get_free_spaces(mbr) == []


def test_free_spaces_in_extended():
    ext = Partition(status=ord("1"), type=ord("e"), start=1000, size=5000)
    logical = EBR(start=2000 + EBR.SIZE, size=1000)
    spaces = get_free_spaces_in_extended(ext, [logical])
    assert spaces[0] == FreeSpace(1000, 1999, 1000)
    assert spaces[1].start == 3000 + EBR.SIZE
    assert spaces[1].end == 5999


def test_free_spaces_in_empty_extended():
    ext = Partition(start=1000, size=5000)
    assert get_free_spaces_in_extended(ext, []) == [FreeSpace(1000, 5999, 5000)]


SPACES = [FreeSpace(10, 109, 100), FreeSpace(200, 249, 50), FreeSpace(300, 599, 300)]


def test_first_fit():
    assert find_first_fit(SPACES, 40) == 10
    assert find_first_fit(SPACES, 150) == 300
    assert find_first_fit(SPACES, 1000) is None


def test_best_fit():
    assert find_best_fit(SPACES, 40) == 200
    assert find_best_fit(SPACES, 60) == 10
    assert find_best_fit(SPACES, 1000) is None


def test_worst_fit():
    assert find_worst_fit(SPACES, 40) == 300
    assert find_worst_fit([], 1) is None


def test_mbr_file_round_trip(tmp_path):
    mbr = new_mbr(2048, ord("w"), 9)
    with open(tmp_path / "d.mia", "w+b") as fh:
        write_mbr(fh, mbr)
        assert read_mbr(fh) == mbr


def test_ebr_file_round_trip(tmp_path):
    ebr = EBR(status=ord("1"), fit=ord("f"), start=600, size=100, next=-1, name=b"L1")
    with open(tmp_path / "d.mia", "w+b") as fh:
        fh.write(b"\x00" * 1000)
        write_ebr(fh, ebr, 500)
        assert read_ebr(fh, 500) == ebr


def test_read_mbr_short_file(tmp_path):
    with open(tmp_path / "d.mia", "w+b") as fh:
        fh.write(b"\x00" * 10)
        with pytest.raises(EOFError):
            read_mbr(fh)


def test_tokenize_plain_and_quoted():
    assert tokenize('mkdisk -size=5 -path="/home/my disk.mia"') == [
        "mkdisk",
        "-size=5",
        "-path=/home/my disk.mia",
    ]


def test_tokenize_escapes_and_blank():
    assert tokenize(r"a\ b  c\"d") == ["a b", 'c"d']
    assert tokenize("   \t ") == []


def test_normalize_flags():
    assert normalize_flags(["-Size=10", "-PATH=/Home/A.mia", "-R", "value", "-"]) == [
        "-size=10",
        "-path=/Home/A.mia",
        "-r",
        "value",
        "-",
    ]