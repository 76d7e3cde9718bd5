"""Free-space search, raw MBR/EBR I/O and command-line tokenising."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Iterable, List, Optional, Sequence

from .structs import EBR, MBR, Partition


@dataclass(frozen=True)
class FreeSpace:
    """A gap of unused bytes; ``end`` is inclusive."""

    start: int
    end: int
    size: int


def get_free_spaces(mbr: MBR) -> List[FreeSpace]:
    """Return the gaps between active partitions, after the MBR itself."""
    occupied = sorted(
        (p for p in mbr.partitions if p.status == ord("1")), key=lambda p: p.start
    )
    spaces: List[FreeSpace] = []
    current = MBR.SIZE
    for part in occupied:
        if part.start > current:
            spaces.append(FreeSpace(current, part.start - 1, part.start - current))
        current = part.start + part.size
    if current < mbr.size:
        spaces.append(FreeSpace(current, mbr.size - 1, mbr.size - current))
    return spaces


def get_free_spaces_in_extended(extended: Partition, logicals: Iterable[EBR]) -> List[FreeSpace]:
    """Return the gaps inside an extended partition, given its logical partitions."""
    spaces: List[FreeSpace] = []
    current = extended.start
    for logical in sorted(logicals, key=lambda e: e.start):
        ebr_start = logical.start - EBR.SIZE
        if ebr_start > current:
            spaces.append(FreeSpace(current, ebr_start - 1, ebr_start - current))
        current = logical.start + logical.size
    end = extended.start + extended.size
    if current < end:
        spaces.append(FreeSpace(current, end - 1, end - current))
    return spaces


def find_first_fit(spaces: Sequence[FreeSpace], required_size: int) -> Optional[int]:
    """Start of the first gap large enough, or None."""
    return next((s.start for s in spaces if s.size >= required_size), None)


def find_best_fit(spaces: Sequence[FreeSpace], required_size: int) -> Optional[int]:
    """Start of the smallest gap large enough (first one on ties), or None."""
    fitting = [s for s in spaces if s.size >= required_size]
    if not fitting:
        return None
    return min(fitting, key=lambda s: s.size - required_size).start


def find_worst_fit(spaces: Sequence[FreeSpace], required_size: int) -> Optional[int]:
    """Start of the largest gap large enough (first one on ties), or None."""
    fitting = [s for s in spaces if s.size >= required_size]
    if not fitting:
        return None
    return max(fitting, key=lambda s: s.size).start


def _read_exact(file: BinaryIO, size: int, what: str) -> bytes:
    data = file.read(size)
    if len(data) < size:
        raise EOFError(f"error reading {what}: unexpected end of file")
    return data


def write_mbr(file: BinaryIO, mbr: MBR) -> None:
    """Write the MBR at offset 0."""
    file.seek(0)
    file.write(mbr.to_bytes())


def read_mbr(file: BinaryIO) -> MBR:
    """Read the MBR from offset 0."""
    file.seek(0)
    return MBR.from_bytes(_read_exact(file, MBR.SIZE, "MBR"))


def write_ebr(file: BinaryIO, ebr: EBR, start: int) -> None:
    """Write an EBR at the given offset."""
    file.seek(start)
    file.write(ebr.to_bytes())


def read_ebr(file: BinaryIO, start: int) -> EBR:
    """Read an EBR from the given offset."""
    file.seek(start)
    return EBR.from_bytes(_read_exact(file, EBR.SIZE, "EBR"))


def tokenize(line: str) -> List[str]:
    """Split a command line on whitespace, honouring double quotes and backslash escapes."""
    tokens: List[str] = []
    current: List[str] = []
    in_quotes = False
    escape = False
    for ch in line:
        if escape:
            current.append(ch)
            escape = False
        elif ch == "\\":
            escape = True
        elif ch == '"':
            in_quotes = not in_quotes
        elif ch.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        tokens.append("".join(current))
    return tokens


def normalize_flags(args: Iterable[str]) -> List[str]:
    """Lower-case flag names (``-Key=Value`` -> ``-key=Value``), leaving values intact."""
    out: List[str] = []
    for arg in args:
        if arg.startswith("-") and len(arg) > 1:
            key, sep, value = arg.partition("=")
            out.append(key.lower() + sep + value if sep else arg.lower())
        else:
            out.append(arg)
    return out