"""On-disk records: MBR, partitions, EBR and journal entries.

All records are packed little-endian without padding, matching the
layout written to the virtual disk images.
"""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, List

PARTITION_COUNT = 4


def _fixed(value: bytes, width: int) -> bytes:
    """Truncate ``value`` to ``width`` bytes (padding happens when packing)."""
    return bytes(value[:width])


def _unpad(raw: bytes) -> bytes:
    return raw.rstrip(b"\x00")


def _check_length(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise ValueError(f"{what}: need {size} bytes, got {len(data)}")


@dataclass
class Partition:
    """A primary or extended partition entry inside the MBR."""

    status: int = 0
    type: int = 0
    fit: int = 0
    start: int = 0
    size: int = 0
    name: bytes = b""
    correlative: int = 0
    id: bytes = b""

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<BBBqq16si4s")
    SIZE: ClassVar[int] = FORMAT.size

    def to_bytes(self) -> bytes:
        return self.FORMAT.pack(
            self.status,
            self.type,
            self.fit,
            self.start,
            self.size,
            _fixed(self.name, 16),
            self.correlative,
            _fixed(self.id, 4),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "Partition":
        _check_length(data, cls.SIZE, "partition")
        status, ptype, fit, start, size, name, corr, pid = cls.FORMAT.unpack(
            bytes(data[: cls.SIZE])
        )
        return cls(status, ptype, fit, start, size, _unpad(name), corr, _unpad(pid))


@dataclass
class MBR:
    """Master boot record written at the start of every disk image."""

    size: int = 0
    created: int = 0
    signature: int = 0
    fit: int = 0
    partitions: List[Partition] = field(
        default_factory=lambda: [Partition() for _ in range(PARTITION_COUNT)]
    )

    HEADER: ClassVar[struct.Struct] = struct.Struct("<qqqB")
    SIZE: ClassVar[int] = HEADER.size + PARTITION_COUNT * Partition.SIZE

    def to_bytes(self) -> bytes:
        if len(self.partitions) != PARTITION_COUNT:
            raise ValueError(f"MBR must hold exactly {PARTITION_COUNT} partitions")
        head = self.HEADER.pack(self.size, self.created, self.signature, self.fit)
        return head + b"".join(p.to_bytes() for p in self.partitions)

    @classmethod
    def from_bytes(cls, data: bytes) -> "MBR":
        _check_length(data, cls.SIZE, "MBR")
        size, created, signature, fit = cls.HEADER.unpack_from(bytes(data), 0)
        offset = cls.HEADER.size
        parts = []
        for _ in range(PARTITION_COUNT):
            parts.append(Partition.from_bytes(data[offset : offset + Partition.SIZE]))
            offset += Partition.SIZE
        return cls(size, created, signature, fit, parts)


@dataclass
class EBR:
    """Extended boot record preceding each logical partition."""

    status: int = 0
    fit: int = 0
    start: int = 0
    size: int = 0
    next: int = 0
    name: bytes = b""

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<BBqqq16s")
    SIZE: ClassVar[int] = FORMAT.size

    def to_bytes(self) -> bytes:
        return self.FORMAT.pack(
            self.status, self.fit, self.start, self.size, self.next, _fixed(self.name, 16)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "EBR":
        _check_length(data, cls.SIZE, "EBR")
        status, fit, start, size, nxt, name = cls.FORMAT.unpack(bytes(data[: cls.SIZE]))
        return cls(status, fit, start, size, nxt, _unpad(name))


@dataclass
class Information:
    """Payload of a journal entry."""

    operation: bytes = b""
    path: bytes = b""
    content: bytes = b""
    date: float = 0.0

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<10s32s64sd")
    SIZE: ClassVar[int] = FORMAT.size

    def to_bytes(self) -> bytes:
        return self.FORMAT.pack(
            _fixed(self.operation, 10),
            _fixed(self.path, 32),
            _fixed(self.content, 64),
            self.date,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "Information":
        _check_length(data, cls.SIZE, "journal information")
        op, path, content, date = cls.FORMAT.unpack(bytes(data[: cls.SIZE]))
        return cls(_unpad(op), _unpad(path), _unpad(content), date)


@dataclass
class Journal:
    """One journal entry: an ordinal and its information."""

    count: int = 0
    content: Information = field(default_factory=Information)

    HEADER: ClassVar[struct.Struct] = struct.Struct("<i")
    SIZE: ClassVar[int] = HEADER.size + Information.SIZE

    def to_bytes(self) -> bytes:
        return self.HEADER.pack(self.count) + self.content.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Journal":
        _check_length(data, cls.SIZE, "journal")
        (count,) = cls.HEADER.unpack_from(bytes(data), 0)
        info = Information.from_bytes(data[cls.HEADER.size : cls.SIZE])
        return cls(count, info)


def new_mbr(size: int, fit: int, signature: int) -> MBR:
    """Create an MBR stamped with the current time and four unused partitions."""
    parts = [
        Partition(status=ord("0"), start=-1, correlative=-1)
        for _ in range(PARTITION_COUNT)
    ]
    return MBR(
        size=size,
        created=int(time.time()),
        signature=signature,
        fit=fit,
        partitions=parts,
    )


def new_information(operation: str, path: str, content: str, when: datetime) -> Information:
    """Build journal information, truncating text fields to their widths."""
    return Information(
        operation=_fixed(operation.encode("utf-8"), 10),
        path=_fixed(path.encode("utf-8"), 32),
        content=_fixed(content.encode("utf-8"), 64),
        date=when.timestamp(),
    )


def new_journal(count: int, info: Information) -> Journal:
    """Create a journal entry with the given ordinal and information."""
    return Journal(count=count, content=info)