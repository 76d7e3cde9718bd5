# miadisk

A library for virtual disk image files laid out with a classic MBR
partition table (four entries, one of which may be an extended partition
holding a chain of EBRs). It packs and unpacks the on-disk records, finds
free space and places partitions by first, best or worst fit, edits the
text of an EXT2-style `users.txt`, and produces MBR, disk-layout, bitmap
and tree reports as JSON-ready dictionaries or HTML.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `miadisk.structs`: the records `Partition`, `MBR`, `EBR`, `Information`
  and `Journal`, each with `to_bytes()` and the class method
  `from_bytes(data)`. They are packed little-endian without padding; each
  class has a `SIZE` attribute. `new_mbr(size, fit, signature)` stamps the
  current time and marks all four partitions unused (status `'0'`, start
  and correlative `-1`). `new_information(operation, path, content, when)`
  truncates the texts to 10, 32 and 64 bytes; `new_journal(count, info)`
  wraps it. Byte fields such as `fit` and `status` are integers
  (`ord("f")`).
- `miadisk.diskutil`: `FreeSpace` gaps (`end` inclusive);
  `get_free_spaces(mbr)` and `get_free_spaces_in_extended(extended,
  logicals)`; `find_first_fit`, `find_best_fit` and `find_worst_fit`,
  which return the start of the chosen gap or `None`;
  `read_mbr`/`write_mbr` and `read_ebr`/`write_ebr` on an open binary
  file; `tokenize(line)`, which splits on whitespace and honours double
  quotes and backslash escapes; and `normalize_flags(args)`, which
  lower-cases flag names (`-Key=Value` becomes `-key=Value`).
- `miadisk.users`: works on the text of `users.txt`, whose lines are
  `GID, G, name` or `UID, U, group, user, password`, an id of `0` meaning
  deleted. `add_group` and `add_user` return the new record line to
  append; `remove_group`, `remove_user` and `change_group` return the whole
  rewritten text. Invalid or impossible changes raise `UsersError`.
  `split_lines`, `split_csv`, `atoi_safe` and `invalid_token` are the
  parsing helpers.
- `miadisk.reports.common`: `escape`, `map_fit`, `trim_name`,
  `decode_type`, `decode_perm`, `to_rfc3339`, `make_preview`, `write_json`
  (which refuses to write to a `.mia` path) and `resolve_report_out_path`.
- `miadisk.reports.bitmap`: `format_bitmap(data, count)` renders bitmap
  bytes as `0`/`1`, twenty per line; `write_bitmap_report(data, count,
  out, prefix, report_id)` writes it and returns the path, defaulting to
  `<prefix>_<report_id>.txt`.
- `miadisk.reports.mbr_report`: `build_mbr(disk_path)` returns an
  `MBRReport` with one `MBRPartReport` per MBR entry, followed by the
  logical partitions found by following the EBR chain of an extended
  partition (`read_ebr_at`, `append_logical_partitions`).
  `render_mbr_html` and `generate_mbr(disk_path, report_id, out_path)`
  write it; a `.html`/`.htm` path gives HTML, anything else JSON.
- `miadisk.reports.disk_report`: `build_disk(disk_path)` returns a
  `DiskReport` of `DiskSegment`s (MBR, primary, extended and free space)
  whose percentages are rounded to two places and add up to exactly 100
  (`normalize_percents`), plus an `ExtendedView` of EBRs, logical
  partitions and free space inside the extended partition.
  `render_disk_html` and `generate_disk(disk_path, report_id, out_path)`
  write it.
- `miadisk.reports.tree`: the tree report model (`TreeReport`,
  `TreeInode`, `TreeEdge`, `BlocksExpanded` and the block card classes),
  `TreeReport.to_dict()` and `render_html_tree(report)`.

Problems met while following an EBR chain are logged as warnings through
the standard `logging` module, and the rest of the report is still built.

## Examples

```python
from miadisk.structs import new_mbr
from miadisk.diskutil import (
    find_best_fit, get_free_spaces, normalize_flags, tokenize, write_mbr,
)

mbr = new_mbr(1024 * 1024, ord("f"), 12345)
start = find_best_fit(get_free_spaces(mbr), 4096)   # first byte after the MBR

with open("/tmp/disk.mia", "w+b") as disk:
    disk.truncate(mbr.size)
    write_mbr(disk, mbr)

tokens = tokenize('mkdisk -Size=10 -Path="/tmp/my disk.mia"')
args = normalize_flags(tokens[1:])   # ['-size=10', '-path=/tmp/my disk.mia']
```

```python
from miadisk.users import add_group, add_user, remove_user

text = "1, G, root\n1, U, root, root, password\n"
text += add_group(text, "devs") + "\n"                   # "2, G, devs"
text += add_user(text, "ana", "password", "devs") + "\n" # "2, U, devs, ana, password"
text = remove_user(text, "ana")                         # "0, U, devs, ana, password"
```

```python
from miadisk.reports.mbr_report import build_mbr, generate_mbr
from miadisk.reports.disk_report import generate_disk

report = build_mbr("/tmp/disk.mia")
print(report.to_dict())
generate_mbr("/tmp/disk.mia", "391A", "reports/mbr.html")
generate_disk("/tmp/disk.mia", "391A", "reports/disk.json")
```

## What it does not do

- There is no command-line program and no HTTP service; `tokenize` and
  `normalize_flags` only prepare arguments for a caller's own commands.
- It does not create, partition, mount or format disks; the records and
  fit functions are the pieces a caller uses to do so.
- It does not read the superblock, inodes or blocks of a formatted
  partition. The users functions edit text handed to them and do not
  read or write `users.txt` inside an image; bitmap reports take bitmap
  bytes from the caller; and a `TreeReport` must be filled in by the
  caller before it can be rendered.
- There are no sessions, logins or permission checks.