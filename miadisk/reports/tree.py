"""Tree report model: inodes, their blocks, directory edges and an HTML view."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import escape

_STYLE = """<style>
body{font-family:system-ui,Segoe UI,Roboto,Arial;margin:16px}
small{color:#666}
ul{list-style:disc}
code{background:#f7f7f7;padding:.15rem .3rem;border-radius:4px}
.block{margin-left:1rem}
table{border-collapse:collapse;margin-top:8px}
td,th{border:1px solid #ccc;padding:.35rem .5rem}
th{background:#f5f5f5}
</style>"""


@dataclass
class TreeEdge:
    """A directory entry linking a parent inode to a child inode."""

    parent: int
    name: str
    child: int


@dataclass
class TreeDirEntry:
    """One name/inode pair inside a directory block."""

    name: str
    inode: int


@dataclass
class TreeDirData:
    """Entries of a directory block."""

    entries: List[TreeDirEntry] = field(default_factory=list)


@dataclass
class TreeFileData:
    """Size of the owning file and a printable preview of one block."""

    size: int
    preview: str = ""


@dataclass
class TreeBlockCard:
    """A direct block of an inode, decoded as directory or file content."""

    index: int
    type: str
    dir: Optional[TreeDirData] = None
    file: Optional[TreeFileData] = None


@dataclass
class PtrGroup:
    """A pointer block reached from a double-indirect block."""

    block: int
    pointers: List[int] = field(default_factory=list)


@dataclass
class IndirectExpanded:
    """A single-indirect block and the data blocks it points to."""

    block: int
    pointers: List[int] = field(default_factory=list)


@dataclass
class DoubleIndirectExp:
    """A double-indirect block and its pointer groups."""

    block: int
    groups: List[PtrGroup] = field(default_factory=list)


@dataclass
class BlocksExpanded:
    """Block pointers of an inode, split into direct and indirect levels."""

    direct: List[int] = field(default_factory=list)
    indirect: Optional[IndirectExpanded] = None
    double_indirect: Optional[DoubleIndirectExp] = None


@dataclass
class TreeInode:
    """One used inode with its expanded blocks and direct block cards."""

    index: int
    type: str
    raw_type: int
    size: int
    uid: int
    gid: int
    perm: str
    blocks: BlocksExpanded = field(default_factory=BlocksExpanded)
    blocks_flat: List[int] = field(default_factory=list)
    direct_cards: List[TreeBlockCard] = field(default_factory=list)


def _blocks_dict(blocks: BlocksExpanded) -> Dict[str, Any]:
    data: Dict[str, Any] = {"direct": list(blocks.direct)}
    if blocks.indirect is not None:
        data["indirect"] = {
            "block": blocks.indirect.block,
            "pointers": list(blocks.indirect.pointers),
        }
    if blocks.double_indirect is not None:
        data["doubleIndirect"] = {
            "block": blocks.double_indirect.block,
            "groups": [
                {"block": g.block, "pointers": list(g.pointers)}
                for g in blocks.double_indirect.groups
            ],
        }
    return data


def _card_dict(card: TreeBlockCard) -> Dict[str, Any]:
    data: Dict[str, Any] = {"index": card.index, "type": card.type}
    if card.dir is not None:
        data["dir"] = {
            "entries": [{"name": e.name, "inode": e.inode} for e in card.dir.entries]
        }
    if card.file is not None:
        file_data: Dict[str, Any] = {"size": card.file.size}
        if card.file.preview:
            file_data["preview"] = card.file.preview
        data["file"] = file_data
    return data


def _inode_dict(node: TreeInode) -> Dict[str, Any]:
    return {
        "index": node.index,
        "type": node.type,
        "rawType": node.raw_type,
        "size": node.size,
        "uid": node.uid,
        "gid": node.gid,
        "perm": node.perm,
        "blocks": _blocks_dict(node.blocks),
        "blocksFlat": list(node.blocks_flat),
        "directCards": [_card_dict(c) for c in node.direct_cards],
    }


@dataclass
class TreeReport:
    """Full file-system tree of a partition."""

    disk_path: str
    id: str
    block_size: int
    inodes: int
    blocks: int
    used_inodes: int
    used_blocks: int
    blocks_used: List[int] = field(default_factory=list)
    nodes: List[TreeInode] = field(default_factory=list)
    edges: List[TreeEdge] = field(default_factory=list)
    kind: str = "tree"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "diskPath": self.disk_path,
            "id": self.id,
            "blockSize": self.block_size,
            "inodes": self.inodes,
            "blocks": self.blocks,
            "usedInodes": self.used_inodes,
            "usedBlocks": self.used_blocks,
            "blocksUsed": list(self.blocks_used),
            "nodes": [_inode_dict(n) for n in self.nodes],
            "edges": [
                {"parent": e.parent, "name": e.name, "child": e.child}
                for e in self.edges
            ],
        }


def render_html_tree(report: TreeReport) -> str:
    """Render the tree report as an HTML page."""
    out = [
        '<!doctype html><meta charset="utf-8"><title>TREE Report</title>',
        _STYLE,
        f"<h2>TREE (full)</h2><p><small>Disco: {escape(report.disk_path)} &nbsp; "
        f"ID: {escape(report.id)} &nbsp; "
        f"Inodos usados: {report.used_inodes}/{report.inodes} &nbsp; "
        f"Bloques usados: {report.used_blocks}/{report.blocks}</small></p>",
        "<h3>Inodos</h3><table><thead><tr><th>#</th><th>Tipo</th><th>Tamaño</th>"
        "<th>UID/GID</th><th>Perm</th><th>Bloques</th></tr></thead><tbody>",
    ]
    for node in report.nodes:
        blocks = ", ".join(str(b) for b in node.blocks_flat)
        out.append(
            f"<tr><td>{node.index}</td><td>{escape(node.type)}</td><td>{node.size}</td>"
            f"<td>{node.uid}/{node.gid}</td><td>{escape(node.perm)}</td>"
            f"<td>{escape(blocks)}</td></tr>"
        )
    out.append("</tbody></table>")

    out.append("<h3>Relaciones directorios → hijos</h3><ul>")
    last: Optional[int] = None
    for edge in sorted(report.edges, key=lambda e: (e.parent, e.name)):
        if edge.parent != last:
            if last is not None:
                out.append("</ul></li>")
            last = edge.parent
            out.append(f"<li><b>inode {edge.parent}</b><ul>")
        out.append(f"<li>{escape(edge.name)} → inode {edge.child}</li>")
    if last is not None:
        out.append("</ul></li>")
    out.append("</ul>")

    out.append("<h3>Bloques usados</h3><p>")
    out.append(escape(", ".join(str(b) for b in report.blocks_used)))
    out.append("</p>")
    return "".join(out)