import json

from miadisk.reports.tree import (
    BlocksExpanded,
    DoubleIndirectExp,
    IndirectExpanded,
    PtrGroup,
    TreeBlockCard,
    TreeDirData,
    TreeDirEntry,
    TreeEdge,
    TreeFileData,
    TreeInode,
    TreeReport,
    render_html_tree,
)


def _report(edges=None, nodes=None, blocks_used=None):
    return TreeReport(
        disk_path="/tmp/d1.mia",
        id="391A",
        block_size=64,
        inodes=10,
        blocks=30,
        used_inodes=len(nodes or []),
        used_blocks=len(blocks_used or []),
        blocks_used=list(blocks_used or []),
        nodes=list(nodes or []),
        edges=list(edges or []),
    )


def _dir_node():
    return TreeInode(
        index=0,
        type="dir",
        raw_type=2,
        size=64,
        uid=1,
        gid=1,
        perm="664",
        blocks=BlocksExpanded(direct=[0]),
        blocks_flat=[0],
        direct_cards=[
            TreeBlockCard(
                index=0,
                type="dir",
                dir=TreeDirData(entries=[TreeDirEntry(name="users.txt", inode=1)]),
            )
        ],
    )


def test_to_dict_top_level_keys_and_kind():
    data = _report().to_dict()
    assert data["kind"] == "tree"
    assert set(data) == {
        "kind", "diskPath", "id", "blockSize", "inodes", "blocks",
        "usedInodes", "usedBlocks", "blocksUsed", "nodes", "edges",
    }
    assert data["diskPath"] == "/tmp/d1.mia"
    assert data["id"] == "391A"


def test_to_dict_is_json_serializable_round_trip():
    report = _report(
        edges=[TreeEdge(parent=0, name="users.txt", child=1)],
        nodes=[_dir_node()],
        blocks_used=[0, 1],
    )
    data = report.to_dict()
    assert json.loads(json.dumps(data)) == data
    assert data["edges"] == [{"parent": 0, "name": "users.txt", "child": 1}]


def test_blocks_omit_missing_indirect_levels():
    node = _dir_node()
    blocks = _report(nodes=[node]).to_dict()["nodes"][0]["blocks"]
    assert blocks == {"direct": [0]}


def test_blocks_include_indirect_levels_when_present():
    node = _dir_node()
    node.blocks = BlocksExpanded(
        direct=[0],
        indirect=IndirectExpanded(block=5, pointers=[6, 7]),
        double_indirect=DoubleIndirectExp(block=8, groups=[PtrGroup(block=9, pointers=[10])]),
    )
    blocks = _report(nodes=[node]).to_dict()["nodes"][0]["blocks"]
    assert blocks["indirect"] == {"block": 5, "pointers": [6, 7]}
    assert blocks["doubleIndirect"] == {
        "block": 8,
        "groups": [{"block": 9, "pointers": [10]}],
    }


def test_dir_card_has_no_file_key():
    card = _report(nodes=[_dir_node()]).to_dict()["nodes"][0]["directCards"][0]
    assert "file" not in card
    assert card["dir"]["entries"] == [{"name": "users.txt", "inode": 1}]


def test_file_card_omits_empty_preview():
    node = _dir_node()
    node.direct_cards = [
        TreeBlockCard(index=3, type="file", file=TreeFileData(size=12)),
        TreeBlockCard(index=4, type="file", file=TreeFileData(size=12, preview="abc")),
    ]
    cards = _report(nodes=[node]).to_dict()["nodes"][0]["directCards"]
    assert cards[0]["file"] == {"size": 12}
    assert cards[1]["file"]["preview"] == "abc"
    assert "dir" not in cards[0]


def test_html_has_title_and_header():
    html = render_html_tree(_report())
    assert html.startswith('<!doctype html><meta charset="utf-8"><title>TREE Report</title>')
    assert "<h2>TREE (full)</h2>" in html
    assert "ID: 391A" in html


def test_html_escapes_edge_names():
    html = render_html_tree(_report(edges=[TreeEdge(parent=0, name="<a&b>", child=2)]))
    assert "&lt;a&amp;b&gt; → inode 2" in html
    assert "<a&b>" not in html


def test_html_groups_edges_by_parent_and_sorts_names():
    edges = [
        TreeEdge(parent=3, name="z", child=5),
        TreeEdge(parent=0, name="b", child=2),
        TreeEdge(parent=0, name="a", child=1),
    ]
    html = render_html_tree(_report(edges=edges))
    assert html.count("<li><b>inode 0</b><ul>") == 1
    assert html.count("<li><b>inode 3</b><ul>") == 1
    assert html.index("<li>a → inode 1</li>") < html.index("<li>b → inode 2</li>")
    assert html.index("<li>b → inode 2</li>") < html.index("<li><b>inode 3</b>")


def test_html_leaves_report_edges_unchanged():
    edges = [TreeEdge(parent=3, name="z", child=5), TreeEdge(parent=0, name="a", child=1)]
    report = _report(edges=edges)
    render_html_tree(report)
    assert [e.parent for e in report.edges] == [3, 0]


def test_html_empty_edges_list():
    html = render_html_tree(_report())
    assert "<h3>Relaciones directorios → hijos</h3><ul></ul>" in html


def test_html_inode_row_and_used_blocks():
    html = render_html_tree(_report(nodes=[_dir_node()], blocks_used=[0, 1, 2]))
    assert "<td>1/1</td>" in html
    assert "<td>664</td>" in html
    assert "<h3>Bloques usados</h3><p>0, 1, 2</p>" in html