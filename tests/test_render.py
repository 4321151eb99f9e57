from __future__ import annotations

import io

import pytest

from cloud_tree.tree import TreeNode, iter_lines, new_node, print_tree, render_tree


def _scenario_account_tree() -> TreeNode:
    root = new_node("Account: Foo (1)")
    east = new_node("region: us-east-1", root)
    ec2 = new_node("EC2", east)
    new_node(
        "Compute Instance name: foo id: i-1 type: t2.medium zone: us-east-1d IP: 1.2.3.4",
        ec2,
    )
    new_node("region: us-west-1", root)
    return root


def test_renders_account_with_regions() -> None:
    expected = (
        "Account: Foo (1)\n"
        "├─ region: us-east-1\n"
        "│  └─ EC2\n"
        "│     └─ Compute Instance name: foo id: i-1 type: t2.medium zone: us-east-1d IP: 1.2.3.4\n"
        "└─ region: us-west-1\n"
    )
    assert render_tree(_scenario_account_tree()) == expected


def test_single_child_chain_uses_last_connector_at_every_level() -> None:
    root = new_node("root")
    child = new_node("child", root)
    new_node("grandchild", child)

    lines = list(iter_lines(root))

    assert lines == ["root", "└─ child", "   └─ grandchild"]
    assert all(line.count("└─ ") == 1 for line in lines[1:])
    assert not any("│" in line or "├" in line for line in lines)


def test_root_only_tree_renders_label_without_prefix() -> None:
    assert render_tree(new_node("Organisation: example.org")) == "Organisation: example.org\n"


def test_render_is_pure() -> None:
    tree = _scenario_account_tree()
    first = render_tree(tree)
    second = render_tree(tree)
    assert first == second
    assert first.encode("utf-8") == second.encode("utf-8")


def test_leaf_sibling_contributes_no_trunk() -> None:
    root = new_node("root")
    new_node("leaf", root)
    middle = new_node("middle", root)
    new_node("inner", middle)
    new_node("last", root)

    assert list(iter_lines(root)) == [
        "root",
        "├─ leaf",
        "├─ middle",
        "│  └─ inner",
        "└─ last",
    ]


def test_children_of_last_child_use_blank_trunk() -> None:
    root = new_node("root")
    first = new_node("first", root)
    new_node("first-kid", first)
    last = new_node("last", root)
    new_node("a", last)
    b = new_node("b", last)
    new_node("b-kid", b)

    lines = list(iter_lines(root))

    assert lines == [
        "root",
        "├─ first",
        "│  └─ first-kid",
        "└─ last",
        "   ├─ a",
        "   └─ b",
        "      └─ b-kid",
    ]
    for line in lines[4:]:
        assert line.startswith("   ")


def test_sibling_order_is_never_sorted() -> None:
    root = new_node("root")
    for label in ("zeta", "alpha", "mu"):
        new_node(label, root)
    assert list(iter_lines(root))[1:] == ["├─ zeta", "├─ alpha", "└─ mu"]


def test_appending_below_final_node_only_extends_output() -> None:
    root = new_node("root")
    branch = new_node("branch", root)
    tail = new_node("tail", branch)
    before = render_tree(root)

    new_node("new-1", tail)
    new_node("new-2", tail)
    after = render_tree(root)

    assert after.startswith(before)
    assert after[len(before):] == "      ├─ new-1\n      └─ new-2\n"


def test_appends_keep_existing_labels_in_order() -> None:
    root = new_node("root")
    a = new_node("a", root)
    new_node("a1", a)
    b = new_node("b", root)
    before = [line.split("─ ")[-1] for line in iter_lines(root)]

    new_node("a2", a)
    new_node("b1", b)
    new_node("c", root)
    after = [line.split("─ ")[-1] for line in iter_lines(root)]

    it = iter(after)
    assert all(label in it for label in before)
    assert len(after) == len(before) + 3


def test_deep_tree_does_not_recurse() -> None:
    depth = 2000
    root = new_node("level-0")
    node = root
    for i in range(1, depth):
        node = new_node(f"level-{i}", node)

    lines = list(iter_lines(root))

    assert len(lines) == depth
    assert lines[-1] == "   " * (depth - 2) + "└─ " + f"level-{depth - 1}"


def test_print_tree_writes_to_stream() -> None:
    buf = io.StringIO()
    print_tree(_scenario_account_tree(), buf)
    assert buf.getvalue() == render_tree(_scenario_account_tree())


def test_print_tree_defaults_to_stdout(capsys) -> None:
    print_tree(_scenario_account_tree())
    assert capsys.readouterr().out.splitlines()[0] == "Account: Foo (1)"


def test_print_tree_propagates_write_errors() -> None:
    class _ClosedStream(io.StringIO):
        def write(self, s: str) -> int:
            raise BrokenPipeError("closed")

    with pytest.raises(BrokenPipeError):
        print_tree(_scenario_account_tree(), _ClosedStream())
