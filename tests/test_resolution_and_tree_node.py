# tests/test_resolution_and_tree_node.py
from __future__ import annotations

import pytest

from ponc_planner.resolution import from_discrete, to_discrete
from ponc_planner.tree_node import TreeNode


def test_to_discrete_rounds_to_resolution():
    assert to_discrete(-3.6) == -360
    assert to_discrete(0.0) == 0
    assert to_discrete(-22.004) == -2200
    assert to_discrete(1.5, resolution=10) == 15
    assert isinstance(to_discrete(-3.6), int)


def test_discrete_sums_convert_back_exactly():
    deltas = [-3.6, -7.25, -10.5, -0.35]
    total = sum(to_discrete(d) for d in deltas)
    assert total == -2170
    assert from_discrete(total) == pytest.approx(-21.7)
    assert to_discrete(from_discrete(total)) == total


def test_to_discrete_is_monotonic():
    values = [-20.0, -3.61, -3.6, -3.59, 0.0, 6.0]
    levels = [to_discrete(v) for v in values]
    assert levels == sorted(levels)


def test_template_and_client_constructors():
    t = TreeNode.template([-300, -300], 1.5, "splitter")
    assert t.tree_cost == 1.5
    assert t.num_clients == 0
    assert t.child_nodes == {}
    assert not t.is_client

    c = TreeNode.client()
    assert c.outputs == []
    assert c.num_clients == 1
    assert c.tree_cost == 0.0
    assert c.is_client

    i = TreeNode.input([600], "olt")
    assert i.node_cost == 0.0
    assert i.outputs == [600]


def test_with_children_accumulates_cost_and_clients_without_mutating():
    splitter = TreeNode.template([-300, -300], 1.0, "splitter")
    client = TreeNode.client(cost=0.25)

    tree = splitter.with_children({0: client, 1: client})
    assert tree.tree_cost == pytest.approx(1.5)
    assert tree.num_clients == 2
    assert set(tree.child_nodes) == {0, 1}

    # Template is untouched
    assert splitter.tree_cost == 1.0
    assert splitter.num_clients == 0
    assert splitter.child_nodes == {}


def test_iter_client_levels_and_count_devices():
    splitter = TreeNode.template([-300, -300], 1.0, "splitter")
    attenuator = TreeNode.template([-100], 0.5, "attenuator")
    client = TreeNode.client()

    branch = attenuator.with_children({0: client})
    tree = TreeNode.input([0], "olt").with_children(
        {0: splitter.with_children({0: client, 1: branch})}
    )

    assert sorted(tree.iter_client_levels()) == [-400, -300]
    assert tree.count_devices() == 2
    assert [n.name for n in tree.iter_nodes()] == [
        "olt",
        "splitter",
        "client",
        "attenuator",
        "client",
    ]
