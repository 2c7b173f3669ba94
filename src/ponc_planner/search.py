# src/ponc_planner/search.py
from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from .resolution import FlowValue, NumClients
from .tree_node import TreeNode

logger = logging.getLogger(__name__)

# level -> client count -> cheapest known subtree delivering that many
# clients from a signal arriving at that level
BestTrees = Dict[FlowValue, Dict[NumClients, TreeNode]]


def find_reachable_levels(
    input_nodes: Iterable[TreeNode],
    templates: Sequence[TreeNode],
    min_output: FlowValue,
) -> List[FlowValue]:
    """
    Closure of the levels that can appear inside the network.

    Seeded with every input level; any level in the set plus any template
    output delta is added as long as the sum does not drop below min_output.
    Breadth-first until every member has been expanded.

    Returns the levels sorted ascending. Template deltas are non-positive, so
    every level's downstream levels come before it.
    """
    levels: set[FlowValue] = set()
    for node in input_nodes:
        levels.update(node.outputs)

    template_outputs = sorted({out for t in templates for out in t.outputs})

    pending = deque(sorted(levels))
    visited: set[FlowValue] = set()

    while pending:
        level = pending.popleft()
        if level in visited:
            continue
        visited.add(level)

        for delta in template_outputs:
            output_sum = level + delta
            if output_sum < min_output or output_sum in levels:
                continue
            levels.add(output_sum)
            pending.append(output_sum)

    result = sorted(levels)
    logger.debug("Reachable levels (%d): %s", len(result), result)
    return result


def get_best_tree(
    best_trees: BestTrees,
    level: FlowValue,
    num_clients: NumClients,
) -> Optional[TreeNode]:
    return best_trees.get(level, {}).get(num_clients)


def find_best_trees_for_level(
    best_trees: BestTrees,
    level: FlowValue,
    template: TreeNode,
    max_clients: NumClients,
) -> None:
    """
    Improve best_trees[level] with every subtree rooted at `template` whose
    input arrives at `level`.

    Ports are filled one at a time by backtracking. For each port the
    candidates are the trees already recorded for the downstream level,
    tried in descending client count, followed by leaving the port empty.
    Ports without any recorded downstream tree are left empty.

    Every partial assignment is pruned when
      * it serves more than max_clients, or
      * best_trees already holds a strictly cheaper tree for
        (level, clients so far) than cost so far plus the node cost.

    A complete assignment serving at least one client is recorded when its
    (level, clients) slot is empty or holds a strictly more expensive tree.
    Equal-cost alternatives keep the first one found.

    Ports leading to the same downstream level are interchangeable, so a
    later one never serves more clients than an earlier one, and once one is
    left empty the later ones stay empty too.
    """
    n_ports = len(template.outputs)
    permutation: List[Optional[TreeNode]] = [None] * n_ports

    def test_permutation(port: int, num_clients: NumClients, cost: float) -> bool:
        """Return True if the partial assignment is worth extending."""
        if num_clients > max_clients:
            return False

        best_existing = get_best_tree(best_trees, level, num_clients)

        if best_existing is not None and cost > best_existing.tree_cost:
            return False

        if port < n_ports:
            return True

        # Complete assignment
        if num_clients <= 0:
            return False

        if best_existing is None or cost < best_existing.tree_cost:
            best_trees.setdefault(level, {})[num_clients] = template.with_children(
                {i: child for i, child in enumerate(permutation) if child is not None}
            )

        return False

    def dfs(
        port: int,
        ceilings: Dict[FlowValue, NumClients],
        num_clients: NumClients,
        cost: float,
    ) -> None:
        if not test_permutation(port, num_clients, cost):
            return

        output_sum = level + template.outputs[port]
        output_trees = best_trees.get(output_sum)

        if output_trees:
            ceiling = ceilings[output_sum]
            # Snapshot: a 0 dB port may read the level being written.
            candidates = sorted(output_trees.items(), reverse=True)

            for child_clients, child in candidates:
                if child_clients > ceiling:
                    continue
                permutation[port] = child
                dfs(
                    port + 1,
                    {**ceilings, output_sum: child_clients},
                    num_clients + child.num_clients,
                    cost + child.tree_cost,
                )

        permutation[port] = None
        dfs(port + 1, {**ceilings, output_sum: 0}, num_clients, cost)

    initial_ceilings = {level + out: max_clients for out in template.outputs}
    dfs(0, initial_ceilings, 0, template.node_cost)
