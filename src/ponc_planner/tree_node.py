# src/ponc_planner/tree_node.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Sequence

from .resolution import FlowValue, NumClients


@dataclass
class TreeNode:
    """
    Recursive node shared by catalog templates, client leaves, input signals
    and solution subtrees.

    outputs:
        Discrete output deltas, one per port. For an input node these are the
        levels the input presents to the tree.
    node_cost:
        Cost of this node alone.
    tree_cost:
        node_cost plus tree_cost of every attached child.
    num_clients:
        Clients served by this subtree (1 for a client leaf).
    child_nodes:
        Sparse mapping port index -> attached subtree. Missing ports are left
        unconnected.

    Nodes stored in a results table are treated as immutable: improving an
    entry replaces it with a new node, so subtrees can be shared safely.
    """
    outputs: List[FlowValue] = field(default_factory=list)
    node_cost: float = 0.0
    name: str = ""
    tree_cost: float = 0.0
    num_clients: NumClients = 0
    child_nodes: Dict[int, "TreeNode"] = field(default_factory=dict)

    # Constructors ------------------------------------------------------

    @classmethod
    def template(
        cls,
        outputs: Sequence[FlowValue],
        cost: float,
        name: str = "",
    ) -> "TreeNode":
        """Catalog entry: fixed output deltas and a node cost, no children."""
        return cls(
            outputs=list(outputs),
            node_cost=cost,
            name=name,
            tree_cost=cost,
        )

    @classmethod
    def client(cls, cost: float = 0.0, name: str = "client") -> "TreeNode":
        """Synthetic leaf: no outputs, serves exactly one client."""
        return cls(node_cost=cost, name=name, tree_cost=cost, num_clients=1)

    @classmethod
    def input(cls, outputs: Sequence[FlowValue], name: str = "input") -> "TreeNode":
        """Input signal presenting fixed levels to the tree."""
        return cls.template(outputs, 0.0, name)

    def with_children(self, children: Mapping[int, "TreeNode"]) -> "TreeNode":
        """
        Return a new subtree rooted at a copy of this node with the given
        children attached. Costs and clients are accumulated from them.
        """
        node = TreeNode(
            outputs=list(self.outputs),
            node_cost=self.node_cost,
            name=self.name,
            tree_cost=self.tree_cost,
            num_clients=self.num_clients,
            child_nodes=dict(self.child_nodes),
        )
        for port, child in children.items():
            node.tree_cost += child.tree_cost
            node.num_clients += child.num_clients
            node.child_nodes[port] = child
        return node

    # Inspection --------------------------------------------------------

    @property
    def is_client(self) -> bool:
        return not self.outputs and self.num_clients == 1

    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Pre-order walk over this node and all attached subtrees."""
        yield self
        for port in sorted(self.child_nodes):
            yield from self.child_nodes[port].iter_nodes()

    def iter_client_levels(self, input_level: FlowValue = 0) -> Iterator[FlowValue]:
        """
        Yield the level arriving at every client leaf, given the level
        arriving at this node. Input nodes carry absolute levels, so the
        default of 0 is right for them.
        """
        if self.is_client:
            yield input_level
            return
        for port in sorted(self.child_nodes):
            yield from self.child_nodes[port].iter_client_levels(
                input_level + self.outputs[port]
            )

    def count_devices(self) -> int:
        """Number of attached nodes below this one that have output ports."""
        return sum(1 for n in self.iter_nodes() if n is not self and n.outputs)
