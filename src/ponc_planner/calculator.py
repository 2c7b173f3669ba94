# src/ponc_planner/calculator.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from threading import Event
from typing import Callable, Dict, List, Optional
import logging

from .resolution import DEFAULT_RESOLUTION, FlowValue, NumClients, to_discrete
from .search import BestTrees, find_best_trees_for_level, find_reachable_levels
from .tree_node import TreeNode

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass
class CalculatorSettings:
    """Acceptable client output window and client budget, in real units (dB)."""
    min_output: float
    max_output: float
    num_clients: int
    resolution: int = DEFAULT_RESOLUTION


@dataclass
class CalculatorArgs:
    """
    Everything a calculation needs. Nodes are already in the discrete domain.
    """
    settings: CalculatorSettings
    input_nodes: List[TreeNode]
    client_node: TreeNode = field(default_factory=TreeNode.client)
    family_nodes: List[TreeNode] = field(default_factory=list)


class Calculator:
    """
    Minimum-cost tree construction for passive splitting networks.

    The whole calculation runs in the constructor:

    1. Sort templates by (cost, number of outputs) so cheaper and simpler
       trees are found first.
    2. Enumerate reachable levels.
    3. For every level, lowest first, record the best tree per client count
       for each template rooted there.
    4. Combine the inputs under one client budget via a virtual root.

    The stop event is checked once per level. When it is set, the remaining
    levels and the root combination are skipped and take_result() yields the
    inputs unchanged.
    """

    def __init__(
        self,
        args: CalculatorArgs,
        stop_event: Optional[Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        settings = args.settings
        self.min_output: FlowValue = to_discrete(settings.min_output, settings.resolution)
        self.max_output: FlowValue = to_discrete(settings.max_output, settings.resolution)
        self.num_clients: NumClients = settings.num_clients

        self.input_nodes = list(args.input_nodes)
        self.client_node = TreeNode.client(args.client_node.node_cost, args.client_node.name)
        # sorted() is stable, equal keys keep catalog order
        self.family_nodes = sorted(
            args.family_nodes,
            key=lambda node: (node.node_cost, len(node.outputs)),
        )

        self._stop_event = stop_event
        self._progress_callback = progress_callback

        self.best_trees: BestTrees = {}
        self.unique_outputs: List[FlowValue] = []
        self.root_level: Optional[FlowValue] = None
        self.was_stopped = False
        self._result_taken = False

        self._find_unique_outputs()
        self._find_best_output_trees()
        if not self.was_stopped:
            self._find_best_root_tree()
        self._report_progress(1.0)

    # Public API --------------------------------------------------------

    def take_result(self) -> List[TreeNode]:
        """
        One tree per input, in input order.

        Inputs that could not host anything useful (or all of them, if no
        feasible combination exists) are returned as they were supplied.
        Ownership moves to the caller, so this can be called only once.
        """
        if self._result_taken:
            raise RuntimeError("Calculator result has already been taken.")
        self._result_taken = True

        root_trees = self.best_trees.get(self.root_level) if self.root_level is not None else None

        if root_trees is None:
            if self.was_stopped:
                logger.info("Calculation was stopped; returning inputs unchanged.")
            else:
                logger.warning(
                    "No feasible tree delivers clients within levels [%d, %d]; "
                    "returning %d input(s) unchanged.",
                    self.min_output,
                    self.max_output,
                    len(self.input_nodes),
                )
            return [copy.deepcopy(node) for node in self.input_nodes]

        if not root_trees:
            raise RuntimeError("Root level is present in the results table but holds no trees.")

        best_root_tree = root_trees[max(root_trees)]

        if len(best_root_tree.outputs) != len(self.input_nodes):
            raise RuntimeError(
                f"Root tree has {len(best_root_tree.outputs)} ports for "
                f"{len(self.input_nodes)} inputs."
            )

        calculated_trees: List[TreeNode] = []

        for index, input_node in enumerate(self.input_nodes):
            calculated_tree = best_root_tree.child_nodes.get(index)

            if calculated_tree is None:
                calculated_trees.append(copy.deepcopy(input_node))
                continue

            # Searched copy has outputs shifted by its private level
            calculated_trees.append(
                copy.deepcopy(input_node.with_children(calculated_tree.child_nodes))
            )

        logger.info(
            "Calculated %d tree(s): %d client(s), total cost %g.",
            len(calculated_trees),
            best_root_tree.num_clients,
            best_root_tree.tree_cost,
        )
        return calculated_trees

    def root_frontier(self) -> Dict[NumClients, float]:
        """Client count -> minimal total cost over all inputs."""
        if self.root_level is None:
            return {}
        root_trees = self.best_trees.get(self.root_level, {})
        return {n: root_trees[n].tree_cost for n in sorted(root_trees)}

    def is_output_in_range(self, output: FlowValue) -> bool:
        return self.min_output <= output <= self.max_output

    # Internal helpers --------------------------------------------------

    def _is_stopped(self) -> bool:
        return self._stop_event is not None and self._stop_event.is_set()

    def _report_progress(self, value: float) -> None:
        if self._progress_callback is not None:
            self._progress_callback(value)

    def _find_unique_outputs(self) -> None:
        self.unique_outputs = find_reachable_levels(
            self.input_nodes,
            self.family_nodes,
            self.min_output,
        )

    def _find_best_output_trees(self) -> None:
        total_steps = len(self.unique_outputs) + 1

        for step, output in enumerate(self.unique_outputs):
            if self._is_stopped():
                logger.info(
                    "Calculation stopped after %d of %d levels.",
                    step,
                    len(self.unique_outputs),
                )
                self.was_stopped = True
                return

            logger.debug("Working on level %d", output)

            if self.is_output_in_range(output):
                self.best_trees[output] = {1: self.client_node}

            for family_node in self.family_nodes:
                find_best_trees_for_level(
                    self.best_trees,
                    output,
                    family_node,
                    self.num_clients,
                )

            self._report_progress((step + 1) / total_steps)

    def _find_best_root_tree(self) -> None:
        """
        Every input gets a private level just below the root level, above
        all real levels. The input, shifted so that its ports land on its
        real levels again, is searched at that private level. A virtual root
        whose port i leads to input i's private level then picks at most one
        tree per input under the shared client budget.
        """
        highest = max(self.unique_outputs, default=0)
        root_level = highest + len(self.input_nodes) + 1
        root_family = TreeNode(name="root")

        next_node_input = root_level - 1

        for input_node in self.input_nodes:
            root_family.outputs.append(next_node_input - root_level)

            input_node_family = TreeNode.template(
                [output - next_node_input for output in input_node.outputs],
                input_node.node_cost,
                input_node.name,
            )
            find_best_trees_for_level(
                self.best_trees,
                next_node_input,
                input_node_family,
                self.num_clients,
            )
            next_node_input -= 1

        find_best_trees_for_level(
            self.best_trees,
            root_level,
            root_family,
            self.num_clients,
        )
        self.root_level = root_level
