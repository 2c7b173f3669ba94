# src/ponc_planner/outputs.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from .config_models import PlannerConfig
from .resolution import DEFAULT_RESOLUTION, FlowValue, from_discrete
from .tree_node import TreeNode


def _node_to_dict(node: TreeNode, level: FlowValue, resolution: int) -> dict:
    ports = []
    for port, delta in enumerate(node.outputs):
        port_level = level + delta
        child = node.child_nodes.get(port)
        ports.append(
            {
                "port": port,
                "level": from_discrete(port_level, resolution),
                "child": _node_to_dict(child, port_level, resolution) if child is not None else None,
            }
        )
    return {
        "name": node.name,
        "node_cost": node.node_cost,
        "tree_cost": node.tree_cost,
        "num_clients": node.num_clients,
        "ports": ports,
    }


def forest_to_dict(
    forest: List[TreeNode],
    resolution: int = DEFAULT_RESOLUTION,
) -> List[dict]:
    """
    JSON-ready description of the calculated forest, one entry per input.

    Every port records the real level it carries and the attached subtree
    (None if unconnected).
    """
    return [_node_to_dict(tree, 0, resolution) for tree in forest]


def client_levels(forest: List[TreeNode], resolution: int = DEFAULT_RESOLUTION) -> List[np.ndarray]:
    """Real output level at every client leaf, one array per input."""
    return [
        np.array([from_discrete(lvl, resolution) for lvl in tree.iter_client_levels()], dtype=float)
        for tree in forest
    ]


def summarize_forest(forest: List[TreeNode]) -> dict:
    return {
        "total_cost": float(sum(tree.tree_cost for tree in forest)),
        "num_clients": int(sum(tree.num_clients for tree in forest)),
        "num_devices": int(sum(tree.count_devices() for tree in forest)),
    }


def write_result_forest(
    path: str | Path,
    forest: List[TreeNode],
    resolution: int = DEFAULT_RESOLUTION,
) -> None:
    path = Path(path)
    blob = {
        "summary": summarize_forest(forest),
        "trees": forest_to_dict(forest, resolution),
    }
    path.write_text(json.dumps(blob, indent=2))


def write_run_metadata(
    path: str | Path,
    cfg: PlannerConfig,
    forest: List[TreeNode],
    frontier: Optional[Dict[int, float]] = None,
    stopped: bool = False,
) -> None:
    """
    Small JSON header for the run: settings, catalog size, result summary,
    client level statistics and, if known, the cost per client count.
    """
    path = Path(path)
    res = cfg.settings.resolution

    levels = client_levels(forest, res)
    all_levels = np.concatenate(levels) if levels else np.array([], dtype=float)

    metadata = {
        "description": cfg.description,
        "settings": {
            "min_output": cfg.settings.min_output,
            "max_output": cfg.settings.max_output,
            "num_clients": cfg.settings.num_clients,
            "resolution": res,
        },
        "n_inputs": len(cfg.inputs),
        "n_templates": len(cfg.templates),
        "stopped": stopped,
        "summary": summarize_forest(forest),
        "client_levels": {
            "min": float(all_levels.min()) if all_levels.size else None,
            "max": float(all_levels.max()) if all_levels.size else None,
            "mean": float(all_levels.mean()) if all_levels.size else None,
        },
        "cost_by_num_clients": (
            {str(n): cost for n, cost in sorted(frontier.items())} if frontier else None
        ),
    }

    path.write_text(json.dumps(metadata, indent=2))
