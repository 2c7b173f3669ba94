# src/ponc_planner/plotting.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import matplotlib.pyplot as plt

from .config_models import SettingsConfig
from .outputs import client_levels
from .tree_node import TreeNode


def plot_client_levels(
    forest: List[TreeNode],
    settings: SettingsConfig,
    out_path: Optional[str | Path] = None,
) -> None:
    """
    Scatter the output level of every client, grouped by input, over the
    acceptable output window.
    """
    plt.figure()
    offset = 0
    for tree, levels in zip(forest, client_levels(forest, settings.resolution)):
        xs = range(offset, offset + len(levels))
        plt.scatter(xs, levels, label=tree.name or "input")
        offset += len(levels)

    plt.axhspan(
        settings.min_output,
        settings.max_output,
        alpha=0.15,
        label="acceptable output",
    )

    plt.xlabel("Client")
    plt.ylabel("Output level (dB)")
    plt.title("Client Output Levels")
    plt.legend()
    plt.grid(True)
    if out_path:
        out_path = Path(out_path)
        plt.savefig(out_path, dpi=150, bbox_inches="tight")
        plt.close()
    else:
        plt.show()
