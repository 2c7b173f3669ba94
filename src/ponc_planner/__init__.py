# src/ponc_planner/__init__.py
"""
Passive Optical Network Tree Planner.

Given a catalog of passive devices (splitters, couplers, attenuators), one or
more input signals, a client count and an acceptable output window, this
package computes a minimum-cost forest of devices that feeds every client a
signal inside the window:

    Input(s) -> [device tree] -> Clients within [min_output, max_output]
"""

from .calculator import (
    Calculator,
    CalculatorArgs,
    CalculatorSettings,
)

from .calculation_task import (
    CalculationTask,
    TaskState,
)

from .config_models import (
    PlannerConfig,
    load_config,
)

from .tree_node import TreeNode

__all__ = [
    "Calculator",
    "CalculatorArgs",
    "CalculatorSettings",
    "CalculationTask",
    "TaskState",
    "PlannerConfig",
    "load_config",
    "TreeNode",
]
