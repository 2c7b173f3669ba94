# tests/conftest.py
from __future__ import annotations

from typing import List, Sequence

import pytest

from ponc_planner.calculator import CalculatorArgs, CalculatorSettings
from ponc_planner.config_models import (
    ClientConfig,
    InputConfig,
    PlannerConfig,
    SettingsConfig,
    TemplateConfig,
)
from ponc_planner.resolution import to_discrete
from ponc_planner.tree_node import TreeNode


def make_args(
    min_output: float,
    max_output: float,
    num_clients: int,
    inputs: Sequence[Sequence[float]],
    templates: Sequence[tuple] = (),
    client_cost: float = 0.0,
) -> CalculatorArgs:
    """
    Build CalculatorArgs from real-valued levels.

    templates: (name, outputs, cost) tuples.
    """
    return CalculatorArgs(
        settings=CalculatorSettings(
            min_output=min_output,
            max_output=max_output,
            num_clients=num_clients,
        ),
        input_nodes=[
            TreeNode.input([to_discrete(o) for o in outs], f"input_{i}")
            for i, outs in enumerate(inputs)
        ],
        client_node=TreeNode.client(client_cost),
        family_nodes=[
            TreeNode.template([to_discrete(o) for o in outs], cost, name)
            for name, outs, cost in templates
        ],
    )


SPLITTER_2 = ("splitter_1x2", [-3.0, -3.0], 1.0)

# Small but realistic catalog: levels are multiples of 0.5 dB
CATALOG = [
    ("splitter_1x2", [-3.5, -3.5], 1.0),
    ("splitter_1x4", [-7.0, -7.0, -7.0, -7.0], 2.0),
    ("attenuator_1db", [-1.0], 0.5),
]


def iter_subtrees(forest: List[TreeNode]):
    for tree in forest:
        yield from tree.iter_nodes()


@pytest.fixture
def splitter_args():
    """One input at 0 dB, a 1x2 splitter (-3 dB/port), window [-3, -3]."""
    return make_args(-3.0, -3.0, 2, [[0.0]], [SPLITTER_2])


@pytest.fixture
def catalog_args():
    """Input at 0 dB, window [-15, -10], four clients."""
    return make_args(-15.0, -10.0, 4, [[0.0]], CATALOG)


@pytest.fixture
def simple_planner_config() -> PlannerConfig:
    return PlannerConfig(
        settings=SettingsConfig(min_output=-15.0, max_output=-10.0, num_clients=4),
        inputs=[InputConfig(name="olt", outputs=[0.0])],
        templates=[
            TemplateConfig(name=name, outputs=list(outs), cost=cost)
            for name, outs, cost in CATALOG
        ],
        client=ClientConfig(),
        description="simple test config",
    )


CONFIG_YAML = """
description: "two splitters"
settings:
  min_output: -15.0
  max_output: -10.0
  num_clients: 4
  resolution: 100
inputs:
  - name: "olt"
    outputs: [0.0]
client:
  name: "ont"
  cost: 0.0
templates:
  - name: "splitter_1x2"
    outputs: [-3.5, -3.5]
    cost: 1.0
  - name: "splitter_1x4"
    outputs: [-7.0, -7.0, -7.0, -7.0]
    cost: 2.0
  - name: "attenuator_1db"
    outputs: [-1.0]
    cost: 0.5
"""


@pytest.fixture
def config_yaml_path(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(CONFIG_YAML)
    return p
