# src/ponc_planner/config_models.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import yaml

from .calculator import CalculatorArgs, CalculatorSettings
from .resolution import DEFAULT_RESOLUTION, to_discrete
from .tree_node import TreeNode


dB = float  # power level or delta, consistent unit across config


@dataclass
class SettingsConfig:
    """Acceptable client output window [min_output, max_output] and client count."""
    min_output: dB
    max_output: dB
    num_clients: int
    resolution: int = DEFAULT_RESOLUTION  # discrete steps per dB


@dataclass
class TemplateConfig:
    """
    Catalog entry for a passive device (splitter, coupler, attenuator...).

    outputs: per-port delta relative to the device input, in dB (<= 0).
    """
    name: str
    outputs: List[dB]
    cost: float


@dataclass
class InputConfig:
    """Input signal; outputs are the absolute levels it presents (usually one)."""
    name: str
    outputs: List[dB]


@dataclass
class ClientConfig:
    name: str = "client"
    cost: float = 0.0


@dataclass
class PlannerConfig:
    """
    Top-level configuration object for a planning run.
    """
    settings: SettingsConfig
    inputs: List[InputConfig]
    templates: List[TemplateConfig] = field(default_factory=list)
    client: ClientConfig = field(default_factory=ClientConfig)

    # Metadata / description
    description: Optional[str] = None

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot be handed to the calculator."""
        s = self.settings
        if s.min_output > s.max_output:
            raise ValueError(
                f"min_output ({s.min_output}) must not exceed max_output ({s.max_output})."
            )
        if s.num_clients < 1:
            raise ValueError(f"num_clients must be at least 1, got {s.num_clients}.")
        if s.resolution <= 0:
            raise ValueError(f"resolution must be positive, got {s.resolution}.")

        if not self.inputs:
            raise ValueError("At least one input is required.")
        for inp in self.inputs:
            if not inp.outputs:
                raise ValueError(f"Input '{inp.name}' has no outputs.")

        if self.client.cost < 0:
            raise ValueError(f"Client cost must be non-negative, got {self.client.cost}.")

        for t in self.templates:
            if not t.outputs:
                raise ValueError(f"Template '{t.name}' has no outputs.")
            if t.cost < 0:
                raise ValueError(f"Template '{t.name}' has negative cost {t.cost}.")
            # Passive devices only; a gain would make the level closure unbounded
            if any(o > 0 for o in t.outputs):
                raise ValueError(
                    f"Template '{t.name}' has a positive output delta {max(t.outputs)}."
                )

    def to_calculator_args(self) -> CalculatorArgs:
        """Quantize the configuration into calculator input."""
        self.validate()
        res = self.settings.resolution
        return CalculatorArgs(
            settings=CalculatorSettings(
                min_output=self.settings.min_output,
                max_output=self.settings.max_output,
                num_clients=self.settings.num_clients,
                resolution=res,
            ),
            input_nodes=[
                TreeNode.input([to_discrete(o, res) for o in inp.outputs], inp.name)
                for inp in self.inputs
            ],
            client_node=TreeNode.client(self.client.cost, self.client.name),
            family_nodes=[
                TreeNode.template([to_discrete(o, res) for o in t.outputs], t.cost, t.name)
                for t in self.templates
            ],
        )


def _load_yaml_or_json(path: Path) -> dict:
    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    else:
        return json.loads(text)


def load_config(path: Union[str, Path]) -> PlannerConfig:
    """
    Load and validate a PlannerConfig from a JSON or YAML file.
    """
    path = Path(path)
    raw = _load_yaml_or_json(path)

    def r_settings(d) -> SettingsConfig:
        return SettingsConfig(
            min_output=float(d["min_output"]),
            max_output=float(d["max_output"]),
            num_clients=int(d["num_clients"]),
            resolution=int(d.get("resolution", DEFAULT_RESOLUTION)),
        )

    def r_template(d) -> TemplateConfig:
        return TemplateConfig(
            name=str(d["name"]),
            outputs=[float(o) for o in d["outputs"]],
            cost=float(d.get("cost", 0.0)),
        )

    def r_input(i, d) -> InputConfig:
        return InputConfig(
            name=str(d.get("name", f"input_{i}")),
            outputs=[float(o) for o in d["outputs"]],
        )

    def r_client(d) -> ClientConfig:
        if d is None:
            return ClientConfig()
        return ClientConfig(
            name=str(d.get("name", "client")),
            cost=float(d.get("cost", 0.0)),
        )

    cfg = PlannerConfig(
        settings=r_settings(raw["settings"]),
        inputs=[r_input(i, d) for i, d in enumerate(raw["inputs"])],
        templates=[r_template(d) for d in raw.get("templates", [])],
        client=r_client(raw.get("client")),
        description=raw.get("description"),
    )
    cfg.validate()
    return cfg
