# synth/graph.py
"""
Declarative signal chain: an ordered list of named stages, each with a
process(block) -> block method. The chain is rebuilt on every start and
dropped on stop.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List

import numpy as np


@dataclass
class Stage:
    name: str
    node: Any


class SignalChain:
    def __init__(self, stages: Iterable[Stage]):
        self.stages: List[Stage] = list(stages)
        self._by_name = {s.name: s.node for s in self.stages}
        if len(self._by_name) != len(self.stages):
            raise ValueError("stage names must be unique")

    def __getitem__(self, name: str):
        return self._by_name[name]

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    @property
    def names(self) -> List[str]:
        return [s.name for s in self.stages]

    def process(self, block: np.ndarray) -> np.ndarray:
        for stage in self.stages:
            block = stage.node.process(block)
        return block
