"""Utilization models: how much of its allocated capacity a cloudlet actually uses."""

from abc import ABC, abstractmethod
from typing import Dict, Optional

import numpy as np


class UtilizationModel(ABC):
    """Returns the used fraction (0-1) of an allocated resource at a given time."""

    @abstractmethod
    def get_utilization(self, time: float) -> float:
        pass


class UtilizationModelFull(UtilizationModel):
    """The workload always uses everything it is given."""

    def get_utilization(self, time: float) -> float:
        return 1.0


class UtilizationModelConstant(UtilizationModel):
    """A fixed fraction of the allocated resource."""

    def __init__(self, value: float = 1.0):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Utilization must be between 0 and 1, got {value}")
        self.value = value

    def get_utilization(self, time: float) -> float:
        return self.value


class UtilizationModelStochastic(UtilizationModel):
    """Uniformly random utilization, sampled once per distinct time.

    Samples are cached so asking twice for the same instant gives the same
    answer and a seeded run replays exactly.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self._history: Dict[float, float] = {}

    def get_utilization(self, time: float) -> float:
        if time not in self._history:
            self._history[time] = float(self.rng.uniform(0.0, 1.0))
        return self._history[time]


UTILIZATION_MODELS = {
    "full": UtilizationModelFull,
    "constant": UtilizationModelConstant,
    "stochastic": UtilizationModelStochastic,
}


def create_utilization_model(model_type: str, **kwargs) -> UtilizationModel:
    """Create utilization model instance."""
    if model_type not in UTILIZATION_MODELS:
        raise ValueError(f"Unknown utilization model: {model_type}")
    return UTILIZATION_MODELS[model_type](**kwargs)
