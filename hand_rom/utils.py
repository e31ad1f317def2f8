import numpy as np
from typing import Sequence
from pydantic import BaseModel


def mean_of_last(values: Sequence[float], window: int = 5) -> float:
    """Average of the last `window` values; 0 for an empty history."""
    if not values:
        return 0.0
    window = max(1, min(window, len(values)))
    return float(np.mean(values[-window:]))


def mean_of_top(values: Sequence[float], count: int = 3) -> float:
    """Average of the `count` largest values, used to damp single-frame spikes."""
    if not values:
        return 0.0
    top = sorted(values, reverse=True)[:max(1, count)]
    return float(np.mean(top))


def round2(value: float) -> float:
    return float(round(float(value), 2))


def result_to_json(result: BaseModel) -> str:
    """Serialize any result model for the persistence layer."""
    return result.model_dump_json(indent=2)
