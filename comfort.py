# comfort.py
from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Dict, Optional

from models import ComfortStatus, Metric, SensorReading


@dataclass(frozen=True)
class ComfortBounds:
    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"Rango de confort inválido: [{self.low}, {self.high}]")


# UMBRALES DE CONFORT (política, no física; configurables en settings.json)
DEFAULT_BOUNDS: Dict[Metric, ComfortBounds] = {
    Metric.TEMPERATURE: ComfortBounds(18.0, 22.0),  # ºC
    Metric.HUMIDITY: ComfortBounds(40.0, 60.0),     # %
    Metric.LIGHT: ComfortBounds(300.0, 600.0),      # lux
}


def classify(value: Optional[float], low: float, high: float) -> ComfortStatus:
    if value is None or math.isnan(value):
        return ComfortStatus.NO_DATA
    if value < low:
        return ComfortStatus.LOW
    if value > high:
        return ComfortStatus.HIGH
    return ComfortStatus.IDEAL


def classify_latest(
    readings: Sequence[SensorReading],
    bounds: Mapping[Metric, ComfortBounds] = DEFAULT_BOUNDS,
) -> Dict[Metric, ComfortStatus]:
    """Clasifica sólo la lectura más reciente; sin lecturas todo es NO_DATA."""
    if not readings:
        return {metric: ComfortStatus.NO_DATA for metric in Metric}

    last = readings[-1]
    return {
        metric: classify(last.value(metric), bounds[metric].low, bounds[metric].high)
        for metric in Metric
    }
