# aggregator.py
from __future__ import annotations

import statistics as stats
from collections.abc import Sequence
from typing import Dict, List, Optional

from models import Metric, SensorReading


def _values(readings: Sequence[SensorReading], metric: Metric) -> List[float]:
    # Los campos ausentes no cuentan ni en la suma ni en el divisor
    return [v for v in (r.value(metric) for r in readings) if v is not None]


def average(readings: Sequence[SensorReading], metric: Metric) -> Optional[float]:
    """Media aritmética exacta; None si no hay ningún valor (no es lo mismo que 0)."""
    values = _values(readings, metric)
    if not values:
        return None
    return stats.fmean(values)


def averages(readings: Sequence[SensorReading]) -> Dict[Metric, Optional[float]]:
    return {metric: average(readings, metric) for metric in Metric}


def summarize(readings: Sequence[SensorReading], metric: Metric) -> Dict[str, Optional[float]]:
    """μ / min / max para el panel de indicadores."""
    values = _values(readings, metric)
    if not values:
        return {"mean": None, "min": None, "max": None}
    return {"mean": stats.fmean(values), "min": min(values), "max": max(values)}
