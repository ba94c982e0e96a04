# models.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


# Registro tal y como llega de /api/dados (temp, umidade, light, timestamp)
RawRecord = Dict[str, Any]


class Metric(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    LIGHT = "light"


class ComfortStatus(str, Enum):
    IDEAL = "ideal"
    LOW = "low"
    HIGH = "high"
    NO_DATA = "no_data"


@dataclass(frozen=True)
class SensorReading:
    captured_at: datetime          # instante absoluto (tz-aware)
    raw_timestamp: str             # forma original enviada por la fuente
    display_time: str              # dd/mm, HH:MM:SS
    temperature: Optional[float]   # ºC
    humidity: Optional[float]      # %
    light: Optional[float]         # en lux

    def value(self, metric: Metric) -> Optional[float]:
        return getattr(self, metric.value)
