# history.py
from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import tzinfo
from typing import List, Optional, Tuple

import pandas as pd

from models import RawRecord, SensorReading
from normalizer import normalize_records

COLUMNS = ["timestamp", "temperature", "humidity", "light"]


def sort_readings(readings: Iterable[SensorReading]) -> Tuple[SensorReading, ...]:
    """
    Orden ascendente por el instante de captura real (nunca por display_time).
    sorted() es estable: timestamps iguales conservan el orden de la fuente.
    """
    return tuple(sorted(readings, key=lambda r: r.captured_at))


def build_reading_set(
    records: Iterable[RawRecord], display_tz: Optional[tzinfo] = None
) -> Tuple[SensorReading, ...]:
    return sort_readings(normalize_records(records, display_tz))


def readings_to_frame(
    readings: Sequence[SensorReading], with_display_time: bool = False
) -> pd.DataFrame:
    """
    Tabla del histórico: una fila por lectura, en el mismo orden que el conjunto.
    Con with_display_time=True se añade la columna "display_time" (dd/mm, HH:MM:SS)
    que usa la tabla de la ventana principal.
    """
    columns = (["display_time"] if with_display_time else []) + COLUMNS
    if not readings:
        return pd.DataFrame(columns=columns)

    rows: List[dict] = [
        {
            "display_time": r.display_time,
            "timestamp": r.captured_at,
            "temperature": r.temperature,
            "humidity": r.humidity,
            "light": r.light,
        }
        for r in readings
    ]
    # Las columnas métricas quedan en float: None -> NaN
    df = pd.DataFrame(rows, columns=columns)
    return df.astype({"temperature": float, "humidity": float, "light": float})
