# normalizer.py
"""
Convierte los registros crudos de /api/dados en lecturas tipadas.

Formato de entrada (todo llega como texto desde el ESP32):
    {"temp": "20.5", "umidade": "50", "light": "400", "timestamp": "2024-01-01T10:00:00Z"}

- Un timestamp ilegible descarta el registro entero (MalformedRecord).
- Un campo numérico ilegible o no finito se guarda como None; el resto del
  registro se procesa con normalidad.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone, tzinfo
from typing import Any, List, Optional

from errors import MalformedRecord
from models import RawRecord, SensorReading

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%d/%m, %H:%M:%S"

# Campo de la API -> atributo de SensorReading
FIELD_MAP = {
    "temp": "temperature",
    "umidade": "humidity",
    "light": "light",
}


def parse_timestamp(value: Any) -> datetime:
    """Devuelve el instante en UTC; un timestamp sin offset se asume UTC."""
    if value is None or isinstance(value, bool):
        raise MalformedRecord(f"timestamp inválido: {value!r}")

    if isinstance(value, (int, float)):
        # Epoch en milisegundos, como Date() en el navegador
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise MalformedRecord(f"timestamp fuera de rango: {value!r}") from exc

    if not isinstance(value, str) or not value.strip():
        raise MalformedRecord(f"timestamp inválido: {value!r}")

    try:
        ts = datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise MalformedRecord(f"timestamp ilegible: {value!r}") from exc

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    try:
        return ts.astimezone(timezone.utc)
    except (OverflowError, ValueError) as exc:
        # p.ej. 0001-01-01T00:00:00+05:00: válido como texto, fuera de rango en UTC
        raise MalformedRecord(f"timestamp fuera de rango: {value!r}") from exc


def coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def format_display_time(captured_at: datetime, display_tz: Optional[tzinfo] = None) -> str:
    # display_tz=None -> zona horaria local del sistema
    return captured_at.astimezone(display_tz).strftime(DISPLAY_FORMAT)


def normalize_record(raw: RawRecord, display_tz: Optional[tzinfo] = None) -> SensorReading:
    if not isinstance(raw, Mapping):
        raise MalformedRecord(f"se esperaba un objeto, llegó {type(raw).__name__}")
    if "timestamp" not in raw:
        raise MalformedRecord("registro sin timestamp")

    captured_at = parse_timestamp(raw["timestamp"])
    try:
        display_time = format_display_time(captured_at, display_tz)
    except (OverflowError, ValueError) as exc:
        raise MalformedRecord(f"timestamp no representable en hora local: {raw['timestamp']!r}") from exc
    values = {attr: coerce_number(raw.get(key)) for key, attr in FIELD_MAP.items()}

    return SensorReading(
        captured_at=captured_at,
        raw_timestamp=str(raw["timestamp"]),
        display_time=display_time,
        **values,
    )


def normalize_records(
    records: Iterable[RawRecord], display_tz: Optional[tzinfo] = None
) -> List[SensorReading]:
    """Normaliza en orden de llegada; los registros rechazados se registran en el log y se omiten."""
    readings: List[SensorReading] = []
    for index, raw in enumerate(records):
        try:
            readings.append(normalize_record(raw, display_tz))
        except MalformedRecord as exc:
            logger.warning("Registro %d descartado: %s", index, exc)
    return readings
