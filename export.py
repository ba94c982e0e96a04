# export.py
from __future__ import annotations
from collections.abc import Sequence
from pathlib import Path

from history import readings_to_frame
from models import SensorReading


def export_readings(readings: Sequence[SensorReading], output_file: Path) -> None:
    """Exporta la ventana cargada a .xlsx (por defecto) o .csv según la extensión."""
    df = readings_to_frame(readings)
    # Excel no admite datetimes con zona horaria
    if not df.empty:
        df["timestamp"] = df["timestamp"].map(lambda ts: ts.isoformat())

    if output_file.suffix.lower() == ".csv":
        df.to_csv(output_file, index=False)
    else:
        df.to_excel(output_file, index=False)
