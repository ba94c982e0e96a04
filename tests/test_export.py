from datetime import timezone
from pathlib import Path

import pandas as pd

from conftest import make_record
from export import export_readings
from history import build_reading_set


def test_export_csv(tmp_path: Path) -> None:
    readings = build_reading_set(
        [
            make_record("2024-01-01T10:00:20Z", temp="21"),
            make_record("2024-01-01T10:00:00Z", temp="abc"),
        ],
        display_tz=timezone.utc,
    )
    out = tmp_path / "sensor_data.csv"

    export_readings(readings, out)

    df = pd.read_csv(out)
    assert list(df.columns) == ["timestamp", "temperature", "humidity", "light"]
    assert df["timestamp"].tolist() == ["2024-01-01T10:00:00+00:00", "2024-01-01T10:00:20+00:00"]
    assert pd.isna(df.loc[0, "temperature"])
    assert df.loc[1, "temperature"] == 21.0


def test_export_empty_csv(tmp_path: Path) -> None:
    out = tmp_path / "empty.csv"
    export_readings((), out)
    assert out.read_text(encoding="utf-8").strip() == "timestamp,temperature,humidity,light"
