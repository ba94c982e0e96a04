import os
from collections.abc import Iterator
from datetime import timezone
from typing import Any, List

import pytest

# Sin servidor gráfico en CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import QApplication

from scheduler import FetchRequest, PollScheduler


class ManualRunner(QObject):
    """Runner de pruebas: guarda las consultas y deja que el test las resuelva."""

    finished = Signal(object, object)
    failed = Signal(object, object)

    def __init__(self) -> None:
        super().__init__()
        self.requests: List[FetchRequest] = []

    def run(self, request: FetchRequest) -> None:
        self.requests.append(request)

    def resolve(self, request: FetchRequest, records: List[dict[str, Any]]) -> None:
        self.finished.emit(request, records)

    def fail(self, request: FetchRequest, error: Exception) -> None:
        self.failed.emit(request, error)


def make_record(ts: str, temp: Any = "20.5", hum: Any = "50", light: Any = "400") -> dict[str, Any]:
    return {"temp": temp, "umidade": hum, "light": light, "timestamp": ts}


@pytest.fixture(scope="session")
def qapp() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app  # type: ignore[return-value]


@pytest.fixture
def runner(qapp: QApplication) -> ManualRunner:
    return ManualRunner()


@pytest.fixture
def scheduler(runner: ManualRunner) -> Iterator[PollScheduler]:
    sched = PollScheduler(
        window_options=(10, 30, 60, 120),
        window_minutes=10,
        refresh_interval_secs=20,
        display_tz=timezone.utc,
        runner=runner,
    )
    yield sched
    sched.stop()
