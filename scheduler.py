# scheduler.py
"""
Motor de sondeo: refresco periódico + cuenta atrás sincronizada.

Un único QTimer de 1 s gobierna las dos cadencias:
    - cada tick descuenta 1 s de la cuenta atrás (mínimo 0)
    - cada `refresh_interval_secs` ticks se lanza una consulta

Las consultas HTTP corren en el QThreadPool y vuelven al hilo de la GUI como
señales Qt, así que todo el estado se modifica siempre desde un solo hilo.

Cada consulta lleva un FetchRequest(seq, generation, minutes). La generación
cambia en cada start/stop/cambio de ventana: una respuesta de una generación
anterior se descarta sin tocar el estado publicado.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal

from aggregator import averages
from comfort import DEFAULT_BOUNDS, ComfortBounds, classify_latest
from data_acquisition import HttpDataSource
from errors import InvalidWindowSelection, SourceUnavailable
from history import build_reading_set
from models import ComfortStatus, Metric, SensorReading

logger = logging.getLogger(__name__)

TICK_MS = 1000


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    REFRESHING = "refreshing"  # sub-estado de ARMED: hay al menos una consulta en vuelo


@dataclass(frozen=True)
class FetchRequest:
    seq: int
    generation: int
    minutes: int


@dataclass(frozen=True)
class DashboardSnapshot:
    readings: Tuple[SensorReading, ...]
    countdown: int
    window_minutes: int
    window_options: Tuple[int, ...]
    state: SchedulerState
    stale: bool
    statuses: Dict[Metric, ComfortStatus]
    averages: Dict[Metric, Optional[float]]
    last_error: Optional[str]
    last_updated: Optional[datetime]


# ===================== CONSULTAS EN SEGUNDO PLANO =====================

class _FetchTask(QRunnable):
    def __init__(self, runner: "ThreadPoolFetchRunner", request: FetchRequest) -> None:
        super().__init__()
        self.runner = runner
        self.request = request

    def run(self) -> None:
        try:
            records = self.runner.source.fetch(self.request.minutes)
        except SourceUnavailable as exc:
            self.runner.failed.emit(self.request, exc)
            return
        except Exception as exc:
            # Nada debe escapar del hilo del pool
            logger.exception("Error inesperado en la consulta %s", self.request)
            self.runner.failed.emit(self.request, exc)
            return
        self.runner.finished.emit(self.request, records)


class ThreadPoolFetchRunner(QObject):
    finished = Signal(object, object)  # FetchRequest, List[RawRecord]
    failed = Signal(object, object)    # FetchRequest, Exception

    def __init__(
        self,
        source: HttpDataSource,
        pool: Optional[QThreadPool] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.source = source
        self.pool = pool or QThreadPool.globalInstance()

    def run(self, request: FetchRequest) -> None:
        self.pool.start(_FetchTask(self, request))


# ===================== PLANIFICADOR =====================

class PollScheduler(QObject):
    updated = Signal(object)    # DashboardSnapshot
    fetch_failed = Signal(str)

    def __init__(
        self,
        source: Optional[HttpDataSource] = None,
        *,
        window_options: Sequence[int] = (10, 30, 60, 120),
        window_minutes: int = 10,
        refresh_interval_secs: int = 20,
        comfort_bounds: Mapping[Metric, ComfortBounds] = DEFAULT_BOUNDS,
        display_tz: Optional[tzinfo] = None,
        runner: Any = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.window_options: Tuple[int, ...] = tuple(window_options)
        if window_minutes not in self.window_options:
            raise InvalidWindowSelection(window_minutes, self.window_options)
        if refresh_interval_secs <= 0:
            raise ValueError("refresh_interval_secs debe ser positivo")

        self.refresh_interval_secs = refresh_interval_secs
        self.comfort_bounds = dict(comfort_bounds)
        self.display_tz = display_tz

        if runner is None:
            if source is None:
                raise ValueError("Se necesita una fuente de datos o un runner")
            runner = ThreadPoolFetchRunner(source, parent=self)
        self._runner = runner
        self._runner.finished.connect(self._on_fetch_finished)
        self._runner.failed.connect(self._on_fetch_failed)

        self._timer = QTimer(self)
        self._timer.setInterval(TICK_MS)
        self._timer.timeout.connect(self.tick)

        self._window = window_minutes
        self._armed = False
        self._generation = 0
        self._seq = 0
        self._last_applied_seq = 0
        self._in_flight: Set[int] = set()
        self._ticks = 0
        self._countdown = refresh_interval_secs

        self._readings: Tuple[SensorReading, ...] = ()
        self._stale = False
        self._last_error: Optional[str] = None
        self._last_updated: Optional[datetime] = None

    @classmethod
    def from_config(cls, config: Any, source: HttpDataSource, **kwargs: Any) -> "PollScheduler":
        return cls(
            source,
            window_options=config.window_options,
            window_minutes=config.window_minutes,
            refresh_interval_secs=config.refresh_interval_secs,
            comfort_bounds=config.comfort_bounds,
            **kwargs,
        )

    # ---------- estado de sólo lectura ----------
    @property
    def state(self) -> SchedulerState:
        if not self._armed:
            return SchedulerState.IDLE
        if self._in_flight:
            return SchedulerState.REFRESHING
        return SchedulerState.ARMED

    @property
    def readings(self) -> Tuple[SensorReading, ...]:
        return self._readings

    @property
    def countdown(self) -> int:
        return self._countdown

    @property
    def window_minutes(self) -> int:
        return self._window

    @property
    def stale(self) -> bool:
        return self._stale

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def statuses(self) -> Dict[Metric, ComfortStatus]:
        return classify_latest(self._readings, self.comfort_bounds)

    def averages(self) -> Dict[Metric, Optional[float]]:
        return averages(self._readings)

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            readings=self._readings,
            countdown=self._countdown,
            window_minutes=self._window,
            window_options=self.window_options,
            state=self.state,
            stale=self._stale,
            statuses=self.statuses(),
            averages=self.averages(),
            last_error=self._last_error,
            last_updated=self._last_updated,
        )

    # ---------- control ----------
    def start(self) -> None:
        """Parar, reconfigurar y arrancar: consulta inmediata + cuenta atrás a tope."""
        self._cancel()
        self._armed = True
        self._generation += 1
        logger.info(
            "Sondeo armado: ventana=%s min, cada %ss", self._window, self.refresh_interval_secs
        )
        self._issue_fetch()
        self._countdown = self.refresh_interval_secs
        self._ticks = 0
        self._timer.start()
        self._publish()

    def stop(self) -> None:
        if not self._armed:
            return
        self._cancel()
        self._armed = False
        # Lo que siga en vuelo pertenece a una generación muerta
        self._generation += 1
        logger.info("Sondeo detenido")
        self._publish()

    def select_window(self, minutes: int) -> None:
        if isinstance(minutes, bool) or minutes not in self.window_options:
            raise InvalidWindowSelection(minutes, self.window_options)
        minutes = int(minutes)
        if minutes == self._window:
            return

        logger.info("Ventana %s -> %s min", self._window, minutes)
        self._window = minutes
        # Se mantiene lo último visible, marcado como obsoleto hasta la siguiente respuesta
        self._stale = bool(self._readings)
        if self._armed:
            self.start()
        else:
            self._generation += 1
            self._publish()

    def tick(self) -> None:
        if not self._armed:
            return
        self._countdown = max(0, self._countdown - 1)
        self._ticks += 1
        if self._ticks >= self.refresh_interval_secs:
            self._ticks = 0
            self._issue_fetch()
        self._publish()

    # ---------- internos ----------
    def _cancel(self) -> None:
        self._timer.stop()
        self._in_flight.clear()

    def _issue_fetch(self) -> None:
        self._seq += 1
        request = FetchRequest(seq=self._seq, generation=self._generation, minutes=self._window)
        self._in_flight.add(request.seq)
        logger.debug("Consulta %s", request)
        self._runner.run(request)

    def _is_current(self, request: FetchRequest) -> bool:
        return (
            self._armed
            and request.generation == self._generation
            and request.minutes == self._window
        )

    def _on_fetch_finished(self, request: FetchRequest, records: Any) -> None:
        if not self._is_current(request):
            logger.debug("Respuesta descartada (obsoleta): %s", request)
            return
        self._in_flight.discard(request.seq)
        self._countdown = self.refresh_interval_secs

        if request.seq < self._last_applied_seq:
            # Llegó después de una consulta más reciente de la misma ventana
            logger.debug("Respuesta adelantada por otra más reciente: %s", request)
        else:
            self._readings = build_reading_set(records, self.display_tz)
            self._last_applied_seq = request.seq
            self._stale = False
            self._last_error = None
            self._last_updated = datetime.now(timezone.utc)
            logger.info("%d lecturas (ventana %s min)", len(self._readings), request.minutes)

        self._publish()

    def _on_fetch_failed(self, request: FetchRequest, error: Any) -> None:
        if not self._is_current(request):
            logger.debug("Error de una consulta obsoleta ignorado: %s (%s)", request, error)
            return
        self._in_flight.discard(request.seq)
        # La cuenta atrás refleja el próximo intento, no el último éxito
        self._countdown = self.refresh_interval_secs
        self._last_error = str(error)
        logger.warning("Fuente no disponible: %s", error)
        self._publish()
        self.fetch_failed.emit(self._last_error)

    def _publish(self) -> None:
        self.updated.emit(self.snapshot())
