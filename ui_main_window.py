# ui_main_window.py
from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, Optional, Tuple

from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QFileDialog,
    QMessageBox,
    QLabel,
    QStatusBar,
    QFrame,
    QSizePolicy,
    QTableWidget,
    QTableWidgetItem,
    QHeaderView,
    QButtonGroup,
)
from PySide6.QtCore import Qt

from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from matplotlib.figure import Figure

from aggregator import summarize
from export import export_readings
from history import readings_to_frame
from models import ComfortStatus, Metric, SensorReading
from scheduler import DashboardSnapshot, PollScheduler
from settings import SettingsManager


METRIC_TITLES = {
    Metric.TEMPERATURE: ("Temperatura", "°C"),
    Metric.HUMIDITY: ("Humedad", "%"),
    Metric.LIGHT: ("Luminosidad", "lux"),
}

STATUS_LABELS = {
    ComfortStatus.IDEAL: "Ideal",
    ComfortStatus.LOW: "Bajo",
    ComfortStatus.HIGH: "Alto",
    ComfortStatus.NO_DATA: "Sin datos",
}

# Verde / ámbar / rojo / gris (SCADA style)
STATUS_COLORS = {
    ComfortStatus.IDEAL: "#34c759",
    ComfortStatus.LOW: "#ffcc00",
    ComfortStatus.HIGH: "#ff3b30",
    ComfortStatus.NO_DATA: "#c7c7cc",
}

PLOT_COLORS = {
    Metric.TEMPERATURE: "#ff7300",
    Metric.HUMIDITY: "#007aff",
    Metric.LIGHT: "#00c49f",
}


STALE_TEXT = "Cargando nueva ventana…"


def format_value(value: Optional[float], decimals: int = 1) -> str:
    if value is None or math.isnan(value):
        return "—"
    return f"{value:.{decimals}f}"


def format_countdown(seconds: int) -> str:
    return f"⏳ Actualiza en: {seconds}s"


class MainWindow(QMainWindow):
    def __init__(
        self, scheduler: PollScheduler, settings: SettingsManager, parent=None
    ) -> None:
        super().__init__(parent)
        self.scheduler = scheduler
        self.settings = settings
        self._plotted: Optional[Tuple[SensorReading, ...]] = None
        self._snapshot: Optional[DashboardSnapshot] = None

        self.setWindowTitle("Dashboard de Sensores ESP32")

        central = QWidget(self)
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(8)

        # --------- BARRA SUPERIOR: VENTANA + CUENTA ATRÁS ----------
        top_layout = QHBoxLayout()
        top_layout.setSpacing(10)

        self.window_group = QButtonGroup(self)
        self.window_group.setExclusive(True)
        self.window_buttons: Dict[int, QPushButton] = {}
        for minutes in scheduler.window_options:
            btn = QPushButton(f"Últimos {minutes} min")
            btn.setCheckable(True)
            btn.setCursor(Qt.PointingHandCursor)
            btn.setMinimumHeight(30)
            btn.clicked.connect(lambda _checked=False, m=minutes: self.select_window(m))
            self.window_group.addButton(btn)
            self.window_buttons[minutes] = btn
            top_layout.addWidget(btn)

        top_layout.addStretch()

        self.countdown_label = QLabel(format_countdown(scheduler.countdown))
        self.countdown_label.setStyleSheet(
            "background: #eee; padding: 4px 10px; border-radius: 8px; font-weight: bold;"
        )
        top_layout.addWidget(self.countdown_label)

        self.btn_export = QPushButton("📤 Exportar")
        self.btn_export.setCursor(Qt.PointingHandCursor)
        self.btn_export.clicked.connect(self.export_data)
        top_layout.addWidget(self.btn_export)
        main_layout.addLayout(top_layout)

        # --------- PANEL DE INDICADORES ----------
        indicators_frame = QFrame()
        indicators_frame.setFrameShape(QFrame.StyledPanel)
        indicators_layout = QHBoxLayout(indicators_frame)
        indicators_layout.setContentsMargins(10, 6, 10, 6)
        indicators_layout.setSpacing(20)

        self.value_labels: Dict[Metric, QLabel] = {}
        self.status_labels: Dict[Metric, QLabel] = {}
        self.stats_labels: Dict[Metric, QLabel] = {}
        for metric, (title, _unit) in METRIC_TITLES.items():
            box = QVBoxLayout()
            title_label = QLabel(title)
            title_label.setAlignment(Qt.AlignCenter)
            title_label.setStyleSheet("font-size: 14px; font-weight: 600;")

            self.value_labels[metric] = QLabel("—")
            self.status_labels[metric] = QLabel(STATUS_LABELS[ComfortStatus.NO_DATA])
            self.stats_labels[metric] = QLabel("μ: —   min: —   max: —")
            for label in (self.value_labels[metric], self.status_labels[metric], self.stats_labels[metric]):
                label.setAlignment(Qt.AlignCenter)

            box.addWidget(title_label)
            box.addWidget(self.value_labels[metric])
            box.addWidget(self.status_labels[metric])
            box.addWidget(self.stats_labels[metric])
            indicators_layout.addLayout(box)

        main_layout.addWidget(indicators_frame)

        # --------- FIGURA MATPLOTLIB ----------
        self.figure = Figure(figsize=(7, 5))
        self.canvas = FigureCanvas(self.figure)
        self.canvas.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.axes = {
            Metric.TEMPERATURE: self.figure.add_subplot(3, 1, 1),
            Metric.HUMIDITY: self.figure.add_subplot(3, 1, 2),
            Metric.LIGHT: self.figure.add_subplot(3, 1, 3),
        }
        main_layout.addWidget(self.canvas)

        # --------- TABLA HISTÓRICO ----------
        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["Hora", "Temp (°C)", "Humedad (%)", "Luz (lux)"])
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setMaximumHeight(200)
        main_layout.addWidget(self.table)

        status = QStatusBar()
        self.stale_label = QLabel("")
        self.stale_label.setStyleSheet("color: gray;")
        status.addPermanentWidget(self.stale_label)
        self.setStatusBar(status)

        scheduler.updated.connect(self.render)
        scheduler.fetch_failed.connect(self._show_fetch_error)
        self.render(scheduler.snapshot())

    # ===================== COMANDOS =====================
    def select_window(self, minutes: int) -> None:
        self.scheduler.select_window(minutes)
        self.settings.set("window_minutes", minutes)

    def export_data(self) -> None:
        if not self.scheduler.readings:
            QMessageBox.information(self, "Exportación", "Todavía no hay datos cargados.")
            return

        output_str, _ = QFileDialog.getSaveFileName(
            self,
            "Exportar ventana actual",
            "sensor_data.xlsx",
            "Excel (*.xlsx);;CSV (*.csv)",
        )
        if not output_str:
            return

        try:
            export_readings(self.scheduler.readings, Path(output_str))
            self.statusBar().showMessage(f"Datos exportados a {output_str}", 4000)
        except Exception as e:
            QMessageBox.critical(self, "Error", f"No se pudo exportar:\n{e}")

    def closeEvent(self, event) -> None:
        self.scheduler.stop()
        super().closeEvent(event)

    # ===================== RENDER =====================
    def render(self, snapshot: DashboardSnapshot) -> None:
        self._snapshot = snapshot
        self.countdown_label.setText(format_countdown(snapshot.countdown))
        button = self.window_buttons.get(snapshot.window_minutes)
        if button is not None and not button.isChecked():
            button.setChecked(True)
        self.stale_label.setText(STALE_TEXT if snapshot.stale else "")

        # El resto sólo cambia cuando llega un conjunto nuevo de lecturas
        if snapshot.readings is self._plotted:
            return
        self._plotted = snapshot.readings

        self._update_indicators(snapshot)
        self._update_plots(snapshot.readings)
        self._update_table(snapshot.readings)

    def _update_indicators(self, snapshot: DashboardSnapshot) -> None:
        last = snapshot.readings[-1] if snapshot.readings else None
        for metric, (_title, unit) in METRIC_TITLES.items():
            decimals = 0 if metric is Metric.LIGHT else 1
            value = last.value(metric) if last else None
            self.value_labels[metric].setText(f"{format_value(value, decimals)} {unit}")

            status = snapshot.statuses[metric]
            self.status_labels[metric].setText(STATUS_LABELS[status])
            self.status_labels[metric].setStyleSheet(
                f"background-color: {STATUS_COLORS[status]}; font-weight: 700; "
                "padding: 2px; border-radius: 4px;"
            )

            stats = summarize(snapshot.readings, metric)
            self.stats_labels[metric].setText(
                f"μ: {format_value(snapshot.averages[metric], decimals)}   "
                f"min: {format_value(stats['min'], decimals)}   "
                f"max: {format_value(stats['max'], decimals)}"
            )

    def _update_plots(self, readings: Tuple[SensorReading, ...]) -> None:
        times = [r.captured_at for r in readings]
        for metric, ax in self.axes.items():
            ax.clear()
            title, unit = METRIC_TITLES[metric]
            # None -> NaN: matplotlib corta la línea en los huecos
            values = [r.value(metric) if r.value(metric) is not None else float("nan") for r in readings]
            if readings:
                ax.plot(times, values, color=PLOT_COLORS[metric])
            ax.set_ylabel(f"{title} ({unit})")
            ax.grid(True)

        self.axes[Metric.LIGHT].set_xlabel("Tiempo")
        self.figure.autofmt_xdate()
        self.canvas.draw_idle()

    def _update_table(self, readings: Tuple[SensorReading, ...]) -> None:
        df = readings_to_frame(readings, with_display_time=True)
        self.table.setRowCount(len(df))
        for row, rec in enumerate(df.itertuples(index=False)):
            cells = [
                rec.display_time,
                format_value(rec.temperature),
                format_value(rec.humidity),
                format_value(rec.light, 0),
            ]
            for col, text in enumerate(cells):
                self.table.setItem(row, col, QTableWidgetItem(text))

    def _show_fetch_error(self, message: str) -> None:
        self.statusBar().showMessage(f"Error al actualizar: {message}", 5000)
