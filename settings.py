# settings.py
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple

from comfort import DEFAULT_BOUNDS, ComfortBounds
from data_acquisition import DEFAULT_BASE_URL
from models import Metric

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path("settings.json")


class SettingsManager:
    """
    Preferencias del dashboard en settings.json (URL del backend, ventana,
    cadencia, umbrales de confort...). Un fichero ausente, ilegible o que no
    sea un objeto JSON equivale a "sin preferencias guardadas".
    """

    def __init__(self, path: Path = SETTINGS_FILE) -> None:
        self.path = Path(path)
        self._data: Dict[str, Any] = self._read()
        self._dirty = False

    def _read(self) -> Dict[str, Any]:
        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignorando %s: %s", self.path, exc)
            return {}
        if not isinstance(stored, dict):
            logger.warning("Ignorando %s: se esperaba un objeto JSON", self.path)
            return {}
        return stored

    def save(self) -> None:
        # Sólo se reescribe el fichero si alguna preferencia cambió en la sesión
        if not self._dirty and self.path.exists():
            return
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=4, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)
        self._dirty = False

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if self._data.get(key) != value:
            self._data[key] = value
            self._dirty = True


@dataclass(frozen=True)
class DashboardConfig:
    base_url: str = DEFAULT_BASE_URL
    window_options: Tuple[int, ...] = (10, 30, 60, 120)
    window_minutes: int = 10
    refresh_interval_secs: int = 20
    request_timeout_secs: float = 5.0
    comfort_bounds: Dict[Metric, ComfortBounds] = field(default_factory=lambda: dict(DEFAULT_BOUNDS))
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.window_options:
            raise ValueError("window_options no puede estar vacío")
        if self.window_minutes not in self.window_options:
            raise ValueError(
                f"window_minutes={self.window_minutes} no está en {list(self.window_options)}"
            )
        if self.refresh_interval_secs <= 0:
            raise ValueError("refresh_interval_secs debe ser positivo")
        if self.request_timeout_secs <= 0:
            raise ValueError("request_timeout_secs debe ser positivo")


def _load_bounds(raw: Any) -> Dict[Metric, ComfortBounds]:
    bounds = dict(DEFAULT_BOUNDS)
    if not raw:
        return bounds
    for key, pair in dict(raw).items():
        low, high = pair
        bounds[Metric(key)] = ComfortBounds(float(low), float(high))
    return bounds


def load_config(settings: SettingsManager) -> DashboardConfig:
    """Valores guardados en settings.json encima de los valores por defecto."""
    defaults = DashboardConfig()
    options = tuple(int(m) for m in settings.get("window_options", defaults.window_options))

    window = int(settings.get("window_minutes", defaults.window_minutes))
    # Una ventana guardada que ya no existe en las opciones no debe impedir arrancar
    if window not in options:
        window = options[0] if options else window

    return DashboardConfig(
        base_url=str(settings.get("base_url", defaults.base_url)),
        window_options=options,
        window_minutes=window,
        refresh_interval_secs=int(settings.get("refresh_interval_secs", defaults.refresh_interval_secs)),
        request_timeout_secs=float(settings.get("request_timeout_secs", defaults.request_timeout_secs)),
        comfort_bounds=_load_bounds(settings.get("comfort_bounds")),
        log_level=str(settings.get("log_level", defaults.log_level)).upper(),
    )
