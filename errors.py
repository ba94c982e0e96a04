# errors.py
from __future__ import annotations


class DashboardError(Exception):
    """Base de todos los errores del motor de sondeo."""


class SourceUnavailable(DashboardError):
    """La fuente de datos no respondió, respondió con error o con JSON inválido."""


class MalformedRecord(DashboardError):
    """Un registro individual no se pudo normalizar (timestamp ilegible, no es un objeto...)."""


class InvalidWindowSelection(DashboardError):
    def __init__(self, minutes: object, options: tuple) -> None:
        super().__init__(
            f"Ventana no soportada: {minutes!r} (opciones: {', '.join(map(str, options))})"
        )
        self.minutes = minutes
        self.options = options
