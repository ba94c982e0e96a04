# data_acquisition.py
from __future__ import annotations

import logging
from typing import List, Optional

import requests

from errors import SourceUnavailable
from models import RawRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://clima-backend-xi.vercel.app"
DATA_PATH = "/api/dados"


class HttpDataSource:
    """
    Lee las lecturas del backend:  GET /api/dados?minutos=<int>

    Devuelve la lista JSON tal cual (RawRecord); la normalización se hace aparte.
    Cualquier fallo (red, HTTP no 2xx, JSON inválido) se traduce en SourceUnavailable.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.base_url}{DATA_PATH}"

    def fetch(self, minutes: int) -> List[RawRecord]:
        try:
            resp = self.session.get(self.url, params={"minutos": int(minutes)}, timeout=self.timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as exc:
            raise SourceUnavailable(f"Fallo al consultar {self.url}: {exc}") from exc
        except ValueError as exc:
            raise SourceUnavailable(f"Respuesta JSON inválida de {self.url}: {exc}") from exc

        if not isinstance(payload, list):
            raise SourceUnavailable(
                f"Se esperaba una lista JSON, llegó {type(payload).__name__}"
            )

        logger.debug("GET %s minutos=%s -> %d registros", self.url, minutes, len(payload))
        return payload

    def close(self) -> None:
        self.session.close()
