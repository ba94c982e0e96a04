from typing import Any

import pytest
import requests

from data_acquisition import HttpDataSource
from errors import SourceUnavailable


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, json_error: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def raise_for_status(self) -> None:
        if not (200 <= self.status_code < 300):
            raise requests.HTTPError(f"HTTP status {self.status_code}")

    def json(self) -> Any:
        if self._json_error:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def get(self, url: str, params: dict[str, Any] | None = None, timeout: float | None = None) -> Any:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self) -> None:
        pass


def test_fetch_builds_query_and_returns_list() -> None:
    records = [{"temp": "20.5", "umidade": "50", "light": "400", "timestamp": "2024-01-01T10:00:00Z"}]
    session = FakeSession(FakeResponse(payload=records))
    source = HttpDataSource("https://example.com/", timeout=3.0, session=session)  # type: ignore[arg-type]

    assert source.fetch(30) == records
    assert session.calls == [
        {"url": "https://example.com/api/dados", "params": {"minutos": 30}, "timeout": 3.0}
    ]


def test_network_error_is_source_unavailable() -> None:
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    source = HttpDataSource("https://example.com", session=session)  # type: ignore[arg-type]

    with pytest.raises(SourceUnavailable) as excinfo:
        source.fetch(10)
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_non_2xx_is_source_unavailable() -> None:
    session = FakeSession(FakeResponse(status_code=502, payload=[]))
    source = HttpDataSource("https://example.com", session=session)  # type: ignore[arg-type]

    with pytest.raises(SourceUnavailable):
        source.fetch(10)


def test_malformed_json_is_source_unavailable() -> None:
    session = FakeSession(FakeResponse(json_error=True))
    source = HttpDataSource("https://example.com", session=session)  # type: ignore[arg-type]

    with pytest.raises(SourceUnavailable):
        source.fetch(10)


def test_non_list_payload_is_source_unavailable() -> None:
    session = FakeSession(FakeResponse(payload={"error": "oops"}))
    source = HttpDataSource("https://example.com", session=session)  # type: ignore[arg-type]

    with pytest.raises(SourceUnavailable):
        source.fetch(10)
