"""Recording stand-in for ``requests.Session``."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if self._payload is None:
            raise json.JSONDecodeError("no body", "", 0)
        return self._payload


@dataclass
class RecordedCall:
    method: str
    url: str
    timeout: Optional[float]
    kwargs: dict


@dataclass
class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    queue: List[Union[FakeResponse, Exception]] = field(default_factory=list)
    calls: List[RecordedCall] = field(default_factory=list)

    def respond(self, status_code: int = 200, payload: Any = None) -> None:
        self.queue.append(FakeResponse(status_code, payload))

    def fail(self, exc: Exception) -> None:
        self.queue.append(exc)

    def request(self, method, url, timeout=None, **kwargs):  # noqa: ANN001
        self.calls.append(RecordedCall(method, url, timeout, kwargs))
        if not self.queue:
            raise AssertionError(f"Unexpected request {method} {url}")
        item = self.queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
