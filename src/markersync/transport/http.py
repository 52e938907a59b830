from __future__ import annotations

import logging

import httpx

from ..core.markers import Marker, MarkerArray
from ..surface.serializers import payload_to_dict

logger = logging.getLogger(__name__)


class HttpTransport:
    """Posts marker batches to a running marker surface.

    Contract:
    - POST /api/topics/{topic}  (JSON: {"markers": [...]})

    Sends are fire-and-forget: a failed or rejected post is logged and
    dropped. The next tick resends the current state.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        timeout_s: float = 1.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client if client is not None else httpx.Client(base_url=self.base_url, timeout=timeout_s)
        self.failures = 0

    def send(self, topic: str, payload: Marker | MarkerArray) -> None:
        try:
            res = self._client.post(f"/api/topics/{topic.strip('/')}", json=payload_to_dict(payload))
        except httpx.HTTPError as e:
            self.failures += 1
            logger.warning("dropping message for %s: %s", topic, e)
            return
        if res.status_code >= 400:
            self.failures += 1
            logger.warning("surface rejected message for %s: %s %s", topic, res.status_code, res.text)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
