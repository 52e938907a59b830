from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .serializers import marker_to_dict, marker_to_list_item, payload_from_dict
from .store import STORE, MarkerStore


def create_app(store: MarkerStore | None = None) -> FastAPI:
    """HTTP front of a retained marker surface.

    Publishers POST marker batches per topic; viewers poll `/api/events` and
    re-read `/api/markers` when the global revision moves.
    """

    store = store if store is not None else STORE
    app = FastAPI(title="markersync", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/events")
    def events() -> dict[str, int]:
        # Minimal polling endpoint.
        return {"globalRevision": store.global_revision()}

    @app.get("/api/topics")
    def list_topics() -> list[str]:
        return store.topics()

    @app.get("/api/markers")
    def list_markers(topic: str | None = None, ns: str | None = None, full: bool = False) -> list[dict[str, Any]]:
        items = store.list_markers(topic=topic, ns=ns)
        if full:
            return [{"topic": t, **marker_to_dict(m)} for t, m in items]
        return [marker_to_list_item(t, m) for t, m in items]

    @app.post("/api/topics/{topic:path}")
    def publish(topic: str, body: dict) -> dict[str, Any]:
        topic = topic.strip("/")
        if not topic:
            raise HTTPException(status_code=400, detail="topic cannot be empty")
        try:
            payload = payload_from_dict(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        changed = store.apply(topic, payload)
        return {"ok": True, "changed": changed, "globalRevision": store.global_revision()}

    @app.post("/api/reset")
    def reset() -> dict[str, bool]:
        store.reset()
        return {"ok": True}

    return app
