#!/usr/bin/env python3
import json
import logging
import os

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from engine.job_queue import SearchJobRegistry
from engine.json_utils import safe_json
from engine.neighbor_cache import RecentNeighborCache
from engine.paths import build_engine_paths, ensure_dir
from engine.search_engine import build_default_engine

APP_NAME = "MelodyMap API"
APP_VERSION = "0.1.0"
_TRUST_PROXY = os.environ.get("MELODYMAP_TRUST_PROXY", "").strip().lower() in {"1", "true", "yes", "on"}


def _setup_logging(log_dir):
    ensure_dir(log_dir)
    root = logging.getLogger("")
    log_path = os.path.join(log_dir, "melodymap.log")
    root.setLevel(logging.INFO)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            if os.path.abspath(getattr(handler, "baseFilename", "")) == os.path.abspath(log_path):
                return
    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    file_handler.setLevel(logging.INFO)
    root.addHandler(file_handler)


class StartSearchRequest(BaseModel):
    start: str
    target: str
    depth: int = 0


class SafeJSONResponse(JSONResponse):
    def render(self, content):
        return json.dumps(
            safe_json(content),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


app = FastAPI(
    title=APP_NAME,
    description="MelodyMap API: shortest collaboration paths between artists.",
    default_response_class=SafeJSONResponse,
)

if _TRUST_PROXY:
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


@app.on_event("startup")
async def startup():
    app.state.paths = build_engine_paths()
    _setup_logging(app.state.paths.log_dir)
    app.state.neighbor_cache = RecentNeighborCache()
    engine = build_default_engine(db_path=app.state.paths.db_path, neighbor_cache=app.state.neighbor_cache)
    app.state.registry = SearchJobRegistry(engine)
    logging.info("%s started backend_db=%s", APP_NAME, app.state.paths.db_path)


@app.on_event("shutdown")
async def shutdown():
    registry = getattr(app.state, "registry", None)
    if registry is not None:
        registry.shutdown(wait=False)


@app.get("/api/health")
async def health():
    return {"ok": True, "version": APP_VERSION}


@app.post("/api/search/start")
async def start_search(payload: StartSearchRequest):
    start = payload.start.strip()
    target = payload.target.strip()
    if not start or not target:
        raise HTTPException(status_code=400, detail="start or target empty")
    job_id = app.state.registry.submit(start, target, payload.depth)
    return {"jobID": job_id}


@app.get("/api/search/status")
async def search_status(job_id: str = Query(..., alias="jobID")):
    job = app.state.registry.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="job not found")
    return job


@app.post("/api/search/{job_id}/cancel")
async def cancel_search(job_id: str):
    if app.state.registry.get(job_id) is None:
        raise HTTPException(status_code=404, detail="job not found")
    cancelled = app.state.registry.cancel(job_id)
    return {"ok": cancelled, "jobID": job_id}


@app.get("/api/lookup")
async def lookup_neighbors(artist: str = Query(...)):
    entry = app.state.neighbor_cache.lookup(artist)
    if entry is None:
        raise HTTPException(status_code=404, detail="artist not in recent cache")
    return entry.to_dict()


if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("MELODYMAP_HOST", "127.0.0.1")
    port = int(os.environ.get("MELODYMAP_PORT", "8000"))
    uvicorn.run("api.main:app", host=host, port=port, reload=False)
