from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from paperbot.core.engine import PaperEngine


def create_app(engine: PaperEngine) -> FastAPI:
    """Read-only status endpoints over a running engine."""
    app = FastAPI(title="PaperBot Monitor")

    @app.get("/paper/fills")
    async def get_fills():
        return JSONResponse(engine.history.to_dicts())

    @app.get("/paper/account")
    async def get_account():
        return JSONResponse(engine.account_snapshot().to_dict())

    @app.get("/api/state")
    async def get_state():
        payload = engine.state.snapshot()
        payload["marks"] = engine.marks()
        return JSONResponse(payload)

    return app
