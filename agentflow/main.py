"""FastAPI entry-point exposing orchestration controls."""
from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from agentflow.api.routes import router as orchestration_router
from agentflow.config import config
from agentflow.runtime import start_runtime, stop_runtime


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application."""
    await start_runtime()
    yield
    await stop_runtime()


app = FastAPI(title="Agent Orchestration Engine", lifespan=lifespan)
app.include_router(orchestration_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


def serve() -> None:
    uvicorn.run("agentflow.main:app", host=config.host, port=config.port)


if __name__ == "__main__":
    serve()
