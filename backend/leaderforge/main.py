# backend/leaderforge/main.py
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .database import Base, engine

from .apps.accounts.router import router as accounts_router
from .apps.training.router import router as training_router
from .apps.dashboards.router import router as dashboards_router


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ]


def _auto_create_tables() -> bool:
    return os.getenv("AUTO_CREATE_TABLES", "false").lower() in {"1", "true", "yes", "on"}


app = FastAPI(title="LeaderForge API", version="1.0.0")
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def create_tables() -> None:
    if _auto_create_tables():
        Base.metadata.create_all(bind=engine)


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "LeaderForge backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(accounts_router)
app.include_router(training_router)
app.include_router(dashboards_router)
