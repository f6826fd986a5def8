# server.py
from __future__ import annotations
import logging
import os
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinic_backend.db import database_url, init_db
from clinic_backend.routes import accounts

APP_NAME = "clinic-provisioning"

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(APP_NAME)

# ── Render env ─────────────────────────────────────────────────────────────
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# ── App ───────────────────────────────────────────────────────────────────
app = FastAPI(title="Clinic Provisioning", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS, allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

app.include_router(accounts.router)

# ── Lifecycle ─────────────────────────────────────────────────────────────
@app.on_event("startup")
def _startup() -> None:
    if database_url():
        init_db()
        logger.info("schema ready")
    else:
        logger.warning("DATABASE_URL not set; skipping schema bootstrap")

# ── Health / root ─────────────────────────────────────────────────────────
@app.get("/")
def root() -> Dict[str, Any]:
    return {"ok": True, "service": APP_NAME}

@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}
