# src/recycleright/api/app.py
"""
FastAPI application wiring.

Creates the `FastAPI` instance, configures CORS for the React frontend and loads the
bin dataset once at startup. Business logic lives in `recycleright.api.routes`.

Run with: `uvicorn recycleright.api.app:app --port 3001`
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from recycleright.core.logging import configure_logging

from . import routes

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Fail fast: a broken dataset means no query can ever be answered.
    locator = routes._locator()
    logger.info("Serving nearest-bin queries over %d bins (k=%d)", len(locator.bins), locator.k)
    yield


app = FastAPI(title="Recycle Right API", version="0.1.0", lifespan=lifespan)

# CORS (dev-friendly): allow local frontends (e.g. http://localhost:5173) to call this API.
# Configure via env:
# - RECYCLERIGHT_CORS_ORIGINS="https://recycle-right.example,http://localhost:5173"
# - RECYCLERIGHT_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("RECYCLERIGHT_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("RECYCLERIGHT_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = os.getenv("RECYCLERIGHT_CORS_ALLOW_ORIGIN_REGEX", "").strip() or (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
)
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(routes.router)
