from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finboard.api.routers import api_router
from finboard.core.config import settings
from finboard.core.errors import CATEGORY_INCONSISTENT, TransferError
from finboard.core.logging_setup import setup_logging
from finboard.db.init_db import ensure_seed_data
from finboard.db.session import SessionLocal

logger = logging.getLogger(__name__)

app = FastAPI(title="finboard API")

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.exception_handler(TransferError)
async def transfer_error_handler(request: Request, exc: TransferError) -> JSONResponse:
    if exc.category == CATEGORY_INCONSISTENT:
        logger.critical("Unreconciled balance reported to client on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"detail": exc.message, "code": exc.code, "category": exc.category},
        status_code=exc.status_code,
    )


@app.on_event("startup")
def on_startup() -> None:
    setup_logging()
    db = SessionLocal()
    try:
        ensure_seed_data(db)
    finally:
        db.close()
