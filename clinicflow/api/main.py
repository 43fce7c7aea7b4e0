from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from starlette.responses import JSONResponse

from clinicflow.api.routes.admin import router as admin_router
from clinicflow.api.routes.appointments import router as appointments_router
from clinicflow.api.routes.patients import router as patients_router
from clinicflow.api.routes.plans import router as plans_router
from clinicflow.core.config import settings
from clinicflow.core.exceptions import BackendUnavailable

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logging.basicConfig(level=settings.log_level.upper())
    yield


app = FastAPI(title="Clinicflow", lifespan=lifespan)
app.include_router(plans_router, prefix="/api/v1")
app.include_router(patients_router, prefix="/api/v1")
app.include_router(appointments_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.exception_handler(BackendUnavailable)
async def backend_unavailable_handler(request: Request, exc: BackendUnavailable) -> JSONResponse:
    logger.error("Backend unavailable on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Plan information is temporarily unavailable"},
    )


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
