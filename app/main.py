from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.logging import configure_logging
from app.models import client, invoice, payment, system_setting, time_entry, work_type  # noqa: F401
from app.routers.auth import router as auth_router
from app.routers.clients import router as clients_router
from app.routers.invoices import router as invoices_router
from app.routers.payments import router as payments_router
from app.routers.settings import router as settings_router
from app.routers.statements import router as statements_router
from app.routers.time_entries import router as time_entries_router
from app.routers.work_types import router as work_types_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="InvoiceOps Billing Ledger",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(clients_router)
app.include_router(work_types_router)
app.include_router(time_entries_router)
app.include_router(invoices_router)
app.include_router(payments_router)
app.include_router(statements_router)
app.include_router(settings_router)


@app.get("/")
def root():
    return {"status": "InvoiceOps Billing Ledger running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
